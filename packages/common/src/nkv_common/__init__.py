"""NKV Common - Shared utilities.

Version: 1.0.0

This package provides:
- Settings (pydantic-settings)
- Structured logging (structlog) with correlation ids
- Retry/backoff patterns (tenacity)
- OpenTelemetry instrumentation helpers
- Content hashing for deduplication
- Detached background task runner
- Custom error types
"""

from nkv_common.background import DetachedTaskRunner, get_task_runner
from nkv_common.config import Settings, get_settings
from nkv_common.errors import (
    ContentTooShortError,
    DistillationFailedError,
    DuplicateContentError,
    EmbeddingError,
    IngestionError,
    NKVError,
    NoSourcesFoundError,
    NotFoundError,
    PersistenceError,
    ResearchError,
    SearchError,
    WebSearchError,
)
from nkv_common.hashing import compute_content_hash, compute_item_hash
from nkv_common.instrumentation import (
    current_trace_id,
    get_tracer,
    init_telemetry,
    instrument_function,
)
from nkv_common.logging_config import (
    bind_correlation_id,
    clear_correlation_id,
    configure_logging,
    get_logger,
)
from nkv_common.retry import retry_on_exception

__version__ = "1.0.0"

__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Logging
    "configure_logging",
    "get_logger",
    "bind_correlation_id",
    "clear_correlation_id",
    # Retry
    "retry_on_exception",
    # Instrumentation
    "init_telemetry",
    "get_tracer",
    "instrument_function",
    "current_trace_id",
    # Hashing
    "compute_content_hash",
    "compute_item_hash",
    # Background work
    "DetachedTaskRunner",
    "get_task_runner",
    # Errors
    "NKVError",
    "IngestionError",
    "ContentTooShortError",
    "DistillationFailedError",
    "EmbeddingError",
    "PersistenceError",
    "DuplicateContentError",
    "SearchError",
    "NotFoundError",
    "ResearchError",
    "NoSourcesFoundError",
    "WebSearchError",
]
