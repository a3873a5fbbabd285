"""Exception handlers mapping domain errors to HTTP responses.

Every error body carries the request's correlation id as trace_id so an
operator can find the matching log lines.
"""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from arxiv_client import ArxivError
from nkv_common import (
    ContentTooShortError,
    DistillationFailedError,
    EmbeddingError,
    NKVError,
    NoSourcesFoundError,
    NotFoundError,
    PersistenceError,
    SearchError,
    WebSearchError,
    get_logger,
)
from nkv_extraction import LLMError

logger = get_logger(__name__)

# Checked in order; the first matching class wins
STATUS_BY_ERROR: list[tuple[type[Exception], int]] = [
    (ContentTooShortError, 422),
    (DistillationFailedError, 422),
    (NoSourcesFoundError, 404),
    (NotFoundError, 404),
    (EmbeddingError, 502),
    (WebSearchError, 502),
    (LLMError, 502),
    (ArxivError, 502),
    (PersistenceError, 500),
    (SearchError, 500),
]


def status_for(error: Exception) -> int:
    for error_type, status in STATUS_BY_ERROR:
        if isinstance(error, error_type):
            return status
    return 500


async def nkv_error_handler(request: Request, exc: NKVError) -> JSONResponse:
    status = status_for(exc)
    trace_id = getattr(request.state, "correlation_id", None)
    log = logger.error if status >= 500 else logger.warning
    log(
        "api_error",
        path=request.url.path,
        status=status,
        error_type=type(exc).__name__,
        error=str(exc),
    )
    return JSONResponse(
        status_code=status,
        content={"error": type(exc).__name__, "detail": str(exc), "trace_id": trace_id},
    )


async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content={
            "error": "ValueError",
            "detail": str(exc),
            "trace_id": getattr(request.state, "correlation_id", None),
        },
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(NKVError, nkv_error_handler)
    app.add_exception_handler(ValueError, value_error_handler)
