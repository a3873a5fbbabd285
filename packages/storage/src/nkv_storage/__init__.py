"""NKV Storage - PostgreSQL storage layer.

Version: 1.0.0

This package provides:
- Database connection management (asyncpg pooling) and schema bootstrap
- SourceStore / ChunkStore (the vault)
- StagingStore (harvested candidates, tier 2 + personalized search)
- DNAStore (per-user interest vectors)
- BacklogStore (coverage gaps)
- DraftStore (requester records)

Exclusive DB ownership - no shared database access from other packages.
"""

from nkv_storage.backlog_store import BacklogStore
from nkv_storage.chunk_store import ChunkStore
from nkv_storage.connection import (
    DatabaseConfig,
    apply_schema,
    check_connection_health,
    close_connection_pool,
    get_connection_pool,
    load_schema_sql,
)
from nkv_storage.dna_store import DNAStore
from nkv_storage.draft_store import DraftStore
from nkv_storage.search import VectorQuery, weighted_rank
from nkv_storage.source_store import SourceStore
from nkv_storage.staging_store import StagingStore

__version__ = "1.0.0"

__all__ = [
    "DatabaseConfig",
    "get_connection_pool",
    "close_connection_pool",
    "check_connection_health",
    "apply_schema",
    "load_schema_sql",
    "VectorQuery",
    "weighted_rank",
    "SourceStore",
    "ChunkStore",
    "StagingStore",
    "DNAStore",
    "BacklogStore",
    "DraftStore",
]
