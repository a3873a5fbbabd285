"""NKV Refinery - embedding client and the Ingestion Gateway.

This package provides:
- EmbeddingClient: text -> 768-dim vector over HTTP
- IngestionGateway: dedup, distill, embed and commit raw text to the vault
"""

from nkv_refinery.embedding_client import EmbeddingClient, get_embedding_client
from nkv_refinery.gateway import IngestionGateway, estimate_tokens

__all__ = [
    "EmbeddingClient",
    "get_embedding_client",
    "IngestionGateway",
    "estimate_tokens",
]
