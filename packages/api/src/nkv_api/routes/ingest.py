"""Ingestion endpoint (the refinery)."""

from __future__ import annotations

from fastapi import APIRouter, Request

from nkv_api import schemas, service
from nkv_contracts import IngestResult

router = APIRouter()


@router.post("", response_model=IngestResult)
async def ingest(body: schemas.IngestRequest, request: Request) -> IngestResult:
    """Distill and store raw text.

    Identical text returns the existing source with facts_count 0.
    """
    return await service.ingest(
        title=body.title,
        text=body.text,
        url=body.url,
        source_type=body.source_type,
        is_public=body.is_public,
        metadata=body.metadata,
        correlation_id=request.state.correlation_id,
    )
