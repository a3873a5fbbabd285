"""Vault source administration endpoints."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, Response

from nkv_api import schemas, service

router = APIRouter()


@router.get("", response_model=schemas.SourceListResponse)
async def list_sources(
    limit: int = Query(100, ge=1, le=1000, description="Maximum results"),
    offset: int = Query(0, ge=0, description="Offset for pagination"),
) -> schemas.SourceListResponse:
    """List vault sources, newest first, with chunk counts."""
    sources = await service.list_sources(limit=limit, offset=offset)
    return schemas.SourceListResponse(sources=sources, limit=limit, offset=offset)


@router.get("/{source_id}", response_model=schemas.SourceWithChunks)
async def get_source(source_id: UUID) -> schemas.SourceWithChunks:
    """Get one source with its distilled facts."""
    found = await service.get_source(source_id)
    if found is None:
        raise HTTPException(status_code=404, detail=f"Source {source_id} not found")

    source, chunks = found
    return schemas.SourceWithChunks(source=source, chunks=chunks, chunk_count=len(chunks))


@router.delete("/{source_id}", status_code=204)
async def delete_source(source_id: UUID) -> Response:
    """Purge a source and (by cascade) its chunks."""
    if not await service.delete_source(source_id):
        raise HTTPException(status_code=404, detail=f"Source {source_id} not found")
    return Response(status_code=204)
