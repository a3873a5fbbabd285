"""Vault search endpoint."""

from __future__ import annotations

from fastapi import APIRouter

from nkv_api import schemas, service
from nkv_contracts import VaultMatch

router = APIRouter()


@router.post("/vault", response_model=list[VaultMatch])
async def search_vault(body: schemas.VaultSearchRequest) -> list[VaultMatch]:
    """Facts a topic would retrieve from the vault at the given threshold."""
    return await service.vault_search(body.query, threshold=body.threshold, limit=body.limit)
