"""Pulse endpoints: harvesting, personalized signals, interest DNA."""

from __future__ import annotations

from fastapi import APIRouter, Request

from nkv_api import schemas, service
from nkv_contracts import DNAUpdateResult, MatchResult, SweepResult

router = APIRouter()


@router.post("/sweep", response_model=SweepResult)
async def sweep(request: Request) -> SweepResult:
    """Run one harvest sweep over a random category."""
    return await service.sweep(correlation_id=request.state.correlation_id)


@router.get("/signals/{user_id}", response_model=MatchResult)
async def signals(user_id: str) -> MatchResult:
    """Personalized signals; trending items when the user has no DNA."""
    return await service.match_signals(user_id)


@router.put("/dna/{user_id}", response_model=DNAUpdateResult)
async def update_dna(
    user_id: str, body: schemas.DNAUpdateRequest, request: Request
) -> DNAUpdateResult:
    """Resynchronize a user's interest DNA from profile text."""
    return await service.update_dna(
        user_id,
        body.profile_text,
        expertise_level=body.expertise_level,
        negative_interests=body.negative_interests,
        correlation_id=request.state.correlation_id,
    )
