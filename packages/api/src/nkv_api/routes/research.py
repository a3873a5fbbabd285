"""Research and draft endpoints."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, HTTPException, Request

from nkv_api import schemas, service
from nkv_contracts import Draft, ResearchResult

router = APIRouter()


@router.post("/drafts", response_model=Draft, status_code=201)
async def create_draft(body: schemas.DraftCreateRequest) -> Draft:
    """Create a requester record in status researching."""
    return await service.create_draft(body.topic, user_id=body.user_id)


@router.get("/drafts/{draft_id}", response_model=Draft)
async def get_draft(draft_id: UUID) -> Draft:
    """Get a draft with its sources, status and any failure details."""
    draft = await service.get_draft(draft_id)
    if draft is None:
        raise HTTPException(status_code=404, detail=f"Draft {draft_id} not found")
    return draft


@router.post("/research", response_model=ResearchResult)
async def research(body: schemas.ResearchRequest, request: Request) -> ResearchResult:
    """Gather grounding sources for a topic.

    404 when no tier (web included) found anything.
    """
    return await service.research(
        topic=body.topic,
        draft_id=body.draft_id,
        user_id=body.user_id,
        selection_ids=body.selection_ids,
        correlation_id=request.state.correlation_id,
    )
