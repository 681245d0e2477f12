from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps.auth import get_current_user_id
from app.api.deps.database import get_db
from app.models.match import MatchStatus
from app.schemas.match import (
    MatchDiscoveryResponse,
    MatchRequestCreate,
    MatchRequestResponse,
    MatchResponse,
)
from app.schemas.profile import ProfileResponse
from app.services.match import MatchEngine

router = APIRouter()


@router.get("/", response_model=List[MatchResponse])
async def list_matches(
    status_filter: Optional[MatchStatus] = Query(
        None, alias="status", description="Filter by match status"
    ),
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Matches the caller is a party to, newest first."""
    return await MatchEngine(db).list_for_user(user_id, status=status_filter)


@router.post("/discover", response_model=MatchDiscoveryResponse)
async def discover_matches(
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Create pending matches with every complementary profile."""
    created, candidates = await MatchEngine(db).discover(user_id)
    return MatchDiscoveryResponse(
        matches_created=created,
        candidates=[ProfileResponse.model_validate(c) for c in candidates],
    )


@router.post(
    "/request",
    response_model=MatchRequestResponse,
    status_code=status.HTTP_200_OK,
)
async def request_match(
    request: MatchRequestCreate,
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Ask another user to match; idempotent per pair."""
    match, created = await MatchEngine(db).ensure_match(
        user_id, request.target_user_id
    )
    return MatchRequestResponse(
        data=MatchResponse.model_validate(match), already_exists=not created
    )
