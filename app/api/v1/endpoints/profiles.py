from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps.auth import get_current_user_id
from app.api.deps.database import get_db
from app.schemas.match import MatchDiscoveryResponse
from app.schemas.profile import ProfileResponse, ProfileUpsert
from app.services.match import MatchEngine
from app.services.profile import profile_directory

router = APIRouter()


@router.get("/", response_model=List[ProfileResponse])
async def list_profiles(
    exclude: Optional[str] = Query(None, description="Profile id to leave out"),
    ids: Optional[str] = Query(None, description="Comma separated profile ids"),
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """List profiles in the directory."""
    id_list = [i.strip() for i in ids.split(",") if i.strip()] if ids else None
    # An ids param with no usable ids means no filter, as the web client sends it
    return await profile_directory.list(db, exclude=exclude, ids=id_list or None)


@router.get("/me", response_model=ProfileResponse)
async def get_my_profile(
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    return await profile_directory.get(db, user_id)


@router.put("/me", response_model=MatchDiscoveryResponse)
async def save_my_profile(
    profile_data: ProfileUpsert,
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Save the caller's profile, then match against the saved skills."""
    profile = await profile_directory.upsert(db, user_id, profile_data)
    engine = MatchEngine(db)
    created, candidates = await engine.auto_match_on_profile_save(
        user_id, profile=profile
    )
    return MatchDiscoveryResponse(
        matches_created=created,
        candidates=[ProfileResponse.model_validate(c) for c in candidates],
    )


@router.get("/me/candidates", response_model=List[ProfileResponse])
async def get_my_candidates(
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Profiles whose skills complement the caller's, without matching."""
    return await MatchEngine(db).compute_candidates(user_id)


@router.get("/{profile_id}", response_model=ProfileResponse)
async def get_profile(
    profile_id: str,
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    return await profile_directory.get(db, profile_id)
