from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from app.schemas.profile import ProfileResponse


class MatchResponse(BaseModel):
    id: int
    user1: str
    user2: str
    status: str
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class MatchRequestCreate(BaseModel):
    target_user_id: str = Field(..., min_length=1, description="Profile to match with")


class MatchRequestResponse(BaseModel):
    data: MatchResponse
    already_exists: bool = False


class MatchDiscoveryResponse(BaseModel):
    """Outcome of an explicit or profile-save driven candidate scan."""

    matches_created: int
    candidates: List[ProfileResponse]
