import enum
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from app.schemas.match import MatchResponse


class ResolutionAction(str, enum.Enum):
    ACCEPT = "accept"
    REJECT = "reject"
    DISMISS = "dismiss"


class NotificationResponse(BaseModel):
    id: int
    user_id: str
    type: str
    message: str
    match_id: Optional[int] = None
    is_read: bool
    created_at: Optional[datetime] = None

    # Filled in for match requests when the sender can be resolved
    sender_id: Optional[str] = None
    sender_name: Optional[str] = None
    sender_avatar_url: Optional[str] = None

    model_config = {"from_attributes": True}


class NotificationCreate(BaseModel):
    target_user_id: str = Field(..., min_length=1)
    match_id: int
    message: Optional[str] = Field(None, max_length=500)


class NotificationResolveRequest(BaseModel):
    notification_id: int
    # Validated by the coordinator so unknown actions map to InvalidArgument
    action: str = Field(..., min_length=1)


class ResolutionResult(BaseModel):
    ok: bool = True
    action: ResolutionAction
    notification_id: int
    match_id: Optional[int] = None
    match: Optional[MatchResponse] = None
    deleted: bool = False
