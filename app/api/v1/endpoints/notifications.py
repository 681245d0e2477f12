from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps.auth import get_current_user_id
from app.api.deps.database import get_db
from app.schemas.notification import (
    NotificationCreate,
    NotificationResolveRequest,
    NotificationResponse,
    ResolutionResult,
)
from app.services.notification import NotificationDispatcher
from app.services.resolution import ResolutionCoordinator

router = APIRouter()


@router.get("/", response_model=List[NotificationResponse])
async def list_notifications(
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """The caller's notifications, newest first, with sender details."""
    return await NotificationDispatcher(db).list_notifications(user_id)


@router.post(
    "/", response_model=NotificationResponse, status_code=status.HTTP_201_CREATED
)
async def create_match_request_notification(
    request: NotificationCreate,
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Notify the other party of a match the caller belongs to."""
    notification, _ = await NotificationDispatcher(db).notify_match_request(
        recipient_id=request.target_user_id,
        match_id=request.match_id,
        message=request.message,
        sender_id=user_id,
    )
    return notification


@router.post("/resolve", response_model=ResolutionResult)
async def resolve_notification(
    request: NotificationResolveRequest,
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Accept, reject or dismiss a notification."""
    return await ResolutionCoordinator(db).resolve(
        user_id, request.notification_id, request.action
    )
