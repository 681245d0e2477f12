from typing import List

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps.auth import get_current_user_id
from app.api.deps.database import get_db
from app.schemas.message import MessageCreate, MessageResponse
from app.services.message import MessageService

router = APIRouter()


@router.get("/", response_model=List[MessageResponse])
async def list_messages(
    match_id: int = Query(..., ge=1),
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    return await MessageService(db).list_messages(user_id, match_id)


@router.post("/", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def send_message(
    message_data: MessageCreate,
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Post a message to an accepted match."""
    return await MessageService(db).send_message(user_id, message_data)
