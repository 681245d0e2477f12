from typing import List

import structlog
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import ForbiddenError, InvalidArgumentError, StorageError
from app.models.match import Match
from app.models.message import Message
from app.schemas.message import MessageCreate
from app.services.match_store import match_store

logger = structlog.get_logger(__name__)


class MessageService:
    """Chat inside a match. Only parties may read, and only accepted
    matches may receive new messages.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _party_match(self, user_id: str, match_id: int) -> Match:
        match = await match_store.find(self.db, match_id)
        if not match or not match.involves(user_id):
            logger.warning("Chat access denied", match_id=match_id, user_id=user_id)
            raise ForbiddenError("Not allowed")
        return match

    async def list_messages(self, user_id: str, match_id: int) -> List[Message]:
        await self._party_match(user_id, match_id)
        try:
            result = await self.db.execute(
                select(Message)
                .where(Message.match_id == match_id)
                .order_by(Message.created_at.asc(), Message.id.asc())
            )
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Failed to list messages", match_id=match_id, error=str(e))
            raise StorageError("Failed to list messages") from e

    async def send_message(self, user_id: str, message_data: MessageCreate) -> Message:
        text = message_data.text or ""
        if not text.strip() and not message_data.file_url:
            raise InvalidArgumentError("text or file_url is required")
        if len(text) > settings.MAX_MESSAGE_LENGTH:
            raise InvalidArgumentError("Message is too long")

        match = await self._party_match(user_id, message_data.match_id)
        if not match.is_accepted:
            raise ForbiddenError("Match not accepted")

        message = Message(
            match_id=match.id,
            sender=user_id,
            text=text,
            file_url=message_data.file_url,
            file_name=message_data.file_name,
            file_type=message_data.file_type,
            file_size=message_data.file_size,
        )
        try:
            self.db.add(message)
            await self.db.commit()
            await self.db.refresh(message)
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("Failed to send message", match_id=match.id, error=str(e))
            raise StorageError("Failed to send message") from e

        logger.info(
            "Message sent",
            message_id=message.id,
            match_id=match.id,
            sender=user_id,
            has_file=bool(message.file_url),
        )
        return message
