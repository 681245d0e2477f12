from typing import Dict, List, Optional, Tuple

import structlog
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import (
    ForbiddenError,
    InvalidArgumentError,
    NotFoundError,
    StorageError,
)
from app.models.match import Match
from app.models.notification import Notification, NotificationType
from app.schemas.notification import NotificationResponse
from app.services.match_store import match_store
from app.services.profile import profile_directory

logger = structlog.get_logger(__name__)


class NotificationStore:
    """Data access for notification rows."""

    async def find(
        self, db: AsyncSession, notification_id: int
    ) -> Optional[Notification]:
        try:
            result = await db.execute(
                select(Notification).where(Notification.id == notification_id)
            )
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(
                "Failed to get notification",
                notification_id=notification_id,
                error=str(e),
            )
            raise StorageError("Failed to load notification") from e

    async def find_existing(
        self,
        db: AsyncSession,
        user_id: str,
        type: NotificationType,
        match_id: Optional[int],
    ) -> List[Notification]:
        """Notifications for (user_id, type, match_id), read or unread."""
        query = select(Notification).where(
            Notification.user_id == user_id,
            Notification.type == type.value,
        )
        if match_id is None:
            query = query.where(Notification.match_id.is_(None))
        else:
            query = query.where(Notification.match_id == match_id)

        try:
            result = await db.execute(query.order_by(Notification.id))
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error(
                "Failed to look up notifications",
                user_id=user_id,
                match_id=match_id,
                error=str(e),
            )
            raise StorageError("Failed to look up notifications") from e

    async def insert(
        self,
        db: AsyncSession,
        user_id: str,
        type: NotificationType,
        message: str,
        match_id: Optional[int] = None,
    ) -> Optional[Notification]:
        """Insert an unread notification.

        Returns None when (user_id, type, match_id) is already taken.
        """
        notification = Notification(
            user_id=user_id,
            type=type.value,
            message=message,
            match_id=match_id,
            is_read=False,
        )
        try:
            async with db.begin_nested():
                db.add(notification)
            await db.commit()
            await db.refresh(notification)
        except IntegrityError as e:
            logger.warning(
                "Notification insert lost to an existing row",
                user_id=user_id,
                match_id=match_id,
                error=str(e),
            )
            return None
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(
                "Failed to insert notification",
                user_id=user_id,
                match_id=match_id,
                error=str(e),
            )
            raise StorageError("Failed to create notification") from e

        logger.info(
            "Notification created",
            notification_id=notification.id,
            user_id=user_id,
            type=notification.type,
            match_id=match_id,
        )
        return notification

    async def mark_read(self, db: AsyncSession, notification_id: int) -> None:
        try:
            await db.execute(
                update(Notification)
                .where(Notification.id == notification_id)
                .values(is_read=True)
            )
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(
                "Failed to mark notification read",
                notification_id=notification_id,
                error=str(e),
            )
            raise StorageError("Failed to update notification") from e

    async def list_for_user(self, db: AsyncSession, user_id: str) -> List[Notification]:
        """All notifications for ``user_id``, newest first."""
        try:
            result = await db.execute(
                select(Notification)
                .where(Notification.user_id == user_id)
                .order_by(Notification.created_at.desc(), Notification.id.desc())
            )
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Failed to list notifications", user_id=user_id, error=str(e))
            raise StorageError("Failed to list notifications") from e


notification_store = NotificationStore()


class NotificationDispatcher:
    """Turns match-request events into deduplicated notifications and
    decorates them with sender details for display.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _sender_name(self, sender_id: str) -> str:
        try:
            sender = await profile_directory.find(self.db, sender_id)
        except StorageError:
            logger.warning("Sender lookup failed", sender_id=sender_id)
            sender = None
        if sender and sender.name:
            return sender.name
        return settings.DEFAULT_SENDER_NAME

    async def notify_match_request(
        self,
        recipient_id: str,
        match_id: int,
        message: Optional[str] = None,
        sender_id: Optional[str] = None,
        match: Optional[Match] = None,
    ) -> Tuple[Notification, bool]:
        """Make sure ``recipient_id`` has a request notification for the match.

        Returns (notification, created). When ``sender_id`` is given it must
        be the other party of the match.
        """
        if match is None:
            match = await match_store.get(self.db, match_id)
        if not match.involves(recipient_id):
            raise InvalidArgumentError("Recipient is not a party to this match")

        counterpart = match.counterpart(recipient_id)
        if sender_id is not None and sender_id != counterpart:
            logger.warning(
                "Notification sender is not the counterpart",
                match_id=match_id,
                sender_id=sender_id,
            )
            raise ForbiddenError("Not allowed")

        existing = await notification_store.find_existing(
            self.db, recipient_id, NotificationType.MATCH_REQUEST, match_id
        )
        if existing:
            logger.debug(
                "Match request already notified",
                notification_id=existing[0].id,
                recipient_id=recipient_id,
                match_id=match_id,
            )
            return existing[0], False

        if not message:
            message = f"New match request from {await self._sender_name(counterpart)}"

        notification = await notification_store.insert(
            self.db,
            recipient_id,
            NotificationType.MATCH_REQUEST,
            message,
            match_id=match_id,
        )
        if notification is None:
            raced = await notification_store.find_existing(
                self.db, recipient_id, NotificationType.MATCH_REQUEST, match_id
            )
            if not raced:
                raise StorageError("Notification insert conflicted but no row was found")
            return raced[0], False
        return notification, True

    async def list_notifications(self, user_id: str) -> List[NotificationResponse]:
        """Newest-first notifications, with sender details where resolvable.

        Enrichment takes two batched lookups (matches, then profiles). If
        either fails the bare notifications are returned.
        """
        notifications = await notification_store.list_for_user(self.db, user_id)
        results = [NotificationResponse.model_validate(n) for n in notifications]

        match_ids = sorted({n.match_id for n in notifications if n.is_match_request})
        if not match_ids:
            return results

        try:
            senders = await self._resolve_senders(user_id, match_ids)
        except StorageError as e:
            logger.warning(
                "Skipping notification enrichment", user_id=user_id, error=str(e)
            )
            return results

        enriched = []
        for item in results:
            sender = senders.get(item.match_id) if item.match_id is not None else None
            if item.type != NotificationType.MATCH_REQUEST.value or sender is None:
                enriched.append(item)
                continue
            enriched.append(item.model_copy(update=sender))
        return enriched

    async def _resolve_senders(
        self, user_id: str, match_ids: List[int]
    ) -> Dict[int, dict]:
        """Map match id -> sender fields for matches that still exist."""
        matches = await match_store.list_by_ids(self.db, match_ids)
        sender_by_match = {m.id: m.counterpart(user_id) for m in matches}
        if not sender_by_match:
            return {}

        profiles = await profile_directory.list(
            self.db, ids=sorted(set(sender_by_match.values()))
        )
        profile_map = {p.id: p for p in profiles}

        senders = {}
        for match_id, sender_id in sender_by_match.items():
            profile = profile_map.get(sender_id)
            senders[match_id] = {
                "sender_id": sender_id,
                "sender_name": (profile.name or None) if profile else None,
                "sender_avatar_url": (profile.avatar_url or None) if profile else None,
            }
        return senders
