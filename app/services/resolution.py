import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ForbiddenError, InvalidArgumentError, NotFoundError
from app.models.match import MatchStatus
from app.schemas.match import MatchResponse
from app.schemas.notification import ResolutionAction, ResolutionResult
from app.services.match_store import match_store
from app.services.notification import notification_store

logger = structlog.get_logger(__name__)


class ResolutionCoordinator:
    """Applies a user's accept/reject decision on a match-request notification.

    The match write happens first and the notification is marked read only
    after it succeeds. Steps are committed separately and nothing is
    compensated: a failure after the match write leaves the match written
    and the notification unread.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def resolve(
        self, user_id: str, notification_id: int, action: str
    ) -> ResolutionResult:
        try:
            resolved_action = ResolutionAction(action)
        except ValueError:
            raise InvalidArgumentError(f"Unknown action: {action}")

        notification = await notification_store.find(self.db, notification_id)
        if not notification:
            logger.warning("Notification not found", notification_id=notification_id)
            raise NotFoundError("Notification not found")
        if notification.user_id != user_id:
            logger.warning(
                "Notification resolved by non-owner",
                notification_id=notification_id,
                user_id=user_id,
            )
            raise ForbiddenError("Not allowed")

        # Generic acknowledgement: no match side effect
        if resolved_action is ResolutionAction.DISMISS or not notification.is_match_request:
            await notification_store.mark_read(self.db, notification_id)
            logger.info(
                "Notification acknowledged",
                notification_id=notification_id,
                user_id=user_id,
                action=resolved_action.value,
            )
            return ResolutionResult(
                action=resolved_action,
                notification_id=notification_id,
                match_id=notification.match_id,
            )

        match_id = notification.match_id
        match = await match_store.get(self.db, match_id)
        if not match.involves(user_id):
            raise ForbiddenError("Not allowed")
        if match.status != MatchStatus.PENDING.value:
            logger.warning(
                "Match already resolved",
                match_id=match_id,
                status=match.status,
                action=resolved_action.value,
            )
            raise InvalidArgumentError("Match is no longer pending")

        if resolved_action is ResolutionAction.ACCEPT:
            match = await match_store.update_status(
                self.db, match_id, MatchStatus.ACCEPTED
            )
            await notification_store.mark_read(self.db, notification_id)
            logger.info("Match accepted", match_id=match_id, user_id=user_id)
            return ResolutionResult(
                action=resolved_action,
                notification_id=notification_id,
                match_id=match_id,
                match=MatchResponse.model_validate(match),
            )

        deleted = await match_store.delete(self.db, match_id)
        if not deleted:
            raise NotFoundError("Match not found")
        await notification_store.mark_read(self.db, notification_id)
        logger.info("Match rejected", match_id=match_id, user_id=user_id)
        return ResolutionResult(
            action=resolved_action,
            notification_id=notification_id,
            match_id=match_id,
            deleted=True,
        )
