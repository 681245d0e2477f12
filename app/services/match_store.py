from typing import List, Optional, Sequence

import structlog
from sqlalchemy import delete, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError, StorageError
from app.models.match import Match, MatchStatus

logger = structlog.get_logger(__name__)


class MatchStore:
    """Data access for match rows. Every call is one store round trip."""

    async def find(self, db: AsyncSession, match_id: int) -> Optional[Match]:
        try:
            result = await db.execute(select(Match).where(Match.id == match_id))
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Failed to get match", match_id=match_id, error=str(e))
            raise StorageError("Failed to load match") from e

    async def get(self, db: AsyncSession, match_id: int) -> Match:
        match = await self.find(db, match_id)
        if not match:
            logger.warning("Match not found", match_id=match_id)
            raise NotFoundError("Match not found")
        return match

    async def find_by_pair(self, db: AsyncSession, a: str, b: str) -> List[Match]:
        """Symmetric lookup: rows where {user1, user2} == {a, b}."""
        low, high = Match.pair_key(a, b)
        try:
            result = await db.execute(
                select(Match)
                .where(Match.pair_low == low, Match.pair_high == high)
                .order_by(Match.id)
            )
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error(
                "Failed to look up match pair", user_a=a, user_b=b, error=str(e)
            )
            raise StorageError("Failed to look up match") from e

    async def insert(
        self,
        db: AsyncSession,
        user1: str,
        user2: str,
        status: MatchStatus = MatchStatus.PENDING,
    ) -> Optional[Match]:
        """Insert a match row.

        Returns None when the pair key is already taken, which happens when
        a concurrent writer inserted the same pair after our existence check.
        """
        low, high = Match.pair_key(user1, user2)
        match = Match(
            user1=user1,
            user2=user2,
            pair_low=low,
            pair_high=high,
            status=status.value,
        )
        try:
            # Savepoint so a pair-key conflict leaves the rest of the session intact
            async with db.begin_nested():
                db.add(match)
            await db.commit()
            await db.refresh(match)
        except IntegrityError as e:
            logger.warning(
                "Match insert lost to an existing pair",
                user1=user1,
                user2=user2,
                error=str(e),
            )
            return None
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(
                "Failed to insert match", user1=user1, user2=user2, error=str(e)
            )
            raise StorageError("Failed to create match") from e

        logger.info(
            "Match created",
            match_id=match.id,
            user1=user1,
            user2=user2,
            status=match.status,
        )
        return match

    async def update_status(
        self, db: AsyncSession, match_id: int, status: MatchStatus
    ) -> Match:
        match = await self.get(db, match_id)
        previous = match.status
        try:
            match.status = status.value
            await db.commit()
            await db.refresh(match)
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(
                "Failed to update match status",
                match_id=match_id,
                status=status.value,
                error=str(e),
            )
            raise StorageError("Failed to update match") from e

        logger.info(
            "Match status updated",
            match_id=match_id,
            previous_status=previous,
            status=match.status,
        )
        return match

    async def delete(self, db: AsyncSession, match_id: int) -> bool:
        """Hard delete; returns False when no row had that id."""
        try:
            result = await db.execute(delete(Match).where(Match.id == match_id))
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Failed to delete match", match_id=match_id, error=str(e))
            raise StorageError("Failed to delete match") from e

        deleted = result.rowcount > 0
        logger.info("Match deleted", match_id=match_id, deleted=deleted)
        return deleted

    async def list_for_user(
        self,
        db: AsyncSession,
        user_id: str,
        status: Optional[MatchStatus] = None,
    ) -> List[Match]:
        """Matches where ``user_id`` is either party, newest first."""
        query = select(Match).where(
            or_(Match.user1 == user_id, Match.user2 == user_id)
        )
        if status is not None:
            query = query.where(Match.status == status.value)
        query = query.order_by(Match.created_at.desc(), Match.id.desc())

        try:
            result = await db.execute(query)
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Failed to list matches", user_id=user_id, error=str(e))
            raise StorageError("Failed to list matches") from e

    async def list_by_ids(
        self, db: AsyncSession, match_ids: Sequence[int]
    ) -> List[Match]:
        if not match_ids:
            return []
        try:
            result = await db.execute(
                select(Match).where(Match.id.in_(list(match_ids)))
            )
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error(
                "Failed to batch load matches", count=len(match_ids), error=str(e)
            )
            raise StorageError("Failed to load matches") from e


match_store = MatchStore()
