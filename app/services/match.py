from typing import List, Optional, Tuple

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import InvalidArgumentError, StorageError
from app.models.match import Match, MatchStatus
from app.models.profile import Profile
from app.services.match_store import match_store
from app.services.notification import NotificationDispatcher
from app.services.profile import profile_directory

logger = structlog.get_logger(__name__)


class MatchEngine:
    """Finds skill-complementary profiles and keeps one match per pair.

    Candidate search is a filtered scan over the whole directory: profile
    B is a candidate for A when B teaches exactly what A wants to learn and
    learns exactly what A teaches. The skill fields are compared as whole
    strings, so multi-skill lists must agree in content and order.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.dispatcher = NotificationDispatcher(db)

    async def compute_candidates(
        self, user_id: str, profile: Optional[Profile] = None
    ) -> List[Profile]:
        """Profiles complementary to ``user_id``, in directory order."""
        me = profile or await profile_directory.get(self.db, user_id)

        # Blank skill fields would pair every empty profile with every other
        if not me.teach_skill or not me.learn_skill:
            logger.info("Profile has no skills to exchange", user_id=user_id)
            return []

        candidates = await profile_directory.list(
            self.db,
            exclude=user_id,
            teach_skill=me.learn_skill,
            learn_skill=me.teach_skill,
        )
        logger.info(
            "Computed match candidates", user_id=user_id, count=len(candidates)
        )
        return candidates

    async def ensure_match(
        self, user_id: str, candidate_id: str
    ) -> Tuple[Match, bool]:
        """Return the pair's match, creating it in pending if absent.

        While the match is pending the candidate ends up with a
        match-request notification, whether the match is new or already
        existed. Accepted matches are final and get no new request.
        Existing matches are never updated or deleted here.
        """
        if user_id == candidate_id:
            raise InvalidArgumentError("Cannot match a profile with itself")

        await profile_directory.get(self.db, user_id)
        await profile_directory.get(self.db, candidate_id)

        existing = await match_store.find_by_pair(self.db, user_id, candidate_id)
        created = False
        if existing:
            match = existing[0]
            logger.info(
                "Match already exists",
                match_id=match.id,
                user_id=user_id,
                candidate_id=candidate_id,
                status=match.status,
            )
        else:
            match = await match_store.insert(self.db, user_id, candidate_id)
            if match is None:
                raced = await match_store.find_by_pair(self.db, user_id, candidate_id)
                if not raced:
                    raise StorageError("Match insert conflicted but no row was found")
                match = raced[0]
            else:
                created = True

        if match.status == MatchStatus.PENDING.value:
            await self.dispatcher.notify_match_request(
                recipient_id=candidate_id, match_id=match.id, match=match
            )
        return match, created

    async def discover(
        self, user_id: str, profile: Optional[Profile] = None
    ) -> Tuple[int, List[Profile]]:
        """Ensure a match with every candidate; returns (created, candidates)."""
        candidates = await self.compute_candidates(user_id, profile=profile)
        created_count = 0
        for candidate in candidates:
            _, created = await self.ensure_match(user_id, candidate.id)
            if created:
                created_count += 1

        logger.info(
            "Match discovery finished",
            user_id=user_id,
            candidates=len(candidates),
            matches_created=created_count,
        )
        return created_count, candidates

    async def auto_match_on_profile_save(
        self, user_id: str, profile: Optional[Profile] = None
    ) -> Tuple[int, List[Profile]]:
        """Run discovery against the just-saved skills."""
        if not settings.AUTO_MATCH_ON_PROFILE_SAVE:
            logger.debug("Auto-match disabled", user_id=user_id)
            return 0, []
        return await self.discover(user_id, profile=profile)

    async def list_for_user(
        self, user_id: str, status: Optional[MatchStatus] = None
    ) -> List[Match]:
        return await match_store.list_for_user(self.db, user_id, status=status)
