from typing import List, Optional, Sequence

import structlog
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError, StorageError
from app.models.profile import Profile
from app.schemas.profile import ProfileUpsert

logger = structlog.get_logger(__name__)


class ProfileDirectory:
    """Store of user skill declarations, read by the match engine."""

    async def get(self, db: AsyncSession, profile_id: str) -> Profile:
        """Get profile by ID, raising NotFoundError when absent."""
        profile = await self.find(db, profile_id)
        if not profile:
            logger.warning("Profile not found", profile_id=profile_id)
            raise NotFoundError("Profile not found")
        return profile

    async def find(self, db: AsyncSession, profile_id: str) -> Optional[Profile]:
        try:
            result = await db.execute(select(Profile).where(Profile.id == profile_id))
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Failed to get profile", profile_id=profile_id, error=str(e))
            raise StorageError("Failed to load profile") from e

    async def list(
        self,
        db: AsyncSession,
        exclude: Optional[str] = None,
        ids: Optional[Sequence[str]] = None,
        teach_skill: Optional[str] = None,
        learn_skill: Optional[str] = None,
    ) -> List[Profile]:
        """List profiles in directory order, optionally filtered.

        An explicit empty ``ids`` sequence returns nothing.
        """
        if ids is not None and len(ids) == 0:
            return []

        query = select(Profile)
        if exclude:
            query = query.where(Profile.id != exclude)
        if ids is not None:
            query = query.where(Profile.id.in_(list(ids)))
        if teach_skill is not None:
            query = query.where(Profile.teach_skill == teach_skill)
        if learn_skill is not None:
            query = query.where(Profile.learn_skill == learn_skill)

        try:
            result = await db.execute(query)
            profiles = list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Failed to list profiles", error=str(e))
            raise StorageError("Failed to list profiles") from e

        logger.debug("Retrieved profiles", count=len(profiles), exclude=exclude)
        return profiles

    async def upsert(
        self, db: AsyncSession, profile_id: str, profile_data: ProfileUpsert
    ) -> Profile:
        """Create the profile or replace its fields; one row per id."""
        values = profile_data.model_dump()
        try:
            profile = await self.find(db, profile_id)
            created = profile is None
            if created:
                profile = Profile(id=profile_id, **values)
                db.add(profile)
            else:
                for field, value in values.items():
                    setattr(profile, field, value)

            await db.commit()
            await db.refresh(profile)
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Failed to save profile", profile_id=profile_id, error=str(e))
            raise StorageError("Failed to save profile") from e

        logger.info(
            "Profile saved",
            profile_id=profile_id,
            created=created,
            teach_skill=profile.teach_skill,
            learn_skill=profile.learn_skill,
        )
        return profile


profile_directory = ProfileDirectory()
