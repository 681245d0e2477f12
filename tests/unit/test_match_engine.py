from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import InvalidArgumentError, NotFoundError, StorageError
from app.models.match import Match, MatchStatus
from app.models.notification import Notification, NotificationType
from app.services.match import MatchEngine
from app.services.match_store import match_store
from tests.fixtures.profile_fixtures import (
    count_rows,
    create_match,
    create_profile,
)


@pytest.mark.unit
class TestComputeCandidates:
    """Unit tests for candidate search."""

    @pytest.mark.asyncio
    async def test_complementary_profiles_find_each_other(
        self, db: AsyncSession, go_mentor, rust_mentor
    ):
        engine = MatchEngine(db)

        a_candidates = await engine.compute_candidates(go_mentor.id)
        b_candidates = await engine.compute_candidates(rust_mentor.id)

        assert [p.id for p in a_candidates] == [rust_mentor.id]
        assert [p.id for p in b_candidates] == [go_mentor.id]

    @pytest.mark.asyncio
    async def test_one_sided_overlap_is_not_a_candidate(
        self, db: AsyncSession, go_mentor
    ):
        # Teaches what A wants but wants something A does not teach
        await create_profile(db, "user-c", "Rust", "Python")

        candidates = await MatchEngine(db).compute_candidates(go_mentor.id)

        assert candidates == []

    @pytest.mark.asyncio
    async def test_multi_skill_lists_compare_as_whole_strings(self, db: AsyncSession):
        me = await create_profile(db, "user-m", "Go, SQL", "Rust, Elm")
        exact = await create_profile(db, "user-x", "Rust, Elm", "Go, SQL")
        await create_profile(db, "user-reordered", "Elm, Rust", "Go, SQL")
        await create_profile(db, "user-subset", "Rust", "Go")

        candidates = await MatchEngine(db).compute_candidates(me.id)

        assert [p.id for p in candidates] == [exact.id]

    @pytest.mark.asyncio
    async def test_identical_profile_does_not_match_itself(self, db: AsyncSession):
        # Teaching and learning the same skill would satisfy the predicate
        me = await create_profile(db, "user-self", "Chess", "Chess")
        twin = await create_profile(db, "user-twin", "Chess", "Chess")

        candidates = await MatchEngine(db).compute_candidates(me.id)

        assert [p.id for p in candidates] == [twin.id]

    @pytest.mark.asyncio
    async def test_blank_skills_have_no_candidates(self, db: AsyncSession):
        me = await create_profile(db, "user-blank", "", "")
        await create_profile(db, "user-blank-2", "", "")

        assert await MatchEngine(db).compute_candidates(me.id) == []

    @pytest.mark.asyncio
    async def test_unknown_user_raises_not_found(self, db: AsyncSession):
        with pytest.raises(NotFoundError):
            await MatchEngine(db).compute_candidates("missing")


@pytest.mark.unit
class TestEnsureMatch:
    """Unit tests for match creation and deduplication."""

    @pytest.mark.asyncio
    async def test_creates_pending_match_and_notifies_candidate(
        self, db: AsyncSession, go_mentor, rust_mentor
    ):
        match, created = await MatchEngine(db).ensure_match(
            go_mentor.id, rust_mentor.id
        )

        assert created is True
        assert match.user1 == go_mentor.id
        assert match.user2 == rust_mentor.id
        assert match.status == MatchStatus.PENDING.value

        notifications = await db.execute(
            Notification.__table__.select().where(
                Notification.user_id == rust_mentor.id
            )
        )
        rows = notifications.fetchall()
        assert len(rows) == 1
        assert rows[0].type == NotificationType.MATCH_REQUEST.value
        assert rows[0].match_id == match.id
        assert rows[0].message == "New match request from A"
        assert rows[0].is_read is False

    @pytest.mark.asyncio
    async def test_called_twice_keeps_one_match_and_one_notification(
        self, db: AsyncSession, go_mentor, rust_mentor
    ):
        engine = MatchEngine(db)

        first, first_created = await engine.ensure_match(go_mentor.id, rust_mentor.id)
        second, second_created = await engine.ensure_match(
            go_mentor.id, rust_mentor.id
        )

        assert first_created is True
        assert second_created is False
        assert first.id == second.id
        assert await count_rows(db, Match) == 1
        assert await count_rows(db, Notification) == 1

    @pytest.mark.asyncio
    async def test_reverse_direction_reuses_match_and_notifies_other_party(
        self, db: AsyncSession, go_mentor, rust_mentor
    ):
        engine = MatchEngine(db)
        match, _ = await engine.ensure_match(go_mentor.id, rust_mentor.id)

        reverse, created = await engine.ensure_match(rust_mentor.id, go_mentor.id)

        assert created is False
        assert reverse.id == match.id
        assert reverse.user1 == go_mentor.id
        assert await count_rows(db, Match) == 1
        assert (
            await count_rows(db, Notification, Notification.user_id == go_mentor.id)
            == 1
        )

    @pytest.mark.asyncio
    async def test_existing_accepted_match_is_left_untouched(
        self, db: AsyncSession, go_mentor, rust_mentor
    ):
        accepted = await create_match(
            db, go_mentor.id, rust_mentor.id, status=MatchStatus.ACCEPTED
        )

        match, created = await MatchEngine(db).ensure_match(
            go_mentor.id, rust_mentor.id
        )

        assert created is False
        assert match.id == accepted.id
        assert match.status == MatchStatus.ACCEPTED.value
        # Accepted matches are final: no fresh request for either party
        assert await count_rows(db, Notification) == 0

    @pytest.mark.asyncio
    async def test_profile_resave_after_accept_sends_no_request(
        self, db: AsyncSession, go_mentor, rust_mentor
    ):
        await create_match(db, go_mentor.id, rust_mentor.id, status=MatchStatus.ACCEPTED)

        created, candidates = await MatchEngine(db).auto_match_on_profile_save(
            rust_mentor.id
        )

        assert created == 0
        assert [c.id for c in candidates] == [go_mentor.id]
        assert (
            await count_rows(db, Notification, Notification.user_id == go_mentor.id)
            == 0
        )

    @pytest.mark.asyncio
    async def test_self_match_is_rejected(self, db: AsyncSession, go_mentor):
        with pytest.raises(InvalidArgumentError):
            await MatchEngine(db).ensure_match(go_mentor.id, go_mentor.id)

    @pytest.mark.asyncio
    async def test_unknown_candidate_raises_not_found(
        self, db: AsyncSession, go_mentor
    ):
        with pytest.raises(NotFoundError):
            await MatchEngine(db).ensure_match(go_mentor.id, "nobody")

        assert await count_rows(db, Match) == 0

    @pytest.mark.asyncio
    async def test_lost_insert_race_resolves_to_existing_row(
        self, db: AsyncSession, go_mentor, rust_mentor
    ):
        # Another writer inserted the pair between our check and our insert
        winner = await create_match(db, rust_mentor.id, go_mentor.id)

        with patch.object(
            match_store,
            "find_by_pair",
            AsyncMock(side_effect=[[], [winner]]),
        ):
            match, created = await MatchEngine(db).ensure_match(
                go_mentor.id, rust_mentor.id
            )

        assert created is False
        assert match.id == winner.id
        assert await count_rows(db, Match) == 1

    @pytest.mark.asyncio
    async def test_storage_failure_is_surfaced(
        self, db: AsyncSession, go_mentor, rust_mentor
    ):
        with patch.object(
            match_store,
            "insert",
            AsyncMock(side_effect=StorageError("Failed to create match")),
        ):
            with pytest.raises(StorageError):
                await MatchEngine(db).ensure_match(go_mentor.id, rust_mentor.id)

        assert await count_rows(db, Notification) == 0


@pytest.mark.unit
class TestAutoMatch:
    """Unit tests for discovery and auto-match on profile save."""

    @pytest.mark.asyncio
    async def test_auto_match_creates_match_and_notification(
        self, db: AsyncSession, go_mentor, rust_mentor
    ):
        created, candidates = await MatchEngine(db).auto_match_on_profile_save(
            go_mentor.id
        )

        assert created == 1
        assert [c.id for c in candidates] == [rust_mentor.id]

        matches = await match_store.list_for_user(db, go_mentor.id)
        assert len(matches) == 1
        assert matches[0].user1 == go_mentor.id
        assert matches[0].user2 == rust_mentor.id
        assert matches[0].status == MatchStatus.PENDING.value

    @pytest.mark.asyncio
    async def test_rediscovery_creates_nothing_new(
        self, db: AsyncSession, go_mentor, rust_mentor
    ):
        engine = MatchEngine(db)
        await engine.discover(go_mentor.id)

        created, candidates = await engine.discover(go_mentor.id)

        assert created == 0
        assert len(candidates) == 1
        assert await count_rows(db, Match) == 1

    @pytest.mark.asyncio
    async def test_auto_match_can_be_disabled(
        self, db: AsyncSession, go_mentor, rust_mentor, monkeypatch
    ):
        monkeypatch.setattr(settings, "AUTO_MATCH_ON_PROFILE_SAVE", False)

        created, candidates = await MatchEngine(db).auto_match_on_profile_save(
            go_mentor.id
        )

        assert created == 0
        assert candidates == []
        assert await count_rows(db, Match) == 0
