"""
Tests for jobsite/services/unread.py

Covers the unread rule, the separation of thread and channel read marks,
and the feed badge total.
"""

from datetime import timedelta

import pytest

from jobsite.models.entities import Role
from jobsite.models.threads import ThreadRef
from jobsite.repositories.base import CollectionKeys
from jobsite.services.unread import count_unread, is_unread

SARAH = "user-sarah"
MIKE = "user-mike"


async def post(services, thread, author_id, content, role=Role.FOREMAN):
    return await services.messages.create(thread, author_id, author_id.title(), role, content)


@pytest.fixture
def general():
    return ThreadRef.of("project-1")


@pytest.fixture
def framing():
    return ThreadRef.of("project-1", "schedule-2")


# ============================================================
# UNREAD RULE
# ============================================================

class TestUnreadRule:

    @pytest.mark.asyncio
    async def test_own_messages_never_unread(self, services, general):
        msg = await post(services, general, SARAH, "hello")
        assert is_unread(msg, SARAH, None) is False

    @pytest.mark.asyncio
    async def test_never_read_counts_everything_from_others(self, services, general):
        msg = await post(services, general, MIKE, "hello")
        assert is_unread(msg, SARAH, None) is True

    @pytest.mark.asyncio
    async def test_boundary_is_exclusive(self, services, general, clock):
        msg = await post(services, general, MIKE, "hello")

        assert is_unread(msg, SARAH, clock.now) is False
        assert is_unread(msg, SARAH, clock.now - timedelta(microseconds=1)) is True

    @pytest.mark.asyncio
    async def test_count_unread(self, services, general, clock):
        await post(services, general, MIKE, "one")
        mark = clock.advance(seconds=1)
        await post(services, general, SARAH, "mine")
        clock.advance(seconds=1)
        await post(services, general, MIKE, "two")

        messages = await services.messages.get_for_thread(general)
        assert count_unread(messages, SARAH, mark) == 1
        assert count_unread(messages, SARAH, None) == 2
        assert count_unread([], SARAH, None) == 0


# ============================================================
# THREADS
# ============================================================

class TestThreadUnread:

    @pytest.mark.asyncio
    async def test_empty_thread(self, services, general):
        assert await services.unread.get_unread_count_for_thread(SARAH, general) == 0

    @pytest.mark.asyncio
    async def test_mark_read_clears_thread(self, services, general, clock):
        await post(services, general, MIKE, "morning")
        clock.advance(seconds=5)
        await services.read_ledger.mark_thread_read(SARAH, general)

        assert await services.unread.get_unread_count_for_thread(SARAH, general) == 0

    @pytest.mark.asyncio
    async def test_message_at_read_instant_is_read(self, services, general):
        # Frozen clock: the mark and the message share a timestamp
        await services.read_ledger.mark_thread_read(SARAH, general)
        await post(services, general, MIKE, "same instant")

        assert await services.unread.get_unread_count_for_thread(SARAH, general) == 0

    @pytest.mark.asyncio
    async def test_new_message_after_read(self, services, general, clock):
        await services.read_ledger.mark_thread_read(SARAH, general)
        clock.advance(seconds=1)
        await post(services, general, MIKE, "later")

        assert await services.unread.get_unread_count_for_thread(SARAH, general) == 1

    @pytest.mark.asyncio
    async def test_reading_one_thread_leaves_others(self, services, general, framing, clock):
        await post(services, general, MIKE, "general news")
        await post(services, framing, MIKE, "wall is up")
        clock.advance(seconds=1)
        await services.read_ledger.mark_thread_read(SARAH, general)

        assert await services.unread.get_unread_count_for_thread(SARAH, general) == 0
        assert await services.unread.get_unread_count_for_thread(SARAH, framing) == 1


# ============================================================
# CHANNELS
# ============================================================

class TestChannelUnread:

    @pytest.mark.asyncio
    async def test_counts_for_every_channel(self, services, general):
        counts = await services.unread.get_unread_counts_by_channel(SARAH, "project-1")
        assert len(counts) == 11
        assert all(v == 0 for v in counts.values())

    @pytest.mark.asyncio
    async def test_navigation_is_always_zero(self, services, general):
        await post(services, general, MIKE, "daily log weather report")
        counts = await services.unread.get_unread_counts_by_channel(SARAH, "project-1")
        assert counts["daily-log"] == 0
        assert counts["general"] == 1

    @pytest.mark.asyncio
    async def test_tag_channels_aggregate_across_threads(self, services, general, framing):
        await post(services, general, MIKE, "Truss delivery at 7")
        await post(services, framing, MIKE, "Joist hangers short")
        await post(services, framing, MIKE, "Deadline for sheathing is Friday")

        counts = await services.unread.get_unread_counts_by_channel(SARAH, "project-1")
        assert counts["framing"] == 3
        assert counts["schedule"] == 1
        assert counts["general"] == 1

    @pytest.mark.asyncio
    async def test_mark_channel_read(self, services, framing, clock):
        await post(services, framing, MIKE, "stud count is off")
        clock.advance(seconds=1)
        await services.read_ledger.mark_channel_read(SARAH, "project-1", "framing")

        assert await services.unread.get_unread_count_for_channel(SARAH, "project-1", "framing") == 0

    @pytest.mark.asyncio
    async def test_unknown_channel_is_zero(self, services):
        assert await services.unread.get_unread_count_for_channel(SARAH, "project-1", "landscaping") == 0

    @pytest.mark.asyncio
    async def test_corrupt_channel_mark_counts_as_never_read(self, services, framing):
        await post(services, framing, MIKE, "stud count is off")
        await services.storage.set(
            CollectionKeys.CHANNEL_READS, {SARAH: {"project-1:framing": "not-a-date"}}
        )

        counts = await services.unread.get_unread_counts_by_channel(SARAH, "project-1")
        assert counts["framing"] == 1


# ============================================================
# LEDGER INDEPENDENCE
# ============================================================

class TestLedgerIndependence:
    """Thread and channel marks never affect each other."""

    @pytest.mark.asyncio
    async def test_framing_message_scenario(self, services, clock):
        await services.projects.create("Riverside", team_member_ids=[SARAH, MIKE], project_id="project-1")
        item = await services.schedule.create("project-1", "Framing", "2026-03-20")
        framing = ThreadRef.of("project-1", item.id)
        await post(services, framing, MIKE, "Framing crew finished the north wall")

        assert await services.unread.get_unread_count_for_thread(SARAH, framing) == 1
        assert await services.unread.get_unread_count_for_channel(SARAH, "project-1", "framing") == 1
        assert await services.unread.get_total_unread_for_user(SARAH, ["project-1"]) == 1

        clock.advance(seconds=1)
        await services.read_ledger.mark_thread_read(SARAH, framing)

        assert await services.unread.get_unread_count_for_thread(SARAH, framing) == 0
        assert await services.unread.get_unread_count_for_channel(SARAH, "project-1", "framing") == 1
        assert await services.unread.get_total_unread_for_user(SARAH, ["project-1"]) == 0

    @pytest.mark.asyncio
    async def test_general_channel_and_general_thread_are_separate(self, services, general, clock):
        await post(services, general, MIKE, "Gate code changed")
        clock.advance(seconds=1)
        await services.read_ledger.mark_thread_read(SARAH, general)

        assert await services.unread.get_unread_count_for_thread(SARAH, general) == 0
        assert await services.unread.get_unread_count_for_channel(SARAH, "project-1", "general") == 1

        await services.read_ledger.mark_channel_read(SARAH, "project-1", "general")
        assert await services.unread.get_unread_count_for_channel(SARAH, "project-1", "general") == 0


# ============================================================
# PROJECT AND USER TOTALS
# ============================================================

class TestTotals:

    @pytest.mark.asyncio
    async def test_items_counts(self, services):
        first = await services.schedule.create("project-1", "Foundation", "2026-03-10")
        second = await services.schedule.create("project-1", "Framing", "2026-03-20")
        await post(services, ThreadRef.of("project-1", first.id), MIKE, "forms set")
        await post(services, ThreadRef.of("project-1", first.id), MIKE, "rebar tied")

        counts = await services.unread.get_unread_counts_for_items(SARAH, "project-1")
        assert counts == {first.id: 2, second.id: 0}

    @pytest.mark.asyncio
    async def test_project_count_is_general_plus_items(self, services):
        item = await services.schedule.create("project-1", "Framing", "2026-03-20")
        await post(services, ThreadRef.of("project-1"), MIKE, "general")
        await post(services, ThreadRef.of("project-1", item.id), MIKE, "framing")

        assert await services.unread.get_unread_count_for_project(SARAH, "project-1") == 2

    @pytest.mark.asyncio
    async def test_total_never_double_counts_channels(self, services):
        item = await services.schedule.create("project-1", "Framing", "2026-03-20")
        # One message, visible in its thread and in three channels
        await post(services, ThreadRef.of("project-1", item.id), MIKE, "Framing inspection delayed, schedule slips")

        assert await services.unread.get_total_unread_for_user(SARAH, ["project-1"]) == 1

    @pytest.mark.asyncio
    async def test_total_across_projects(self, services):
        await post(services, ThreadRef.of("project-1"), MIKE, "one")
        await post(services, ThreadRef.of("project-2"), MIKE, "two")
        await post(services, ThreadRef.of("project-3"), MIKE, "not my project")

        counts = await services.unread.get_unread_counts_by_project(SARAH, ["project-1", "project-2"])
        assert counts == {"project-1": 1, "project-2": 1}
        assert await services.unread.get_total_unread_for_user(SARAH, ["project-1", "project-2"]) == 2

    @pytest.mark.asyncio
    async def test_orphaned_item_messages_not_counted(self, services):
        item = await services.schedule.create("project-1", "Framing", "2026-03-20")
        await post(services, ThreadRef.of("project-1", item.id), MIKE, "framing")
        await services.schedule.delete(item.id)

        assert await services.unread.get_total_unread_for_user(SARAH, ["project-1"]) == 0
