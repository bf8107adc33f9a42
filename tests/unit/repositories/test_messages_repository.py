"""
Unit tests for MessageRepository.
"""

import pytest

from jobsite.models.entities import Role
from jobsite.models.threads import ThreadRef
from jobsite.repositories import MessageRepository


@pytest.fixture
def repo(storage, clock):
    return MessageRepository(storage, clock)


@pytest.mark.asyncio
async def test_create_general_message(repo, clock):
    msg = await repo.create(ThreadRef.of("project-1"), "user-sarah", "Sarah Chen", Role.SUPERINTENDENT, "Morning all")

    assert msg.id.startswith("msg-")
    assert msg.schedule_item_id is None
    assert msg.author_role == Role.SUPERINTENDENT
    assert msg.created_at == clock.now


@pytest.mark.asyncio
async def test_create_accepts_role_string(repo):
    msg = await repo.create(ThreadRef.of("project-1", "schedule-2"), "user-mike", "Mike", "foreman", "hi")
    assert msg.author_role == Role.FOREMAN
    assert msg.schedule_item_id == "schedule-2"


@pytest.mark.asyncio
async def test_create_rejects_unknown_role(repo):
    with pytest.raises(ValueError):
        await repo.create(ThreadRef.of("project-1"), "user-x", "X", "architect", "hi")


@pytest.mark.asyncio
async def test_threads_are_separate(repo):
    general = ThreadRef.of("project-1")
    framing = ThreadRef.of("project-1", "schedule-2")
    await repo.create(general, "user-sarah", "Sarah", Role.SUPERINTENDENT, "general one")
    await repo.create(framing, "user-mike", "Mike", Role.FOREMAN, "framing one")
    await repo.create(ThreadRef.of("project-2"), "user-mike", "Mike", Role.FOREMAN, "other project")

    assert [m.content for m in await repo.get_for_thread(general)] == ["general one"]
    assert [m.content for m in await repo.get_for_thread(framing)] == ["framing one"]


@pytest.mark.asyncio
async def test_thread_messages_oldest_first(repo, clock):
    thread = ThreadRef.of("project-1")
    await repo.create(thread, "user-sarah", "Sarah", Role.SUPERINTENDENT, "first")
    clock.advance(minutes=1)
    await repo.create(thread, "user-mike", "Mike", Role.FOREMAN, "second")

    messages = await repo.get_for_thread(thread)
    assert [m.content for m in messages] == ["first", "second"]


@pytest.mark.asyncio
async def test_get_all_for_project_spans_threads(repo, clock):
    await repo.create(ThreadRef.of("project-1", "schedule-2"), "user-mike", "Mike", Role.FOREMAN, "item")
    clock.advance(seconds=30)
    await repo.create(ThreadRef.of("project-1"), "user-sarah", "Sarah", Role.SUPERINTENDENT, "general")
    await repo.create(ThreadRef.of("project-2"), "user-sarah", "Sarah", Role.SUPERINTENDENT, "elsewhere")

    messages = await repo.get_all_for_project("project-1")
    assert [m.content for m in messages] == ["item", "general"]


@pytest.mark.asyncio
async def test_empty_thread(repo):
    assert await repo.get_for_thread(ThreadRef.of("project-1")) == []
