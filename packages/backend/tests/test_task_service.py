"""TaskService — ownership scoping, filtering, sorting, allow-lists.

Learn: The services are built by hand here with a RequestContext, the
same object the auth dependency builds for a real request.
"""

import uuid

import pytest
import pytest_asyncio

from tasktrack.auth.sessions import RequestContext
from tasktrack.errors import ResourceNotFoundError, ValidationError
from tasktrack.events.types import TASK_CREATED, TASK_DELETED, TASK_UPDATED
from tasktrack.services.task_service import TaskService
from tasktrack.store.tasks import TaskSort
from tasktrack.store.users import UserStore


async def _service(db_session, email, hooks=()):
    store = UserStore(db_session)
    user = await store.create("Owner", email, "hash")
    await store.add_session(user.id, f"token-{email}")
    return TaskService(db_session, RequestContext(user, f"token-{email}"), hooks=hooks)


@pytest_asyncio.fixture()
async def alice(db_session):
    return await _service(db_session, "alice@example.com")


@pytest_asyncio.fixture()
async def bob(db_session):
    return await _service(db_session, "bob@example.com")


# ═══════════════════════════════════════════════════════════
# Create & read
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_create_sets_owner_from_context(alice):
    task = await alice.create_task({"description": "Buy milk"})
    assert task.owner_id == alice.owner_id
    assert task.completed is False


@pytest.mark.asyncio
async def test_create_rejects_owner_in_body(alice):
    with pytest.raises(ValidationError):
        await alice.create_task({"description": "x", "owner_id": str(uuid.uuid4())})


@pytest.mark.asyncio
async def test_create_requires_description(alice):
    with pytest.raises(ValidationError):
        await alice.create_task({"completed": True})


@pytest.mark.asyncio
async def test_get_foreign_task_is_not_found(alice, bob):
    task = await alice.create_task({"description": "private"})
    with pytest.raises(ResourceNotFoundError):
        await bob.get_task(task.id)


@pytest.mark.asyncio
async def test_get_missing_task_is_not_found(alice):
    with pytest.raises(ResourceNotFoundError):
        await alice.get_task(uuid.uuid4())


# ═══════════════════════════════════════════════════════════
# Listing
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_list_only_returns_own_tasks(alice, bob):
    await alice.create_task({"description": "a1"})
    await alice.create_task({"description": "a2"})
    await bob.create_task({"description": "b1"})

    assert sorted(t.description for t in await alice.list_tasks()) == ["a1", "a2"]
    assert [t.description for t in await bob.list_tasks()] == ["b1"]


@pytest.mark.asyncio
async def test_list_filters_by_completed(alice):
    await alice.create_task({"description": "done", "completed": True})
    await alice.create_task({"description": "todo"})

    done = await alice.list_tasks(completed=True)
    todo = await alice.list_tasks(completed=False)
    assert [t.description for t in done] == ["done"]
    assert [t.description for t in todo] == ["todo"]


@pytest.mark.asyncio
async def test_list_sort_and_paginate(alice):
    for desc in ("b", "c", "a", "d"):
        await alice.create_task({"description": desc})

    asc = await alice.list_tasks(sort="description:asc")
    assert [t.description for t in asc] == ["a", "b", "c", "d"]

    page = await alice.list_tasks(sort=TaskSort("description", descending=True), limit=2, skip=1)
    assert [t.description for t in page] == ["c", "b"]


@pytest.mark.asyncio
async def test_list_rejects_bad_sort(alice):
    with pytest.raises(ValidationError):
        await alice.list_tasks(sort="owner_id:asc")
    with pytest.raises(ValidationError):
        await alice.list_tasks(sort="description:sideways")


@pytest.mark.asyncio
async def test_list_rejects_bad_pagination(alice):
    with pytest.raises(ValidationError):
        await alice.list_tasks(limit=0)
    with pytest.raises(ValidationError):
        await alice.list_tasks(skip=-1)


# ═══════════════════════════════════════════════════════════
# Update & delete
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_update_allowed_fields(alice):
    task = await alice.create_task({"description": "old"})
    task = await alice.update_task(task.id, {"description": "new", "completed": True})
    assert task.description == "new"
    assert task.completed is True


@pytest.mark.asyncio
async def test_update_rejects_id_field(alice):
    task = await alice.create_task({"description": "keep"})
    with pytest.raises(ValidationError):
        await alice.update_task(task.id, {"_id": "x"})
    assert (await alice.get_task(task.id)).description == "keep"


@pytest.mark.asyncio
async def test_update_rejects_empty(alice):
    task = await alice.create_task({"description": "keep"})
    with pytest.raises(ValidationError):
        await alice.update_task(task.id, {})


@pytest.mark.asyncio
async def test_update_foreign_task_is_not_found(alice, bob):
    task = await alice.create_task({"description": "mine"})
    with pytest.raises(ResourceNotFoundError):
        await bob.update_task(task.id, {"completed": True})
    assert (await alice.get_task(task.id)).completed is False


@pytest.mark.asyncio
async def test_delete_foreign_task_is_not_found(alice, bob):
    task = await alice.create_task({"description": "mine"})
    with pytest.raises(ResourceNotFoundError):
        await bob.delete_task(task.id)
    assert (await alice.get_task(task.id)).id == task.id


@pytest.mark.asyncio
async def test_delete_returns_task_and_removes_it(alice):
    task = await alice.create_task({"description": "bye"})
    deleted = await alice.delete_task(task.id)
    assert deleted.id == task.id
    with pytest.raises(ResourceNotFoundError):
        await alice.get_task(task.id)


# ═══════════════════════════════════════════════════════════
# Hooks
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_hooks_receive_task_events(db_session):
    seen = []

    async def async_hook(event_type, data):
        seen.append(event_type)

    svc = await _service(db_session, "hooks@example.com", hooks=[async_hook])
    task = await svc.create_task({"description": "x"})
    await svc.update_task(task.id, {"completed": True})
    await svc.delete_task(task.id)

    assert seen == [TASK_CREATED, TASK_UPDATED, TASK_DELETED]


# ═══════════════════════════════════════════════════════════
# Rejections happen before the store is touched
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "updates",
    [{"_id": "x"}, {"owner_id": "x"}, {}, {"completed": None, "description": "x"}],
)
async def test_rejected_update_never_reaches_store(alice, monkeypatch, updates):
    task = await alice.create_task({"description": "untouched"})
    calls = []

    async def spy_update(*args, **kwargs):
        calls.append((args, kwargs))

    monkeypatch.setattr(alice.tasks, "update", spy_update)

    with pytest.raises(ValidationError):
        await alice.update_task(task.id, updates)
    assert calls == []


@pytest.mark.asyncio
async def test_update_applies_only_sent_fields(alice):
    task = await alice.create_task({"description": "keep me", "completed": True})
    task = await alice.update_task(task.id, {"description": "renamed"})
    assert task.description == "renamed"
    assert task.completed is True
