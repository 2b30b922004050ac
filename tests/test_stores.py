"""
Tests for the credential and task stores.
"""

import asyncio
from datetime import date

import pytest
import pytest_asyncio
from pydantic import ValidationError
from sqlalchemy import event, func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from api.errors import DuplicateEmail, NotFoundOrForbidden
from database.models import MAX_ID, Task, User
from database.session import init_models
from database.task_store import TaskStore
from database.user_store import UserStore
from utils.schemas import Priority, TaskCreate, TaskUpdate


def _new_task(**overrides) -> TaskCreate:
    data = dict(title="T", priority=Priority.HIGH, end_date=date(2025, 12, 31))
    data.update(overrides)
    return TaskCreate(**data)


@pytest_asyncio.fixture
async def file_session_factory(tmp_path):
    """
    Sessions on separate connections to a file database, so each one holds
    its own transaction.  BEGIN IMMEDIATE makes a second writer wait for the
    first to finish instead of failing with "database is locked".
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'tasks.db'}")

    @event.listens_for(engine.sync_engine, "connect")
    def _driver_leaves_transactions_alone(dbapi_connection, _record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    await init_models(engine)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


class TestUserStore:
    @pytest.mark.asyncio
    async def test_create_hashes_and_normalizes(self, session):
        store = UserStore(session)
        user = await store.create("Jane", "  Jane@X.com ", "secret1")

        assert user.id is not None
        assert user.email == "jane@x.com"
        assert user.password_hash != "secret1"
        assert store.verify(user, "secret1")
        assert not store.verify(user, "secret2")

    @pytest.mark.asyncio
    async def test_find_by_email_is_case_insensitive(self, session):
        store = UserStore(session)
        user = await store.create("Jane", "jane@x.com", "secret1")
        assert await store.find_by_email("JANE@x.com") is user
        assert await store.find_by_email("nobody@x.com") is None

    @pytest.mark.asyncio
    async def test_duplicate_email_rejected_by_unique_constraint(self, session_factory):
        async with session_factory() as first:
            await UserStore(first).create("Jane", "jane@x.com", "secret1")
            await first.commit()

        async with session_factory() as second:
            with pytest.raises(DuplicateEmail):
                await UserStore(second).create("Other Jane", "JANE@x.com", "secret2")

        async with session_factory() as check:
            count = await check.scalar(select(func.count()).select_from(User))
        assert count == 1

    @pytest.mark.asyncio
    async def test_concurrent_registrations_admit_exactly_one(self, file_session_factory):
        async def attempt(name: str, email: str) -> int:
            async with file_session_factory() as session:
                user = await UserStore(session).create(name, email, "secret1")
                await session.commit()
                return user.id

        results = await asyncio.gather(
            attempt("Jane", "jane@x.com"),
            attempt("Other Jane", "JANE@x.com"),
            return_exceptions=True,
        )

        assert len([r for r in results if isinstance(r, int)]) == 1
        assert len([r for r in results if isinstance(r, DuplicateEmail)]) == 1
        async with file_session_factory() as check:
            assert await check.scalar(select(func.count()).select_from(User)) == 1

    @pytest.mark.asyncio
    async def test_verify_unknown_user_is_false(self):
        assert UserStore.verify(None, "secret1") is False

    @pytest.mark.asyncio
    async def test_update_password_rehashes(self, session):
        store = UserStore(session)
        user = await store.create("Jane", "jane@x.com", "secret1")
        old_hash = user.password_hash

        await store.update_password(user, "secret2")

        assert user.password_hash != old_hash
        assert store.verify(user, "secret2")
        assert not store.verify(user, "secret1")

    @pytest.mark.asyncio
    async def test_delete_cascades_to_tasks(self, session):
        users = UserStore(session)
        user = await users.create("Jane", "jane@x.com", "secret1")
        await TaskStore(session).create(user.id, _new_task())

        await users.delete(user)
        session.expunge_all()

        assert await users.get(user.id) is None
        assert await session.scalar(select(func.count()).select_from(Task)) == 0


class TestTaskStore:
    @pytest.mark.asyncio
    async def test_create_then_get(self, session):
        owner = await UserStore(session).create("Jane", "jane@x.com", "secret1")
        store = TaskStore(session)

        created = await store.create(owner.id, _new_task(description="d"))
        fetched = await store.get(owner.id, created.id)

        assert fetched.title == "T"
        assert fetched.priority == "high"
        assert fetched.end_date == date(2025, 12, 31)
        assert fetched.created_at is not None and fetched.updated_at is not None

    @pytest.mark.asyncio
    async def test_other_owner_sees_not_found(self, session):
        users = UserStore(session)
        alice = await users.create("Alice", "alice@x.com", "secret1")
        bob = await users.create("Bob", "bob@x.com", "secret1")
        store = TaskStore(session)
        task = await store.create(alice.id, _new_task())

        with pytest.raises(NotFoundOrForbidden):
            await store.get(bob.id, task.id)
        with pytest.raises(NotFoundOrForbidden):
            await store.update(bob.id, task.id, TaskUpdate(title="hijacked"))
        with pytest.raises(NotFoundOrForbidden):
            await store.delete(bob.id, task.id)
        assert (await store.get(alice.id, task.id)).title == "T"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("task_id", [0, -1, MAX_ID + 1, 10**20])
    async def test_ids_outside_key_range_are_not_found(self, session, task_id):
        owner = await UserStore(session).create("Jane", "jane@x.com", "secret1")
        store = TaskStore(session)

        with pytest.raises(NotFoundOrForbidden):
            await store.get(owner.id, task_id)
        with pytest.raises(NotFoundOrForbidden):
            await store.delete(owner.id, task_id)

    @pytest.mark.parametrize("field", ["title", "priority", "endDate"])
    def test_update_null_error_points_at_the_field(self, field):
        with pytest.raises(ValidationError) as exc:
            TaskUpdate.model_validate({field: None})
        errors = exc.value.errors()
        assert [e["loc"] for e in errors] == [(field,)]
        assert "cannot be null" in errors[0]["msg"]

    @pytest.mark.asyncio
    async def test_partial_update_touches_only_supplied_fields(self, session):
        owner = await UserStore(session).create("Jane", "jane@x.com", "secret1")
        store = TaskStore(session)
        task = await store.create(owner.id, _new_task())
        before = task.updated_at

        await asyncio.sleep(0.01)
        updated = await store.update(owner.id, task.id, TaskUpdate(description="notes"))

        assert updated.description == "notes"
        assert updated.title == "T"
        assert updated.priority == "high"
        assert updated.end_date == date(2025, 12, 31)
        assert updated.updated_at > before

    @pytest.mark.asyncio
    async def test_update_can_clear_description(self, session):
        owner = await UserStore(session).create("Jane", "jane@x.com", "secret1")
        store = TaskStore(session)
        task = await store.create(owner.id, _new_task(description="notes"))

        updated = await store.update(owner.id, task.id, TaskUpdate(description=None))

        assert updated.description is None

    @pytest.mark.asyncio
    async def test_delete_is_hard(self, session):
        owner = await UserStore(session).create("Jane", "jane@x.com", "secret1")
        store = TaskStore(session)
        task = await store.create(owner.id, _new_task())

        await store.delete(owner.id, task.id)

        with pytest.raises(NotFoundOrForbidden):
            await store.get(owner.id, task.id)
        assert await session.scalar(select(func.count()).select_from(Task)) == 0
