"""
Task store — CRUD over ``tasks`` scoped to the owning user.

Every lookup filters on the owner id.  A task that does not exist and one
that belongs to another user are reported identically.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from api.errors import NotFoundOrForbidden
from database.models import MAX_ID, Task
from database.task_query import TaskListQuery, TaskPage, list_tasks
from utils.schemas import TaskCreate, TaskUpdate

logger = logging.getLogger(__name__)


class TaskStore:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create(self, owner_id: int, data: TaskCreate) -> Task:
        task = Task(
            user_id=owner_id,
            title=data.title,
            description=data.description,
            priority=data.priority.value,
            end_date=data.end_date,
        )
        self.session.add(task)
        await self.session.flush()
        logger.info("Created task %s for user %s", task.id, owner_id)
        return task

    async def get(self, owner_id: int, task_id: int) -> Task:
        if not 1 <= task_id <= MAX_ID:
            raise NotFoundOrForbidden()
        result = await self.session.execute(
            select(Task).where(Task.id == task_id, Task.user_id == owner_id)
        )
        task = result.scalar_one_or_none()
        if task is None:
            raise NotFoundOrForbidden()
        return task

    async def update(self, owner_id: int, task_id: int, changes: TaskUpdate) -> Task:
        """Apply only the fields the client supplied; last write wins."""
        task = await self.get(owner_id, task_id)
        for name, value in changes.changes().items():
            if name == "priority":
                value = value.value
            setattr(task, name, value)
        task.updated_at = datetime.now(timezone.utc)
        await self.session.flush()
        logger.info("Updated task %s (%s)", task.id, ", ".join(sorted(changes.model_fields_set)) or "no fields")
        return task

    async def delete(self, owner_id: int, task_id: int) -> None:
        task = await self.get(owner_id, task_id)
        await self.session.delete(task)
        await self.session.flush()
        logger.info("Deleted task %s for user %s", task_id, owner_id)

    async def list(self, owner_id: int, query: TaskListQuery | None = None) -> TaskPage:
        return await list_tasks(self.session, owner_id, query)
