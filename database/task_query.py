"""
Paginated, owner-scoped task listing.

Priority is ordered by urgency rank rather than alphabetically:
ascending gives high → medium → low, descending reverses it.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import List

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from database.models import Task
from utils.schemas import Priority, SortField, SortOrder

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100
# keeps (page - 1) * limit inside a signed 64-bit OFFSET
MAX_PAGE = (2**63 - 1) // MAX_LIMIT

PRIORITY_RANK = {
    Priority.HIGH.value: 1,
    Priority.MEDIUM.value: 2,
    Priority.LOW.value: 3,
}
# Values outside the enum sort after "low".
UNKNOWN_PRIORITY_RANK = len(PRIORITY_RANK) + 1

_SORT_COLUMNS = {
    SortField.END_DATE.value: Task.end_date,
    SortField.CREATED_AT.value: Task.created_at,
}


def priority_rank():
    """SQL ``CASE`` expression mapping ``Task.priority`` to its rank."""
    return case(PRIORITY_RANK, value=Task.priority, else_=UNKNOWN_PRIORITY_RANK)


@dataclass
class TaskListQuery:
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT
    sort_by: str = SortField.END_DATE.value
    order: str = SortOrder.ASC.value

    def normalized(self) -> "TaskListQuery":
        sort_by = getattr(self.sort_by, "value", self.sort_by)
        order = str(getattr(self.order, "value", self.order)).lower()
        if sort_by not in (f.value for f in SortField):
            sort_by = SortField.END_DATE.value
        if order not in (o.value for o in SortOrder):
            order = SortOrder.ASC.value
        return TaskListQuery(
            page=min(max(self.page, 1), MAX_PAGE),
            limit=min(max(self.limit, 1), MAX_LIMIT),
            sort_by=sort_by,
            order=order,
        )

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass
class TaskPage:
    items: List[Task] = field(default_factory=list)
    total: int = 0
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_prev(self) -> bool:
        return self.page > 1


def _order_by(query: TaskListQuery):
    if query.sort_by == SortField.PRIORITY.value:
        key = priority_rank()
    else:
        key = _SORT_COLUMNS[query.sort_by]
    key = key.desc() if query.order == SortOrder.DESC.value else key.asc()
    return key, Task.id.asc()


async def list_tasks(
    session: AsyncSession,
    owner_id: int,
    query: TaskListQuery | None = None,
) -> TaskPage:
    """Return one page of ``owner_id``'s tasks plus the total match count."""
    query = (query or TaskListQuery()).normalized()
    owned = Task.user_id == owner_id

    total = await session.scalar(select(func.count()).select_from(Task).where(owned))

    result = await session.execute(
        select(Task)
        .where(owned)
        .order_by(*_order_by(query))
        .limit(query.limit)
        .offset(query.offset)
    )
    return TaskPage(
        items=list(result.scalars().all()),
        total=total or 0,
        page=query.page,
        limit=query.limit,
    )
