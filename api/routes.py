"""
Task REST routes.  Every endpoint requires an authenticated user and only
ever touches that user's tasks.

Route prefix: /api/tasks
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from auth.dependencies import db_session, get_current_user
from database.task_query import DEFAULT_LIMIT, DEFAULT_PAGE, MAX_LIMIT, MAX_PAGE, TaskListQuery
from database.task_store import TaskStore
from utils.schemas import (
    CurrentUser,
    MessageResponse,
    Pagination,
    SortField,
    SortOrder,
    TaskCreate,
    TaskDetailResponse,
    TaskListResponse,
    TaskOut,
    TaskResponse,
    TaskUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["tasks"])


@router.get("", response_model=TaskListResponse)
async def list_tasks(
    page: int = Query(DEFAULT_PAGE, ge=1, le=MAX_PAGE),
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=MAX_LIMIT),
    sort_by: SortField = Query(SortField.END_DATE, alias="sortBy"),
    order: SortOrder = Query(SortOrder.ASC),
    session: AsyncSession = Depends(db_session),
    current_user: CurrentUser = Depends(get_current_user),
) -> TaskListResponse:
    """Paginated, sorted listing of the caller's tasks."""
    result = await TaskStore(session).list(
        current_user.id,
        TaskListQuery(page=page, limit=limit, sort_by=sort_by.value, order=order.value),
    )
    return TaskListResponse(
        count=len(result.items),
        pagination=Pagination(
            current_page=result.page,
            total_pages=result.total_pages,
            total_tasks=result.total,
            limit=result.limit,
            has_next=result.has_next,
            has_prev=result.has_prev,
        ),
        tasks=[TaskOut.model_validate(t) for t in result.items],
    )


@router.get("/{task_id}", response_model=TaskDetailResponse)
async def get_task(
    task_id: int,
    session: AsyncSession = Depends(db_session),
    current_user: CurrentUser = Depends(get_current_user),
) -> TaskDetailResponse:
    task = await TaskStore(session).get(current_user.id, task_id)
    return TaskDetailResponse(task=TaskOut.model_validate(task))


@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
async def create_task(
    body: TaskCreate,
    session: AsyncSession = Depends(db_session),
    current_user: CurrentUser = Depends(get_current_user),
) -> TaskResponse:
    task = await TaskStore(session).create(current_user.id, body)
    return TaskResponse(message="Task created successfully", task=TaskOut.model_validate(task))


@router.put("/{task_id}", response_model=TaskResponse)
async def update_task(
    task_id: int,
    body: TaskUpdate,
    session: AsyncSession = Depends(db_session),
    current_user: CurrentUser = Depends(get_current_user),
) -> TaskResponse:
    """Partial update — fields left out of the body keep their values."""
    task = await TaskStore(session).update(current_user.id, task_id, body)
    return TaskResponse(message="Task updated successfully", task=TaskOut.model_validate(task))


@router.delete("/{task_id}", response_model=MessageResponse)
async def delete_task(
    task_id: int,
    session: AsyncSession = Depends(db_session),
    current_user: CurrentUser = Depends(get_current_user),
) -> MessageResponse:
    await TaskStore(session).delete(current_user.id, task_id)
    return MessageResponse(message="Task deleted successfully")
