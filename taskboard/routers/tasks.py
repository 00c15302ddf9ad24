from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.cache import CacheManager
from taskboard.database import get_db
from taskboard.dependencies import PaginationParams, get_acting_user, get_cache
from taskboard.models import TaskPriority, TaskStatus
from taskboard.schemas import MessageResponse, TaskCreate, TaskPage, TaskResponse, TaskUpdate
from taskboard.security import ActingUser
from taskboard.services import task_service

router = APIRouter(prefix="/api/v1/tasks", tags=["tasks"])


@router.post("", status_code=201, response_model=MessageResponse)
async def create_task(
    data: TaskCreate,
    db: AsyncSession = Depends(get_db),
    cache: CacheManager = Depends(get_cache),
    actor: ActingUser = Depends(get_acting_user),
):
    task = await task_service.create_task(db, cache, actor, data)
    return MessageResponse(message="Task created successfully", data=task)


@router.get("", response_model=TaskPage)
async def list_tasks(
    pagination: PaginationParams = Depends(),
    db: AsyncSession = Depends(get_db),
    cache: CacheManager = Depends(get_cache),
    actor: ActingUser = Depends(get_acting_user),
):
    return await task_service.get_tasks(db, cache, actor, pagination.page, pagination.size)


@router.get("/by-priority/{priority}", response_model=TaskPage)
async def list_tasks_by_priority(
    priority: TaskPriority,
    pagination: PaginationParams = Depends(),
    db: AsyncSession = Depends(get_db),
    cache: CacheManager = Depends(get_cache),
    actor: ActingUser = Depends(get_acting_user),
):
    return await task_service.get_tasks_by_priority(
        db, cache, actor, priority, pagination.page, pagination.size
    )


@router.get("/by-status/{status}", response_model=TaskPage)
async def list_tasks_by_status(
    status: TaskStatus,
    pagination: PaginationParams = Depends(),
    db: AsyncSession = Depends(get_db),
    cache: CacheManager = Depends(get_cache),
    actor: ActingUser = Depends(get_acting_user),
):
    return await task_service.get_tasks_by_status(
        db, cache, actor, status, pagination.page, pagination.size
    )


@router.get("/by-assignee/{assignee_id}", response_model=TaskPage)
async def list_tasks_by_assignee(
    assignee_id: int,
    pagination: PaginationParams = Depends(),
    db: AsyncSession = Depends(get_db),
    cache: CacheManager = Depends(get_cache),
    actor: ActingUser = Depends(get_acting_user),
):
    return await task_service.get_tasks_by_assignee(
        db, cache, actor, assignee_id, pagination.page, pagination.size
    )


@router.get("/by-author/{author_id}", response_model=TaskPage)
async def list_tasks_by_author(
    author_id: int,
    pagination: PaginationParams = Depends(),
    db: AsyncSession = Depends(get_db),
    cache: CacheManager = Depends(get_cache),
    actor: ActingUser = Depends(get_acting_user),
):
    return await task_service.get_tasks_by_author(
        db, cache, actor, author_id, pagination.page, pagination.size
    )


@router.get("/{task_id}", response_model=TaskResponse)
async def get_task(
    task_id: int,
    db: AsyncSession = Depends(get_db),
    cache: CacheManager = Depends(get_cache),
    actor: ActingUser = Depends(get_acting_user),
):
    return await task_service.get_task(db, cache, actor, task_id)


@router.put("", response_model=MessageResponse)
async def update_task(
    data: TaskUpdate,
    db: AsyncSession = Depends(get_db),
    cache: CacheManager = Depends(get_cache),
    actor: ActingUser = Depends(get_acting_user),
):
    task = await task_service.update_task(db, cache, actor, data)
    return MessageResponse(message="Task updated successfully", data=task)


@router.delete("/{task_id}", response_model=MessageResponse)
async def delete_task(
    task_id: int,
    db: AsyncSession = Depends(get_db),
    cache: CacheManager = Depends(get_cache),
    actor: ActingUser = Depends(get_acting_user),
):
    await task_service.delete_task(db, cache, actor, task_id)
    return MessageResponse(message="Task deleted successfully")
