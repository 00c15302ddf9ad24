"""
Task service: business logic for the Task aggregate.

Design notes
------------
- A task has exactly one author (its creator and only mutator) and one
  assignee (a read-only viewer).  The ownership rules live in
  ``taskboard.policy``; this module resolves entities, applies those rules
  and talks to the store and the cache.
- Reads go through ``CacheManager.get_or_load``; cache keys carry every
  argument, including page and size.
- Writes evict the ``tasks`` namespace inside the transaction, before the
  commit, and again after it.  A failed eviction rolls the write back, and
  a read that starts after the call returns never sees the pre-write
  snapshot.
"""
import logging

from sqlalchemy import or_
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard import audit, policy
from taskboard.audit import audited
from taskboard.cache import COMMENTS, TASKS, CacheManager
from taskboard.config import settings
from taskboard.exceptions import NotFoundError
from taskboard.models import Task, TaskPriority, TaskStatus
from taskboard.pagination import Page, PageRequest, build_page
from taskboard.repositories import TaskRepository, UserRepository
from taskboard.schemas import TaskCreate, TaskUpdate
from taskboard.security import ActingUser

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Serialisation helpers
# ---------------------------------------------------------------------------

def _task_to_dict(task: Task) -> dict:
    return {
        "id": task.id,
        "title": task.title,
        "description": task.description,
        "status": task.status.value,
        "priority": task.priority.value,
        "author_id": task.author_id,
        "assignee_id": task.assignee_id,
        "created_at": task.created_at.isoformat() if task.created_at else None,
        "updated_at": task.updated_at.isoformat() if task.updated_at else None,
        "created_by": task.created_by,
        "modified_by": task.modified_by,
    }


# ---------------------------------------------------------------------------
# Resolution helpers
# ---------------------------------------------------------------------------

async def _require_task(db: AsyncSession, task_id: int) -> Task:
    task = await TaskRepository(db).get(task_id)
    if task is None:
        raise NotFoundError("Task not found")
    return task


async def _require_user(db: AsyncSession, user_id: int, label: str):
    user = await UserRepository(db).get(user_id)
    if user is None:
        raise NotFoundError(f"{label} not found")
    return user


def _browse_scope(actor: ActingUser) -> tuple[tuple, int | None]:
    """
    Extra criteria and cache discriminator for the unfiltered listings
    (all / by priority / by status).
    """
    if settings.TASK_BROWSE_SCOPE == "involved":
        return (or_(Task.author_id == actor.id, Task.assignee_id == actor.id),), actor.id
    return (), None


async def _paged(
    db: AsyncSession,
    cache: CacheManager,
    operation: str,
    args: tuple,
    request: PageRequest,
    *criteria,
) -> Page:
    async def load() -> dict:
        rows, total = await TaskRepository(db).find_page(request, *criteria)
        return build_page(rows, total, request, _task_to_dict).model_dump(mode="json")

    data = await cache.get_or_load(TASKS, operation, (*args, request.page, request.size), load)
    return Page(**data)


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------

@audited("task.create")
async def create_task(
    db: AsyncSession, cache: CacheManager, actor: ActingUser, data: TaskCreate
) -> dict:
    """
    Create a task authored by *actor*.

    The author/assignee identity rules need no stored data and are checked
    first, so an invalid request never touches the store or the cache.
    """
    policy.enforce(policy.can_create_task(actor, data.author_id, data.assignee_id))

    await _require_user(db, data.assignee_id, "Assignee")
    await _require_user(db, data.author_id, "Author")

    task = Task(
        title=data.title,
        description=data.description,
        status=data.status,
        priority=data.priority,
        author_id=data.author_id,
        assignee_id=data.assignee_id,
        created_by=actor.id,
        modified_by=actor.id,
    )
    await TaskRepository(db).save(task, before_commit=lambda: cache.invalidate(TASKS))
    await cache.invalidate(TASKS)

    audit.record("task.create", task.id, actor)
    return _task_to_dict(task)


@audited("task.update")
async def update_task(
    db: AsyncSession, cache: CacheManager, actor: ActingUser, data: TaskUpdate
) -> dict:
    """
    Replace title, description, status and priority of a task.

    Author and assignee never change; ids carried by the request are ignored.
    """
    task = await _require_task(db, data.id)
    policy.enforce(policy.can_modify_task(actor, task, "update"))

    task.title = data.title
    task.description = data.description
    task.status = data.status
    task.priority = data.priority
    task.modified_by = actor.id

    await TaskRepository(db).save(task, before_commit=lambda: cache.invalidate(TASKS))
    await cache.invalidate(TASKS)

    audit.record("task.update", task.id, actor)
    return _task_to_dict(task)


@audited("task.delete")
async def delete_task(
    db: AsyncSession, cache: CacheManager, actor: ActingUser, task_id: int
) -> None:
    """Soft-delete a task.  Its comments become unreachable along with it."""
    task = await _require_task(db, task_id)
    policy.enforce(policy.can_modify_task(actor, task, "delete"))

    task.is_deleted = True
    task.modified_by = actor.id

    # Comment reads filter on the parent task, so cached comment pages are stale too.
    await TaskRepository(db).save(task, before_commit=lambda: cache.invalidate(TASKS, COMMENTS))
    await cache.invalidate(TASKS, COMMENTS)

    audit.record("task.delete", task.id, actor)


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

@audited("task.get")
async def get_task(
    db: AsyncSession, cache: CacheManager, actor: ActingUser, task_id: int
) -> dict:
    """Return a task visible to *actor* (its author or assignee)."""

    async def load() -> dict:
        task = await _require_task(db, task_id)
        policy.enforce(policy.can_view_task(actor, task))
        return _task_to_dict(task)

    data = await cache.get_or_load(TASKS, "get", (task_id,), load)
    # The cached entry was stored for whichever caller loaded it first.
    policy.enforce(policy.can_view_task(actor, data))
    logger.info("Task with id: %s retrieved", task_id)
    return data


@audited("task.list")
async def get_tasks(
    db: AsyncSession, cache: CacheManager, actor: ActingUser, page: int = 1, size: int = 20
) -> Page:
    request = PageRequest(page, size)
    policy.enforce(policy.can_browse_tasks(actor))
    criteria, scope = _browse_scope(actor)

    result = await _paged(db, cache, "all", (scope,), request, *criteria)
    logger.info("All tasks retrieved with page number: %s and size: %s", page, size)
    return result


@audited("task.list_by_priority")
async def get_tasks_by_priority(
    db: AsyncSession,
    cache: CacheManager,
    actor: ActingUser,
    priority: TaskPriority,
    page: int = 1,
    size: int = 20,
) -> Page:
    request = PageRequest(page, size)
    policy.enforce(policy.can_browse_tasks(actor))
    criteria, scope = _browse_scope(actor)

    result = await _paged(
        db, cache, "by_priority", (priority, scope), request, Task.priority == priority, *criteria
    )
    logger.info("Tasks with priority %s retrieved (page %s, size %s)", priority.value, page, size)
    return result


@audited("task.list_by_status")
async def get_tasks_by_status(
    db: AsyncSession,
    cache: CacheManager,
    actor: ActingUser,
    status: TaskStatus,
    page: int = 1,
    size: int = 20,
) -> Page:
    request = PageRequest(page, size)
    policy.enforce(policy.can_browse_tasks(actor))
    criteria, scope = _browse_scope(actor)

    result = await _paged(
        db, cache, "by_status", (status, scope), request, Task.status == status, *criteria
    )
    logger.info("Tasks with status %s retrieved (page %s, size %s)", status.value, page, size)
    return result


@audited("task.list_by_assignee")
async def get_tasks_by_assignee(
    db: AsyncSession,
    cache: CacheManager,
    actor: ActingUser,
    assignee_id: int,
    page: int = 1,
    size: int = 20,
) -> Page:
    """Return the tasks assigned to *assignee_id*; only that user may ask."""
    request = PageRequest(page, size)
    await _require_user(db, assignee_id, "Assignee")
    policy.enforce(policy.can_list_tasks_for(actor, assignee_id))

    result = await _paged(
        db, cache, "by_assignee", (assignee_id,), request, Task.assignee_id == assignee_id
    )
    logger.info("All tasks for assignee with id: %s retrieved", assignee_id)
    return result


@audited("task.list_by_author")
async def get_tasks_by_author(
    db: AsyncSession,
    cache: CacheManager,
    actor: ActingUser,
    author_id: int,
    page: int = 1,
    size: int = 20,
) -> Page:
    """Return the tasks authored by *author_id*; only that user may ask."""
    request = PageRequest(page, size)
    await _require_user(db, author_id, "Author")
    policy.enforce(policy.can_list_tasks_for(actor, author_id))

    result = await _paged(
        db, cache, "by_author", (author_id,), request, Task.author_id == author_id
    )
    logger.info("All tasks for author with id: %s retrieved", author_id)
    return result
