"""
Comment service: threaded comments on tasks.

A comment is always posted by the acting user as its own author; nobody can
post on behalf of another identity.  Only the author may edit or delete a
comment.  Reading is open to every authenticated caller.

Comments whose task has been soft-deleted are unreachable: the repository
filters them out and every task-scoped read resolves the task first.
"""
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from taskboard import audit, policy
from taskboard.audit import audited
from taskboard.cache import COMMENTS, CacheManager
from taskboard.exceptions import NotFoundError
from taskboard.models import Comment
from taskboard.pagination import Page, PageRequest, build_page
from taskboard.repositories import CommentRepository, TaskRepository, UserRepository
from taskboard.schemas import CommentCreate, CommentUpdate
from taskboard.security import ActingUser

logger = logging.getLogger(__name__)


def _comment_to_dict(comment: Comment) -> dict:
    return {
        "id": comment.id,
        "content": comment.content,
        "task_id": comment.task_id,
        "author_id": comment.author_id,
        "created_at": comment.created_at.isoformat() if comment.created_at else None,
        "updated_at": comment.updated_at.isoformat() if comment.updated_at else None,
        "created_by": comment.created_by,
        "modified_by": comment.modified_by,
    }


async def _require_comment(db: AsyncSession, comment_id: int) -> Comment:
    comment = await CommentRepository(db).get(comment_id)
    if comment is None:
        raise NotFoundError("Comment not found")
    return comment


async def _require_task(db: AsyncSession, task_id: int) -> None:
    if await TaskRepository(db).get(task_id) is None:
        raise NotFoundError("Task not found")


async def _require_user(db: AsyncSession, user_id: int, label: str = "User") -> None:
    if await UserRepository(db).get(user_id) is None:
        raise NotFoundError(f"{label} not found")


async def _paged(
    db: AsyncSession,
    cache: CacheManager,
    operation: str,
    args: tuple,
    request: PageRequest,
    *criteria,
) -> Page:
    async def load() -> dict:
        rows, total = await CommentRepository(db).find_page(request, *criteria)
        return build_page(rows, total, request, _comment_to_dict).model_dump(mode="json")

    data = await cache.get_or_load(COMMENTS, operation, (*args, request.page, request.size), load)
    return Page(**data)


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------

@audited("comment.create")
async def create_comment(
    db: AsyncSession, cache: CacheManager, actor: ActingUser, data: CommentCreate
) -> dict:
    """
    Add a comment to a task.

    The author check runs before anything is resolved: a foreign
    ``author_id`` is rejected whether or not the task exists.
    """
    policy.enforce(policy.can_create_comment(actor, data.author_id))

    await _require_user(db, data.author_id)
    await _require_task(db, data.task_id)

    comment = Comment(
        content=data.content,
        task_id=data.task_id,
        author_id=data.author_id,
        created_by=actor.id,
        modified_by=actor.id,
    )
    await CommentRepository(db).save(comment, before_commit=lambda: cache.invalidate(COMMENTS))
    await cache.invalidate(COMMENTS)

    audit.record("comment.create", comment.id, actor)
    return _comment_to_dict(comment)


@audited("comment.update")
async def update_comment(
    db: AsyncSession, cache: CacheManager, actor: ActingUser, data: CommentUpdate
) -> dict:
    """Replace the content of a comment.  Task and author never change."""
    comment = await _require_comment(db, data.id)
    policy.enforce(policy.can_modify_comment(actor, comment, "update"))

    comment.content = data.content
    comment.modified_by = actor.id

    await CommentRepository(db).save(comment, before_commit=lambda: cache.invalidate(COMMENTS))
    await cache.invalidate(COMMENTS)

    audit.record("comment.update", comment.id, actor)
    return _comment_to_dict(comment)


@audited("comment.delete")
async def delete_comment(
    db: AsyncSession, cache: CacheManager, actor: ActingUser, comment_id: int
) -> None:
    comment = await _require_comment(db, comment_id)
    policy.enforce(policy.can_modify_comment(actor, comment, "delete"))

    comment.is_deleted = True
    comment.modified_by = actor.id

    await CommentRepository(db).save(comment, before_commit=lambda: cache.invalidate(COMMENTS))
    await cache.invalidate(COMMENTS)

    audit.record("comment.delete", comment.id, actor)


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

@audited("comment.get")
async def get_comment(
    db: AsyncSession, cache: CacheManager, actor: ActingUser, comment_id: int
) -> dict:
    policy.enforce(policy.can_view_comments(actor))

    async def load() -> dict:
        return _comment_to_dict(await _require_comment(db, comment_id))

    data = await cache.get_or_load(COMMENTS, "get", (comment_id,), load)
    logger.info("Comment retrieved successfully with id %s", comment_id)
    return data


@audited("comment.list")
async def get_comments(
    db: AsyncSession, cache: CacheManager, actor: ActingUser, page: int = 1, size: int = 20
) -> Page:
    request = PageRequest(page, size)
    policy.enforce(policy.can_view_comments(actor))

    result = await _paged(db, cache, "all", (), request)
    logger.info("All comments retrieved successfully for page %s and size %s", page, size)
    return result


@audited("comment.list_by_task")
async def get_comments_by_task(
    db: AsyncSession,
    cache: CacheManager,
    actor: ActingUser,
    task_id: int,
    page: int = 1,
    size: int = 20,
) -> Page:
    request = PageRequest(page, size)
    await _require_task(db, task_id)
    policy.enforce(policy.can_view_comments(actor))

    result = await _paged(db, cache, "by_task", (task_id,), request, Comment.task_id == task_id)
    logger.info("Comments retrieved for task %s with page %s and size %s", task_id, page, size)
    return result


@audited("comment.list_by_author")
async def get_comments_by_author(
    db: AsyncSession,
    cache: CacheManager,
    actor: ActingUser,
    author_id: int,
    page: int = 1,
    size: int = 20,
) -> Page:
    request = PageRequest(page, size)
    await _require_user(db, author_id, "Author")
    policy.enforce(policy.can_view_comments(actor))

    result = await _paged(
        db, cache, "by_author", (author_id,), request, Comment.author_id == author_id
    )
    logger.info("Comments retrieved for author %s with page %s and size %s", author_id, page, size)
    return result


@audited("comment.list_by_task_and_author")
async def get_comments_by_task_and_author(
    db: AsyncSession,
    cache: CacheManager,
    actor: ActingUser,
    task_id: int,
    author_id: int,
    page: int = 1,
    size: int = 20,
) -> Page:
    request = PageRequest(page, size)
    await _require_task(db, task_id)
    await _require_user(db, author_id, "Author")
    policy.enforce(policy.can_view_comments(actor))

    result = await _paged(
        db,
        cache,
        "by_task_and_author",
        (task_id, author_id),
        request,
        Comment.task_id == task_id,
        Comment.author_id == author_id,
    )
    logger.info(
        "Comments retrieved for task %s and author %s with page %s and size %s",
        task_id,
        author_id,
        page,
        size,
    )
    return result
