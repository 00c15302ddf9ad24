from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.cache import CacheManager
from taskboard.database import get_db
from taskboard.dependencies import PaginationParams, get_acting_user, get_cache
from taskboard.schemas import (
    CommentCreate,
    CommentPage,
    CommentResponse,
    CommentUpdate,
    MessageResponse,
)
from taskboard.security import ActingUser
from taskboard.services import comment_service

router = APIRouter(prefix="/api/v1/comments", tags=["comments"])


@router.post("", status_code=201, response_model=MessageResponse)
async def create_comment(
    data: CommentCreate,
    db: AsyncSession = Depends(get_db),
    cache: CacheManager = Depends(get_cache),
    actor: ActingUser = Depends(get_acting_user),
):
    comment = await comment_service.create_comment(db, cache, actor, data)
    return MessageResponse(message="Comment added successfully", data=comment)


@router.get("", response_model=CommentPage)
async def list_comments(
    pagination: PaginationParams = Depends(),
    db: AsyncSession = Depends(get_db),
    cache: CacheManager = Depends(get_cache),
    actor: ActingUser = Depends(get_acting_user),
):
    return await comment_service.get_comments(db, cache, actor, pagination.page, pagination.size)


@router.get("/by-task/{task_id}", response_model=CommentPage)
async def list_comments_by_task(
    task_id: int,
    pagination: PaginationParams = Depends(),
    db: AsyncSession = Depends(get_db),
    cache: CacheManager = Depends(get_cache),
    actor: ActingUser = Depends(get_acting_user),
):
    return await comment_service.get_comments_by_task(
        db, cache, actor, task_id, pagination.page, pagination.size
    )


@router.get("/by-author/{author_id}", response_model=CommentPage)
async def list_comments_by_author(
    author_id: int,
    pagination: PaginationParams = Depends(),
    db: AsyncSession = Depends(get_db),
    cache: CacheManager = Depends(get_cache),
    actor: ActingUser = Depends(get_acting_user),
):
    return await comment_service.get_comments_by_author(
        db, cache, actor, author_id, pagination.page, pagination.size
    )


@router.get("/by-task/{task_id}/author/{author_id}", response_model=CommentPage)
async def list_comments_by_task_and_author(
    task_id: int,
    author_id: int,
    pagination: PaginationParams = Depends(),
    db: AsyncSession = Depends(get_db),
    cache: CacheManager = Depends(get_cache),
    actor: ActingUser = Depends(get_acting_user),
):
    return await comment_service.get_comments_by_task_and_author(
        db, cache, actor, task_id, author_id, pagination.page, pagination.size
    )


@router.get("/{comment_id}", response_model=CommentResponse)
async def get_comment(
    comment_id: int,
    db: AsyncSession = Depends(get_db),
    cache: CacheManager = Depends(get_cache),
    actor: ActingUser = Depends(get_acting_user),
):
    return await comment_service.get_comment(db, cache, actor, comment_id)


@router.put("", response_model=MessageResponse)
async def update_comment(
    data: CommentUpdate,
    db: AsyncSession = Depends(get_db),
    cache: CacheManager = Depends(get_cache),
    actor: ActingUser = Depends(get_acting_user),
):
    comment = await comment_service.update_comment(db, cache, actor, data)
    return MessageResponse(message="Comment updated successfully", data=comment)


@router.delete("/{comment_id}", response_model=MessageResponse)
async def delete_comment(
    comment_id: int,
    db: AsyncSession = Depends(get_db),
    cache: CacheManager = Depends(get_cache),
    actor: ActingUser = Depends(get_acting_user),
):
    await comment_service.delete_comment(db, cache, actor, comment_id)
    return MessageResponse(message="Comment deleted successfully")
