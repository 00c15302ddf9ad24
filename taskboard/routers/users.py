from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.cache import CacheManager
from taskboard.database import get_db
from taskboard.dependencies import PaginationParams, get_acting_user, get_cache
from taskboard.schemas import MessageResponse, PasswordUpdate, UserPage, UserResponse, UserUpdate
from taskboard.security import ActingUser
from taskboard.services import user_service

router = APIRouter(prefix="/api/v1/users", tags=["users"])


@router.get("", response_model=UserPage)
async def list_users(
    pagination: PaginationParams = Depends(),
    db: AsyncSession = Depends(get_db),
    cache: CacheManager = Depends(get_cache),
    actor: ActingUser = Depends(get_acting_user),
):
    return await user_service.get_users(db, cache, actor, pagination.page, pagination.size)


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    cache: CacheManager = Depends(get_cache),
    actor: ActingUser = Depends(get_acting_user),
):
    return await user_service.get_user(db, cache, actor, user_id)


@router.put("", response_model=MessageResponse)
async def update_user(
    data: UserUpdate,
    db: AsyncSession = Depends(get_db),
    cache: CacheManager = Depends(get_cache),
    actor: ActingUser = Depends(get_acting_user),
):
    user = await user_service.update_user(db, cache, actor, data)
    return MessageResponse(message="User updated successfully", data=user)


@router.put("/password", response_model=MessageResponse)
async def update_password(
    data: PasswordUpdate,
    db: AsyncSession = Depends(get_db),
    cache: CacheManager = Depends(get_cache),
    actor: ActingUser = Depends(get_acting_user),
):
    await user_service.update_password(db, cache, actor, data)
    return MessageResponse(message="Password updated successfully")


@router.delete("/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    cache: CacheManager = Depends(get_cache),
    actor: ActingUser = Depends(get_acting_user),
):
    await user_service.delete_user(db, cache, actor, user_id)
    return MessageResponse(message="User deleted successfully")
