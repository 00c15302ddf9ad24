from fastapi import Depends, HTTPException, Query, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.cache import CacheManager, cache
from taskboard.config import settings
from taskboard.database import get_db
from taskboard.repositories import UserRepository
from taskboard.security import ActingUser, decode_user_id

bearer_scheme = HTTPBearer()


class PaginationParams:
    """
    Reusable FastAPI dependency that parses pagination query parameters.

    Usage in a router::

        @router.get("/tasks")
        async def list_tasks(pagination: PaginationParams = Depends()):
            ...

    Attributes
    ----------
    page:
        1-based page number (minimum 1).
    size:
        Number of items per page, clamped to ``settings.MAX_PAGE_SIZE``
        regardless of the value supplied by the caller.

    Ordering is not configurable: every listing is newest first.
    """

    def __init__(
        self,
        page: int = Query(
            1,
            ge=1,
            description="Page number (1-based).",
        ),
        size: int = Query(
            settings.DEFAULT_PAGE_SIZE,
            ge=1,
            description=f"Number of items returned per page (max {settings.MAX_PAGE_SIZE}).",
        ),
    ) -> None:
        self.page = page
        self.size = min(size, settings.MAX_PAGE_SIZE)


def get_cache() -> CacheManager:
    """Return the application cache.  Tests override this with a fresh instance."""
    return cache


async def get_acting_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> ActingUser:
    """
    Resolve the bearer token into an ``ActingUser``.

    Missing, deleted, disabled and locked accounts are rejected with 401
    before any service is reached.
    """
    unauthorized = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    user_id = decode_user_id(credentials.credentials)
    if user_id is None:
        raise unauthorized

    user = await UserRepository(db).get(user_id)
    if user is None or not user.enabled or user.account_locked:
        raise unauthorized

    return ActingUser.from_user(user)
