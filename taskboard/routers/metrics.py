from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.cache import CacheManager
from taskboard.database import get_db
from taskboard.dependencies import get_acting_user, get_cache
from taskboard.repositories import CommentRepository, TaskRepository, UserRepository
from taskboard.schemas import MetricsResponse
from taskboard.security import ActingUser

router = APIRouter(prefix="/api/v1/metrics", tags=["metrics"])


@router.get("", response_model=MetricsResponse)
async def get_metrics(
    db: AsyncSession = Depends(get_db),
    cache: CacheManager = Depends(get_cache),
    actor: ActingUser = Depends(get_acting_user),
):
    # Counts cover live rows only.
    total_tasks = await TaskRepository(db).count()
    total_comments = await CommentRepository(db).count()
    total_users = await UserRepository(db).count()

    avg_comments = total_comments / total_tasks if total_tasks > 0 else 0

    return MetricsResponse(
        total_tasks=total_tasks,
        total_comments=total_comments,
        total_users=total_users,
        avg_comments_per_task=round(avg_comments, 2),
        cache_info=cache.stats,
    )
