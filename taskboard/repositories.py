"""
Entity store.

One repository per entity kind, bound to the request's ``AsyncSession``.
Every query excludes soft-deleted rows.  SQLAlchemy failures are re-raised
as ``InternalError`` so the service layer only ever deals with the failure
taxonomy in ``taskboard.exceptions``.
"""
from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Generic, Optional, Sequence, TypeVar

from sqlalchemy import Select, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.database import Base
from taskboard.exceptions import InternalError, ServiceError
from taskboard.models import Comment, Task, User
from taskboard.pagination import PageRequest, order_newest_first

logger = logging.getLogger(__name__)

ModelType = TypeVar("ModelType", bound=Base)


class Repository(Generic[ModelType]):
    """Generic soft-delete-aware repository."""

    model: type[ModelType]

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    def base_query(self) -> Select:
        """Rows visible to normal reads."""
        return select(self.model).where(self.model.is_deleted.is_(False))

    async def _execute(self, stmt):
        try:
            return await self.db.execute(stmt)
        except SQLAlchemyError as exc:
            logger.error("Query on %s failed: %s", self.model.__tablename__, exc, exc_info=True)
            raise InternalError(f"Failed to query {self.model.__tablename__}") from exc

    async def get(self, entity_id: int) -> ModelType | None:
        """Return the entity, or None when it is missing or soft-deleted."""
        result = await self._execute(self.base_query().where(self.model.id == entity_id))
        return result.scalars().first()

    async def find_page(
        self, request: PageRequest, *criteria: Any
    ) -> tuple[Sequence[ModelType], int]:
        """
        Return one page of visible rows matching *criteria*, newest first,
        together with the total number of matching rows.
        """
        filtered = self.base_query().where(*criteria)

        count_q = select(func.count()).select_from(filtered.subquery())
        total: int = (await self._execute(count_q)).scalar_one()

        rows_q = (
            filtered.order_by(*order_newest_first(self.model))
            .offset(request.offset)
            .limit(request.size)
        )
        rows = (await self._execute(rows_q)).scalars().all()
        return rows, total

    async def save(
        self,
        entity: ModelType,
        before_commit: Optional[Callable[[], Awaitable[Any]]] = None,
    ) -> ModelType:
        """
        Persist *entity* and commit the transaction.

        *before_commit* runs after the flush and before the commit.  If it
        raises, the transaction is rolled back and the error propagates.
        """
        try:
            self.db.add(entity)
            await self.db.flush()
            if before_commit is not None:
                await before_commit()
            await self.db.commit()
        except ServiceError:
            await self.db.rollback()
            raise
        except SQLAlchemyError as exc:
            await self.db.rollback()
            logger.error("Saving %s failed: %s", self.model.__tablename__, exc, exc_info=True)
            raise InternalError(f"Failed to save {self.model.__tablename__}") from exc
        return entity

    async def count(self) -> int:
        q = select(func.count()).select_from(self.base_query().subquery())
        return (await self._execute(q)).scalar_one()


class UserRepository(Repository[User]):
    model = User


class TaskRepository(Repository[Task]):
    model = Task


class CommentRepository(Repository[Comment]):
    model = Comment

    def base_query(self) -> Select:
        # Comments of a soft-deleted task are unreachable.
        return (
            select(Comment)
            .join(Task, Comment.task_id == Task.id)
            .where(Comment.is_deleted.is_(False), Task.is_deleted.is_(False))
        )
