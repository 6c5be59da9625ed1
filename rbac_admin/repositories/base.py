"""
Base repository with common CRUD operations.
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Generic, Iterable, Sequence, Type, TypeVar

from sqlalchemy import ColumnElement, Select, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from rbac_admin.core.exceptions import ConflictError
from rbac_admin.models.base import Base
from rbac_admin.repositories.filters import EntityQuery
from rbac_admin.utils.pagination import PageFetchResult
from rbac_admin.utils.query import ListParams

ModelT = TypeVar("ModelT", bound=Base)


class BaseRepository(Generic[ModelT]):
    """
    Base repository providing common CRUD operations.

    Usage:
        class RoleRepository(BaseRepository[Role]):
            model = Role

        repo = RoleRepository(db)
        role = await repo.get_by_id(role_id)
        page = await repo.fetch_page(build_role_query(params), params)
    """

    model: Type[ModelT]

    def __init__(self, db: AsyncSession):
        self.db = db

    def _base_query(self) -> Select:
        """Base query - override to add default options (e.g., eager loads)."""
        return select(self.model)

    async def get_by_id(self, id: int) -> ModelT | None:
        """Get entity by ID."""
        stmt = self._base_query().where(self.model.id == id)
        result = await self.db.execute(stmt)
        return result.unique().scalar_one_or_none()

    async def get_by_ids(self, ids: Iterable[int]) -> list[ModelT]:
        """Get multiple entities by IDs."""
        stmt = self._base_query().where(self.model.id.in_(list(ids)))
        result = await self.db.execute(stmt)
        return list(result.unique().scalars().all())

    async def get_one(self, **filters) -> ModelT | None:
        """Get single entity by filters."""
        stmt = self._base_query()
        for field, value in filters.items():
            stmt = stmt.where(getattr(self.model, field) == value)
        result = await self.db.execute(stmt)
        return result.unique().scalar_one_or_none()

    # --- Dynamic queries ---

    async def count(self, where: Sequence[ColumnElement[bool]] = ()) -> int:
        """Count entities matching all predicates."""
        stmt = select(func.count()).select_from(self.model).where(*where)
        return await self.db.scalar(stmt) or 0

    async def find_many(
        self,
        where: Sequence[ColumnElement[bool]] = (),
        order_by: Sequence[Any] = (),
        offset: int = 0,
        limit: int | None = None,
    ) -> list[ModelT]:
        """Fetch entities matching all predicates in the given order."""
        stmt = self._base_query().where(*where).order_by(*order_by).offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self.db.execute(stmt)
        return list(result.unique().scalars().all())

    async def fetch_page(self, query: EntityQuery, params: ListParams) -> PageFetchResult[ModelT]:
        """
        Count and fetch one page.

        Both reads share the request's session, so they run one after the
        other.
        """
        total = await self.count(query.where)
        rows = await self.find_many(
            query.where,
            query.order_by,
            offset=params.offset,
            limit=params.limit,
        )
        return PageFetchResult(
            data=rows,
            total=total,
            page=params.page,
            page_size=params.page_size,
        )

    # --- Writes ---

    async def create(self, **data) -> ModelT:
        """Create new entity."""
        entity = self.model(**data)
        self.db.add(entity)
        await self.flush()
        return entity

    async def update(self, entity: ModelT, **data) -> ModelT:
        """Apply field changes to an entity."""
        for field, value in data.items():
            if hasattr(entity, field):
                setattr(entity, field, value)
        await self.flush()
        return entity

    async def update_many(self, where: Sequence[ColumnElement[bool]], values: dict[str, Any]) -> int:
        """Update entities matching all predicates; returns the affected row count."""
        stmt = update(self.model).where(*where).values(**values)
        result = await self.db.execute(stmt)
        return result.rowcount or 0

    async def soft_delete(self, entity: ModelT) -> ModelT:
        """Soft delete entity (sets status to False)."""
        return await self.update(entity, status=False)

    async def flush(self) -> None:
        """Flush pending changes, mapping unique violations to ConflictError."""
        try:
            await self.db.flush()
        except IntegrityError as exc:
            raise ConflictError(
                f"{self.model.__name__} violates a unique constraint",
                details={"reason": str(exc.orig)},
            ) from exc

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncSession]:
        """
        Run a block atomically.

        Opens a SAVEPOINT when the session already has a transaction, so an
        error inside the block undoes only the block's writes.
        """
        if self.db.in_transaction():
            async with self.db.begin_nested():
                yield self.db
        else:
            async with self.db.begin():
                yield self.db
