"""
SQLAlchemy repository bound to one ORM model.

Lifecycle services receive a repository instead of reaching for the
session or the model class themselves.  The repository is also the single
place where a ``QueryPlan`` becomes SQL, so the typed filter structure is
the only way list queries get built.
"""
import logging
from typing import Any, Generic, Sequence, TypeVar

from sqlalchemy import Integer, String, asc, cast, desc, false, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from content_api.errors import Conflict
from content_api.query_planner import ListFilter, PageResult, QueryPlan

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT")


def _like_escape(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class SqlRepository(Generic[ModelT]):
    def __init__(self, db: AsyncSession, model: type[ModelT]) -> None:
        self.db = db
        self.model = model

    # ------------------------------------------------------------------
    # Single-record access
    # ------------------------------------------------------------------

    async def get(self, entity_id: int) -> ModelT | None:
        return await self.db.get(self.model, entity_id)

    async def get_by(self, **criteria: Any) -> ModelT | None:
        q = select(self.model).filter_by(**criteria).limit(1)
        result = await self.db.execute(q)
        return result.scalars().first()

    async def get_many(self, ids: Sequence[int]) -> list[ModelT]:
        if not ids:
            return []
        q = select(self.model).where(self.model.id.in_(list(ids)))
        result = await self.db.execute(q)
        return list(result.scalars().all())

    async def slug_taken(self, slug: str, exclude_id: int | None = None) -> bool:
        q = select(self.model.id).where(func.lower(self.model.slug) == slug.lower())
        if exclude_id is not None:
            q = q.where(self.model.id != exclude_id)
        result = await self.db.execute(q.limit(1))
        return result.scalar_one_or_none() is not None

    async def exists(self, **criteria: Any) -> bool:
        q = select(self.model.id).filter_by(**criteria).limit(1)
        return (await self.db.execute(q)).scalar_one_or_none() is not None

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def add(self, entity: ModelT) -> None:
        self.db.add(entity)

    async def remove(self, entity: ModelT) -> None:
        await self.db.delete(entity)

    async def commit(self) -> None:
        """
        Flush and commit the unit of work.

        A unique-constraint violation (two writers racing for the same slug)
        surfaces as ``Conflict`` after the session is rolled back.
        """
        try:
            await self.db.flush()
            await self.db.commit()
        except IntegrityError as exc:
            await self.db.rollback()
            logger.info("Integrity error on %s: %s", self.model.__name__, exc.orig)
            raise Conflict(f"A {self.model.__name__.lower()} with these values already exists") from exc

    async def refresh(self, entity: ModelT) -> None:
        await self.db.refresh(entity)

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    def _where(self, list_filter: ListFilter) -> list:
        model = self.model
        clauses = []
        if list_filter.statuses is not None:
            clauses.append(model.status.in_(list_filter.statuses))
        for column, value in list_filter.exact:
            col = getattr(model, column)
            if isinstance(col.type, Integer):
                # Query strings are text; a non-numeric id matches nothing.
                clauses.append(col == int(value) if value.lstrip("-").isdigit() else false())
            else:
                clauses.append(col == value)
        for column, value in list_filter.members:
            # JSON arrays are matched on their serialised form so the same
            # query runs on PostgreSQL and SQLite.
            needle = _like_escape(f'"{value}"')
            clauses.append(cast(getattr(model, column), String).like(f"%{needle}%", escape="\\"))
        for column, value in list_filter.flags:
            clauses.append(getattr(model, column).is_(value))
        if list_filter.search:
            pattern = f"%{_like_escape(list_filter.search)}%"
            clauses.append(
                or_(
                    *(
                        getattr(model, name).ilike(pattern, escape="\\")
                        for name in list_filter.search_fields
                    )
                )
            )
        return clauses

    async def count(self, list_filter: ListFilter) -> int:
        q = select(func.count()).select_from(self.model).where(*self._where(list_filter))
        return (await self.db.execute(q)).scalar_one()

    async def find(self, query_plan: QueryPlan) -> PageResult:
        """Execute *query_plan*: one COUNT plus one SELECT with LIMIT/OFFSET."""
        clauses = self._where(query_plan.filter)
        total = await self.count(query_plan.filter)

        order = [
            desc(getattr(self.model, key.column)) if key.descending
            else asc(getattr(self.model, key.column))
            for key in query_plan.sort
        ]
        # id as tie-breaker keeps pages stable when sort values collide
        order.append(desc(self.model.id))

        q = select(self.model).where(*clauses).order_by(*order)
        if query_plan.page is not None:
            q = q.offset(query_plan.page.offset).limit(query_plan.page.limit)
        result = await self.db.execute(q)
        return PageResult(
            items=list(result.scalars().all()),
            total_items=total,
            page=query_plan.page,
        )

    async def grouped_counts(self, column: str, **criteria: Any) -> list[dict]:
        col = getattr(self.model, column)
        q = (
            select(col, func.count())
            .where(*(getattr(self.model, key) == value for key, value in criteria.items()))
            .group_by(col)
            .order_by(func.count().desc(), col)
        )
        result = await self.db.execute(q)
        return [{"_id": key, "count": count} for key, count in result.all()]

    async def latest(self, limit: int | None = 10, **criteria: Any) -> list[ModelT]:
        q = (
            select(self.model)
            .where(*(getattr(self.model, key) == value for key, value in criteria.items()))
            .order_by(desc(self.model.created_at), desc(self.model.id))
        )
        if limit is not None:
            q = q.limit(limit)
        result = await self.db.execute(q)
        return list(result.scalars().all())

    async def column_values(self, column: str, **criteria: Any) -> list:
        col = getattr(self.model, column)
        q = select(col).where(*(getattr(self.model, key) == value for key, value in criteria.items()))
        result = await self.db.execute(q)
        return list(result.scalars().all())

    async def total(self) -> int:
        q = select(func.count()).select_from(self.model)
        return (await self.db.execute(q)).scalar_one()
