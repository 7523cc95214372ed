"""PostgreSQL row store on SQLAlchemy Core.

Each call opens its own session and commits before returning, so a failed
call never rolls back work committed by an earlier one.
"""

from contextlib import AbstractAsyncContextManager
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from sqlalchemy import Table, and_, delete, func, select, true, update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from draftsync.core.exceptions import RowStoreError
from draftsync.core.protocols.row_store import RowFilter
from draftsync.models import Base

SessionFactory = Callable[[], AbstractAsyncContextManager[AsyncSession]]


class SqlAlchemyRowStore:
    """RowStore backed by the model metadata and an async session factory."""

    def __init__(self, session_factory: Optional[SessionFactory] = None) -> None:
        """Initialize with a session factory (defaults to ``get_db_context``)."""
        if session_factory is None:
            from draftsync.db.session import get_db_context

            session_factory = get_db_context
        self._session_factory = session_factory

    async def select(
        self,
        table: str,
        where: RowFilter,
        *,
        columns: Optional[Sequence[str]] = None,
        order_by: Sequence[str] = (),
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[Dict[str, Any]]:
        """Return matching rows as dicts."""
        t = self._table(table, "select")
        selected = [t.c[name] for name in columns] if columns is not None else [t]
        stmt = select(*selected).where(self._where(t, where))
        for column in order_by:
            if column.startswith("-"):
                stmt = stmt.order_by(t.c[column[1:]].desc())
            else:
                stmt = stmt.order_by(t.c[column].asc())
        if limit is not None:
            stmt = stmt.limit(limit)
        if offset:
            stmt = stmt.offset(offset)
        try:
            async with self._session_factory() as db:
                result = await db.execute(stmt)
                return [dict(row) for row in result.mappings().all()]
        except SQLAlchemyError as e:
            raise RowStoreError(table, "select", str(e)) from e

    async def count(self, table: str, where: RowFilter) -> int:
        """Count matching rows."""
        t = self._table(table, "count")
        stmt = select(func.count()).select_from(t).where(self._where(t, where))
        try:
            async with self._session_factory() as db:
                result = await db.execute(stmt)
                return int(result.scalar_one())
        except SQLAlchemyError as e:
            raise RowStoreError(table, "count", str(e)) from e

    async def insert(self, table: str, rows: Sequence[Mapping[str, Any]]) -> int:
        """Insert rows; a key conflict fails the whole call."""
        if not rows:
            return 0
        t = self._table(table, "insert")
        stmt = insert(t).values([dict(row) for row in rows])
        await self._execute(table, "insert", stmt)
        return len(rows)

    async def upsert(self, table: str, rows: Sequence[Mapping[str, Any]]) -> int:
        """Insert rows, overwriting every supplied non-key column on conflict."""
        if not rows:
            return 0
        t = self._table(table, "upsert")
        key_columns = [c.name for c in t.primary_key.columns]
        stmt = insert(t).values([dict(row) for row in rows])
        updatable = sorted({name for row in rows for name in row} - set(key_columns))
        if updatable:
            stmt = stmt.on_conflict_do_update(
                index_elements=key_columns,
                set_={name: stmt.excluded[name] for name in updatable},
            )
        else:
            stmt = stmt.on_conflict_do_nothing(index_elements=key_columns)
        await self._execute(table, "upsert", stmt)
        return len(rows)

    async def update(self, table: str, where: RowFilter, values: Mapping[str, Any]) -> int:
        """Set ``values`` on matching rows."""
        t = self._table(table, "update")
        stmt = update(t).where(self._where(t, where)).values(dict(values))
        return await self._execute(table, "update", stmt)

    async def delete(self, table: str, where: RowFilter) -> int:
        """Delete matching rows; dependent rows go through ``ON DELETE CASCADE``."""
        t = self._table(table, "delete")
        stmt = delete(t).where(self._where(t, where))
        return await self._execute(table, "delete", stmt)

    async def _execute(self, table: str, operation: str, stmt: Any) -> int:
        try:
            async with self._session_factory() as db:
                result = await db.execute(stmt)
                await db.commit()
                return result.rowcount or 0
        except SQLAlchemyError as e:
            raise RowStoreError(table, operation, str(e)) from e

    @staticmethod
    def _table(name: str, operation: str) -> Table:
        try:
            return Base.metadata.tables[name]
        except KeyError:
            raise RowStoreError(name, operation, "unknown table") from None

    @staticmethod
    def _where(t: Table, where: RowFilter) -> Any:
        clauses = [t.c[column] == value for column, value in where.equal.items()]
        for column, values in where.within.items():
            clauses.append(t.c[column].in_(list(values)))
        clauses.extend(t.c[column].is_(None) for column in where.nulls)
        clauses.extend(t.c[column].is_not(None) for column in where.not_nulls)
        return and_(true(), *clauses)
