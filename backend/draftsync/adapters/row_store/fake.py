"""In-memory row store for testing.

Table shapes, primary keys and foreign keys are read from the SQLAlchemy
model metadata, so the fake enforces the same conflict targets, reference
checks and ``ON DELETE CASCADE`` edges as the real schema.
"""

import copy
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from sqlalchemy import MetaData

from draftsync.core.datetime_utils import utc_now
from draftsync.core.exceptions import RowStoreError
from draftsync.core.protocols.row_store import RowFilter
from draftsync.models import Base

Key = Tuple[Any, ...]


@dataclass(frozen=True)
class _ForeignKey:
    child_table: str
    child_columns: Tuple[str, ...]
    parent_table: str
    parent_columns: Tuple[str, ...]
    cascade: bool


@dataclass
class _Failure:
    after: int
    times: int
    message: str


class InMemoryRowStore:
    """Dict-backed implementation of the RowStore protocol.

    Usage:
        store = InMemoryRowStore()
        store.seed("pages", [{"id": page_id, "is_published": False, "name": "Home"}])

        await publisher.publish_pages([page_id])

        assert store.rows("pages", is_published=True)[0]["name"] == "Home"
        assert ("upsert", "pages") in store.operations()
    """

    def __init__(
        self, metadata: Optional[MetaData] = None, enforce_foreign_keys: bool = True
    ) -> None:
        """Initialize empty tables for every table in ``metadata``."""
        metadata = metadata if metadata is not None else Base.metadata
        self._columns: Dict[str, Tuple[str, ...]] = {}
        self._primary_keys: Dict[str, Tuple[str, ...]] = {}
        self._foreign_keys: List[_ForeignKey] = []
        for table in metadata.sorted_tables:
            self._columns[table.name] = tuple(c.name for c in table.columns)
            self._primary_keys[table.name] = tuple(c.name for c in table.primary_key.columns)
            for constraint in table.foreign_key_constraints:
                self._foreign_keys.append(
                    _ForeignKey(
                        child_table=table.name,
                        child_columns=tuple(constraint.column_keys),
                        parent_table=constraint.referred_table.name,
                        parent_columns=tuple(e.column.name for e in constraint.elements),
                        cascade=(constraint.ondelete or "").upper() == "CASCADE",
                    )
                )
        self._tables: Dict[str, Dict[Key, Dict[str, Any]]] = {name: {} for name in self._columns}
        self._enforce_foreign_keys = enforce_foreign_keys
        self._failures: Dict[Tuple[str, str], _Failure] = {}
        self._call_counts: Dict[Tuple[str, str], int] = {}
        self._calls: List[tuple] = []

    # ------------------------------------------------------------------
    # Test helpers
    # ------------------------------------------------------------------

    def seed(self, table: str, rows: Sequence[Mapping[str, Any]]) -> None:
        """Insert rows directly, bypassing reference checks and call tracking."""
        for row in rows:
            full = self._complete(table, row)
            self._tables[table][self._key(table, full)] = full

    def rows(self, table: str, is_published: Optional[bool] = None) -> List[Dict[str, Any]]:
        """Return copies of the stored rows, optionally for one side only."""
        self._check_table(table, "rows")
        return [
            copy.deepcopy(row)
            for row in self._tables[table].values()
            if is_published is None or row.get("is_published") is is_published
        ]

    def get(self, table: str, id: Any, is_published: bool) -> Optional[Dict[str, Any]]:
        """Return a copy of one row by composite key, or None."""
        row = self._tables[table].get((id, is_published))
        return copy.deepcopy(row) if row is not None else None

    def fail_on(
        self,
        table: str,
        operation: str,
        after: int = 0,
        times: int = 1,
        message: str = "injected failure",
    ) -> None:
        """Make ``operation`` on ``table`` fail once ``after`` calls have succeeded.

        The failure fires ``times`` times, then the store behaves normally.
        """
        self._failures[(table, operation)] = _Failure(after=after, times=times, message=message)
        self._call_counts[(table, operation)] = 0

    def operations(self) -> List[Tuple[str, str]]:
        """Ordered ``(operation, table)`` pairs of every recorded call."""
        return [(call[0], call[1]) for call in self._calls]

    def clear_calls(self) -> None:
        self._calls.clear()

    # ------------------------------------------------------------------
    # RowStore protocol
    # ------------------------------------------------------------------

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
        """Return matching rows, sorted and sliced."""
        self._track("select", table, where, limit, offset)
        rows = [row for row in self._tables[table].values() if where.matches(row)]
        for column in reversed(order_by):
            descending = column.startswith("-")
            name = column.lstrip("-")
            rows.sort(
                key=lambda r: (r.get(name) is None, r.get(name)),
                reverse=descending,
            )
        end = None if limit is None else offset + limit
        rows = rows[offset:end]
        if columns is not None:
            return [{c: copy.deepcopy(row.get(c)) for c in columns} for row in rows]
        return [copy.deepcopy(row) for row in rows]

    async def count(self, table: str, where: RowFilter) -> int:
        """Count matching rows."""
        self._track("count", table, where)
        return sum(1 for row in self._tables[table].values() if where.matches(row))

    async def insert(self, table: str, rows: Sequence[Mapping[str, Any]]) -> int:
        """Insert rows, failing on a key conflict."""
        self._track("insert", table, len(rows))
        prepared = [self._complete(table, row) for row in rows]
        for row in prepared:
            if self._key(table, row) in self._tables[table]:
                raise RowStoreError(table, "insert", f"duplicate key {self._key(table, row)}")
            self._check_references(table, row, "insert")
        for row in prepared:
            self._tables[table][self._key(table, row)] = row
        return len(prepared)

    async def upsert(self, table: str, rows: Sequence[Mapping[str, Any]]) -> int:
        """Insert rows or overwrite the given columns of existing ones."""
        self._track("upsert", table, len(rows))
        staged: Dict[Key, Dict[str, Any]] = {}
        for row in rows:
            self._check_columns(table, row, "upsert")
            key = self._key(table, row)
            existing = staged.get(key) or self._tables[table].get(key)
            merged = {**existing, **copy.deepcopy(dict(row))} if existing else self._complete(
                table, row
            )
            self._check_references(table, merged, "upsert")
            staged[key] = merged
        self._tables[table].update(staged)
        return len(rows)

    async def update(self, table: str, where: RowFilter, values: Mapping[str, Any]) -> int:
        """Set ``values`` on every matching row."""
        self._track("update", table, where, dict(values))
        self._check_columns(table, values, "update")
        matched = [row for row in self._tables[table].values() if where.matches(row)]
        for row in matched:
            row.update(copy.deepcopy(dict(values)))
        return len(matched)

    async def delete(self, table: str, where: RowFilter) -> int:
        """Delete matching rows and cascade to dependent rows."""
        self._track("delete", table, where)
        doomed = [key for key, row in self._tables[table].items() if where.matches(row)]
        for key in doomed:
            self._delete_with_cascade(table, key)
        return len(doomed)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _track(self, operation: str, table: str, *args: Any) -> None:
        self._check_table(table, operation)
        self._calls.append((operation, table, *args))
        failure = self._failures.get((table, operation))
        if failure is None:
            return
        calls = self._call_counts[(table, operation)]
        self._call_counts[(table, operation)] = calls + 1
        if calls >= failure.after and failure.times > 0:
            failure.times -= 1
            raise RowStoreError(table, operation, failure.message)

    def _check_table(self, table: str, operation: str) -> None:
        if table not in self._tables:
            raise RowStoreError(table, operation, "unknown table")

    def _check_columns(self, table: str, row: Mapping[str, Any], operation: str) -> None:
        unknown = set(row) - set(self._columns[table])
        if unknown:
            raise RowStoreError(table, operation, f"unknown columns {sorted(unknown)}")

    def _key(self, table: str, row: Mapping[str, Any]) -> Key:
        return tuple(row.get(column) for column in self._primary_keys[table])

    def _complete(self, table: str, row: Mapping[str, Any]) -> Dict[str, Any]:
        """Fill absent columns the way server defaults would."""
        self._check_table(table, "insert")
        self._check_columns(table, row, "insert")
        full: Dict[str, Any] = {column: None for column in self._columns[table]}
        now = utc_now()
        for column in ("created_at", "updated_at"):
            if column in full:
                full[column] = now
        full.update(copy.deepcopy(dict(row)))
        return full

    def _check_references(self, table: str, row: Mapping[str, Any], operation: str) -> None:
        if not self._enforce_foreign_keys:
            return
        for fk in self._foreign_keys:
            if fk.child_table != table:
                continue
            values = tuple(row.get(column) for column in fk.child_columns)
            if any(value is None for value in values):
                continue
            if not self._parent_exists(fk, values):
                raise RowStoreError(
                    table,
                    operation,
                    f"foreign key {fk.child_columns}={values} has no row in {fk.parent_table}",
                )

    def _parent_exists(self, fk: _ForeignKey, values: Key) -> bool:
        for parent in self._tables[fk.parent_table].values():
            if tuple(parent.get(column) for column in fk.parent_columns) == values:
                return True
        return False

    def _delete_with_cascade(self, table: str, key: Key) -> None:
        row = self._tables[table].pop(key, None)
        if row is None:
            return
        for fk in self._foreign_keys:
            if fk.parent_table != table or not fk.cascade:
                continue
            parent_values = tuple(row.get(column) for column in fk.parent_columns)
            children = [
                child_key
                for child_key, child in self._tables[fk.child_table].items()
                if tuple(child.get(column) for column in fk.child_columns) == parent_values
            ]
            for child_key in children:
                self._delete_with_cascade(fk.child_table, child_key)
