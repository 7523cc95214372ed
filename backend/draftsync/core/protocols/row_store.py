"""Row store protocol.

The engine reads and writes rows as plain dicts through this interface. A
row is addressed by its composite key ``(id, is_published)``; the only
exception is the ``settings`` table, which is keyed by ``key``.
"""

from dataclasses import dataclass, field, replace
from typing import (
    Any,
    Dict,
    Iterable,
    List,
    Mapping,
    Optional,
    Protocol,
    Sequence,
    Tuple,
    runtime_checkable,
)


@dataclass(frozen=True)
class RowFilter:
    """Conjunction of column predicates.

    Built fluently; every builder returns a new filter:

        RowFilter.side(False).where_in("id", ids).where_null("deleted_at")
    """

    equal: Mapping[str, Any] = field(default_factory=dict)
    within: Mapping[str, Tuple[Any, ...]] = field(default_factory=dict)
    nulls: Tuple[str, ...] = ()
    not_nulls: Tuple[str, ...] = ()

    @classmethod
    def side(cls, is_published: bool) -> "RowFilter":
        """Filter to one side of the draft/published pair."""
        return cls(equal={"is_published": is_published})

    def where_eq(self, column: str, value: Any) -> "RowFilter":
        return replace(self, equal={**self.equal, column: value})

    def where_in(self, column: str, values: Iterable[Any]) -> "RowFilter":
        return replace(self, within={**self.within, column: tuple(values)})

    def where_null(self, column: str) -> "RowFilter":
        return replace(self, nulls=self.nulls + (column,))

    def where_not_null(self, column: str) -> "RowFilter":
        return replace(self, not_nulls=self.not_nulls + (column,))

    def active(self) -> "RowFilter":
        """Restrict to rows that are not soft-deleted."""
        return self.where_null("deleted_at")

    def matches(self, row: Mapping[str, Any]) -> bool:
        """Evaluate the filter against an in-memory row."""
        for column, value in self.equal.items():
            if row.get(column) != value:
                return False
        for column, values in self.within.items():
            if row.get(column) not in values:
                return False
        for column in self.nulls:
            if row.get(column) is not None:
                return False
        for column in self.not_nulls:
            if row.get(column) is None:
                return False
        return True


@runtime_checkable
class RowStore(Protocol):
    """Per-table CRUD over the relational store."""

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
        """Return matching rows.

        Args:
            table: Table name
            where: Row predicate
            columns: Subset of columns to return (all when omitted)
            order_by: Column names; a leading ``-`` sorts descending
            limit: Page size
            offset: Rows to skip

        Returns:
            Rows as dicts
        """
        ...

    async def count(self, table: str, where: RowFilter) -> int:
        """Count matching rows."""
        ...

    async def insert(self, table: str, rows: Sequence[Mapping[str, Any]]) -> int:
        """Insert rows, failing on key conflicts. Returns rows written."""
        ...

    async def upsert(self, table: str, rows: Sequence[Mapping[str, Any]]) -> int:
        """Insert rows or overwrite every non-key column on key conflict.

        Returns:
            Rows written
        """
        ...

    async def update(self, table: str, where: RowFilter, values: Mapping[str, Any]) -> int:
        """Set ``values`` on matching rows. Returns rows affected."""
        ...

    async def delete(self, table: str, where: RowFilter) -> int:
        """Delete matching rows (cascades are the store's job). Returns rows removed."""
        ...
