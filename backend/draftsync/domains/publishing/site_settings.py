"""Site settings touched by publish and revert: CSS and the publish timestamp."""

from datetime import datetime
from typing import Any, Optional

from draftsync.core.datetime_utils import utc_now
from draftsync.core.protocols.row_store import RowFilter, RowStore
from draftsync.domains.publishing.row_access import RowAccess
from draftsync.domains.publishing.tables import SETTINGS

DRAFT_CSS = "draft_css"
PUBLISHED_CSS = "published_css"
PUBLISHED_AT = "published_at"


class SiteSettings:
    """Reads and writes the ``settings`` key/value table."""

    def __init__(self, store: RowStore, access: Optional[RowAccess] = None) -> None:
        self._access = access or RowAccess(store)

    async def get(self, key: str) -> Optional[Any]:
        row = await self._access.fetch_one(SETTINGS, RowFilter().where_eq("key", key))
        return None if row is None else row.get("value")

    async def set(self, key: str, value: Any) -> None:
        await self._access.upsert_batched(
            SETTINGS, [{"key": key, "value": value, "updated_at": utc_now()}]
        )

    async def publish_css(self) -> bool:
        """Copy ``draft_css`` to ``published_css``. True when a new value was copied."""
        return await self._copy(DRAFT_CSS, PUBLISHED_CSS)

    async def revert_css(self) -> bool:
        """Copy ``published_css`` back to ``draft_css``. True when the draft changed."""
        return await self._copy(PUBLISHED_CSS, DRAFT_CSS)

    async def save_published_at(self, when: datetime) -> None:
        await self.set(PUBLISHED_AT, when.isoformat())

    async def get_published_at(self) -> Optional[datetime]:
        """Time of the last completed publish, or None if the site was never published."""
        value = await self.get(PUBLISHED_AT)
        if not value:
            return None
        return datetime.fromisoformat(value)

    async def _copy(self, source_key: str, target_key: str) -> bool:
        value = await self.get(source_key)
        if value is None or value == await self.get(target_key):
            return False
        await self.set(target_key, value)
        return True
