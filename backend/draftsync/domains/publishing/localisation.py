"""Locale and translation publisher."""

import time
from typing import Any, Dict, Optional, Tuple

from draftsync.core.datetime_utils import utc_now
from draftsync.core.logging import ContextualLogger, logger
from draftsync.core.protocols.row_store import RowFilter, RowStore
from draftsync.domains.publishing.fingerprint import ContentFingerprinter, fingerprinter
from draftsync.domains.publishing.orphans import OrphanReconciler
from draftsync.domains.publishing.row_access import RowAccess
from draftsync.domains.publishing.row_sync import to_target_row
from draftsync.domains.publishing.tables import LOCALES, TRANSLATIONS
from draftsync.domains.publishing.types import (
    LocalisationPublishResult,
    PreserveFilter,
    SyncDirection,
)

DRAFT = RowFilter.side(False)
PUBLISHED = RowFilter.side(True)

# The published default locale is never removed by orphan cleanup
DEFAULT_LOCALE_PIN = PreserveFilter(column="is_default", value=True)


class LocalisationPublisher:
    """Publishes all locales, then all translations."""

    def __init__(
        self,
        store: RowStore,
        access: Optional[RowAccess] = None,
        reconciler: Optional[OrphanReconciler] = None,
        hasher: Optional[ContentFingerprinter] = None,
        log: Optional[ContextualLogger] = None,
    ) -> None:
        """Initialize with the row store (and optional collaborators)."""
        self._access = access or RowAccess(store)
        self._reconciler = reconciler or OrphanReconciler(store, self._access)
        self._hasher = hasher or fingerprinter
        self._logger = log or logger.with_prefix("[Localisation] ")

    async def publish(self) -> LocalisationPublishResult:
        """Publish locales and translations.

        For each table: tombstone the published copies of soft-deleted
        drafts, upsert changed active drafts, then remove orphans. Locale
        cleanup keeps the published default locale.
        """
        result = LocalisationPublishResult()

        start = time.monotonic()
        result.locales, result.locales_deleted = await self._publish_table(
            LOCALES, DEFAULT_LOCALE_PIN
        )
        result.locales_duration_ms = int((time.monotonic() - start) * 1000)

        start = time.monotonic()
        result.translations, result.translations_deleted = await self._publish_table(
            TRANSLATIONS, None
        )
        result.translations_duration_ms = int((time.monotonic() - start) * 1000)

        self._logger.info(
            f"Published {result.locales} locales and {result.translations} translations"
        )
        return result

    async def _publish_table(
        self, table: str, preserve_filter: Optional[PreserveFilter]
    ) -> Tuple[int, int]:
        drafts = await self._access.fetch_all(table, DRAFT)
        active = [row for row in drafts if row.get("deleted_at") is None]
        tombstoned = [row["id"] for row in drafts if row.get("deleted_at") is not None]

        if tombstoned:
            await self._access.update_in(
                table, PUBLISHED.active(), "id", tombstoned, {"deleted_at": utc_now()}
            )

        published = await self._access.fetch_by_id(table, PUBLISHED, [r["id"] for r in active])
        changed = [
            to_target_row(row, SyncDirection.PUBLISH)
            for row in active
            if self._changed(table, row, published.get(row["id"]))
        ]
        count = await self._access.upsert_batched(table, changed) if changed else 0

        cleanup = await self._reconciler.cleanup_orphans(
            table, SyncDirection.PUBLISH, preserve_filter=preserve_filter
        )
        return count, cleanup.deleted

    def _changed(
        self, table: str, draft: Dict[str, Any], published: Optional[Dict[str, Any]]
    ) -> bool:
        if published is None or published.get("deleted_at") is not None:
            return True
        return self._hasher.differs(table, draft, published)
