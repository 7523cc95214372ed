"""Value objects for the publishing domain."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional
from uuid import UUID


class SyncDirection(str, Enum):
    """Which side of the draft/published pair is copied onto the other."""

    PUBLISH = "publish"
    REVERT = "revert"

    @property
    def source_is_published(self) -> bool:
        return self is SyncDirection.REVERT

    @property
    def target_is_published(self) -> bool:
        return self is SyncDirection.PUBLISH


@dataclass(frozen=True)
class PreserveFilter:
    """Keep orphans whose ``column`` equals ``value``."""

    column: str
    value: Any


@dataclass(frozen=True)
class ExcludeByColumn:
    """Skip orphans whose ``column`` value is in ``ids``."""

    column: str
    ids: FrozenSet[Any]


@dataclass
class CleanupResult:
    """Result of an orphan reconciliation pass."""

    deleted: int = 0
    preserved_ids: List[Any] = field(default_factory=list)
    collected: Dict[str, List[str]] = field(default_factory=dict)


@dataclass
class StepTiming:
    """Duration and row count of one pipeline stage."""

    duration_ms: int = 0
    count: int = 0


@dataclass
class CollectionPublishResult:
    """Result of publishing one collection."""

    collection_id: UUID
    success: bool = False
    collection: bool = False
    fields_count: int = 0
    items_count: int = 0
    values_count: int = 0
    items_deleted: int = 0
    fields_deleted: int = 0
    values_deleted: int = 0
    purged: bool = False
    timing: Dict[str, StepTiming] = field(default_factory=dict)
    errors: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class CollectionPublishRequest:
    """One entry of a batch collection publish."""

    collection_id: UUID
    item_ids: Optional[List[UUID]] = None


@dataclass
class BatchPublishSummary:
    total: int = 0
    succeeded: int = 0
    failed: int = 0


@dataclass
class BatchPublishResult:
    results: List[CollectionPublishResult] = field(default_factory=list)
    summary: BatchPublishSummary = field(default_factory=BatchPublishSummary)


@dataclass
class PagePublishResult:
    """Result of publishing pages and their layer trees."""

    count: int = 0
    layers_count: int = 0
    deleted: int = 0
    pages_duration_ms: int = 0
    layers_duration_ms: int = 0


@dataclass
class LocalisationPublishResult:
    """Result of publishing locales and translations."""

    locales: int = 0
    translations: int = 0
    locales_deleted: int = 0
    translations_deleted: int = 0
    locales_duration_ms: int = 0
    translations_duration_ms: int = 0


@dataclass
class StoredFilePublishResult:
    """Result of publishing a table whose rows point at stored bytes."""

    published: int = 0
    deleted: int = 0
    storage_deleted: int = 0


@dataclass
class DetachResult:
    """Rows rewritten by the layer reference detachment pass."""

    page_layers: int = 0
    components: int = 0
