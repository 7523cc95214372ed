"""Schemas for the application."""

from .entities import (
    AssetFolderRecord,
    AssetRecord,
    CollectionFieldRecord,
    CollectionItemRecord,
    CollectionItemValueRecord,
    CollectionRecord,
    ComponentRecord,
    FontRecord,
    LayerStyleRecord,
    LocaleRecord,
    PageFolderRecord,
    PageLayersRecord,
    PageRecord,
    PublishableRecord,
    TranslationRecord,
)
from .publish import (
    DeletedDraftCount,
    NeedsPublishing,
    PublishableCount,
    PublishChanges,
    PublishResult,
    PublishScope,
    RevertChanges,
    RevertCounts,
    RevertResult,
    SessionStats,
    TableStats,
)
