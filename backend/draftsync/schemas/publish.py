"""Publish and revert request/response schemas."""

from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    """Accepts and emits camelCase keys; snake_case is accepted too."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PublishScope(_CamelModel):
    """What a publish call should cover.

    Omitted (or empty) id lists together with ``publish_all`` mean
    "publish everything needing publishing".
    """

    folder_ids: Optional[List[UUID]] = None
    page_ids: Optional[List[UUID]] = None
    collection_ids: Optional[List[UUID]] = None
    collection_item_ids: Optional[List[UUID]] = None
    component_ids: Optional[List[UUID]] = None
    layer_style_ids: Optional[List[UUID]] = None
    publish_locales: bool = True
    publish_all: bool = False

    @property
    def is_publishing_all(self) -> bool:
        """True when no explicit ids were given and ``publish_all`` is set."""
        explicit = (
            self.folder_ids,
            self.page_ids,
            self.collection_ids,
            self.collection_item_ids,
            self.component_ids,
            self.layer_style_ids,
        )
        return self.publish_all and not any(explicit)


class TableStats(_CamelModel):
    """Timing and row counts for one table within a session."""

    duration_ms: int = 0
    added: int = 0
    updated: int = 0
    deleted: int = 0


class SessionStats(_CamelModel):
    """Per-table stats for a publish or revert session."""

    total_duration_ms: int = 0
    tables: Dict[str, TableStats] = Field(default_factory=dict)

    def table(self, name: str) -> TableStats:
        """Return (creating on first use) the stats entry for ``name``."""
        if name not in self.tables:
            self.tables[name] = TableStats()
        return self.tables[name]


class PublishChanges(_CamelModel):
    """Rows published per entity type."""

    folders: int = 0
    pages: int = 0
    collection_items: int = 0
    components: int = 0
    layer_styles: int = 0
    locales: int = 0
    translations: int = 0
    asset_folders: int = 0
    asset_folders_deleted: int = 0
    assets: int = 0
    assets_deleted: int = 0
    fonts: int = 0
    fonts_deleted: int = 0
    css: bool = False


class PublishResult(_CamelModel):
    """Outcome of a publish session. Step failures land in ``errors``."""

    success: bool = True
    changes: PublishChanges = Field(default_factory=PublishChanges)
    errors: List[str] = Field(default_factory=list)
    stats: SessionStats = Field(default_factory=SessionStats)
    published_at: Optional[datetime] = None


class RevertCounts(_CamelModel):
    """Rows touched per table during a revert."""

    folders: int = 0
    pages: int = 0
    page_layers: int = 0
    collections: int = 0
    collection_fields: int = 0
    collection_items: int = 0
    collection_item_values: int = 0
    components: int = 0
    layer_styles: int = 0
    asset_folders: int = 0
    assets: int = 0
    fonts: int = 0
    locales: int = 0
    translations: int = 0


class RevertChanges(RevertCounts):
    css: bool = False


class RevertResult(_CamelModel):
    """Outcome of a revert session."""

    success: bool = True
    changes: RevertChanges = Field(default_factory=RevertChanges)
    cleaned: RevertCounts = Field(default_factory=RevertCounts)
    errors: List[str] = Field(default_factory=list)
    stats: SessionStats = Field(default_factory=SessionStats)
    message: str = ""


class PublishableCount(_CamelModel):
    collection_id: UUID
    count: int


class NeedsPublishing(_CamelModel):
    collection_id: UUID
    needs_publishing: bool


class DeletedDraftCount(_CamelModel):
    table: str
    count: int
