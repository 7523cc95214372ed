"""Typed records for every draft/published table.

Each record names the columns that take part in change detection. Rows are
moved around the engine as plain dicts; these records are the single place
that says which of a row's fields are meaningful.
"""

from datetime import datetime
from typing import Any, ClassVar, Dict, List, Mapping, Optional, Tuple
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class PublishableRecord(BaseModel):
    """Columns shared by every draft/published row."""

    model_config = ConfigDict(extra="allow", from_attributes=True)

    TABLE: ClassVar[str] = ""
    # Fields fingerprinted (or compared) to decide whether a draft differs
    HASH_FIELDS: ClassVar[Tuple[str, ...]] = ()
    # Whether the table stores the fingerprint in ``content_hash``
    STORES_HASH: ClassVar[bool] = False

    id: UUID
    is_published: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None

    @classmethod
    def hash_input(cls, row: Mapping[str, Any]) -> Dict[str, Any]:
        """Pick the fingerprinted fields out of a raw row."""
        return {name: row.get(name) for name in cls.HASH_FIELDS}


class PageFolderRecord(PublishableRecord):
    TABLE: ClassVar[str] = "page_folders"
    HASH_FIELDS: ClassVar[Tuple[str, ...]] = (
        "name",
        "slug",
        "page_folder_id",
        "depth",
        "order",
        "settings",
    )

    page_folder_id: Optional[UUID] = None
    name: str
    slug: str
    depth: int = 0
    order: int = 0
    settings: Dict[str, Any] = {}


class PageRecord(PublishableRecord):
    TABLE: ClassVar[str] = "pages"
    HASH_FIELDS: ClassVar[Tuple[str, ...]] = (
        "name",
        "slug",
        "settings",
        "is_index",
        "is_dynamic",
        "error_page",
    )
    STORES_HASH: ClassVar[bool] = True

    page_folder_id: Optional[UUID] = None
    name: str
    slug: str
    order: int = 0
    depth: int = 0
    is_index: bool = False
    is_dynamic: bool = False
    error_page: Optional[int] = None
    settings: Dict[str, Any] = {}
    content_hash: Optional[str] = None


class PageLayersRecord(PublishableRecord):
    TABLE: ClassVar[str] = "page_layers"
    HASH_FIELDS: ClassVar[Tuple[str, ...]] = ("layers", "generated_css")
    STORES_HASH: ClassVar[bool] = True

    page_id: UUID
    layers: List[Any] = []
    generated_css: Optional[str] = None
    content_hash: Optional[str] = None


class ComponentRecord(PublishableRecord):
    TABLE: ClassVar[str] = "components"
    HASH_FIELDS: ClassVar[Tuple[str, ...]] = ("name", "layers")
    STORES_HASH: ClassVar[bool] = True

    name: str
    layers: List[Any] = []
    content_hash: Optional[str] = None


class LayerStyleRecord(PublishableRecord):
    TABLE: ClassVar[str] = "layer_styles"
    HASH_FIELDS: ClassVar[Tuple[str, ...]] = ("name", "classes", "design")
    STORES_HASH: ClassVar[bool] = True

    name: str
    classes: Optional[str] = None
    design: Optional[Dict[str, Any]] = None
    content_hash: Optional[str] = None


class LocaleRecord(PublishableRecord):
    TABLE: ClassVar[str] = "locales"
    HASH_FIELDS: ClassVar[Tuple[str, ...]] = ("code", "label", "is_default")

    code: str
    label: str
    is_default: bool = False


class TranslationRecord(PublishableRecord):
    TABLE: ClassVar[str] = "translations"
    HASH_FIELDS: ClassVar[Tuple[str, ...]] = (
        "locale_id",
        "source_type",
        "source_id",
        "content_key",
        "content_type",
        "content_value",
        "is_completed",
    )

    locale_id: UUID
    source_type: str
    source_id: str
    content_key: str
    content_type: str
    content_value: Optional[str] = None
    is_completed: bool = False


class CollectionRecord(PublishableRecord):
    TABLE: ClassVar[str] = "collections"
    HASH_FIELDS: ClassVar[Tuple[str, ...]] = ("name", "sorting", "order")

    name: str
    sorting: Optional[Dict[str, Any]] = None
    order: int = 0


class CollectionFieldRecord(PublishableRecord):
    TABLE: ClassVar[str] = "collection_fields"
    HASH_FIELDS: ClassVar[Tuple[str, ...]] = (
        "name",
        "key",
        "type",
        "default",
        "fillable",
        "order",
        "reference_collection_id",
        "hidden",
        "data",
    )

    collection_id: UUID
    name: str
    key: Optional[str] = None
    type: str
    default: Optional[str] = None
    fillable: bool = True
    order: int = 0
    reference_collection_id: Optional[UUID] = None
    hidden: bool = False
    data: Optional[Dict[str, Any]] = None


class CollectionItemRecord(PublishableRecord):
    TABLE: ClassVar[str] = "collection_items"
    HASH_FIELDS: ClassVar[Tuple[str, ...]] = ("manual_order", "is_publishable")

    collection_id: UUID
    manual_order: int = 0
    is_publishable: bool = True


class CollectionItemValueRecord(PublishableRecord):
    TABLE: ClassVar[str] = "collection_item_values"
    HASH_FIELDS: ClassVar[Tuple[str, ...]] = ("value",)

    item_id: UUID
    field_id: UUID
    value: Optional[str] = None


class AssetFolderRecord(PublishableRecord):
    TABLE: ClassVar[str] = "asset_folders"
    HASH_FIELDS: ClassVar[Tuple[str, ...]] = ("name", "asset_folder_id", "depth", "order")

    asset_folder_id: Optional[UUID] = None
    name: str
    depth: int = 0
    order: int = 0


class AssetRecord(PublishableRecord):
    TABLE: ClassVar[str] = "assets"
    HASH_FIELDS: ClassVar[Tuple[str, ...]] = (
        "asset_folder_id",
        "filename",
        "storage_path",
        "public_url",
        "file_size",
        "mime_type",
        "width",
        "height",
    )

    asset_folder_id: Optional[UUID] = None
    filename: str
    storage_path: Optional[str] = None
    public_url: Optional[str] = None
    file_size: Optional[int] = None
    mime_type: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None


class FontRecord(PublishableRecord):
    TABLE: ClassVar[str] = "fonts"
    HASH_FIELDS: ClassVar[Tuple[str, ...]] = (
        "name",
        "family",
        "type",
        "variants",
        "weights",
        "category",
        "storage_path",
    )

    name: str
    family: str
    type: str
    variants: Optional[List[Any]] = None
    weights: Optional[List[Any]] = None
    category: Optional[str] = None
    storage_path: Optional[str] = None
