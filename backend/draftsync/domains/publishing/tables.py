"""Registry of draft/published tables.

One entry per table: the typed record that names its fingerprint fields and,
for tree-shaped tables, the column that points at the parent row.
"""

from dataclasses import dataclass
from typing import Dict, Optional, Tuple, Type

from draftsync import schemas

PAGE_FOLDERS = "page_folders"
PAGES = "pages"
PAGE_LAYERS = "page_layers"
COMPONENTS = "components"
LAYER_STYLES = "layer_styles"
LOCALES = "locales"
TRANSLATIONS = "translations"
COLLECTIONS = "collections"
COLLECTION_FIELDS = "collection_fields"
COLLECTION_ITEMS = "collection_items"
COLLECTION_ITEM_VALUES = "collection_item_values"
ASSET_FOLDERS = "asset_folders"
ASSETS = "assets"
FONTS = "fonts"
SETTINGS = "settings"


@dataclass(frozen=True)
class TableSpec:
    """Static description of one draft/published table."""

    name: str
    record: Type[schemas.PublishableRecord]
    parent_column: Optional[str] = None

    @property
    def hash_fields(self) -> Tuple[str, ...]:
        return self.record.HASH_FIELDS

    @property
    def stores_hash(self) -> bool:
        return self.record.STORES_HASH


TABLES: Dict[str, TableSpec] = {
    spec.name: spec
    for spec in (
        TableSpec(PAGE_FOLDERS, schemas.PageFolderRecord, parent_column="page_folder_id"),
        TableSpec(PAGES, schemas.PageRecord),
        TableSpec(PAGE_LAYERS, schemas.PageLayersRecord),
        TableSpec(COMPONENTS, schemas.ComponentRecord),
        TableSpec(LAYER_STYLES, schemas.LayerStyleRecord),
        TableSpec(LOCALES, schemas.LocaleRecord),
        TableSpec(TRANSLATIONS, schemas.TranslationRecord),
        TableSpec(COLLECTIONS, schemas.CollectionRecord),
        TableSpec(COLLECTION_FIELDS, schemas.CollectionFieldRecord),
        TableSpec(COLLECTION_ITEMS, schemas.CollectionItemRecord),
        TableSpec(COLLECTION_ITEM_VALUES, schemas.CollectionItemValueRecord),
        TableSpec(ASSET_FOLDERS, schemas.AssetFolderRecord, parent_column="asset_folder_id"),
        TableSpec(ASSETS, schemas.AssetRecord),
        TableSpec(FONTS, schemas.FontRecord),
    )
}


def get_table(name: str) -> TableSpec:
    """Look up a table, raising ValueError for names outside the registry."""
    try:
        return TABLES[name]
    except KeyError:
        raise ValueError(f"Unknown publishable table: {name}") from None
