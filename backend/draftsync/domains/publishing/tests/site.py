"""A small draft site spanning every publishable table."""

from dataclasses import dataclass
from typing import Any, Dict

from draftsync.domains.publishing.tables import (
    ASSET_FOLDERS,
    ASSETS,
    COLLECTION_FIELDS,
    COLLECTION_ITEM_VALUES,
    COLLECTION_ITEMS,
    COLLECTIONS,
    COMPONENTS,
    FONTS,
    LAYER_STYLES,
    LOCALES,
    PAGE_FOLDERS,
    PAGE_LAYERS,
    PAGES,
    SETTINGS,
    TRANSLATIONS,
)
from draftsync.domains.publishing.tests.rows import hashed, make_row

Row = Dict[str, Any]


@dataclass
class Site:
    folder: Row
    subfolder: Row
    page: Row
    layers: Row
    component: Row
    style: Row
    locale: Row
    translation: Row
    collection: Row
    field: Row
    item: Row
    value: Row
    asset_folder: Row
    asset: Row
    font: Row


def seed_site(store, css: str = "body{margin:0}") -> Site:
    """Seed one draft row per table (two folders) plus ``draft_css``."""
    folder = make_row(PAGE_FOLDERS, name="docs", depth=0)
    subfolder = make_row(PAGE_FOLDERS, name="guides", depth=1, page_folder_id=folder["id"])
    page = hashed(PAGES, make_row(PAGES, name="Intro", page_folder_id=subfolder["id"]))
    style = hashed(LAYER_STYLES, make_row(LAYER_STYLES, classes="p-4"))
    component = hashed(COMPONENTS, make_row(COMPONENTS, layers=[{"id": "btn"}]))
    layers = hashed(
        PAGE_LAYERS,
        make_row(
            PAGE_LAYERS,
            page_id=page["id"],
            layers=[{"id": "root", "componentId": component["id"], "styleId": style["id"]}],
        ),
    )
    locale = make_row(LOCALES, code="en", is_default=True)
    translation = make_row(TRANSLATIONS, locale_id=locale["id"])
    collection = make_row(COLLECTIONS, name="Posts")
    field = make_row(COLLECTION_FIELDS, collection_id=collection["id"])
    item = make_row(COLLECTION_ITEMS, collection_id=collection["id"])
    value = make_row(
        COLLECTION_ITEM_VALUES, item_id=item["id"], field_id=field["id"], value="First"
    )
    asset_folder = make_row(ASSET_FOLDERS)
    asset = make_row(ASSETS, asset_folder_id=asset_folder["id"], storage_path="img/logo.png")
    font = make_row(FONTS, storage_path="fonts/inter.woff2")

    for table, rows in (
        (PAGE_FOLDERS, [folder, subfolder]),
        (PAGES, [page]),
        (PAGE_LAYERS, [layers]),
        (COMPONENTS, [component]),
        (LAYER_STYLES, [style]),
        (LOCALES, [locale]),
        (TRANSLATIONS, [translation]),
        (COLLECTIONS, [collection]),
        (COLLECTION_FIELDS, [field]),
        (COLLECTION_ITEMS, [item]),
        (COLLECTION_ITEM_VALUES, [value]),
        (ASSET_FOLDERS, [asset_folder]),
        (ASSETS, [asset]),
        (FONTS, [font]),
    ):
        store.seed(table, rows)
    store.seed(SETTINGS, [{"key": "draft_css", "value": css}])

    return Site(
        folder=folder,
        subfolder=subfolder,
        page=page,
        layers=layers,
        component=component,
        style=style,
        locale=locale,
        translation=translation,
        collection=collection,
        field=field,
        item=item,
        value=value,
        asset_folder=asset_folder,
        asset=asset,
        font=font,
    )
