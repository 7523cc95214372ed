"""Models for the application."""

from ._base import Base
from .asset import Asset, AssetFolder, Font
from .collection import Collection, CollectionField, CollectionItem, CollectionItemValue
from .component import Component, LayerStyle
from .localisation import Locale, Translation
from .page import Page, PageLayers
from .page_folder import PageFolder
from .setting import Setting

__all__ = [
    "Asset",
    "AssetFolder",
    "Base",
    "Collection",
    "CollectionField",
    "CollectionItem",
    "CollectionItemValue",
    "Component",
    "Font",
    "LayerStyle",
    "Locale",
    "Page",
    "PageFolder",
    "PageLayers",
    "Setting",
    "Translation",
]
