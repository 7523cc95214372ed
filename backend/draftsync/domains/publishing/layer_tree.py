"""Layer tree rewrites.

A layer tree is a list of layer dicts; a layer may hold nested layers under
``children``. Rewrites never mutate their input: changed layers are copied
and unchanged subtrees are returned as the very same objects, so callers
can detect "nothing changed" with an identity check.
"""

from typing import AbstractSet, Any, Dict, List, Optional, Sequence, Set, Tuple

from draftsync.core.datetime_utils import utc_now
from draftsync.core.logging import ContextualLogger, logger
from draftsync.core.protocols.row_store import RowFilter, RowStore
from draftsync.domains.publishing.fingerprint import ContentFingerprinter, fingerprinter
from draftsync.domains.publishing.row_access import RowAccess
from draftsync.domains.publishing.tables import COMPONENTS, LAYER_STYLES, PAGE_LAYERS
from draftsync.domains.publishing.types import DetachResult

DRAFT = RowFilter.side(False)

COMPONENT_KEYS = ("componentId", "componentOverrides")
STYLE_KEYS = ("styleId", "styleOverrides")

Layer = Dict[str, Any]


def detach_references(
    layers: Sequence[Layer],
    component_ids: AbstractSet[Any] = frozenset(),
    style_ids: AbstractSet[Any] = frozenset(),
) -> Sequence[Layer]:
    """Remove references to the given components and styles from a layer tree.

    A layer whose ``componentId`` is in ``component_ids`` loses ``componentId``
    and ``componentOverrides``; one whose ``styleId`` is in ``style_ids`` loses
    ``styleId`` and ``styleOverrides``.

    Returns:
        ``layers`` itself when nothing matched, otherwise a new list that
        shares every untouched subtree with the input.
    """
    rewritten, changed = _rewrite_list(layers, component_ids, style_ids)
    return rewritten if changed else layers


def collect_references(layers: Sequence[Layer]) -> Tuple[Set[Any], Set[Any]]:
    """Return the ``(component ids, style ids)`` referenced anywhere in a tree."""
    components: Set[Any] = set()
    styles: Set[Any] = set()
    stack = list(layers)
    while stack:
        layer = stack.pop()
        if not isinstance(layer, dict):
            continue
        if layer.get("componentId") is not None:
            components.add(layer["componentId"])
        if layer.get("styleId") is not None:
            styles.add(layer["styleId"])
        children = layer.get("children")
        if isinstance(children, list):
            stack.extend(children)
    return components, styles


def _rewrite_list(
    layers: Sequence[Layer], component_ids: AbstractSet[Any], style_ids: AbstractSet[Any]
) -> Tuple[List[Layer], bool]:
    changed = False
    out: List[Layer] = []
    for layer in layers:
        new_layer = _rewrite_layer(layer, component_ids, style_ids)
        changed = changed or new_layer is not layer
        out.append(new_layer)
    return out, changed


def _rewrite_layer(
    layer: Layer, component_ids: AbstractSet[Any], style_ids: AbstractSet[Any]
) -> Layer:
    if not isinstance(layer, dict):
        return layer

    drop: Tuple[str, ...] = ()
    if layer.get("componentId") is not None and layer["componentId"] in component_ids:
        drop += COMPONENT_KEYS
    if layer.get("styleId") is not None and layer["styleId"] in style_ids:
        drop += STYLE_KEYS

    children = layer.get("children")
    new_children: Optional[List[Layer]] = None
    if isinstance(children, list) and children:
        rewritten, changed = _rewrite_list(children, component_ids, style_ids)
        if changed:
            new_children = rewritten

    if not drop and new_children is None:
        return layer
    new_layer = {k: v for k, v in layer.items() if k not in drop}
    if new_children is not None:
        new_layer["children"] = new_children
    return new_layer


class LayerReferenceDetacher:
    """Strips references to soft-deleted components and styles from draft trees.

    Runs once per draft ``page_layers`` row and draft component. Only rows
    whose tree actually changed are rewritten, with a fresh ``content_hash``.
    """

    def __init__(
        self,
        store: RowStore,
        access: Optional[RowAccess] = None,
        hasher: Optional[ContentFingerprinter] = None,
        log: Optional[ContextualLogger] = None,
    ) -> None:
        """Initialize with the row store (and optional collaborators)."""
        self._access = access or RowAccess(store)
        self._hasher = hasher or fingerprinter
        self._logger = log or logger.with_prefix("[LayerDetach] ")

    async def detach_deleted(self) -> DetachResult:
        """Detach every reference to a soft-deleted draft component or style."""
        component_ids = await self._deleted_ids(COMPONENTS)
        style_ids = await self._deleted_ids(LAYER_STYLES)
        result = DetachResult()
        if not component_ids and not style_ids:
            return result

        result.page_layers = await self._rewrite_table(PAGE_LAYERS, component_ids, style_ids)
        result.components = await self._rewrite_table(COMPONENTS, component_ids, style_ids)
        if result.page_layers or result.components:
            self._logger.info(
                f"Detached deleted references from {result.page_layers} page layer rows "
                f"and {result.components} components"
            )
        return result

    async def _deleted_ids(self, table: str) -> Set[Any]:
        rows = await self._access.fetch_all(
            table, DRAFT.where_not_null("deleted_at"), columns=("id",)
        )
        return {row["id"] for row in rows}

    async def _rewrite_table(
        self, table: str, component_ids: Set[Any], style_ids: Set[Any]
    ) -> int:
        rows = await self._access.fetch_all(table, DRAFT.active())
        rewritten: List[Dict[str, Any]] = []
        for row in rows:
            layers = row.get("layers") or []
            new_layers = detach_references(layers, component_ids, style_ids)
            if new_layers is layers:
                continue
            updated = {**row, "layers": new_layers, "updated_at": utc_now()}
            updated["content_hash"] = self._hasher.fingerprint(table, updated)
            rewritten.append(updated)
        if not rewritten:
            return 0
        return await self._access.upsert_batched(table, rewritten)
