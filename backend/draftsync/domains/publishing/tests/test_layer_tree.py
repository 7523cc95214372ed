"""Tests for layer tree rewrites."""

import pytest

from draftsync.domains.publishing.fingerprint import fingerprint
from draftsync.domains.publishing.layer_tree import (
    LayerReferenceDetacher,
    collect_references,
    detach_references,
)
from draftsync.domains.publishing.tables import COMPONENTS, LAYER_STYLES, PAGE_LAYERS, PAGES
from draftsync.domains.publishing.tests.rows import hashed, make_row

TREE = [
    {"id": "hero", "styleId": "s1", "styleOverrides": {"color": "red"}},
    {
        "id": "section",
        "children": [
            {"id": "card", "componentId": "c1", "componentOverrides": {"title": "x"}},
            {"id": "text", "children": [{"id": "deep", "styleId": "s2"}]},
        ],
    },
]


class TestDetachReferences:
    """detach_references is pure and shares untouched subtrees."""

    def test_nothing_matches_returns_same_object(self):
        assert detach_references(TREE, {"other"}, {"nope"}) is TREE

    def test_strips_component_keys(self):
        result = detach_references(TREE, component_ids={"c1"})

        card = result[1]["children"][0]
        assert card == {"id": "card"}
        # Untouched siblings are the very same objects
        assert result[0] is TREE[0]
        assert result[1]["children"][1] is TREE[1]["children"][1]

    def test_strips_nested_style_keys(self):
        result = detach_references(TREE, style_ids={"s2"})

        assert result[1]["children"][1]["children"][0] == {"id": "deep"}
        assert TREE[1]["children"][1]["children"][0] == {"id": "deep", "styleId": "s2"}

    def test_both_kinds_on_one_layer(self):
        layer = {"id": "x", "componentId": "c", "styleId": "s", "componentOverrides": {}}
        assert detach_references([layer], {"c"}, {"s"}) == [{"id": "x"}]

    def test_non_dict_layers_are_left_alone(self):
        layers = ["text", None, {"id": "a", "children": "not-a-list"}]
        assert detach_references(layers, {"c"}, {"s"}) is layers

    def test_collect_references(self):
        assert collect_references(TREE) == ({"c1"}, {"s1", "s2"})


class TestLayerReferenceDetacher:
    @pytest.mark.asyncio
    async def test_rewrites_page_layers_and_components(self, row_store, access):
        deleted_component = make_row(COMPONENTS, deleted_at="2024-01-01")
        deleted_style = make_row(LAYER_STYLES, deleted_at="2024-01-01")
        nested = hashed(
            COMPONENTS,
            make_row(COMPONENTS, layers=[{"id": "inner", "styleId": deleted_style["id"]}]),
        )
        row_store.seed(COMPONENTS, [deleted_component, nested])
        row_store.seed(LAYER_STYLES, [deleted_style])
        page = make_row(PAGES)
        row_store.seed(PAGES, [page])
        layers = hashed(
            PAGE_LAYERS,
            make_row(
                PAGE_LAYERS,
                page_id=page["id"],
                layers=[{"id": "a", "componentId": deleted_component["id"]}],
            ),
        )
        untouched = hashed(
            PAGE_LAYERS, make_row(PAGE_LAYERS, page_id=page["id"], layers=[{"id": "b"}])
        )
        row_store.seed(PAGE_LAYERS, [layers, untouched])

        result = await LayerReferenceDetacher(row_store, access).detach_deleted()

        assert (result.page_layers, result.components) == (1, 1)
        rewritten = row_store.get(PAGE_LAYERS, layers["id"], False)
        assert rewritten["layers"] == [{"id": "a"}]
        assert rewritten["content_hash"] == fingerprint(PAGE_LAYERS, rewritten)
        assert row_store.get(COMPONENTS, nested["id"], False)["layers"] == [{"id": "inner"}]
        kept = row_store.get(PAGE_LAYERS, untouched["id"], False)
        assert (kept["layers"], kept["content_hash"]) == (
            untouched["layers"],
            untouched["content_hash"],
        )

    @pytest.mark.asyncio
    async def test_no_deleted_references(self, row_store, access):
        row_store.seed(COMPONENTS, [make_row(COMPONENTS)])

        result = await LayerReferenceDetacher(row_store, access).detach_deleted()

        assert (result.page_layers, result.components) == (0, 0)
        assert ("upsert", COMPONENTS) not in row_store.operations()
