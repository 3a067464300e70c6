"""
Tests for catalog dependency evaluation and validation.
"""

from types import SimpleNamespace

import pytest

from quotedesk.services.catalog import (
    CatalogDependencyError,
    group_by_parent,
    resolve_visibility,
    validate_dependency,
)


def item(id, depends_on=None, condition="always", sort_order=0):
    return SimpleNamespace(
        id=id, depends_on_item_id=depends_on, depends_on_condition=condition, sort_order=sort_order
    )


@pytest.fixture
def catalog():
    return [
        item(1),
        item(2, depends_on=1, condition="when_selected"),
        item(3, depends_on=1, condition="when_not_selected"),
        item(4, depends_on=1, condition="always"),
        item(5),
    ]


class TestResolveVisibility:
    def test_parent_selected(self, catalog):
        visibility = resolve_visibility(catalog, [1])
        assert visibility == {1: True, 2: True, 3: False, 4: True, 5: True}

    def test_parent_not_selected(self, catalog):
        visibility = resolve_visibility(catalog, [])
        assert visibility == {1: True, 2: False, 3: True, 4: True, 5: True}

    def test_dangling_parent_keeps_child_visible(self):
        visibility = resolve_visibility([item(7, depends_on=99, condition="when_selected")], [])
        assert visibility == {7: True}

    def test_unknown_condition_behaves_like_always(self):
        visibility = resolve_visibility([item(1), item(2, depends_on=1, condition="sometimes")], [])
        assert visibility[2] is True


class TestValidateDependency:
    def test_no_dependency_is_fine(self, catalog):
        validate_dependency(5, None, catalog)

    def test_valid_single_level(self, catalog):
        validate_dependency(5, 1, catalog)

    def test_self_reference_rejected(self, catalog):
        with pytest.raises(CatalogDependencyError):
            validate_dependency(1, 1, catalog)

    def test_unknown_target_rejected(self, catalog):
        with pytest.raises(CatalogDependencyError):
            validate_dependency(5, 42, catalog)

    def test_target_that_is_a_child_rejected(self, catalog):
        # 2 already depends on 1; depending on 2 would create a second level
        with pytest.raises(CatalogDependencyError):
            validate_dependency(5, 2, catalog)

    def test_parent_cannot_become_a_child(self, catalog):
        with pytest.raises(CatalogDependencyError):
            validate_dependency(1, 5, catalog)

    def test_cycle_is_impossible(self):
        items = [item(1, depends_on=2), item(2)]
        with pytest.raises(CatalogDependencyError):
            validate_dependency(2, 1, items)

    def test_new_item_may_depend_on_root(self, catalog):
        validate_dependency(None, 5, catalog)


class TestGroupByParent:
    def test_children_grouped_under_root(self, catalog):
        groups = group_by_parent(catalog)
        assert [g["item"].id for g in groups] == [1, 5]
        assert [c.id for c in groups[0]["children"]] == [2, 3, 4]
        assert groups[1]["children"] == []

    def test_orphan_becomes_root(self):
        groups = group_by_parent([item(1), item(2, depends_on=99)])
        assert [g["item"].id for g in groups] == [1, 2]

    def test_sort_order_respected(self):
        groups = group_by_parent([item(1, sort_order=5), item(2, sort_order=1)])
        assert [g["item"].id for g in groups] == [2, 1]
