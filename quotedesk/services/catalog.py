"""
Price catalog dependency evaluation.

Each catalog item may depend on one parent item of the same organization.
Visibility for a given client selection:

    no dependency        -> visible
    always               -> visible
    when_selected        -> visible iff parent is selected
    when_not_selected    -> visible iff parent is not selected

A child whose parent no longer exists is kept visible so a billable line is
never silently dropped. Unknown condition strings behave like ``always``.
"""

from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Set


class DependencyCondition(str, Enum):
    ALWAYS = "always"
    WHEN_SELECTED = "when_selected"
    WHEN_NOT_SELECTED = "when_not_selected"


class CatalogDependencyError(ValueError):
    """Raised when a dependency link would break the single-level rule."""


def _sort_key(item: Any):
    return (item.sort_order or 0, item.id or 0)


def resolve_visibility(items: Iterable[Any], selection: Iterable[int]) -> Dict[int, bool]:
    items = list(items)
    selected: Set[int] = set(selection)
    known_ids = {item.id for item in items}

    visibility: Dict[int, bool] = {}
    for item in items:
        parent_id = item.depends_on_item_id
        if parent_id is None or parent_id not in known_ids:
            visibility[item.id] = True
            continue

        condition = item.depends_on_condition
        if condition == DependencyCondition.WHEN_SELECTED.value:
            visibility[item.id] = parent_id in selected
        elif condition == DependencyCondition.WHEN_NOT_SELECTED.value:
            visibility[item.id] = parent_id not in selected
        else:
            visibility[item.id] = True
    return visibility


def validate_dependency(
    item_id: Optional[int],
    depends_on_item_id: Optional[int],
    organization_items: Iterable[Any],
) -> None:
    """
    Check a dependency link before it is written.

    ``organization_items`` must be the complete catalog of the item's
    organization. A target from another organization is simply not found.
    """
    if depends_on_item_id is None:
        return
    if item_id is not None and depends_on_item_id == item_id:
        raise CatalogDependencyError("An item cannot depend on itself")

    by_id = {item.id: item for item in organization_items}
    target = by_id.get(depends_on_item_id)
    if target is None:
        raise CatalogDependencyError(f"Dependency target {depends_on_item_id} does not exist")
    if target.depends_on_item_id is not None:
        raise CatalogDependencyError("Dependency target already depends on another item")

    if item_id is not None:
        has_children = any(
            other.depends_on_item_id == item_id for other in by_id.values() if other.id != item_id
        )
        if has_children:
            raise CatalogDependencyError("An item with dependent items cannot depend on another item")


def group_by_parent(items: Iterable[Any]) -> List[Dict[str, Any]]:
    """Root items in catalog order, each with its ordered children.

    Orphans (dangling parent) and anything nested below a non-root are
    listed as roots so nothing disappears from the form.
    """
    items = sorted(items, key=_sort_key)
    known_ids = {item.id for item in items}
    root_ids = {
        item.id for item in items
        if item.depends_on_item_id is None or item.depends_on_item_id not in known_ids
    }

    children: Dict[int, List[Any]] = {}
    roots: List[Any] = []
    for item in items:
        if item.id in root_ids:
            roots.append(item)
        elif item.depends_on_item_id in root_ids:
            children.setdefault(item.depends_on_item_id, []).append(item)
        else:
            roots.append(item)

    return [{"item": root, "children": children.get(root.id, [])} for root in roots]
