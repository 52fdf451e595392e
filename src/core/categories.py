"""Category tree helpers."""

from __future__ import annotations

from typing import Iterable, Optional

from src.models.reseller import Category


def children_map(categories: Iterable[Category]) -> dict[Optional[str], list[Category]]:
    tree: dict[Optional[str], list[Category]] = {}
    for category in categories:
        tree.setdefault(category.parent_id, []).append(category)
    return tree


def descendant_ids(categories: Iterable[Category], category_id: str) -> set[str]:
    """Ids of every category below category_id (not including itself)."""
    tree = children_map(categories)
    found: set[str] = set()
    stack = [category_id]
    while stack:
        current = stack.pop()
        for child in tree.get(current, []):
            if child.category_id not in found:
                found.add(child.category_id)
                stack.append(child.category_id)
    return found


def eligible_parents(categories: Iterable[Category], category_id: Optional[str] = None) -> list[Category]:
    """Categories that can become the parent of category_id.

    Excludes the category itself and its whole subtree. With no category_id
    (a new category) every category is eligible.
    """
    categories = list(categories)
    if category_id is None:
        return sorted(categories, key=lambda c: c.name.lower())
    excluded = descendant_ids(categories, category_id) | {category_id}
    return sorted(
        (c for c in categories if c.category_id not in excluded),
        key=lambda c: c.name.lower(),
    )


def would_create_cycle(categories: Iterable[Category], category_id: str, new_parent_id: Optional[str]) -> bool:
    if new_parent_id is None:
        return False
    if new_parent_id == category_id:
        return True
    return new_parent_id in descendant_ids(categories, category_id)


def build_tree(categories: Iterable[Category]) -> list[dict]:
    """Nested {"category", "children"} dicts starting from the roots."""
    categories = list(categories)
    known = {c.category_id for c in categories}
    tree = children_map(categories)

    def node(category: Category) -> dict:
        children = sorted(tree.get(category.category_id, []), key=lambda c: c.name.lower())
        return {"category": category, "children": [node(child) for child in children]}

    # A parent that was deleted out from under a child leaves the child at the root
    roots = [c for c in categories if c.parent_id is None or c.parent_id not in known]
    return [node(root) for root in sorted(roots, key=lambda c: c.name.lower())]
