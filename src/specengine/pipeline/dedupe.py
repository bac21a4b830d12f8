"""Deduplicator - remove duplicate child references and duplicate data rows.

The generator can emit a full state array and incremental appends for the
same rows; renderers key list items by identity, so duplicates must go.
"""

import copy
from typing import Any

from ..core import canonical_json, get_logger
from ..spec import DATA_BEARING_TYPES, SpecTree, binding_path, get_path, set_path, split_path

logger = get_logger(__name__)


def unique_children(children: list[str]) -> list[str]:
    """First occurrence of each id, order preserved."""
    return list(dict.fromkeys(children))


def unique_by_key(items: list[Any], key_field: str) -> list[Any]:
    """Drop items whose ``key_field`` value repeats an earlier item's.

    Items without the key field (or that are not objects) are always kept.
    """
    seen: set[str] = set()
    result = []
    for item in items:
        if isinstance(item, dict) and key_field in item:
            marker = canonical_json(item[key_field])
            if marker in seen:
                continue
            seen.add(marker)
        result.append(item)
    return result


def unique_by_value(items: list[Any]) -> list[Any]:
    """Drop items deep-equal to an earlier item (object key order ignored)."""
    seen: set[str] = set()
    result = []
    for item in items:
        marker = canonical_json(item)
        if marker in seen:
            continue
        seen.add(marker)
        result.append(item)
    return result


class Deduplicator:
    """Removes structural and data duplicates from a repaired tree."""

    def deduplicate(self, tree: SpecTree) -> SpecTree:
        """
        Deduplicate children arrays and bound state arrays.

        Args:
            tree: Repaired tree

        Returns:
            A new tree; the input is never mutated
        """
        tree = tree.copy_deep()

        for key, el in tree.elements.items():
            if not el.children:
                continue
            unique = unique_children(el.children)
            if len(unique) != len(el.children):
                logger.debug("duplicates_removed", kind="children", id=key,
                             removed=len(el.children) - len(unique))
                el.children = unique

        state = copy.deepcopy(tree.state)

        for el in tree.elements.values():
            repeat = el.repeat
            if repeat is None or not repeat.key:
                continue
            self._dedupe_array(state, repeat.state_path, lambda arr, k=repeat.key: unique_by_key(arr, k))

        data_paths: dict[str, None] = {}
        for el in tree.elements.values():
            if el.type not in DATA_BEARING_TYPES:
                continue
            path = binding_path(el.props.get("data"))
            if path is not None:
                data_paths.setdefault(path, None)

        for path in data_paths:
            self._dedupe_array(state, path, unique_by_value)

        tree.state = state
        return tree

    def _dedupe_array(self, state: dict[str, Any], path: str, dedupe) -> None:
        if not split_path(path):
            return
        arr = get_path(state, path)
        if not isinstance(arr, list) or not arr:
            return
        unique = dedupe(arr)
        if len(unique) != len(arr):
            logger.debug("duplicates_removed", kind="state", path=path,
                         removed=len(arr) - len(unique))
            set_path(state, path, unique)


def deduplicate(tree: SpecTree) -> SpecTree:
    """Deduplicate with a throwaway Deduplicator."""
    return Deduplicator().deduplicate(tree)
