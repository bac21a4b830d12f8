"""Repairer - heuristic fixes for trees produced by a generative model.

Rules run in a fixed order on a copy of the sanitized tree:

1. list-like props are rewritten to one canonical item shape per type
2. map coordinates and marker fields are normalized to canonical names
3. a reference to a missing id is redirected to an orphan named id + suffix
4. a missing tab group is synthesized from orphaned TabContent elements
5. a missing ``<prefix>-card`` is synthesized around orphans sharing the prefix
6. unresolved references are pruned and remaining orphans are attached to root

Each rule claims the orphans it consumes so later rules cannot reuse them.
"""

import re
from typing import Any, Callable

from ..core import Settings, get_logger, get_settings
from ..spec import Element, SpecTree

logger = get_logger(__name__)

CARD_PATTERN = re.compile(r"^(.+)-card$")

Item = dict[str, Any]


def _first(item: Item, *keys: str, default: Any = None) -> Any:
    """First value among ``keys`` that is present and not None."""
    for key in keys:
        value = item.get(key)
        if value is not None:
            return value
    return default


# ----------------------------------------------------------------------------
# Rule 1: canonical item shapes
# ----------------------------------------------------------------------------

def _table_column(col: Item, i: int) -> Item:
    key = _first(col, "key", "accessorKey", default=f"col-{i}")
    label = _first(col, "label", "header", "key", "accessorKey", default="")
    return {"key": key, "label": label}


def _tab(tab: Item, i: int) -> Item:
    return {
        "value": _first(tab, "value", "id", "key", default=f"tab-{i}"),
        "label": _first(tab, "label", "name", "title", "value", "id", default=""),
    }


def _option(opt: Item, i: int) -> Item:
    return {
        "value": _first(opt, "value", "id", "key", default=f"opt-{i}"),
        "label": _first(opt, "label", "text", "name", "value", "id", default=""),
    }


def _accordion_item(item: Item, i: int) -> Item:
    return {
        "title": _first(item, "title", "heading", "label", default=""),
        "content": _first(item, "content", "body", "description", default=""),
    }


def _timeline_item(item: Item, i: int) -> Item:
    return {
        "title": _first(item, "title", "heading", "label", default=""),
        "description": _first(item, "description", "body", "detail"),
        "date": _first(item, "date", "dateLabel"),
        "status": _first(item, "status"),
    }


def _series_key(item: Item, i: int) -> Item:
    return {
        "key": _first(item, "key", "dataKey", "id", default=f"line-{i}"),
        "label": _first(item, "label", "name", "key", "dataKey", default=""),
        "color": _first(item, "color"),
    }


# Plain string items name both the identity and the label
_STRING_ITEM_FIELDS = {
    _table_column: ("key", "label"),
    _tab: ("value", "label"),
    _option: ("value", "label"),
    _accordion_item: ("title",),
    _timeline_item: ("title",),
    _series_key: ("key", "label"),
}

Normalizer = Callable[[Item, int], Item]

# (element type, list prop) -> item normalizer
SHAPE_RULES: dict[tuple[str, str], Normalizer] = {
    ("Table", "columns"): _table_column,
    ("Tabs", "tabs"): _tab,
    ("Accordion", "items"): _accordion_item,
    ("Timeline", "items"): _timeline_item,
    ("RadioGroup", "options"): _option,
    ("SelectInput", "options"): _option,
    ("LineChart", "yKeys"): _series_key,
}


def _normalize_items(items: list[Any], normalizer: Normalizer) -> list[Any]:
    result = []
    for i, item in enumerate(items):
        if isinstance(item, dict):
            result.append(normalizer(item, i))
        elif isinstance(item, (str, int, float)) and not isinstance(item, bool):
            shaped = normalizer({}, i)
            for field in _STRING_ITEM_FIELDS[normalizer]:
                shaped[field] = item if field in ("key", "value") else str(item)
            result.append(shaped)
        else:
            # nothing usable to render
            continue
    return result


# ----------------------------------------------------------------------------
# Rule 2: map aliases
# ----------------------------------------------------------------------------

_COORD_ALIASES = (("latitude", ("lat",)), ("longitude", ("lng", "lon")))

_MARKER_ALIASES = (
    ("label", ("name",)),
    ("label", ("title",)),
    ("description", ("desc",)),
    ("description", ("detail",)),
    ("address", ("location",)),
    ("category", ("type",)),
)


def _apply_aliases(obj: Item, aliases: tuple[tuple[str, tuple[str, ...]], ...]) -> Item:
    """Copy the first set variant of each group to its canonical name.

    A group's variants are removed only when the group was copied.
    """
    obj = dict(obj)
    for canonical, variants in aliases:
        if obj.get(canonical) is not None:
            continue
        value = _first(obj, *variants)
        if value is None:
            continue
        obj[canonical] = value
        for variant in variants:
            obj.pop(variant, None)
    return obj


def _normalize_map_props(props: Item) -> Item:
    props = _apply_aliases(props, _COORD_ALIASES)
    # plain "style" would collide with CSS style on the renderer
    if isinstance(props.get("style"), str) and props.get("mapStyle") is None:
        props["mapStyle"] = props.pop("style")
    markers = props.get("markers")
    if isinstance(markers, list):
        props["markers"] = [
            _apply_aliases(_apply_aliases(m, _COORD_ALIASES), _MARKER_ALIASES)
            if isinstance(m, dict)
            else m
            for m in markers
        ]
    return props


# ----------------------------------------------------------------------------
# Repairer
# ----------------------------------------------------------------------------

class Repairer:
    """Best-effort structural repair of a sanitized tree."""

    def __init__(self, settings: Settings | None = None) -> None:
        settings = settings or get_settings()
        self.suffixes = list(settings.wrapper_suffixes)

    def repair(self, tree: SpecTree) -> SpecTree:
        """
        Repair a sanitized tree.

        Args:
            tree: Output of the Sanitizer (or of an earlier repair)

        Returns:
            A new tree in which every child reference resolves and every
            element is reachable from root
        """
        tree = tree.copy_deep()
        elements = tree.elements

        self._normalize_shapes(elements)
        self._normalize_maps(elements)
        self._resolve_missing(tree)
        self._prune_dangling(elements)
        self._attach_orphans(tree)
        self._break_cycles(tree)
        return tree

    # -- rules 1 and 2 -------------------------------------------------------

    def _normalize_shapes(self, elements: dict[str, Element]) -> None:
        for el in elements.values():
            for (el_type, prop), normalizer in SHAPE_RULES.items():
                if el.type != el_type or not isinstance(el.props.get(prop), list):
                    continue
                el.props = {**el.props, prop: _normalize_items(el.props[prop], normalizer)}

    def _normalize_maps(self, elements: dict[str, Element]) -> None:
        for el in elements.values():
            if el.type == "Map":
                el.props = _normalize_map_props(el.props)

    # -- rules 3 to 5 --------------------------------------------------------

    def _resolve_missing(self, tree: SpecTree) -> None:
        elements = tree.elements

        referenced: dict[str, None] = {}
        for el in elements.values():
            for child in el.child_ids():
                referenced.setdefault(child, None)

        missing = [ref for ref in referenced if ref not in elements]
        if not missing:
            return

        # tab groups claim their orphans before generic wrappers do
        missing.sort(key=lambda ref: 0 if ref.endswith("-tabs") else 1)

        orphans: dict[str, None] = {
            key: None for key in elements if key not in referenced and key != tree.root
        }

        for ref in missing:
            if self._redirect_by_suffix(elements, orphans, ref):
                continue
            if self._synthesize_tabs(elements, orphans, ref):
                continue
            self._synthesize_card(elements, orphans, ref)

    def _redirect_by_suffix(
        self, elements: dict[str, Element], orphans: dict[str, None], ref: str
    ) -> bool:
        for suffix in self.suffixes:
            candidate = ref + suffix
            if candidate not in orphans or candidate not in elements:
                continue
            for el in elements.values():
                if el.children and ref in el.children:
                    el.children = [candidate if c == ref else c for c in el.children]
            del orphans[candidate]
            logger.debug("repair_applied", rule="suffix_redirect", missing=ref, target=candidate)
            return True
        return False

    def _synthesize_tabs(
        self, elements: dict[str, Element], orphans: dict[str, None], ref: str
    ) -> bool:
        if ref.endswith("-tabs"):
            prefix = ref[: -len("-tabs")] + "-tab-"
            contents = sorted(
                k for k in orphans if k.startswith(prefix) and elements[k].type == "TabContent"
            )
            if contents:
                self._add_tabs(elements, orphans, ref, contents)
                return True

        if "tabs" in ref or ref.startswith("tab-"):
            contents = sorted(k for k in orphans if elements[k].type == "TabContent")
            if contents:
                self._add_tabs(elements, orphans, ref, contents)
                return True

        return False

    def _add_tabs(
        self,
        elements: dict[str, Element],
        orphans: dict[str, None],
        ref: str,
        contents: list[str],
    ) -> None:
        tabs = []
        for key in contents:
            value = elements[key].props.get("value")
            if not isinstance(value, str) or not value:
                value = key
            tabs.append({"value": value, "label": value.upper()})

        elements[ref] = Element(
            type="Tabs",
            props={"defaultValue": tabs[0]["value"], "value": None, "tabs": tabs},
            children=contents,
        )
        for key in contents:
            del orphans[key]
        logger.debug("repair_applied", rule="tabs_synthesized", missing=ref, children=contents)

    def _synthesize_card(
        self, elements: dict[str, Element], orphans: dict[str, None], ref: str
    ) -> bool:
        match = CARD_PATTERN.match(ref)
        if not match:
            return False

        prefix = match.group(1) + "-"
        grouped = [k for k in orphans if k.startswith(prefix)]
        if not grouped:
            return False

        nested = {c for k in grouped for c in elements[k].child_ids()}
        top_level = [k for k in grouped if k not in nested]
        if not top_level:
            return False

        title = None
        for key in grouped:
            el = elements[key]
            if el.type == "Heading" and isinstance(el.props.get("text"), str):
                title = el.props["text"]
                break

        elements[ref] = Element(
            type="Card",
            props={"title": title} if title else {},
            children=top_level,
        )
        for key in grouped:
            del orphans[key]
        logger.debug("repair_applied", rule="card_synthesized", missing=ref, children=top_level)
        return True

    # -- rule 6 --------------------------------------------------------------

    def _prune_dangling(self, elements: dict[str, Element]) -> None:
        for key, el in elements.items():
            if not el.children:
                continue
            kept = [c for c in el.children if c in elements]
            if len(kept) != len(el.children):
                logger.debug(
                    "repair_applied",
                    rule="dangling_pruned",
                    id=key,
                    removed=[c for c in el.children if c not in elements],
                )
                el.children = kept

    def _attach_orphans(self, tree: SpecTree) -> None:
        elements = tree.elements
        root = elements[tree.root]

        while True:
            reachable = reachable_ids(tree)
            unreachable = [k for k in elements if k not in reachable]
            if not unreachable:
                return

            nested = {c for k in unreachable for c in elements[k].child_ids()}
            heads = [k for k in unreachable if k not in nested] or unreachable[:1]
            root.children = root.child_ids() + heads
            logger.debug("repair_applied", rule="orphans_attached", children=heads)

    def _break_cycles(self, tree: SpecTree) -> None:
        """Drop back edges so the output can be walked without recursion guards."""
        elements = tree.elements
        done: set[str] = set()
        path: set[str] = set()
        work: list[tuple[str, int]] = [(tree.root, 0)]
        path.add(tree.root)

        while work:
            key, pos = work[-1]
            children = elements[key].child_ids()
            if pos >= len(children):
                work.pop()
                path.discard(key)
                done.add(key)
                continue
            work[-1] = (key, pos + 1)
            child = children[pos]
            if child in path:
                elements[key].children = [c for c in children if c != child]
                work[-1] = (key, pos)
                logger.debug("repair_applied", rule="cycle_broken", id=key, child=child)
            elif child not in done:
                path.add(child)
                work.append((child, 0))


def reachable_ids(tree: SpecTree) -> set[str]:
    """Ids reachable from root through children references."""
    seen: set[str] = set()
    stack = [tree.root]
    while stack:
        key = stack.pop()
        if key in seen or key not in tree.elements:
            continue
        seen.add(key)
        stack.extend(tree.elements[key].child_ids())
    return seen


def repair(tree: SpecTree, settings: Settings | None = None) -> SpecTree:
    """Repair with a throwaway Repairer."""
    return Repairer(settings).repair(tree)
