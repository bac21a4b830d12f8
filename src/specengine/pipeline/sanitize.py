"""Sanitizer - discard structurally invalid element entries from a raw snapshot."""

from typing import Any

from pydantic import ValidationError as PydanticValidationError

from ..core import (
    JSONDepthError,
    JSONParseError,
    Settings,
    ValidationError,
    extract_json,
    get_logger,
    get_settings,
    validate_json_depth,
    validate_json_size,
)
from ..spec import RepeatSpec, SpecTree, check_props, is_known_type

logger = get_logger(__name__)


class SanitizeError(ValidationError):
    """A snapshot could not be turned into a tree."""

    def __init__(self, reason: str, detail: str | None = None) -> None:
        super().__init__(f"{reason}: {detail}" if detail else reason)
        self.reason = reason
        self.detail = detail


RawSnapshot = SpecTree | dict[str, Any] | str | bytes | None


def _cyclic_ids(graph: dict[str, list[str]]) -> set[str]:
    """
    Ids that sit on a cycle of the children graph.

    Iterative Tarjan; members of a strongly connected component of size > 1,
    plus self-referencing nodes.
    """
    index: dict[str, int] = {}
    low: dict[str, int] = {}
    on_stack: set[str] = set()
    stack: list[str] = []
    cyclic: set[str] = set()
    counter = 0

    for start in graph:
        if start in index:
            continue
        index[start] = low[start] = counter
        counter += 1
        stack.append(start)
        on_stack.add(start)
        work = [(start, iter(graph[start]))]

        while work:
            node, edges = work[-1]
            descended = False
            for nxt in edges:
                if nxt not in graph:
                    continue
                if nxt not in index:
                    index[nxt] = low[nxt] = counter
                    counter += 1
                    stack.append(nxt)
                    on_stack.add(nxt)
                    work.append((nxt, iter(graph[nxt])))
                    descended = True
                    break
                if nxt in on_stack:
                    low[node] = min(low[node], index[nxt])
            if descended:
                continue

            work.pop()
            if work:
                parent = work[-1][0]
                low[parent] = min(low[parent], low[node])

            if low[node] == index[node]:
                component = []
                while True:
                    member = stack.pop()
                    on_stack.discard(member)
                    component.append(member)
                    if member == node:
                        break
                if len(component) > 1 or node in graph[node]:
                    cyclic.update(component)

    return cyclic


class Sanitizer:
    """
    Turns a raw, possibly partial snapshot into a normalized SpecTree.

    Guarantees on success:
    - every element has a string ``type`` and an object ``props``
    - no ``children`` entry references an element that was dropped here
    - the children graph has no cycles

    References to ids that never appeared in the snapshot are left in place
    for the Repairer; reachability from root is not guaranteed.
    """

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()

    def sanitize(self, raw: RawSnapshot) -> SpecTree | None:
        """Sanitize a snapshot; None when it is not worth rendering."""
        try:
            return self.check(raw)
        except SanitizeError as e:
            logger.info("sanitize_failed", reason=e.reason, detail=e.detail)
            return None

    def check(self, raw: RawSnapshot) -> SpecTree:
        """
        Sanitize a snapshot, raising on failure.

        Args:
            raw: SpecTree, plain dict, or JSON text (possibly truncated)

        Returns:
            The sanitized tree

        Raises:
            SanitizeError: If the snapshot has no usable root
        """
        loaded = self._load(raw)

        try:
            validate_json_depth(loaded, self.settings.max_json_depth)
        except ValidationError as e:
            raise SanitizeError("too_deep", str(e)) from e

        root = loaded.get("root")
        raw_elements = loaded.get("elements")
        if not isinstance(root, str) or not root:
            raise SanitizeError("missing_root")
        if not isinstance(raw_elements, dict) or not _is_element(raw_elements.get(root)):
            raise SanitizeError("unusable_root", root)

        elements: dict[str, dict[str, Any]] = {}
        dropped: set[str] = set()
        for key, entry in raw_elements.items():
            if not _is_element(entry):
                dropped.add(key)
                logger.debug("element_dropped", id=key, reason="malformed")
                continue
            elements[key] = self._clean_element(key, entry)

        graph = {key: el.get("children") or [] for key, el in elements.items()}
        for key in _cyclic_ids(graph):
            if key == root:
                continue
            del elements[key]
            dropped.add(key)
            logger.debug("element_dropped", id=key, reason="cycle")

        for key, el in elements.items():
            children = el.get("children")
            if children is None:
                continue
            el["children"] = [c for c in children if c not in dropped and c != root]

        state = loaded.get("state")
        tree = SpecTree.model_validate(
            {
                "root": root,
                "elements": elements,
                "state": state if isinstance(state, dict) else {},
            }
        )
        if dropped:
            logger.debug("sanitized", root=root, kept=len(elements), dropped=len(dropped))
        return tree

    def _load(self, raw: RawSnapshot) -> dict[str, Any]:
        if raw is None:
            raise SanitizeError("empty")
        if isinstance(raw, SpecTree):
            return raw.to_dict()
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8", errors="replace")
        if isinstance(raw, str):
            try:
                validate_json_size(raw, self.settings.max_spec_bytes, "Snapshot")
                return extract_json(raw, repair=True)
            except JSONDepthError as e:
                raise SanitizeError("too_deep", str(e)) from e
            except (ValidationError, JSONParseError) as e:
                raise SanitizeError("unparseable", str(e)) from e
        if isinstance(raw, dict):
            return raw
        raise SanitizeError("unsupported_input", type(raw).__name__)

    def _clean_element(self, key: str, entry: dict[str, Any]) -> dict[str, Any]:
        el = dict(entry)
        props = el.get("props")
        if not isinstance(props, dict):
            props = {}
        el["props"] = props

        children = el.get("children")
        if isinstance(children, list):
            el["children"] = [c for c in children if isinstance(c, str) and c]
        else:
            el.pop("children", None)

        repeat = el.get("repeat")
        if repeat is not None:
            try:
                el["repeat"] = RepeatSpec.model_validate(repeat)
            except PydanticValidationError:
                logger.debug("repeat_dropped", id=key)
                el.pop("repeat")

        if not is_known_type(el["type"]):
            logger.debug("unknown_type", id=key, type=el["type"])
        problems = check_props(el["type"], props)
        if problems:
            logger.debug("props_nonconforming", id=key, type=el["type"], problems=problems)
        return el


def _is_element(entry: Any) -> bool:
    return isinstance(entry, dict) and isinstance(entry.get("type"), str) and bool(entry["type"])


def sanitize(raw: RawSnapshot, settings: Settings | None = None) -> SpecTree | None:
    """Sanitize with a throwaway Sanitizer."""
    return Sanitizer(settings).sanitize(raw)
