"""StateMerger - combine generation-turn state with live interaction state."""

import copy
import threading
from typing import Any

from ..core import get_logger
from ..spec import can_set_path, get_path, normalize_path, set_path, split_path

logger = get_logger(__name__)


def merge_turn_state(old: dict[str, Any] | None, new: dict[str, Any] | None) -> dict[str, Any]:
    """
    Merge the state of two generation turns.

    Keys only in ``old`` survive, keys in both are merged recursively when
    both sides are objects, and otherwise the new value wins outright
    (arrays are replaced, never concatenated). Inputs are not mutated.
    """
    old = old or {}
    new = new or {}
    merged = copy.deepcopy(old)
    for key, value in new.items():
        previous = merged.get(key)
        if isinstance(previous, dict) and isinstance(value, dict):
            merged[key] = merge_turn_state(previous, value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


class LiveState:
    """
    Values written by user interaction since the last completed turn.

    The rendering boundary is the only writer (``record``); the pipeline
    reads it when merging. A lock serializes readers against the writer, so
    a multi-threaded host can share one instance per conversation.

    Examples:
        >>> live = LiveState()
        >>> live.record("/form/email", "a@b.c")
        >>> live.apply({"form": {"email": "", "name": "x"}})
        {'form': {'email': 'a@b.c', 'name': 'x'}}
    """

    def __init__(self) -> None:
        self._values: dict[str, Any] = {}
        self._lock = threading.Lock()

    def record(self, path: str, value: Any) -> None:
        """Record an interaction; an ancestor write supersedes earlier writes beneath it."""
        path = normalize_path(path)
        if path == "/":
            logger.warning("live_write_ignored", reason="empty_path")
            return
        prefix = path + "/"
        with self._lock:
            for existing in [p for p in self._values if p.startswith(prefix)]:
                del self._values[existing]
            self._values.pop(path, None)
            self._values[path] = copy.deepcopy(value)

    def get(self, path: str, default: Any = None) -> Any:
        with self._lock:
            return copy.deepcopy(self._values.get(normalize_path(path), default))

    def paths(self) -> list[str]:
        """Touched paths in write order."""
        with self._lock:
            return list(self._values)

    def snapshot(self) -> dict[str, Any]:
        with self._lock:
            return copy.deepcopy(self._values)

    def clear(self) -> None:
        """Forget all interactions, e.g. once a turn has completed."""
        with self._lock:
            self._values.clear()

    def apply(self, state: dict[str, Any]) -> dict[str, Any]:
        """Return a copy of ``state`` with every live value written over it."""
        return merge_live_state(state, self.snapshot())

    def __len__(self) -> int:
        with self._lock:
            return len(self._values)

    def __contains__(self, path: str) -> bool:
        with self._lock:
            return normalize_path(path) in self._values


def merge_live_state(state: dict[str, Any], live: "LiveState | dict[str, Any]") -> dict[str, Any]:
    """
    Write live values over a turn-merged state.

    Args:
        state: Turn-merged state (not mutated)
        live: A LiveState handle, or a path -> value mapping in write order

    Returns:
        Merged state where every touched path holds its live value, except
        array indexes past the end of the turn-merged array, which are dropped
    """
    values = live.snapshot() if isinstance(live, LiveState) else live
    merged = copy.deepcopy(state or {})
    for path, value in values.items():
        if not split_path(path):
            continue
        if not can_set_path(merged, path):
            logger.debug("live_value_dropped", path=path)
            continue
        if get_path(merged, path) != value:
            logger.debug("live_value_kept", path=path)
        merged = set_path(merged, path, copy.deepcopy(value))
    return merged
