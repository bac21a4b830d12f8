"""Pipeline Orchestrator - sequence sanitize, repair, dedupe and reconcile per snapshot."""

from ..core import (
    LogContext,
    LRUCache,
    Settings,
    canonical_json,
    get_logger,
    get_settings,
    hash_fields,
)
from ..spec import SpecTree
from .dedupe import Deduplicator
from .reconcile import Reconciler
from .repair import Repairer
from .sanitize import RawSnapshot, Sanitizer
from .state import LiveState, merge_live_state

logger = get_logger(__name__)


class SpecPipeline:
    """
    Turns the latest raw snapshot into the tree to render.

    Pure with respect to its explicit inputs: the same (new, previous) pair
    always yields the same tree. Live interaction state is passed in as a
    handle and applied last, so it never enters the memoized result.

    Examples:
        >>> pipeline = SpecPipeline()
        >>> tree = pipeline.process(raw_json, previous=last_tree, live=live_state)
    """

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()
        self.sanitizer = Sanitizer(self.settings)
        self.repairer = Repairer(self.settings)
        self.deduplicator = Deduplicator()
        self.reconciler = Reconciler(self.settings)
        self.cache: LRUCache[tuple[SpecTree | None]] | None = (
            LRUCache(max_size=self.settings.cache_size, ttl_seconds=self.settings.cache_ttl)
            if self.settings.enable_cache
            else None
        )

    def normalize(self, tree: SpecTree) -> SpecTree:
        """Repair then deduplicate."""
        return self.deduplicator.deduplicate(self.repairer.repair(tree))

    def process(
        self,
        new: RawSnapshot,
        previous: RawSnapshot = None,
        live: LiveState | None = None,
    ) -> SpecTree | None:
        """
        Produce the tree to render.

        Args:
            new: Current materialized snapshot (tree, dict or JSON text), or None
            previous: Last tree this pipeline produced (or its wire form), or None
            live: Interaction state recorded since the last completed turn

        Returns:
            The finished tree, or None when there is nothing to render
        """
        key = self._fingerprint(new, previous) if self.cache is not None else None
        cached = self.cache.get(key) if key is not None else None
        if cached is not None:
            result = cached[0]
            logger.debug("pipeline_cache_hit", fingerprint=key)
        else:
            with LogContext(fingerprint=key):
                result = self._run(new, previous)
            if key is not None:
                self.cache.set(key, (result,))

        if result is None:
            return None
        result = result.copy_deep()
        if live is not None and len(live):
            result.state = merge_live_state(result.state, live)
        return result

    def _run(self, new: RawSnapshot, previous: RawSnapshot) -> SpecTree | None:
        sanitized = self.sanitizer.sanitize(new)
        if previous is not None:
            previous = self.sanitizer.sanitize(previous)

        if sanitized is None:
            if previous is None:
                logger.info("pipeline_empty")
                return None
            logger.info("pipeline_fallback", reason="new_unusable")
            return self.normalize(previous)

        current = self.normalize(sanitized)
        if previous is None:
            return current

        reconciled = self.reconciler.reconcile(current, self.normalize(previous))
        return self.normalize(reconciled)

    def _fingerprint(self, new: RawSnapshot, previous: RawSnapshot) -> str:
        return hash_fields(
            type(new).__name__, _snapshot_key(new), type(previous).__name__, _snapshot_key(previous)
        )


def _snapshot_key(raw: RawSnapshot) -> str:
    if isinstance(raw, SpecTree):
        return canonical_json(raw.to_dict())
    if isinstance(raw, bytes):
        return raw.decode("utf-8", errors="replace")
    if isinstance(raw, str):
        return raw
    return canonical_json(raw)


def process_spec(
    new: RawSnapshot,
    previous: RawSnapshot = None,
    live: LiveState | None = None,
    settings: Settings | None = None,
) -> SpecTree | None:
    """Run the pipeline once with a fresh, uncached SpecPipeline."""
    settings = (settings or get_settings()).model_copy(update={"enable_cache": False})
    return SpecPipeline(settings).process(new, previous, live)
