"""Snapshot normalization and reconciliation pipeline."""

from .sanitize import Sanitizer, SanitizeError, sanitize
from .repair import Repairer, repair, reachable_ids
from .dedupe import Deduplicator, deduplicate
from .reconcile import Reconciler, ScoreWeights, IdMapping, reconcile
from .state import LiveState, merge_turn_state, merge_live_state
from .orchestrator import SpecPipeline, process_spec

__all__ = [
    "Sanitizer",
    "SanitizeError",
    "sanitize",
    "Repairer",
    "repair",
    "reachable_ids",
    "Deduplicator",
    "deduplicate",
    "Reconciler",
    "ScoreWeights",
    "IdMapping",
    "reconcile",
    "LiveState",
    "merge_turn_state",
    "merge_live_state",
    "SpecPipeline",
    "process_spec",
]
