"""
Spec reconciliation and repair engine.

Turns raw, possibly broken UI spec snapshots from a generative model into
trees safe to render, and maps each new snapshot onto the previous one so
unchanged elements keep their identity across turns.
"""

from .spec import Element, RepeatSpec, SpecTree
from .pipeline import (
    Sanitizer,
    Repairer,
    Deduplicator,
    Reconciler,
    ScoreWeights,
    LiveState,
    SpecPipeline,
    merge_turn_state,
    merge_live_state,
    process_spec,
)
from .continuity import ContinuityPayload, build_continuity_payload

__version__ = "0.1.0"

__all__ = [
    "Element",
    "RepeatSpec",
    "SpecTree",
    "Sanitizer",
    "Repairer",
    "Deduplicator",
    "Reconciler",
    "ScoreWeights",
    "LiveState",
    "SpecPipeline",
    "merge_turn_state",
    "merge_live_state",
    "process_spec",
    "ContinuityPayload",
    "build_continuity_payload",
]
