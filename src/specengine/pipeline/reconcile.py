"""Reconciler - map a new tree onto the previous one so unchanged parts keep their ids.

Matching is greedy and top-down. Starting from the two roots, each new child
is compared with every unused child of its matched old parent; the best
candidate with a non-negative score is taken and the pair is recursed into.
Nothing is ever re-assigned, so the cost stays at O(old x new) per node.
"""

from collections import Counter
from dataclasses import dataclass, field

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..core import Settings, get_logger, get_settings
from ..spec import LABEL_PROPS, Element, SpecTree, collect_state_paths
from .state import merge_turn_state

logger = get_logger(__name__)

REJECT = -1


class ScoreWeights(BaseModel):
    """Heuristic match weights; the ordering between them is what matters."""

    model_config = ConfigDict(frozen=True)

    label: int = Field(default=10, ge=0)
    binding: int = Field(default=5, ge=0)
    child_types: int = Field(default=3, ge=0)
    position: int = Field(default=2, ge=0)

    @model_validator(mode="after")
    def _ordered(self) -> "ScoreWeights":
        if not self.label > self.binding > self.child_types > self.position:
            raise ValueError("weights must satisfy label > binding > child_types > position")
        return self

    @classmethod
    def from_settings(cls, settings: Settings) -> "ScoreWeights":
        return cls(
            label=settings.score_label,
            binding=settings.score_binding,
            child_types=settings.score_child_types,
            position=settings.score_position,
        )


@dataclass
class IdMapping:
    """Result of matching: new element id -> id used in the output tree."""

    ids: dict[str, str] = field(default_factory=dict)
    matched: set[str] = field(default_factory=set)

    @property
    def match_rate(self) -> float:
        return len(self.matched) / len(self.ids) if self.ids else 0.0

    def __getitem__(self, new_id: str) -> str:
        return self.ids.get(new_id, new_id)


def _same_label(new: Element, old: Element) -> bool:
    for key in LABEL_PROPS:
        a, b = new.props.get(key), old.props.get(key)
        if isinstance(a, str) and isinstance(b, str) and a.strip() and a.casefold() == b.casefold():
            return True
    return False


class Reconciler:
    """Matches elements across two normalized snapshots."""

    def __init__(self, settings: Settings | None = None, weights: ScoreWeights | None = None) -> None:
        settings = settings or get_settings()
        self.weights = weights or ScoreWeights.from_settings(settings)

    def score(
        self,
        new: Element,
        old: Element,
        new_tree: SpecTree,
        old_tree: SpecTree,
        new_index: int,
        old_index: int,
    ) -> int:
        """
        Similarity of two candidate elements.

        Returns:
            -1 when the types differ, otherwise a non-negative score
        """
        if new.type != old.type:
            return REJECT

        w = self.weights
        total = 0

        if _same_label(new, old):
            total += w.label

        shared = collect_state_paths(new.props) & collect_state_paths(old.props)
        total += w.binding * len(shared)

        new_types = Counter(new_tree.elements[c].type for c in new.child_ids() if c in new_tree.elements)
        old_types = Counter(old_tree.elements[c].type for c in old.child_ids() if c in old_tree.elements)
        if new_types == old_types:
            total += w.child_types

        if new_index == old_index:
            total += w.position

        return total

    def match(self, new_tree: SpecTree, old_tree: SpecTree) -> IdMapping:
        """
        Resolve the id mapping from ``new_tree`` onto ``old_tree``.

        Unmatched elements keep their own id unless the previous tree used
        it, in which case they get a deterministic fresh one.
        """
        mapping = IdMapping()
        new_root = new_tree.root_element
        old_root = old_tree.root_element
        if new_root is None or old_root is None or new_root.type != old_root.type:
            mapping.ids = {key: key for key in new_tree.elements}
            return mapping

        pairs: dict[str, str] = {new_tree.root: old_tree.root}
        used_old: set[str] = {old_tree.root}
        stack = [(new_tree.root, old_tree.root)]

        while stack:
            new_id, old_id = stack.pop()
            new_children = new_tree.elements[new_id].child_ids()
            old_children = [
                c for c in old_tree.elements[old_id].child_ids() if c in old_tree.elements
            ]
            matched_here: list[tuple[str, str]] = []

            for new_index, child in enumerate(new_children):
                if child in pairs or child not in new_tree.elements:
                    continue
                best_id, best_score = None, REJECT
                for old_index, candidate in enumerate(old_children):
                    if candidate in used_old:
                        continue
                    score = self.score(
                        new_tree.elements[child],
                        old_tree.elements[candidate],
                        new_tree,
                        old_tree,
                        new_index,
                        old_index,
                    )
                    if score > best_score:
                        best_id, best_score = candidate, score
                if best_id is None:
                    continue
                pairs[child] = best_id
                used_old.add(best_id)
                matched_here.append((child, best_id))

            # depth-first in sibling order
            stack.extend(reversed(matched_here))

        mapping.matched = set(pairs)
        # previous-turn ids are only inherited through a match
        taken = set(pairs.values()) | set(old_tree.elements)
        for key in new_tree.elements:
            if key in pairs:
                mapping.ids[key] = pairs[key]
                continue
            fresh = key
            n = 1
            while fresh in taken:
                fresh = f"{key}~{n}"
                n += 1
            taken.add(fresh)
            mapping.ids[key] = fresh
        return mapping

    def reconcile(self, new_tree: SpecTree, old_tree: SpecTree) -> SpecTree:
        """
        Remap ``new_tree`` ids onto ``old_tree`` and merge the turn state.

        Root type mismatch means full replacement: the new tree is returned
        unchanged, state included, and nothing is matched.
        """
        new_root = new_tree.root_element
        old_root = old_tree.root_element
        if new_root is None or old_root is None or new_root.type != old_root.type:
            logger.info(
                "reconcile_replaced",
                new_root_type=new_root.type if new_root else None,
                old_root_type=old_root.type if old_root else None,
            )
            return new_tree.copy_deep()

        mapping = self.match(new_tree, old_tree)

        elements: dict[str, Element] = {}
        for key, el in new_tree.elements.items():
            remapped = el.model_copy(deep=True)
            if remapped.children is not None:
                remapped.children = [mapping[c] for c in remapped.children]
            elements[mapping[key]] = remapped

        result = SpecTree(
            root=mapping[new_tree.root],
            elements=elements,
            state=merge_turn_state(old_tree.state, new_tree.state),
        )
        logger.info(
            "reconcile_complete",
            elements=len(elements),
            matched=len(mapping.matched),
            match_rate=round(mapping.match_rate, 3),
        )
        return result


def reconcile(new_tree: SpecTree, old_tree: SpecTree, settings: Settings | None = None) -> SpecTree:
    """Reconcile with a throwaway Reconciler."""
    return Reconciler(settings).reconcile(new_tree, old_tree)
