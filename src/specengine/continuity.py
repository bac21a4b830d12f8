"""Continuity payload - compact summary of the current tree for the next turn.

Handed to the generator alongside the next request so it can reuse element
ids and mutate existing structure instead of rebuilding from scratch.
"""

from pydantic import BaseModel, ConfigDict, Field

from .core import safe_json_dumps
from .spec import SpecTree, collect_state_paths


class ContinuityPayload(BaseModel):
    """Ids, structure and bound state paths of a tree."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    root: str
    root_type: str = Field(alias="rootType")
    element_ids: list[str] = Field(default_factory=list, alias="elementIds")
    structure: dict[str, list[str]] = Field(default_factory=dict)
    state_paths: list[str] = Field(default_factory=list, alias="statePaths")

    def to_json(self, indent: int = 0) -> str:
        return safe_json_dumps(self.model_dump(by_alias=True), indent=indent)


def build_continuity_payload(tree: SpecTree | None) -> ContinuityPayload | None:
    """
    Summarize a tree for cross-turn context.

    Args:
        tree: Last rendered tree

    Returns:
        The payload, or None when the tree has no usable root
    """
    if tree is None or tree.root_element is None:
        return None

    paths: set[str] = set()
    for el in tree.elements.values():
        collect_state_paths(el.props, paths)

    return ContinuityPayload(
        root=tree.root,
        root_type=tree.root_element.type,
        element_ids=list(tree.elements),
        structure={key: el.child_ids() for key, el in tree.elements.items()},
        state_paths=sorted(paths),
    )
