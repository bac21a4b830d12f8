"""Tests for the continuity payload."""

import orjson
import pytest

from specengine import build_continuity_payload
from specengine.spec import SpecTree


@pytest.mark.unit
def test_payload_summarizes_tree(dashboard_v1):
    payload = build_continuity_payload(dashboard_v1)

    assert payload.root == "page"
    assert payload.root_type == "Stack"
    assert payload.element_ids == list(dashboard_v1.elements)
    assert payload.structure["grid"] == ["ny", "ldn"]
    assert payload.structure["title"] == []
    assert payload.state_paths == ["/ldn/temp", "/ny/temp"]


@pytest.mark.unit
def test_payload_collects_two_way_bindings():
    tree = SpecTree.model_validate({
        "root": "form",
        "elements": {
            "form": {"type": "Stack", "children": ["email"]},
            "email": {"type": "TextInput", "props": {"value": {"$bindState": "form/email"}}},
        },
    })

    assert build_continuity_payload(tree).state_paths == ["/form/email"]


@pytest.mark.unit
def test_payload_json_uses_wire_names(dashboard_v1):
    data = orjson.loads(build_continuity_payload(dashboard_v1).to_json())

    assert data["rootType"] == "Stack"
    assert "elementIds" in data
    assert "statePaths" in data


@pytest.mark.unit
def test_payload_none_without_root():
    assert build_continuity_payload(None) is None
    assert build_continuity_payload(SpecTree(root="missing")) is None
