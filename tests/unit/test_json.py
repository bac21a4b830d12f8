"""Tests for JSON helpers."""

import pytest
from hypothesis import given, strategies as st

from specengine.core import JSONDepthError, JSONParseError, canonical_json, extract_json, safe_json_dumps


@pytest.mark.unit
def test_extract_plain_object():
    assert extract_json('{"root": "a"}') == {"root": "a"}


@pytest.mark.unit
def test_extract_from_markdown_fence():
    text = 'Here you go:\n```json\n{"root": "a", "elements": {}}\n```\nDone.'

    assert extract_json(text) == {"root": "a", "elements": {}}


@pytest.mark.unit
def test_extract_repairs_trailing_comma():
    assert extract_json('{"a": 1, "b": [1, 2,],}') == {"a": 1, "b": [1, 2]}


@pytest.mark.unit
def test_extract_without_repair_raises():
    with pytest.raises(JSONParseError):
        extract_json('{"a": 1,}', repair=False)


@pytest.mark.unit
def test_extract_no_object():
    with pytest.raises(JSONParseError):
        extract_json("plain text")


@pytest.mark.unit
def test_canonical_json_ignores_key_order():
    assert canonical_json({"b": 1, "a": [1, {"y": 2, "x": 1}]}) == canonical_json(
        {"a": [1, {"x": 1, "y": 2}], "b": 1}
    )


@pytest.mark.unit
def test_canonical_json_distinguishes_types():
    assert canonical_json(1) != canonical_json("1")


@pytest.mark.unit
def test_safe_json_dumps_indent():
    assert safe_json_dumps({"a": 1}, indent=2) == '{\n  "a": 1\n}'


@given(st.dictionaries(st.text(alphabet="abcxyz _-", max_size=5), st.integers(-1000, 1000), max_size=5))
def test_dumps_then_extract(data):
    """Compact dumps always extract back to the same object."""
    assert extract_json(safe_json_dumps(data)) == data


@pytest.mark.unit
def test_extract_deep_nesting_raises():
    """Nesting past the decoders' recursion limit is a parse error, not a crash."""
    text = '{"a": ' + "[" * 50000 + "]" * 50000 + "}"

    with pytest.raises(JSONDepthError):
        extract_json(text)
