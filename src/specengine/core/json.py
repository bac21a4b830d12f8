"""Fast JSON parsing and canonical encoding with multiple backends."""

from typing import Any
import json

import msgspec
import orjson
from json_repair import repair_json


class JSONParseError(Exception):
    """JSON parsing failed."""

    def __init__(self, message: str, original: Exception | None = None) -> None:
        super().__init__(message)
        self.original = original


class JSONDepthError(JSONParseError):
    """JSON nesting exceeded what the decoders can handle."""


def extract_json_boundaries(text: str) -> tuple[str, int, int] | None:
    """
    Extract JSON string and boundaries from text.

    A snapshot that is still streaming may have no closing brace yet; in that
    case the end boundary is the end of the text and repair closes it.

    Args:
        text: Text potentially containing JSON

    Returns:
        (extracted_text, start, end) or None if not found
    """
    working_text = text

    # Remove markdown code blocks
    if "```" in working_text:
        if "```json" in working_text:
            start_marker = working_text.find("```json") + 7
        else:
            start_marker = working_text.find("```") + 3

        end_marker = working_text.find("```", start_marker)
        if end_marker != -1:
            working_text = working_text[start_marker:end_marker].strip()
        else:
            working_text = working_text[start_marker:].strip()

    start = working_text.find("{")
    if start == -1:
        return None

    end = working_text.rfind("}")
    if end < start:
        return (working_text, start, len(working_text))

    return (working_text, start, end + 1)


def _expect_dict(result: Any) -> dict[str, Any]:
    if not isinstance(result, dict):
        raise JSONParseError(f"Expected dict, got {type(result).__name__}")
    return result


def extract_json(text: str, repair: bool = True) -> dict[str, Any]:
    """
    Extract and parse JSON from text with automatic extraction and multiple fallbacks.

    Args:
        text: Text containing JSON
        repair: Attempt to repair invalid or truncated JSON with json_repair

    Returns:
        Parsed JSON dictionary

    Raises:
        JSONParseError: If parsing fails
        JSONDepthError: If the text nests deeper than the decoders recurse
    """
    text = text.strip()

    boundaries = extract_json_boundaries(text)
    if boundaries is None:
        raise JSONParseError("No JSON object found in text")

    extracted_text, start, end = boundaries
    json_str = extracted_text[start:end]

    # Try msgspec first (fastest)
    try:
        decoder = msgspec.json.Decoder()
        return _expect_dict(decoder.decode(json_str.encode("utf-8")))
    except RecursionError as e:
        raise JSONDepthError("JSON nesting too deep to decode", e)
    except msgspec.DecodeError as e:
        if not repair:
            raise JSONParseError(f"Invalid JSON: {e}", e)

    # Try standard library
    try:
        return _expect_dict(json.loads(json_str))
    except RecursionError as e:
        raise JSONDepthError("JSON nesting too deep to decode", e)
    except json.JSONDecodeError as e:
        # Last resort: try json_repair
        try:
            repaired = repair_json(json_str)
            return _expect_dict(json.loads(repaired))
        except JSONParseError:
            raise
        except Exception as repair_error:
            raise JSONParseError(f"JSON repair failed: {repair_error}", e)


def safe_json_dumps(obj: Any, **kwargs: Any) -> str:
    """
    Encode object to JSON string using fastest available library.

    Args:
        obj: Object to encode
        **kwargs: Additional arguments (indent, etc.)

    Returns:
        JSON string
    """
    indent = kwargs.get("indent", 0)

    # Use orjson for compact output (fastest)
    if indent == 0:
        try:
            return orjson.dumps(obj).decode("utf-8")
        except (TypeError, ValueError):
            # Fallback for edge cases (e.g., integers outside 64-bit range)
            pass

    # Use msgspec for compact output (very fast)
    if indent == 0:
        try:
            encoder = msgspec.json.Encoder()
            return encoder.encode(obj).decode("utf-8")
        except (TypeError, ValueError):
            pass

    # Use stdlib for pretty-printed output or as fallback (most compatible)
    return json.dumps(obj, indent=indent if indent > 0 else None)


def canonical_json(obj: Any) -> str:
    """
    Encode object with sorted keys so deep-equal values encode identically.

    Args:
        obj: Object to encode

    Returns:
        Canonical JSON string
    """
    try:
        return orjson.dumps(obj, option=orjson.OPT_SORT_KEYS).decode("utf-8")
    except (TypeError, ValueError):
        return json.dumps(obj, sort_keys=True, separators=(",", ":"), default=str)
