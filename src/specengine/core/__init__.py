"""Core utilities and infrastructure."""

from .config import Settings, get_settings
from .validate import (
    ValidationError,
    validate_json_size,
    validate_json_depth,
)
from .logging_config import configure_logging, get_logger, LogContext
from .json import extract_json, safe_json_dumps, canonical_json, JSONParseError, JSONDepthError
from .hash import hash_string, hash_fields
from .cache import LRUCache, Stats


__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Validation
    "ValidationError",
    "validate_json_size",
    "validate_json_depth",
    # Logging
    "configure_logging",
    "get_logger",
    "LogContext",
    # JSON
    "extract_json",
    "safe_json_dumps",
    "canonical_json",
    "JSONParseError",
    "JSONDepthError",
    # Hashing
    "hash_string",
    "hash_fields",
    # Caching
    "LRUCache",
    "Stats",
]
