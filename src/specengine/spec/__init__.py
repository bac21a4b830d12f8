"""Spec tree data model, element catalog and state paths."""

from .models import Element, RepeatSpec, SpecTree
from .catalog import CATALOG, DATA_BEARING_TYPES, LABEL_PROPS, check_props, is_known_type
from .paths import (
    collect_state_paths,
    binding_path,
    split_path,
    normalize_path,
    get_path,
    has_path,
    set_path,
    can_set_path,
)

__all__ = [
    "Element",
    "RepeatSpec",
    "SpecTree",
    "CATALOG",
    "DATA_BEARING_TYPES",
    "LABEL_PROPS",
    "check_props",
    "is_known_type",
    "collect_state_paths",
    "binding_path",
    "split_path",
    "normalize_path",
    "get_path",
    "has_path",
    "set_path",
    "can_set_path",
]
