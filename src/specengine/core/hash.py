"""Fast non-cryptographic hashing for snapshot fingerprints."""

import xxhash


def hash_string(text: str) -> str:
    """Hash string to an xxhash64 hex digest."""
    return xxhash.xxh64(text.encode("utf-8")).hexdigest()


def hash_fields(*fields: str) -> str:
    """
    Hash multiple fields together (deterministic).

    Args:
        *fields: Fields to combine and hash

    Returns:
        Hex digest of combined fields

    Examples:
        >>> hash_fields(new_snapshot_json, previous_snapshot_json)
        'b4f3c2...'
    """
    combined = "\x00".join(fields)  # Null byte separator
    return hash_string(combined)


__all__ = [
    "hash_string",
    "hash_fields",
]
