"""Hash utilities for Graft."""

import hashlib


def hash_bytes(data: bytes) -> str:
    """
    Compute SHA-1 hash of data.

    Args:
        data: Bytes to hash

    Returns:
        40-character hex string
    """
    return hashlib.sha1(data).hexdigest()


def hash_object(kind: str, payload: bytes) -> str:
    """
    Compute the content address of an object.

    Objects are hashed with a header naming their kind and size, so a blob
    and a tree with identical payloads never share an address.
    Format: <kind> <size>\\0<payload>

    Args:
        kind: Object kind ('blob', 'tree' or 'commit')
        payload: Serialized object body

    Returns:
        40-character hex string
    """
    header = f"{kind} {len(payload)}\0".encode()
    return hash_bytes(header + payload)


def is_hex_hash(value: str, min_length: int = 4) -> bool:
    """Check whether value looks like a full or abbreviated object hash."""
    if not min_length <= len(value) <= 40:
        return False
    return all(c in '0123456789abcdef' for c in value)
