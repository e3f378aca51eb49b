"""Hash utilities for sprig."""

import hashlib


def hash_object(data: bytes) -> str:
    """
    Compute SHA-1 hash of data.
    
    Args:
        data: Bytes to hash
    
    Returns:
        40-character lower-case hex string
    """
    return hashlib.sha1(data).hexdigest()


def hash_file(filepath: str) -> str:
    """
    Compute the blob hash of a file as it would be stored.
    
    Args:
        filepath: Path to file
    
    Returns:
        40-character hex string of ``blob <size>\\0<content>``
    """
    with open(filepath, 'rb') as f:
        data = f.read()
    return hash_object(f"blob {len(data)}\0".encode() + data)


def hex_to_raw(sha1: str) -> bytes:
    """Convert a 40-character hex hash to its 20 raw bytes."""
    raw = bytes.fromhex(sha1)
    if len(raw) != 20:
        raise ValueError(f"Not a SHA-1 hash: {sha1!r}")
    return raw


def raw_to_hex(raw: bytes) -> str:
    """Convert 20 raw hash bytes to lower-case hex."""
    return raw.hex()
