"""Exceptions raised by the sprig storage core."""


class SprigError(Exception):
    """Base class for all sprig errors."""


class NotFound(SprigError, FileNotFoundError):
    """A requested object does not exist in the store."""


class InvalidFormat(SprigError, ValueError):
    """Malformed binary or text structure (index file, extension, record)."""


class InvalidObject(InvalidFormat):
    """An object's canonical bytes could not be decoded."""


class CorruptObject(InvalidFormat):
    """A stored object file could not be decompressed."""


class HashMismatch(SprigError):
    """Content does not hash to the value the caller asserted."""
    
    def __init__(self, expected: str, actual: str, what: str = 'object'):
        super().__init__(f"Hash mismatch for {what}: expected {expected}, got {actual}")
        self.expected = expected
        self.actual = actual


class LockError(SprigError):
    """Another writer holds the lock on a file."""
