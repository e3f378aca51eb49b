"""Content-addressed object store.

Objects live under ``<objects_dir>/<first 2 hex>/<remaining 38 hex>``,
compressed with zlib. A file's name is the SHA-1 of its uncompressed bytes,
so writing the same bytes twice lands on the same path with the same content.
"""

import logging
import os
import tempfile
import zlib
from pathlib import Path
from typing import Tuple

from .errors import CorruptObject, HashMismatch, InvalidFormat, InvalidObject, NotFound
from .hash import hash_object

logger = logging.getLogger(__name__)

# Enough to cover "commit <size>\0" for any realistic size.
_HEADER_PROBE = 64
_HEX = frozenset("0123456789abcdef")


class ObjectStore:
    """
    Loose object database rooted at an ``objects`` directory.
    
    The store treats object bytes as opaque; framing (``<type> <size>\\0``)
    is the object model's concern.
    """
    
    def __init__(self, objects_dir, compression_level: int = -1):
        """
        Initialize object store.
        
        Args:
            objects_dir: Directory holding the two-character shard directories
            compression_level: zlib level, -1 for the library default
        """
        self.objects_dir = Path(objects_dir)
        self.compression_level = compression_level
    
    def path(self, sha1: str) -> Path:
        """
        Get filesystem path for an object.
        
        Example: ab/cdef0123456789... for hash abcdef0123456789...
        """
        sha1 = sha1.lower()
        return self.objects_dir / sha1[:2] / sha1[2:]
    
    def exists(self, sha1: str) -> bool:
        """Check if object exists in the store."""
        return self.path(sha1).is_file()
    
    def put(self, data: bytes) -> str:
        """
        Store bytes and return their SHA-1.
        
        Writing is idempotent: if the object file already exists it is
        left untouched. New files are written to a temporary name in the
        shard directory and renamed into place.
        
        Args:
            data: Canonical object bytes
        
        Returns:
            str: 40-character hex hash of ``data``
        """
        sha1 = hash_object(data)
        path = self.path(sha1)
        
        if path.exists():
            logger.debug("Object %s already stored", sha1[:7])
            return sha1
        
        path.parent.mkdir(parents=True, exist_ok=True)
        compressed = zlib.compress(data, self.compression_level)
        
        fd, tmp_name = tempfile.mkstemp(prefix='tmp_obj_', dir=path.parent)
        try:
            with os.fdopen(fd, 'wb') as f:
                f.write(compressed)
            os.replace(tmp_name, path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise
        
        logger.debug("Stored object %s (%d bytes)", sha1[:7], len(data))
        return sha1
    
    def get(self, sha1: str, verify: bool = False) -> bytes:
        """
        Read and decompress an object.
        
        Args:
            sha1: 40-character hex hash
            verify: Recompute the hash of the decompressed bytes
        
        Returns:
            bytes: Uncompressed object bytes
        
        Raises:
            NotFound: No object with that hash
            CorruptObject: The file is not valid zlib data
            HashMismatch: ``verify`` is set and the content hashes differently
        """
        compressed = self._read_compressed(sha1)
        
        try:
            data = zlib.decompress(compressed)
        except zlib.error as e:
            raise CorruptObject(f"Object {sha1} is corrupt: {e}") from e
        
        if verify:
            actual = hash_object(data)
            if actual != sha1.lower():
                raise HashMismatch(sha1.lower(), actual)
        
        return data
    
    def read_header(self, sha1: str) -> Tuple[str, int]:
        """
        Read only the ``<type> <size>`` header of an object.
        
        Returns:
            Tuple of (type name, declared body size)
        """
        compressed = self._read_compressed(sha1)
        
        try:
            head = zlib.decompressobj().decompress(compressed, _HEADER_PROBE)
        except zlib.error as e:
            raise CorruptObject(f"Object {sha1} is corrupt: {e}") from e
        
        null_idx = head.find(b'\0')
        if null_idx < 0:
            raise InvalidObject(f"Object {sha1} has no header terminator")
        
        from .objects import parse_header
        return parse_header(head[:null_idx])
    
    def resolve_prefix(self, prefix: str) -> str:
        """
        Expand an abbreviated hash (at least 4 hex digits).
        
        Raises:
            NotFound: No stored object starts with ``prefix``
            InvalidFormat: Not hex, too short, or matches several objects
        """
        prefix = prefix.lower()
        if len(prefix) < 4 or len(prefix) > 40 or any(c not in _HEX for c in prefix):
            raise InvalidFormat(f"Not a valid object name: {prefix}")
        
        shard = self.objects_dir / prefix[:2]
        matches = []
        if shard.is_dir():
            matches = sorted(
                prefix[:2] + p.name for p in shard.iterdir()
                if len(p.name) == 38 and p.name.startswith(prefix[2:])
            )
        
        if not matches:
            raise NotFound(f"Object {prefix} not found")
        if len(matches) > 1:
            raise InvalidFormat(f"Short object name {prefix} is ambiguous")
        return matches[0]
    
    def _read_compressed(self, sha1: str) -> bytes:
        path = self.path(sha1)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            raise NotFound(f"Object {sha1} not found") from None
    
    def __repr__(self) -> str:
        return f"ObjectStore(path={self.objects_dir})"
