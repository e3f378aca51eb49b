"""Index (staging area) implementation."""

import hashlib
import logging
import stat
import struct
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple

from .errors import HashMismatch, InvalidFormat, InvalidObject
from .hash import hex_to_raw
from .lockfile import LockFile
from .objects import Blob

logger = logging.getLogger(__name__)

SIGNATURE = b'DIRC'
VERSION = 2
TREE_EXTENSION = b'TREE'

# ctime, ctime_ns, mtime, mtime_ns, dev, ino, mode, uid, gid, size, sha1, flags
ENTRY_FORMAT = '>IIIIIIIIII20sH'
ENTRY_FIXED_SIZE = struct.calcsize(ENTRY_FORMAT)
NAME_MASK = 0xFFF
CHECKSUM_SIZE = 20

MODE_FILE = 0o100644
MODE_EXECUTABLE = 0o100755


def entry_size(name_length: int) -> int:
    """
    On-disk length of an entry whose name is ``name_length`` bytes.
    
    Always at least one NUL of padding, even when 62 + name length is
    already a multiple of 8.
    """
    size = ENTRY_FIXED_SIZE + name_length
    return size + (8 - size % 8)


def normalize_mode(st_mode: int) -> int:
    """Reduce a stat mode to the modes the index records."""
    if st_mode & stat.S_IXUSR:
        return MODE_EXECUTABLE
    return MODE_FILE


def format_mode(mode: int) -> str:
    """Six-digit octal mode, e.g. ``100644``."""
    return f"{mode:06o}"


def _check_path(path: str) -> None:
    if not path or path.startswith('/') or path.endswith('/') or '\0' in path:
        raise ValueError(f"Invalid index path: {path!r}")
    if any(part in ('', '.', '..') for part in path.split('/')):
        raise ValueError(f"Invalid index path: {path!r}")


@dataclass
class IndexEntry:
    """
    Represents a single entry in the index.
    
    Stores metadata about a staged file including timestamps,
    permissions, and the hash of its content. Every numeric field is
    stored as an unsigned 32-bit value.
    """
    path: str           # File path, '/'-separated, relative to the work tree
    sha1: str           # SHA-1 hash of the blob
    mode: int = MODE_FILE
    ctime: int = 0      # Creation time (seconds)
    ctime_ns: int = 0   # Creation time (nanoseconds)
    mtime: int = 0      # Modification time (seconds)
    mtime_ns: int = 0   # Modification time (nanoseconds)
    dev: int = 0        # Device ID
    ino: int = 0        # Inode number
    uid: int = 0        # User ID
    gid: int = 0        # Group ID
    size: int = 0       # File size
    flags: int = 0      # Low 12 bits hold the name length
    
    def __post_init__(self):
        if not self.flags:
            self.flags = min(len(self.path.encode()), NAME_MASK)
    
    @staticmethod
    def stat_fields(st) -> Dict[str, int]:
        """Metadata fields taken from an ``os.stat_result``, truncated to 32 bits."""
        mask = 0xFFFFFFFF
        return {
            'ctime': int(st.st_ctime) & mask,
            'ctime_ns': st.st_ctime_ns % 1_000_000_000,
            'mtime': int(st.st_mtime) & mask,
            'mtime_ns': st.st_mtime_ns % 1_000_000_000,
            'dev': st.st_dev & mask,
            'ino': st.st_ino & mask,
            'uid': st.st_uid & mask,
            'gid': st.st_gid & mask,
            'size': st.st_size & mask,
        }
    
    def to_bytes(self) -> bytes:
        """Serialize entry including its NUL padding."""
        name = self.path.encode()
        fixed = struct.pack(
            ENTRY_FORMAT,
            self.ctime,
            self.ctime_ns,
            self.mtime,
            self.mtime_ns,
            self.dev,
            self.ino,
            self.mode,
            self.uid,
            self.gid,
            self.size,
            hex_to_raw(self.sha1),
            self.flags
        )
        padding = entry_size(len(name)) - ENTRY_FIXED_SIZE - len(name)
        return fixed + name + b'\0' * padding
    
    @classmethod
    def parse(cls, data: bytes, offset: int) -> Tuple['IndexEntry', int]:
        """
        Parse the entry starting at ``offset``.
        
        Returns:
            Tuple of (entry, offset of the next record)
        """
        name_start = offset + ENTRY_FIXED_SIZE
        if name_start > len(data):
            raise InvalidFormat(f"Truncated index entry at offset {offset}")
        
        fields = struct.unpack_from(ENTRY_FORMAT, data, offset)
        flags = fields[11]
        name_length = flags & NAME_MASK
        
        if name_length < NAME_MASK:
            name = data[name_start:name_start + name_length]
            if len(name) != name_length:
                raise InvalidFormat(f"Truncated index entry name at offset {name_start}")
        else:
            # Names this long are not length-prefixed, only NUL-terminated
            name_end = data.find(b'\0', name_start)
            if name_end < 0:
                raise InvalidFormat(f"Unterminated index entry name at offset {name_start}")
            name = data[name_start:name_end]
        
        next_offset = offset + entry_size(len(name))
        padding = data[name_start + len(name):next_offset]
        if len(padding) != next_offset - name_start - len(name) or padding.strip(b'\0'):
            raise InvalidFormat(f"Bad padding after index entry at offset {offset}")
        
        try:
            path = name.decode('utf-8')
        except UnicodeDecodeError:
            raise InvalidFormat(f"Index entry name is not UTF-8: {name!r}") from None
        
        entry = cls(
            path=path,
            sha1=fields[10].hex(),
            mode=fields[6],
            ctime=fields[0],
            ctime_ns=fields[1],
            mtime=fields[2],
            mtime_ns=fields[3],
            dev=fields[4],
            ino=fields[5],
            uid=fields[7],
            gid=fields[8],
            size=fields[9],
            flags=flags
        )
        return entry, next_offset
    
    def format_stage(self) -> str:
        """``<mode> <sha1> <stage>\\t<path>`` as printed by ls-files --stage."""
        return f"{format_mode(self.mode)} {self.sha1} 0\t{self.path}"
    
    def __repr__(self) -> str:
        """String representation."""
        return f"IndexEntry({self.mode:o} {self.sha1[:7]} {self.path})"


@dataclass
class TreeCacheEntry:
    """
    Memoized hash of one directory in the index.
    
    ``entry_count`` is the number of index entries under the directory;
    -1 marks the record invalid, in which case there is no hash.
    """
    path: str
    entry_count: int
    subtree_count: int
    sha1: Optional[str] = None
    
    @property
    def valid(self) -> bool:
        return self.entry_count >= 0
    
    @property
    def name(self) -> str:
        return self.path.rsplit('/', 1)[-1]


class TreeCache:
    """
    The ``TREE`` index extension.
    
    Records are kept in the on-disk pre-order: a directory is followed by
    its ``subtree_count`` children. The root record has an empty path.
    """
    
    def __init__(self, entries: Optional[List[TreeCacheEntry]] = None):
        self.entries: List[TreeCacheEntry] = list(entries or [])
    
    @classmethod
    def from_bytes(cls, data: bytes) -> 'TreeCache':
        entries: List[TreeCacheEntry] = []
        pos = 0
        while pos < len(data):
            pos = cls._parse_record(data, pos, None, entries)
        return cls(entries)
    
    @classmethod
    def _parse_record(cls, data: bytes, pos: int, parent: Optional[str],
                      entries: List[TreeCacheEntry]) -> int:
        # path NUL entry_count SP subtree_count LF [20-byte hash]
        null_pos = data.find(b'\0', pos)
        if null_pos < 0:
            raise InvalidFormat(f"Truncated tree cache path at offset {pos}")
        newline = data.find(b'\n', null_pos + 1)
        if newline < 0:
            raise InvalidFormat(f"Truncated tree cache counts at offset {null_pos + 1}")
        
        try:
            name = data[pos:null_pos].decode('utf-8')
            count_text, subtree_text = data[null_pos + 1:newline].split(b' ')
            entry_count = int(count_text)
            subtree_count = int(subtree_text)
        except (UnicodeDecodeError, ValueError):
            raise InvalidFormat(f"Malformed tree cache record at offset {pos}") from None
        
        if subtree_count < 0:
            raise InvalidFormat(f"Negative subtree count at offset {pos}")
        
        pos = newline + 1
        sha1 = None
        if entry_count >= 0:
            raw = data[pos:pos + 20]
            if len(raw) != 20:
                raise InvalidFormat(f"Truncated tree cache hash at offset {pos}")
            sha1 = raw.hex()
            pos += 20
        
        path = f"{parent}/{name}" if parent else name
        entries.append(TreeCacheEntry(path, entry_count, subtree_count, sha1))
        
        for _ in range(subtree_count):
            pos = cls._parse_record(data, pos, path, entries)
        return pos
    
    def to_bytes(self) -> bytes:
        result = bytearray()
        for entry in self.entries:
            result += entry.name.encode() + b'\0'
            result += f"{entry.entry_count} {entry.subtree_count}\n".encode()
            if entry.valid:
                result += hex_to_raw(entry.sha1)
        return bytes(result)
    
    def get(self, path: str) -> Optional[TreeCacheEntry]:
        """Valid record for a directory path, or None."""
        for entry in self.entries:
            if entry.path == path and entry.valid:
                return entry
        return None
    
    def subtree(self, path: str) -> List[TreeCacheEntry]:
        """
        Records for a valid directory and all directories below it.
        
        Returns an empty list when the directory has no valid record.
        """
        for i, entry in enumerate(self.entries):
            if entry.path == path and entry.valid:
                return self.entries[i:self._span_end(i)]
        return []
    
    def _span_end(self, i: int) -> int:
        end = i + 1
        for _ in range(self.entries[i].subtree_count):
            end = self._span_end(end)
        return end
    
    def invalidate(self, path: str) -> None:
        """Invalidate the root and every directory containing ``path``."""
        parts = path.split('/')[:-1]
        dirs = {''} | {'/'.join(parts[:i]) for i in range(1, len(parts) + 1)}
        for entry in self.entries:
            if entry.path in dirs and entry.valid:
                entry.entry_count = -1
                entry.sha1 = None
    
    def __len__(self) -> int:
        return len(self.entries)
    
    def __iter__(self) -> Iterator[TreeCacheEntry]:
        return iter(self.entries)
    
    def __repr__(self) -> str:
        return f"TreeCache(entries={len(self.entries)})"


@dataclass
class DiffEntry:
    """
    A staged file whose working copy differs from the stored blob.
    
    ``new`` and ``new_mode`` are None when the working file is gone.
    """
    path: str
    old: Blob
    new: Optional[Blob]
    old_mode: int
    new_mode: Optional[int]
    
    @property
    def is_deleted(self) -> bool:
        return self.new is None
    
    @property
    def is_mode_modified(self) -> bool:
        return not self.is_deleted and self.old_mode != self.new_mode
    
    @property
    def is_contents_modified(self) -> bool:
        return self.is_deleted or self.old.hash != self.new.hash
    
    def compare(self) -> list:
        """Line edit script from the stored content to the working content."""
        from sprig.operations.diff import compute
        
        old_lines = self.old.text.split('\n')
        new_lines = self.new.text.split('\n') if self.new is not None else []
        return compute(old_lines, new_lines)


class Index:
    """
    Sprig index (staging area) implementation.
    
    The index stores the files to be included in the next commit, keyed
    by path so each path appears once. Entries are always iterated and
    written in byte-wise path order.
    """
    
    def __init__(self):
        """Initialize empty index."""
        self.entries: Dict[str, IndexEntry] = {}
        self.version: int = VERSION
        self.tree_cache: Optional[TreeCache] = None
        # Optional extensions this implementation does not interpret
        self.extensions: List[Tuple[bytes, bytes]] = []
    
    def add_or_replace(self, sha1: str, path: str, mode: Optional[int] = None,
                       **metadata) -> IndexEntry:
        """
        Stage ``sha1`` under ``path``, replacing any entry with that path.
        
        Args:
            sha1: Blob hash
            path: '/'-separated path relative to the work tree
            mode: Entry mode, 100644 when omitted
            **metadata: IndexEntry stat fields (mtime, size, ...)
        
        Returns:
            IndexEntry: The new entry
        """
        _check_path(path)
        hex_to_raw(sha1)
        
        entry = IndexEntry(path=path, sha1=sha1, mode=mode or MODE_FILE, **metadata)
        self.entries.pop(path, None)
        self.entries[path] = entry
        
        if self.tree_cache is not None:
            self.tree_cache.invalidate(path)
        return entry
    
    def add_file(self, repo, filepath, expected_sha1: Optional[str] = None) -> str:
        """
        Stage a file for commit.
        
        Args:
            repo: Repository instance
            filepath: Path to file (absolute or relative to the work tree)
            expected_sha1: If given, the file must hash to this value
        
        Returns:
            str: SHA-1 hash of staged content
        
        Raises:
            HashMismatch: Content does not match ``expected_sha1``
            InvalidObject: File is not UTF-8 text
        """
        file_path = Path(filepath)
        
        if not file_path.is_absolute():
            file_path = repo.work_tree / file_path
        
        if not file_path.exists():
            raise FileNotFoundError(f"File not found: {filepath}")
        
        if not file_path.is_file():
            raise ValueError(f"Not a file: {filepath}")
        
        try:
            absolute = file_path.parent.resolve() / file_path.name
            rel_path = absolute.relative_to(repo.work_tree).as_posix()
        except ValueError:
            raise ValueError(f"{filepath} is outside repository at {repo.work_tree}") from None
        
        blob = Blob.from_file(str(file_path))
        if expected_sha1 is not None and blob.hash != expected_sha1.lower():
            raise HashMismatch(expected_sha1.lower(), blob.hash, rel_path)
        
        sha1 = repo.write_object(blob)
        st = file_path.stat()
        self.add_or_replace(sha1, rel_path, normalize_mode(st.st_mode),
                            **IndexEntry.stat_fields(st))
        return sha1
    
    def remove_entry(self, path: str) -> None:
        """Remove entry from index."""
        if path in self.entries:
            del self.entries[path]
            if self.tree_cache is not None:
                self.tree_cache.invalidate(path)
    
    def get_entry(self, path: str) -> Optional[IndexEntry]:
        """Get entry by path."""
        return self.entries.get(path)
    
    def clear(self) -> None:
        """Clear all entries from index."""
        self.entries.clear()
        self.tree_cache = None
    
    def sorted_entries(self) -> List[IndexEntry]:
        """Entries in byte-wise path order."""
        return sorted(self.entries.values(), key=lambda e: e.path.encode())
    
    def diff(self, repo) -> List[DiffEntry]:
        """
        Compare each staged entry with the working tree.
        
        Args:
            repo: Repository providing the work tree and object store
        
        Returns:
            DiffEntry for every path whose content hash or mode differs,
            including paths deleted from the working tree
        """
        diffs = []
        
        for entry in self.sorted_entries():
            old = repo.read_object(entry.sha1)
            if not isinstance(old, Blob):
                raise InvalidObject(f"Index entry {entry.path} does not point to a blob")
            
            file_path = repo.work_tree / entry.path
            if not file_path.is_file():
                diffs.append(DiffEntry(entry.path, old, None, entry.mode, None))
                continue
            
            new = Blob.from_file(str(file_path))
            new_mode = normalize_mode(file_path.stat().st_mode)
            
            if new.hash != entry.sha1 or new_mode != entry.mode:
                diffs.append(DiffEntry(entry.path, old, new, entry.mode, new_mode))
        
        return diffs
    
    def to_bytes(self) -> bytes:
        """
        Serialize the index.
        
        Format:
        - Header: 'DIRC' + version (4 bytes) + entry count (4 bytes)
        - Entries: sorted by path, each with metadata + path + padding
        - Extensions: signature (4 bytes) + size (4 bytes) + data
        - Checksum: SHA-1 of everything before it
        """
        content = bytearray()
        
        content += SIGNATURE
        content += struct.pack('>II', self.version, len(self.entries))
        
        for entry in self.sorted_entries():
            content += entry.to_bytes()
        
        extensions = list(self.extensions)
        if self.tree_cache is not None:
            extensions.insert(0, (TREE_EXTENSION, self.tree_cache.to_bytes()))
        
        for signature, data in extensions:
            content += signature + struct.pack('>I', len(data)) + data
        
        content += hashlib.sha1(content).digest()
        return bytes(content)
    
    @classmethod
    def from_bytes(cls, data: bytes) -> 'Index':
        """
        Parse an index file.
        
        Raises:
            InvalidFormat: Bad signature, version, checksum or record
        """
        if len(data) < 12 + CHECKSUM_SIZE:
            raise InvalidFormat("Index file is too short")
        
        content = data[:-CHECKSUM_SIZE]
        checksum = data[-CHECKSUM_SIZE:]
        if hashlib.sha1(content).digest() != checksum:
            raise InvalidFormat("Index checksum mismatch")
        
        signature = content[0:4]
        if signature != SIGNATURE:
            raise InvalidFormat(f"Invalid index signature: {signature!r}")
        
        version, entry_count = struct.unpack('>II', content[4:12])
        if version != VERSION:
            raise InvalidFormat(f"Unsupported index version: {version}")
        
        index = cls()
        offset = 12
        
        for _ in range(entry_count):
            entry, offset = IndexEntry.parse(content, offset)
            if entry.path in index.entries:
                raise InvalidFormat(f"Duplicate index entry: {entry.path}")
            index.entries[entry.path] = entry
        
        while offset < len(content):
            if len(content) - offset < 8:
                raise InvalidFormat(f"Truncated extension header at offset {offset}")
            
            signature = content[offset:offset + 4]
            size = struct.unpack('>I', content[offset + 4:offset + 8])[0]
            ext_data = content[offset + 8:offset + 8 + size]
            if len(ext_data) != size:
                raise InvalidFormat(f"Truncated {signature!r} extension")
            
            if signature == TREE_EXTENSION:
                index.tree_cache = TreeCache.from_bytes(ext_data)
            elif b'A' <= signature[:1] <= b'Z':
                index.extensions.append((signature, ext_data))
            else:
                raise InvalidFormat(f"Unsupported required index extension: {signature!r}")
            
            offset += 8 + size
        
        return index
    
    def write(self, index_path: str) -> None:
        """
        Write index to disk.
        
        The new content goes to ``<index>.lock`` and is renamed over the
        index, so a failed write never leaves a partial file behind.
        
        Raises:
            LockError: Another writer holds the index lock
        """
        with LockFile(index_path) as lock:
            lock.write(self.to_bytes())
            lock.commit()
        logger.debug("Wrote index %s (%d entries)", index_path, len(self.entries))
    
    def read(self, index_path: str) -> None:
        """
        Read index from disk.
        
        A missing file reads as an empty index.
        
        Args:
            index_path: Path to index file
        """
        try:
            data = Path(index_path).read_bytes()
        except FileNotFoundError:
            logger.debug("No index at %s, starting empty", index_path)
            self.entries = {}
            self.version = VERSION
            self.tree_cache = None
            self.extensions = []
            return
        
        parsed = self.from_bytes(data)
        self.entries = parsed.entries
        self.version = parsed.version
        self.tree_cache = parsed.tree_cache
        self.extensions = parsed.extensions
        logger.debug("Read index %s (%d entries)", index_path, len(self.entries))
    
    def __iter__(self) -> Iterator[IndexEntry]:
        return iter(self.sorted_entries())
    
    def __contains__(self, path: str) -> bool:
        return path in self.entries
    
    def __len__(self) -> int:
        """Number of entries in index."""
        return len(self.entries)
    
    def __repr__(self) -> str:
        """String representation."""
        return f"Index(entries={len(self.entries)})"


class locked_index:
    """
    Lock the index while making modifications.
    
    Works as a context manager: entering takes ``<index>.lock`` and loads
    the index; a clean exit writes the index through the lock file, an
    exception discards it.
    """
    
    def __init__(self, index_path):
        self._lock = LockFile(index_path)
        self._index: Optional[Index] = None
    
    def __enter__(self) -> Index:
        self._lock.acquire()
        try:
            self._index = Index()
            self._index.read(str(self._lock.path))
        except BaseException:
            self._lock.rollback()
            raise
        return self._index
    
    def __exit__(self, exc_type, exc_value, traceback) -> None:
        if exc_type is not None:
            self._lock.rollback()
            return
        try:
            self._lock.write(self._index.to_bytes())
            self._lock.commit()
        finally:
            self._lock.rollback()
