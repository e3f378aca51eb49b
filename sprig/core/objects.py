"""Sprig objects: blobs, trees and commits in their canonical byte form."""

import re
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Tuple

from .errors import InvalidObject
from .hash import hash_object, hex_to_raw

OBJECT_TYPES = ('blob', 'tree', 'commit')

TREE_MODE = '040000'
FILE_MODE = '100644'
EXECUTABLE_MODE = '100755'

_OFFSET_RE = re.compile(r'^([+-])(\d{2})(\d{2})$')


def parse_header(header: bytes) -> Tuple[str, int]:
    """
    Parse an object header (the bytes before the first NUL).
    
    Args:
        header: ``b"<type> <size>"``
    
    Returns:
        Tuple of (type name, body size)
    
    Raises:
        InvalidObject: Malformed header or unknown type
    """
    try:
        obj_type, size_str = header.decode('ascii').split(' ')
    except (UnicodeDecodeError, ValueError):
        raise InvalidObject(f"Invalid object header: {header!r}") from None
    
    if not size_str.isdigit():
        raise InvalidObject(f"Invalid object size: {size_str!r}")
    
    if obj_type not in OBJECT_TYPES:
        raise InvalidObject(f"Unknown object type: {obj_type}")
    
    return obj_type, int(size_str)


def type_for_mode(mode: str) -> str:
    """Return the object type a tree entry mode refers to."""
    return 'tree' if int(mode, 8) & 0o170000 == 0o040000 else 'blob'


class SprigObject(ABC):
    """Base class for all sprig objects."""
    
    def __init__(self):
        self._hash: Optional[str] = None
    
    @abstractmethod
    def serialize(self) -> bytes:
        """
        Serialize object body to bytes.
        
        Returns:
            bytes: Object body without the type/size header
        """
        pass
    
    @abstractmethod
    def deserialize(self, data: bytes) -> None:
        """
        Replace this object's content with a parsed body.
        
        Args:
            data: Object body without the type/size header
        
        Raises:
            InvalidObject: Body does not parse
        """
        pass
    
    @property
    def type(self) -> str:
        """
        Return object type name.
        
        Returns:
            str: Object type (blob, tree, commit)
        """
        return self.__class__.__name__.lower()
    
    def encode(self) -> bytes:
        """
        Canonical bytes: ``<type> <body length>\\0<body>``.
        
        The length is a byte count of the encoded body, so multi-byte
        UTF-8 content is sized correctly.
        """
        data = self.serialize()
        return f"{self.type} {len(data)}\0".encode() + data
    
    def compute_hash(self) -> str:
        """
        Compute and cache object hash.
        
        Returns:
            str: 40-character SHA-1 hash of the canonical bytes
        """
        if self._hash is None:
            self._hash = hash_object(self.encode())
        return self._hash
    
    @property
    def hash(self) -> str:
        """
        Get object hash.
        
        Returns:
            str: 40-character SHA-1 hash
        """
        return self.compute_hash()
    
    def __eq__(self, other) -> bool:
        if not isinstance(other, SprigObject):
            return NotImplemented
        return self.type == other.type and self.serialize() == other.serialize()


class Blob(SprigObject):
    """
    Represents file content.
    
    A blob stores the text of a file without any metadata like filename
    or permissions. Content must be valid UTF-8.
    """
    
    def __init__(self, data: Optional[bytes] = None):
        """
        Initialize a blob.
        
        Args:
            data: File content as UTF-8 encoded bytes
        
        Raises:
            InvalidObject: Content is not valid UTF-8
        """
        super().__init__()
        self.data = b''
        self.deserialize(data or b'')
    
    @property
    def size(self) -> int:
        """Content length in bytes."""
        return len(self.data)
    
    @property
    def text(self) -> str:
        """Content decoded as UTF-8."""
        return self.data.decode('utf-8')
    
    def serialize(self) -> bytes:
        return self.data
    
    def deserialize(self, data: bytes) -> None:
        try:
            data.decode('utf-8')
        except UnicodeDecodeError as e:
            raise InvalidObject(f"Blob content is not UTF-8 text: {e}") from None
        self.data = data
        self._hash = None
    
    @classmethod
    def from_text(cls, text: str) -> 'Blob':
        """Create blob from a string."""
        return cls(text.encode('utf-8'))
    
    @classmethod
    def from_file(cls, filepath: str) -> 'Blob':
        """
        Create blob from file.
        
        Args:
            filepath: Path to file
        
        Returns:
            Blob: New blob containing file content
        """
        with open(filepath, 'rb') as f:
            return cls(f.read())
    
    def __repr__(self) -> str:
        """String representation of blob."""
        return f"Blob(hash={self.hash[:7]}, size={self.size})"


class TreeEntry:
    """
    Represents a single entry in a tree.
    
    Each entry contains:
    - mode: Octal mode string (e.g., '100644' for file, '040000' for directory)
    - type: Object type ('blob' or 'tree')
    - hash: SHA-1 hash of the object
    - name: Filename or directory name (a single path segment)
    """
    
    def __init__(self, mode: str, obj_type: str, obj_hash: str, name: str):
        if not name or '/' in name or '\0' in name:
            raise ValueError(f"Invalid tree entry name: {name!r}")
        if not mode.isdigit():
            raise ValueError(f"Invalid tree entry mode: {mode!r}")
        self.mode = mode
        self.type = obj_type
        self.hash = obj_hash
        self.name = name
    
    def __eq__(self, other) -> bool:
        if not isinstance(other, TreeEntry):
            return NotImplemented
        return (self.mode, self.type, self.hash, self.name) == \
            (other.mode, other.type, other.hash, other.name)
    
    def __repr__(self) -> str:
        """String representation."""
        return f"TreeEntry({self.mode} {self.type} {self.hash[:7]} {self.name})"


class Tree(SprigObject):
    """
    Represents directory structure.
    
    A tree contains entries pointing to blobs (files) and other trees
    (subdirectories). Entries keep the order they were added in.
    """
    
    def __init__(self, entries: Optional[List[TreeEntry]] = None):
        super().__init__()
        self.entries: List[TreeEntry] = list(entries or [])
    
    def add_entry(self, mode: str, obj_type: str, obj_hash: str, name: str) -> None:
        """
        Append entry to tree.
        
        Args:
            mode: File mode
            obj_type: Object type ('blob' or 'tree')
            obj_hash: Object hash
            name: Entry name
        """
        self.entries.append(TreeEntry(mode, obj_type, obj_hash, name))
        self._hash = None
    
    def serialize(self) -> bytes:
        """
        Serialize tree entries.
        
        Format per entry: <mode> <name>\\0<20-byte raw hash>
        """
        result = bytearray()
        for entry in self.entries:
            result += f"{entry.mode} {entry.name}".encode() + b'\0'
            result += hex_to_raw(entry.hash)
        return bytes(result)
    
    def deserialize(self, data: bytes) -> None:
        """
        Parse tree entries.
        
        The raw hash may contain NUL bytes, so an entry is framed by reading
        the ASCII header up to its own NUL and then taking exactly 20 bytes.
        Entry types are derived from the mode; Repository.read_tree can
        confirm them against the store.
        """
        entries = []
        pos = 0
        
        while pos < len(data):
            null_pos = data.find(b'\0', pos)
            if null_pos < 0:
                raise InvalidObject(f"Truncated tree entry at offset {pos}")
            
            mode_bytes, sep, name_bytes = data[pos:null_pos].partition(b' ')
            if not sep or not mode_bytes or not name_bytes or b'/' in name_bytes:
                raise InvalidObject(f"Malformed tree entry header at offset {pos}")
            if mode_bytes.strip(b'01234567'):
                raise InvalidObject(f"Tree entry mode is not octal: {mode_bytes!r}")
            
            hash_bytes = data[null_pos + 1:null_pos + 21]
            if len(hash_bytes) != 20:
                raise InvalidObject(f"Truncated tree entry hash at offset {null_pos + 1}")
            
            try:
                name = name_bytes.decode('utf-8')
            except UnicodeDecodeError:
                raise InvalidObject(f"Tree entry name is not UTF-8: {name_bytes!r}") from None
            
            mode = mode_bytes.decode('ascii')
            entries.append(TreeEntry(mode, type_for_mode(mode), hash_bytes.hex(), name))
            pos = null_pos + 21
        
        self.entries = entries
        self._hash = None
    
    def get(self, name: str) -> Optional[TreeEntry]:
        """Find entry by name."""
        for entry in self.entries:
            if entry.name == name:
                return entry
        return None
    
    def format(self) -> str:
        """Render entries the way cat-file -p prints them."""
        return ''.join(
            f"{e.mode} {e.type} {e.hash}\t{e.name}\n" for e in self.entries
        )
    
    def __repr__(self) -> str:
        """String representation."""
        return f"Tree(entries={len(self.entries)})"


def format_offset(offset: timedelta) -> str:
    """Format a UTC offset as ``+HHMM``/``-HHMM``."""
    minutes = int(offset.total_seconds()) // 60
    sign = '-' if minutes < 0 else '+'
    minutes = abs(minutes)
    return f"{sign}{minutes // 60:02d}{minutes % 60:02d}"


def parse_offset(text: str) -> timezone:
    """Parse ``+HHMM``/``-HHMM`` into a fixed-offset timezone; west is negative."""
    match = _OFFSET_RE.match(text)
    if not match:
        raise InvalidObject(f"Invalid timezone offset: {text!r}")
    sign, hours, minutes = match.groups()
    delta = timedelta(hours=int(hours), minutes=int(minutes))
    try:
        return timezone(-delta if sign == '-' else delta)
    except ValueError:
        raise InvalidObject(f"Timezone offset out of range: {text!r}") from None


@dataclass
class Signature:
    """Author or committer identity with a timezone-aware timestamp."""
    
    name: str
    email: str
    when: datetime
    
    @classmethod
    def now(cls, name: str, email: str, tz: Optional[timezone] = None) -> 'Signature':
        """Signature stamped with the current time."""
        now = int(time.time())
        if tz is None:
            return cls(name, email, datetime.fromtimestamp(now).astimezone())
        return cls(name, email, datetime.fromtimestamp(now, tz))
    
    @property
    def timestamp(self) -> int:
        """Seconds since the epoch."""
        return int(self.when.timestamp())
    
    def format(self) -> str:
        """``Name <email> <unix seconds> <+HHMM>``"""
        return f"{self.name} <{self.email}> {self.timestamp} {format_offset(self.when.utcoffset())}"
    
    @classmethod
    def parse(cls, text: str) -> 'Signature':
        """
        Parse ``Name <email> <unix seconds> <+HHMM>``.
        
        Raises:
            InvalidObject: Any part is missing or malformed
        """
        parts = text.rsplit(' ', 2)
        if len(parts) != 3:
            raise InvalidObject(f"Invalid signature: {text!r}")
        ident, ts, offset = parts
        
        lt = ident.rfind('<')
        if lt < 0 or not ident.endswith('>'):
            raise InvalidObject(f"Invalid signature identity: {ident!r}")
        
        if not ts.lstrip('-').isdigit():
            raise InvalidObject(f"Invalid signature timestamp: {ts!r}")
        
        tz = parse_offset(offset)
        try:
            when = datetime.fromtimestamp(int(ts), tz)
        except (OverflowError, OSError, ValueError):
            raise InvalidObject(f"Signature timestamp out of range: {ts}") from None
        return cls(ident[:lt].rstrip(), ident[lt + 1:-1], when)
    
    def __str__(self) -> str:
        return self.format()


class Commit(SprigObject):
    """
    Represents a commit with metadata.
    
    A commit captures:
    - Snapshot of project (tree hash)
    - Optional parent commit
    - Author and committer signatures
    - Commit message
    """
    
    def __init__(
        self,
        tree: str = '',
        parent: Optional[str] = None,
        author: Optional[Signature] = None,
        committer: Optional[Signature] = None,
        message: str = ''
    ):
        super().__init__()
        self.tree = tree
        self.parent = parent
        self.author = author
        self.committer = committer
        self.message = message
    
    def serialize(self) -> bytes:
        """
        Serialize commit.
        
        Format:
        tree <tree-hash>
        parent <parent-hash>  (optional)
        author Name <email> <timestamp> <timezone>
        committer Name <email> <timestamp> <timezone>
        
        <commit message>
        """
        if self.author is None or self.committer is None:
            raise ValueError("Commit needs an author and a committer")
        
        lines = [f'tree {self.tree}']
        if self.parent:
            lines.append(f'parent {self.parent}')
        lines.append(f'author {self.author.format()}')
        lines.append(f'committer {self.committer.format()}')
        lines.append('')
        lines.append(self.message)
        
        return ('\n'.join(lines) + '\n').encode('utf-8')
    
    def deserialize(self, data: bytes) -> None:
        """
        Parse commit body.
        
        Whether a parent is present is read from the second header line
        itself, not inferred from how many lines the commit has.
        """
        try:
            content = data.decode('utf-8')
        except UnicodeDecodeError:
            raise InvalidObject("Commit is not UTF-8 text") from None
        
        header, sep, body = content.partition('\n\n')
        if not sep:
            raise InvalidObject("Commit has no blank line before the message")
        
        lines = header.split('\n')
        
        if not lines[0].startswith('tree ') or not lines[0][5:]:
            raise InvalidObject("Commit is missing its tree line")
        tree = lines[0][5:]
        rest = lines[1:]
        
        parent = None
        if rest and rest[0].startswith('parent '):
            parent = rest[0][7:]
            rest = rest[1:]
        
        if len(rest) != 2 or not rest[0].startswith('author ') \
                or not rest[1].startswith('committer '):
            raise InvalidObject("Commit must have exactly one author and one committer line")
        
        self.tree = tree
        self.parent = parent
        self.author = Signature.parse(rest[0][7:])
        self.committer = Signature.parse(rest[1][10:])
        self.message = body[:-1] if body.endswith('\n') else body
        self._hash = None
    
    @classmethod
    def create(
        cls,
        tree_hash: str,
        parent_hash: Optional[str],
        author: Signature,
        message: str,
        committer: Optional[Signature] = None
    ) -> 'Commit':
        """
        Create a new commit.
        
        Args:
            tree_hash: Hash of tree object
            parent_hash: Parent commit hash, or None for a root commit
            author: Author signature
            message: Commit message
            committer: Committer signature (defaults to the author)
        
        Returns:
            Commit: New commit object
        """
        return cls(tree_hash, parent_hash, author, committer or author, message)
    
    def __repr__(self) -> str:
        """String representation."""
        parent_info = f", parent={self.parent[:7]}" if self.parent else ""
        msg_preview = self.message.split('\n')[0][:50]
        return f"Commit(hash={self.hash[:7]}{parent_info}, msg='{msg_preview}')"


_OBJECT_CLASSES = {
    'blob': Blob,
    'tree': Tree,
    'commit': Commit,
}


def encode(obj: SprigObject) -> bytes:
    """Canonical bytes of an object."""
    return obj.encode()


def decode(data: bytes) -> SprigObject:
    """
    Decode canonical bytes into a Blob, Tree or Commit.
    
    Raises:
        InvalidObject: Malformed header, unknown type, size mismatch or
            a body that fails its type-specific parse
    """
    null_idx = data.find(b'\0')
    if null_idx < 0:
        raise InvalidObject("Object has no header terminator")
    
    obj_type, size = parse_header(data[:null_idx])
    body = data[null_idx + 1:]
    
    if len(body) != size:
        raise InvalidObject(f"Object size mismatch: expected {size}, got {len(body)}")
    
    obj = _OBJECT_CLASSES[obj_type]()
    obj.deserialize(body)
    return obj
