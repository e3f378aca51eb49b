"""Core functionality for sprig.

This module contains the core data structures:
- Sprig objects (Blob, Tree, Commit)
- Content-addressed object store
- Index/staging area with its tree cache
- Repository management
- Configuration management
- Hashing utilities

For the line diff engine, see sprig.operations
"""

from sprig.core.errors import (SprigError, NotFound, InvalidFormat, InvalidObject,
                               CorruptObject, HashMismatch, LockError)
from sprig.core.objects import SprigObject, Blob, Tree, TreeEntry, Commit, Signature, encode, decode
from sprig.core.store import ObjectStore
from sprig.core.repository import Repository
from sprig.core.hash import hash_object, hash_file
from sprig.core.index import Index, IndexEntry, TreeCache, TreeCacheEntry, DiffEntry, locked_index
from sprig.core.lockfile import LockFile
from sprig.core.config import Config, get_config

__all__ = [
    'SprigError',
    'NotFound',
    'InvalidFormat',
    'InvalidObject',
    'CorruptObject',
    'HashMismatch',
    'LockError',
    'SprigObject',
    'Blob',
    'Tree',
    'TreeEntry',
    'Commit',
    'Signature',
    'encode',
    'decode',
    'ObjectStore',
    'Repository',
    'Index',
    'IndexEntry',
    'TreeCache',
    'TreeCacheEntry',
    'DiffEntry',
    'locked_index',
    'LockFile',
    'Config',
    'get_config',
    'hash_object',
    'hash_file',
]
