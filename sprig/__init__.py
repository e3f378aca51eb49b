"""Sprig - the storage core of a miniature Git-like version control system."""

__version__ = '0.1.0'

from sprig.core.repository import Repository
from sprig.core.objects import SprigObject, Blob, Tree, Commit

__all__ = [
    'Repository',
    'SprigObject',
    'Blob',
    'Tree',
    'Commit',
]
