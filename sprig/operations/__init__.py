"""Operations module for higher-level sprig operations.

This module contains:
- Line diff computation (Myers shortest edit script)
- Rendering of staged-vs-working-tree diffs
"""

from sprig.operations.diff import Common, Removed, Added, compute, format_diff

__all__ = [
    'Common', 'Removed', 'Added', 'compute', 'format_diff',
]
