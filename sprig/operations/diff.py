"""Line diff engine and unified-style rendering of staged changes."""

from dataclasses import dataclass
from typing import Dict, List, Sequence, Union

from colorama import Fore, Style

from sprig.core.index import DiffEntry, format_mode


@dataclass(frozen=True)
class Common:
    """Line present in both versions."""
    old_index: int
    new_index: int


@dataclass(frozen=True)
class Removed:
    """Line only in the old version."""
    old_index: int


@dataclass(frozen=True)
class Added:
    """Line only in the new version."""
    new_index: int


DiffOp = Union[Common, Removed, Added]


def compute(old: Sequence[str], new: Sequence[str]) -> List[DiffOp]:
    """
    Shortest edit script from ``old`` to ``new`` (Myers, O(N*D)).
    
    Args:
        old: Lines of the old version
        new: Lines of the new version
    
    Returns:
        Operations in order; at a replacement, removals come before additions
    """
    n, m = len(old), len(new)
    v: Dict[int, int] = {1: 0}
    trace: List[Dict[int, int]] = []
    
    for d in range(n + m + 1):
        trace.append(dict(v))
        for k in range(-d, d + 1, 2):
            if k == -d or (k != d and v[k - 1] < v[k + 1]):
                x = v[k + 1]
            else:
                x = v[k - 1] + 1
            y = x - k
            while x < n and y < m and old[x] == new[y]:
                x += 1
                y += 1
            v[k] = x
            if x >= n and y >= m:
                return _backtrack(trace, n, m)
    
    raise AssertionError("edit script longer than n + m")


def _backtrack(trace: List[Dict[int, int]], n: int, m: int) -> List[DiffOp]:
    ops: List[DiffOp] = []
    x, y = n, m
    
    for d in range(len(trace) - 1, -1, -1):
        v = trace[d]
        k = x - y
        if k == -d or (k != d and v[k - 1] < v[k + 1]):
            prev_k = k + 1
        else:
            prev_k = k - 1
        prev_x = v[prev_k]
        prev_y = prev_x - prev_k
        
        while x > prev_x and y > prev_y:
            x -= 1
            y -= 1
            ops.append(Common(x, y))
        
        if d > 0:
            if x == prev_x:
                ops.append(Added(y - 1))
            else:
                ops.append(Removed(x - 1))
        
        x, y = prev_x, prev_y
    
    ops.reverse()
    return ops


def format_diff(entries: List[DiffEntry], color: bool = True, context: bool = False) -> str:
    """
    Format diffs between staged blobs and working files.
    
    Args:
        entries: Results of Index.diff
        color: Whether to use color output
        context: Also print unchanged lines
    
    Returns:
        Formatted diff string
    """
    def paint(text: str, style: str) -> str:
        return f"{style}{text}{Style.RESET_ALL}" if color else text
    
    output = []
    
    for entry in entries:
        output.append(paint(f"diff --sprig a/{entry.path} b/{entry.path}", Style.BRIGHT))
        
        old_mode = format_mode(entry.old_mode)
        old_short = entry.old.hash[:7]
        
        if entry.is_deleted:
            output.append(paint(f"deleted file mode {old_mode}", Style.BRIGHT))
            output.append(paint(f"index {old_short}..0000000", Style.BRIGHT))
            output.append(paint(f"--- a/{entry.path}", Style.BRIGHT))
            output.append(paint("+++ /dev/null", Style.BRIGHT))
        else:
            new_mode = format_mode(entry.new_mode)
            if entry.is_mode_modified:
                output.append(paint(f"old mode {old_mode}", Style.BRIGHT))
                output.append(paint(f"new mode {new_mode}", Style.BRIGHT))
            if not entry.is_contents_modified:
                continue
            
            summary = f"index {old_short}..{entry.new.hash[:7]}"
            if not entry.is_mode_modified:
                summary += f" {new_mode}"
            output.append(paint(summary, Style.BRIGHT))
            output.append(paint(f"--- a/{entry.path}", Style.BRIGHT))
            output.append(paint(f"+++ b/{entry.path}", Style.BRIGHT))
        
        old_lines = entry.old.text.split('\n')
        new_lines = entry.new.text.split('\n') if entry.new is not None else []
        
        for op in entry.compare():
            if isinstance(op, Removed):
                output.append(paint(f"- {old_lines[op.old_index]}", Fore.RED))
            elif isinstance(op, Added):
                output.append(paint(f"+ {new_lines[op.new_index]}", Fore.GREEN))
            elif context:
                output.append(f"  {new_lines[op.new_index]}")
    
    return '\n'.join(output)
