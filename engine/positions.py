"""Offset to line/column mapping."""

from bisect import bisect_right
from typing import List, Sequence

from engine.models import LineColumn


def build_line_offsets(content: str) -> List[int]:
    """Return the start offset of every line; offset 0 is always first."""
    offsets = [0]
    pos = content.find("\n")
    while pos != -1:
        offsets.append(pos + 1)
        pos = content.find("\n", pos + 1)
    return offsets


def offset_to_line_column(line_offsets: Sequence[int], offset: int) -> LineColumn:
    """Map an offset to a 1-based (line, column) with a binary search."""
    if offset < 0:
        raise ValueError(f"offset must be >= 0, got {offset}")
    index = bisect_right(line_offsets, offset) - 1
    return LineColumn(line=index + 1, column=offset - line_offsets[index] + 1)
