"""
Match Engine

Runs a CompiledPattern over one document.  The scan position is an explicit
cursor owned by the caller, so a pattern can be shared between documents
without any state leaking from one scan into the next.
"""

import logging
import re
from typing import List, Optional, Tuple

from engine.models import FileDescriptor, FileMatchResult, LocatedMatch, MatchSpan, Preview
from engine.patterns import CompiledPattern
from engine.positions import build_line_offsets, offset_to_line_column

logger = logging.getLogger(__name__)

DEFAULT_CONTEXT_CHARS = 24


def find_next(
    content: str, pattern: CompiledPattern, cursor: int
) -> Tuple[Optional[re.Match], int]:
    """
    Find the first match starting at or after ``cursor``.

    Returns:
        (match, next_cursor).  ``match`` is None when the document is
        exhausted.  After a zero-width match the cursor moves one position
        past it so the next call makes progress.
    """
    if cursor > len(content):
        return None, cursor
    match = pattern.search(content, cursor)
    if match is None:
        return None, len(content) + 1
    next_cursor = match.end()
    if next_cursor <= match.start():
        next_cursor = match.start() + 1
    return match, next_cursor


def find_matches(content: str, pattern: CompiledPattern) -> List[MatchSpan]:
    """All non-overlapping matches in ascending offset order."""
    spans: List[MatchSpan] = []
    cursor = 0
    while True:
        match, cursor = find_next(content, pattern, cursor)
        if match is None:
            return spans
        spans.append(MatchSpan(match.start(), match.end(), match.group(0)))


def build_preview(content: str, start: int, end: int,
                  window: int = DEFAULT_CONTEXT_CHARS) -> Preview:
    return Preview(
        before=content[max(0, start - window):start],
        hit=content[start:end],
        after=content[end:min(len(content), end + window)],
    )


def locate_matches(content: str, pattern: CompiledPattern,
                   window: int = DEFAULT_CONTEXT_CHARS) -> List[LocatedMatch]:
    """Find matches and attach line/column and preview context."""
    spans = find_matches(content, pattern)
    if not spans:
        return []
    line_offsets = build_line_offsets(content)
    located = []
    for span in spans:
        line, column = offset_to_line_column(line_offsets, span.start)
        located.append(LocatedMatch(
            start=span.start,
            end=span.end,
            text=span.text,
            line=line,
            column=column,
            preview=build_preview(content, span.start, span.end, window),
        ))
    return located


async def scan_file(
    descriptor: FileDescriptor,
    pattern: CompiledPattern,
    file_ops,
    context_chars: int = DEFAULT_CONTEXT_CHARS,
) -> FileMatchResult:
    """
    Scan one file through the read collaborator.

    A read failure is logged and yields a result with no matches; it never
    aborts the surrounding project scan.
    """
    result = FileMatchResult(
        file_path=descriptor.absolute_path,
        relative_path=descriptor.relative_path or descriptor.absolute_path,
    )
    try:
        read = await file_ops.read_file(descriptor.absolute_path)
    except Exception as e:
        logger.warning("Search: skipping %s: %s", descriptor.absolute_path, e)
        return result
    if read.error:
        logger.warning("Search: skipping %s: %s", descriptor.absolute_path, read.error)
        return result
    result.matches = locate_matches(read.content or "", pattern, context_chars)
    logger.debug("Search: %d match(es) in %s", len(result.matches), descriptor.relative_path)
    return result
