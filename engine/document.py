"""
Single-document find/replace.

The in-editor find bar: works on a text buffer held in memory instead of
files on disk, keeps a current selection and moves it with next/previous.
"""

import logging
from typing import List, Optional, Tuple

from engine.errors import InvalidPatternError
from engine.matcher import find_matches
from engine.models import MatchSpan, QueryOptions
from engine.patterns import CompiledPattern, compile_query

logger = logging.getLogger(__name__)

STATUS_NO_MATCHES = "no matches"
STATUS_PATTERN_ERROR = "pattern error"


class DocumentFinder:
    """Find bar state for one document buffer."""

    def __init__(self, content: str = ""):
        self.content = content
        self.query = ""
        self.options = QueryOptions()
        self.pattern: Optional[CompiledPattern] = None
        self.matches: List[MatchSpan] = []
        self.current_index = -1
        self._error = False

    @property
    def current(self) -> Optional[MatchSpan]:
        if 0 <= self.current_index < len(self.matches):
            return self.matches[self.current_index]
        return None

    @property
    def status(self) -> str:
        if self._error:
            return STATUS_PATTERN_ERROR
        if not self.query:
            return ""
        if not self.matches:
            return STATUS_NO_MATCHES
        return f"{self.current_index + 1} / {len(self.matches)}"

    def set_content(self, content: str) -> None:
        """Swap the buffer and re-run the active query against it."""
        self.content = content
        self._refresh()

    def find(self, query: str, options: Optional[QueryOptions] = None) -> List[MatchSpan]:
        """
        Search the buffer and select the first match.

        An empty query clears the matches.  An invalid regex leaves the finder
        with no matches and a "pattern error" status, then re-raises.
        """
        self.query = query or ""
        self.options = options or QueryOptions()
        self.pattern = None
        self.matches = []
        self.current_index = -1
        self._error = False
        if not self.query:
            return self.matches
        try:
            self.pattern = compile_query(self.query, self.options)
        except InvalidPatternError:
            self._error = True
            raise
        self._refresh()
        return self.matches

    def _refresh(self, anchor: int = 0) -> None:
        if self.pattern is None:
            return
        self.matches = find_matches(self.content, self.pattern)
        self.current_index = -1
        if not self.matches:
            return
        self.current_index = 0
        for i, span in enumerate(self.matches):
            if span.start >= anchor:
                self.current_index = i
                break

    def select(self, index: int) -> Optional[MatchSpan]:
        if 0 <= index < len(self.matches):
            self.current_index = index
        return self.current

    def find_next(self) -> Optional[MatchSpan]:
        if not self.matches:
            return None
        return self.select((self.current_index + 1) % len(self.matches))

    def find_previous(self) -> Optional[MatchSpan]:
        if not self.matches:
            return None
        if self.current_index <= 0:
            return self.select(len(self.matches) - 1)
        return self.select(self.current_index - 1)

    def replace_current(self, replacement: str) -> str:
        """Replace the selected match and move the selection past it."""
        span = self.current
        if span is None:
            return self.content
        self.content = self.content[:span.start] + replacement + self.content[span.end:]
        self._refresh(anchor=span.start + len(replacement))
        return self.content

    def replace_all(self, replacement: str) -> Tuple[str, int]:
        """Replace every match in one pass; returns (content, count)."""
        if self.pattern is None or not self.matches:
            return self.content, 0
        self.content, count = self.pattern.substitute(self.content, replacement)
        logger.debug("Find bar: replaced %d match(es)", count)
        self._refresh()
        return self.content, count
