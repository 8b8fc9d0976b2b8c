"""Error taxonomy for project search and replace.

Compilation errors (bad regex, empty query, no open folder) are raised before
any file is touched.  Per-file I/O failures are raised as FileAccessError by
the replace layer and recovered by its callers; the scan layer never raises
them at all.
"""

from typing import Optional


class QuillSearchError(Exception):
    """Base class for every error raised by the search engine."""


class InvalidPatternError(QuillSearchError):
    """The query is not a valid regular expression."""

    def __init__(self, query: str, reason: str):
        self.query = query
        self.reason = reason
        super().__init__(f"Invalid regex pattern {query!r}: {reason}")


class EmptyQueryError(QuillSearchError):
    """The query string is empty or whitespace only."""

    def __init__(self):
        super().__init__("Search query is empty")


class NoRootError(QuillSearchError):
    """No project folder is open."""

    def __init__(self):
        super().__init__("No folder is open; open a project folder first")


class FileAccessError(QuillSearchError):
    """Reading or writing a single file failed."""

    def __init__(self, path: str, reason: Optional[str] = None):
        self.path = path
        self.reason = reason or "unknown error"
        super().__init__(f"Failed to access {path}: {self.reason}")


class StaleMatchError(QuillSearchError):
    """A stored match no longer lines up with the file on disk."""

    def __init__(self, path: str, start: int, end: int):
        self.path = path
        self.start = start
        self.end = end
        super().__init__(
            f"Match {start}..{end} in {path} is stale; search again before replacing"
        )
