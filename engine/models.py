"""
Search Data Model

Plain dataclasses shared by the scanner, matcher and replace layers.  Every
result type exposes ``to_dict()`` so the CLI can print JSON without knowing
the field layout.
"""

from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Mapping, NamedTuple, Optional


# =============================================================================
# Query options
# =============================================================================

@dataclass(frozen=True)
class QueryOptions:
    """Matching switches for one query.

    ``whole_word`` only applies to literal queries; it is ignored when
    ``use_regex`` is set.
    """
    case_sensitive: bool = False
    whole_word: bool = False
    use_regex: bool = False

    def __post_init__(self):
        for f in fields(self):
            value = getattr(self, f.name)
            if not isinstance(value, bool):
                raise TypeError(
                    f"QueryOptions.{f.name} must be a bool, got {type(value).__name__}"
                )

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "QueryOptions":
        """Build options from a mapping (config file, CLI flags).

        Raises:
            ValueError: unknown key
            TypeError: a value is not a bool (a quoted "false" is rejected)
        """
        data = dict(data or {})
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown query option(s): {', '.join(unknown)}")
        return cls(**data)

    def to_dict(self) -> dict:
        return {
            "case_sensitive": self.case_sensitive,
            "whole_word": self.whole_word,
            "use_regex": self.use_regex,
        }


# =============================================================================
# Files
# =============================================================================

@dataclass(frozen=True)
class FileDescriptor:
    """A document in the project tree."""
    absolute_path: str
    relative_path: str
    size_hint: Optional[int] = None


# =============================================================================
# Matches
# =============================================================================

class LineColumn(NamedTuple):
    line: int
    column: int


@dataclass(frozen=True)
class MatchSpan:
    """Half-open ``[start, end)`` span of one occurrence."""
    start: int
    end: int
    text: str

    def __post_init__(self):
        if self.start < 0 or self.end < self.start:
            raise ValueError(f"Invalid match span {self.start}..{self.end}")

    def to_dict(self) -> dict:
        return {"start": self.start, "end": self.end, "text": self.text}


@dataclass(frozen=True)
class Preview:
    before: str = ""
    hit: str = ""
    after: str = ""

    def to_dict(self) -> dict:
        return {"before": self.before, "hit": self.hit, "after": self.after}


@dataclass(frozen=True)
class LocatedMatch:
    """A match span with its 1-based position and a context preview."""
    start: int
    end: int
    text: str
    line: int
    column: int
    preview: Preview = field(default_factory=Preview)

    @property
    def span(self) -> MatchSpan:
        return MatchSpan(self.start, self.end, self.text)

    def to_dict(self) -> dict:
        return {
            "start": self.start,
            "end": self.end,
            "text": self.text,
            "line": self.line,
            "column": self.column,
            "preview": self.preview.to_dict(),
        }


@dataclass
class FileMatchResult:
    """All matches found in one file."""
    file_path: str
    relative_path: str
    matches: List[LocatedMatch] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "file_path": self.file_path,
            "relative_path": self.relative_path,
            "matches": [m.to_dict() for m in self.matches],
        }


@dataclass
class ProjectSearchResult:
    """Aggregate result of one project search.

    Only files with at least one match are listed, in file tree order.
    """
    files: List[FileMatchResult] = field(default_factory=list)
    query: str = ""
    options: QueryOptions = field(default_factory=QueryOptions)
    status: str = ""
    cancelled: bool = False

    @property
    def file_count(self) -> int:
        return len(self.files)

    @property
    def match_count(self) -> int:
        return sum(len(f.matches) for f in self.files)

    def __iter__(self):
        return iter(self.files)

    def __len__(self) -> int:
        return len(self.files)

    def find_file(self, file_path: str) -> Optional[FileMatchResult]:
        for entry in self.files:
            if entry.file_path == file_path:
                return entry
        return None

    def to_dict(self) -> dict:
        result: Dict[str, Any] = {
            "query": self.query,
            "options": self.options.to_dict(),
            "file_count": self.file_count,
            "match_count": self.match_count,
            "files": [f.to_dict() for f in self.files],
        }
        if self.status:
            result["status"] = self.status
        if self.cancelled:
            result["cancelled"] = True
        return result


@dataclass
class ReplaceSummary:
    """Totals from a project-wide replace."""
    files_changed: int = 0
    total_replaced: int = 0
    changed_paths: List[str] = field(default_factory=list)
    failed_files: List[str] = field(default_factory=list)

    def add(self, file_path: str, replaced: int) -> None:
        if replaced > 0:
            self.files_changed += 1
            self.total_replaced += replaced
            self.changed_paths.append(file_path)

    def to_dict(self) -> dict:
        result: Dict[str, Any] = {
            "files_changed": self.files_changed,
            "total_replaced": self.total_replaced,
            "changed_paths": list(self.changed_paths),
        }
        if self.failed_files:
            result["failed_files"] = list(self.failed_files)
        return result
