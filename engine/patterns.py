"""
Pattern Compilation

Turns a user query plus QueryOptions into a CompiledPattern, and include /
exclude glob lists into GlobFilters.

Usage:
    from engine.patterns import compile_query, compile_glob

    pattern = compile_query("todo", QueryOptions(whole_word=True))
    include = compile_glob("**/*.md, **/*.txt")
    include.matches_any("notes/inbox.md")   # True
"""

import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from engine.errors import EmptyQueryError, InvalidPatternError
from engine.models import QueryOptions

GLOB_SPLIT_RE = re.compile(r"[,\s]+")


# =============================================================================
# Query patterns
# =============================================================================

@dataclass(frozen=True)
class CompiledPattern:
    """An immutable find-all matcher bound to one (query, options) pair.

    The compiled regex carries no scan position; callers keep their own
    cursor (see ``engine.matcher.find_next``).
    """
    query: str
    options: QueryOptions
    regex: re.Pattern

    @property
    def source(self) -> str:
        return self.regex.pattern

    @property
    def flags(self) -> int:
        return self.regex.flags

    def search(self, content: str, pos: int = 0) -> Optional[re.Match]:
        return self.regex.search(content, pos)

    def fresh(self) -> "CompiledPattern":
        """Return an independently compiled copy with the same source and flags."""
        return CompiledPattern(self.query, self.options, re.compile(self.source, self.flags))

    def substitute(self, content: str, replacement: str) -> Tuple[str, int]:
        """Replace every match in one forward pass.

        The replacement text is inserted verbatim: ``\\1`` or ``\\g<name>``
        are not expanded.  Returns ``(new_content, count)``.
        """
        return self.regex.subn(lambda _m: replacement, content)


def compile_query(query: str, options: Optional[QueryOptions] = None) -> CompiledPattern:
    """
    Compile a search query.

    Args:
        query: Literal text, or a regular expression when options.use_regex
        options: Matching switches (defaults to case-insensitive literal)

    Returns:
        CompiledPattern

    Raises:
        EmptyQueryError: query is empty or whitespace
        InvalidPatternError: regex mode and query does not compile
    """
    options = options or QueryOptions()
    if not isinstance(options, QueryOptions):
        raise TypeError(f"options must be QueryOptions, got {type(options).__name__}")
    if not query or not query.strip():
        raise EmptyQueryError()

    flags = 0 if options.case_sensitive else re.IGNORECASE

    if options.use_regex:
        source = query
    else:
        source = re.escape(query)
        if options.whole_word:
            source = rf"\b{source}\b"

    try:
        regex = re.compile(source, flags)
    except re.error as e:
        raise InvalidPatternError(query, str(e)) from e
    return CompiledPattern(query=query, options=options, regex=regex)


# =============================================================================
# Glob filters
# =============================================================================

def normalize_path(path: str) -> str:
    return (path or "").replace("\\", "/")


def parse_globs(text: Optional[str]) -> List[str]:
    """Split a comma/whitespace separated glob list, dropping empties."""
    return [part for part in GLOB_SPLIT_RE.split(text or "") if part.strip()]


def glob_to_regex(glob: str) -> str:
    """
    Translate one glob into an anchored regex source.

    ``**`` crosses directory separators, ``*`` stays within one segment and
    ``?`` matches one non-separator character.  Everything else is literal.
    """
    norm = normalize_path(glob)
    out = ["^"]
    i = 0
    while i < len(norm):
        c = norm[i]
        if c == "*":
            if i + 1 < len(norm) and norm[i + 1] == "*":
                out.append(".*")
                i += 1
            else:
                out.append("[^/]*")
        elif c == "?":
            out.append("[^/]")
        elif c == "/":
            out.append("/")
        else:
            out.append(re.escape(c))
        i += 1
    out.append("$")
    return "".join(out)


@dataclass(frozen=True)
class GlobFilter:
    """Ordered path matchers built from a glob list."""
    globs: Tuple[str, ...] = ()
    patterns: Tuple[re.Pattern, ...] = ()

    def __bool__(self) -> bool:
        return bool(self.patterns)

    def __len__(self) -> int:
        return len(self.patterns)

    def matches_any(self, path: str) -> bool:
        norm = normalize_path(path)
        return any(p.match(norm) for p in self.patterns)


def compile_glob(glob_list: Optional[str]) -> GlobFilter:
    """Compile a comma/whitespace separated glob list into a GlobFilter."""
    globs = tuple(parse_globs(glob_list))
    return GlobFilter(globs=globs, patterns=tuple(re.compile(glob_to_regex(g)) for g in globs))
