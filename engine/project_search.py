"""
Project Search

Host-facing entry point for find/replace across an opened folder.  Ties the
scanner, matcher and replace coordinator together and tracks which phase the
project view is in, so results with stale offsets are never left visible as
current after a replace.

Usage:
    from engine.project_search import ProjectSearch
    from workspace.file_operations import LocalFileOperations

    search = ProjectSearch(LocalFileOperations())
    search.open_folder("/path/to/notes")
    result = await search.search("todo", include_globs="**/*.md")
    summary = await search.replace_all_in_project(result, "todo", replacement="done")
"""

import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from engine.errors import EmptyQueryError, InvalidPatternError, NoRootError
from engine.interrupt import is_interrupted, set_interrupt
from engine.matcher import DEFAULT_CONTEXT_CHARS, scan_file
from engine.models import (
    FileDescriptor,
    MatchSpan,
    ProjectSearchResult,
    QueryOptions,
    ReplaceSummary,
)
from engine.patterns import CompiledPattern, compile_glob, compile_query
from engine.replace import ReplaceCoordinator
from engine.scanner import filter_candidates, flatten

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, FileDescriptor], None]
RefreshCallback = Callable[[List[str]], None]


class SearchState(str, Enum):
    IDLE = "idle"
    SCANNING = "scanning"
    READY = "ready"
    REPLACING = "replacing"


def describe_result(result: ProjectSearchResult) -> str:
    if result.match_count:
        status = f"found {result.match_count} matches in {result.file_count} files"
    else:
        status = "no matches"
    if result.cancelled:
        status += " (cancelled)"
    return status


def describe_error(error: Exception) -> str:
    """Status line for a search that failed before scanning."""
    if isinstance(error, InvalidPatternError):
        return "pattern error"
    if isinstance(error, EmptyQueryError):
        return "enter text to search for"
    if isinstance(error, NoRootError):
        return "open a folder first"
    return str(error)


class ProjectSearch:
    """Find/replace over the documents of one opened folder."""

    def __init__(
        self,
        file_ops,
        context_chars: int = DEFAULT_CONTEXT_CHARS,
        on_refresh: Optional[RefreshCallback] = None,
    ):
        """
        Args:
            file_ops: FileOperations used for tree listing, reads and writes
            context_chars: Preview context on each side of a match
            on_refresh: Called with the changed paths after a replace, so the
                        host can reload open tabs and its tree view
        """
        self.file_ops = file_ops
        self.context_chars = context_chars
        self.on_refresh = on_refresh
        self.coordinator = ReplaceCoordinator(file_ops)

        self.root: Optional[str] = None
        self.tree: List[Dict[str, Any]] = []
        self.state = SearchState.IDLE
        self.results: Optional[ProjectSearchResult] = None
        self.status = ""

        # Arguments of the last search, replayed after a replace
        self._last_search: Optional[Dict[str, Any]] = None

    # =========================================================================
    # Folder
    # =========================================================================

    def open_folder(self, root: str) -> None:
        self.root = root
        self.tree = self.file_ops.list_tree(root)
        self.results = None
        self._last_search = None
        self.state = SearchState.IDLE
        logger.debug("Opened folder %s (%d documents)", root, len(flatten(self.tree)))

    def refresh_tree(self) -> None:
        if self.root is not None:
            self.tree = self.file_ops.list_tree(self.root)

    # =========================================================================
    # Search
    # =========================================================================

    async def search(
        self,
        query: str,
        options: Optional[QueryOptions] = None,
        include_globs: str = "",
        exclude_globs: str = "",
        progress: Optional[ProgressCallback] = None,
    ) -> ProjectSearchResult:
        """
        Search every candidate document, one file at a time.

        Raises:
            EmptyQueryError: query is blank
            NoRootError: no folder is open
            InvalidPatternError: regex mode and the query does not compile
        """
        options = options or QueryOptions()
        query = (query or "").strip()
        self.results = None
        self.state = SearchState.IDLE
        pattern = self._checked_pattern(query, options)
        # a new search starts over even if the previous one was cancelled
        set_interrupt(False)

        include = compile_glob(include_globs)
        exclude = compile_glob(exclude_globs)
        self._last_search = {
            "query": query,
            "options": options,
            "include_globs": include_globs,
            "exclude_globs": exclude_globs,
        }

        candidates = filter_candidates(flatten(self.tree), include, exclude)
        result = ProjectSearchResult(query=query, options=options)
        self.state = SearchState.SCANNING
        total = len(candidates)
        for index, descriptor in enumerate(candidates):
            if is_interrupted():
                logger.info("Search cancelled after %d of %d files", index, total)
                result.cancelled = True
                break
            if progress:
                progress(index, total, descriptor)
            file_result = await scan_file(descriptor, pattern, self.file_ops, self.context_chars)
            if file_result.matches:
                result.files.append(file_result)

        result.status = describe_result(result)
        self.status = result.status
        self.results = result
        self.state = SearchState.READY
        logger.info("Search %r: %s", query, result.status)
        return result

    async def _rescan(self) -> Optional[ProjectSearchResult]:
        if not self._last_search or self.root is None:
            self.state = SearchState.IDLE
            return None
        return await self.search(**self._last_search)

    # =========================================================================
    # Replace
    # =========================================================================

    def _pattern(self, query: str, options: Optional[QueryOptions]) -> CompiledPattern:
        return compile_query((query or "").strip(), options or QueryOptions())

    def _checked_pattern(self, query: str, options: QueryOptions) -> CompiledPattern:
        """Validate a project-wide request before any file is touched."""
        try:
            if not query:
                raise EmptyQueryError()
            if self.root is None:
                raise NoRootError()
            return compile_query(query, options)
        except (EmptyQueryError, NoRootError, InvalidPatternError) as e:
            self.status = describe_error(e)
            raise

    def cancel(self) -> None:
        """Stop the running search before its next file."""
        set_interrupt(True)

    async def replace_one(self, file_path: str, span: MatchSpan, replacement: str) -> str:
        """Replace one stored match; returns the file's updated content."""
        self.state = SearchState.REPLACING
        try:
            updated = await self.coordinator.replace_one(file_path, span, replacement)
        finally:
            self.state = SearchState.IDLE
        self._notify([file_path])
        await self._rescan()
        return updated

    async def replace_all_in_file(self, file_path: str, query: str,
                                  options: Optional[QueryOptions] = None,
                                  replacement: str = "") -> int:
        """Replace every match in one file, then search again."""
        pattern = self._pattern(query, options)
        self.state = SearchState.REPLACING
        try:
            count = await self.coordinator.replace_in_file(file_path, pattern, replacement)
        finally:
            self.state = SearchState.IDLE
        if count:
            self._notify([file_path])
        await self._rescan()
        self.status = f"replaced {count} in file"
        return count

    async def replace_all_in_project(self, result_set: Optional[ProjectSearchResult],
                                     query: str,
                                     options: Optional[QueryOptions] = None,
                                     replacement: str = "") -> ReplaceSummary:
        """
        Replace every match in every file of ``result_set``.

        Without a result set (or with an empty one) ``query`` is searched
        first, keeping the globs of the last search.  Afterwards the tree is
        refreshed and ``query`` searched again, so the current results always
        reflect the files on disk.

        Raises:
            EmptyQueryError: query is blank
            NoRootError: no folder is open
            InvalidPatternError: regex mode and the query does not compile
        """
        pattern = self._checked_pattern((query or "").strip(), options or QueryOptions())
        last = self._last_search or {}
        self._last_search = {
            "query": pattern.query,
            "options": pattern.options,
            "include_globs": last.get("include_globs", ""),
            "exclude_globs": last.get("exclude_globs", ""),
        }
        if not result_set:
            result_set = await self._rescan()
            if not result_set:
                return ReplaceSummary()

        self.state = SearchState.REPLACING
        try:
            summary = await self.coordinator.replace_across_project(result_set, pattern, replacement)
        finally:
            self.state = SearchState.IDLE

        status = f"replaced {summary.total_replaced} in {summary.files_changed} files"
        if summary.failed_files:
            status += f" ({len(summary.failed_files)} failed)"
        logger.info("Replace all %r: %s", pattern.query, status)

        self.refresh_tree()
        self._notify(summary.changed_paths)
        await self._rescan()
        self.status = status
        return summary

    def _notify(self, paths: List[str]) -> None:
        if self.on_refresh and paths:
            self.on_refresh(paths)
