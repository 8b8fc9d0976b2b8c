#!/usr/bin/env python3
"""
Quill command line: project-wide find and replace for Markdown folders.

Usage:
    quill search "todo" --root=notes --include="**/*.md" --exclude="**/draft/**"
    quill search "colou?r" --regex --case_sensitive
    quill replace_all "teh" "the" --root=notes --whole_word
    quill replace_file notes/inbox.md "teh" "the"
    quill replace_match notes/inbox.md 120 123 "teh" "the"
    quill config
    quill config_set search.context_chars 40
"""

import asyncio
import json
import logging
import os
import signal
import sys
import threading
from contextlib import contextmanager
from typing import Any, Dict, Optional

import fire
import yaml
from prompt_toolkit.shortcuts import confirm
from rich.console import Console
from rich.logging import RichHandler

from engine.errors import FileAccessError, QuillSearchError, StaleMatchError
from engine.models import MatchSpan, ProjectSearchResult
from engine.project_search import ProjectSearch, describe_error
from quill_cli.config import (
    ensure_quill_home,
    get_config_path,
    get_log_level,
    load_config,
    load_env,
    query_options_from_config,
    save_config,
)
from quill_cli.display import print_error, print_replace_summary, print_search_result
from workspace.file_operations import LocalFileOperations

logger = logging.getLogger(__name__)


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@contextmanager
def cancel_on_sigint(project: ProjectSearch):
    """Turn Ctrl-C during a search into a cancel that keeps the partial result."""
    if threading.current_thread() is not threading.main_thread():
        yield
        return
    previous = signal.signal(signal.SIGINT, lambda _signum, _frame: project.cancel())
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous)


def _opt_str(value: Any) -> str:
    # fire turns numeric-looking arguments into numbers
    return "" if value is None else str(value)


class QuillCLI:
    """Find and replace across a folder of Markdown and text documents."""

    def __init__(self):
        self.settings = load_config()
        self.console = Console()
        setup_logging(get_log_level(self.settings))

    # =========================================================================
    # Helpers
    # =========================================================================

    def _project(self, root: str) -> ProjectSearch:
        extensions = self.settings.get("files", {}).get("extensions")
        search = ProjectSearch(
            LocalFileOperations(extensions=extensions),
            context_chars=int(self.settings["search"].get("context_chars", 24)),
        )
        search.open_folder(os.path.abspath(os.path.expanduser(root)))
        return search

    def _options(self, case_sensitive, whole_word, regex):
        return query_options_from_config(
            self.settings,
            case_sensitive=case_sensitive,
            whole_word=whole_word,
            use_regex=regex,
        )

    def _globs(self, include, exclude):
        search_cfg = self.settings["search"]
        include = _opt_str(include) if include is not None else search_cfg.get("include", "")
        exclude = _opt_str(exclude) if exclude is not None else search_cfg.get("exclude", "")
        return include, exclude

    async def _run_search(self, project: ProjectSearch, query, options, include, exclude,
                          quiet: bool) -> ProjectSearchResult:
        with cancel_on_sigint(project):
            if quiet:
                return await project.search(query, options, include, exclude)
            with self.console.status("Searching... (Ctrl-C to stop)") as status:
                def _progress(index, total, descriptor):
                    status.update(f"Searching {index + 1}/{total}: {descriptor.relative_path}")
                return await project.search(query, options, include, exclude, progress=_progress)

    def _fail(self, error: Exception) -> None:
        logger.debug("Command failed: %r", error)
        print_error(self.console, describe_error(error), str(error))
        sys.exit(1)

    # =========================================================================
    # Commands
    # =========================================================================

    def search(self, query, root: str = ".", include: Optional[str] = None,
               exclude: Optional[str] = None, case_sensitive: Optional[bool] = None,
               whole_word: Optional[bool] = None, regex: Optional[bool] = None,
               as_json: bool = False, max_per_file: Optional[int] = None):
        """
        Search every document under a folder.

        Args:
            query: Text (or regex with --regex) to look for
            root: Folder to search (default: current directory)
            include: Comma separated globs to include, e.g. "**/*.md"
            exclude: Comma separated globs to exclude, e.g. "**/draft/**"
            case_sensitive: Match case exactly
            whole_word: Only match whole words (literal queries)
            regex: Treat the query as a regular expression
            as_json: Print the result as JSON
            max_per_file: Show at most this many matches per file
        """
        options = self._options(case_sensitive, whole_word, regex)
        include, exclude = self._globs(include, exclude)
        project = self._project(root)
        try:
            result = asyncio.run(self._run_search(
                project, _opt_str(query), options, include, exclude, quiet=as_json))
        except QuillSearchError as e:
            self._fail(e)
            return
        if as_json:
            print(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
        else:
            print_search_result(self.console, result, max_per_file=max_per_file)

    def replace_all(self, query, replacement, root: str = ".", include: Optional[str] = None,
                    exclude: Optional[str] = None, case_sensitive: Optional[bool] = None,
                    whole_word: Optional[bool] = None, regex: Optional[bool] = None,
                    yes: bool = False, as_json: bool = False):
        """
        Replace every match in every document under a folder.

        Args:
            query: Text (or regex with --regex) to replace
            replacement: Text inserted verbatim for each match
            root: Folder to search (default: current directory)
            include: Comma separated globs to include
            exclude: Comma separated globs to exclude
            case_sensitive: Match case exactly
            whole_word: Only match whole words (literal queries)
            regex: Treat the query as a regular expression
            yes: Skip the confirmation prompt
            as_json: Print the summary as JSON
        """
        options = self._options(case_sensitive, whole_word, regex)
        include, exclude = self._globs(include, exclude)
        query, replacement = _opt_str(query), _opt_str(replacement)
        project = self._project(root)

        try:
            result = asyncio.run(self._run_search(
                project, query, options, include, exclude, quiet=as_json))
        except QuillSearchError as e:
            self._fail(e)
            return

        summary = None
        # confirm() runs its own event loop, so it must stay outside asyncio.run
        if result.files and (yes or confirm(
            f"Replace {result.match_count} occurrence(s) in {result.file_count} file(s)?"
        )):
            summary = asyncio.run(
                project.replace_all_in_project(result, query, options, replacement))

        if summary is None:
            if as_json:
                print(json.dumps({"files_changed": 0, "total_replaced": 0}))
            else:
                self.console.print(result.status if not result.files else "Cancelled")
            return
        if as_json:
            payload = summary.to_dict()
            payload["remaining_matches"] = project.results.match_count if project.results else 0
            print(json.dumps(payload, ensure_ascii=False, indent=2))
        else:
            print_replace_summary(self.console, summary)

    def replace_file(self, path: str, query, replacement, case_sensitive: Optional[bool] = None,
                     whole_word: Optional[bool] = None, regex: Optional[bool] = None):
        """
        Replace every match in a single document.

        Args:
            path: Document to change
            query: Text (or regex with --regex) to replace
            replacement: Text inserted verbatim for each match
        """
        options = self._options(case_sensitive, whole_word, regex)
        path = os.path.abspath(os.path.expanduser(path))
        project = self._project(os.path.dirname(path))
        try:
            count = asyncio.run(project.replace_all_in_file(
                path, _opt_str(query), options, _opt_str(replacement)))
        except QuillSearchError as e:
            self._fail(e)
            return
        self.console.print(f"Replaced [bold]{count}[/] occurrence(s) in {path}")

    def replace_match(self, path: str, start: int, end: int, text, replacement):
        """
        Replace one match found by an earlier search.

        Args:
            path: Document containing the match
            start: Match start offset
            end: Match end offset (exclusive)
            text: Text the search reported at that span
            replacement: Text inserted in its place
        """
        path = os.path.abspath(os.path.expanduser(path))
        project = self._project(os.path.dirname(path))
        span = MatchSpan(int(start), int(end), _opt_str(text))
        try:
            asyncio.run(project.replace_one(path, span, _opt_str(replacement)))
        except (StaleMatchError, FileAccessError) as e:
            self._fail(e)
            return
        self.console.print(f"Replaced match at {span.start}..{span.end} in {path}")

    def config(self):
        """Show the active configuration and where it is stored."""
        self.console.print(f"[dim]{get_config_path()}[/]")
        self.console.print(yaml.safe_dump(self.settings, sort_keys=False, allow_unicode=True))

    def config_set(self, key: str, value):
        """
        Set a dotted config key, e.g. ``search.case_sensitive true``.

        Args:
            key: Dotted path into the config
            value: New value (parsed as YAML)
        """
        if isinstance(value, str):
            value = yaml.safe_load(value)
        set_dotted(self.settings, key, value)
        ensure_quill_home()
        path = save_config(self.settings)
        self.console.print(f"Saved {key} = {value!r} to {path}")


def set_dotted(config: Dict[str, Any], key: str, value: Any) -> None:
    parts = [p for p in str(key).split(".") if p]
    if not parts:
        raise ValueError("Config key is empty")
    node = config
    for part in parts[:-1]:
        node = node.setdefault(part, {})
        if not isinstance(node, dict):
            raise ValueError(f"Config key {key!r} crosses a non-mapping value")
    node[parts[-1]] = value


def main():
    load_env()
    fire.Fire(QuillCLI)


if __name__ == "__main__":
    main()
