"""Rendering of search results and replace summaries for the terminal.

Pure display functions with no search state dependency.
"""

from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from engine.models import LocatedMatch, ProjectSearchResult, ReplaceSummary


# =========================================================================
# Styles
# =========================================================================

_HIT = "bold black on #FFBF00"
_PATH = "bold #FFD700"
_DIM = "dim #B8860B"
_ERR = "bold red"


def _one_line(text: str) -> str:
    return text.replace("\r", "").replace("\n", "⏎")


def format_snippet(match: LocatedMatch) -> str:
    """Rich markup for a match preview with the hit highlighted."""
    p = match.preview
    return (
        f"{escape(_one_line(p.before))}"
        f"[{_HIT}]{escape(_one_line(p.hit))}[/]"
        f"{escape(_one_line(p.after))}"
    )


def print_search_result(console: Console, result: ProjectSearchResult,
                        max_per_file: Optional[int] = None):
    """Print a result set grouped by file.

    Args:
        console: Rich Console instance.
        result: Result to render.
        max_per_file: Truncate long match lists (None = show all).
    """
    if not result.files:
        console.print(f"[{_DIM}]{escape(result.status or 'no matches')}[/]")
        return

    for entry in result.files:
        table = Table.grid(padding=(0, 2))
        table.add_column("pos", justify="right", style=_DIM, no_wrap=True)
        table.add_column("snippet", justify="left")
        shown = entry.matches if max_per_file is None else entry.matches[:max_per_file]
        for m in shown:
            table.add_row(f"{m.line}:{m.column}", format_snippet(m))
        hidden = len(entry.matches) - len(shown)
        if hidden > 0:
            table.add_row("", f"[{_DIM}]... {hidden} more[/]")
        console.print(Panel(
            table,
            title=f"[{_PATH}]{escape(entry.relative_path)}[/]",
            title_align="left",
            subtitle=f"[{_DIM}]{len(entry.matches)} match(es)[/]",
            subtitle_align="right",
        ))

    console.print(f"[{_DIM}]{escape(result.status)}[/]")


def print_replace_summary(console: Console, summary: ReplaceSummary):
    console.print(
        f"Replaced [bold]{summary.total_replaced}[/] occurrence(s) "
        f"in [bold]{summary.files_changed}[/] file(s)"
    )
    for path in summary.failed_files:
        console.print(f"[{_ERR}]failed:[/] {escape(path)}")


def print_error(console: Console, status: str, detail: str = ""):
    line = f"[{_ERR}]{escape(status)}[/]"
    if detail and detail != status:
        line += f" [{_DIM}]{escape(detail)}[/]"
    console.print(line)
