"""Tests for the replace coordinator."""

import asyncio

import pytest

from engine.errors import FileAccessError, StaleMatchError
from engine.matcher import find_matches
from engine.models import FileMatchResult, MatchSpan, ProjectSearchResult, QueryOptions
from engine.patterns import compile_query
from engine.replace import ReplaceCoordinator


def _result_for(*paths):
    return ProjectSearchResult(files=[FileMatchResult(p, p.rsplit("/", 1)[-1]) for p in paths])


class TestReplaceInFile:
    def test_growing_replacement_does_not_corrupt_offsets(self, memory_ops):
        memory_ops.files["/p/a.md"] = "aaa"
        coordinator = ReplaceCoordinator(memory_ops)
        count = asyncio.run(coordinator.replace_in_file(
            "/p/a.md", compile_query("a", QueryOptions()), "bb"))
        assert count == 3
        assert memory_ops.files["/p/a.md"] == "bbbbbb"

    def test_shrinking_replacement(self, memory_ops):
        memory_ops.files["/p/a.md"] = "foo bar foo baz foo"
        coordinator = ReplaceCoordinator(memory_ops)
        count = asyncio.run(coordinator.replace_in_file(
            "/p/a.md", compile_query("foo", QueryOptions()), ""))
        assert count == 3
        assert memory_ops.files["/p/a.md"] == " bar  baz "

    def test_no_match_performs_no_write(self, memory_ops):
        memory_ops.files["/p/a.md"] = "nothing here"
        coordinator = ReplaceCoordinator(memory_ops)
        count = asyncio.run(coordinator.replace_in_file(
            "/p/a.md", compile_query("xyz", QueryOptions()), "abc"))
        assert count == 0
        assert memory_ops.writes == []

    def test_identical_replacement_performs_no_write(self, memory_ops):
        memory_ops.files["/p/a.md"] = "same same"
        coordinator = ReplaceCoordinator(memory_ops)
        count = asyncio.run(coordinator.replace_in_file(
            "/p/a.md", compile_query("same", QueryOptions(case_sensitive=True)), "same"))
        assert count == 0
        assert memory_ops.writes == []

    def test_rereads_current_content(self, memory_ops):
        memory_ops.files["/p/a.md"] = "cat"
        coordinator = ReplaceCoordinator(memory_ops)
        memory_ops.files["/p/a.md"] = "cat cat cat"  # changed after the search
        count = asyncio.run(coordinator.replace_in_file(
            "/p/a.md", compile_query("cat", QueryOptions()), "dog"))
        assert count == 3
        assert memory_ops.files["/p/a.md"] == "dog dog dog"

    def test_backreferences_not_expanded(self, memory_ops):
        memory_ops.files["/p/a.md"] = "John Smith"
        coordinator = ReplaceCoordinator(memory_ops)
        asyncio.run(coordinator.replace_in_file(
            "/p/a.md", compile_query(r"(\w+) (\w+)", QueryOptions(use_regex=True)), r"\2, \1"))
        assert memory_ops.files["/p/a.md"] == r"\2, \1"

    def test_zero_width_regex_count_matches_scan(self, memory_ops):
        content = "axxb"
        pattern = compile_query("x*", QueryOptions(use_regex=True))
        memory_ops.files["/p/a.md"] = content
        coordinator = ReplaceCoordinator(memory_ops)
        count = asyncio.run(coordinator.replace_in_file("/p/a.md", pattern, "-"))
        assert count == len(find_matches(content, pattern))
        assert memory_ops.files["/p/a.md"] == "-a--b-"

    def test_read_failure_raises(self, memory_ops):
        coordinator = ReplaceCoordinator(memory_ops)
        with pytest.raises(FileAccessError) as exc:
            asyncio.run(coordinator.replace_in_file(
                "/p/missing.md", compile_query("a", QueryOptions()), "b"))
        assert exc.value.path == "/p/missing.md"

    def test_write_failure_raises(self, memory_ops):
        memory_ops.files["/p/a.md"] = "a"
        memory_ops.fail_writes.add("/p/a.md")
        coordinator = ReplaceCoordinator(memory_ops)
        with pytest.raises(FileAccessError):
            asyncio.run(coordinator.replace_in_file(
                "/p/a.md", compile_query("a", QueryOptions()), "b"))
        assert memory_ops.files["/p/a.md"] == "a"


class TestReplaceAcrossProject:
    def test_totals(self, memory_ops):
        memory_ops.files.update({
            "/p/a.md": "todo todo",
            "/p/b.md": "nothing",
            "/p/c.md": "TODO",
        })
        coordinator = ReplaceCoordinator(memory_ops)
        summary = asyncio.run(coordinator.replace_across_project(
            _result_for("/p/a.md", "/p/b.md", "/p/c.md"),
            compile_query("todo", QueryOptions()),
            "done",
        ))
        assert summary.files_changed == 2
        assert summary.total_replaced == 3
        assert summary.changed_paths == ["/p/a.md", "/p/c.md"]
        assert summary.failed_files == []
        assert memory_ops.files["/p/c.md"] == "done"

    def test_failure_on_one_file_continues(self, memory_ops):
        memory_ops.files.update({"/p/a.md": "x", "/p/b.md": "x", "/p/c.md": "x"})
        memory_ops.fail_writes.add("/p/b.md")
        coordinator = ReplaceCoordinator(memory_ops)
        summary = asyncio.run(coordinator.replace_across_project(
            _result_for("/p/a.md", "/p/b.md", "/p/c.md"),
            compile_query("x", QueryOptions()),
            "y",
        ))
        assert summary.files_changed == 2
        assert summary.total_replaced == 2
        assert summary.failed_files == ["/p/b.md"]
        assert memory_ops.writes == ["/p/a.md", "/p/c.md"]

    def test_files_processed_in_result_order(self, memory_ops):
        memory_ops.files.update({"/p/a.md": "x", "/p/b.md": "x"})
        coordinator = ReplaceCoordinator(memory_ops)
        asyncio.run(coordinator.replace_across_project(
            _result_for("/p/b.md", "/p/a.md"), compile_query("x", QueryOptions()), "y"))
        assert memory_ops.writes == ["/p/b.md", "/p/a.md"]

    def test_summary_to_dict(self, memory_ops):
        memory_ops.files["/p/a.md"] = "x"
        memory_ops.fail_reads.add("/p/b.md")
        coordinator = ReplaceCoordinator(memory_ops)
        summary = asyncio.run(coordinator.replace_across_project(
            _result_for("/p/a.md", "/p/b.md"), compile_query("x", QueryOptions()), "y"))
        assert summary.to_dict() == {
            "files_changed": 1,
            "total_replaced": 1,
            "changed_paths": ["/p/a.md"],
            "failed_files": ["/p/b.md"],
        }


class TestReplaceOne:
    def test_replaces_only_the_given_span(self, memory_ops):
        memory_ops.files["/p/a.md"] = "one two one"
        coordinator = ReplaceCoordinator(memory_ops)
        updated = asyncio.run(coordinator.replace_one("/p/a.md", MatchSpan(8, 11, "one"), "three"))
        assert updated == "one two three"
        assert memory_ops.files["/p/a.md"] == "one two three"

    def test_stale_span_rejected(self, memory_ops):
        memory_ops.files["/p/a.md"] = "xx one two one"
        coordinator = ReplaceCoordinator(memory_ops)
        with pytest.raises(StaleMatchError):
            asyncio.run(coordinator.replace_one("/p/a.md", MatchSpan(8, 11, "one"), "three"))
        assert memory_ops.writes == []

    def test_span_past_end_rejected(self, memory_ops):
        memory_ops.files["/p/a.md"] = "one"
        coordinator = ReplaceCoordinator(memory_ops)
        with pytest.raises(StaleMatchError):
            asyncio.run(coordinator.replace_one("/p/a.md", MatchSpan(2, 5, "e!!"), "x"))


def test_raising_collaborator_recorded_as_failed(memory_ops):
    memory_ops.files.update({"/p/a.md": "x", "/p/b.md": "x"})
    memory_ops.raise_reads.add("/p/a.md")
    coordinator = ReplaceCoordinator(memory_ops)
    summary = asyncio.run(coordinator.replace_across_project(
        _result_for("/p/a.md", "/p/b.md"), compile_query("x", QueryOptions()), "y"))
    assert summary.failed_files == ["/p/a.md"]
    assert summary.changed_paths == ["/p/b.md"]
