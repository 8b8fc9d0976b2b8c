"""Tests for the single-document find bar."""

import pytest

from engine.document import DocumentFinder
from engine.errors import InvalidPatternError
from engine.models import QueryOptions


class TestFind:
    def test_selects_first_match(self):
        finder = DocumentFinder("one two one two")
        spans = finder.find("two")
        assert [s.start for s in spans] == [4, 12]
        assert finder.current.start == 4
        assert finder.status == "1 / 2"

    def test_empty_query_clears(self):
        finder = DocumentFinder("abc")
        finder.find("b")
        finder.find("")
        assert finder.matches == []
        assert finder.current is None
        assert finder.status == ""

    def test_no_matches_status(self):
        finder = DocumentFinder("abc")
        finder.find("zzz")
        assert finder.current_index == -1
        assert finder.status == "no matches"

    def test_invalid_regex_sets_status_and_raises(self):
        finder = DocumentFinder("abc")
        with pytest.raises(InvalidPatternError):
            finder.find("[", QueryOptions(use_regex=True))
        assert finder.status == "pattern error"
        assert finder.matches == []

    def test_set_content_reruns_query(self):
        finder = DocumentFinder("a")
        finder.find("a")
        finder.set_content("a a a")
        assert len(finder.matches) == 3


class TestNavigation:
    def test_next_wraps(self):
        finder = DocumentFinder("x x x")
        finder.find("x")
        assert [finder.find_next().start for _ in range(3)] == [2, 4, 0]

    def test_previous_wraps(self):
        finder = DocumentFinder("x x x")
        finder.find("x")
        assert finder.find_previous().start == 4
        assert finder.find_previous().start == 2

    def test_navigation_without_matches(self):
        finder = DocumentFinder("abc")
        assert finder.find_next() is None
        assert finder.find_previous() is None


class TestReplace:
    def test_replace_current_moves_past_insertion(self):
        finder = DocumentFinder("cat cat cat")
        finder.find("cat")
        finder.find_next()
        content = finder.replace_current("dog")
        assert content == "cat dog cat"
        assert finder.current.start == 8
        assert finder.status == "2 / 2"

    def test_replace_current_wraps_to_first(self):
        finder = DocumentFinder("cat cat")
        finder.find("cat")
        finder.find_previous()
        assert finder.replace_current("cow") == "cat cow"
        assert finder.current.start == 0

    def test_replace_current_with_query_in_replacement(self):
        finder = DocumentFinder("a b")
        finder.find("a")
        assert finder.replace_current("aa") == "aa b"
        assert finder.current.start == 0
        assert len(finder.matches) == 2

    def test_replace_all_single_pass(self):
        finder = DocumentFinder("aaa")
        finder.find("a")
        content, count = finder.replace_all("bb")
        assert (content, count) == ("bbbbbb", 3)
        assert finder.matches == []
        assert finder.status == "no matches"

    def test_replace_all_without_matches(self):
        finder = DocumentFinder("abc")
        finder.find("z")
        assert finder.replace_all("y") == ("abc", 0)
