"""Tests for NavigationHistory."""

from __future__ import annotations

import pytest

from core.services.navigation_history import NavigationHistory


def _visit(history: NavigationHistory, *paths: str) -> None:
    for p in paths:
        history.navigate(p)


class TestNavigation:
    """Recording and moving through visited paths."""

    def test_empty_history(self) -> None:
        """Test the initial state."""
        history = NavigationHistory()

        assert history.current_index == -1
        assert history.current_path() is None
        assert not history.can_go_back()
        assert not history.can_go_forward()
        assert history.go_back() is None
        assert history.go_forward() is None

    def test_back_and_forward(self) -> None:
        """Test stepping back and forward returns the visited paths."""
        history = NavigationHistory()
        _visit(history, "/a", "/b", "/c")

        assert history.go_back() == "/b"
        assert history.go_back() == "/a"
        assert history.go_back() is None
        assert history.go_forward() == "/b"
        assert history.current_path() == "/b"
        assert history.can_go_back() and history.can_go_forward()

    def test_navigate_truncates_forward_entries(self) -> None:
        """Test that a new visit after going back drops the forward branch."""
        history = NavigationHistory()
        _visit(history, "/a", "/b", "/c")
        history.go_back()
        history.go_back()

        history.navigate("/d")

        assert history.history == ["/a", "/d"]
        assert history.current_index == 1
        assert not history.can_go_forward()

    def test_capacity_evicts_oldest(self) -> None:
        """Test that the oldest entry is dropped once capacity is reached."""
        history = NavigationHistory(capacity=3)
        _visit(history, "/a", "/b", "/c")
        assert history.current_index == 2

        history.navigate("/d")

        assert history.history == ["/b", "/c", "/d"]
        assert history.current_index == 2
        assert history.current_path() == "/d"
        assert len(history) == 3

    def test_navigate_without_recording(self) -> None:
        """Test that an unrecorded jump leaves entries and cursor alone."""
        history = NavigationHistory()
        _visit(history, "/a", "/b")

        history.navigate("/elsewhere", record=False)

        assert history.history == ["/a", "/b"]
        assert history.current_index == 1

    def test_navigate_without_recording_on_empty_history(self) -> None:
        history = NavigationHistory()

        history.navigate("/a", record=False)

        assert history.current_index == -1
        assert history.history == []

    def test_clear(self) -> None:
        """Test that clear resets to the empty state."""
        history = NavigationHistory()
        _visit(history, "/a", "/b")

        history.clear()

        assert history.history == []
        assert history.current_index == -1
        assert not history.can_go_back()

    def test_history_returns_a_copy(self) -> None:
        history = NavigationHistory()
        _visit(history, "/a")

        history.history.append("/x")

        assert history.history == ["/a"]

    def test_invalid_capacity(self) -> None:
        """Test that a capacity below one is refused."""
        with pytest.raises(ValueError):
            NavigationHistory(capacity=0)


class TestHistoryLists:
    """Back/forward lists shown in the toolbar drop-downs."""

    def test_back_history_is_oldest_first(self) -> None:
        history = NavigationHistory()
        _visit(history, "/a", "/b", "/c", "/d")

        assert history.back_history() == ["/a", "/b", "/c"]
        assert history.back_history(max_items=2) == ["/b", "/c"]

    def test_forward_history_is_nearest_first(self) -> None:
        history = NavigationHistory()
        _visit(history, "/a", "/b", "/c", "/d")
        history.go_back()
        history.go_back()
        history.go_back()

        assert history.forward_history() == ["/b", "/c", "/d"]
        assert history.forward_history(max_items=1) == ["/b"]
        assert history.back_history() == []
