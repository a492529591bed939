"""Tests for display formatting helpers."""

from __future__ import annotations

from datetime import datetime

import pytest

from infrastructure.utils import format_datetime, format_progress, format_size


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (None, ""),
        (-1, ""),
        (0, "0 B"),
        (1023, "1023 B"),
        (1024, "1.0 KB"),
        (1536, "1.5 KB"),
        (5 * 1024**2, "5.0 MB"),
        (3 * 1024**6, "3072.0 PB"),
    ],
)
def test_format_size(value, expected) -> None:
    assert format_size(value) == expected


def test_format_datetime() -> None:
    assert format_datetime(datetime(2024, 3, 9, 14, 5)) == "2024-03-09 14:05"
    assert format_datetime(None) == ""


def test_format_progress_is_clamped() -> None:
    assert format_progress(42.4) == "42%"
    assert format_progress(150) == "100%"
    assert format_progress(None) == ""
