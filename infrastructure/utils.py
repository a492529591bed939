"""Formatting helpers for sizes and timestamps shown in listings.

These never raise; unexpected input yields an empty string.
"""

from __future__ import annotations

from datetime import datetime

DISPLAY_DT_FMT = "%Y-%m-%d %H:%M"

_UNITS = ("B", "KB", "MB", "GB", "TB", "PB")


def format_size(num_bytes: int | None) -> str:
    """Human-readable size using 1024-based units, e.g. "1.5 MB"."""
    if num_bytes is None or num_bytes < 0:
        return ""
    size = float(num_bytes)
    for unit in _UNITS:
        if size < 1024 or unit == _UNITS[-1]:
            if unit == "B":
                return f"{int(size)} B"
            return f"{size:.1f} {unit}"
        size /= 1024
    return ""


def format_datetime(dt: datetime | None) -> str:
    """Format datetime for display; empty string when None."""
    try:
        return dt.strftime(DISPLAY_DT_FMT) if dt else ""
    except (ValueError, TypeError, AttributeError):
        return ""


def format_progress(percent: float | None) -> str:
    if percent is None:
        return ""
    return f"{max(0.0, min(100.0, percent)):.0f}%"
