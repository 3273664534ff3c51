"""Paging over the filtered view.

The cursor is a single linear offset into the view; pages are derived
from it and the viewport height on demand and never stored.
"""

from __future__ import annotations

from typing import Sequence, TypeVar

T = TypeVar("T")


def _check_height(height: int) -> None:
    if height <= 0:
        raise ValueError(f"viewport height must be positive, got {height}")


def page_index(cursor: int, height: int) -> int:
    """Index of the page holding cursor."""
    _check_height(height)
    return max(cursor, 0) // height


def in_page_offset(cursor: int, height: int) -> int:
    """Offset of cursor inside its page."""
    return max(cursor, 0) - page_index(cursor, height) * height


def page_count(total: int, height: int) -> int:
    _check_height(height)
    return -(-total // height) if total > 0 else 0


def fragments(items: Sequence[T], height: int) -> list[Sequence[T]]:
    """Split items into consecutive pages of height (last one may be shorter)."""
    _check_height(height)
    return [items[start : start + height] for start in range(0, len(items), height)]


def next_position(cursor: int, total: int) -> int:
    """Move down one row, wrapping to the top after the last."""
    if total <= 0:
        return 0
    return (cursor + 1) % total


def previous_position(cursor: int, total: int) -> int:
    """Move up one row, wrapping to the bottom from the first."""
    if total <= 0:
        return 0
    return (cursor - 1 + total) % total


def clamp_cursor(cursor: int, total: int) -> int:
    """Bring cursor back into [0, total), or 0 for an empty view."""
    if total <= 0:
        return 0
    return max(0, min(cursor, total - 1))


def item_at(cursor: int, items: Sequence[T], height: int) -> T | None:
    """Return the item under cursor, resolved through its page.

    Rendering and selection both go through this so they always agree on
    which row is highlighted.
    """
    if not items:
        return None
    cursor = clamp_cursor(cursor, len(items))
    pages = fragments(items, height)
    return pages[page_index(cursor, height)][in_page_offset(cursor, height)]
