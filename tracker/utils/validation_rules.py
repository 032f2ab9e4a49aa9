"""Field-level and cross-field checks shared by the managers and search."""

from datetime import date
from typing import Optional
from tracker.constants.constants import SORTABLE_FIELDS, SortDirection
from tracker.core.exceptions import (
    InvalidDateRange,
    InvalidSearchInput,
    InvalidTag,
    InvalidTitle,
)


def validate_date_range(start_date: date, due_date: date) -> None:
    """Equal dates are a valid one-day milestone."""
    if start_date > due_date:
        raise InvalidDateRange(
            f"start_date {start_date.isoformat()} is after due_date {due_date.isoformat()}"
        )


def validate_title(title: Optional[str]) -> str:
    """Return the stripped title or raise when nothing is left."""
    cleaned = (title or "").strip()
    if not cleaned:
        raise InvalidTitle("Title must not be empty")
    if len(cleaned) > 255:
        raise InvalidTitle("Title must be at most 255 characters")
    return cleaned


def validate_tag(tag: Optional[str]) -> str:
    cleaned = (tag or "").strip()
    if not cleaned or any(ch.isspace() for ch in cleaned):
        raise InvalidTag(f"Invalid release tag: {tag!r}")
    if len(cleaned) > 255:
        raise InvalidTag("Tag must be at most 255 characters")
    return cleaned


def validate_search_window(date_from: Optional[date], date_to: Optional[date]) -> None:
    if date_from is not None and date_to is not None and date_from > date_to:
        raise InvalidSearchInput(
            f"date_from {date_from.isoformat()} is after date_to {date_to.isoformat()}"
        )


def validate_pagination(page: int, size: int, max_size: int) -> None:
    if page < 1:
        raise InvalidSearchInput("page must be >= 1")
    if size < 1 or size > max_size:
        raise InvalidSearchInput(f"size must be between 1 and {max_size}")


def validate_sort(field: str, direction: str) -> None:
    if field not in SORTABLE_FIELDS:
        raise InvalidSearchInput(
            f"Unsupported sort field '{field}', expected one of: {', '.join(SORTABLE_FIELDS)}"
        )
    if direction not in {d.value for d in SortDirection}:
        raise InvalidSearchInput(f"Unsupported sort direction '{direction}'")
