"""Field-level and cross-field validation rules."""
from __future__ import annotations

from datetime import date

import pytest

from tracker.core.exceptions import InvalidDateRange, InvalidSearchInput, InvalidTag, InvalidTitle
from tracker.utils.validation_rules import (
    validate_date_range,
    validate_pagination,
    validate_search_window,
    validate_sort,
    validate_tag,
    validate_title,
)


class TestDateRange:
    def test_start_after_due_rejected(self) -> None:
        with pytest.raises(InvalidDateRange):
            validate_date_range(date(2024, 2, 1), date(2024, 1, 31))

    def test_same_day_is_valid(self) -> None:
        validate_date_range(date(2024, 1, 1), date(2024, 1, 1))

    def test_ordered_range_is_valid(self) -> None:
        validate_date_range(date(2024, 1, 1), date(2024, 1, 31))


class TestTitleAndTag:
    def test_title_is_stripped(self) -> None:
        assert validate_title("  v1  ") == "v1"

    @pytest.mark.parametrize("title", ["", "   ", None])
    def test_blank_title_rejected(self, title) -> None:
        with pytest.raises(InvalidTitle):
            validate_title(title)

    def test_overlong_title_rejected(self) -> None:
        with pytest.raises(InvalidTitle):
            validate_title("x" * 256)

    def test_tag_with_whitespace_rejected(self) -> None:
        with pytest.raises(InvalidTag):
            validate_tag("v1 .0")

    def test_tag_accepted(self) -> None:
        assert validate_tag(" v1.0.0 ") == "v1.0.0"


class TestSearchInput:
    def test_inverted_window_rejected(self) -> None:
        with pytest.raises(InvalidSearchInput):
            validate_search_window(date(2024, 3, 1), date(2024, 1, 1))

    def test_open_ended_window_accepted(self) -> None:
        validate_search_window(date(2024, 3, 1), None)
        validate_search_window(None, date(2024, 3, 1))

    @pytest.mark.parametrize("page,size", [(0, 10), (1, 0), (1, 101), (-3, 10)])
    def test_bad_pagination_rejected(self, page: int, size: int) -> None:
        with pytest.raises(InvalidSearchInput):
            validate_pagination(page, size, max_size=100)

    def test_unsupported_sort_field_rejected(self) -> None:
        with pytest.raises(InvalidSearchInput, match="Unsupported sort field"):
            validate_sort("state", "asc")

    def test_unsupported_sort_direction_rejected(self) -> None:
        with pytest.raises(InvalidSearchInput):
            validate_sort("title", "sideways")
