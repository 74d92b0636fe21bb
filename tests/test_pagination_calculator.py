"""
Tests for page window arithmetic.

These tests verify limit selection, page clamping and the display bounds of
the page window.
"""

import pytest

from listing_filters.storage.pagination import (
    calculate_pagination,
    paginate,
    parse_int,
    select_limit,
)


class TestSelectLimit:
    """Tests for select_limit."""

    def test_allowed_request_wins(self):
        assert select_limit("50", [10, 20, 50], 20) == 50

    def test_disallowed_request_uses_default(self):
        """Test that a limit outside the offered ones is ignored."""
        assert select_limit("1000", [10, 20, 50], 20) == 20

    def test_remembered_limit_used_without_request(self):
        assert select_limit(None, [10, 20, 50], 20, remembered=10) == 10

    def test_request_beats_remembered_limit(self):
        assert select_limit("50", [10, 20, 50], 20, remembered=10) == 50

    def test_remembered_limit_no_longer_allowed(self):
        """Test that a stale remembered limit falls back to the default."""
        assert select_limit(None, [10, 20], 20, remembered=500) == 20

    def test_non_numeric_request(self):
        assert select_limit("lots", [10, 20], 20) == 20


class TestCalculatePagination:
    """Tests for calculate_pagination."""

    def test_middle_page(self):
        """Test the window of a full page in the middle of the result."""
        state = calculate_pagination(20, "3", 95)

        assert state.page == 3
        assert state.pages == 5
        assert state.offset == 40
        assert (state.from_, state.to) == (41, 60)

    def test_page_beyond_last_is_clamped(self):
        """Test that a too-large page shows the last page."""
        state = calculate_pagination(10, "99", 95)

        assert state.page == 10
        assert state.offset == 90
        assert (state.from_, state.to) == (91, 95)

    @pytest.mark.parametrize("requested", ["0", "-4", "abc", None, ""])
    def test_invalid_page_is_first_page(self, requested):
        state = calculate_pagination(10, requested, 95)

        assert state.page == 1
        assert state.offset == 0
        assert state.from_ == 1

    def test_no_rows(self):
        """Test the window of an empty result."""
        state = calculate_pagination(20, "5", 0)

        assert state.pages == 1
        assert state.page == 1
        assert state.offset == 0
        assert (state.from_, state.to) == (0, 0)

    def test_exact_multiple(self):
        state = calculate_pagination(10, "2", 20)

        assert state.pages == 2
        assert (state.from_, state.to) == (11, 20)

    @pytest.mark.parametrize("total", [1, 9, 10, 11, 99, 100, 101])
    @pytest.mark.parametrize("limit", [1, 7, 10, 50])
    @pytest.mark.parametrize("requested", ["1", "2", "5", "1000"])
    def test_window_invariants(self, total, limit, requested):
        """Test that bounds and page stay consistent for any input."""
        state = calculate_pagination(limit, requested, total)

        assert 1 <= state.page <= state.pages
        assert state.pages == -(-total // limit)
        assert state.offset == (state.page - 1) * limit
        assert 1 <= state.from_ <= state.to <= total
        assert state.to - state.from_ + 1 <= limit

    def test_reports_defaults_and_pass_params(self):
        state = calculate_pagination(
            10, "1", 30, default_limit=20, limits=[10, 20], pass_params={"c": "x"}
        )

        assert state.default_limit == 20
        assert state.limits == (10, 20)
        assert state.pass_params == {"c": "x"}

    def test_default_limit_defaults_to_limit(self):
        state = calculate_pagination(10, "1", 30)

        assert state.default_limit == 10


class TestPaginate:
    """Tests for selecting the limit and computing the window together."""

    def test_requested_limit_and_page(self):
        """Test a request for 50 rows per page on page 2 of 120 rows."""
        state = paginate("50", [10, 20, 50], 20, "2", 120)

        assert state.limit == 50
        assert state.pages == 3
        assert state.offset == 50
        assert (state.from_, state.to) == (51, 100)

    def test_disallowed_limit_and_clamped_page(self):
        """Test that a rejected limit and an out-of-range page both recover."""
        state = paginate("1000", [10, 20, 50], 20, "9", 45)

        assert state.limit == 20
        assert state.pages == 3
        assert state.page == 3
        assert (state.from_, state.to) == (41, 45)

    def test_remembered_limit(self):
        state = paginate(None, [10, 20], 20, None, 45, remembered_limit=10)

        assert state.limit == 10
        assert state.pages == 5


class TestParseInt:
    """Tests for parse_int."""

    @pytest.mark.parametrize(
        "value,expected",
        [("3", 3), (" 7 ", 7), (4, 4), ("-2", -2), ("x", None), ("", None), (None, None), (True, None), ("2.5", None)],
    )
    def test_parse_int(self, value, expected):
        assert parse_int(value) == expected
