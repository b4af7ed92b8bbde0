"""Tests for tolerant numeric and date coercion of spreadsheet cells."""

import math

import pytest

from studio_core.coerce import (
    as_text,
    month_key,
    normalize_any_date,
    parse_amount,
    parse_grid_numeric,
    parse_localized_date,
)


class TestParseAmount:
    """parse_amount never fails and keeps real quantities."""

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("1,234.5", 1234.5),
            ("₹500", 500.0),
            ("â‚¹2,000", 2000.0),
            (" 42 ", 42.0),
            ("$19.99", 19.99),
            (7, 7.0),
            (3.5, 3.5),
            ("-15", -15.0),
        ],
    )
    def test_parses_formatted_numbers(self, raw, expected):
        assert parse_amount(raw) == pytest.approx(expected)

    @pytest.mark.parametrize("raw", ["", None, "—", "abc", "nan", "inf", float("nan"), float("inf")])
    def test_unusable_input_is_zero(self, raw):
        result = parse_amount(raw)
        assert result == 0.0
        assert math.isfinite(result)

    def test_numeric_prefix_is_kept(self):
        """Text trailing a number is ignored like spreadsheet exports do."""
        assert parse_amount("12 sessions") == 12.0


class TestParseGridNumeric:
    """parse_grid_numeric treats epoch-formatted cells as zero."""

    @pytest.mark.parametrize("raw", ["30-12-1899", "1899-12-30", "01-01-1900 00:00"])
    def test_epoch_artifacts_are_zero(self, raw):
        assert parse_grid_numeric(raw) == 0.0

    def test_regular_values(self):
        assert parse_grid_numeric("1,005") == 1005.0
        assert parse_grid_numeric(12) == 12.0
        assert parse_grid_numeric(None) == 0.0
        assert parse_grid_numeric("") == 0.0


class TestParseLocalizedDate:
    """Day-first slash dates become ISO strings."""

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("15/01/2024", "2024-01-15"),
            ("5/3/2024", "2024-03-05"),
            ("05/03/2024 14:32:10", "2024-03-05"),
            ("29/02/2024", "2024-02-29"),
        ],
    )
    def test_valid_dates(self, raw, expected):
        assert parse_localized_date(raw) == expected

    @pytest.mark.parametrize(
        "raw",
        ["", None, "2024-01-15", "15/01", "aa/bb/cccc", "32/01/2024", "31/02/2024", "15/13/2024", "1/1/24"],
    )
    def test_malformed_dates_are_blank(self, raw):
        assert parse_localized_date(raw) == ""

    def test_other_source_formats(self):
        assert parse_localized_date("01/15/2024", "MDY") == "2024-01-15"
        assert parse_localized_date("2024/01/15", "YMD") == "2024-01-15"
        assert parse_localized_date("15/01/2024", "XYZ") == ""


class TestHelpers:
    def test_as_text(self):
        assert as_text("  Barre ") == "Barre"
        assert as_text(None) == ""
        assert as_text(float("nan")) == ""
        assert as_text("None") == ""

    def test_normalize_any_date(self):
        assert normalize_any_date("2024-3-5") == "2024-03-05"
        assert normalize_any_date("2024-03-05T10:00:00") == "2024-03-05"
        assert normalize_any_date("05/03/2024 10:00") == "2024-03-05"
        assert normalize_any_date("March 5") == ""
        assert normalize_any_date("") == ""

    def test_month_key(self):
        assert month_key("2024-03-05") == "2024-03"
        assert month_key("") is None
