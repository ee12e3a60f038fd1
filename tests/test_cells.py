"""Tests for distributor.cells: cell classification and numeric coercion."""

from __future__ import annotations

import math

from distributor.cells import CellKind, cell_text, classify_cell, is_missing, parse_numeric_cell


class TestIsMissing:
    def test_none(self):
        assert is_missing(None)

    def test_blank_text(self):
        assert is_missing("")
        assert is_missing("   ")

    def test_nan(self):
        assert is_missing(float("nan"))

    def test_zero_is_not_missing(self):
        assert not is_missing(0)
        assert not is_missing("0")


class TestParseNumericCell:
    def test_int_passthrough(self):
        assert parse_numeric_cell(7) == 7

    def test_float_truncates_toward_zero(self):
        assert parse_numeric_cell(3.9) == 3
        assert parse_numeric_cell(-3.9) == -3

    def test_numeric_text(self):
        assert parse_numeric_cell(" 42 ") == 42
        assert parse_numeric_cell("4.75") == 4

    def test_thousands_separator(self):
        assert parse_numeric_cell("1,234") == 1234

    def test_invalid_text(self):
        assert parse_numeric_cell("abc") is None
        assert parse_numeric_cell("12 apples") is None

    def test_missing(self):
        assert parse_numeric_cell(None) is None
        assert parse_numeric_cell("") is None
        assert parse_numeric_cell(float("nan")) is None

    def test_non_finite(self):
        assert parse_numeric_cell(math.inf) is None
        assert parse_numeric_cell("inf") is None
        assert parse_numeric_cell("nan") is None

    def test_booleans_are_invalid(self):
        assert parse_numeric_cell(True) is None
        assert parse_numeric_cell(False) is None

    def test_large_int_is_exact(self):
        assert parse_numeric_cell(2**53 + 1) == 2**53 + 1
        assert parse_numeric_cell(10**400) == 10**400

    def test_large_integer_text_is_exact(self):
        assert parse_numeric_cell(str(2**53 + 1)) == 2**53 + 1
        assert parse_numeric_cell("9,007,199,254,740,993") == 2**53 + 1
        assert parse_numeric_cell("1" + "0" * 400) == 10**400

    def test_misplaced_comma_is_invalid(self):
        assert parse_numeric_cell("1,5") is None
        assert parse_numeric_cell("12,34,567") is None
        assert parse_numeric_cell(",123") is None
        assert parse_numeric_cell("-12,345.9") == -12345

    def test_inner_whitespace_is_invalid(self):
        assert parse_numeric_cell("3 4") is None
        assert parse_numeric_cell("1 234") is None


class TestClassifyCell:
    def test_kinds(self):
        assert classify_cell(None) is CellKind.MISSING
        assert classify_cell(" ") is CellKind.MISSING
        assert classify_cell(5) is CellKind.NUMBER
        assert classify_cell("5.5") is CellKind.NUMBER
        assert classify_cell("Demand") is CellKind.TEXT

    def test_cell_text(self):
        assert cell_text("  Bin A ") == "Bin A"
        assert cell_text(None) == ""
        assert cell_text(2024.0) == "2024"
