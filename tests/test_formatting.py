"""
Tests for result formatting (en-IN grouping, rupee amounts, headers).
"""

import math

import pytest

from fundportal.engine import calculate_lifeline, calculate_projection_70
from fundportal.models.calculation import LifelineInput, Projection70Input, ResultTable
from fundportal.presentation import (
    format_bare_number,
    format_card_value,
    format_cell,
    format_indian_number,
    format_inr,
    format_result,
    format_table,
)
from fundportal.presentation.formatting import is_plain_card


class TestNumberFormatting:
    """Tests for the number formatters."""

    @pytest.mark.parametrize("value, expected", [
        (0, "₹0.00"),
        (999, "₹999.00"),
        (1000, "₹1,000.00"),
        (100000, "₹1,00,000.00"),
        (1234567.8, "₹12,34,567.80"),
        (123456789, "₹12,34,56,789.00"),
        (-500, "-₹500.00"),
        (0.125, "₹0.13"),
    ])
    def test_format_inr(self, value, expected):
        assert format_inr(value) == expected

    def test_format_inr_tiny_negative_is_not_signed(self):
        """Test a value that rounds to zero loses its sign."""
        assert format_inr(-0.001) == "₹0.00"

    def test_format_inr_non_finite(self):
        assert format_inr(math.nan) == "₹NaN"
        assert format_inr(math.inf) == "₹∞"
        assert format_inr(-math.inf) == "-₹∞"

    @pytest.mark.parametrize("value, expected", [
        (62, "62"),
        (1000, "1,000"),
        (1234567.5, "12,34,567.5"),
        (0.1234, "0.123"),
        (10.0, "10"),
        (-2500.25, "-2,500.25"),
    ])
    def test_format_indian_number(self, value, expected):
        assert format_indian_number(value) == expected

    def test_format_indian_number_non_finite(self):
        assert format_indian_number(math.nan) == "NaN"
        assert format_indian_number(-math.inf) == "-∞"

    def test_format_bare_number(self):
        assert format_bare_number(2031) == "2031"
        assert format_bare_number(2031.0) == "2031"
        assert format_bare_number(0.5) == "0.5"
        assert format_bare_number(math.nan) == "NaN"
        assert format_bare_number(math.inf) == "Infinity"
        assert format_bare_number(-math.inf) == "-Infinity"


class TestCellFormatting:
    """Tests for header and title heuristics."""

    def test_currency_headers(self):
        assert format_cell("Needs (₹)", 300000.0) == "₹3,00,000.00"
        assert format_cell("Future Monthly Expense (₹)", 39500) == "₹39,500.00"
        assert format_cell("Net Wealth (₹)", 1e7) == "₹1,00,00,000.00"

    def test_plain_headers_are_bare(self):
        assert format_cell("Year", 2031) == "2031"
        assert format_cell("Age", 42) == "42"
        assert format_cell("Month", 120) == "120"

    def test_other_numeric_headers_are_grouped(self):
        assert format_cell("Interest (₹)", 1200.5) == "1,200.5"

    def test_strings_pass_through(self):
        assert format_cell("Age", "TOTAL") == "TOTAL"
        assert format_cell("Monthly Salary (₹)", "") == ""
        assert format_cell("Withdrawal (₹)", "0.00") == "0.00"

    def test_card_values(self):
        assert format_card_value("Desired Age of Retirement", 62) == "62"
        assert format_card_value("Future Corpus Required**", 1234567.891) == "₹12,34,567.89"
        assert format_card_value("Deficit", -1500) == "-₹1,500.00"
        assert format_card_value("Savings Rate", "20.0%") == "20.0%"

    def test_monthly_and_yearly_cards_are_rupees(self):
        """Test only the age card is plain; money cards keep the rupee sign."""
        assert format_card_value("Current Monthly Salary", 50000.0) == "₹50,000.00"
        assert format_card_value("Monthly SIP", 5000) == "₹5,000.00"
        assert format_card_value("Monthly Withdrawal", 10000.0) == "₹10,000.00"
        assert format_card_value("Future Monthly Expense*", 1234.5) == "₹1,234.50"
        assert format_card_value("Final Wealth (70 years)", 1e7) == "₹1,00,00,000.00"

    def test_age_must_be_a_whole_word(self):
        assert is_plain_card("Desired Age of Retirement") is True
        assert is_plain_card("Mortgage Balance") is False


class TestResultFormatting:
    """Tests for formatting whole results."""

    def test_format_table_orders_cells_by_header(self):
        table = ResultTable(
            headers=["Age", "Needs (₹)"],
            rows=[{"Needs (₹)": 10.0, "Age": 30}, {"Age": "TOTAL"}],
        )
        formatted = format_table(table)
        assert formatted.rows == [["30", "₹10.00"], ["TOTAL", ""]]

    def test_format_lifeline_result(self):
        result = calculate_lifeline(
            LifelineInput(current_age=32, retirement_age=62, monthly_expense_now=39500)
        )
        formatted = format_result(result)

        assert formatted.cards[0] == ("Desired Age of Retirement", "62")
        assert formatted.tables[0].headers == ["Age", "Future Monthly Expense (₹)"]
        assert formatted.tables[0].rows[0] == ["32", "₹39,500.00"]
        assert formatted.notes == result.notes

    def test_format_projection_years_are_bare(self):
        result = calculate_projection_70(Projection70Input(
            lumpsum_investment=1000, ror=0.1, monthly_investment=100, start_year=2025,
        ))
        formatted = format_result(result)
        first = formatted.tables[0].rows[0]
        assert first[0] == "2025"
        assert first[3] == "0.00"
