"""
Presentation Package

Display formatting for calculator results (rupee amounts, en-IN grouping).
"""

from fundportal.presentation.formatting import (
    FormattedResult,
    FormattedTable,
    format_bare_number,
    format_card_value,
    format_cell,
    format_indian_number,
    format_inr,
    format_result,
    format_table,
)

__all__ = [
    "FormattedResult",
    "FormattedTable",
    "format_bare_number",
    "format_card_value",
    "format_cell",
    "format_indian_number",
    "format_inr",
    "format_result",
    "format_table",
]
