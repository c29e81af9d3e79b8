"""
Calculation Engine

Six pure, synchronous calculators and the dispatch over their inputs.
"""

from fundportal.engine.calculators import (
    calculate_cash_surplus,
    calculate_corpus_needed,
    calculate_lifeline,
    calculate_projection_70,
    calculate_salary_saving,
    calculate_swp,
)
from fundportal.engine.dispatch import (
    UnknownCalculatorError,
    calculate,
    parse_calculation_input,
    run_calculator,
)

__all__ = [
    "calculate",
    "calculate_cash_surplus",
    "calculate_corpus_needed",
    "calculate_lifeline",
    "calculate_projection_70",
    "calculate_salary_saving",
    "calculate_swp",
    "parse_calculation_input",
    "run_calculator",
    "UnknownCalculatorError",
]
