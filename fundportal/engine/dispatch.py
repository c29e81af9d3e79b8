"""
Calculator Dispatch

Maps each CalculationInput variant to its calculator function.

Callers that hold a plain mapping (a submitted form, a JSON body) use
parse_calculation_input() to build the tagged variant first.
"""

from typing import Any, Callable, Mapping

from pydantic import TypeAdapter

from fundportal.engine.calculators import (
    calculate_cash_surplus,
    calculate_corpus_needed,
    calculate_lifeline,
    calculate_projection_70,
    calculate_salary_saving,
    calculate_swp,
)
from fundportal.models.calculation import (
    CalculationInput,
    CalculationResult,
    CalculatorKind,
    CashSurplusInput,
    CorpusNeededInput,
    LifelineInput,
    Projection70Input,
    SalarySavingInput,
    SWPInput,
)


class UnknownCalculatorError(ValueError):
    """Raised when a calculator identifier matches none of the six calculators."""

    def __init__(self, kind: Any):
        self.kind = kind
        super().__init__(f"Unknown calculator: {kind!r}")


_CALCULATORS: dict[type, Callable[[Any], CalculationResult]] = {
    LifelineInput: calculate_lifeline,
    SalarySavingInput: calculate_salary_saving,
    SWPInput: calculate_swp,
    CashSurplusInput: calculate_cash_surplus,
    Projection70Input: calculate_projection_70,
    CorpusNeededInput: calculate_corpus_needed,
}

_input_adapter: TypeAdapter = TypeAdapter(CalculationInput)


def calculate(calculation_input: CalculationInput) -> CalculationResult:
    """Run the calculator matching the input variant."""
    calculator = _CALCULATORS.get(type(calculation_input))
    if calculator is None:
        raise UnknownCalculatorError(type(calculation_input).__name__)
    return calculator(calculation_input)


def parse_calculation_input(data: Mapping[str, Any]) -> CalculationInput:
    """
    Build the tagged input variant from a mapping keyed by `kind`.

    Field names may be snake_case or the camelCase used by the forms.
    Raises UnknownCalculatorError for a missing or unknown kind and
    pydantic.ValidationError for malformed fields.
    """
    kind = data.get("kind")
    if kind not in {k.value for k in CalculatorKind}:
        raise UnknownCalculatorError(kind)
    return _input_adapter.validate_python(dict(data))


def run_calculator(data: Mapping[str, Any]) -> CalculationResult:
    """parse_calculation_input() followed by calculate()."""
    return calculate(parse_calculation_input(data))
