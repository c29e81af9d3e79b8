"""
Calculation Models for Fund Portal

These models define the inputs and outputs of the calculation engine.

CalculationInput is a closed tagged union: one variant per calculator,
discriminated by the `kind` field. Each variant is a flat record of
numbers. Rates are FRACTIONS (0.07 means 7%), never percentages.

DESIGN DECISION: The engine-level models enforce no numeric ranges.
Negative ages, zero rates and NaN are accepted here and flow into the
results unchanged. Range checks belong to the form validation layer
(fundportal.validation), which runs before the engine is called.
"""

from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


# =============================================================================
# CALCULATOR IDENTIFIERS
# =============================================================================

class CalculatorKind(str, Enum):
    """Identifiers of the six calculators (match the portal's URL ids)."""
    LIFELINE = "lifeline"
    SALARY_SAVING = "salarySaving"
    SWP = "swp"
    CASH_SURPLUS = "cashSurplus"
    PROJECTION_70 = "projection70"
    CORPUS_NEEDED = "corpusNeeded"


# =============================================================================
# INPUT VARIANTS
# =============================================================================

class CalculatorInputBase(BaseModel):
    """
    Common configuration for every calculator input.

    Fields accept both snake_case names and the camelCase names used by
    the browser forms (e.g. `current_age` or `currentAge`).
    """
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class LifelineInput(CalculatorInputBase):
    """Retirement corpus needed to sustain today's lifestyle."""
    kind: Literal["lifeline"] = "lifeline"
    current_age: int
    retirement_age: int
    monthly_expense_now: float


class SalarySavingInput(CalculatorInputBase):
    """Salary growth split into needs, wants and compounded savings."""
    kind: Literal["salarySaving"] = "salarySaving"
    rate: float
    nominal: float = 0.0  # accepted, not used in the projection
    monthly_salary: float
    savings_rate: float
    salary_growth: float
    calculate_upto_age: int
    current_age: int


class SWPInput(CalculatorInputBase):
    """Systematic withdrawal from an invested corpus."""
    kind: Literal["swp"] = "swp"
    investment_amount: float
    return_rate: float
    withdrawal: float
    expected_rate: float = 0.0  # accepted, not used


class CashSurplusInput(CalculatorInputBase):
    """
    Monthly cash in versus 15 positional expense categories.

    Index 0 = Insurance, 1 = Savings, 2 = Loan EMI,
    3..14 = miscellaneous categories summed as "Other Expenses".
    """
    kind: Literal["cashSurplus"] = "cashSurplus"
    cash_in: float
    expenses_by_category: tuple[float, ...] = ()


class Projection70Input(CalculatorInputBase):
    """70-year wealth projection from a lumpsum plus a monthly SIP."""
    kind: Literal["projection70"] = "projection70"
    lumpsum_investment: float
    ror: float
    nominal_rate: float = 0.0  # accepted, not used
    monthly_investment: float
    start_year: int
    end_year: int = 0  # accepted, the horizon is always 70 years


class CorpusNeededInput(CalculatorInputBase):
    """Deficit between projected and target wealth, with ways to close it."""
    kind: Literal["corpusNeeded"] = "corpusNeeded"
    current_wealth: float
    ror: float
    nominal_rate: float = 0.0  # accepted, not used
    active_sip: float = Field(alias="activeSIP")
    years: int
    target_wealth: float


CalculationInput = Annotated[
    Union[
        LifelineInput,
        SalarySavingInput,
        SWPInput,
        CashSurplusInput,
        Projection70Input,
        CorpusNeededInput,
    ],
    Field(discriminator="kind"),
]


# =============================================================================
# RESULT SHAPE
# =============================================================================

# Numbers are left unrounded; literal placeholders ("TOTAL", "", "0.00",
# "7.0%") are strings.
CellValue = Union[int, float, str]


class SummaryCard(BaseModel):
    """A single headline metric shown above the tables."""
    title: str
    value: CellValue


class ResultTable(BaseModel):
    """
    A tabular projection.

    `headers` fixes the column order. Each row maps header -> cell and
    keeps insertion order. The presentation layer decides currency vs
    plain formatting from the literal header text.
    """
    headers: list[str]
    rows: list[dict[str, CellValue]] = Field(default_factory=list)

    def column(self, header: str) -> list[CellValue]:
        """All cells of one column, top to bottom."""
        if header not in self.headers:
            raise KeyError(f"Unknown column: {header}")
        return [row.get(header, "") for row in self.rows]


class CalculationResult(BaseModel):
    """
    Output of one calculator invocation.

    Transient value: it has no identity and is never persisted.
    """
    kind: CalculatorKind
    cards: list[SummaryCard] = Field(default_factory=list)
    tables: list[ResultTable] = Field(default_factory=list)
    notes: list[str] = Field(default_factory=list)

    def card(self, title: str) -> SummaryCard:
        """Look up a summary card by its exact title."""
        for card in self.cards:
            if card.title == title:
                return card
        raise KeyError(f"No card titled {title!r}")
