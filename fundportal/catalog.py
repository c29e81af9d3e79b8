"""
Calculator Catalog

Static description of the six calculators: display name, description
and the ordered form fields the UI renders and the form validator
checks.

Field types:
- number:   plain count (ages, years); must be >= 0 and at most max_value
- currency: rupee amount; any number
- percent:  entered as 0-100, converted to a fraction before calculation
"""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from fundportal.models.calculation import CalculatorKind


FieldType = Literal["number", "currency", "percent"]

# Same ceiling as BasicInfo.age
MAX_AGE = 120
MAX_HORIZON_YEARS = 100
MAX_YEAR = 9999


class FormField(BaseModel):
    """One input on a calculator form."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="camelCase form key")
    label: str
    type: FieldType
    unit: Optional[str] = None
    placeholder: Optional[str] = None
    max_value: Optional[int] = Field(default=None, description="Inclusive upper bound for number fields")

    @property
    def prompt(self) -> str:
        return self.placeholder or f"Enter {self.label}"


class CalculatorDefinition(BaseModel):
    """A calculator as shown on the selection page."""
    model_config = ConfigDict(frozen=True)

    id: CalculatorKind
    name: str
    description: str
    fields: tuple[FormField, ...]
    uses_current_age: bool = False

    def field(self, field_id: str) -> FormField:
        for form_field in self.fields:
            if form_field.id == field_id:
                return form_field
        raise KeyError(f"{self.id.value} has no field {field_id!r}")


# =============================================================================
# CASH SURPLUS CATEGORIES
# =============================================================================

# Positional: the first three are reported individually, the rest are
# summed as "Other Expenses".
EXPENSE_CATEGORIES: tuple[tuple[str, str], ...] = (
    ("insurance", "Insurance Premium"),
    ("savings", "Savings / Investments"),
    ("loanEmi", "Loan EMI"),
    ("rent", "Rent"),
    ("electricityBills", "Electricity Bills"),
    ("waterGasBills", "Water & Gas Bills"),
    ("groceries", "Groceries"),
    ("schoolFees", "School Fees"),
    ("householdMaintenance", "Household Maintenance"),
    ("transport", "Transport & Fuel"),
    ("medical", "Medical Expenses"),
    ("phoneInternetBills", "Phone & Internet Bills"),
    ("entertainment", "Entertainment"),
    ("clothing", "Clothing"),
    ("miscellaneous", "Miscellaneous"),
)

EXPENSE_CATEGORY_IDS: tuple[str, ...] = tuple(field_id for field_id, _ in EXPENSE_CATEGORIES)


# =============================================================================
# CALCULATORS
# =============================================================================

CALCULATORS: tuple[CalculatorDefinition, ...] = (
    CalculatorDefinition(
        id=CalculatorKind.LIFELINE,
        name="Lifeline Calculator",
        description="Estimate the retirement corpus needed to keep your current lifestyle.",
        uses_current_age=True,
        fields=(
            FormField(id="retirementAge", label="Retirement Age", type="number", unit="years", max_value=MAX_AGE),
            FormField(id="currentMonthlyExpense", label="Current Monthly Expense", type="currency", unit="₹"),
        ),
    ),
    CalculatorDefinition(
        id=CalculatorKind.SALARY_SAVING,
        name="Salary Saving Calculator",
        description="Project salary growth and split it into needs, wants and savings.",
        uses_current_age=True,
        fields=(
            FormField(id="rate", label="Rate of Return", type="percent", unit="%"),
            FormField(id="nominal", label="Nominal Rate", type="percent", unit="%"),
            FormField(id="monthlySalary", label="Monthly Salary", type="currency", unit="₹"),
            FormField(id="savingsRate", label="Savings Rate", type="percent", unit="%"),
            FormField(id="salaryGrowth", label="Salary Growth", type="percent", unit="%"),
            FormField(id="calculateUptoAge", label="Calculate Upto Age", type="number", unit="years", max_value=MAX_AGE),
        ),
    ),
    CalculatorDefinition(
        id=CalculatorKind.SWP,
        name="SWP Calculator",
        description="See how long a corpus lasts under a systematic monthly withdrawal.",
        fields=(
            FormField(id="investmentAmount", label="Investment Amount", type="currency", unit="₹"),
            FormField(id="returnRate", label="Return Rate", type="percent", unit="%"),
            FormField(id="withdrawalAmount", label="Monthly Withdrawal", type="currency", unit="₹"),
            FormField(id="expectedRate", label="Expected Rate", type="percent", unit="%"),
        ),
    ),
    CalculatorDefinition(
        id=CalculatorKind.CASH_SURPLUS,
        name="Cash Surplus Tracker",
        description="Compare monthly income against spending across 15 expense categories.",
        fields=(
            FormField(id="cashIn", label="Monthly Cash In", type="currency", unit="₹"),
            *(
                FormField(id=field_id, label=label, type="currency", unit="₹")
                for field_id, label in EXPENSE_CATEGORIES
            ),
        ),
    ),
    CalculatorDefinition(
        id=CalculatorKind.PROJECTION_70,
        name="70-Year Projection",
        description="Project lumpsum and SIP wealth over a 70-year horizon.",
        fields=(
            FormField(id="lumpsum", label="Lumpsum Investment", type="currency", unit="₹"),
            FormField(id="ror", label="Rate of Return", type="percent", unit="%"),
            FormField(id="nominalRate", label="Nominal Rate", type="percent", unit="%"),
            FormField(id="monthlyInvestment", label="Monthly Investment", type="currency", unit="₹"),
            FormField(id="startYear", label="Start Year", type="number", max_value=MAX_YEAR),
            FormField(id="endYear", label="End Year", type="number", max_value=MAX_YEAR),
        ),
    ),
    CalculatorDefinition(
        id=CalculatorKind.CORPUS_NEEDED,
        name="Corpus Needed Calculator",
        description="Find the deficit to a target wealth and four ways to close it.",
        fields=(
            FormField(id="currentWealth", label="Current Wealth", type="currency", unit="₹"),
            FormField(id="ror", label="Rate of Return", type="percent", unit="%"),
            FormField(id="nominalRate", label="Nominal Rate", type="percent", unit="%"),
            FormField(id="activeSIP", label="Active Monthly SIP", type="currency", unit="₹"),
            FormField(id="years", label="Years", type="number", unit="years", max_value=MAX_HORIZON_YEARS),
            FormField(id="targetWealth", label="Target Wealth", type="currency", unit="₹"),
        ),
    ),
)

_BY_ID = {calculator.id: calculator for calculator in CALCULATORS}


def get_calculator(calculator_id: str) -> CalculatorDefinition:
    """Look up a calculator by id. Raises KeyError for unknown ids."""
    try:
        return _BY_ID[CalculatorKind(calculator_id)]
    except ValueError:
        raise KeyError(f"Unknown calculator: {calculator_id!r}") from None
