"""
Financial Projection Calculators

Six independent, pure functions. Each takes one CalculationInput variant
and returns a CalculationResult (summary cards, tables, notes).

GUARANTEES:
- No I/O, no logging, no shared state. Identical inputs give
  bit-identical outputs.
- No input validation and no exceptions for odd numbers. A zero rate
  or a retirement age below the current age produces inf/nan or an
  empty table; callers validate forms BEFORE calling (see
  fundportal.validation).

Monetary cells are unrounded floats. Formatting (rupee sign, grouping,
decimals) is done by fundportal.presentation.
"""

from fundportal.engine.numeric import floor_at_zero, ieee_div, ieee_pow
from fundportal.models.calculation import (
    CalculationResult,
    CalculatorKind,
    CashSurplusInput,
    CellValue,
    CorpusNeededInput,
    LifelineInput,
    Projection70Input,
    ResultTable,
    SalarySavingInput,
    SummaryCard,
    SWPInput,
)


# =============================================================================
# CONSTANTS
# =============================================================================

LIFELINE_INFLATION_RATE = 0.07
LIFELINE_RETURN_RATE = 0.06
LIFELINE_AGE_STEP = 10

NEEDS_SHARE = 0.50
WANTS_SHARE = 0.30

SWP_HORIZONS_YEARS = (5, 10, 15, 20)
SWP_TRACKING_MONTHS = 240
SWP_DETAILED_MONTHS = 60

CASH_SURPLUS_CATEGORY_COUNT = 15
CASH_SURPLUS_FIXED_CATEGORIES = 3  # Insurance, Savings, Loan EMI

PROJECTION_YEARS = 70

# (label, lumpsum share, SIP share)
CORPUS_OPTIONS = (
    ("Option 1: 100% Lumpsum", 1.0, 0.0),
    ("Option 2: 100% SIP", 0.0, 1.0),
    ("Option 3: 50% SIP + 50% Lumpsum", 0.5, 0.5),
    ("Option 4: 40% SIP + 60% Lumpsum", 0.6, 0.4),
)

ZERO_PLACEHOLDER = "0.00"
TOTAL_LABEL = "TOTAL"


def _percent_label(fraction: float) -> str:
    return f"{fraction * 100:.1f}%"


# =============================================================================
# 1. LIFELINE
# =============================================================================

def lifeline_age_slots(current_age: int, retirement_age: int) -> list[int]:
    """
    Ages from current_age in steps of 10 while <= retirement_age.

    The retirement age is NOT appended when the stride skips it:
    (30, 55) -> [30, 40, 50].
    """
    slots = []
    age = current_age
    while age <= retirement_age:
        slots.append(age)
        age += LIFELINE_AGE_STEP
    return slots


def calculate_lifeline(inputs: LifelineInput) -> CalculationResult:
    """
    Future monthly expense per decade and the corpus needed at retirement.

    future_expense(age) = expense_now * (1 + 7%) ** (age - current_age)
    corpus_required     = future_expense(retirement_age) * 12 * (1 / 6%)
    """
    growth = 1 + LIFELINE_INFLATION_RATE
    expense_header = "Future Monthly Expense (₹)"

    rows: list[dict[str, CellValue]] = []
    for age in lifeline_age_slots(inputs.current_age, inputs.retirement_age):
        future_expense = inputs.monthly_expense_now * ieee_pow(growth, age - inputs.current_age)
        rows.append({"Age": age, expense_header: future_expense})

    years_to_retirement = inputs.retirement_age - inputs.current_age
    future_expense_at_retirement = inputs.monthly_expense_now * ieee_pow(growth, years_to_retirement)
    future_corpus_required = future_expense_at_retirement * 12 * ieee_div(1, LIFELINE_RETURN_RATE)

    return CalculationResult(
        kind=CalculatorKind.LIFELINE,
        cards=[
            SummaryCard(title="Desired Age of Retirement", value=inputs.retirement_age),
            SummaryCard(title="Future Monthly Expense*", value=future_expense_at_retirement),
            SummaryCard(title="Future Corpus Required**", value=future_corpus_required),
        ],
        tables=[ResultTable(headers=["Age", expense_header], rows=rows)],
        notes=[
            f"* Future Monthly Expense calculated with {LIFELINE_INFLATION_RATE:.0%} inflation",
            f"** Future Corpus based on {LIFELINE_RETURN_RATE:.0%} annual return",
        ],
    )


# =============================================================================
# 2. SALARY SAVING
# =============================================================================

SALARY_SAVING_HEADERS = [
    "Age",
    "Monthly Salary (₹)",
    "Annual Salary (₹)",
    "Needs (₹)",
    "Wants (₹)",
    "Savings (₹)",
    "Saving Corpus (₹)",
]


def calculate_salary_saving(inputs: SalarySavingInput) -> CalculationResult:
    """
    Year-by-year salary split into needs (50%), wants (30%) and savings.

    Saving corpus for year n = savings * ((1 + rate) ** (n + 1) - 1) / rate.
    A trailing TOTAL row sums needs, wants and savings over all years.
    """
    rows: list[dict[str, CellValue]] = []
    total_needs = 0.0
    total_wants = 0.0
    total_savings = 0.0

    for year in range(inputs.calculate_upto_age - inputs.current_age + 1):
        annual_salary = inputs.monthly_salary * 12 * ieee_pow(1 + inputs.salary_growth, year)
        needs = annual_salary * NEEDS_SHARE
        wants = annual_salary * WANTS_SHARE
        savings = annual_salary * inputs.savings_rate
        saving_corpus = ieee_div(savings * (ieee_pow(1 + inputs.rate, year + 1) - 1), inputs.rate)

        rows.append({
            "Age": inputs.current_age + year,
            "Monthly Salary (₹)": annual_salary / 12,
            "Annual Salary (₹)": annual_salary,
            "Needs (₹)": needs,
            "Wants (₹)": wants,
            "Savings (₹)": savings,
            "Saving Corpus (₹)": saving_corpus,
        })

        total_needs += needs
        total_wants += wants
        total_savings += savings

    rows.append({
        "Age": TOTAL_LABEL,
        "Monthly Salary (₹)": "",
        "Annual Salary (₹)": "",
        "Needs (₹)": total_needs,
        "Wants (₹)": total_wants,
        "Savings (₹)": total_savings,
        "Saving Corpus (₹)": "",
    })

    return CalculationResult(
        kind=CalculatorKind.SALARY_SAVING,
        cards=[
            SummaryCard(title="Current Monthly Salary", value=inputs.monthly_salary),
            SummaryCard(title="Salary Growth Rate", value=_percent_label(inputs.salary_growth)),
            SummaryCard(title="Savings Rate", value=_percent_label(inputs.savings_rate)),
        ],
        tables=[ResultTable(headers=list(SALARY_SAVING_HEADERS), rows=rows)],
        notes=[
            "Needs: 50% of salary, Wants: 30% of salary, Savings: Based on savings rate",
            "Saving Corpus: Compounded savings at specified return rate",
        ],
    )


# =============================================================================
# 3. SWP
# =============================================================================

def _swp_month(balance: float, monthly_return: float, withdrawal: float) -> tuple[float, float]:
    """One month: credit interest on the opening balance, then withdraw."""
    interest = balance * monthly_return
    return balance + interest - withdrawal, interest


def swp_balance_after(investment_amount: float, return_rate: float, withdrawal: float, months: int) -> float:
    """Raw (unfloored) balance after `months` of monthly compounding and withdrawals."""
    monthly_return = return_rate / 12
    balance = investment_amount
    for _ in range(months):
        balance, _interest = _swp_month(balance, monthly_return, withdrawal)
    return balance


def calculate_swp(inputs: SWPInput) -> CalculationResult:
    """
    Systematic withdrawal plan.

    Table 1 re-simulates each horizon (5/10/15/20 years) from the initial
    amount. Table 2 is one continuous 240-month run, showing every month
    of the first five years and every twelfth month after that. Net worth
    is floored at 0 for display only; the simulation itself may go negative.
    """
    horizon_rows: list[dict[str, CellValue]] = []
    for years in SWP_HORIZONS_YEARS:
        balance = swp_balance_after(
            inputs.investment_amount, inputs.return_rate, inputs.withdrawal, years * 12
        )
        horizon_rows.append({
            "Years": years,
            "Total Withdrawal (₹)": inputs.withdrawal * 12 * years,
            "Net Worth (₹)": floor_at_zero(balance),
        })

    monthly_return = inputs.return_rate / 12
    tracking_rows: list[dict[str, CellValue]] = []
    balance = inputs.investment_amount
    for month in range(1, SWP_TRACKING_MONTHS + 1):
        balance, interest = _swp_month(balance, monthly_return, inputs.withdrawal)
        if month <= SWP_DETAILED_MONTHS or month % 12 == 0:
            tracking_rows.append({
                "Month": month,
                "Monthly Amount (₹)": inputs.withdrawal,
                "Interest (₹)": interest,
                "Net Worth (₹)": floor_at_zero(balance),
            })

    return CalculationResult(
        kind=CalculatorKind.SWP,
        cards=[
            SummaryCard(title="Initial Investment", value=inputs.investment_amount),
            SummaryCard(title="Monthly Withdrawal", value=inputs.withdrawal),
            SummaryCard(title="Expected Return Rate", value=_percent_label(inputs.return_rate)),
        ],
        tables=[
            ResultTable(
                headers=["Years", "Total Withdrawal (₹)", "Net Worth (₹)"],
                rows=horizon_rows,
            ),
            ResultTable(
                headers=["Month", "Monthly Amount (₹)", "Interest (₹)", "Net Worth (₹)"],
                rows=tracking_rows,
            ),
        ],
        notes=[
            "Table 1: Shows withdrawal scenarios for different time periods",
            "Table 2: Month-wise tracking (showing first 5 years + yearly milestones)",
            "Net Worth calculated with monthly compounding and withdrawals",
        ],
    )


# =============================================================================
# 4. CASH SURPLUS
# =============================================================================

def cash_flow_remark(cash_surplus: float) -> str:
    if cash_surplus > 0:
        return "Positive cash flow - Good financial health"
    if cash_surplus == 0:
        return "Break-even cash flow - Monitor expenses"
    return "Negative cash flow - Review spending patterns"


def calculate_cash_surplus(inputs: CashSurplusInput) -> CalculationResult:
    """
    Cash in minus the sum of the 15 expense categories.

    Categories 0-2 are reported individually; 3-14 are summed as
    "Other Expenses". Missing leading categories count as 0.
    """
    expenses = inputs.expenses_by_category

    def category(index: int) -> float:
        return expenses[index] if index < len(expenses) else 0.0

    total_expenses = sum(expenses, 0.0)
    cash_surplus = inputs.cash_in - total_expenses

    insurance = category(0)
    savings = category(1)
    loan_emi = category(2)
    other_expenses = sum(expenses[CASH_SURPLUS_FIXED_CATEGORIES:], 0.0)

    remarks = cash_flow_remark(cash_surplus)
    amount_header = "Amount (₹)"

    return CalculationResult(
        kind=CalculatorKind.CASH_SURPLUS,
        cards=[
            SummaryCard(title="Cash In (₹)", value=inputs.cash_in),
            SummaryCard(title="Cash Out (₹)", value=total_expenses),
            SummaryCard(title="Cash Surplus (₹)", value=cash_surplus),
        ],
        tables=[
            ResultTable(
                headers=["Category", amount_header],
                rows=[
                    {"Category": "Insurance", amount_header: insurance},
                    {"Category": "Savings", amount_header: savings},
                    {"Category": "Loan EMI", amount_header: loan_emi},
                    {"Category": "Other Expenses", amount_header: other_expenses},
                    {"Category": TOTAL_LABEL, amount_header: total_expenses},
                ],
            )
        ],
        notes=[
            f"Remarks: {remarks}",
            f"Insurance: {insurance:.2f}, Savings: {savings:.2f}",
            f"Loan EMI: {loan_emi:.2f}, Monthly Expense: {other_expenses:.2f}",
        ],
    )


# =============================================================================
# 5. 70-YEAR PROJECTION
# =============================================================================

def is_projection_milestone(year: int) -> bool:
    """First ten years, every tenth year, and the last ten years."""
    return year <= 10 or year % 10 == 0 or year >= PROJECTION_YEARS - 10


def calculate_projection_70(inputs: Projection70Input) -> CalculationResult:
    """
    Lumpsum plus yearly SIP compounded for years 0..70 inclusive.

    Each year: corpus = corpus * (1 + ror) + monthly_investment * 12.
    That is 71 compounding steps; end_year is ignored.
    """
    sip_value = inputs.monthly_investment * 12
    corpus = inputs.lumpsum_investment
    total_investment = inputs.lumpsum_investment

    rows: list[dict[str, CellValue]] = []
    for year in range(PROJECTION_YEARS + 1):
        total_investment += sip_value
        corpus = corpus * (1 + inputs.ror) + sip_value

        if is_projection_milestone(year):
            rows.append({
                "Year": inputs.start_year + year,
                "SIP Amount (₹)": sip_value,
                "Total Investment (₹)": total_investment,
                "Withdrawal (₹)": ZERO_PLACEHOLDER,
                "SIP Value (₹)": sip_value,
                "Net Wealth (₹)": corpus,
            })

    return CalculationResult(
        kind=CalculatorKind.PROJECTION_70,
        cards=[
            SummaryCard(title="Initial Lumpsum", value=inputs.lumpsum_investment),
            SummaryCard(title="Monthly SIP", value=inputs.monthly_investment),
            SummaryCard(title="Return Rate", value=_percent_label(inputs.ror)),
            SummaryCard(title="Final Wealth (70 years)", value=corpus),
        ],
        tables=[
            ResultTable(
                headers=[
                    "Year",
                    "SIP Amount (₹)",
                    "Total Investment (₹)",
                    "Withdrawal (₹)",
                    "SIP Value (₹)",
                    "Net Wealth (₹)",
                ],
                rows=rows,
            )
        ],
        notes=[
            "Projection covers 70 years from start year",
            "Shows key milestone years for readability",
            "Assumes no withdrawals during accumulation phase",
        ],
    )


# =============================================================================
# 6. CORPUS NEEDED
# =============================================================================

def calculate_corpus_needed(inputs: CorpusNeededInput) -> CalculationResult:
    """
    Deficit between target wealth and projected wealth, and four ways to close it.

    Projected wealth from the active SIP uses the annuity-due form
    (annuity factor * (1 + ror)); the SIP legs of the options divide by the
    plain annuity factor. The two formulas are intentionally left as they are.
    """
    growth = ieee_pow(1 + inputs.ror, inputs.years)
    annuity_factor = ieee_div(growth - 1, inputs.ror)

    future_wealth_from_current = inputs.current_wealth * growth
    future_wealth_from_sip = inputs.active_sip * annuity_factor * (1 + inputs.ror)
    total_future_wealth = future_wealth_from_current + future_wealth_from_sip
    deficit = inputs.target_wealth - total_future_wealth

    rows: list[dict[str, CellValue]] = []
    for label, lumpsum_share, sip_share in CORPUS_OPTIONS:
        lumpsum: CellValue = ZERO_PLACEHOLDER
        monthly_sip: CellValue = ZERO_PLACEHOLDER
        total_investment = 0.0

        if lumpsum_share:
            lumpsum = deficit * lumpsum_share
            total_investment = lumpsum
        if sip_share:
            monthly_sip = ieee_div(deficit * sip_share, annuity_factor)
            sip_outlay = monthly_sip * 12 * inputs.years
            total_investment = total_investment + sip_outlay if lumpsum_share else sip_outlay

        rows.append({
            "Option": label,
            "Lumpsum (₹)": lumpsum,
            "Monthly SIP (₹)": monthly_sip,
            "Total Investment (₹)": total_investment,
        })

    return CalculationResult(
        kind=CalculatorKind.CORPUS_NEEDED,
        cards=[
            SummaryCard(title="Current Wealth", value=inputs.current_wealth),
            SummaryCard(title="Target Wealth", value=inputs.target_wealth),
            SummaryCard(title="Future Wealth (Current + SIP)", value=total_future_wealth),
            SummaryCard(title="Deficit", value=deficit),
        ],
        tables=[
            ResultTable(
                headers=["Option", "Lumpsum (₹)", "Monthly SIP (₹)", "Total Investment (₹)"],
                rows=rows,
            )
        ],
        notes=[
            "Future Wealth calculated with compound interest over specified years",
            "SIP amounts are monthly contributions needed to bridge the deficit",
            "Choose option based on your liquidity preference and investment style",
        ],
    )
