"""
Two-Stage Calculator Form Validation

The calculation engine accepts any numbers and lets NaN/Infinity flow
into its results. This layer sits in front of it and refuses forms that
would produce nonsense.

STAGE 1 - SCHEMA VALIDATION:
- Every catalog field is required
- Values must be numeric (form strings are parsed)
- number fields: whole numbers >= 0, capped (ages 120, horizon 100 years)
- percent fields: between 0 and 100

STAGE 2 - SEMANTIC VALIDATION:
- Retirement / upto age not below the current age
- Rates used as divisors must be non-zero
- Corpus horizon must be at least one year
- Missing profile age is reported (current age defaults to 0)

IMPORTANT: Validation NEVER silently fixes input.
It reports issues; the user corrects the form.
"""

import math
from typing import Any, Mapping, Optional, Union

from fundportal.catalog import (
    EXPENSE_CATEGORY_IDS,
    CalculatorDefinition,
    FormField,
    get_calculator,
)
from fundportal.engine.dispatch import UnknownCalculatorError, parse_calculation_input
from fundportal.models.calculation import CalculationInput, CalculatorKind
from fundportal.models.profile import BasicInfo
from fundportal.models.validation import ValidationIssue, ValidationResult


Number = Union[int, float]

# form field id -> engine input field, per calculator
_INPUT_FIELDS: dict[CalculatorKind, dict[str, str]] = {
    CalculatorKind.LIFELINE: {
        "retirementAge": "retirement_age",
        "currentMonthlyExpense": "monthly_expense_now",
    },
    CalculatorKind.SALARY_SAVING: {
        "rate": "rate",
        "nominal": "nominal",
        "monthlySalary": "monthly_salary",
        "savingsRate": "savings_rate",
        "salaryGrowth": "salary_growth",
        "calculateUptoAge": "calculate_upto_age",
    },
    CalculatorKind.SWP: {
        "investmentAmount": "investment_amount",
        "returnRate": "return_rate",
        "withdrawalAmount": "withdrawal",
        "expectedRate": "expected_rate",
    },
    CalculatorKind.CASH_SURPLUS: {
        "cashIn": "cash_in",
    },
    CalculatorKind.PROJECTION_70: {
        "lumpsum": "lumpsum_investment",
        "ror": "ror",
        "nominalRate": "nominal_rate",
        "monthlyInvestment": "monthly_investment",
        "startYear": "start_year",
        "endYear": "end_year",
    },
    CalculatorKind.CORPUS_NEEDED: {
        "currentWealth": "current_wealth",
        "ror": "ror",
        "nominalRate": "nominal_rate",
        "activeSIP": "active_sip",
        "years": "years",
        "targetWealth": "target_wealth",
    },
}


class FormValidationError(ValueError):
    """Raised when a calculator input is requested for a form that failed validation."""

    def __init__(self, result: ValidationResult):
        self.result = result
        messages = "; ".join(
            issue.message for issue in result.issues if issue.severity == "error"
        )
        super().__init__(f"{result.calculator} form is invalid: {messages}")


def _parse_number(raw: Any) -> Optional[Number]:
    """
    Parse a submitted value.

    Returns None for anything that is not a finite number.
    """
    if isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        value = raw
    elif isinstance(raw, str):
        try:
            value = float(raw.strip().replace(",", ""))
        except ValueError:
            return None
    else:
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return value


def _is_blank(raw: Any) -> bool:
    return raw is None or (isinstance(raw, str) and not raw.strip())


class CalculatorFormValidator:
    """
    Validates a submitted calculator form and builds the engine input.

    Usage:
        validator = CalculatorFormValidator()
        result = validator.validate("lifeline", form, basic_info)
        if result.is_valid:
            calculation_input = validator.to_calculation_input("lifeline", form, basic_info)
    """

    def _definition(self, calculator_id: Union[str, CalculatorKind]) -> CalculatorDefinition:
        try:
            return get_calculator(calculator_id)
        except KeyError:
            raise UnknownCalculatorError(calculator_id) from None

    def _validate_schema(
        self,
        definition: CalculatorDefinition,
        form: Mapping[str, Any],
    ) -> tuple[bool, list[ValidationIssue], dict[str, Number]]:
        """
        Stage 1: Schema validation.

        Returns: (is_valid, list_of_issues, parsed_values)
        """
        issues = []
        values: dict[str, Number] = {}

        for form_field in definition.fields:
            raw = form.get(form_field.id)

            if _is_blank(raw):
                issues.append(ValidationIssue(
                    field=form_field.id,
                    issue_type="missing",
                    message=f"{form_field.label} is required",
                    severity="error",
                ))
                continue

            value = _parse_number(raw)
            if value is None:
                issues.append(ValidationIssue(
                    field=form_field.id,
                    issue_type="not_numeric",
                    message=f"{form_field.label} must be a number",
                    severity="error",
                    suggested_fix="Enter digits only, e.g. 25000",
                ))
                continue

            issue = self._check_range(form_field, value)
            if issue is not None:
                issues.append(issue)
                continue

            values[form_field.id] = int(value) if form_field.type == "number" else float(value)

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues, values

    def _check_range(self, form_field: FormField, value: Number) -> Optional[ValidationIssue]:
        if form_field.type == "number":
            if value < 0:
                return ValidationIssue(
                    field=form_field.id,
                    issue_type="out_of_range",
                    message=f"{form_field.label} cannot be negative",
                    severity="error",
                )
            if not float(value).is_integer():
                return ValidationIssue(
                    field=form_field.id,
                    issue_type="not_integer",
                    message=f"{form_field.label} must be a whole number",
                    severity="error",
                )
            if form_field.max_value is not None and value > form_field.max_value:
                return ValidationIssue(
                    field=form_field.id,
                    issue_type="out_of_range",
                    message=f"{form_field.label} cannot be more than {form_field.max_value}",
                    severity="error",
                )
        elif form_field.type == "percent" and not 0 <= value <= 100:
            return ValidationIssue(
                field=form_field.id,
                issue_type="out_of_range",
                message=f"{form_field.label} must be between 0 and 100",
                severity="error",
                suggested_fix="Enter the rate as a percentage, e.g. 12 for 12%",
            )
        return None

    def _current_age(
        self,
        definition: CalculatorDefinition,
        basic_info: Optional[BasicInfo],
    ) -> tuple[int, list[ValidationIssue]]:
        if not definition.uses_current_age:
            return 0, []
        if basic_info is None:
            return 0, [ValidationIssue(
                field="currentAge",
                issue_type="missing_profile",
                message="Basic information is missing; current age defaults to 0",
                severity="warning",
                suggested_fix="Complete your basic information first",
            )]
        return basic_info.age, []

    def _validate_semantic(
        self,
        definition: CalculatorDefinition,
        values: Mapping[str, Number],
        current_age: int,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 2: Semantic validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []
        kind = definition.id

        if kind == CalculatorKind.LIFELINE and values["retirementAge"] < current_age:
            issues.append(ValidationIssue(
                field="retirementAge",
                issue_type="inconsistent",
                message=f"Retirement Age cannot be below your current age ({current_age})",
                severity="error",
            ))

        if kind == CalculatorKind.SALARY_SAVING:
            if values["calculateUptoAge"] < current_age:
                issues.append(ValidationIssue(
                    field="calculateUptoAge",
                    issue_type="inconsistent",
                    message=f"Calculate Upto Age cannot be below your current age ({current_age})",
                    severity="error",
                ))
            if values["rate"] == 0:
                issues.append(ValidationIssue(
                    field="rate",
                    issue_type="invalid_value",
                    message="Rate of Return must be greater than zero",
                    severity="error",
                ))

        if kind == CalculatorKind.CORPUS_NEEDED:
            if values["ror"] == 0:
                issues.append(ValidationIssue(
                    field="ror",
                    issue_type="invalid_value",
                    message="Rate of Return must be greater than zero",
                    severity="error",
                ))
            if values["years"] <= 0:
                issues.append(ValidationIssue(
                    field="years",
                    issue_type="invalid_value",
                    message="Years must be at least 1",
                    severity="error",
                ))

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues

    def _run(
        self,
        calculator_id: Union[str, CalculatorKind],
        form: Mapping[str, Any],
        basic_info: Optional[BasicInfo],
    ) -> tuple[ValidationResult, dict[str, Number], int]:
        definition = self._definition(calculator_id)
        all_issues = []

        current_age, age_issues = self._current_age(definition, basic_info)
        all_issues.extend(age_issues)

        schema_valid, schema_issues, values = self._validate_schema(definition, form)
        all_issues.extend(schema_issues)

        # Only run stage 2 if stage 1 passes
        semantic_valid = False
        if schema_valid:
            semantic_valid, semantic_issues = self._validate_semantic(definition, values, current_age)
            all_issues.extend(semantic_issues)

        result = ValidationResult(
            calculator=definition.id.value,
            schema_valid=schema_valid,
            semantic_valid=semantic_valid,
            is_valid=schema_valid and semantic_valid,
            issues=all_issues,
        )
        return result, values, current_age

    def validate(
        self,
        calculator_id: Union[str, CalculatorKind],
        form: Mapping[str, Any],
        basic_info: Optional[BasicInfo] = None,
    ) -> ValidationResult:
        """
        Run the two-stage validation on a submitted form.

        Args:
            calculator_id: Catalog id, e.g. "swp"
            form: Raw form values keyed by field id
            basic_info: The user's profile, source of the current age

        Raises:
            UnknownCalculatorError: calculator_id is not in the catalog
        """
        result, _values, _age = self._run(calculator_id, form, basic_info)
        return result

    def to_calculation_input(
        self,
        calculator_id: Union[str, CalculatorKind],
        form: Mapping[str, Any],
        basic_info: Optional[BasicInfo] = None,
    ) -> CalculationInput:
        """
        Validate, convert percentages to fractions, and build the tagged input.

        Raises:
            FormValidationError: the form has error-level issues
        """
        result, values, current_age = self._run(calculator_id, form, basic_info)
        if not result.is_valid:
            raise FormValidationError(result)

        definition = self._definition(calculator_id)
        data: dict[str, Any] = {"kind": definition.id.value}

        for form_field in definition.fields:
            target = _INPUT_FIELDS[definition.id].get(form_field.id)
            if target is None:
                continue
            value = values[form_field.id]
            data[target] = value / 100 if form_field.type == "percent" else value

        if definition.id == CalculatorKind.CASH_SURPLUS:
            data["expenses_by_category"] = tuple(values[field_id] for field_id in EXPENSE_CATEGORY_IDS)

        if definition.uses_current_age:
            data["current_age"] = current_age

        return parse_calculation_input(data)

    def get_user_friendly_summary(self, result: ValidationResult) -> str:
        """One short paragraph for the form page."""
        if result.is_valid and not result.warnings:
            return "✅ All inputs look good."

        lines = []
        errors = [issue for issue in result.issues if issue.severity == "error"]
        if errors:
            lines.append("❌ Please fix the following:")
            for issue in errors:
                lines.append(f"  • {issue.message}")

        if result.warnings:
            lines.append("⚠️ Please note:")
            for warning in result.warnings:
                lines.append(f"  • {warning}")

        return "\n".join(lines)
