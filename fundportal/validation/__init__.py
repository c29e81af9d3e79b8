"""
Validation Package

Two-stage validation of calculator forms before they reach the engine.
"""

from fundportal.validation.form import CalculatorFormValidator, FormValidationError

__all__ = [
    "CalculatorFormValidator",
    "FormValidationError",
]
