"""
Basic Profile Model

Collected once before the calculators are opened. The calculators
that need the user's current age (lifeline, salary saving) read it
from here instead of asking again.
"""

from datetime import date
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Gender(str, Enum):
    MALE = "Male"
    FEMALE = "Female"
    OTHER = "Other"


class MaritalStatus(str, Enum):
    SINGLE = "Single"
    MARRIED = "Married"


class BasicInfo(BaseModel):
    """The user's basic portfolio information."""
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=200)
    occupation: str = Field(..., min_length=1, max_length=200)
    dob: date = Field(..., description="Date of birth")
    age: int = Field(..., ge=1, le=120)
    gender: Gender
    marital_status: MaritalStatus
    dependents: int = Field(..., ge=0, le=20)
