"""Pydantic validation models for API requests."""

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel
from typing import Literal, Optional
import re

from .metric import COUNTER_FIELDS, COUNTER_MAX, MONTH_PATTERN, year_of
from .user import NAME_MAX_LENGTH, TEAM_MAX_LENGTH, normalize_email

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _validate_email(v: str) -> str:
    v = normalize_email(v)
    if not v or not EMAIL_PATTERN.match(v):
        raise ValueError("Valid email is required")
    return v


class RegisterRequest(BaseModel):
    """Validation for public team-manager self-registration."""

    name: str = Field(min_length=1, max_length=NAME_MAX_LENGTH)
    email: str
    password: str = Field(min_length=1)
    role: Literal["team_manager"] = "team_manager"
    team: str = Field(min_length=1, max_length=TEAM_MAX_LENGTH)

    model_config = {
        "str_strip_whitespace": True,
        "json_schema_extra": {
            "example": {
                "name": "QA Lead",
                "email": "qa@company.com",
                "password": "password123",
                "role": "team_manager",
                "team": "QA",
            }
        },
    }

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _validate_email(v)


class AdminRegisterRequest(RegisterRequest):
    """Validation for a whole manager creating an account.

    The role accepts both values so that asking for a whole manager can be
    refused as a permission problem rather than a malformed request. The team
    is checked against the role when the account is created.
    """

    role: Literal["team_manager", "whole_manager"] = "team_manager"
    team: Optional[str] = Field(default=None, min_length=1, max_length=TEAM_MAX_LENGTH)


class LoginRequest(BaseModel):
    """Validation for email/password login."""

    email: str
    password: str = Field(min_length=1)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _validate_email(v)


class MetricUploadRequest(BaseModel):
    """Validation for a monthly metric upload.

    Counter fields are also accepted in camelCase (``testcaseAutomated``),
    the shape the dashboard frontend posts.
    """

    month: str
    year: Optional[str] = None
    team: Optional[str] = Field(default=None, max_length=TEAM_MAX_LENGTH)
    testcase_automated: int = Field(ge=0, le=COUNTER_MAX)
    bugs_filed: int = Field(ge=0, le=COUNTER_MAX)
    script_issue_fixed: int = Field(ge=0, le=COUNTER_MAX)
    script_integrated: int = Field(ge=0, le=COUNTER_MAX)

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
        "str_strip_whitespace": True,
        "json_schema_extra": {
            "example": {
                "month": "2024-01",
                "testcase_automated": 10,
                "bugs_filed": 2,
                "script_issue_fixed": 1,
                "script_integrated": 3,
            }
        },
    }

    @field_validator("month")
    @classmethod
    def validate_month_format(cls, v: str) -> str:
        """Validate month format is YYYY-MM."""
        if not MONTH_PATTERN.match(v):
            raise ValueError("Month must be in YYYY-MM format")
        return v

    @field_validator(*COUNTER_FIELDS, mode="before")
    @classmethod
    def reject_boolean_counters(cls, v):
        """JSON true/false would otherwise coerce to 1/0."""
        if isinstance(v, bool):
            raise ValueError("Counter must be an integer, not a boolean")
        return v

    @model_validator(mode="after")
    def validate_year_matches_month(self):
        """Fill in the year from the month, rejecting a contradicting one."""
        derived = year_of(self.month)
        if self.year is not None and self.year != derived:
            raise ValueError("Year must match the year of month")
        self.year = derived
        return self


class MetricQueryParams(BaseModel):
    """Validation for metric listing query parameters."""

    team: Optional[str] = Field(default=None, min_length=1, max_length=TEAM_MAX_LENGTH)
    month: Optional[str] = None
    limit: int = Field(default=50, ge=1, le=100, description="Page size (1-100)")
    page: int = Field(default=1, ge=1, description="Page number, starting at 1")

    model_config = {"str_strip_whitespace": True}

    @field_validator("month")
    @classmethod
    def validate_month_format(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        if not MONTH_PATTERN.match(v):
            raise ValueError("Month must be in YYYY-MM format")
        return v

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit
