# standup_sync/schemas/employee.py
from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any

from pydantic import BaseModel, EmailStr, Field, StringConstraints, field_validator

# Trimmed before the length check, so "   " is rejected.
RequiredText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


def _reject_null(value: Any) -> Any:
    if value is None:
        raise ValueError("may be omitted but not null")
    return value


def _normalize_email(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip().lower()
    return value


class EmployeeRead(BaseModel):
    uid: str = Field(..., example="uid-123")
    name: str = Field(..., example="Asha Rao")
    email: str = Field(..., example="asha@example.com")
    employee_id: str | None = Field(None, description="Organization-issued code.", example="NW0001")
    feedback_sheet_url: str | None = None
    has_completed_setup: bool = False
    admin_approval_required: bool = Field(
        False,
        description="Set while an admin has not yet approved this account.",
    )
    archived: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


class EmployeeSetup(BaseModel):
    """
    First-time profile setup submitted by the employee.
    """

    name: RequiredText = Field(..., example="Asha Rao")
    employee_id: RequiredText = Field(..., example="NW0001")
    feedback_sheet_url: str | None = Field(default=None)


class EmployeeUpdate(BaseModel):
    """
    Profile edit. All fields are optional; only provided fields are updated.

    ``feedback_sheet_url`` may be cleared with null; the other fields may
    only be omitted.
    """

    name: RequiredText | None = Field(default=None)
    employee_id: RequiredText | None = Field(default=None)
    feedback_sheet_url: str | None = Field(default=None)

    @field_validator("name", "employee_id")
    @classmethod
    def _required_when_present(cls, value: Any) -> Any:
        return _reject_null(value)


class EmployeeAdminUpdate(EmployeeUpdate):
    email: EmailStr | None = Field(default=None, example="asha@example.com")
    archived: bool | None = Field(default=None)

    @field_validator("email", mode="before")
    @classmethod
    def _lower_email(cls, value: Any) -> Any:
        return _normalize_email(value)

    @field_validator("email", "archived")
    @classmethod
    def _admin_fields_not_null(cls, value: Any) -> Any:
        return _reject_null(value)


class AdminRoleRequest(BaseModel):
    email: EmailStr = Field(..., example="lead@example.com")

    @field_validator("email", mode="before")
    @classmethod
    def _lower_email(cls, value: Any) -> Any:
        return _normalize_email(value)


class AttendanceStreakRead(BaseModel):
    streak: int | str = Field(
        ...,
        description="Current Present streak in days, or 'N/A' for admins.",
        example=4,
    )
