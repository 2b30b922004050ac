"""
Pydantic schemas for the task tracker API.

Wire format is camelCase (``endDate``, ``createdAt`` …); Python code uses
snake_case attribute names.  Every model accepts both on input.
"""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel


# bcrypt only looks at the first 72 bytes of a password
_MAX_PASSWORD_BYTES = 72


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class SortField(str, Enum):
    END_DATE = "end_date"
    PRIORITY = "priority"
    CREATED_AT = "created_at"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ═══════════════════════════════════════════════════════════════════════════════
# Auth — Requests
# ═══════════════════════════════════════════════════════════════════════════════


def _normalize_email(value: str) -> str:
    return value.strip().lower()


class RegisterRequest(CamelModel):
    name: str
    email: EmailStr
    password: str

    @field_validator("name")
    @classmethod
    def _check_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Name is required")
        if not 2 <= len(value) <= 100:
            raise ValueError("Name must be between 2 and 100 characters")
        return value

    @field_validator("email")
    @classmethod
    def _lower_email(cls, value: str) -> str:
        return _normalize_email(value)

    @field_validator("password")
    @classmethod
    def _check_password(cls, value: str) -> str:
        if len(value) < 6:
            raise ValueError("Password must be at least 6 characters long")
        if len(value.encode()) > _MAX_PASSWORD_BYTES:
            raise ValueError(f"Password cannot exceed {_MAX_PASSWORD_BYTES} bytes")
        return value


class LoginRequest(CamelModel):
    email: EmailStr
    password: str

    @field_validator("email")
    @classmethod
    def _lower_email(cls, value: str) -> str:
        return _normalize_email(value)

    @field_validator("password")
    @classmethod
    def _require_password(cls, value: str) -> str:
        if not value:
            raise ValueError("Password is required")
        return value


# ═══════════════════════════════════════════════════════════════════════════════
# Auth — Responses
# ═══════════════════════════════════════════════════════════════════════════════


class UserSummary(CamelModel):
    id: int
    name: str
    email: str


class CurrentUser(UserSummary):
    """Identity attached to a request by the auth gate.  Never carries the hash."""

    created_at: Optional[datetime] = None


class AuthResponse(CamelModel):
    success: bool = True
    message: str
    token: str
    user: UserSummary


class MeResponse(CamelModel):
    success: bool = True
    user: CurrentUser


class MessageResponse(CamelModel):
    success: bool = True
    message: str


# ═══════════════════════════════════════════════════════════════════════════════
# Tasks
# ═══════════════════════════════════════════════════════════════════════════════


def _clean_title(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    value = value.strip()
    if not value:
        raise ValueError("Title is required")
    if len(value) > 255:
        raise ValueError("Title cannot exceed 255 characters")
    return value


class TaskCreate(CamelModel):
    title: str
    description: Optional[str] = None
    priority: Priority
    end_date: date

    @field_validator("title")
    @classmethod
    def _check_title(cls, value: str) -> str:
        return _clean_title(value)

    @field_validator("description")
    @classmethod
    def _strip_description(cls, value: Optional[str]) -> Optional[str]:
        return value.strip() if value is not None else value


class TaskUpdate(CamelModel):
    """
    Partial update.  Only fields present in the request body end up in
    ``model_fields_set``; those are the fields the store will change.
    ``description`` may be explicitly set to null to clear it.
    """

    title: Optional[str] = None
    description: Optional[str] = None
    priority: Optional[Priority] = None
    end_date: Optional[date] = None

    @field_validator("title", "priority", "end_date")
    @classmethod
    def _reject_null(cls, value, info: ValidationInfo):
        # omitted fields are never validated, so only explicit nulls land here
        if value is None:
            raise ValueError(f"{to_camel(info.field_name)} cannot be null")
        return value

    @field_validator("title")
    @classmethod
    def _check_title(cls, value: str) -> str:
        return _clean_title(value)

    @field_validator("description")
    @classmethod
    def _strip_description(cls, value: Optional[str]) -> Optional[str]:
        return value.strip() if value is not None else value

    def changes(self) -> dict:
        """Return ``{field: new_value}`` for the fields the client supplied."""
        return {name: getattr(self, name) for name in self.model_fields_set}


class TaskOut(CamelModel):
    id: int
    title: str
    description: Optional[str] = None
    priority: Priority
    end_date: date
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class TaskDetailResponse(CamelModel):
    success: bool = True
    task: TaskOut


class TaskResponse(TaskDetailResponse):
    message: str


class Pagination(CamelModel):
    current_page: int
    total_pages: int
    total_tasks: int
    limit: int
    has_next: bool
    has_prev: bool


class TaskListResponse(CamelModel):
    success: bool = True
    count: int
    pagination: Pagination
    tasks: List[TaskOut]
