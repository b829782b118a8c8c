"""Auth form validation."""

import re
from typing import Optional

from pydantic import Field, field_validator, model_validator

from .base import CamelModel

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_PATTERN = re.compile(r"^\+?[1-9]\d{1,14}$")


def normalize_email(value: str) -> str:
    value = value.strip().lower()
    if not EMAIL_PATTERN.match(value):
        raise ValueError("Invalid email address")
    return value


def check_password_strength(value: str) -> str:
    """At least 8 characters with an uppercase letter, a lowercase letter and a digit."""
    if len(value) < 8:
        raise ValueError("Password must be at least 8 characters")
    if not re.search(r"[A-Z]", value):
        raise ValueError("Password must contain at least one uppercase letter")
    if not re.search(r"[a-z]", value):
        raise ValueError("Password must contain at least one lowercase letter")
    if not re.search(r"[0-9]", value):
        raise ValueError("Password must contain at least one number")
    return value


class LoginInput(CamelModel):
    email: str
    password: str = Field(min_length=1)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return normalize_email(v)


class RegisterInput(CamelModel):
    email: str
    first_name: str
    last_name: str
    phone_number: Optional[str] = None
    password: str
    confirm_password: str

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return normalize_email(v)

    @field_validator("first_name", "last_name")
    @classmethod
    def validate_name(cls, v: str, info) -> str:
        label = "First name" if info.field_name == "first_name" else "Last name"
        v = v.strip()
        if len(v) < 2:
            raise ValueError(f"{label} must be at least 2 characters")
        if len(v) > 50:
            raise ValueError(f"{label} must be at most 50 characters")
        return v

    @field_validator("phone_number")
    @classmethod
    def validate_phone(cls, v: Optional[str]) -> Optional[str]:
        if v and not PHONE_PATTERN.match(v):
            raise ValueError("Invalid phone number format")
        return v

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return check_password_strength(v)

    @model_validator(mode="after")
    def passwords_match(self) -> "RegisterInput":
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self


class ChangePasswordInput(CamelModel):
    old_password: str = Field(min_length=1)
    new_password: str
    confirm_password: str

    @field_validator("new_password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return check_password_strength(v)

    @model_validator(mode="after")
    def check_passwords(self) -> "ChangePasswordInput":
        if self.new_password != self.confirm_password:
            raise ValueError("Passwords do not match")
        if self.old_password == self.new_password:
            raise ValueError("New password must be different from old password")
        return self
