"""
Authentication I/O models.

Sign-up enforces the account password policy (12-128 characters, mixed case,
digit, symbol, no whitespace, no four identical characters in a row) and the
display-name format. Sign-in only checks the shape of the input; wrong
credentials are reported by the service with a single generic message.
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

_NAME_PATTERN = re.compile(r"^[A-Z][a-zA-Z'-]*(?:\s[A-Z][a-zA-Z'-]*)*$")
_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def validate_email(value: str) -> str:
    email = value.strip()
    if not email:
        raise ValueError("Email is required.")
    if len(email) > 254:
        raise ValueError("Email cannot exceed 254 characters.")
    if not _EMAIL_PATTERN.match(email):
        raise ValueError("Please enter a valid email address.")
    if len(email.rsplit(".", 1)[-1]) < 2:
        raise ValueError("Email must include a valid domain.")
    return email.lower()


def validate_new_password(value: str) -> str:
    if len(value) < 12:
        raise ValueError("Password must be at least 12 characters long.")
    if len(value) > 128:
        raise ValueError("Password cannot exceed 128 characters.")
    if not re.search(r"[A-Z]", value):
        raise ValueError("Password must contain at least one uppercase letter.")
    if not re.search(r"[a-z]", value):
        raise ValueError("Password must contain at least one lowercase letter.")
    if not re.search(r"[0-9]", value):
        raise ValueError("Password must contain at least one number.")
    if not re.search(r"[^A-Za-z0-9]", value):
        raise ValueError("Password must contain at least one symbol.")
    if re.search(r"(.)\1\1\1", value):
        raise ValueError("Password cannot have more than 3 identical consecutive characters.")
    if re.search(r"\s", value):
        raise ValueError("Password cannot contain spaces.")
    return value


def validate_person_name(value: str) -> str:
    name = value.strip()
    if len(name) < 2:
        raise ValueError("Must be at least 2 characters long.")
    if len(name) > 50:
        raise ValueError("Cannot exceed 50 characters.")
    if not _NAME_PATTERN.match(name):
        raise ValueError("Start with a capital letter. Use only letters, hyphens, or apostrophes.")
    if re.search(r"['-]{2,}", name):
        raise ValueError("Cannot contain consecutive hyphens or apostrophes.")
    return name


class SignUpRequest(BaseModel):
    name: str
    email: str
    password: str
    confirm_password: str

    @field_validator("name")
    @classmethod
    def check_name(cls, value: str) -> str:
        return validate_person_name(value)

    @field_validator("email")
    @classmethod
    def check_email(cls, value: str) -> str:
        return validate_email(value)

    @field_validator("password")
    @classmethod
    def check_password(cls, value: str) -> str:
        return validate_new_password(value)

    @model_validator(mode="after")
    def passwords_match(self) -> "SignUpRequest":
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match.")
        return self


class SignInRequest(BaseModel):
    email: str
    password: str = Field(min_length=1)

    @field_validator("email")
    @classmethod
    def check_email(cls, value: str) -> str:
        return validate_email(value)


class UserRead(BaseModel):
    """Public view of a user account."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: Optional[str] = None
    email: str
    professional_title: Optional[str] = None
    institution: Optional[str] = None
    location_region: Optional[str] = None
    location_province: Optional[str] = None
    location_city: Optional[str] = None
    location_barangay: Optional[str] = None
    profile_image_url: Optional[str] = None
    has_password: bool = False
    created_at: datetime


class AuthTokenResponse(BaseModel):
    """Bearer token returned by sign-in / sign-up."""

    access_token: str
    token_type: str = "bearer"
    expires_at: datetime
    user: UserRead
