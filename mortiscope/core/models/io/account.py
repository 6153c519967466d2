"""
Account I/O models: profile edits, password change and session listings.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .auth import validate_new_password


class ProfileLocation(BaseModel):
    region: Optional[str] = None
    province: Optional[str] = None
    city: Optional[str] = None
    barangay: Optional[str] = None

    def is_complete(self) -> bool:
        return all((self.region, self.province, self.city, self.barangay))


class ProfileUpdate(BaseModel):
    """Partial profile update. Empty strings clear the optional professional fields."""

    name: Optional[str] = None
    professional_title: Optional[str] = Field(default=None, max_length=100)
    institution: Optional[str] = Field(default=None, max_length=150)
    location: Optional[ProfileLocation] = None


class ChangePasswordRequest(BaseModel):
    """``repeat_password`` is optional for older clients that do not send it."""

    current_password: str = Field(min_length=1)
    new_password: str
    repeat_password: Optional[str] = None

    @field_validator("new_password")
    @classmethod
    def check_new_password(cls, value: str) -> str:
        return validate_new_password(value)

    @model_validator(mode="after")
    def passwords_match(self) -> "ChangePasswordRequest":
        if self.repeat_password is not None and self.repeat_password != self.new_password:
            raise ValueError("Passwords do not match.")
        if self.new_password == self.current_password:
            raise ValueError("New password must be different from the current password.")
        return self


class VerifyPasswordRequest(BaseModel):
    password: str = Field(min_length=1)


class VerifyPasswordResponse(BaseModel):
    valid: bool


class UserSessionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    browser_name: str
    browser_version: str
    os_name: str
    os_version: str
    device_type: Optional[str] = None
    device_vendor: Optional[str] = None
    device_model: Optional[str] = None
    ip_address: str
    country: Optional[str] = None
    region: Optional[str] = None
    city: Optional[str] = None
    timezone: Optional[str] = None
    is_current_session: bool
    last_active_at: datetime
    expires_at: datetime
    created_at: datetime


class RevokeAllSessionsRequest(BaseModel):
    keep_current: bool = True


class RevokeAllSessionsResponse(BaseModel):
    success: bool = True
    revoked_count: int
