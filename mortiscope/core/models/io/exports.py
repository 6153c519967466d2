"""
Export I/O models.

Password rules: whenever a password is required (an enabled
``password_protection`` or a protected PDF level) it must be at least eight
characters long.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from mortiscope.core.models.domain.enums import ExportFormat, PageSize, SecurityLevel
from mortiscope.server.core import constant

Resolution = Literal["1280x720", "1920x1080", "3840x2160"]

PASSWORD_TOO_SHORT = f"Password must be at least {constant.EXPORT_PASSWORD_MIN_LENGTH} characters."


class PasswordProtection(BaseModel):
    enabled: bool = False
    password: Optional[str] = None


class PdfPermissions(BaseModel):
    """What a reader may do with a permissions-protected PDF."""

    printing: bool = True
    copying: bool = False
    modifying: bool = False
    annotations: bool = False


def _check_password(password: Optional[str]) -> None:
    if not password or len(password) < constant.EXPORT_PASSWORD_MIN_LENGTH:
        raise ValueError(PASSWORD_TOO_SHORT)


class ResultsExportRequest(BaseModel):
    case_id: str = Field(min_length=1)
    format: ExportFormat
    resolution: Optional[Resolution] = None
    page_size: PageSize = PageSize.a4
    security_level: SecurityLevel = SecurityLevel.standard
    password: Optional[str] = None
    permissions: Optional[PdfPermissions] = None
    password_protection: Optional[PasswordProtection] = None

    @model_validator(mode="after")
    def check_options(self) -> "ResultsExportRequest":
        if self.format == ExportFormat.labelled_images and self.resolution is None:
            raise ValueError("Resolution is required for labelled images.")
        if self.format == ExportFormat.pdf and self.security_level != SecurityLevel.standard:
            _check_password(self.password)
        if self.password_protection is not None and self.password_protection.enabled:
            _check_password(self.password_protection.password)
        return self

    @property
    def archive_password(self) -> Optional[str]:
        if self.password_protection is not None and self.password_protection.enabled:
            return self.password_protection.password
        return None


class ImageExportRequest(BaseModel):
    upload_id: str = Field(min_length=1)
    format: Literal["raw_data", "labelled_images"]
    resolution: Optional[Resolution] = None
    password_protection: Optional[PasswordProtection] = None

    @model_validator(mode="after")
    def check_options(self) -> "ImageExportRequest":
        if self.format == ExportFormat.labelled_images and self.resolution is None:
            raise ValueError("Resolution is required for labelled images.")
        if self.password_protection is not None and self.password_protection.enabled:
            _check_password(self.password_protection.password)
        return self

    @property
    def archive_password(self) -> Optional[str]:
        if self.password_protection is not None and self.password_protection.enabled:
            return self.password_protection.password
        return None


class ExportRequested(BaseModel):
    success: bool = True
    export_id: str


class ExportStatusResponse(BaseModel):
    status: str
    url: Optional[str] = None
    failure_reason: Optional[str] = None


class ExportRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    case_id: Optional[str] = None
    upload_id: Optional[str] = None
    format: str
    status: str
    password_protected: bool
    created_at: datetime
    updated_at: datetime
