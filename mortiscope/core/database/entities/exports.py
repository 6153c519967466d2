"""
Export entity models.

An export is an asynchronously generated download (raw data archive, labelled
images or a PDF report) for a whole case or a single image.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlmodel import Field

from mortiscope.core.models.domain.enums import ExportStatus

from ..base import Base, new_id, utc_now


class Export(Base, table=True):
    """Requested export of a case or an image.

    Table: exports
    """

    __tablename__ = "exports"
    __table_args__ = ({"extend_existing": True},)

    id: str = Field(default_factory=new_id, primary_key=True, max_length=32)
    user_id: str = Field(foreign_key="users.id", index=True, max_length=32)
    case_id: Optional[str] = Field(default=None, foreign_key="cases.id", index=True, max_length=32)
    upload_id: Optional[str] = Field(default=None, foreign_key="uploads.id", max_length=32)

    format: str = Field(max_length=32)
    status: str = Field(default=ExportStatus.pending.value, max_length=16)
    s3_key: Optional[str] = Field(default=None)
    failure_reason: Optional[str] = Field(default=None)
    password_protected: bool = Field(default=False)

    created_at: datetime = Field(default_factory=utc_now, index=True)
    updated_at: datetime = Field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})

    def __repr__(self) -> str:
        return f"Export(id={self.id}, format={self.format}, status={self.status})"
