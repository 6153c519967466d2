"""
Case entity models.

A case is one investigation: where and when the remains were found, the ambient
temperature, and the images uploaded for it. Cases start as drafts and become
active once submitted for analysis.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field

from mortiscope.core.models.domain.enums import CaseStatus

from ..base import Base, new_id, utc_now


class Case(Base, table=True):
    """Forensic case owned by a user.

    Table: cases
    """

    __tablename__ = "cases"
    __table_args__ = (
        UniqueConstraint("user_id", "case_name", name="uq_cases_user_id_case_name"),
        {"extend_existing": True},
    )

    id: str = Field(default_factory=new_id, primary_key=True, max_length=32)
    user_id: str = Field(foreign_key="users.id", index=True, max_length=32)
    case_name: str = Field(max_length=256)
    status: str = Field(default=CaseStatus.draft.value, index=True, max_length=16)

    temperature_celsius: float
    location_region: str
    location_province: str
    location_city: str
    location_barangay: str
    case_date: datetime
    notes: Optional[str] = Field(default=None)

    recalculation_needed: bool = Field(default=False)

    created_at: datetime = Field(default_factory=utc_now, index=True)
    updated_at: datetime = Field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})

    def __repr__(self) -> str:
        return f"Case(id={self.id}, name={self.case_name}, status={self.status})"


class CaseAuditLog(Base, table=True):
    """One changed field of an active case.

    Every save of an active case writes one row per changed field; the rows of
    one save share a ``batch_id``.

    Table: case_audit_logs
    """

    __tablename__ = "case_audit_logs"
    __table_args__ = ({"extend_existing": True},)

    id: str = Field(default_factory=new_id, primary_key=True, max_length=32)
    case_id: str = Field(foreign_key="cases.id", index=True, max_length=32)
    user_id: str = Field(foreign_key="users.id", max_length=32)
    batch_id: str = Field(index=True, max_length=32)
    field: str
    old_value: Optional[str] = Field(default=None)
    new_value: Optional[str] = Field(default=None)
    created_at: datetime = Field(default_factory=utc_now, index=True)
