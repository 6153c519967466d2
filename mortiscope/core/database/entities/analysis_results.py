"""
Analysis result entity models.

One row per submitted case, keyed by the case id. The detection service fills in
the stage counts and the PMI estimate once the analysis completes.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field

from mortiscope.core.models.domain.enums import AnalysisStatus

from ..base import Base, utc_now


class AnalysisResult(Base, table=True):
    """Outcome of the automated analysis of a case.

    Table: analysis_results
    """

    __tablename__ = "analysis_results"
    __table_args__ = ({"extend_existing": True},)

    case_id: str = Field(foreign_key="cases.id", primary_key=True, max_length=32)
    status: str = Field(default=AnalysisStatus.pending.value, max_length=16)

    total_counts: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON))
    oldest_stage_detected: Optional[str] = Field(default=None)
    pmi_source_image_key: Optional[str] = Field(default=None)
    pmi_days: Optional[float] = Field(default=None)
    pmi_hours: Optional[float] = Field(default=None)
    pmi_minutes: Optional[float] = Field(default=None)
    stage_used_for_calculation: Optional[str] = Field(default=None)
    temperature_provided: Optional[float] = Field(default=None)
    calculated_adh: Optional[float] = Field(default=None)
    ldt_used: Optional[float] = Field(default=None)
    explanation: Optional[str] = Field(default=None)

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})

    def __repr__(self) -> str:
        return f"AnalysisResult(case_id={self.case_id}, status={self.status})"
