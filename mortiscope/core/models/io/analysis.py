"""Analysis I/O models."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class SubmitAnalysisRequest(BaseModel):
    case_id: str = Field(min_length=1)


class CancelAnalysisResponse(BaseModel):
    status: Literal["success", "error"]
    message: str


class AnalysisResultRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    case_id: str
    status: str
    total_counts: Optional[Dict[str, Any]] = None
    oldest_stage_detected: Optional[str] = None
    pmi_source_image_key: Optional[str] = None
    pmi_days: Optional[float] = None
    pmi_hours: Optional[float] = None
    pmi_minutes: Optional[float] = None
    stage_used_for_calculation: Optional[str] = None
    temperature_provided: Optional[float] = None
    calculated_adh: Optional[float] = None
    ldt_used: Optional[float] = None
    explanation: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class AnalysisStatusResponse(BaseModel):
    status: str
