"""Dashboard I/O models."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class DashboardMetrics(BaseModel):
    verified: int
    total_cases: int
    total_images: int
    verified_images: int
    total_detections_count: int
    verified_detections_count: int
    average_pmi: float = 0
    average_confidence: float = 0
    correction_rate: float = 0


class NamedQuantity(BaseModel):
    name: str
    quantity: int


class StageConfidence(BaseModel):
    name: str
    confidence: float


class CorrectionRatio(BaseModel):
    verified_prediction: int
    corrected_prediction: int


class VerificationBreakdown(BaseModel):
    verified: int = 0
    unverified: int = 0
    in_progress: int = 0


class VerificationOverview(BaseModel):
    case_verification: VerificationBreakdown
    image_verification: VerificationBreakdown
    detection_verification: VerificationBreakdown = Field(default_factory=VerificationBreakdown)


class CaseDataRow(BaseModel):
    case_id: str
    case_name: str
    case_date: datetime
    oldest_stage: Optional[str] = None
    pmi_hours: Optional[float] = None
    image_count: int
    detection_count: int
    verification_status: str


class DeleteSelectedCasesRequest(BaseModel):
    case_ids: List[str] = Field(min_length=1)
    password: str = Field(min_length=1)
