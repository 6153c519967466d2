"""Results I/O models: case listings, case detail and the audit trail."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from mortiscope.core.models.domain.enums import VerificationStatus
from mortiscope.server.core import constant

from .analysis import AnalysisResultRead
from .annotation import DetectionRead
from .cases import CaseRead
from .uploads import UploadRead


class CaseSummary(CaseRead):
    total_detections: int
    verified_detections: int
    verification_status: VerificationStatus


class UploadWithDetections(UploadRead):
    detections: List[DetectionRead] = Field(default_factory=list)


class CaseDetail(CaseRead):
    uploads: List[UploadWithDetections] = Field(default_factory=list)
    analysis_result: Optional[AnalysisResultRead] = None


class CaseHistoryEntry(BaseModel):
    id: str
    batch_id: str
    field: str
    old_value: Optional[str] = None
    new_value: Optional[str] = None
    created_at: datetime
    user_id: str
    user_name: Optional[str] = None
    user_image: Optional[str] = None


class RenameCaseRequest(BaseModel):
    new_name: str = Field(min_length=1, max_length=constant.CASE_NAME_MAX_LENGTH)


class DeleteCaseRequest(BaseModel):
    case_name: Optional[str] = None
