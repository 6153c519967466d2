"""
Annotation I/O models.

The save payload mirrors ``AnnotationHistory.build_changes``: new detections,
edited existing ones and the ids of removed ones.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from mortiscope.core.models.domain.enums import DetectionStatus, LifeStage

from .uploads import UploadRead


class DetectionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    upload_id: str
    label: str
    original_label: str
    confidence: Optional[float] = None
    original_confidence: Optional[float] = None
    x_min: float
    y_min: float
    x_max: float
    y_max: float
    status: DetectionStatus
    created_by_id: Optional[str] = None
    last_modified_by_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class NewDetection(BaseModel):
    label: LifeStage
    confidence: Optional[float] = None
    x_min: float
    y_min: float
    x_max: float
    y_max: float
    status: DetectionStatus = DetectionStatus.user_created


class ModifiedDetection(BaseModel):
    id: str
    label: LifeStage
    confidence: Optional[float] = None
    x_min: float
    y_min: float
    x_max: float
    y_max: float
    status: DetectionStatus


class DetectionChanges(BaseModel):
    added: List[NewDetection] = Field(default_factory=list)
    modified: List[ModifiedDetection] = Field(default_factory=list)
    deleted: List[str] = Field(default_factory=list)


class SaveDetectionsResponse(BaseModel):
    success: bool = True
    detections: List[DetectionRead]


class EditorImageRead(UploadRead):
    """An image opened in the annotation editor."""

    presigned_url: Optional[str] = None
    detections: List[DetectionRead] = Field(default_factory=list)
