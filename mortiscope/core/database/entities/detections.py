"""
Detection entity models.

A detection is one bounding box with a life-stage label on an upload. The model
fills ``original_label`` / ``original_confidence``; user edits change ``label``
and the box, and record who touched the row. Rows are never hard-deleted by
users: ``deleted_at`` marks a removed detection.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlmodel import Field

from mortiscope.core.models.domain.enums import DetectionStatus

from ..base import Base, new_id, utc_now


class Detection(Base, table=True):
    """Bounding-box detection on an uploaded image.

    Table: detections
    """

    __tablename__ = "detections"
    __table_args__ = ({"extend_existing": True},)

    id: str = Field(default_factory=new_id, primary_key=True, max_length=32)
    upload_id: str = Field(foreign_key="uploads.id", index=True, max_length=32)

    label: str = Field(max_length=32)
    original_label: str = Field(max_length=32)
    confidence: Optional[float] = Field(default=None)
    original_confidence: Optional[float] = Field(default=None)

    x_min: float
    y_min: float
    x_max: float
    y_max: float

    status: str = Field(default=DetectionStatus.model_generated.value, max_length=32)
    created_by_id: Optional[str] = Field(default=None, foreign_key="users.id", max_length=32)
    last_modified_by_id: Optional[str] = Field(default=None, foreign_key="users.id", max_length=32)

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})
    deleted_at: Optional[datetime] = Field(default=None, index=True)

    @property
    def is_verified(self) -> bool:
        return self.status != DetectionStatus.model_generated.value

    def __repr__(self) -> str:
        return f"Detection(id={self.id}, label={self.label}, status={self.status})"
