"""Domain types shared by the database layer, the services and the API."""

from __future__ import annotations

from .annotation_history import AnnotationHistory, DetectionDraft
from .enums import (
    AnalysisStatus,
    CaseStatus,
    DetectionStatus,
    ExportFormat,
    ExportStatus,
    LifeStage,
    PageSize,
    SecurityLevel,
    TemperatureUnit,
    VerificationStatus,
)

__all__ = [
    "AnalysisStatus",
    "AnnotationHistory",
    "CaseStatus",
    "DetectionDraft",
    "DetectionStatus",
    "ExportFormat",
    "ExportStatus",
    "LifeStage",
    "PageSize",
    "SecurityLevel",
    "TemperatureUnit",
    "VerificationStatus",
]
