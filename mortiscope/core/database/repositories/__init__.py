"""
Database repository layer using SQLModel.

One repository per entity, all built on ``SQLModelRepository``:

- base: AsyncBaseRepository interface, default CRUD and QueryBuilder utilities
- users / user_sessions: accounts and signed-in devices
- cases: cases and their audit log
- uploads / detections: images and their bounding boxes
- analysis_results: per-case analysis outcome
- exports: export requests
"""

from .analysis_results import AnalysisResultRepository
from .base import AsyncBaseRepository, QueryBuilder, SQLModelRepository
from .cases import CaseAuditLogRepository, CaseRepository
from .detections import DetectionRepository
from .exports import ExportRepository
from .uploads import UploadRepository
from .user_sessions import UserSessionRepository
from .users import UserRepository

__all__ = [
    "AnalysisResultRepository",
    "AsyncBaseRepository",
    "CaseAuditLogRepository",
    "CaseRepository",
    "DetectionRepository",
    "ExportRepository",
    "QueryBuilder",
    "SQLModelRepository",
    "UploadRepository",
    "UserRepository",
    "UserSessionRepository",
]
