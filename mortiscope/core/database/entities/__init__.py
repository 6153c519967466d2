"""
Database entity models.

Each module maps one business table (or a table and its satellite):

- users: user accounts
- user_sessions: signed-in devices
- cases: cases and their audit log
- uploads: images in object storage
- detections: bounding-box detections on uploads
- analysis_results: per-case analysis outcome and PMI estimate
- exports: generated downloads
"""

from .analysis_results import AnalysisResult
from .cases import Case, CaseAuditLog
from .detections import Detection
from .exports import Export
from .uploads import Upload
from .user_sessions import UserSession
from .users import User

__all__ = [
    "AnalysisResult",
    "Case",
    "CaseAuditLog",
    "Detection",
    "Export",
    "Upload",
    "User",
    "UserSession",
]
