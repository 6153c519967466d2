"""Domain enums for MortiScope models."""

from __future__ import annotations

from enum import Enum


class CaseStatus(str, Enum):
    """Lifecycle of a case. Drafts become active once submitted for analysis."""

    draft = "draft"
    active = "active"


class DetectionStatus(str, Enum):
    """
    Provenance of a detection.

    Anything other than ``model_generated`` counts as reviewed by a person.
    """

    model_generated = "model_generated"
    user_created = "user_created"
    user_confirmed = "user_confirmed"
    user_edited = "user_edited"
    user_edited_confirmed = "user_edited_confirmed"


class LifeStage(str, Enum):
    """Blow fly life stages, in developmental order."""

    instar_1 = "instar_1"
    instar_2 = "instar_2"
    instar_3 = "instar_3"
    pupa = "pupa"
    adult = "adult"


class AnalysisStatus(str, Enum):
    pending = "pending"
    processing = "processing"
    completed = "completed"
    failed = "failed"


class ExportFormat(str, Enum):
    raw_data = "raw_data"
    labelled_images = "labelled_images"
    pdf = "pdf"


class ExportStatus(str, Enum):
    pending = "pending"
    processing = "processing"
    completed = "completed"
    failed = "failed"


class SecurityLevel(str, Enum):
    """PDF protection level."""

    standard = "standard"  # No password.
    view_protected = "view_protected"  # Password required to open.
    permissions_protected = "permissions_protected"  # Opens freely, owner password guards permissions.


class PageSize(str, Enum):
    a4 = "a4"
    letter = "letter"
    legal = "legal"


class TemperatureUnit(str, Enum):
    celsius = "C"
    fahrenheit = "F"


class VerificationStatus(str, Enum):
    """Aggregate review state of a case or an image."""

    verified = "verified"
    unverified = "unverified"
    in_progress = "in_progress"
    no_detections = "no_detections"
