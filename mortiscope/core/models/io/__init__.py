"""
API input/output models.

Pydantic models for request bodies and responses, one module per feature:
auth, account, cases, uploads, images, annotation, analysis, results, exports
and dashboard. ``common`` holds the shared building blocks.
"""

from .common import ActionResult, DateRange, LocationPart

__all__ = ["ActionResult", "DateRange", "LocationPart"]
