"""
Shared I/O models.

Small building blocks reused by several feature modules: the generic action
result, location parts and the dashboard / listing date filter.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class ActionResult(BaseModel):
    """Outcome of a mutation that returns no entity."""

    success: bool = True
    message: Optional[str] = None
    data: Optional[Dict[str, Any]] = None


class LocationPart(BaseModel):
    """One level of the Philippine address hierarchy (PSGC code and display name)."""

    code: str = Field(min_length=1)
    name: str = Field(min_length=1)


class DateRange(BaseModel):
    """Inclusive filter on a case's date."""

    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    @field_validator("start_date", "end_date")
    @classmethod
    def as_naive_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        # case_date is stored as naive UTC
        if value is not None and value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value

    @model_validator(mode="after")
    def check_order(self) -> "DateRange":
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError("start_date must not be after end_date")
        return self
