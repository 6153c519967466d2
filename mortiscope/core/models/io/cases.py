"""
Case I/O models.

``CaseDetailsInput`` is shared by case creation and editing. Temperatures may be
entered in Fahrenheit; ``temperature_celsius`` gives the normalized value that
is stored and range-checked.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from mortiscope.core.models.domain.enums import TemperatureUnit
from mortiscope.server.core import constant

from .common import LocationPart


class CaseLocation(BaseModel):
    region: LocationPart
    province: LocationPart
    city: LocationPart
    barangay: LocationPart


class Temperature(BaseModel):
    value: float
    unit: TemperatureUnit = TemperatureUnit.celsius


def to_celsius(temperature: Temperature) -> float:
    """Normalize a temperature to Celsius, rounded to two decimals."""
    if temperature.unit == TemperatureUnit.fahrenheit:
        return round((temperature.value - 32) * 5 / 9, 2)
    return round(temperature.value, 2)


class CaseDetailsInput(BaseModel):
    case_name: str = Field(min_length=1, max_length=constant.CASE_NAME_MAX_LENGTH)
    case_date: datetime
    location: CaseLocation
    temperature: Temperature
    notes: Optional[str] = Field(default=None, max_length=constant.CASE_NOTES_MAX_LENGTH)

    @field_validator("case_name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Case name is required.")
        return value

    @field_validator("case_date")
    @classmethod
    def not_in_future(cls, value: datetime) -> datetime:
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        if value > datetime.now(timezone.utc).replace(tzinfo=None):
            raise ValueError("Case date cannot be in the future.")
        return value

    @model_validator(mode="after")
    def temperature_in_range(self) -> "CaseDetailsInput":
        celsius = self.temperature_celsius
        if not constant.MIN_TEMPERATURE_CELSIUS <= celsius <= constant.MAX_TEMPERATURE_CELSIUS:
            raise ValueError(
                f"Temperature must be between {constant.MIN_TEMPERATURE_CELSIUS:g}°C "
                f"and {constant.MAX_TEMPERATURE_CELSIUS:g}°C."
            )
        return self

    @property
    def temperature_celsius(self) -> float:
        return to_celsius(self.temperature)


class CreateCaseResponse(BaseModel):
    success: bool = True
    case_id: str


class CaseRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    case_name: str
    status: str
    temperature_celsius: float
    location_region: str
    location_province: str
    location_city: str
    location_barangay: str
    case_date: datetime
    notes: Optional[str] = None
    recalculation_needed: bool
    created_at: datetime
    updated_at: datetime
