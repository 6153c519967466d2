"""
User account entity models.

A user owns cases, uploads, exports and login sessions. Passwords are stored as
salted scrypt hashes; accounts created through an external provider have none.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlmodel import Field

from ..base import Base, new_id, utc_now


class User(Base, table=True):
    """Registered MortiScope user.

    Table: users
    """

    __tablename__ = "users"
    __table_args__ = ({"extend_existing": True},)

    id: str = Field(default_factory=new_id, primary_key=True, max_length=32)
    name: Optional[str] = Field(default=None, max_length=100)
    email: str = Field(unique=True, index=True, max_length=254)
    password_hash: Optional[str] = Field(default=None, description="scrypt hash, None for provider accounts")

    # Profile
    professional_title: Optional[str] = Field(default=None, max_length=100)
    institution: Optional[str] = Field(default=None, max_length=150)
    location_region: Optional[str] = Field(default=None)
    location_province: Optional[str] = Field(default=None)
    location_city: Optional[str] = Field(default=None)
    location_barangay: Optional[str] = Field(default=None)
    profile_image_url: Optional[str] = Field(default=None)

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})

    def __repr__(self) -> str:
        return f"User(id={self.id}, email={self.email})"
