"""
Login session entity models.

Each row is one signed-in device. The bearer token handed to the client is the
``session_token``; device, browser and coarse location are kept so the user can
review and revoke sessions from the account page.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlmodel import Field

from ..base import Base, new_id, utc_now


class UserSession(Base, table=True):
    """Signed-in device of a user.

    Table: user_sessions
    """

    __tablename__ = "user_sessions"
    __table_args__ = ({"extend_existing": True},)

    id: str = Field(default_factory=new_id, primary_key=True, max_length=32)
    user_id: str = Field(foreign_key="users.id", index=True, max_length=32)
    session_token: str = Field(unique=True, index=True)

    # Device
    browser_name: str = Field(default="Unknown Browser")
    browser_version: str = Field(default="")
    os_name: str = Field(default="Unknown OS")
    os_version: str = Field(default="")
    device_type: Optional[str] = Field(default=None)
    device_vendor: Optional[str] = Field(default=None)
    device_model: Optional[str] = Field(default=None)
    user_agent: str = Field(default="")
    ip_address: str = Field(default="")

    # Location
    country: Optional[str] = Field(default=None)
    region: Optional[str] = Field(default=None)
    city: Optional[str] = Field(default=None)
    timezone: Optional[str] = Field(default=None)

    is_current_session: bool = Field(default=False)
    last_active_at: datetime = Field(default_factory=utc_now)
    expires_at: datetime
    created_at: datetime = Field(default_factory=utc_now)

    def __repr__(self) -> str:
        return f"UserSession(id={self.id}, user_id={self.user_id}, browser={self.browser_name})"
