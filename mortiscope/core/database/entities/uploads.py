"""
Upload entity models.

An upload is an image stored in the S3 bucket under ``key``. Uploads normally
belong to a case; an upload without a case is a leftover of an abandoned form.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlmodel import Field

from ..base import Base, new_id, utc_now


class Upload(Base, table=True):
    """Image uploaded to object storage.

    Table: uploads
    """

    __tablename__ = "uploads"
    __table_args__ = ({"extend_existing": True},)

    id: str = Field(default_factory=new_id, primary_key=True, max_length=32)
    case_id: Optional[str] = Field(default=None, foreign_key="cases.id", index=True, max_length=32)
    user_id: str = Field(foreign_key="users.id", index=True, max_length=32)

    name: str
    key: str = Field(unique=True, index=True)
    url: str
    size: int
    type: str = Field(max_length=32)
    width: int = Field(default=0)
    height: int = Field(default=0)

    created_at: datetime = Field(default_factory=utc_now, index=True)
    updated_at: datetime = Field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})

    def __repr__(self) -> str:
        return f"Upload(id={self.id}, key={self.key})"
