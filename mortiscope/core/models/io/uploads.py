"""
Upload I/O models: presigned upload requests and upload row bookkeeping.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, HttpUrl, field_validator

from mortiscope.server.core import constant


class CreateUploadRequest(BaseModel):
    file_name: str = Field(min_length=1, max_length=255)
    file_type: str
    file_size: int = Field(gt=0)
    case_id: str = Field(min_length=1)
    key: Optional[str] = Field(default=None, description="Re-upload to an existing object key")

    @field_validator("file_type")
    @classmethod
    def check_type(cls, value: str) -> str:
        if value not in constant.ACCEPTED_IMAGE_TYPES:
            raise ValueError("Invalid file type.")
        return value

    @field_validator("file_size")
    @classmethod
    def check_size(cls, value: int) -> int:
        if value > constant.MAX_FILE_SIZE:
            raise ValueError("File is too large. Maximum size is 10MB.")
        return value


class PresignedUpload(BaseModel):
    url: str
    key: str


class SaveUploadRequest(BaseModel):
    id: str = Field(min_length=1)
    key: str = Field(min_length=1)
    name: str = Field(min_length=1)
    url: Optional[HttpUrl] = None
    size: int = Field(gt=0)
    type: str = Field(min_length=1)
    width: int = Field(ge=0)
    height: int = Field(ge=0)
    case_id: str = Field(min_length=1)


class UpdateUploadRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    url: Optional[HttpUrl] = None
    size: Optional[int] = Field(default=None, gt=0)
    type: Optional[str] = Field(default=None, min_length=1)
    width: Optional[int] = Field(default=None, ge=0)
    height: Optional[int] = Field(default=None, ge=0)


class DeleteUploadRequest(BaseModel):
    key: str = Field(min_length=1)


class RenameUploadRequest(BaseModel):
    old_key: str = Field(min_length=1)
    new_file_name: str = Field(min_length=1)


class RenamedObject(BaseModel):
    new_key: str
    new_url: str


class UploadRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    case_id: Optional[str] = None
    name: str
    key: str
    url: str
    size: int
    type: str
    width: int
    height: int
    created_at: datetime
    updated_at: datetime
