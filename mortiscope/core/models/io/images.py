"""Image I/O models."""

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class RenameImageRequest(BaseModel):
    new_name: str = ""


class DeleteImageRequest(BaseModel):
    image_name: Optional[str] = None


class ImageUrlsRequest(BaseModel):
    image_ids: List[str] = Field(default_factory=list)


class ImageUrlsResponse(BaseModel):
    urls: Dict[str, str]


class PresignImageRequest(BaseModel):
    key_or_url: Optional[str] = None


class PresignImageResponse(BaseModel):
    url: Optional[str] = None
