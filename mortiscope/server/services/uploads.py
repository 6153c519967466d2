"""
Upload service.

Images go straight from the browser to the bucket through a presigned PUT URL;
the server then records the upload row. Ownership of a bucket object is read
from its ``userid`` metadata entry, which the presigned URL pins at upload time.

Renaming is a compensating sequence: head (ownership) -> copy -> delete the old
object -> update the database row. A database failure after the storage steps
leaves the row pointing at a deleted key; it is logged as critical and not
reconciled.
"""

from __future__ import annotations

import posixpath
import re
from typing import Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from mortiscope.core.database.base import new_id
from mortiscope.core.database.entities.uploads import Upload
from mortiscope.core.database.repositories import DetectionRepository, ExportRepository, UploadRepository
from mortiscope.core.errors import ForbiddenError, InvalidInputError, NotFoundError, ServiceFailureError
from mortiscope.core.logging_config import get_logger
from mortiscope.core.models.io.uploads import (
    CreateUploadRequest,
    PresignedUpload,
    RenamedObject,
    SaveUploadRequest,
    UpdateUploadRequest,
)
from mortiscope.core.monitoring import log_error
from mortiscope.core.storage import S3Storage
from mortiscope.server.core import constant

logger = get_logger(__name__)

_UNSAFE_NAME_CHARS = re.compile(r"[^A-Za-z0-9._-]")
_UPLOAD_NAME_CHARS = re.compile(r"[\s()]")

DATABASE_AFTER_RENAME_FAILED = "File was renamed, but a database error occurred."


def split_key(key: str) -> Tuple[str, str, str]:
    """Split an object key into ``(folder, stem, extension)``."""
    folder, file_name = posixpath.split(key)
    stem, ext = posixpath.splitext(file_name)
    return folder, stem, ext


def sanitize_file_stem(name: str) -> str:
    """Replace every character that is not a letter, digit, dot, underscore or hyphen with ``-``."""
    return _UNSAFE_NAME_CHARS.sub("-", name.strip())


def renamed_key(old_key: str, new_name: str) -> Tuple[str, str]:
    """
    Key and file name an object gets when renamed to ``new_name``.

    The folder and extension of ``old_key`` are kept; an extension typed as part
    of ``new_name`` is not doubled.
    """
    folder, _, ext = split_key(old_key)
    stem = new_name.strip()
    if ext and stem.lower().endswith(ext.lower()):
        stem = stem[: -len(ext)]
    file_name = f"{sanitize_file_stem(stem)}{ext}"
    return posixpath.join(folder, file_name), file_name


async def move_object(storage: S3Storage, old_key: str, new_key: str) -> None:
    """Copy ``old_key`` to ``new_key`` and delete the original."""
    await run_in_threadpool(storage.copy_object, old_key, new_key)
    await run_in_threadpool(storage.delete_object, old_key)


async def object_owner(storage: S3Storage, key: str) -> Optional[str]:
    return await run_in_threadpool(storage.owner_of, key)


class UploadService:
    def __init__(self, session: AsyncSession, storage: S3Storage) -> None:
        self.session = session
        self.storage = storage
        self.uploads = UploadRepository(session)
        self.detections = DetectionRepository(session)
        self.exports = ExportRepository(session)

    async def create_upload(self, user_id: str, payload: CreateUploadRequest) -> PresignedUpload:
        """Issue a presigned PUT URL for a new image of a case."""
        stem, ext = posixpath.splitext(payload.file_name)
        if ext.lower() not in constant.ACCEPTED_IMAGE_TYPES[payload.file_type]:
            raise InvalidInputError("File extension does not match the file type.")

        if payload.key:
            if not payload.key.startswith(f"uploads/{user_id}/"):
                raise InvalidInputError("Invalid input", details={"key": ["Key does not belong to you."]})
            key = payload.key
        else:
            safe_stem = _UPLOAD_NAME_CHARS.sub("-", stem)
            key = f"uploads/{user_id}/{payload.case_id}/{safe_stem}-{new_id()}{ext.lower()}"

        try:
            url = await run_in_threadpool(
                self.storage.presigned_put,
                key,
                payload.file_type,
                user_id,
                constant.PRESIGNED_URL_EXPIRATION_SECONDS,
            )
        except Exception as e:
            logger.error(f"Failed to presign upload {key}: {e}", exc_info=True)
            raise ServiceFailureError("An internal server error occurred.") from e
        return PresignedUpload(url=url, key=key)

    async def save_upload(self, user_id: str, payload: SaveUploadRequest) -> Upload:
        upload = Upload(
            id=payload.id,
            case_id=payload.case_id,
            user_id=user_id,
            name=payload.name,
            key=payload.key,
            url=self.storage.public_url(payload.key),
            size=payload.size,
            type=payload.type,
            width=payload.width,
            height=payload.height,
        )
        try:
            return await self.uploads.create(upload)
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Failed to save upload {payload.key}: {e}", exc_info=True)
            log_error("UploadSaveError", str(e), {"key": payload.key, "user_id": user_id})
            raise ServiceFailureError("Failed to save upload details to the database.") from e

    async def update_upload(self, user_id: str, upload_id: str, payload: UpdateUploadRequest) -> Upload:
        values = payload.model_dump(exclude_unset=True, exclude_none=True)
        if not values:
            raise InvalidInputError("No update data provided.")
        if "url" in values:
            values["url"] = str(values["url"])

        upload = await self.uploads.get_by_id(upload_id)
        if upload is None:
            raise NotFoundError("Upload not found.")
        if upload.user_id != user_id:
            raise ForbiddenError("Forbidden: You do not own this upload.")

        for key, value in values.items():
            setattr(upload, key, value)
        try:
            return await self.uploads.update(upload)
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Failed to update upload {upload_id}: {e}", exc_info=True)
            log_error("UploadUpdateError", str(e), {"upload_id": upload_id, "user_id": user_id})
            raise ServiceFailureError("Failed to update upload details in the database.") from e

    async def delete_upload(self, user_id: str, key: str) -> None:
        """Delete an upload row and its object. The object is only removed after the row."""
        try:
            owner = await object_owner(self.storage, key)
        except Exception as e:
            logger.error(f"Failed to read metadata of {key}: {e}", exc_info=True)
            raise ServiceFailureError("An internal server error occurred while deleting the file.") from e
        if owner != user_id:
            logger.warning(
                "Forbidden delete attempt",
                extra={"key": key, "userId": user_id, "keyOwnerId": owner or "unknown"},
            )
            raise ForbiddenError("Forbidden: You do not have permission to delete this file.")

        upload = await self.uploads.get_by_key(key)
        if upload is not None:
            try:
                await self.detections.delete_for_uploads([upload.id])
                await self.exports.delete_for_uploads([upload.id])
                await self.uploads.delete(upload.id)
            except Exception as e:
                await self.session.rollback()
                logger.error(f"Failed to delete upload row for {key}: {e}", exc_info=True)
                log_error("UploadDeleteError", str(e), {"key": key, "user_id": user_id})
                raise ServiceFailureError("An internal server error occurred while deleting the file.") from e

        try:
            await run_in_threadpool(self.storage.delete_object, key)
        except Exception as e:
            logger.critical(f"Orphaned S3 Object: {key} ({e})", extra={"key": key, "userId": user_id})
            log_error("OrphanedS3Object", str(e), {"key": key, "user_id": user_id})

    async def rename_upload(self, user_id: str, old_key: str, new_file_name: str) -> RenamedObject:
        new_key, file_name = renamed_key(old_key, new_file_name)
        if new_key == old_key:
            return RenamedObject(new_key=old_key, new_url=self.storage.public_url(old_key))

        try:
            owner = await object_owner(self.storage, old_key)
            if owner != user_id:
                raise ForbiddenError("Forbidden: You do not have permission to rename this file.")
            await move_object(self.storage, old_key, new_key)
        except ForbiddenError:
            raise
        except Exception as e:
            logger.error(f"Failed to rename {old_key} to {new_key}: {e}", exc_info=True)
            raise ServiceFailureError("An internal server error occurred while renaming the file.") from e

        new_url = self.storage.public_url(new_key)
        upload = await self.uploads.get_by_key(old_key)
        try:
            if upload is not None:
                upload.key, upload.url, upload.name = new_key, new_url, file_name
                await self.uploads.update(upload)
        except Exception as e:
            await self.session.rollback()
            logger.critical(
                f"Object renamed but database update failed: {old_key} -> {new_key} ({e})",
                extra={"oldKey": old_key, "newKey": new_key, "userId": user_id},
            )
            log_error("RenameInconsistentState", str(e), {"old_key": old_key, "new_key": new_key})
            raise ServiceFailureError(DATABASE_AFTER_RENAME_FAILED) from e
        return RenamedObject(new_key=new_key, new_url=new_url)
