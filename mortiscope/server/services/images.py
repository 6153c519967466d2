"""
Image service.

Images are uploads viewed from the results pages. Clients never see bucket URLs
directly: they request ``/api/v1/images/{id}/content``, which redirects to a
short-lived presigned URL after an ownership check.
"""

from __future__ import annotations

from typing import Dict, Iterable, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from mortiscope.core.database.entities.uploads import Upload
from mortiscope.core.database.repositories import DetectionRepository, ExportRepository, UploadRepository
from mortiscope.core.errors import ForbiddenError, InvalidInputError, NotFoundError, ServiceFailureError
from mortiscope.core.logging_config import get_logger
from mortiscope.core.models.io.uploads import RenamedObject
from mortiscope.core.monitoring import log_error
from mortiscope.core.storage import S3Storage
from mortiscope.server.core import constant

from .uploads import DATABASE_AFTER_RENAME_FAILED, move_object, renamed_key

logger = get_logger(__name__)


def get_image_url(image_id: str) -> str:
    """Stable proxy URL of an image."""
    return f"{constant.API_V1_STR}/images/{image_id}/content"


def get_image_urls(image_ids: Iterable[str]) -> Dict[str, str]:
    return {image_id: get_image_url(image_id) for image_id in image_ids}


async def get_presigned_image_url(storage: S3Storage, key_or_url: Optional[str]) -> Optional[str]:
    """
    Presigned GET URL for a stored image.

    Accepts either an object key or a bucket URL. Absolute URLs pointing
    anywhere else (provider avatars) are returned unchanged.
    """
    if not key_or_url:
        return None
    key = key_or_url
    if key_or_url.startswith(("http://", "https://")):
        key = storage.key_from_url(key_or_url)
        if key is None:
            return key_or_url
    return await run_in_threadpool(storage.presigned_get, key, constant.PRESIGNED_GET_EXPIRY_SECONDS)


class ImageService:
    def __init__(self, session: AsyncSession, storage: S3Storage) -> None:
        self.session = session
        self.storage = storage
        self.uploads = UploadRepository(session)
        self.detections = DetectionRepository(session)
        self.exports = ExportRepository(session)

    async def get_content_url(self, user_id: str, image_id: str) -> str:
        upload = await self.uploads.get_owned(image_id, user_id)
        if upload is None:
            raise NotFoundError("Image not found.")
        url = await get_presigned_image_url(self.storage, upload.key)
        return url or upload.url

    async def rename_image(self, user_id: str, image_id: str, new_name: str) -> Optional[RenamedObject]:
        """
        Rename an image within its case.

        Returns None when the sanitized name maps to the current key (nothing to do).
        """
        if not image_id or not new_name or not new_name.strip():
            raise InvalidInputError("A new name is required.")

        try:
            upload = await self.uploads.get_owned(image_id, user_id)
        except Exception as e:
            logger.error(f"Failed to load image {image_id}: {e}", exc_info=True)
            raise ServiceFailureError("An internal server error occurred while renaming the file.") from e
        if upload is None:
            raise ForbiddenError("You do not have permission to rename this file or it does not exist.")
        if upload.case_id is None:
            raise InvalidInputError("Cannot rename image: The image is not part of a case.")

        new_key, file_name = renamed_key(upload.key, new_name)
        if new_key == upload.key:
            return None
        if await self.uploads.name_exists_in_case(upload.case_id, file_name, exclude_id=upload.id):
            raise InvalidInputError("A file with this name already exists in this case.")

        try:
            await run_in_threadpool(self.storage.head_object, upload.key)
            await move_object(self.storage, upload.key, new_key)
        except Exception as e:
            logger.error(f"Failed to rename {upload.key} to {new_key}: {e}", exc_info=True)
            raise ServiceFailureError("An internal server error occurred while renaming the file.") from e

        old_key = upload.key
        new_url = self.storage.public_url(new_key)
        try:
            upload.key, upload.url, upload.name = new_key, new_url, file_name
            await self.uploads.update(upload)
        except Exception as e:
            await self.session.rollback()
            logger.critical(
                f"Image {image_id} renamed in storage but database update failed: {old_key} -> {new_key} ({e})",
                extra={"imageId": image_id, "oldKey": old_key, "newKey": new_key},
            )
            log_error("RenameInconsistentState", str(e), {"image_id": image_id, "new_key": new_key})
            raise ServiceFailureError(DATABASE_AFTER_RENAME_FAILED) from e
        logger.info(f"Image {image_id} renamed to {file_name}")
        return RenamedObject(new_key=new_key, new_url=new_url)

    async def delete_image(self, user_id: str, image_id: str, image_name: Optional[str] = None) -> str:
        """Delete an image of a case. Returns the confirmation message."""
        upload = await self.uploads.get_owned(image_id, user_id)
        if upload is None:
            raise NotFoundError("Image not found or you do not have permission to delete it.")
        if upload.case_id is not None and await self.uploads.count_for_case(upload.case_id) <= 1:
            raise InvalidInputError("A case must have at least one image.")

        try:
            await self._delete_row(upload)
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Failed to delete image {image_id}: {e}", exc_info=True)
            log_error("ImageDeleteError", str(e), {"image_id": image_id, "user_id": user_id})
            raise ServiceFailureError("An internal server error occurred while deleting the file.") from e
        try:
            await run_in_threadpool(self.storage.delete_object, upload.key)
        except Exception as e:
            logger.error(f"Image {image_id} deleted but its object {upload.key} was not: {e}")
            log_error("OrphanedS3Object", str(e), {"key": upload.key, "image_id": image_id})
        return f"{image_name or upload.name} successfully deleted."

    async def _delete_row(self, upload: Upload) -> None:
        await self.detections.delete_for_uploads([upload.id])
        await self.exports.delete_for_uploads([upload.id])
        await self.uploads.delete(upload.id)
