"""
Upload endpoints.

Images go straight from the browser to object storage through a presigned PUT;
the server records the upload afterwards and manages renames and deletions.
"""

from __future__ import annotations

from fastapi import APIRouter, status

from mortiscope.core.models.io import ActionResult
from mortiscope.core.models.io.uploads import (
    CreateUploadRequest,
    DeleteUploadRequest,
    PresignedUpload,
    RenamedObject,
    RenameUploadRequest,
    SaveUploadRequest,
    UpdateUploadRequest,
    UploadRead,
)
from mortiscope.server.exception_handlers import invalid_input
from mortiscope.server.services.deps import CurrentUser, SessionDep, StorageDep
from mortiscope.server.services.uploads import UploadService

router = APIRouter(tags=["uploads"])


@router.post(
    "/presign",
    response_model=PresignedUpload,
    summary="Create Upload URL",
    description="Return a presigned PUT URL (valid 10 minutes) and the object key for a new image.",
    responses={400: {"description": "Invalid file type, size or extension"}},
    openapi_extra=invalid_input("Invalid input", use_first_error=True),
)
async def create_upload(
    payload: CreateUploadRequest, user: CurrentUser, session: SessionDep, storage: StorageDep
) -> PresignedUpload:
    """
    Presign an image upload.

    - **file_name**: Original file name; its extension must match **file_type**.
    - **file_type**: One of JPEG, PNG, WebP, HEIC or HEIF.
    - **file_size**: At most 10 MiB.
    - **case_id**: The case the image belongs to.
    """
    return await UploadService(session, storage).create_upload(user.id, payload)


@router.post(
    "",
    response_model=UploadRead,
    status_code=status.HTTP_201_CREATED,
    summary="Save Upload",
    description="Record an image that was uploaded through a presigned URL.",
    responses={500: {"description": "Failed to save upload details"}},
    openapi_extra=invalid_input("Invalid input provided for saving upload."),
)
async def save_upload(
    payload: SaveUploadRequest, user: CurrentUser, session: SessionDep, storage: StorageDep
) -> UploadRead:
    upload = await UploadService(session, storage).save_upload(user.id, payload)
    return UploadRead.model_validate(upload)


@router.patch(
    "/{upload_id}",
    response_model=UploadRead,
    summary="Update Upload",
    description="Update the stored details of an owned upload.",
    responses={
        403: {"description": "Upload owned by someone else"},
        404: {"description": "Upload not found"},
    },
    openapi_extra=invalid_input("Invalid input provided for updating upload."),
)
async def update_upload(
    upload_id: str, payload: UpdateUploadRequest, user: CurrentUser, session: SessionDep, storage: StorageDep
) -> UploadRead:
    upload = await UploadService(session, storage).update_upload(user.id, upload_id, payload)
    return UploadRead.model_validate(upload)


@router.post(
    "/delete",
    response_model=ActionResult,
    summary="Delete Upload",
    description="Delete an upload record and its stored object by key.",
    responses={403: {"description": "Object owned by someone else"}},
    openapi_extra=invalid_input("Invalid input provided."),
)
async def delete_upload(
    payload: DeleteUploadRequest, user: CurrentUser, session: SessionDep, storage: StorageDep
) -> ActionResult:
    await UploadService(session, storage).delete_upload(user.id, payload.key)
    return ActionResult(message="File deleted successfully.")


@router.post(
    "/rename",
    response_model=RenamedObject,
    summary="Rename Upload",
    description="Move an uploaded object to a new name, keeping its folder and extension.",
    responses={403: {"description": "Object owned by someone else"}},
    openapi_extra=invalid_input("Invalid input provided."),
)
async def rename_upload(
    payload: RenameUploadRequest, user: CurrentUser, session: SessionDep, storage: StorageDep
) -> RenamedObject:
    return await UploadService(session, storage).rename_upload(user.id, payload.old_key, payload.new_file_name)
