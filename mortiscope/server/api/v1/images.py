"""
Image endpoints.

Images are served through ``/images/{id}/content``, which redirects an owned
image to a short-lived presigned URL, so stored URLs never expire.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, status
from fastapi.responses import RedirectResponse

from mortiscope.core.database.entities.users import User
from mortiscope.core.models.io import ActionResult
from mortiscope.core.models.io.images import (
    DeleteImageRequest,
    ImageUrlsRequest,
    ImageUrlsResponse,
    PresignImageRequest,
    PresignImageResponse,
    RenameImageRequest,
)
from mortiscope.server.exception_handlers import invalid_input
from mortiscope.server.services.deps import CurrentUser, RequireUser, SessionDep, StorageDep
from mortiscope.server.services.images import ImageService, get_image_urls, get_presigned_image_url

router = APIRouter(tags=["images"])

RenamingUser = Annotated[User, Depends(RequireUser("Unauthorized. Please sign in."))]
DeletingUser = Annotated[User, Depends(RequireUser("Unauthorized: You must be logged in."))]


@router.get(
    "/{image_id}/content",
    response_class=RedirectResponse,
    status_code=status.HTTP_307_TEMPORARY_REDIRECT,
    summary="Image Content",
    description="Redirect to a presigned URL for an owned image.",
    responses={404: {"description": "Image not found"}},
)
async def image_content(image_id: str, user: CurrentUser, session: SessionDep, storage: StorageDep):
    url = await ImageService(session, storage).get_content_url(user.id, image_id)
    return RedirectResponse(url, status_code=status.HTTP_307_TEMPORARY_REDIRECT)


@router.post(
    "/urls",
    response_model=ImageUrlsResponse,
    summary="Image URLs",
    description="Map image ids to their stable content URLs.",
)
async def image_urls(payload: ImageUrlsRequest, user: CurrentUser) -> ImageUrlsResponse:
    return ImageUrlsResponse(urls=get_image_urls(payload.image_ids))


@router.post(
    "/presign",
    response_model=PresignImageResponse,
    summary="Presign Image",
    description="Presign a GET for a stored key or bucket URL. Foreign URLs are returned unchanged.",
)
async def presign_image(payload: PresignImageRequest, user: CurrentUser, storage: StorageDep) -> PresignImageResponse:
    return PresignImageResponse(url=await get_presigned_image_url(storage, payload.key_or_url))


@router.patch(
    "/{image_id}/name",
    response_model=ActionResult,
    summary="Rename Image",
    description="Rename an image within its case, moving the stored object.",
    responses={
        400: {"description": "Missing name, image outside a case or duplicate name"},
        403: {"description": "Image not owned or missing"},
        500: {"description": "Storage or database failure"},
    },
    openapi_extra=invalid_input("A new name is required."),
)
async def rename_image(
    image_id: str, payload: RenameImageRequest, user: RenamingUser, session: SessionDep, storage: StorageDep
) -> ActionResult:
    """
    Rename an image.

    The object is copied to the new key and the old one deleted before the record is
    updated. When the new name maps to the current key nothing changes and ``data``
    is empty.
    """
    renamed = await ImageService(session, storage).rename_image(user.id, image_id, payload.new_name)
    return ActionResult(data=renamed.model_dump() if renamed else None)


@router.post(
    "/{image_id}/delete",
    response_model=ActionResult,
    summary="Delete Image",
    description="Delete an image, its detections and its stored object. A case keeps at least one image.",
    responses={
        400: {"description": "Last image of its case"},
        404: {"description": "Image not found or not owned"},
    },
)
async def delete_image(
    image_id: str, payload: DeleteImageRequest, user: DeletingUser, session: SessionDep, storage: StorageDep
) -> ActionResult:
    message = await ImageService(session, storage).delete_image(user.id, image_id, payload.image_name)
    return ActionResult(message=message)
