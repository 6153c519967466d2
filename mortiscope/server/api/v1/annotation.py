"""
Annotation editor endpoints.

The editor loads one image of a submitted case with its detections, and saves
the added / modified / deleted changeset built by ``AnnotationHistory``.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter

from mortiscope.core.models.io.annotation import (
    DetectionChanges,
    DetectionRead,
    EditorImageRead,
    SaveDetectionsResponse,
)
from mortiscope.server.exception_handlers import invalid_input
from mortiscope.server.services.annotation import AnnotationService
from mortiscope.server.services.deps import CurrentUser, SessionDep, StorageDep

router = APIRouter(tags=["annotation"])


@router.get(
    "/{case_id}/images/{image_id}",
    response_model=Optional[EditorImageRead],
    summary="Editor Image",
    description="An image of a submitted case with a presigned URL and its live detections; null when unavailable.",
)
async def get_editor_image(
    case_id: str, image_id: str, user: CurrentUser, session: SessionDep, storage: StorageDep
) -> Optional[EditorImageRead]:
    return await AnnotationService(session, storage).get_editor_image(user.id, image_id, case_id)


@router.post(
    "/{case_id}/images/{image_id}/detections",
    response_model=SaveDetectionsResponse,
    summary="Save Detections",
    description="Apply a changeset of added, modified and deleted detections in one transaction.",
    responses={
        404: {"description": "Case not found or unauthorized, or image not in the case"},
        500: {"description": "Failed to save detections"},
    },
    openapi_extra=invalid_input("Invalid input provided."),
)
async def save_detections(
    case_id: str, image_id: str, changes: DetectionChanges, user: CurrentUser, session: SessionDep
) -> SaveDetectionsResponse:
    """
    Save the editor's changes.

    - **added**: New boxes; they keep their status and become their own original prediction.
    - **modified**: Existing boxes; the stored status is derived from whether the label or
      box changed and whether the user confirmed it.
    - **deleted**: Ids of boxes to soft-delete.

    The case is flagged for recalculation when the oldest detected stage changes.
    """
    detections = await AnnotationService(session).save_detections(user.id, image_id, case_id, changes)
    return SaveDetectionsResponse(detections=[DetectionRead.model_validate(d) for d in detections])
