"""
Export endpoints.

Exports are generated in the background; clients poll the status endpoint
until a download URL is available.
"""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Query, status

from mortiscope.core.models.io.exports import (
    ExportRead,
    ExportRequested,
    ExportStatusResponse,
    ImageExportRequest,
    ResultsExportRequest,
)
from mortiscope.server.core import constant
from mortiscope.server.exception_handlers import invalid_input
from mortiscope.server.services.deps import CurrentUser, JobQueueDep, SessionDep, StorageDep
from mortiscope.server.services.exports import ExportService

router = APIRouter(tags=["exports"])


@router.post(
    "/results",
    response_model=ExportRequested,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Export Case Results",
    description="Queue a raw data archive, labelled images archive or PDF report for a case.",
    responses={
        202: {"description": "Export queued"},
        404: {"description": "Case not found or permission denied"},
    },
    openapi_extra=invalid_input("Invalid input provided.", use_first_error=True),
)
async def request_results_export(
    payload: ResultsExportRequest, user: CurrentUser, session: SessionDep, jobs: JobQueueDep
) -> ExportRequested:
    """
    Request a case export.

    - **format**: ``raw_data``, ``labelled_images`` or ``pdf``.
    - **resolution**: Required for labelled images (``1280x720``, ``1920x1080`` or ``3840x2160``).
    - **page_size** / **security_level** / **password** / **permissions**: PDF options. A
      protected level needs a password of at least 8 characters.
    - **password_protection**: AES-encrypts zip archives with the given password.
    """
    export_id = await ExportService(session).request_results_export(user.id, payload, jobs)
    return ExportRequested(export_id=export_id)


@router.post(
    "/images",
    response_model=ExportRequested,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Export Image",
    description="Queue a raw data or labelled image archive for a single image.",
    responses={404: {"description": "Image not found or permission denied"}},
    openapi_extra=invalid_input("Invalid input provided.", use_first_error=True),
)
async def request_image_export(
    payload: ImageExportRequest, user: CurrentUser, session: SessionDep, jobs: JobQueueDep
) -> ExportRequested:
    export_id = await ExportService(session).request_image_export(user.id, payload, jobs)
    return ExportRequested(export_id=export_id)


@router.get(
    "",
    response_model=List[ExportRead],
    summary="Recent Exports",
    description="The caller's recent exports that have not failed, newest first.",
)
async def get_recent_exports(
    user: CurrentUser, session: SessionDep, limit: int = Query(constant.RECENT_EXPORTS_LIMIT, ge=1, le=100)
) -> List[ExportRead]:
    exports = await ExportService(session).get_recent_exports(user.id, limit)
    return [ExportRead.model_validate(e) for e in exports]


@router.get(
    "/{export_id}",
    response_model=Optional[ExportStatusResponse],
    summary="Export Status",
    description="Status of an export, with a presigned download URL once completed; null when unknown.",
)
async def get_export_status(
    export_id: str, user: CurrentUser, session: SessionDep, storage: StorageDep
) -> Optional[ExportStatusResponse]:
    return await ExportService(session).get_export_status(user.id, export_id, storage)
