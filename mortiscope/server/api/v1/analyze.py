"""
Analysis endpoints: the draft being prepared, submitting it for analysis and
cancelling a running analysis.
"""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, status

from mortiscope.core.models.io import ActionResult
from mortiscope.core.models.io.analysis import CancelAnalysisResponse, SubmitAnalysisRequest
from mortiscope.core.models.io.cases import CaseRead
from mortiscope.core.models.io.uploads import UploadRead
from mortiscope.server.exception_handlers import invalid_input
from mortiscope.server.services.analysis import AnalysisService
from mortiscope.server.services.deps import CurrentUser, JobQueueDep, SessionDep

router = APIRouter(tags=["analysis"])


@router.get(
    "/draft",
    response_model=Optional[CaseRead],
    summary="Current Draft",
    description="The caller's most recent draft case, or null.",
)
async def get_draft_case(user: CurrentUser, session: SessionDep) -> Optional[CaseRead]:
    case = await AnalysisService(session).get_draft_case(user.id)
    return CaseRead.model_validate(case) if case else None


@router.get(
    "/cases/{case_id}/uploads",
    response_model=List[UploadRead],
    summary="Case Uploads",
    description="Uploads of an owned case, newest first.",
)
async def get_case_uploads(case_id: str, user: CurrentUser, session: SessionDep) -> List[UploadRead]:
    uploads = await AnalysisService(session).get_case_uploads(user.id, case_id)
    return [UploadRead.model_validate(u) for u in uploads]


@router.get(
    "/uploads/{upload_id}",
    response_model=Optional[UploadRead],
    summary="Get Upload",
    description="One owned upload, or null.",
)
async def get_upload(upload_id: str, user: CurrentUser, session: SessionDep) -> Optional[UploadRead]:
    upload = await AnalysisService(session).get_upload(user.id, upload_id)
    return UploadRead.model_validate(upload) if upload else None


@router.post(
    "/submit",
    response_model=ActionResult,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Submit Analysis",
    description="Activate a draft case and start its analysis in the background.",
    responses={
        202: {"description": "Analysis queued"},
        404: {"description": "Case not found or not a draft of the caller"},
    },
    openapi_extra=invalid_input("Invalid input provided."),
)
async def submit_analysis(
    payload: SubmitAnalysisRequest, user: CurrentUser, session: SessionDep, jobs: JobQueueDep
) -> ActionResult:
    """
    Submit a draft case.

    The case becomes active, a pending analysis result is created and the detection
    service is called once the response has been sent. Poll the results status
    endpoint to follow progress.
    """
    await AnalysisService(session).submit_analysis(user.id, payload.case_id, jobs)
    return ActionResult(message="Analysis submitted.")


@router.post(
    "/cases/{case_id}/cancel",
    response_model=CancelAnalysisResponse,
    summary="Cancel Analysis",
    description="Discard the analysis of a case and return it to draft.",
)
async def cancel_analysis(case_id: str, user: CurrentUser, session: SessionDep) -> CancelAnalysisResponse:
    return await AnalysisService(session).cancel_analysis(user.id, case_id)
