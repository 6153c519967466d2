"""
Results endpoints: submitted cases with their images, detections, analysis
outcome and change history, plus renaming, deleting and recalculating.
"""

from __future__ import annotations

from typing import Annotated, List

from fastapi import APIRouter, Depends, status

from mortiscope.core.database.entities.users import User
from mortiscope.core.models.io import ActionResult
from mortiscope.core.models.io.analysis import AnalysisStatusResponse
from mortiscope.core.models.io.results import (
    CaseDetail,
    CaseHistoryEntry,
    CaseSummary,
    DeleteCaseRequest,
    RenameCaseRequest,
)
from mortiscope.server.exception_handlers import invalid_input
from mortiscope.server.services.deps import CurrentUser, JobQueueDep, RequireUser, SessionDep
from mortiscope.server.services.results import ResultsService

router = APIRouter(tags=["results"])


@router.get(
    "/cases",
    response_model=List[CaseSummary],
    summary="List Cases",
    description="Active cases, newest first, with detection totals and review state.",
)
async def get_cases(user: CurrentUser, session: SessionDep) -> List[CaseSummary]:
    return await ResultsService(session).get_cases(user.id)


@router.get(
    "/cases/{case_id}",
    response_model=CaseDetail,
    summary="Get Case",
    description="A case with its images, their live detections and the analysis result.",
    responses={404: {"description": "Case not found"}},
)
async def get_case(case_id: str, user: CurrentUser, session: SessionDep) -> CaseDetail:
    return await ResultsService(session).get_case_by_id(user.id, case_id)


@router.get(
    "/cases/{case_id}/history",
    response_model=List[CaseHistoryEntry],
    summary="Case History",
    description="Recorded changes to a case's details, newest first.",
    responses={404: {"description": "Case not found"}},
)
async def get_case_history(case_id: str, user: CurrentUser, session: SessionDep) -> List[CaseHistoryEntry]:
    return await ResultsService(session).get_case_history(user.id, case_id)


@router.get(
    "/cases/{case_id}/status",
    response_model=AnalysisStatusResponse,
    summary="Analysis Status",
    description="Status of the case's analysis; pending when there is none.",
)
async def get_analysis_status(case_id: str, user: CurrentUser, session: SessionDep) -> AnalysisStatusResponse:
    return AnalysisStatusResponse(status=await ResultsService(session).get_analysis_status(user.id, case_id))


@router.patch(
    "/cases/{case_id}/name",
    response_model=ActionResult,
    summary="Rename Case",
    description="Give a case a new name, unique among the caller's cases.",
    responses={
        404: {"description": "Case not found or not owned"},
        409: {"description": "A case with this name already exists"},
    },
    openapi_extra=invalid_input("Invalid input. Please check the details and try again."),
)
async def rename_case(
    case_id: str,
    payload: RenameCaseRequest,
    session: SessionDep,
    user: Annotated[User, Depends(RequireUser("You must be logged in to rename a case."))],
) -> ActionResult:
    await ResultsService(session).rename_case(user.id, case_id, payload.new_name)
    return ActionResult(message="Case successfully renamed.")


@router.post(
    "/cases/{case_id}/delete",
    response_model=ActionResult,
    summary="Delete Case",
    description="Permanently delete a case with its images, detections, analysis and history.",
    responses={404: {"description": "Case not found or not owned"}},
    openapi_extra=invalid_input("Invalid input provided."),
)
async def delete_case(
    case_id: str,
    payload: DeleteCaseRequest,
    session: SessionDep,
    user: Annotated[User, Depends(RequireUser("Authentication required. Please sign in."))],
) -> ActionResult:
    message = await ResultsService(session).delete_case(user.id, case_id, payload.case_name)
    return ActionResult(message=message)


@router.post(
    "/cases/{case_id}/recalculate",
    response_model=ActionResult,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Recalculate PMI",
    description="Recompute the PMI estimate of a case whose detections or temperature changed.",
    responses={
        400: {"description": "No recalculation needed or case not analysed"},
        404: {"description": "Case not found or not owned"},
    },
)
async def request_recalculation(
    case_id: str, user: CurrentUser, session: SessionDep, jobs: JobQueueDep
) -> ActionResult:
    await ResultsService(session).request_recalculation(user.id, case_id, jobs)
    return ActionResult(message="Recalculation started.")
