"""
Dashboard endpoints.

Aggregates over the caller's active cases. Every read endpoint accepts optional
``start_date`` / ``end_date`` query parameters filtering on the case date.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends
from pydantic import ValidationError

from mortiscope.core.database.entities.users import User
from mortiscope.core.errors import InvalidInputError
from mortiscope.core.models.io import ActionResult, DateRange
from mortiscope.core.models.io.dashboard import (
    CaseDataRow,
    CorrectionRatio,
    DashboardMetrics,
    DeleteSelectedCasesRequest,
    NamedQuantity,
    StageConfidence,
    VerificationOverview,
)
from mortiscope.server.exception_handlers import invalid_input
from mortiscope.server.services.dashboard import DashboardService
from mortiscope.server.services.deps import RequireUser, SessionDep

router = APIRouter(tags=["dashboard"])

DashboardUser = Annotated[User, Depends(RequireUser("User not authenticated"))]


def date_range(start_date: Optional[datetime] = None, end_date: Optional[datetime] = None) -> DateRange:
    try:
        return DateRange(start_date=start_date, end_date=end_date)
    except ValidationError as e:
        raise InvalidInputError("Invalid date range.") from e


DateRangeDep = Annotated[DateRange, Depends(date_range)]


@router.get("/metrics", response_model=DashboardMetrics, summary="Dashboard Metrics")
async def get_dashboard_metrics(user: DashboardUser, session: SessionDep, period: DateRangeDep) -> DashboardMetrics:
    """
    Headline figures over cases that have detections.

    Counts of cases, images and detections with how many of each are verified, the
    mean PMI in hours, the mean detection confidence and the share of detections
    users corrected.
    """
    return await DashboardService(session).get_dashboard_metrics(user.id, period)


@router.get("/life-stages", response_model=List[NamedQuantity], summary="Life Stage Distribution")
async def get_life_stage_distribution(
    user: DashboardUser, session: SessionDep, period: DateRangeDep
) -> List[NamedQuantity]:
    return await DashboardService(session).get_life_stage_distribution(user.id, period)


@router.get(
    "/model-performance",
    response_model=List[StageConfidence],
    summary="Model Performance",
    description="Mean model confidence per predicted life stage, in percent.",
)
async def get_model_performance_metrics(
    user: DashboardUser, session: SessionDep, period: DateRangeDep
) -> List[StageConfidence]:
    return await DashboardService(session).get_model_performance_metrics(user.id, period)


@router.get("/confidence-distribution", response_model=List[NamedQuantity], summary="Confidence Distribution")
async def get_confidence_score_distribution(
    user: DashboardUser, session: SessionDep, period: DateRangeDep
) -> List[NamedQuantity]:
    return await DashboardService(session).get_confidence_score_distribution(user.id, period)


@router.get("/pmi-distribution", response_model=List[NamedQuantity], summary="PMI Distribution")
async def get_pmi_distribution(user: DashboardUser, session: SessionDep, period: DateRangeDep) -> List[NamedQuantity]:
    return await DashboardService(session).get_pmi_distribution(user.id, period)


@router.get(
    "/sampling-density",
    response_model=List[NamedQuantity],
    summary="Sampling Density",
    description="Number of cases per images-per-case bucket.",
)
async def get_sampling_density(user: DashboardUser, session: SessionDep, period: DateRangeDep) -> List[NamedQuantity]:
    return await DashboardService(session).get_sampling_density(user.id, period)


@router.get("/correction-ratio", response_model=CorrectionRatio, summary="User Correction Ratio")
async def get_user_correction_ratio(user: DashboardUser, session: SessionDep, period: DateRangeDep) -> CorrectionRatio:
    return await DashboardService(session).get_user_correction_ratio(user.id, period)


@router.get("/verification", response_model=VerificationOverview, summary="Verification Status")
async def get_verification_status(
    user: DashboardUser, session: SessionDep, period: DateRangeDep
) -> VerificationOverview:
    return await DashboardService(session).get_verification_status(user.id, period)


@router.get("/cases", response_model=List[CaseDataRow], summary="Case Data")
async def get_case_data(user: DashboardUser, session: SessionDep, period: DateRangeDep) -> List[CaseDataRow]:
    return await DashboardService(session).get_case_data(user.id, period)


@router.post(
    "/cases/delete",
    response_model=ActionResult,
    summary="Delete Selected Cases",
    description="Delete several cases at once. The caller's password is required.",
    responses={
        400: {"description": "Invalid input or wrong password"},
        404: {"description": "None of the cases belong to the caller"},
    },
    openapi_extra=invalid_input("Invalid input provided."),
)
async def delete_selected_cases(
    payload: DeleteSelectedCasesRequest,
    session: SessionDep,
    user: Annotated[User, Depends(RequireUser("Authentication required. Please sign in."))],
) -> ActionResult:
    message = await DashboardService(session).delete_selected_cases(user.id, payload.case_ids, payload.password)
    return ActionResult(message=message)
