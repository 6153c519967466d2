"""
Case endpoints: creating a case and editing its details.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from mortiscope.core.database.entities.users import User
from mortiscope.core.models.io import ActionResult
from mortiscope.core.models.io.cases import CaseDetailsInput, CreateCaseResponse
from mortiscope.server.exception_handlers import invalid_input
from mortiscope.server.services.cases import CaseService
from mortiscope.server.services.deps import RequireUser, SessionDep

router = APIRouter(tags=["cases"])


@router.post(
    "",
    response_model=CreateCaseResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create Case",
    description="Create a draft case. Fahrenheit temperatures are stored in Celsius.",
    responses={
        201: {"description": "Draft case created"},
        400: {"description": "Invalid input"},
        409: {"description": "A case with this name already exists"},
    },
    openapi_extra=invalid_input("Invalid input."),
)
async def create_case(
    details: CaseDetailsInput,
    session: SessionDep,
    user: User = Depends(RequireUser()),
) -> CreateCaseResponse:
    """
    Create a new draft case.

    - **case_name**: 1 to 256 characters, unique among the caller's cases.
    - **case_date**: When the remains were found; not in the future.
    - **location**: Region, province, city and barangay, each as ``{code, name}``.
    - **temperature**: ``{value, unit}`` with unit ``C`` or ``F``; -50 to 60 °C.
    - **notes**: Up to 5000 characters.
    """
    case_id = await CaseService(session).create_case(user.id, details)
    return CreateCaseResponse(case_id=case_id)


@router.put(
    "/{case_id}",
    response_model=ActionResult,
    summary="Update Case",
    description="Replace a case's details. Changes to an active case are recorded in its history.",
    responses={
        400: {"description": "Invalid input"},
        404: {"description": "Case not found or access denied"},
        409: {"description": "A case with this name already exists"},
    },
    openapi_extra=invalid_input("Invalid input."),
)
async def update_case(
    case_id: str,
    details: CaseDetailsInput,
    session: SessionDep,
    user: User = Depends(RequireUser()),
) -> ActionResult:
    await CaseService(session).update_case(user.id, case_id, details)
    return ActionResult(message="Case updated successfully.")
