"""
Results service: submitted cases, their images, detections, analysis outcome
and change history, plus renaming and deleting cases.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Dict, Iterable, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from mortiscope.core.database.entities.detections import Detection
from mortiscope.core.database.repositories import (
    AnalysisResultRepository,
    CaseAuditLogRepository,
    CaseRepository,
    DetectionRepository,
    UploadRepository,
)
from mortiscope.core.errors import ConflictError, InvalidInputError, NotFoundError, ServiceFailureError
from mortiscope.core.logging_config import get_logger
from mortiscope.core.models.domain.enums import AnalysisStatus, CaseStatus, VerificationStatus
from mortiscope.core.models.io.analysis import AnalysisResultRead
from mortiscope.core.models.io.annotation import DetectionRead
from mortiscope.core.models.io.results import CaseDetail, CaseHistoryEntry, CaseSummary, UploadWithDetections
from mortiscope.server.core import constant

from .jobs import JobQueue

logger = get_logger(__name__)


def verification_status(detections: Iterable[Detection]) -> VerificationStatus:
    """Aggregate review state of a set of detections."""
    total = verified = 0
    for detection in detections:
        total += 1
        verified += detection.is_verified
    if total == 0:
        return VerificationStatus.no_detections
    if verified == total:
        return VerificationStatus.verified
    if verified == 0:
        return VerificationStatus.unverified
    return VerificationStatus.in_progress


class ResultsService:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.cases = CaseRepository(session)
        self.uploads = UploadRepository(session)
        self.detections = DetectionRepository(session)
        self.analysis_results = AnalysisResultRepository(session)
        self.audit_logs = CaseAuditLogRepository(session)

    async def _detections_by_case(self, case_ids: List[str]) -> Dict[str, List[Detection]]:
        uploads = await self.uploads.list_for_cases(case_ids)
        case_of_upload = {u.id: u.case_id for u in uploads}
        grouped: Dict[str, List[Detection]] = defaultdict(list)
        for detection in await self.detections.list_for_uploads(list(case_of_upload)):
            grouped[case_of_upload[detection.upload_id]].append(detection)
        return grouped

    async def get_cases(self, user_id: str) -> List[CaseSummary]:
        """Active cases of the user, newest first, with their verification progress."""
        cases = await self.cases.list_for_user(user_id, status=CaseStatus.active.value)
        grouped = await self._detections_by_case([c.id for c in cases])
        summaries = []
        for case in cases:
            detections = grouped.get(case.id, [])
            summaries.append(
                CaseSummary.model_validate(
                    {
                        **case.model_dump(),
                        "total_detections": len(detections),
                        "verified_detections": sum(d.is_verified for d in detections),
                        "verification_status": verification_status(detections),
                    }
                )
            )
        return summaries

    async def get_case_by_id(self, user_id: str, case_id: str) -> CaseDetail:
        case = await self.cases.get_owned(case_id, user_id)
        if case is None:
            raise NotFoundError("Case not found.")
        uploads = await self.uploads.list_for_case(case_id)
        by_upload: Dict[str, List[Detection]] = defaultdict(list)
        for detection in await self.detections.list_for_uploads(u.id for u in uploads):
            by_upload[detection.upload_id].append(detection)
        result = await self.analysis_results.get_by_id(case_id)

        detail = CaseDetail.model_validate(case.model_dump())
        detail.uploads = [
            UploadWithDetections.model_validate(
                {
                    **upload.model_dump(),
                    "detections": [DetectionRead.model_validate(d) for d in by_upload.get(upload.id, [])],
                }
            )
            for upload in uploads
        ]
        detail.analysis_result = AnalysisResultRead.model_validate(result) if result is not None else None
        return detail

    async def get_case_history(self, user_id: str, case_id: str) -> List[CaseHistoryEntry]:
        if await self.cases.get_owned(case_id, user_id) is None:
            raise NotFoundError("Case not found.")
        return [
            CaseHistoryEntry(
                id=log.id,
                batch_id=log.batch_id,
                field=log.field,
                old_value=log.old_value,
                new_value=log.new_value,
                created_at=log.created_at,
                user_id=log.user_id,
                user_name=user.name if user is not None else None,
                user_image=user.profile_image_url if user is not None else None,
            )
            for log, user in await self.audit_logs.list_for_case(case_id)
        ]

    async def get_analysis_status(self, user_id: str, case_id: str) -> str:
        if await self.cases.get_owned(case_id, user_id) is None:
            return AnalysisStatus.pending.value
        return await self.analysis_results.get_status(case_id) or AnalysisStatus.pending.value

    async def rename_case(self, user_id: str, case_id: str, new_name: str) -> None:
        name = new_name.strip()
        if not name or len(name) > constant.CASE_NAME_MAX_LENGTH:
            raise InvalidInputError("Invalid input. Please check the details and try again.")
        try:
            updated = await self.cases.update_owned(case_id, user_id, {"case_name": name})
        except IntegrityError as e:
            await self.session.rollback()
            raise ConflictError("A case with this name already exists. Please choose a different name.") from e
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Failed to rename case {case_id}: {e}", exc_info=True)
            raise ServiceFailureError("An unexpected error occurred. Please try again.") from e
        if updated == 0:
            raise NotFoundError("Case not found or you don't have permission to rename it.")
        logger.info(f"Case {case_id} renamed by user {user_id}")

    async def delete_case(self, user_id: str, case_id: str, case_name: Optional[str] = None) -> str:
        if await self.cases.get_owned(case_id, user_id) is None:
            raise NotFoundError("Case not found or you do not have permission to delete it.")
        try:
            await self.cases.delete_with_children([case_id])
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Failed to delete case {case_id}: {e}", exc_info=True)
            raise ServiceFailureError("An unexpected error occurred. Please try again.") from e
        logger.info(f"Case {case_id} deleted by user {user_id}")
        if case_name:
            return f'Case "{case_name}" has been permanently deleted.'
        return "Case has been permanently deleted."

    async def request_recalculation(self, user_id: str, case_id: str, jobs: JobQueue) -> None:
        case = await self.cases.get_owned(case_id, user_id, status=CaseStatus.active.value)
        if case is None:
            raise NotFoundError("Case not found or you do not have permission to recalculate it.")
        if not case.recalculation_needed:
            raise InvalidInputError("This case does not need a recalculation.")
        if not await self.analysis_results.exists(case_id):
            raise InvalidInputError("This case has not been analysed yet.")
        jobs.enqueue_recalculation(case_id)
        logger.info(f"Recalculation of case {case_id} requested")
