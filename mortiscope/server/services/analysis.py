"""
Analysis service: draft cases, submission and cancellation.

Submitting flips a draft case to ``active``, (re)creates its pending analysis
result and hands the case to the background analysis job.
"""

from __future__ import annotations

from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from mortiscope.core.database.entities.cases import Case
from mortiscope.core.database.entities.uploads import Upload
from mortiscope.core.database.repositories import (
    AnalysisResultRepository,
    CaseRepository,
    DetectionRepository,
    UploadRepository,
)
from mortiscope.core.errors import NotFoundError, ServiceFailureError
from mortiscope.core.logging_config import get_logger
from mortiscope.core.models.domain.enums import AnalysisStatus, CaseStatus
from mortiscope.core.models.io.analysis import CancelAnalysisResponse
from mortiscope.core.monitoring import log_analysis_event

from .jobs import JobQueue

logger = get_logger(__name__)


class AnalysisService:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.cases = CaseRepository(session)
        self.uploads = UploadRepository(session)
        self.detections = DetectionRepository(session)
        self.analysis_results = AnalysisResultRepository(session)

    async def get_draft_case(self, user_id: str) -> Optional[Case]:
        return await self.cases.get_latest_draft(user_id)

    async def get_case_uploads(self, user_id: str, case_id: str) -> List[Upload]:
        """Uploads of an owned case, newest first. Unknown cases have none."""
        try:
            case = await self.cases.get_owned(case_id, user_id)
            if case is None:
                return []
            return await self.uploads.list_for_case(case_id)
        except Exception as e:
            logger.error(f"Failed to fetch uploads of case {case_id}: {e}", exc_info=True)
            raise ServiceFailureError(f"Failed to fetch uploads: {e}") from e

    async def get_upload(self, user_id: str, upload_id: str) -> Optional[Upload]:
        return await self.uploads.get_owned(upload_id, user_id)

    async def submit_analysis(self, user_id: str, case_id: str, jobs: JobQueue) -> None:
        case = await self.cases.get_owned(case_id, user_id, status=CaseStatus.draft.value)
        if case is None:
            raise NotFoundError("Case not found or you do not have permission to submit it.")
        try:
            await self.cases.update_owned(case_id, user_id, {"status": CaseStatus.active.value}, commit=False)
            await self.analysis_results.upsert_pending(case_id, commit=False)
            await self.session.commit()
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Failed to submit case {case_id} for analysis: {e}", exc_info=True)
            raise ServiceFailureError("An internal server error occurred.") from e

        jobs.enqueue_analysis(case_id)
        log_analysis_event(case_id, AnalysisStatus.pending.value)
        logger.info(f"Case {case_id} submitted for analysis")

    async def cancel_analysis(self, user_id: str, case_id: str) -> CancelAnalysisResponse:
        """
        Cancel a running analysis: drop its result and detections and return the case to draft.

        A job still running for the case notices the missing result row and
        discards its output.
        """
        case = await self.cases.get_owned(case_id, user_id)
        if case is None:
            return CancelAnalysisResponse(
                status="error", message="Case not found or you do not have permission to cancel it."
            )
        try:
            uploads = await self.uploads.list_for_case(case_id)
            await self.detections.delete_for_uploads([u.id for u in uploads])
            result = await self.analysis_results.get_by_id(case_id)
            if result is not None:
                await self.session.delete(result)
            await self.cases.update_owned(case_id, user_id, {"status": CaseStatus.draft.value}, commit=False)
            await self.session.commit()
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Failed to cancel analysis of case {case_id}: {e}", exc_info=True)
            return CancelAnalysisResponse(status="error", message="A database error occurred. Please try again.")
        log_analysis_event(case_id, "cancelled")
        logger.info(f"Analysis of case {case_id} cancelled")
        return CancelAnalysisResponse(status="success", message="Analysis has been successfully cancelled.")
