"""
Background analysis and recalculation jobs.

Both jobs delegate the heavy lifting to the external detection service and
record the outcome on the case's ``analysis_results`` row. They run outside the
request, so each opens its own database session.
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, Optional

import httpx
from sqlalchemy import update

from mortiscope.core.database import async_session_maker
from mortiscope.core.database.entities.cases import Case
from mortiscope.core.database.repositories import AnalysisResultRepository
from mortiscope.core.logging_config import get_logger
from mortiscope.core.models.domain.enums import AnalysisStatus
from mortiscope.core.monitoring import log_analysis_event, log_error
from mortiscope.server.core import constant
from mortiscope.server.core.config import DetectionServiceConfig, settings

logger = get_logger(__name__)


class DetectionServiceError(RuntimeError):
    """The detection service answered with an error or could not be reached."""


class DetectionServiceClient:
    """Minimal async client of the detection / PMI computation service."""

    def __init__(
        self,
        config: Optional[DetectionServiceConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.config = config or settings.detection_service
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        headers = {"Content-Type": "application/json"}
        if self.config.api_key:
            headers["X-Api-Key"] = self.config.api_key
        return httpx.AsyncClient(
            base_url=self.config.url,
            headers=headers,
            timeout=self.config.timeout_seconds,
            transport=self.transport,
        )

    async def _post(self, path: str, case_id: str) -> httpx.Response:
        async with self._client() as client:
            return await client.post(path, json={"case_id": case_id})

    async def detect(self, case_id: str) -> Dict[str, Any]:
        """
        Run detection and PMI estimation for a case.

        Failed attempts are retried with exponential backoff (2, 4, ... seconds);
        a timeout ends the job immediately.
        """
        max_retries = max(1, self.config.max_retries)
        last_error: Optional[Exception] = None
        for attempt in range(1, max_retries + 1):
            try:
                response = await self._post("/v1/detect", case_id)
                if response.is_error:
                    error_text = response.text
                    if any(marker in error_text for marker in constant.RETRYABLE_DETECTION_ERRORS):
                        logger.warning(
                            f"Database connection error on attempt {attempt}/{max_retries}, will retry",
                            extra={"case_id": case_id, "attempt": attempt},
                        )
                    raise DetectionServiceError(f"Detection service failed: {error_text}")
                if attempt > 1:
                    logger.info(f"Analysis of case {case_id} succeeded on attempt {attempt}")
                return response.json()
            except httpx.TimeoutException as e:
                raise DetectionServiceError(
                    f"Analysis request timed out after {self.config.timeout_seconds / 60:g} minutes"
                ) from e
            except (DetectionServiceError, httpx.HTTPError, ValueError) as e:
                last_error = e
                if attempt == max_retries:
                    break
                await asyncio.sleep(2**attempt)
        raise last_error or DetectionServiceError("Analysis failed after all retry attempts")

    async def recalculate(self, case_id: str) -> None:
        response = await self._post("/v1/computation/recalculate", case_id)
        if response.is_error:
            raise DetectionServiceError(f"Recalculation endpoint failed: {response.text}")


def _pmi_fields(payload: Dict[str, Any]) -> Dict[str, Any]:
    aggregated = payload.get("aggregated_results") or {}
    pmi = payload.get("pmi_estimation") or {}
    return {
        "total_counts": aggregated.get("total_counts"),
        "oldest_stage_detected": aggregated.get("oldest_stage_detected"),
        "pmi_source_image_key": pmi.get("source_image_key"),
        "pmi_days": pmi.get("pmi_days"),
        "pmi_hours": pmi.get("pmi_hours"),
        "pmi_minutes": pmi.get("pmi_minutes"),
        "stage_used_for_calculation": pmi.get("stage_used_for_calculation"),
        "temperature_provided": pmi.get("temperature_provided"),
        "calculated_adh": pmi.get("calculated_adh"),
        "ldt_used": pmi.get("ldt_used"),
        "explanation": payload.get("explanation"),
    }


async def run_analysis_job(case_id: str, client: Optional[DetectionServiceClient] = None) -> None:
    """Analyse a submitted case and store its PMI estimate."""
    client = client or DetectionServiceClient()
    grace = client.config.upload_grace_seconds
    if grace > 0:
        await asyncio.sleep(grace)

    async with async_session_maker() as session:
        results = AnalysisResultRepository(session)
        await results.set_fields(case_id, status=AnalysisStatus.processing.value)
        log_analysis_event(case_id, AnalysisStatus.processing.value)

        try:
            payload = await client.detect(case_id)
        except Exception as e:
            await results.set_fields(case_id, status=AnalysisStatus.failed.value, explanation=f"Analysis failed: {e}")
            logger.error(f"Analysis of case {case_id} failed: {e}")
            log_error("AnalysisFailed", str(e), {"case_id": case_id})
            log_analysis_event(case_id, AnalysisStatus.failed.value)
            return

        aggregated = payload.get("aggregated_results") or {}
        if not aggregated.get("total_counts") or not aggregated.get("oldest_stage_detected"):
            await results.set_fields(
                case_id, status=AnalysisStatus.completed.value, explanation=constant.NO_DETECTIONS_EXPLANATION
            )
            logger.info(f"Analysis of case {case_id} completed with no objects detected")
            log_analysis_event(case_id, AnalysisStatus.completed.value, detections=False)
            return

        if not await results.exists(case_id):
            logger.info(f"Analysis of case {case_id} was cancelled, skipping save")
            return

        fields = _pmi_fields(payload)
        await results.set_fields(case_id, status=AnalysisStatus.completed.value, **fields)
        logger.info(
            f"Analysis of case {case_id} completed: oldest stage {fields['oldest_stage_detected']}, "
            f"PMI {fields['pmi_days']} day(s)"
        )
        log_analysis_event(
            case_id, AnalysisStatus.completed.value, oldest_stage=fields["oldest_stage_detected"]
        )


async def run_recalculation_job(case_id: str, client: Optional[DetectionServiceClient] = None) -> None:
    """Recompute the PMI of a case after its detections or temperature changed."""
    client = client or DetectionServiceClient()
    async with async_session_maker() as session:
        results = AnalysisResultRepository(session)
        await results.set_fields(case_id, status=AnalysisStatus.processing.value)
        try:
            await client.recalculate(case_id)
        except Exception as e:
            await results.set_fields(
                case_id, status=AnalysisStatus.failed.value, explanation=f"Recalculation failed: {e}"
            )
            logger.error(f"Recalculation of case {case_id} failed: {e}")
            log_error("RecalculationFailed", str(e), {"case_id": case_id})
            return

        await session.execute(update(Case).where(Case.id == case_id).values(recalculation_needed=False))
        await results.set_fields(case_id, status=AnalysisStatus.completed.value)
        logger.info(f"Recalculation of case {case_id} completed")
        log_analysis_event(case_id, AnalysisStatus.completed.value, recalculated=True)
