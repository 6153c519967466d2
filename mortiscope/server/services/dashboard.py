"""
Dashboard service.

Aggregates over the caller's active cases, optionally limited to a case-date
range. Every figure is computed from one snapshot of cases, uploads, live
detections and analysis results loaded by ``_snapshot``; the bucketing helpers
are plain functions so they can be checked in isolation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from mortiscope.core.database.entities.analysis_results import AnalysisResult
from mortiscope.core.database.entities.cases import Case
from mortiscope.core.database.entities.detections import Detection
from mortiscope.core.database.entities.uploads import Upload
from mortiscope.core.database.repositories import (
    AnalysisResultRepository,
    CaseRepository,
    DetectionRepository,
    UploadRepository,
    UserRepository,
)
from mortiscope.core.errors import InvalidInputError, NotFoundError, ServiceFailureError, UnauthorizedError
from mortiscope.core.logging_config import get_logger
from mortiscope.core.models.domain.enums import AnalysisStatus, CaseStatus, DetectionStatus, VerificationStatus
from mortiscope.core.models.io.common import DateRange
from mortiscope.core.models.io.dashboard import (
    CaseDataRow,
    CorrectionRatio,
    DashboardMetrics,
    NamedQuantity,
    StageConfidence,
    VerificationBreakdown,
    VerificationOverview,
)
from mortiscope.core.security import verify_password
from mortiscope.server.core import constant

from .results import verification_status

logger = get_logger(__name__)

_CONFIRMED = {DetectionStatus.user_confirmed.value, DetectionStatus.user_edited_confirmed.value}


def confidence_bucket(value: Optional[float]) -> Optional[int]:
    """Index of the 10% bucket holding ``value``; percentages above 1 are scaled down."""
    if value is None:
        return None
    if value > 1:
        value = value / 100
    if value < 0:
        return None
    return min(int(value * 10), len(constant.CONFIDENCE_BUCKETS) - 1)


def pmi_bucket(hours: Optional[float]) -> Optional[str]:
    if hours is None or hours < 0:
        return None
    index = int(hours // 12)
    if index >= len(constant.PMI_BUCKETS) - 1:
        return constant.PMI_BUCKETS[-1]
    return constant.PMI_BUCKETS[index]


def sampling_density_bucket(image_count: int) -> Optional[str]:
    if image_count < 1 or image_count > 20:
        return None
    return constant.SAMPLING_DENSITY_BUCKETS[(image_count - 1) // 4]


def stage_display_name(stage: Optional[str]) -> str:
    if not stage:
        return "No detections"
    return constant.STAGE_DISPLAY_NAMES.get(stage, "Unknown Stage")


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def _breakdown(statuses: Iterable[VerificationStatus]) -> VerificationBreakdown:
    breakdown = VerificationBreakdown()
    for status in statuses:
        if status == VerificationStatus.verified:
            breakdown.verified += 1
        elif status == VerificationStatus.unverified:
            breakdown.unverified += 1
        elif status == VerificationStatus.in_progress:
            breakdown.in_progress += 1
    return breakdown


@dataclass
class DashboardSnapshot:
    cases: List[Case]
    uploads: Dict[str, List[Upload]] = field(default_factory=dict)
    detections: Dict[str, List[Detection]] = field(default_factory=dict)
    results: Dict[str, AnalysisResult] = field(default_factory=dict)

    def case_detections(self, case_id: str) -> List[Detection]:
        return [d for upload in self.uploads.get(case_id, []) for d in self.detections.get(upload.id, [])]

    @property
    def cases_with_detections(self) -> List[Case]:
        return [case for case in self.cases if self.case_detections(case.id)]

    def completed_pmi(self, case_id: str) -> Optional[float]:
        """PMI of a completed result. Failed recalculations keep stale hours, which are ignored."""
        result = self.results.get(case_id)
        if result is None or result.status != AnalysisStatus.completed.value:
            return None
        return result.pmi_hours

    @property
    def all_detections(self) -> List[Detection]:
        return [d for case in self.cases for d in self.case_detections(case.id)]


class DashboardService:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.cases = CaseRepository(session)
        self.uploads = UploadRepository(session)
        self.detections = DetectionRepository(session)
        self.analysis_results = AnalysisResultRepository(session)
        self.users = UserRepository(session)

    async def _snapshot(self, user_id: str, date_range: Optional[DateRange] = None) -> DashboardSnapshot:
        date_range = date_range or DateRange()
        cases = await self.cases.list_for_user(
            user_id, CaseStatus.active.value, date_range.start_date, date_range.end_date
        )
        snapshot = DashboardSnapshot(cases=cases)
        if not cases:
            return snapshot
        case_ids = [c.id for c in cases]
        uploads = await self.uploads.list_for_cases(case_ids)
        for upload in uploads:
            snapshot.uploads.setdefault(upload.case_id, []).append(upload)
        for detection in await self.detections.list_for_uploads(u.id for u in uploads):
            snapshot.detections.setdefault(detection.upload_id, []).append(detection)
        snapshot.results = {r.case_id: r for r in await self.analysis_results.list_for_cases(case_ids)}
        return snapshot

    async def get_dashboard_metrics(self, user_id: str, date_range: Optional[DateRange] = None) -> DashboardMetrics:
        """Headline figures. Cases and images without detections are left out."""
        snapshot = await self._snapshot(user_id, date_range)
        cases = snapshot.cases_with_detections
        detections = snapshot.all_detections

        case_states = [verification_status(snapshot.case_detections(c.id)) for c in cases]
        images = [
            snapshot.detections[u.id]
            for c in cases
            for u in snapshot.uploads.get(c.id, [])
            if snapshot.detections.get(u.id)
        ]
        pmi_values = [pmi for pmi in (snapshot.completed_pmi(c.id) for c in cases) if pmi is not None]
        confidences = [d.confidence for d in detections if d.confidence is not None]
        corrected = sum(
            1
            for d in detections
            if d.status == DetectionStatus.user_created.value or d.label != d.original_label
        )

        return DashboardMetrics(
            verified=case_states.count(VerificationStatus.verified),
            total_cases=len(cases),
            total_images=len(images),
            verified_images=sum(1 for image in images if all(d.is_verified for d in image)),
            total_detections_count=len(detections),
            verified_detections_count=sum(1 for d in detections if d.is_verified),
            average_pmi=round(_mean(pmi_values), 2),
            average_confidence=_mean(confidences),
            correction_rate=round(corrected / len(detections) * 100, 2) if detections else 0,
        )

    async def get_life_stage_distribution(
        self, user_id: str, date_range: Optional[DateRange] = None
    ) -> List[NamedQuantity]:
        snapshot = await self._snapshot(user_id, date_range)
        counts = {stage: 0 for stage in constant.LIFE_STAGES}
        for detection in snapshot.all_detections:
            if detection.label in counts:
                counts[detection.label] += 1
        return [NamedQuantity(name=stage, quantity=quantity) for stage, quantity in counts.items()]

    async def get_model_performance_metrics(
        self, user_id: str, date_range: Optional[DateRange] = None
    ) -> List[StageConfidence]:
        """Mean model confidence per originally predicted stage, as a percentage."""
        snapshot = await self._snapshot(user_id, date_range)
        per_stage: Dict[str, List[float]] = {stage: [] for stage in constant.LIFE_STAGES}
        for detection in snapshot.all_detections:
            if detection.original_label in per_stage and detection.original_confidence is not None:
                per_stage[detection.original_label].append(detection.original_confidence)
        return [
            StageConfidence(name=stage, confidence=round(_mean(values) * 100, 1))
            for stage, values in per_stage.items()
        ]

    async def get_confidence_score_distribution(
        self, user_id: str, date_range: Optional[DateRange] = None
    ) -> List[NamedQuantity]:
        snapshot = await self._snapshot(user_id, date_range)
        counts = [0] * len(constant.CONFIDENCE_BUCKETS)
        for detection in snapshot.all_detections:
            index = confidence_bucket(detection.confidence)
            if index is not None:
                counts[index] += 1
        return [NamedQuantity(name=name, quantity=n) for name, n in zip(constant.CONFIDENCE_BUCKETS, counts)]

    async def get_pmi_distribution(self, user_id: str, date_range: Optional[DateRange] = None) -> List[NamedQuantity]:
        snapshot = await self._snapshot(user_id, date_range)
        counts = {name: 0 for name in constant.PMI_BUCKETS}
        for case in snapshot.cases:
            bucket = pmi_bucket(snapshot.completed_pmi(case.id))
            if bucket is not None:
                counts[bucket] += 1
        return [NamedQuantity(name=name, quantity=n) for name, n in counts.items()]

    async def get_sampling_density(self, user_id: str, date_range: Optional[DateRange] = None) -> List[NamedQuantity]:
        snapshot = await self._snapshot(user_id, date_range)
        counts = {name: 0 for name in constant.SAMPLING_DENSITY_BUCKETS}
        for case in snapshot.cases:
            bucket = sampling_density_bucket(len(snapshot.uploads.get(case.id, [])))
            if bucket is not None:
                counts[bucket] += 1
        return [NamedQuantity(name=name, quantity=n) for name, n in counts.items()]

    async def get_user_correction_ratio(
        self, user_id: str, date_range: Optional[DateRange] = None
    ) -> CorrectionRatio:
        snapshot = await self._snapshot(user_id, date_range)
        statuses = [d.status for d in snapshot.all_detections]
        return CorrectionRatio(
            verified_prediction=statuses.count(DetectionStatus.user_confirmed.value),
            corrected_prediction=statuses.count(DetectionStatus.user_edited_confirmed.value),
        )

    async def get_verification_status(
        self, user_id: str, date_range: Optional[DateRange] = None
    ) -> VerificationOverview:
        """
        Review progress of cases, images and detections.

        Cases and images without detections are not counted. At detection level,
        ``user_created`` boxes are neither verified nor unverified.
        """
        snapshot = await self._snapshot(user_id, date_range)
        case_states = [verification_status(snapshot.case_detections(c.id)) for c in snapshot.cases]
        image_states = [
            verification_status(snapshot.detections.get(u.id, []))
            for c in snapshot.cases
            for u in snapshot.uploads.get(c.id, [])
        ]
        statuses = [d.status for d in snapshot.all_detections]
        return VerificationOverview(
            case_verification=_breakdown(case_states),
            image_verification=_breakdown(image_states),
            detection_verification=VerificationBreakdown(
                verified=sum(1 for s in statuses if s in _CONFIRMED),
                unverified=statuses.count(DetectionStatus.model_generated.value),
            ),
        )

    async def get_case_data(self, user_id: str, date_range: Optional[DateRange] = None) -> List[CaseDataRow]:
        snapshot = await self._snapshot(user_id, date_range)
        rows = []
        for case in snapshot.cases_with_detections:
            detections = snapshot.case_detections(case.id)
            result = snapshot.results.get(case.id)
            rows.append(
                CaseDataRow(
                    case_id=case.id,
                    case_name=case.case_name,
                    case_date=case.case_date,
                    oldest_stage=stage_display_name(result.oldest_stage_detected if result else None),
                    pmi_hours=result.pmi_hours if result else None,
                    image_count=len(snapshot.uploads.get(case.id, [])),
                    detection_count=len(detections),
                    verification_status=verification_status(detections).value,
                )
            )
        return rows

    async def delete_selected_cases(self, user_id: str, case_ids: List[str], password: str) -> str:
        """Delete several cases at once after re-checking the caller's password."""
        if not case_ids or not password:
            raise InvalidInputError("Invalid input provided.")
        user = await self.users.get_by_id(user_id)
        if user is None:
            raise UnauthorizedError("Authentication required. Please sign in.")
        if not verify_password(password, user.password_hash):
            raise InvalidInputError("Invalid password.")

        owned = await self.cases.list_owned_ids(case_ids, user_id)
        if not owned:
            raise NotFoundError("No cases found or you do not have permission to delete them.")
        try:
            deleted = await self.cases.delete_with_children(owned)
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Failed to delete cases {owned} of user {user_id}: {e}", exc_info=True)
            raise ServiceFailureError("An unexpected error occurred.") from e

        logger.info(f"User {user_id} deleted {deleted} case(s)")
        return "1 case successfully deleted." if deleted == 1 else f"{deleted} cases successfully deleted."
