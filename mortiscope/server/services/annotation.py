"""
Annotation service.

Loads an image into the detection editor and persists the editor's changeset.
After a save, the case is flagged for PMI recalculation when the oldest
immature stage present in the case no longer matches the one the last
calculation used.
"""

from __future__ import annotations

from typing import Iterable, List, Optional

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from mortiscope.core.database.entities.cases import Case
from mortiscope.core.database.entities.detections import Detection
from mortiscope.core.database.repositories import (
    AnalysisResultRepository,
    CaseRepository,
    DetectionRepository,
    UploadRepository,
)
from mortiscope.core.errors import NotFoundError, ServiceFailureError
from mortiscope.core.logging_config import get_logger
from mortiscope.core.models.domain.enums import CaseStatus, DetectionStatus
from mortiscope.core.models.io.annotation import DetectionChanges, DetectionRead, EditorImageRead, ModifiedDetection
from mortiscope.core.storage import S3Storage
from mortiscope.server.core import constant

from .images import get_presigned_image_url

logger = get_logger(__name__)


def find_oldest_stage(labels: Iterable[str]) -> Optional[str]:
    """Most developed immature stage among ``labels``; adults and unknown labels are ignored."""
    oldest: Optional[str] = None
    for label in labels:
        rank = constant.STAGE_HIERARCHY.get(label)
        if rank is None:
            continue
        if oldest is None or rank > constant.STAGE_HIERARCHY[oldest]:
            oldest = label
    return oldest


def resolve_modified_status(incoming: ModifiedDetection, stored: Optional[Detection]) -> DetectionStatus:
    """
    Final status of a modified detection.

    A detection counts as edited when its label or any box coordinate differs
    from the stored row; a confirmed edit becomes ``user_edited_confirmed``.
    """
    edited = stored is not None and (
        incoming.label.value != stored.label
        or incoming.x_min != stored.x_min
        or incoming.y_min != stored.y_min
        or incoming.x_max != stored.x_max
        or incoming.y_max != stored.y_max
    )
    confirmed = incoming.status == DetectionStatus.user_confirmed
    if edited:
        return DetectionStatus.user_edited_confirmed if confirmed else DetectionStatus.user_edited
    return DetectionStatus.user_confirmed if confirmed else DetectionStatus.user_edited


class AnnotationService:
    def __init__(self, session: AsyncSession, storage: Optional[S3Storage] = None) -> None:
        self.session = session
        self.storage = storage
        self.cases = CaseRepository(session)
        self.uploads = UploadRepository(session)
        self.detections = DetectionRepository(session)
        self.analysis_results = AnalysisResultRepository(session)

    async def get_editor_image(self, user_id: str, image_id: str, case_id: str) -> Optional[EditorImageRead]:
        case = await self.cases.get_owned(case_id, user_id)
        if case is None or case.status == CaseStatus.draft.value:
            return None
        upload = await self.uploads.get_owned(image_id, user_id)
        if upload is None or upload.case_id != case_id:
            return None
        detections = await self.detections.list_for_upload(upload.id)
        image = EditorImageRead.model_validate(upload)
        if self.storage is not None:
            image.presigned_url = await get_presigned_image_url(self.storage, upload.key)
        image.detections = [DetectionRead.model_validate(d) for d in detections]
        return image

    async def save_detections(
        self, user_id: str, image_id: str, case_id: str, changes: DetectionChanges
    ) -> List[Detection]:
        """Apply a changeset to the detections of one image in a single transaction."""
        case = await self.cases.get_owned(case_id, user_id)
        if case is None or case.status == CaseStatus.draft.value:
            raise NotFoundError("Case not found or unauthorized.")
        upload = await self.uploads.get_by_id(image_id)
        if upload is None or upload.case_id != case_id:
            raise NotFoundError("Image not found.")

        try:
            await self.detections.soft_delete(image_id, changes.deleted, user_id)

            for added in changes.added:
                self.session.add(
                    Detection(
                        upload_id=image_id,
                        label=added.label.value,
                        original_label=added.label.value,
                        confidence=added.confidence,
                        original_confidence=added.confidence,
                        x_min=added.x_min,
                        y_min=added.y_min,
                        x_max=added.x_max,
                        y_max=added.y_max,
                        status=added.status.value,
                        created_by_id=user_id,
                    )
                )

            if changes.modified:
                stored = {d.id: d for d in await self.detections.get_many(image_id, [m.id for m in changes.modified])}
                for modified in changes.modified:
                    row = stored.get(modified.id)
                    if row is None:
                        continue
                    status = resolve_modified_status(modified, row)
                    row.label = modified.label.value
                    row.confidence = modified.confidence
                    row.x_min, row.y_min = modified.x_min, modified.y_min
                    row.x_max, row.y_max = modified.x_max, modified.y_max
                    row.status = status.value
                    row.last_modified_by_id = user_id
                    self.session.add(row)

            await self._flag_recalculation(case_id)
            await self.session.commit()
            return await self.detections.list_for_upload(image_id)
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Failed to save detections of image {image_id}: {e}", exc_info=True)
            raise ServiceFailureError("Failed to save detections.") from e

    async def _flag_recalculation(self, case_id: str) -> None:
        """Flag the case when its oldest stage differs from the one the last PMI used, or it has no result."""
        detections = await self.detections.list_for_case(case_id)
        oldest = find_oldest_stage(d.label for d in detections)
        result = await self.analysis_results.get_by_id(case_id)
        used = result.stage_used_for_calculation if result is not None else None
        if result is None or oldest != used:
            await self.session.execute(update(Case).where(Case.id == case_id).values(recalculation_needed=True))
            logger.info(f"Case {case_id} flagged for recalculation: oldest stage {used} -> {oldest}")
