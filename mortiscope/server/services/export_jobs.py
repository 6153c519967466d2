"""
Background export generation.

Export options travel with the job rather than being stored: passwords never
reach the database.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional

from starlette.concurrency import run_in_threadpool

from mortiscope.core.database import async_session_maker
from mortiscope.core.database.entities.exports import Export
from mortiscope.core.database.entities.uploads import Upload
from mortiscope.core.database.repositories import (
    AnalysisResultRepository,
    CaseRepository,
    DetectionRepository,
    ExportRepository,
    UploadRepository,
)
from mortiscope.core.logging_config import get_logger
from mortiscope.core.models.domain.enums import ExportFormat, ExportStatus, PageSize, SecurityLevel
from mortiscope.core.models.io.exports import PdfPermissions
from mortiscope.core.monitoring import log_error
from mortiscope.core.storage import S3Storage

from .export_renderers import ExportBundle, render_labelled_images, render_pdf, render_raw_data

logger = get_logger(__name__)

CONTENT_TYPES = {".zip": "application/zip", ".pdf": "application/pdf"}


@dataclass(frozen=True)
class ExportOptions:
    format: ExportFormat
    resolution: Optional[str] = None
    page_size: PageSize = PageSize.a4
    security_level: SecurityLevel = SecurityLevel.standard
    pdf_password: Optional[str] = None
    permissions: Optional[PdfPermissions] = None
    archive_password: Optional[str] = None

    @property
    def extension(self) -> str:
        return ".pdf" if self.format == ExportFormat.pdf else ".zip"


def export_key(export: Export, extension: str) -> str:
    return f"exports/{export.user_id}/{export.id}{extension}"


async def _load_bundle(session, export: Export, with_images: bool, storage: S3Storage) -> ExportBundle:
    uploads_repo = UploadRepository(session)
    uploads: List[Upload]
    case_id = export.case_id
    if export.upload_id is not None:
        upload = await uploads_repo.get_by_id(export.upload_id)
        if upload is None:
            raise LookupError("Image no longer exists")
        uploads = [upload]
        case_id = case_id or upload.case_id
    else:
        uploads = await uploads_repo.list_for_case(case_id) if case_id else []

    case = await CaseRepository(session).get_by_id(case_id) if case_id else None
    analysis = await AnalysisResultRepository(session).get_by_id(case_id) if case_id else None

    detections: Dict[str, list] = {}
    for d in await DetectionRepository(session).list_for_uploads(u.id for u in uploads):
        detections.setdefault(d.upload_id, []).append(d)

    images: Dict[str, bytes] = {}
    if with_images:
        for upload in uploads:
            images[upload.id] = await run_in_threadpool(storage.get_bytes, upload.key)
    return ExportBundle(uploads=uploads, detections=detections, case=case, analysis=analysis, images=images)


def _render(bundle: ExportBundle, options: ExportOptions) -> bytes:
    if options.format == ExportFormat.raw_data:
        return render_raw_data(bundle, options.archive_password)
    if options.format == ExportFormat.labelled_images:
        return render_labelled_images(bundle, options.resolution or "1920x1080", options.archive_password)
    return render_pdf(bundle, options.page_size, options.security_level, options.pdf_password, options.permissions)


async def run_export_job(export_id: str, options: ExportOptions, storage: Optional[S3Storage] = None) -> None:
    """Generate an export, upload it and record where it lives."""
    if storage is None:
        from .deps import get_storage

        storage = get_storage()

    async with async_session_maker() as session:
        exports = ExportRepository(session)
        export = await exports.get_by_id(export_id)
        if export is None:
            logger.warning(f"Export {export_id} vanished before generation")
            return
        failure_prefix = "Image export failed" if export.upload_id else "Export failed"
        await exports.set_fields(export_id, status=ExportStatus.processing.value)

        try:
            bundle = await _load_bundle(
                session, export, options.format == ExportFormat.labelled_images, storage
            )
            artifact = await run_in_threadpool(_render, bundle, options)
            key = export_key(export, options.extension)
            await run_in_threadpool(
                storage.put_bytes,
                key,
                artifact,
                CONTENT_TYPES[options.extension],
                {"userid": export.user_id},
            )
        except Exception as e:
            await session.rollback()
            await exports.set_fields(
                export_id, status=ExportStatus.failed.value, failure_reason=f"{failure_prefix}: {e}"
            )
            logger.error(f"Export {export_id} failed: {e}", exc_info=True)
            log_error("ExportFailed", str(e), {"export_id": export_id})
            return

        await exports.set_fields(export_id, status=ExportStatus.completed.value, s3_key=key)
        logger.info(f"Export {export_id} completed: {key} ({len(artifact)} bytes)")
