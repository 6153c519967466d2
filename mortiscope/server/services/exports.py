"""
Export service: requesting exports and following their progress.
"""

from __future__ import annotations

import posixpath
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from mortiscope.core.database.entities.exports import Export
from mortiscope.core.database.repositories import CaseRepository, ExportRepository, UploadRepository
from mortiscope.core.errors import NotFoundError
from mortiscope.core.logging_config import get_logger
from mortiscope.core.models.domain.enums import ExportFormat, ExportStatus, SecurityLevel
from mortiscope.core.models.io.exports import ExportStatusResponse, ImageExportRequest, ResultsExportRequest
from mortiscope.core.storage import S3Storage
from mortiscope.server.core import constant

from .export_jobs import ExportOptions
from .jobs import JobQueue

logger = get_logger(__name__)


class ExportService:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.cases = CaseRepository(session)
        self.uploads = UploadRepository(session)
        self.exports = ExportRepository(session)

    async def request_results_export(self, user_id: str, payload: ResultsExportRequest, jobs: JobQueue) -> str:
        case = await self.cases.get_owned(payload.case_id, user_id)
        if case is None:
            raise NotFoundError("Case not found or permission denied.")

        options = ExportOptions(
            format=payload.format,
            resolution=payload.resolution,
            page_size=payload.page_size,
            security_level=payload.security_level,
            pdf_password=payload.password,
            permissions=payload.permissions,
            archive_password=payload.archive_password,
        )
        protected = bool(options.archive_password) or (
            payload.format == ExportFormat.pdf and options.security_level != SecurityLevel.standard
        )
        export = await self.exports.create(
            Export(user_id=user_id, case_id=case.id, format=payload.format.value, password_protected=protected)
        )
        jobs.enqueue_export(export.id, options)
        logger.info(f"Export {export.id} ({payload.format.value}) requested for case {case.id}")
        return export.id

    async def request_image_export(self, user_id: str, payload: ImageExportRequest, jobs: JobQueue) -> str:
        upload = await self.uploads.get_owned(payload.upload_id, user_id)
        if upload is None:
            raise NotFoundError("Image not found or permission denied.")

        options = ExportOptions(
            format=ExportFormat(payload.format),
            resolution=payload.resolution,
            archive_password=payload.archive_password,
        )
        export = await self.exports.create(
            Export(
                user_id=user_id,
                case_id=upload.case_id,
                upload_id=upload.id,
                format=payload.format,
                password_protected=bool(options.archive_password),
            )
        )
        jobs.enqueue_export(export.id, options)
        logger.info(f"Export {export.id} ({payload.format}) requested for image {upload.id}")
        return export.id

    async def get_export_status(
        self, user_id: str, export_id: str, storage: S3Storage
    ) -> Optional[ExportStatusResponse]:
        export = await self.exports.get_owned(export_id, user_id)
        if export is None:
            return None
        if export.status == ExportStatus.completed.value and export.s3_key:
            download_name = f"mortiscope-{export.format}-{export.id[:8]}{posixpath.splitext(export.s3_key)[1]}"
            url = await run_in_threadpool(
                storage.presigned_get, export.s3_key, constant.EXPORT_DOWNLOAD_EXPIRY_SECONDS, download_name
            )
            return ExportStatusResponse(status=export.status, url=url)
        return ExportStatusResponse(status=export.status, failure_reason=export.failure_reason)

    async def get_recent_exports(self, user_id: str, limit: int = constant.RECENT_EXPORTS_LIMIT) -> List[Export]:
        return await self.exports.list_recent(user_id, limit)
