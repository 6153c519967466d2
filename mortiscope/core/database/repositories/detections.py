"""
Detection repository implementation.

Every read filters out soft-deleted rows (``deleted_at IS NULL``). Bulk writes do
not commit so the annotation save can apply deletions, insertions and edits in a
single transaction.
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence

from sqlalchemy import delete, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..base import utc_now
from ..entities.detections import Detection
from ..entities.uploads import Upload
from .base import SQLModelRepository


class DetectionRepository(SQLModelRepository[Detection]):
    """Repository for detection data access operations using SQLModel."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Detection)

    async def list_for_upload(self, upload_id: str) -> List[Detection]:
        stmt = (
            select(Detection)
            .where((Detection.upload_id == upload_id) & (Detection.deleted_at.is_(None)))  # type: ignore[union-attr]
            .order_by(Detection.created_at.asc())  # type: ignore[attr-defined]
        )
        return await self._all(stmt)

    async def list_for_uploads(self, upload_ids: Iterable[str]) -> List[Detection]:
        ids = list(upload_ids)
        if not ids:
            return []
        stmt = (
            select(Detection)
            .where(Detection.upload_id.in_(ids) & (Detection.deleted_at.is_(None)))  # type: ignore[attr-defined,union-attr]
            .order_by(Detection.created_at.asc())  # type: ignore[attr-defined]
        )
        return await self._all(stmt)

    async def list_for_case(self, case_id: str) -> List[Detection]:
        stmt = (
            select(Detection)
            .join(Upload, Upload.id == Detection.upload_id)
            .where((Upload.case_id == case_id) & (Detection.deleted_at.is_(None)))  # type: ignore[union-attr]
        )
        return await self._all(stmt)

    async def get_many(self, upload_id: str, detection_ids: Sequence[str]) -> List[Detection]:
        """Live detections of an upload with the given ids."""
        if not detection_ids:
            return []
        stmt = select(Detection).where(
            (Detection.upload_id == upload_id)
            & Detection.id.in_(list(detection_ids))  # type: ignore[attr-defined]
            & (Detection.deleted_at.is_(None))  # type: ignore[union-attr]
        )
        return await self._all(stmt)

    async def soft_delete(self, upload_id: str, detection_ids: Sequence[str], user_id: str) -> int:
        """Mark live detections of an upload as deleted. Does not commit."""
        if not detection_ids:
            return 0
        stmt = (
            update(Detection)
            .where(
                (Detection.upload_id == upload_id)
                & Detection.id.in_(list(detection_ids))  # type: ignore[attr-defined]
                & (Detection.deleted_at.is_(None))  # type: ignore[union-attr]
            )
            .values(deleted_at=utc_now(), last_modified_by_id=user_id, updated_at=utc_now())
        )
        result = await self.session.execute(stmt)
        return result.rowcount or 0

    async def delete_for_uploads(self, upload_ids: Iterable[str], *, commit: bool = False) -> int:
        """Hard-delete every detection of the given uploads (analysis cancellation, image removal)."""
        ids = list(upload_ids)
        if not ids:
            return 0
        result = await self.session.execute(delete(Detection).where(Detection.upload_id.in_(ids)))  # type: ignore[attr-defined]
        if commit:
            await self.session.commit()
        return result.rowcount or 0

    async def get_live(self, detection_id: str) -> Optional[Detection]:
        stmt = select(Detection).where((Detection.id == detection_id) & (Detection.deleted_at.is_(None)))  # type: ignore[union-attr]
        return await self._first(stmt)
