"""
Export repository implementation.

Data access for export requests and their generation status.
"""

from __future__ import annotations

from typing import Any, Iterable, List, Optional

from sqlalchemy import delete, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from mortiscope.core.models.domain.enums import ExportStatus

from ..base import utc_now
from ..entities.exports import Export
from .base import SQLModelRepository


class ExportRepository(SQLModelRepository[Export]):
    """Repository for export data access operations using SQLModel."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Export)

    async def get_owned(self, export_id: str, user_id: str) -> Optional[Export]:
        stmt = select(Export).where((Export.id == export_id) & (Export.user_id == user_id))
        return await self._first(stmt)

    async def list_recent(self, user_id: str, limit: int = 10) -> List[Export]:
        """Non-failed exports of a user, newest first."""
        stmt = (
            select(Export)
            .where((Export.user_id == user_id) & (Export.status != ExportStatus.failed.value))
            .order_by(Export.created_at.desc())  # type: ignore[attr-defined]
            .limit(limit)
        )
        return await self._all(stmt)

    async def set_fields(self, export_id: str, **values: Any) -> int:
        stmt = update(Export).where(Export.id == export_id).values(**values, updated_at=utc_now())
        result = await self.session.execute(stmt)
        await self.session.commit()
        return result.rowcount or 0

    async def delete_for_uploads(self, upload_ids: Iterable[str], *, commit: bool = False) -> int:
        ids = list(upload_ids)
        if not ids:
            return 0
        result = await self.session.execute(delete(Export).where(Export.upload_id.in_(ids)))  # type: ignore[union-attr]
        if commit:
            await self.session.commit()
        return result.rowcount or 0
