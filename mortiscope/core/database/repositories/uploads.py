"""
Upload repository implementation.

Data access for uploaded images, including the ownership and per-case name
lookups used by the rename and delete workflows.
"""

from __future__ import annotations

from typing import Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..entities.uploads import Upload
from .base import SQLModelRepository


class UploadRepository(SQLModelRepository[Upload]):
    """Repository for upload data access operations using SQLModel."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Upload)

    async def get_by_key(self, key: str) -> Optional[Upload]:
        return await self._first(select(Upload).where(Upload.key == key))

    async def get_owned(self, upload_id: str, user_id: str) -> Optional[Upload]:
        stmt = select(Upload).where((Upload.id == upload_id) & (Upload.user_id == user_id))
        return await self._first(stmt)

    async def list_for_case(self, case_id: str) -> List[Upload]:
        """Uploads of a case, newest first."""
        stmt = (
            select(Upload)
            .where(Upload.case_id == case_id)
            .order_by(Upload.created_at.desc())  # type: ignore[attr-defined]
        )
        return await self._all(stmt)

    async def list_for_cases(self, case_ids: Iterable[str]) -> List[Upload]:
        ids = list(case_ids)
        if not ids:
            return []
        stmt = select(Upload).where(Upload.case_id.in_(ids)).order_by(Upload.created_at.asc())  # type: ignore[union-attr,attr-defined]
        return await self._all(stmt)

    async def count_for_case(self, case_id: str) -> int:
        stmt = select(func.count()).select_from(Upload).where(Upload.case_id == case_id)
        result = await self.session.execute(stmt)
        return int(result.scalar_one())

    async def name_exists_in_case(self, case_id: str, name: str, exclude_id: Optional[str] = None) -> bool:
        """Whether another upload of the case already uses ``name``."""
        stmt = select(Upload.id).where((Upload.case_id == case_id) & (Upload.name == name))
        if exclude_id is not None:
            stmt = stmt.where(Upload.id != exclude_id)
        result = await self.session.execute(stmt.limit(1))
        return result.first() is not None
