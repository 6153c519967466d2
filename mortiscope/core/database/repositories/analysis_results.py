"""
Analysis result repository implementation.

The analysis row of a case is keyed by ``case_id``; its presence doubles as the
"analysis not cancelled" marker for the background job.
"""

from __future__ import annotations

from typing import Any, Iterable, List, Optional

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from mortiscope.core.models.domain.enums import AnalysisStatus

from ..base import utc_now
from ..entities.analysis_results import AnalysisResult
from .base import SQLModelRepository


class AnalysisResultRepository(SQLModelRepository[AnalysisResult]):
    """Repository for analysis result data access operations using SQLModel."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, AnalysisResult)

    async def upsert_pending(self, case_id: str, *, commit: bool = True) -> AnalysisResult:
        """Create the result row of a case, or reset an existing one to ``pending``."""
        result = await self.get_by_id(case_id)
        if result is None:
            result = AnalysisResult(case_id=case_id, status=AnalysisStatus.pending.value)
        else:
            result.status = AnalysisStatus.pending.value
            result.explanation = None
            result.updated_at = utc_now()
        self.session.add(result)
        if commit:
            await self.session.commit()
            await self.session.refresh(result)
        else:
            await self.session.flush()
        return result

    async def set_fields(self, case_id: str, **values: Any) -> int:
        """Update columns of a case's result row. Returns 0 when the row is gone."""
        stmt = (
            update(AnalysisResult)
            .where(AnalysisResult.case_id == case_id)
            .values(**values, updated_at=utc_now())
        )
        result = await self.session.execute(stmt)
        await self.session.commit()
        return result.rowcount or 0

    async def list_for_cases(self, case_ids: Iterable[str]) -> List[AnalysisResult]:
        ids = list(case_ids)
        if not ids:
            return []
        stmt = select(AnalysisResult).where(AnalysisResult.case_id.in_(ids))  # type: ignore[attr-defined]
        return await self._all(stmt)

    async def exists(self, case_id: str) -> bool:
        return await self.get_by_id(case_id) is not None

    async def get_status(self, case_id: str) -> Optional[str]:
        stmt = select(AnalysisResult.status).where(AnalysisResult.case_id == case_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()
