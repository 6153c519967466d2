"""
Case repository implementation.

Data access for cases and their audit trail. Every lookup that serves a user
request is scoped by ``user_id`` so that ownership is enforced in the query
itself.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import delete, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from mortiscope.core.models.domain.enums import CaseStatus

from ..base import utc_now
from ..entities.analysis_results import AnalysisResult
from ..entities.cases import Case, CaseAuditLog
from ..entities.detections import Detection
from ..entities.exports import Export
from ..entities.uploads import Upload
from ..entities.users import User
from .base import QueryBuilder, SQLModelRepository


class CaseRepository(SQLModelRepository[Case]):
    """Repository for case data access operations using SQLModel."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Case)

    async def get_owned(self, case_id: str, user_id: str, status: Optional[str] = None) -> Optional[Case]:
        """Get a case only if ``user_id`` owns it (and it has ``status`` when given)."""
        stmt = select(Case).where((Case.id == case_id) & (Case.user_id == user_id))
        if status is not None:
            stmt = stmt.where(Case.status == status)
        return await self._first(stmt)

    async def get_latest_draft(self, user_id: str) -> Optional[Case]:
        stmt = (
            select(Case)
            .where((Case.user_id == user_id) & (Case.status == CaseStatus.draft.value))
            .order_by(Case.created_at.desc())  # type: ignore[attr-defined]
        )
        return await self._first(stmt)

    async def list_for_user(
        self,
        user_id: str,
        status: Optional[str] = CaseStatus.active.value,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> List[Case]:
        """Cases of a user, newest first, optionally filtered by status and case date."""
        stmt = select(Case).where(Case.user_id == user_id)
        if status is not None:
            stmt = stmt.where(Case.status == status)
        stmt = QueryBuilder.apply_date_range(stmt, Case.case_date, start_date, end_date)
        stmt = stmt.order_by(Case.created_at.desc())  # type: ignore[attr-defined]
        return await self._all(stmt)

    async def list_owned_ids(self, case_ids: Sequence[str], user_id: str) -> List[str]:
        stmt = select(Case.id).where(Case.id.in_(list(case_ids)) & (Case.user_id == user_id))  # type: ignore[attr-defined]
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def update_owned(self, case_id: str, user_id: str, values: dict[str, Any], *, commit: bool = True) -> int:
        """Conditional update scoped by owner. Returns the number of rows affected."""
        stmt = (
            update(Case)
            .where((Case.id == case_id) & (Case.user_id == user_id))
            .values(**values, updated_at=utc_now())
        )
        result = await self.session.execute(stmt)
        if commit:
            await self.session.commit()
        return result.rowcount or 0

    async def delete_with_children(self, case_ids: Iterable[str], *, commit: bool = True) -> int:
        """Delete cases together with their uploads, detections, results, exports and audit log."""
        ids = list(case_ids)
        if not ids:
            return 0
        upload_ids = select(Upload.id).where(Upload.case_id.in_(ids))  # type: ignore[union-attr]
        await self.session.execute(delete(Detection).where(Detection.upload_id.in_(upload_ids)))  # type: ignore[attr-defined]
        await self.session.execute(delete(Export).where(Export.case_id.in_(ids)))  # type: ignore[union-attr]
        await self.session.execute(delete(Export).where(Export.upload_id.in_(upload_ids)))  # type: ignore[union-attr]
        await self.session.execute(delete(Upload).where(Upload.case_id.in_(ids)))  # type: ignore[union-attr]
        await self.session.execute(delete(AnalysisResult).where(AnalysisResult.case_id.in_(ids)))  # type: ignore[attr-defined]
        await self.session.execute(delete(CaseAuditLog).where(CaseAuditLog.case_id.in_(ids)))  # type: ignore[attr-defined]
        result = await self.session.execute(delete(Case).where(Case.id.in_(ids)))  # type: ignore[attr-defined]
        if commit:
            await self.session.commit()
        return result.rowcount or 0


class CaseAuditLogRepository(SQLModelRepository[CaseAuditLog]):
    """Repository for the per-field change history of active cases."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, CaseAuditLog)

    def add_many(self, entries: Iterable[CaseAuditLog]) -> None:
        """Stage audit rows on the session; the caller commits."""
        self.session.add_all(list(entries))

    async def list_for_case(self, case_id: str) -> List[Tuple[CaseAuditLog, Optional[User]]]:
        """Audit rows of a case, newest first, each paired with the user who made the change."""
        stmt = (
            select(CaseAuditLog, User)
            .join(User, User.id == CaseAuditLog.user_id, isouter=True)
            .where(CaseAuditLog.case_id == case_id)
            .order_by(CaseAuditLog.created_at.desc())  # type: ignore[attr-defined]
        )
        result = await self.session.execute(stmt)
        return [(row[0], row[1]) for row in result.all()]
