"""
Case service: creating and editing cases.

Edits of an active (already submitted) case are audited field by field, and a
changed temperature flags the case for PMI recalculation.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from mortiscope.core.database.base import new_id
from mortiscope.core.database.entities.cases import Case, CaseAuditLog
from mortiscope.core.database.repositories import CaseAuditLogRepository, CaseRepository
from mortiscope.core.errors import ConflictError, NotFoundError, ServiceFailureError
from mortiscope.core.logging_config import get_logger
from mortiscope.core.models.domain.enums import CaseStatus
from mortiscope.core.models.io.cases import CaseDetailsInput

logger = get_logger(__name__)

DUPLICATE_CASE_NAME = "A case with this name already exists."


def case_values(details: CaseDetailsInput) -> Dict[str, Any]:
    """Column values of a case from the submitted form."""
    return {
        "case_name": details.case_name,
        "case_date": details.case_date,
        "temperature_celsius": details.temperature_celsius,
        "location_region": details.location.region.name,
        "location_province": details.location.province.name,
        "location_city": details.location.city.name,
        "location_barangay": details.location.barangay.name,
        "notes": details.notes,
    }


def _audit_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def diff_case(case: Case, values: Dict[str, Any]) -> Dict[str, tuple]:
    """Fields whose value changes, mapped to ``(old, new)``."""
    changes = {}
    for field, new_value in values.items():
        old_value = getattr(case, field)
        if old_value != new_value:
            changes[field] = (old_value, new_value)
    return changes


class CaseService:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.cases = CaseRepository(session)
        self.audit_logs = CaseAuditLogRepository(session)

    async def create_case(self, user_id: str, details: CaseDetailsInput) -> str:
        case = Case(user_id=user_id, status=CaseStatus.draft.value, **case_values(details))
        try:
            await self.cases.create(case)
        except IntegrityError as e:
            await self.session.rollback()
            raise ConflictError(DUPLICATE_CASE_NAME) from e
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Failed to create case for user {user_id}: {e}", exc_info=True)
            raise ServiceFailureError("An internal server error occurred while creating the case.") from e
        logger.info(f"Case {case.id} created by user {user_id}")
        return case.id

    async def update_case(self, user_id: str, case_id: str, details: CaseDetailsInput) -> None:
        case = await self.cases.get_owned(case_id, user_id)
        if case is None:
            raise NotFoundError("Case not found or access denied.")

        values = case_values(details)
        audit_rows: List[CaseAuditLog] = []
        if case.status == CaseStatus.active.value:
            changes = diff_case(case, values)
            batch_id = new_id()
            audit_rows = [
                CaseAuditLog(
                    case_id=case_id,
                    user_id=user_id,
                    batch_id=batch_id,
                    field=field,
                    old_value=_audit_text(old),
                    new_value=_audit_text(new),
                )
                for field, (old, new) in changes.items()
            ]
            if "temperature_celsius" in changes:
                values["recalculation_needed"] = True

        try:
            updated = await self.cases.update_owned(case_id, user_id, values, commit=False)
            if updated == 0:
                await self.session.rollback()
                raise NotFoundError("Case not found or you do not have permission to edit it.")
            self.audit_logs.add_many(audit_rows)
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            raise ConflictError(DUPLICATE_CASE_NAME) from e
        except NotFoundError:
            raise
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Failed to update case {case_id}: {e}", exc_info=True)
            raise ServiceFailureError("An internal server error occurred while updating the case.") from e
        logger.info(f"Case {case_id} updated by user {user_id} ({len(audit_rows)} audited change(s))")
