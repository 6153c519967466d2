"""Unit tests for the case and case audit log repositories."""

from __future__ import annotations

from datetime import datetime

import pytest
from sqlalchemy.exc import IntegrityError
from sqlmodel import select

from mortiscope.core.database.entities.analysis_results import AnalysisResult
from mortiscope.core.database.entities.cases import Case, CaseAuditLog
from mortiscope.core.database.entities.detections import Detection
from mortiscope.core.database.entities.exports import Export
from mortiscope.core.database.entities.uploads import Upload
from mortiscope.core.database.repositories import CaseAuditLogRepository, CaseRepository


class TestCaseRepository:
    """Tests for CaseRepository operations."""

    @pytest.fixture
    def repository(self, in_memory_session):
        return CaseRepository(in_memory_session)

    async def _case(self, repository, user, sample_case_data, **overrides) -> Case:
        return await repository.create(Case(user_id=user.id, **{**sample_case_data, **overrides}))

    async def test_get_owned(self, repository, case, user):
        assert (await repository.get_owned(case.id, user.id)).id == case.id
        assert await repository.get_owned(case.id, "someone-else") is None
        assert await repository.get_owned(case.id, user.id, status="draft") is None

    async def test_get_latest_draft(self, repository, user, sample_case_data):
        await self._case(repository, user, sample_case_data, case_name="First", status="draft")
        latest = await self._case(repository, user, sample_case_data, case_name="Second", status="draft")

        assert (await repository.get_latest_draft(user.id)).id == latest.id

    async def test_list_for_user_filters(self, repository, user, case, sample_case_data):
        await self._case(repository, user, sample_case_data, case_name="Draft", status="draft")
        march = await self._case(
            repository, user, sample_case_data, case_name="March", case_date=datetime(2025, 3, 1, 12, 0)
        )

        active = await repository.list_for_user(user.id)
        everything = await repository.list_for_user(user.id, status=None)
        in_march = await repository.list_for_user(user.id, start_date=datetime(2025, 3, 1))
        until_feb = await repository.list_for_user(user.id, end_date=datetime(2025, 2, 28))

        assert [c.id for c in active] == [march.id, case.id]
        assert len(everything) == 3
        assert [c.id for c in in_march] == [march.id]
        assert [c.id for c in until_feb] == [case.id]

    async def test_case_names_are_unique_per_user(self, repository, user, case, sample_case_data):
        with pytest.raises(IntegrityError):
            await self._case(repository, user, sample_case_data)

    async def test_update_owned(self, repository, in_memory_session, case, user):
        assert await repository.update_owned(case.id, "someone-else", {"notes": "x"}) == 0
        assert await repository.update_owned(case.id, user.id, {"notes": "Shaded area."}) == 1

        refreshed = await in_memory_session.get(Case, case.id, populate_existing=True)
        assert refreshed.notes == "Shaded area."

    async def test_list_owned_ids(self, repository, case, user):
        assert await repository.list_owned_ids([case.id, "missing"], user.id) == [case.id]
        assert await repository.list_owned_ids([case.id], "someone-else") == []

    async def test_delete_with_children(self, repository, in_memory_session, case, upload, user):
        in_memory_session.add_all(
            [
                Detection(upload_id=upload.id, label="pupa", original_label="pupa", x_min=0, y_min=0, x_max=1, y_max=1),
                AnalysisResult(case_id=case.id, status="completed"),
                Export(user_id=user.id, case_id=case.id, format="pdf"),
                CaseAuditLog(case_id=case.id, user_id=user.id, batch_id="b1", field="notes"),
            ]
        )
        await in_memory_session.commit()

        assert await repository.delete_with_children([case.id]) == 1

        for model in (Case, Upload, Detection, AnalysisResult, Export, CaseAuditLog):
            rows = (await in_memory_session.execute(select(model))).scalars().all()
            assert rows == [], model.__name__

    async def test_delete_nothing(self, repository):
        assert await repository.delete_with_children([]) == 0


class TestCaseAuditLogRepository:
    """Tests for CaseAuditLogRepository operations."""

    async def test_list_for_case_pairs_user(self, in_memory_session, case, user):
        repository = CaseAuditLogRepository(in_memory_session)
        repository.add_many(
            [
                CaseAuditLog(
                    case_id=case.id,
                    user_id=user.id,
                    batch_id="b1",
                    field="temperature_celsius",
                    old_value="27.5",
                    new_value="29.0",
                    created_at=datetime(2025, 3, 1, 8, 0),
                ),
                CaseAuditLog(
                    case_id=case.id,
                    user_id=user.id,
                    batch_id="b2",
                    field="notes",
                    new_value="Rain overnight.",
                    created_at=datetime(2025, 3, 2, 8, 0),
                ),
            ]
        )
        await in_memory_session.commit()

        entries = await repository.list_for_case(case.id)

        assert [log.batch_id for log, _ in entries] == ["b2", "b1"]
        assert all(author.name == "Maria Santos" for _, author in entries)
