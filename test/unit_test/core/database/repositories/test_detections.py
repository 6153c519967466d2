"""Unit tests for detection repository."""

from __future__ import annotations

import pytest

from mortiscope.core.database.entities.detections import Detection
from mortiscope.core.database.repositories import DetectionRepository


class TestDetectionRepository:
    """Tests for DetectionRepository operations."""

    @pytest.fixture
    def repository(self, in_memory_session):
        return DetectionRepository(in_memory_session)

    @pytest.fixture
    async def detections(self, repository, upload):
        created = []
        for label in ("instar_2", "instar_3", "pupa"):
            created.append(
                await repository.create(
                    Detection(
                        upload_id=upload.id,
                        label=label,
                        original_label=label,
                        confidence=0.8,
                        original_confidence=0.8,
                        x_min=5,
                        y_min=5,
                        x_max=50,
                        y_max=50,
                    )
                )
            )
        return created

    async def test_soft_delete_hides_detections(self, repository, in_memory_session, upload, case, user, detections):
        pupa = detections[2]

        assert await repository.soft_delete(upload.id, [pupa.id], user.id) == 1
        await in_memory_session.commit()

        assert sorted(d.label for d in await repository.list_for_upload(upload.id)) == ["instar_2", "instar_3"]
        assert len(await repository.list_for_case(case.id)) == 2
        assert len(await repository.list_for_uploads([upload.id])) == 2
        assert await repository.get_live(pupa.id) is None

        stored = await in_memory_session.get(Detection, pupa.id, populate_existing=True)
        assert stored.deleted_at is not None
        assert stored.last_modified_by_id == user.id

    async def test_soft_delete_is_scoped_to_upload(self, repository, detections, user):
        assert await repository.soft_delete("other-upload", [detections[0].id], user.id) == 0
        assert await repository.soft_delete("other-upload", [], user.id) == 0

    async def test_get_many(self, repository, upload, detections):
        found = await repository.get_many(upload.id, [detections[0].id, detections[1].id, "missing"])

        assert {d.id for d in found} == {detections[0].id, detections[1].id}
        assert await repository.get_many(upload.id, []) == []

    async def test_delete_for_uploads(self, repository, upload, detections):
        assert await repository.delete_for_uploads([upload.id], commit=True) == 3
        assert await repository.list_for_upload(upload.id) == []
        assert await repository.delete_for_uploads([]) == 0

    async def test_list_for_no_uploads(self, repository):
        assert await repository.list_for_uploads([]) == []
