"""
Unit tests for the export endpoints.
"""

import pytest
from httpx import AsyncClient

from mortiscope.core.database.entities.exports import Export
from mortiscope.core.models.domain.enums import ExportFormat, SecurityLevel

pytestmark = pytest.mark.asyncio

EXPORTS = "/api/v1/exports"


async def _export(session, user_id, **values) -> Export:
    export = Export(user_id=user_id, format=values.pop("format", "pdf"), **values)
    session.add(export)
    await session.commit()
    await session.refresh(export)
    return export


class TestRequestResultsExport:
    async def test_raw_data(self, client: AsyncClient, auth_headers, factory, session, jobs):
        case = await factory.case()

        response = await client.post(
            f"{EXPORTS}/results", headers=auth_headers, json={"case_id": case.id, "format": "raw_data"}
        )

        assert response.status_code == 202
        export_id = response.json()["export_id"]
        export = await session.get(Export, export_id)
        assert (export.case_id, export.status, export.password_protected) == (case.id, "pending", False)
        queued_id, options = jobs.enqueue_export.call_args[0]
        assert queued_id == export_id
        assert options.format == ExportFormat.raw_data
        assert options.archive_password is None

    async def test_protected_pdf(self, client: AsyncClient, auth_headers, factory, session, jobs):
        case = await factory.case()

        response = await client.post(
            f"{EXPORTS}/results",
            headers=auth_headers,
            json={
                "case_id": case.id,
                "format": "pdf",
                "page_size": "letter",
                "security_level": "permissions_protected",
                "password": "owner-secret",
                "permissions": {"printing": False},
            },
        )

        assert response.status_code == 202
        export = await session.get(Export, response.json()["export_id"])
        assert export.password_protected is True
        options = jobs.enqueue_export.call_args[0][1]
        assert options.security_level == SecurityLevel.permissions_protected
        assert options.pdf_password == "owner-secret"
        assert options.permissions.printing is False

    async def test_encrypted_archive(self, client: AsyncClient, auth_headers, factory, jobs):
        case = await factory.case()

        await client.post(
            f"{EXPORTS}/results",
            headers=auth_headers,
            json={
                "case_id": case.id,
                "format": "labelled_images",
                "resolution": "1280x720",
                "password_protection": {"enabled": True, "password": "zip-secret"},
            },
        )

        options = jobs.enqueue_export.call_args[0][1]
        assert (options.resolution, options.archive_password) == ("1280x720", "zip-secret")

    @pytest.mark.parametrize(
        "body, message",
        [
            ({"format": "labelled_images"}, "Resolution is required for labelled images."),
            ({"format": "pdf", "security_level": "view_protected", "password": "short"}, "Password must be at least 8 characters."),
            (
                {"format": "raw_data", "password_protection": {"enabled": True}},
                "Password must be at least 8 characters.",
            ),
        ],
    )
    async def test_invalid_options(self, client: AsyncClient, auth_headers, body, message, jobs):
        response = await client.post(f"{EXPORTS}/results", headers=auth_headers, json={"case_id": "c1", **body})

        assert response.status_code == 400
        assert response.json()["error"] == message
        jobs.enqueue_export.assert_not_called()

    async def test_foreign_case(self, client: AsyncClient, auth_headers, factory):
        other = await factory.other_user()
        case = await factory.case(user_id=other.id)

        response = await client.post(
            f"{EXPORTS}/results", headers=auth_headers, json={"case_id": case.id, "format": "raw_data"}
        )

        assert response.status_code == 404
        assert response.json()["error"] == "Case not found or permission denied."


class TestRequestImageExport:
    async def test_image_export(self, client: AsyncClient, auth_headers, factory, session, jobs):
        case = await factory.case()
        upload = await factory.upload(case.id)

        response = await client.post(
            f"{EXPORTS}/images", headers=auth_headers, json={"upload_id": upload.id, "format": "raw_data"}
        )

        assert response.status_code == 202
        export = await session.get(Export, response.json()["export_id"])
        assert (export.case_id, export.upload_id) == (case.id, upload.id)
        jobs.enqueue_export.assert_called_once()

    async def test_pdf_is_not_offered_per_image(self, client: AsyncClient, auth_headers, factory):
        upload = await factory.upload(None)

        response = await client.post(
            f"{EXPORTS}/images", headers=auth_headers, json={"upload_id": upload.id, "format": "pdf"}
        )

        assert response.status_code == 400

    async def test_foreign_image(self, client: AsyncClient, auth_headers, factory):
        other = await factory.other_user()
        upload = await factory.upload(None, user_id=other.id)

        response = await client.post(
            f"{EXPORTS}/images", headers=auth_headers, json={"upload_id": upload.id, "format": "raw_data"}
        )

        assert response.status_code == 404
        assert response.json()["error"] == "Image not found or permission denied."


class TestExportStatus:
    async def test_completed_export_has_download_url(
        self, client: AsyncClient, auth_headers, session, user_id, s3_client
    ):
        export = await _export(session, user_id, status="completed", s3_key=f"exports/{user_id}/abc.pdf")

        response = await client.get(f"{EXPORTS}/{export.id}", headers=auth_headers)

        assert response.json() == {"status": "completed", "url": "https://mock-s3/presigned", "failure_reason": None}
        kwargs = s3_client.generate_presigned_url.call_args[1]
        assert kwargs["ExpiresIn"] == 3600
        assert kwargs["Params"]["ResponseContentDisposition"] == (
            f'attachment; filename="mortiscope-pdf-{export.id[:8]}.pdf"'
        )

    async def test_failed_export(self, client: AsyncClient, auth_headers, session, user_id):
        export = await _export(session, user_id, status="failed", failure_reason="Export failed: boom")

        response = await client.get(f"{EXPORTS}/{export.id}", headers=auth_headers)

        assert response.json()["failure_reason"] == "Export failed: boom"
        assert response.json()["url"] is None

    async def test_unknown_export(self, client: AsyncClient, auth_headers):
        response = await client.get(f"{EXPORTS}/missing", headers=auth_headers)

        assert response.status_code == 200
        assert response.json() is None

    async def test_recent_exports_skip_failures(self, client: AsyncClient, auth_headers, session, user_id):
        done = await _export(session, user_id, status="completed", s3_key="k")
        await _export(session, user_id, status="failed")

        response = await client.get(EXPORTS, headers=auth_headers)

        assert [e["id"] for e in response.json()] == [done.id]
