"""Unit tests for the S3 storage wrapper."""

from __future__ import annotations

import io
from unittest.mock import MagicMock

import pytest

from mortiscope.core.storage import S3Storage


@pytest.fixture
def client():
    return MagicMock()


@pytest.fixture
def storage(client):
    return S3Storage(bucket_name="mortiscope-test", region="ap-southeast-1", client=client)


class TestUrls:
    def test_public_url(self, storage):
        assert storage.public_url("uploads/u1/a.jpg") == (
            "https://mortiscope-test.s3.ap-southeast-1.amazonaws.com/uploads/u1/a.jpg"
        )

    @pytest.mark.parametrize(
        "url, expected",
        [
            ("https://mortiscope-test.s3.ap-southeast-1.amazonaws.com/uploads/u1/a%20b.jpg", "uploads/u1/a b.jpg"),
            ("https://lh3.googleusercontent.com/avatar.png", None),
            ("https://mortiscope-test.s3.ap-southeast-1.amazonaws.com/", None),
        ],
    )
    def test_key_from_url(self, storage, url, expected):
        assert storage.key_from_url(url) == expected


class TestPresignedUrls:
    def test_presigned_put_records_owner(self, storage, client):
        client.generate_presigned_url.return_value = "https://signed"

        assert storage.presigned_put("uploads/u1/a.jpg", "image/jpeg", "u1", 60) == "https://signed"
        client.generate_presigned_url.assert_called_once_with(
            "put_object",
            Params={
                "Bucket": "mortiscope-test",
                "Key": "uploads/u1/a.jpg",
                "ContentType": "image/jpeg",
                "Metadata": {"userid": "u1"},
            },
            ExpiresIn=60,
        )

    def test_presigned_get_with_download_name(self, storage, client):
        storage.presigned_get("exports/u1/e.zip", 3600, download_name="report.zip")

        _, kwargs = client.generate_presigned_url.call_args
        assert kwargs["Params"]["ResponseContentDisposition"] == 'attachment; filename="report.zip"'
        assert kwargs["ExpiresIn"] == 3600

    def test_presigned_get_without_download_name(self, storage, client):
        storage.presigned_get("uploads/u1/a.jpg", 900)

        _, kwargs = client.generate_presigned_url.call_args
        assert kwargs["Params"] == {"Bucket": "mortiscope-test", "Key": "uploads/u1/a.jpg"}


class TestObjects:
    def test_owner_of(self, storage, client):
        client.head_object.return_value = {"Metadata": {"userid": "u1"}}
        assert storage.owner_of("k") == "u1"

        client.head_object.return_value = {}
        assert storage.owner_of("k") is None

    def test_copy_keeps_metadata(self, storage, client):
        storage.copy_object("old.jpg", "new.jpg")

        client.copy_object.assert_called_once_with(
            Bucket="mortiscope-test",
            CopySource={"Bucket": "mortiscope-test", "Key": "old.jpg"},
            Key="new.jpg",
            MetadataDirective="COPY",
        )

    def test_get_and_put_bytes(self, storage, client):
        client.get_object.return_value = {"Body": io.BytesIO(b"payload")}

        assert storage.get_bytes("k") == b"payload"

        storage.put_bytes("exports/e.zip", b"zip", "application/zip")
        client.put_object.assert_called_once_with(
            Bucket="mortiscope-test", Key="exports/e.zip", Body=b"zip", ContentType="application/zip", Metadata={}
        )

    def test_delete_object(self, storage, client):
        storage.delete_object("k")
        client.delete_object.assert_called_once_with(Bucket="mortiscope-test", Key="k")
