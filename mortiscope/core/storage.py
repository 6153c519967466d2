"""
S3 object storage wrapper.

A thin interface over a boto3 S3 client for the operations MortiScope needs:
presigned PUT/GET URLs for the browser, object metadata lookups (ownership is
recorded in the ``userid`` metadata entry at upload time), server-side copy and
delete for the rename workflow, and byte-level get/put for exports.

The boto3 client is synchronous; async callers run these methods through
``starlette.concurrency.run_in_threadpool``.
"""

from __future__ import annotations

from typing import Any, Dict, Optional
from urllib.parse import unquote, urlparse

import boto3
from botocore.client import Config
from botocore.exceptions import ClientError

from mortiscope.core.logging_config import get_logger

logger = get_logger(__name__)

__all__ = ["ClientError", "S3Storage"]


class S3Storage:
    """Object storage bound to one bucket."""

    def __init__(
        self,
        bucket_name: str,
        region: str,
        access_key_id: Optional[str] = None,
        secret_access_key: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        client: Any = None,
    ) -> None:
        self.bucket_name = bucket_name
        self.region = region
        if client is None:
            session = boto3.session.Session()
            client = session.client(
                "s3",
                region_name=region,
                endpoint_url=endpoint_url,
                aws_access_key_id=access_key_id,
                aws_secret_access_key=secret_access_key,
                config=Config(signature_version="s3v4"),
            )
        self.client = client

    # ------------------------------------------------------------------
    # URLs
    # ------------------------------------------------------------------

    @property
    def public_host(self) -> str:
        return f"{self.bucket_name}.s3.{self.region}.amazonaws.com"

    def public_url(self, key: str) -> str:
        """Permanent (non-signed) URL of an object."""
        return f"https://{self.public_host}/{key}"

    def key_from_url(self, url: str) -> Optional[str]:
        """
        Extract the object key from a bucket URL.

        Returns None for URLs that do not point at this bucket (for example an
        OAuth provider avatar).
        """
        parsed = urlparse(url)
        if parsed.hostname != self.public_host:
            return None
        return unquote(parsed.path.lstrip("/")) or None

    def presigned_put(self, key: str, content_type: str, user_id: str, expires_in: int) -> str:
        """Presigned URL the browser uses to PUT the file directly into the bucket."""
        return self.client.generate_presigned_url(
            "put_object",
            Params={
                "Bucket": self.bucket_name,
                "Key": key,
                "ContentType": content_type,
                "Metadata": {"userid": user_id},
            },
            ExpiresIn=expires_in,
        )

    def presigned_get(self, key: str, expires_in: int, download_name: Optional[str] = None) -> str:
        """Presigned URL for temporary read access."""
        params: Dict[str, Any] = {"Bucket": self.bucket_name, "Key": key}
        if download_name:
            params["ResponseContentDisposition"] = f'attachment; filename="{download_name}"'
        return self.client.generate_presigned_url("get_object", Params=params, ExpiresIn=expires_in)

    # ------------------------------------------------------------------
    # Objects
    # ------------------------------------------------------------------

    def head_object(self, key: str) -> Dict[str, Any]:
        return self.client.head_object(Bucket=self.bucket_name, Key=key)

    def owner_of(self, key: str) -> Optional[str]:
        """User id recorded in the object's metadata, if any."""
        metadata = self.head_object(key).get("Metadata") or {}
        return metadata.get("userid")

    def copy_object(self, source_key: str, target_key: str) -> None:
        """Server-side copy keeping the object's metadata."""
        self.client.copy_object(
            Bucket=self.bucket_name,
            CopySource={"Bucket": self.bucket_name, "Key": source_key},
            Key=target_key,
            MetadataDirective="COPY",
        )

    def delete_object(self, key: str) -> None:
        self.client.delete_object(Bucket=self.bucket_name, Key=key)
        logger.info(f"S3 object successfully deleted: {key}")

    def get_bytes(self, key: str) -> bytes:
        response = self.client.get_object(Bucket=self.bucket_name, Key=key)
        return response["Body"].read()

    def put_bytes(self, key: str, data: bytes, content_type: str, metadata: Optional[Dict[str, str]] = None) -> None:
        self.client.put_object(
            Bucket=self.bucket_name,
            Key=key,
            Body=data,
            ContentType=content_type,
            Metadata=metadata or {},
        )
