"""Cloudflare R2 blob store using boto3."""

import logging
from urllib.parse import quote

import boto3
from botocore.exceptions import ClientError

from sonicshare.config import Settings, get_settings
from sonicshare.errors import ConfigurationError
from sonicshare.models import BlobNamespace

logger = logging.getLogger(__name__)


class R2BlobStore:
    """Thin wrapper around boto3 for R2, one bucket per namespace.

    Buckets are expected to be publicly readable through the configured
    public URLs; the returned URLs do not expire.
    """

    def __init__(self, settings: Settings | None = None, client=None) -> None:
        s = settings or get_settings()
        missing = [
            name
            for name, value in (
                ("R2_AUDIO_PUBLIC_URL", s.r2_audio_public_url),
                ("R2_COVER_PUBLIC_URL", s.r2_cover_public_url),
            )
            if not value
        ]
        if client is None:
            missing += [
                name
                for name, value in (
                    ("R2_ACCESS_KEY_ID", s.r2_access_key_id),
                    ("R2_SECRET_ACCESS_KEY", s.r2_secret_access_key),
                    ("R2_ENDPOINT_URL", s.r2_endpoint_url),
                )
                if not value
            ]
        if missing:
            raise ConfigurationError(f"R2 blob store is missing settings: {', '.join(missing)}")

        self._client = client or boto3.client(
            "s3",
            endpoint_url=s.r2_endpoint_url,
            aws_access_key_id=s.r2_access_key_id,
            aws_secret_access_key=s.r2_secret_access_key,
        )
        self._buckets = {
            BlobNamespace.AUDIO: s.r2_audio_bucket,
            BlobNamespace.COVER: s.r2_cover_bucket,
        }
        self._public_urls = {
            BlobNamespace.AUDIO: s.r2_audio_public_url.rstrip("/"),
            BlobNamespace.COVER: s.r2_cover_public_url.rstrip("/"),
        }

    def public_url(self, namespace: BlobNamespace, key: str) -> str:
        """Public URL for a key (path segments are percent-encoded)."""
        return f"{self._public_urls[namespace]}/{quote(key)}"

    def put(
        self,
        namespace: BlobNamespace,
        key: str,
        data: bytes,
        content_type: str | None = None,
    ) -> str:
        """Upload a blob to R2.

        Returns:
            The public URL of the uploaded object.

        Raises:
            ClientError: If upload fails.
        """
        bucket = self._buckets[namespace]
        extra = {"ContentType": content_type} if content_type else {}
        try:
            self._client.put_object(Bucket=bucket, Key=key, Body=data, **extra)
            logger.info(f"Uploaded {len(data)} bytes -> r2://{bucket}/{key}")
        except ClientError as e:
            logger.error(f"Failed to upload r2://{bucket}/{key}: {e}")
            raise
        return self.public_url(namespace, key)

    def delete(self, namespace: BlobNamespace, key: str) -> None:
        """Delete a blob from R2.

        Raises:
            ClientError: If deletion fails.
        """
        bucket = self._buckets[namespace]
        try:
            self._client.delete_object(Bucket=bucket, Key=key)
            logger.info(f"Deleted r2://{bucket}/{key}")
        except ClientError as e:
            logger.error(f"Failed to delete r2://{bucket}/{key}: {e}")
            raise

    def close(self) -> None:
        self._client.close()
