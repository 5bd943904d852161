"""S3 object storage for exported files."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any

import boto3

from ..settings import (
    AWS_ACCESS_KEY_ID,
    AWS_REGION,
    AWS_S3_BUCKET,
    AWS_SECRET_ACCESS_KEY,
    AWS_SESSION_TOKEN,
)

logger = logging.getLogger(__name__)


class StorageConfigError(RuntimeError):
    """Raised when required storage settings are missing."""


class S3Storage:
    """
    Uploads files to, and clears, a single S3 bucket.

    boto3 is synchronous, so every call runs in a worker thread.

    Usage:
        storage = S3Storage(bucket="my-bucket", region="us-east-1")
        url = await storage.upload(Path("Telehealth_healthcare_2024-05-01T12-00-00-000Z.csv"))
        deleted = await storage.clear_bucket()
    """

    def __init__(
        self,
        bucket: str | None = None,
        region: str | None = None,
        access_key_id: str | None = None,
        secret_access_key: str | None = None,
        session_token: str | None = None,
        client: Any | None = None,
    ):
        self.bucket = bucket or AWS_S3_BUCKET
        self.region = region or AWS_REGION
        self._access_key_id = access_key_id or AWS_ACCESS_KEY_ID
        self._secret_access_key = secret_access_key or AWS_SECRET_ACCESS_KEY
        self._session_token = session_token or AWS_SESSION_TOKEN
        self._client = client

    @property
    def client(self) -> Any:
        if self._client is None:
            self._client = boto3.client(
                "s3",
                aws_access_key_id=self._access_key_id,
                aws_secret_access_key=self._secret_access_key,
                aws_session_token=self._session_token,
                region_name=self.region,
            )
        return self._client

    def _require_bucket(self) -> str:
        if not self.bucket:
            raise StorageConfigError(
                "AWS_S3_BUCKET environment variable is required"
            )
        return self.bucket

    def object_url(self, key: str) -> str:
        """Public-style URL of an object in the bucket."""
        if self.region:
            return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}"
        return f"https://{self.bucket}.s3.amazonaws.com/{key}"

    async def upload(self, path: Path) -> str:
        """Upload a file under its basename and return its location URL."""
        bucket = self._require_bucket()
        key = Path(path).name

        await asyncio.to_thread(self.client.upload_file, str(path), bucket, key)
        url = self.object_url(key)
        logger.info(f"Uploaded {key} to {url}")
        return url

    async def clear_bucket(self) -> int:
        """
        Delete every object in the bucket.

        Lists and deletes one page at a time, repeating while the listing
        reports more objects.

        Returns:
            Number of objects deleted
        """
        bucket = self._require_bucket()
        logger.info(f"Clearing bucket: {bucket}")
        total_deleted = 0

        while True:
            listed = await asyncio.to_thread(self.client.list_objects_v2, Bucket=bucket)
            contents = listed.get("Contents") or []

            if not contents:
                if total_deleted == 0:
                    logger.info("Bucket is already empty")
                break

            logger.info(f"Found {len(contents)} objects to delete")
            response = await asyncio.to_thread(
                self.client.delete_objects,
                Bucket=bucket,
                Delete={
                    "Objects": [{"Key": obj["Key"]} for obj in contents],
                    "Quiet": False,
                },
            )

            deleted = len(response.get("Deleted") or [])
            errors = response.get("Errors") or []
            for error in errors:
                logger.error(
                    f"Failed to delete {error.get('Key')}: {error.get('Code')} {error.get('Message')}"
                )
            if deleted == 0 and errors:
                raise RuntimeError(f"Could not delete any objects from bucket {bucket}")

            logger.info(f"Successfully deleted {deleted} objects")
            total_deleted += deleted

            if not listed.get("IsTruncated"):
                break

        return total_deleted
