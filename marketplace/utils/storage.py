"""
Object storage adapter for listing images.
Wraps an S3 bucket; blocking boto3 calls run in the threadpool.
"""

from functools import lru_cache
from typing import Optional
from urllib.parse import quote
import logging

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from starlette.concurrency import run_in_threadpool

from marketplace.config import settings
from marketplace.utils.exceptions import StorageUnavailableError

logger = logging.getLogger(__name__)


class S3Storage:
    """
    Image blob store backed by S3 or an S3 compatible endpoint.

    The adapter is usable without credentials: uploads then fail with
    StorageUnavailableError, deletes succeed as no-ops and signed URLs are None.
    """

    def __init__(
        self,
        bucket: Optional[str],
        region: Optional[str],
        access_key_id: Optional[str],
        secret_access_key: Optional[str],
        endpoint_url: Optional[str] = None,
        public_base_url: Optional[str] = None
    ):
        self.bucket = bucket
        self.region = region
        self.access_key_id = access_key_id
        self.secret_access_key = secret_access_key
        self.endpoint_url = endpoint_url
        self.public_base_url = public_base_url
        self._client = None

    @property
    def available(self) -> bool:
        """True when bucket, region and both keys are configured."""
        return all([self.bucket, self.region, self.access_key_id, self.secret_access_key])

    @property
    def client(self):
        if self._client is None:
            self._client = boto3.client(
                "s3",
                region_name=self.region,
                aws_access_key_id=self.access_key_id,
                aws_secret_access_key=self.secret_access_key,
                endpoint_url=self.endpoint_url
            )
        return self._client

    def public_url(self, key: str) -> str:
        """Public URL of a stored object."""
        quoted_key = quote(key)
        if self.public_base_url:
            return f"{self.public_base_url.rstrip('/')}/{quoted_key}"
        if self.endpoint_url:
            return f"{self.endpoint_url.rstrip('/')}/{self.bucket}/{quoted_key}"
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{quoted_key}"

    async def put(self, key: str, data: bytes, content_type: str) -> str:
        """
        Store a blob under a key.

        Args:
            key: Object key
            data: Blob bytes
            content_type: MIME type recorded with the object

        Returns:
            Public URL of the stored object

        Raises:
            StorageUnavailableError: If storage is not configured
            BotoCoreError, ClientError: If the transfer fails
        """
        if not self.available:
            raise StorageUnavailableError()

        await run_in_threadpool(
            self.client.put_object,
            Bucket=self.bucket,
            Key=key,
            Body=data,
            ContentType=content_type
        )
        logger.info(f"Stored object {key} ({len(data)} bytes)")
        return self.public_url(key)

    async def delete(self, key: str) -> bool:
        """
        Remove a blob.

        Returns:
            True on success or when storage is not configured, False on failure
        """
        if not self.available:
            logger.warning(f"Object storage not configured; skipping delete of {key}")
            return True

        try:
            await run_in_threadpool(self.client.delete_object, Bucket=self.bucket, Key=key)
            logger.info(f"Deleted object {key}")
            return True
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Failed to delete object {key}: {e}")
            return False

    async def signed_read_url(self, key: str, expires_in: int = 3600) -> Optional[str]:
        """Time-limited read URL, or None when storage is unavailable or signing fails."""
        if not self.available:
            return None

        try:
            return await run_in_threadpool(
                self.client.generate_presigned_url,
                "get_object",
                Params={"Bucket": self.bucket, "Key": key},
                ExpiresIn=expires_in
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Failed to sign URL for {key}: {e}")
            return None


@lru_cache()
def get_storage() -> S3Storage:
    """Storage adapter built from settings, shared across requests."""
    return S3Storage(
        bucket=settings.aws_s3_bucket,
        region=settings.aws_region,
        access_key_id=settings.aws_access_key_id,
        secret_access_key=settings.aws_secret_access_key,
        endpoint_url=settings.aws_s3_endpoint_url,
        public_base_url=settings.aws_s3_public_url
    )
