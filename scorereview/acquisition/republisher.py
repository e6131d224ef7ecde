"""Republication of acquired score PDFs to S3.

Keys are derived only from the slug, so re-running an acquisition for the
same piece overwrites the previous object and yields the same URL.
"""

import asyncio
import logging
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .config import AcquisitionConfig
from .errors import UploadError
from .types import PdfPayload

logger = logging.getLogger(__name__)


class S3Republisher:
    """Upload PdfPayloads under ``{prefix}/{slug}.pdf`` and return the public URL.

    Usage:
        republisher = S3Republisher.from_config(get_acquisition_config())
        url = await republisher.publish(payload, "bach-bwv846")
    """

    def __init__(
        self,
        bucket: str,
        region: str = "us-east-1",
        prefix: str = "",
        timeout: float = 20.0,
        client: Any | None = None,
    ):
        """Initialize the republisher.

        Args:
            bucket: Destination bucket
            region: Bucket region (used for the client and the public URL)
            prefix: Key prefix, without leading/trailing slashes
            timeout: Seconds before an in-flight put is abandoned
            client: Optional boto3 S3 client (created lazily if omitted)
        """
        self.bucket = bucket
        self.region = region
        self.prefix = prefix.strip("/")
        self.timeout = timeout
        self._client = client

    @classmethod
    def from_config(cls, config: AcquisitionConfig) -> "S3Republisher":
        return cls(
            bucket=config.bucket,
            region=config.region,
            prefix=config.prefix,
            timeout=config.upload_timeout,
        )

    @property
    def client(self) -> Any:
        """boto3 S3 client (lazy init, credentials from the environment)."""
        if self._client is None:
            self._client = boto3.client("s3", region_name=self.region)
            logger.debug(f"S3 client created for region {self.region}")
        return self._client

    def object_key(self, slug: str) -> str:
        filename = f"{slug}.pdf"
        return f"{self.prefix}/{filename}" if self.prefix else filename

    def public_url(self, slug: str) -> str:
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{self.object_key(slug)}"

    def _put(self, key: str, payload: PdfPayload) -> None:
        self.client.put_object(
            Bucket=self.bucket,
            Key=key,
            Body=payload.content,
            ContentType="application/pdf",
        )

    async def publish(self, payload: PdfPayload, slug: str) -> str:
        """Put the payload to S3 and return its public URL.

        The blocking boto3 call runs in a worker thread and is raced against
        the upload timeout.

        Raises:
            UploadError: On S3 errors or when the put exceeds the timeout
        """
        key = self.object_key(slug)
        logger.info(f"Uploading {payload.size} bytes to s3://{self.bucket}/{key}")

        try:
            await asyncio.wait_for(asyncio.to_thread(self._put, key, payload), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            raise UploadError(
                f"S3 upload timed out after {self.timeout}s",
                key=key,
                details={"bucket": self.bucket, "timeout": self.timeout},
            ) from e
        except (BotoCoreError, ClientError) as e:
            raise UploadError(
                f"S3 upload failed: {e}",
                key=key,
                details={"bucket": self.bucket},
            ) from e

        url = self.public_url(slug)
        logger.info(f"S3 upload successful: {url}")
        return url
