"""
Cloudflare R2 object store (S3 API via boto3).

The boto3 client is synchronous, so uploads run in a worker thread. Any
botocore failure is surfaced as UploadError; the pipeline treats that as
fatal for the submission.
"""

import asyncio
import logging
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ecotrust.config import settings
from ecotrust.core.errors import UploadError
from ecotrust.integrations.object_keys import content_type_for, generate_unique_key
from ecotrust.schemas.evidence import StoredObject

logger = logging.getLogger(__name__)


class R2Storage:
    def __init__(self, client=None, bucket: Optional[str] = None, public_base: Optional[str] = None):
        self.bucket = bucket or settings.r2_bucket_name
        if not self.bucket:
            raise ValueError("R2 bucket name is not configured (R2_BUCKET_NAME)")

        self.client = client or boto3.client(
            "s3",
            region_name="auto",
            endpoint_url=settings.r2_endpoint_url,
            aws_access_key_id=settings.r2_access_key_id,
            aws_secret_access_key=settings.r2_secret_access_key,
        )
        self.public_base = (
            public_base
            or settings.r2_public_url
            or f"https://{self.bucket}.{settings.r2_account_id}.r2.cloudflarestorage.com"
        ).rstrip("/")

    def public_url(self, key: str) -> str:
        return f"{self.public_base}/{key}"

    def _put_sync(self, data: bytes, key: str, metadata: dict) -> None:
        self.client.put_object(
            Bucket=self.bucket,
            Key=key,
            Body=data,
            ContentType=content_type_for(key),
            Metadata={k: str(v) for k, v in metadata.items() if v is not None},
        )

    async def put(self, data: bytes, suggested_name: str, metadata: dict) -> StoredObject:
        key = generate_unique_key(suggested_name)
        try:
            await asyncio.to_thread(self._put_sync, data, key, metadata)
        except (BotoCoreError, ClientError) as e:
            logger.error(f"[R2] Upload of {key} failed: {e}")
            raise UploadError(f"R2 upload failed for {key}: {e}") from e

        logger.info(f"[R2] Stored {len(data)} bytes at {key}")
        return StoredObject(url=self.public_url(key), key=key)
