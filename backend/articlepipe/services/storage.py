"""
S3-compatible artifact storage for thumbnails, audio and video.

Objects are written with path-style addressing (Supabase storage and MinIO
both require it) and exposed at ``{public_url}/object/public/{bucket}/{key}``.
boto3 is synchronous, so every call runs in a worker thread.
"""

import asyncio
import logging
from pathlib import Path

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from articlepipe.services.base import ArtifactStore
from articlepipe.services.errors import StorageError

logger = logging.getLogger(__name__)


def thumbnail_key(article_id: int) -> str:
    return f"thumbnails/article_{article_id}.png"


def audio_key(article_id: int) -> str:
    return f"audio/article_{article_id}.mp3"


def video_key(article_id: int) -> str:
    return f"videos/article_{article_id}.mp4"


class S3ArtifactStore(ArtifactStore):
    """ArtifactStore backed by an S3-compatible bucket."""

    def __init__(
        self,
        *,
        endpoint: str,
        bucket_name: str,
        region: str = "us-east-1",
        access_key: str = "",
        secret_key: str = "",
        public_url: str = "",
        client=None,
    ):
        self.endpoint = endpoint.rstrip("/")
        self.bucket_name = bucket_name
        self.region = region
        self.public_url = (public_url or endpoint).rstrip("/")
        self._access_key = access_key
        self._secret_key = secret_key
        self._client = client

    def _get_client(self):
        """Get or create the S3 client (lazy initialization)."""
        if self._client is None:
            self._client = boto3.client(
                "s3",
                endpoint_url=self.endpoint or None,
                region_name=self.region,
                aws_access_key_id=self._access_key or None,
                aws_secret_access_key=self._secret_key or None,
                config=Config(s3={"addressing_style": "path"}),
            )
        return self._client

    def public_url_for(self, key: str) -> str:
        return f"{self.public_url}/object/public/{self.bucket_name}/{key}"

    async def upload(self, key: str, data: bytes, content_type: str) -> str:
        logger.info(f"Uploading {len(data)} bytes to s3://{self.bucket_name}/{key}")
        try:
            await asyncio.to_thread(
                self._get_client().put_object,
                Bucket=self.bucket_name,
                Key=key,
                Body=data,
                ContentType=content_type,
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to upload s3://{self.bucket_name}/{key}: {e}")
            raise StorageError(f"failed to upload file: {e}") from e

        return self.public_url_for(key)

    async def upload_file(self, key: str, path: Path, content_type: str) -> str:
        logger.info(f"Uploading {path} to s3://{self.bucket_name}/{key}")
        try:
            await asyncio.to_thread(
                self._get_client().upload_file,
                str(path),
                self.bucket_name,
                key,
                ExtraArgs={"ContentType": content_type},
            )
        except (ClientError, BotoCoreError, OSError) as e:
            logger.error(f"Failed to upload {path} to s3://{self.bucket_name}/{key}: {e}")
            raise StorageError(f"failed to upload file: {e}") from e

        return self.public_url_for(key)
