"""
Storage Service
===============
Stores uploaded images, configuration files and generated PDFs.

Two backends, selected by STORAGE_MODE:
- local: files under UPLOAD_DIR, served from PUBLIC_UPLOAD_URL
- s3:    objects in S3_BUCKET_NAME, served through presigned URLs

Keys are "<folder>/<filename>" in both modes.
"""
import asyncio
import functools
from pathlib import Path
from typing import Optional, Callable, TypeVar

import aiofiles
import aiofiles.os
import boto3
from botocore.config import Config
from botocore.exceptions import ClientError, BotoCoreError

from netdesigner.core.config import settings
from netdesigner.core.exceptions import StorageError
from netdesigner.core.logging_config import logger


T = TypeVar('T')


def retry_with_backoff(
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 10.0,
):
    """
    Retry an async S3 call with exponential backoff.

    Retries on ClientError, BotoCoreError, ConnectionError and TimeoutError.
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            last_exception = None
            for attempt in range(max_retries):
                try:
                    return await func(*args, **kwargs)
                except (ClientError, BotoCoreError, ConnectionError, TimeoutError) as e:
                    last_exception = e
                    if attempt < max_retries - 1:
                        delay = min(base_delay * (2 ** attempt), max_delay)
                        logger.warning(
                            f"[Storage] {func.__name__} attempt {attempt + 1}/{max_retries} failed: {e}. "
                            f"Retrying in {delay:.1f}s..."
                        )
                        await asyncio.sleep(delay)
                    else:
                        logger.error(f"[Storage] {func.__name__} failed after {max_retries} attempts: {e}")
            raise StorageError(f"{func.__name__} failed: {last_exception}")
        return wrapper
    return decorator


class StorageService:
    """Local-disk or S3 file storage"""

    def __init__(self, mode: Optional[str] = None):
        self.mode = (mode or settings.STORAGE_MODE).lower()
        self._client = None
        self._bucket_name = settings.S3_BUCKET_NAME

    @property
    def is_s3(self) -> bool:
        return self.mode == "s3"

    def _get_client(self):
        """Lazy initialization of the S3 client"""
        if self._client is None:
            client_kwargs = {
                'region_name': settings.AWS_REGION,
                'config': Config(signature_version='s3v4', retries={'max_attempts': 0}),
            }
            # Explicit credentials when given, otherwise the IAM role
            if settings.AWS_ACCESS_KEY_ID and settings.AWS_SECRET_ACCESS_KEY:
                client_kwargs['aws_access_key_id'] = settings.AWS_ACCESS_KEY_ID
                client_kwargs['aws_secret_access_key'] = settings.AWS_SECRET_ACCESS_KEY
            self._client = boto3.client('s3', **client_kwargs)
        return self._client

    @staticmethod
    def build_key(folder: str, filename: str) -> str:
        return f"{folder.strip('/')}/{filename}"

    def _local_path(self, key: str) -> Path:
        root = settings.upload_path
        path = (root / key).resolve()
        if root not in path.parents:
            raise StorageError(f"Invalid storage key: {key}")
        return path

    def public_url(self, key: str) -> str:
        """URL for a locally stored file"""
        return f"{settings.PUBLIC_UPLOAD_URL.rstrip('/')}/{key}"

    # ==================== S3 primitives ====================

    @retry_with_backoff()
    async def _s3_put(self, key: str, content: bytes, content_type: str) -> None:
        client = self._get_client()
        await asyncio.to_thread(
            client.put_object,
            Bucket=self._bucket_name,
            Key=key,
            Body=content,
            ContentType=content_type,
        )

    @retry_with_backoff()
    async def _s3_get(self, key: str) -> Optional[bytes]:
        client = self._get_client()
        try:
            response = await asyncio.to_thread(client.get_object, Bucket=self._bucket_name, Key=key)
        except ClientError as e:
            if e.response.get('Error', {}).get('Code') in ('NoSuchKey', '404'):
                return None
            raise
        return response['Body'].read()

    @retry_with_backoff()
    async def _s3_delete(self, key: str) -> None:
        client = self._get_client()
        await asyncio.to_thread(client.delete_object, Bucket=self._bucket_name, Key=key)

    # ==================== Public API ====================

    async def save(
        self,
        content: bytes,
        folder: str,
        filename: str,
        content_type: str = "application/octet-stream",
    ) -> dict:
        """
        Store bytes under folder/filename.

        Returns:
            dict with key, url and size
        """
        key = self.build_key(folder, filename)

        if self.is_s3:
            await self._s3_put(key, content, content_type)
            url = await self.get_url(key)
        else:
            path = self._local_path(key)
            try:
                await aiofiles.os.makedirs(path.parent, exist_ok=True)
                async with aiofiles.open(path, "wb") as f:
                    await f.write(content)
            except OSError as e:
                logger.error(f"[Storage] Failed to write {key}: {e}")
                raise StorageError(f"Failed to store file: {e}")
            url = self.public_url(key)

        logger.info(f"[Storage] Saved {key} ({len(content)} bytes, {self.mode})")
        return {"key": key, "url": url, "size": len(content)}

    async def read(self, key: str) -> Optional[bytes]:
        """File content, or None when it does not exist"""
        if self.is_s3:
            return await self._s3_get(key)

        path = self._local_path(key)
        if not path.exists():
            return None
        async with aiofiles.open(path, "rb") as f:
            return await f.read()

    async def delete(self, key: Optional[str]) -> bool:
        """Remove a stored file; missing files are ignored"""
        if not key:
            return False

        if self.is_s3:
            await self._s3_delete(key)
            logger.info(f"[Storage] Deleted s3://{self._bucket_name}/{key}")
            return True

        path = self._local_path(key)
        if not path.exists():
            return False
        try:
            await aiofiles.os.remove(path)
        except OSError as e:
            raise StorageError(f"Failed to delete file: {e}")
        logger.info(f"[Storage] Deleted {key}")
        return True

    async def get_url(self, key: str, expiration: Optional[int] = None) -> str:
        """Download URL: presigned for S3, static mount for local files"""
        if not self.is_s3:
            return self.public_url(key)
        try:
            return await asyncio.to_thread(
                self._get_client().generate_presigned_url,
                'get_object',
                Params={'Bucket': self._bucket_name, 'Key': key},
                ExpiresIn=expiration or settings.STORAGE_URL_EXPIRY,
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"[Storage] Failed to generate presigned URL for {key}: {e}")
            raise StorageError(f"Failed to generate download URL: {e}")

    def key_from_url(self, url: Optional[str]) -> Optional[str]:
        """Recover the storage key from a URL returned by save()"""
        if not url:
            return None
        prefix = settings.PUBLIC_UPLOAD_URL.rstrip('/') + '/'
        if url.startswith(prefix):
            return url[len(prefix):]
        marker = f"{self._bucket_name}/"
        if marker in url:
            return url.split(marker, 1)[1].split('?', 1)[0]
        if ".amazonaws.com/" in url:
            return url.split(".amazonaws.com/", 1)[1].split('?', 1)[0]
        return None


# Singleton instance
storage_service = StorageService()
