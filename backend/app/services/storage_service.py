"""
Storage Service - Handles generated document storage in S3/MinIO
With retry logic for resilient operations
"""

import asyncio
import re
from functools import partial
from typing import Callable, Optional

import boto3
import httpx
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from app.core.config import Settings
from app.core.exceptions import S3DownloadError, S3UploadError
from app.core.logging_config import logger


_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9._-]")

PDF_CONTENT_TYPE = "application/pdf"


def sanitize_key_part(value: str) -> str:
    """Replace every character outside [A-Za-z0-9._-] with an underscore"""
    return _UNSAFE_KEY_CHARS.sub("_", value)


def build_document_filename(prefix: str, first_name: str, last_name: str, submission_id: str) -> str:
    """Internship_Offer_Letter_Jane_Doe_abc-1.pdf"""
    return f"{prefix}_{first_name}_{last_name}_{submission_id}.pdf"


def build_document_key(prefix: str, first_name: str, last_name: str,
                       submission_id: str, folder: str) -> str:
    """
    Deterministic object key for a generated document.

    Format: {folder}/{prefix}_{first}_{last}_{id}.pdf
    Repeated requests for the same submission converge on the same object.
    """
    filename = build_document_filename(prefix, first_name, last_name, submission_id)
    return f"{sanitize_key_part(folder)}/{sanitize_key_part(filename)}"


class StorageService:
    """
    Document store backed by S3 or MinIO.

    Uploads overwrite, so a retried generate request replaces the object it
    left behind instead of creating a second one.
    """

    def __init__(self, settings: Settings, client=None, http_client: Optional[httpx.AsyncClient] = None):
        self.settings = settings
        self._client = client
        self._bucket_name = settings.effective_bucket_name
        self._max_retries = max(1, settings.STORAGE_MAX_RETRIES)
        self._initialized = client is not None
        self._http = http_client or httpx.AsyncClient(
            timeout=settings.HTTP_TIMEOUT_SECONDS,
            follow_redirects=True,
        )
        logger.info(f"StorageService initialized with bucket: {self._bucket_name}")

    @property
    def bucket_name(self) -> str:
        return self._bucket_name

    def _get_client(self):
        """Lazy initialization of S3/MinIO client"""
        if self._client is None:
            s = self.settings
            if s.USE_MINIO:
                self._client = boto3.client(
                    's3',
                    endpoint_url=f"http://{s.MINIO_ENDPOINT}",
                    aws_access_key_id=s.AWS_ACCESS_KEY_ID,
                    aws_secret_access_key=s.AWS_SECRET_ACCESS_KEY,
                    config=Config(
                        signature_version='s3v4',
                        s3={'addressing_style': 'path'}
                    ),
                    region_name=s.AWS_REGION
                )
            elif s.AWS_ACCESS_KEY_ID and s.AWS_SECRET_ACCESS_KEY:
                self._client = boto3.client(
                    's3',
                    aws_access_key_id=s.AWS_ACCESS_KEY_ID,
                    aws_secret_access_key=s.AWS_SECRET_ACCESS_KEY,
                    region_name=s.AWS_REGION
                )
            else:
                # IAM role credentials (ECS/EC2)
                self._client = boto3.client('s3', region_name=s.AWS_REGION)
                logger.info("S3 client using IAM role credentials")

            self._ensure_bucket()

        return self._client

    def _ensure_bucket(self):
        """Create bucket if it doesn't exist"""
        if self._initialized:
            return

        try:
            self._client.head_bucket(Bucket=self._bucket_name)
        except ClientError as e:
            error_code = e.response.get('Error', {}).get('Code', '')
            if error_code in ['404', 'NoSuchBucket']:
                try:
                    if self.settings.USE_MINIO or self.settings.AWS_REGION == 'us-east-1':
                        self._client.create_bucket(Bucket=self._bucket_name)
                    else:
                        # AWS S3 requires LocationConstraint for non-us-east-1
                        self._client.create_bucket(
                            Bucket=self._bucket_name,
                            CreateBucketConfiguration={
                                'LocationConstraint': self.settings.AWS_REGION
                            }
                        )
                    logger.info(f"Created bucket '{self._bucket_name}'")
                except ClientError as create_error:
                    logger.error(f"Failed to create bucket: {create_error}")
            else:
                logger.error(f"Error checking bucket: {e}")

        self._initialized = True

    async def _run(self, func: Callable, *args, **kwargs):
        """Run a blocking boto3 call off the event loop"""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, partial(func, *args, **kwargs))

    def public_url(self, key: str) -> str:
        """Durable URL for an object key"""
        s = self.settings
        if s.STORAGE_PUBLIC_BASE_URL:
            return f"{s.STORAGE_PUBLIC_BASE_URL.rstrip('/')}/{key}"
        if s.USE_MINIO:
            return f"http://{s.MINIO_ENDPOINT}/{self._bucket_name}/{key}"
        return f"https://{self._bucket_name}.s3.{s.AWS_REGION}.amazonaws.com/{key}"

    def key_from_url(self, url: str) -> Optional[str]:
        """Object key for a URL produced by public_url, None for foreign URLs"""
        base = self.public_url("")
        if url.startswith(base) and len(url) > len(base):
            return url[len(base):]
        return None

    async def upload_document(self, content: bytes, key: str,
                              content_type: str = PDF_CONTENT_TYPE) -> str:
        """
        Upload bytes under ``key`` and return the object's URL.

        Retry behavior:
            - Retries on ClientError, BotoCoreError, ConnectionError, TimeoutError
            - Exponential backoff: 1s, 2s, 4s...
        """
        if not content:
            raise S3UploadError(key, "Refusing to upload an empty document")

        last_exception: Optional[Exception] = None
        for attempt in range(self._max_retries):
            try:
                client = self._get_client()
                await self._run(
                    client.put_object,
                    Bucket=self._bucket_name,
                    Key=key,
                    Body=content,
                    ContentType=content_type,
                )
                logger.info(f"[S3-Upload] Uploaded: {key} ({len(content)} bytes)")
                return self.public_url(key)

            except (ClientError, BotoCoreError, ConnectionError, TimeoutError) as e:
                last_exception = e
                if attempt < self._max_retries - 1:
                    delay = 1.0 * (2 ** attempt)
                    logger.warning(f"[S3-Upload] Attempt {attempt + 1}/{self._max_retries} failed for {key}: {e}. Retrying in {delay:.1f}s...")
                    await asyncio.sleep(delay)
                else:
                    logger.error(f"[S3-Upload] All {self._max_retries} attempts failed for {key}: {e}")

        raise S3UploadError(key, str(last_exception))

    async def download_document(self, key: str) -> bytes:
        """Read an object from the bucket"""
        try:
            client = self._get_client()
            response = await self._run(client.get_object, Bucket=self._bucket_name, Key=key)
            return await self._run(response['Body'].read)
        except ClientError as e:
            code = e.response.get('Error', {}).get('Code', '')
            if code in ('NoSuchKey', '404'):
                logger.warning(f"[S3-Download] File not found: {key}")
                raise S3DownloadError(key, "Document not found in storage")
            logger.error(f"[S3-Download] Failed for {key}: {e}")
            raise S3DownloadError(key, str(e))
        except (BotoCoreError, ConnectionError, TimeoutError) as e:
            logger.error(f"[S3-Download] Failed for {key}: {e}")
            raise S3DownloadError(key, str(e))

    async def fetch_document(self, url: str) -> bytes:
        """
        Fetch a stored document by URL.

        URLs under this bucket are read with get_object; anything else
        (documents stored before a storage migration) is fetched over HTTP.
        """
        key = self.key_from_url(url)
        if key is not None:
            return await self.download_document(key)

        try:
            response = await self._http.get(url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"[HTTP-Download] Failed for {url}: {e}")
            raise S3DownloadError(url, str(e))
        return response.content

    async def delete_document(self, key: str) -> bool:
        """Best-effort delete, used to clean up after a failed workflow"""
        try:
            client = self._get_client()
            await self._run(client.delete_object, Bucket=self._bucket_name, Key=key)
            logger.info(f"Deleted file from S3: {key}")
            return True
        except (ClientError, BotoCoreError, ConnectionError, TimeoutError) as e:
            logger.error(f"Failed to delete file from S3: {e}")
            return False

    async def check_health(self) -> bool:
        try:
            client = self._get_client()
            await self._run(client.head_bucket, Bucket=self._bucket_name)
            return True
        except (ClientError, BotoCoreError, ConnectionError, TimeoutError) as e:
            logger.warning(f"Storage health check failed: {e}")
            return False

    async def close(self) -> None:
        await self._http.aclose()


__all__ = [
    "StorageService",
    "build_document_key",
    "build_document_filename",
    "sanitize_key_part",
]
