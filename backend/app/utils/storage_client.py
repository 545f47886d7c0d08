from typing import BinaryIO, Optional
import io

import boto3
from minio import Minio

from app.core.config import settings
from app.core.logging_config import logger


class StorageClient:
    """S3/MinIO object storage for suggestion images (blocking; call from a worker thread)"""

    def __init__(self, use_minio: Optional[bool] = None, bucket_name: Optional[str] = None):
        self.is_minio = settings.STORAGE_MODE == "minio" if use_minio is None else use_minio
        self.bucket_name = bucket_name or settings.S3_BUCKET_NAME

        if self.is_minio:
            self.client = Minio(
                settings.MINIO_ENDPOINT,
                access_key=settings.AWS_ACCESS_KEY_ID,
                secret_key=settings.AWS_SECRET_ACCESS_KEY,
                secure=settings.MINIO_SECURE,
            )
        else:
            self.client = boto3.client(
                's3',
                aws_access_key_id=settings.AWS_ACCESS_KEY_ID or None,
                aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY or None,
                region_name=settings.AWS_REGION,
            )

        self._bucket_checked = False

    def _ensure_bucket_exists(self):
        """Create the bucket on first upload if it is missing"""
        if self._bucket_checked:
            return
        if self.is_minio:
            if not self.client.bucket_exists(self.bucket_name):
                self.client.make_bucket(self.bucket_name)
                logger.info(f"Created MinIO bucket: {self.bucket_name}")
        else:
            try:
                self.client.head_bucket(Bucket=self.bucket_name)
            except self.client.exceptions.ClientError:
                self.client.create_bucket(
                    Bucket=self.bucket_name,
                    CreateBucketConfiguration={'LocationConstraint': settings.AWS_REGION}
                )
                logger.info(f"Created S3 bucket: {self.bucket_name}")
        self._bucket_checked = True

    def upload_bytes(
        self,
        data: bytes,
        object_name: str,
        content_type: Optional[str] = None
    ) -> str:
        """
        Upload an in-memory object.

        Returns:
            Public URL of the stored object
        """
        self._ensure_bucket_exists()
        self._put(io.BytesIO(data), object_name, content_type, len(data))
        logger.info(f"Uploaded object: {object_name} ({len(data)} bytes)")
        return self.get_public_url(object_name)

    def _put(self, file_obj: BinaryIO, object_name: str, content_type: Optional[str], size: int):
        if self.is_minio:
            self.client.put_object(
                self.bucket_name,
                object_name,
                file_obj,
                size,
                content_type=content_type or "application/octet-stream",
            )
        else:
            extra_args = {}
            if content_type:
                extra_args['ContentType'] = content_type
            self.client.upload_fileobj(
                file_obj,
                self.bucket_name,
                object_name,
                ExtraArgs=extra_args
            )

    def get_public_url(self, object_name: str) -> str:
        """Non-expiring URL for an object in a publicly readable bucket"""
        if settings.PUBLIC_MEDIA_BASE_URL:
            return f"{settings.PUBLIC_MEDIA_BASE_URL.rstrip('/')}/{object_name}"
        if self.is_minio:
            scheme = "https" if settings.MINIO_SECURE else "http"
            return f"{scheme}://{settings.MINIO_ENDPOINT}/{self.bucket_name}/{object_name}"
        return f"https://{self.bucket_name}.s3.{settings.AWS_REGION}.amazonaws.com/{object_name}"
