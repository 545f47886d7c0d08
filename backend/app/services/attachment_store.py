"""
Attachment Store - best-effort upload of suggestion images.

Accepts a base64 payload (raw or as a data: URI), checks it is a supported
image within the size limit, and writes it to object storage. Failures are
reported in the result and never raised: a suggestion is saved without its
image rather than rejected.
"""
import asyncio
import base64
import binascii
import re
from dataclasses import dataclass
from typing import Optional, Tuple

from app.core.config import settings
from app.core.exceptions import StorageError
from app.core.logging_config import logger
from app.core.types import generate_uuid
from app.utils.storage_client import StorageClient


NOT_CONFIGURED_ERROR = "Image upload not configured"

DATA_URI_PATTERN = re.compile(r"^data:(?P<mime>[\w/+.-]+);base64,(?P<data>.*)$", re.DOTALL)

IMAGE_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
}


@dataclass
class AttachmentResult:
    success: bool
    url: Optional[str] = None
    error: Optional[str] = None


def sniff_image_type(data: bytes) -> Optional[str]:
    """MIME type from magic bytes, None when not a supported image"""
    if data.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if data.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if data[:6] in (b"GIF87a", b"GIF89a"):
        return "image/gif"
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    return None


def decode_image_payload(payload: str, max_bytes: int) -> Tuple[bytes, str]:
    """
    Decode a base64 image.

    Returns:
        (raw bytes, MIME type)

    Raises:
        StorageError: malformed base64, unsupported type, or too large
    """
    declared_mime = None
    match = DATA_URI_PATTERN.match(payload.strip())
    encoded = payload.strip()
    if match:
        declared_mime = match.group("mime").lower()
        encoded = match.group("data")

    if declared_mime and declared_mime not in IMAGE_EXTENSIONS:
        raise StorageError(f"Unsupported image type: {declared_mime}")

    # Refuse before decoding when the encoded text alone is over the limit
    if len(encoded) * 3 // 4 > max_bytes + 3:
        raise StorageError(f"Image exceeds {max_bytes // 1024 // 1024}MB limit")

    try:
        data = base64.b64decode(re.sub(r"\s+", "", encoded), validate=True)
    except (binascii.Error, ValueError):
        raise StorageError("Image is not valid base64")

    if not data:
        raise StorageError("Image is empty")
    if len(data) > max_bytes:
        raise StorageError(f"Image exceeds {max_bytes // 1024 // 1024}MB limit")

    mime = sniff_image_type(data) or declared_mime
    if mime is None:
        raise StorageError("Unsupported image type")
    return data, mime


class AttachmentStore:
    """Attachment adapter over S3/MinIO"""

    def __init__(
        self,
        storage: Optional[StorageClient] = None,
        folder: Optional[str] = None,
        max_bytes: Optional[int] = None,
        timeout_seconds: Optional[float] = None,
    ):
        self.storage = storage
        self.folder = (folder or settings.IMAGE_FOLDER).strip("/")
        self.max_bytes = max_bytes or settings.MAX_IMAGE_BYTES
        self.timeout_seconds = timeout_seconds or settings.UPLOAD_TIMEOUT_SECONDS

    @classmethod
    def from_settings(cls) -> "AttachmentStore":
        if settings.STORAGE_MODE not in ("s3", "minio"):
            logger.info("[Attachments] Image storage disabled (STORAGE_MODE=none)")
            return cls(storage=None)
        return cls(storage=StorageClient())

    @property
    def is_configured(self) -> bool:
        return self.storage is not None

    async def store(self, payload: str) -> AttachmentResult:
        """Upload an image; never raises"""
        if not self.is_configured:
            return AttachmentResult(success=False, error=NOT_CONFIGURED_ERROR)

        try:
            data, mime = decode_image_payload(payload, self.max_bytes)
            object_name = f"{self.folder}/{generate_uuid()}.{IMAGE_EXTENSIONS.get(mime, 'bin')}"
            url = await asyncio.wait_for(
                asyncio.to_thread(self.storage.upload_bytes, data, object_name, mime),
                timeout=self.timeout_seconds,
            )
            logger.log_collaborator_event("storage", f"stored {object_name}")
            return AttachmentResult(success=True, url=url)

        except StorageError as e:
            logger.log_collaborator_event("storage", e.message, degraded=True)
            return AttachmentResult(success=False, error=e.message)
        except asyncio.TimeoutError:
            logger.log_collaborator_event(
                "storage", f"upload timed out after {self.timeout_seconds}s", degraded=True
            )
            return AttachmentResult(success=False, error="Image upload timed out")
        except Exception as e:
            logger.log_collaborator_event("storage", f"{type(e).__name__}: {e}", degraded=True)
            return AttachmentResult(success=False, error="Image upload failed")
