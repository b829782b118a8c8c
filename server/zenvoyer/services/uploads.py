"""Disk-backed acceptance of uploaded logos and attachments."""

import time
import random
import logging
from pathlib import Path
from typing import Callable, Optional
from dataclasses import dataclass

from fastapi import UploadFile
from starlette.concurrency import run_in_threadpool

from ..config import Settings
from ..errors import UploadRejectedError

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = frozenset({".jpg", ".jpeg", ".png", ".gif"})
DOCUMENT_EXTENSIONS = IMAGE_EXTENSIONS | {".pdf", ".doc", ".docx"}

CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True)
class UploadPolicy:
    """Which files an endpoint accepts."""
    field_name: str
    allowed_extensions: frozenset
    max_size: int
    rejected_message: str
    rejected_key: str
    success_message: str
    success_key: str


@dataclass
class StoredUpload:
    """An accepted upload after it was written to disk."""
    filename: str
    path: str
    size: int
    mimetype: str


def logo_policy(settings: Settings) -> UploadPolicy:
    return UploadPolicy(
        field_name="logo",
        allowed_extensions=IMAGE_EXTENSIONS,
        max_size=settings.max_image_size,
        rejected_message="Only image files are allowed",
        rejected_key="errors.imagesOnly",
        success_message="Logo uploaded successfully",
        success_key="upload.logoUploaded",
    )


def attachment_policy(settings: Settings) -> UploadPolicy:
    return UploadPolicy(
        field_name="file",
        allowed_extensions=DOCUMENT_EXTENSIONS,
        max_size=settings.max_attachment_size,
        rejected_message="Only image and document files are allowed",
        rejected_key="errors.imagesAndDocuments",
        success_message="File uploaded successfully",
        success_key="upload.fileUploaded",
    )


class UploadService:
    """Validate uploads against a policy and persist the ones that pass."""

    def __init__(
        self,
        upload_dir: Path,
        url_prefix: str = "/uploads",
        clock: Callable[[], float] = time.time,
        rng: Optional[random.Random] = None,
    ):
        self.upload_dir = Path(upload_dir)
        self.url_prefix = url_prefix.rstrip("/")
        self._clock = clock
        self._rng = rng or random.Random()

    def generate_filename(self, field_name: str, original_name: str) -> str:
        """``<field>-<epoch ms>-<random>.<ext>``, keeping the original extension."""
        timestamp = int(self._clock() * 1000)
        suffix = self._rng.randint(0, 10**9)
        return f"{field_name}-{timestamp}-{suffix}{Path(original_name).suffix}"

    @staticmethod
    def check_extension(policy: UploadPolicy, original_name: str) -> None:
        if Path(original_name).suffix.lower() not in policy.allowed_extensions:
            raise UploadRejectedError(policy.rejected_message, 400, policy.rejected_key)

    @staticmethod
    async def read_limited(upload: UploadFile, max_size: int) -> bytes:
        """Read the whole upload, rejecting it as soon as it exceeds max_size."""
        chunks = []
        total = 0
        while True:
            chunk = await upload.read(CHUNK_SIZE)
            if not chunk:
                break
            total += len(chunk)
            if total > max_size:
                raise UploadRejectedError("File too large", 413, "errors.fileTooLarge")
            chunks.append(chunk)
        return b"".join(chunks)

    async def accept(self, policy: UploadPolicy, upload: Optional[UploadFile]) -> StoredUpload:
        """Validate and store an upload; nothing touches disk unless it conforms."""
        if upload is None or not upload.filename:
            raise UploadRejectedError("No file uploaded", 400, "errors.noFile")

        original_name = Path(upload.filename).name
        self.check_extension(policy, original_name)
        content = await self.read_limited(upload, policy.max_size)

        filename = self.generate_filename(policy.field_name, original_name)
        self.upload_dir.mkdir(parents=True, exist_ok=True)
        await run_in_threadpool((self.upload_dir / filename).write_bytes, content)

        logger.info(f"Stored upload {original_name} as {filename} ({len(content)} bytes)")
        return StoredUpload(
            filename=filename,
            path=f"{self.url_prefix}/{filename}",
            size=len(content),
            mimetype=upload.content_type or "application/octet-stream",
        )
