"""
Media host integration for avatar and cover images.

Uploaded files are staged on local disk, pushed to Cloudinary through its
upload REST API, and removed locally whatever the outcome. Upload failures
are logged and reported as ``None`` so the caller decides how critical
a missing URL is.
"""

import asyncio
import hashlib
import time
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from functools import lru_cache
from pathlib import Path

import httpx
from fastapi import UploadFile

from app.config import settings
from app.core.errors import PayloadTooLargeError
from app.core.logging import get_logger

logger = get_logger(__name__)


def _write_staged_file(directory: Path, filename: str, content: bytes) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / filename
    path.write_bytes(content)
    return path


@asynccontextmanager
async def staged_upload(file: UploadFile | None) -> AsyncIterator[Path | None]:
    """
    Save a multipart upload to UPLOAD_TEMP_DIR for the duration of the block.

    Yields None when no file (or an empty file) was sent. The staged file is
    deleted on exit, including when the block raises.

    Raises:
        PayloadTooLargeError: the file exceeds MAX_UPLOAD_SIZE
    """
    if file is None or not file.filename:
        yield None
        return

    content = await file.read(settings.MAX_UPLOAD_SIZE + 1)
    if not content:
        yield None
        return
    if len(content) > settings.MAX_UPLOAD_SIZE:
        raise PayloadTooLargeError(
            f"File too large. Maximum size is {settings.MAX_UPLOAD_SIZE // (1024 * 1024)}MB"
        )

    suffix = Path(file.filename).suffix.lower()
    loop = asyncio.get_running_loop()
    temp_path = await loop.run_in_executor(
        None,
        _write_staged_file,
        Path(settings.UPLOAD_TEMP_DIR),
        f"{uuid.uuid4().hex}{suffix}",
        content,
    )
    try:
        yield temp_path
    finally:
        temp_path.unlink(missing_ok=True)


class MediaUploader:
    """Client for Cloudinary's signed upload endpoint."""

    def __init__(
        self,
        cloud_name: str,
        api_key: str,
        api_secret: str,
        base_url: str = "https://api.cloudinary.com/v1_1",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.cloud_name = cloud_name
        self.api_key = api_key
        self.api_secret = api_secret
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    @classmethod
    def from_settings(cls) -> "MediaUploader":
        return cls(
            cloud_name=settings.CLOUDINARY_CLOUD_NAME,
            api_key=settings.CLOUDINARY_API_KEY,
            api_secret=settings.CLOUDINARY_API_SECRET,
            base_url=settings.CLOUDINARY_UPLOAD_URL,
            timeout=settings.MEDIA_UPLOAD_TIMEOUT,
        )

    @property
    def configured(self) -> bool:
        return bool(self.cloud_name and self.api_key and self.api_secret)

    @property
    def upload_url(self) -> str:
        # "auto" lets the host detect the resource type
        return f"{self.base_url}/{self.cloud_name}/auto/upload"

    def sign(self, params: dict[str, str]) -> str:
        """SHA-1 over the sorted ``key=value`` pairs followed by the API secret."""
        to_sign = "&".join(f"{key}={params[key]}" for key in sorted(params))
        return hashlib.sha1(f"{to_sign}{self.api_secret}".encode()).hexdigest()

    async def upload(self, local_path: Path | str | None) -> str | None:
        """
        Upload a local file and return its public URL.

        The local file is deleted on every exit path.

        Args:
            local_path: Path of the staged file, or None

        Returns:
            The hosted file's URL, or None if there was nothing to upload
            or the upload failed
        """
        if not local_path:
            return None

        path = Path(local_path)
        try:
            if not self.configured:
                logger.warning("media_host_not_configured", path=str(path))
                return None

            content = await asyncio.get_running_loop().run_in_executor(None, path.read_bytes)
            params = {"timestamp": str(int(time.time()))}
            data = {**params, "api_key": self.api_key, "signature": self.sign(params)}

            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(
                    self.upload_url,
                    data=data,
                    files={"file": (path.name, content)},
                )
                response.raise_for_status()
                result = response.json()

            url = result.get("secure_url") or result.get("url")
            if not url:
                logger.error("media_upload_failed", path=str(path), error="response missing url")
                return None

            logger.info("media_uploaded", url=url, size_bytes=len(content))
            return url

        except (httpx.HTTPError, OSError, ValueError) as e:
            logger.error("media_upload_failed", path=str(path), error=str(e))
            return None
        finally:
            path.unlink(missing_ok=True)


@lru_cache(maxsize=1)
def get_media_uploader() -> MediaUploader:
    """Dependency returning the process-wide uploader."""
    return MediaUploader.from_settings()
