"""
Upload client for the external image host.
Speaks the Firebase Storage REST upload protocol: the file body is POSTed to
``<bucket>/o?name=<path>`` and the public download URL is built from the
returned object name and download token.
"""
from __future__ import annotations

import base64
import logging
import time
from collections.abc import AsyncIterator, Callable
from urllib.parse import quote

import httpx
from pydantic import BaseModel

from zerobin.core.config import Settings, settings
from zerobin.core.exceptions import UploadError

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int], None]


class ImageFile(BaseModel):
    """A user-selected image held in memory."""

    filename: str
    content: bytes
    content_type: str = "image/jpeg"

    @property
    def size(self) -> int:
        return len(self.content)

    def preview_data_url(self) -> str:
        encoded = base64.b64encode(self.content).decode("ascii")
        return f"data:{self.content_type};base64,{encoded}"


class ImageHostClient:
    def __init__(self, http: httpx.AsyncClient, config: Settings = settings) -> None:
        self._http = http
        self.bucket_url = config.IMAGE_HOST_URL
        self.prefix = config.IMAGE_UPLOAD_PREFIX
        self.token = config.IMAGE_HOST_TOKEN
        self.chunk_size = max(1, config.UPLOAD_CHUNK_SIZE)

    def object_path(self, filename: str) -> str:
        return f"{self.prefix}/{int(time.time() * 1000)}_{filename}"

    async def _stream(
        self, image: ImageFile, on_progress: ProgressCallback | None
    ) -> AsyncIterator[bytes]:
        total = image.size
        sent = 0
        last_percent = -1
        for start in range(0, total, self.chunk_size):
            chunk = image.content[start:start + self.chunk_size]
            sent += len(chunk)
            percent = round(sent / total * 100)
            # Only report whole percent increments
            if percent != last_percent:
                last_percent = percent
                logger.debug("[upload] progress: %s%%", percent)
                if on_progress is not None:
                    on_progress(percent)
            yield chunk

    async def upload(
        self, image: ImageFile, on_progress: ProgressCallback | None = None
    ) -> str:
        """Upload ``image`` and return its public download URL."""
        if not image.content:
            raise UploadError(f"{image.filename} is empty")

        path = self.object_path(image.filename)
        logger.info("[upload] starting: %s -> %s", image.filename, path)
        headers = {
            "Content-Type": image.content_type,
            "Content-Length": str(image.size),
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        try:
            response = await self._http.post(
                self.bucket_url,
                params={"name": path},
                content=self._stream(image, on_progress),
                headers=headers,
            )
        except httpx.TransportError as exc:
            logger.error("[upload] error: %r", exc)
            raise UploadError(f"Upload failed: {exc}") from exc

        if not response.is_success:
            logger.error("[upload] error: HTTP %s %s", response.status_code, response.text[:200])
            raise UploadError(
                f"Upload failed: HTTP {response.status_code}", status_code=response.status_code
            )

        try:
            meta = response.json()
        except ValueError as exc:
            raise UploadError("Upload failed: image host returned an invalid response") from exc

        url = self.download_url(meta, path)
        logger.info("[upload] complete, url: %s", url)
        return url

    def download_url(self, meta: dict, fallback_path: str) -> str:
        if meta.get("downloadUrl"):
            return meta["downloadUrl"]
        name = meta.get("name") or fallback_path
        url = f"{self.bucket_url}/{quote(name, safe='')}?alt=media"
        token = (meta.get("downloadTokens") or "").split(",")[0]
        if token:
            url += f"&token={token}"
        return url
