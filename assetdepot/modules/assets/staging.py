"""Scratch-file staging for non-local origins.

Buffers and URL bodies are written to ``<scratch>/<hash>`` so the ingestion
pipeline can always commit from a local path. Every staged file is released
once the caller is done with it, on success and on failure.
"""
import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator
import httpx
from assetdepot.core.config import settings
from assetdepot.core.errors import FetchError

log = logging.getLogger("asset.staging")

def default_scratch_dir() -> Path:
    return Path(settings.APP_ROOT) / "data" / "cache" / "tmp"

class TempStaging:
    def __init__(self, scratch_dir: str | os.PathLike | None = None, max_bytes: int | None = None):
        self.scratch_dir = Path(scratch_dir) if scratch_dir is not None else default_scratch_dir()
        self.max_bytes = max_bytes if max_bytes is not None else settings.MAX_UPLOAD_BYTES

    def path_for(self, key: str) -> Path:
        return self.scratch_dir / key

    def _ensure_dir(self) -> None:
        self.scratch_dir.mkdir(parents=True, exist_ok=True)

    async def stage_buffer(self, data: bytes, key: str) -> Path:
        self._ensure_dir()
        path = self.path_for(key)
        try:
            with open(path, "wb") as f:
                f.write(data)
        except BaseException:
            self.release(path)
            raise
        return path

    async def stage_url(self, url: str, key: str, client: httpx.AsyncClient) -> Path:
        """Stream ``url`` into the scratch directory.

        The body is iterated to exhaustion and the file closed before this
        returns, so the staged file is never observed half-written.
        """
        self._ensure_dir()
        path = self.path_for(key)
        try:
            async with client.stream("GET", url) as response:
                if not response.is_success:
                    raise FetchError(url, f"HTTP {response.status_code}", status_code=response.status_code)
                written = 0
                with open(path, "wb") as f:
                    async for chunk in response.aiter_bytes():
                        written += len(chunk)
                        if written > self.max_bytes:
                            raise FetchError(url, f"body exceeds {self.max_bytes} bytes", status_code=response.status_code)
                        f.write(chunk)
                expected = response.headers.get("content-length")
                if expected is not None and "content-encoding" not in response.headers and int(expected) != written:
                    raise FetchError(url, f"truncated body ({written} of {expected} bytes)", status_code=response.status_code)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            self.release(path)
            raise FetchError(url, str(e) or e.__class__.__name__) from e
        except BaseException:
            self.release(path)
            raise
        log.debug("staged %s (%s bytes) from %s", path.name, written, url)
        return path

    def release(self, path: str | os.PathLike) -> None:
        try:
            os.remove(path)
        except FileNotFoundError:
            pass
        except OSError:
            log.warning("could not release staged file %s", path, exc_info=True)

    @asynccontextmanager
    async def staged_buffer(self, data: bytes, key: str) -> AsyncIterator[Path]:
        path = await self.stage_buffer(data, key)
        try:
            yield path
        finally:
            self.release(path)

    @asynccontextmanager
    async def staged_url(self, url: str, key: str, client: httpx.AsyncClient) -> AsyncIterator[Path]:
        path = await self.stage_url(url, key, client)
        try:
            yield path
        finally:
            self.release(path)
