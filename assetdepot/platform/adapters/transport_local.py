import asyncio
import logging
import os
import shutil
import uuid
from urllib.parse import quote
from assetdepot.core.config import settings
from assetdepot.core.errors import TransportNotFoundError, TransportWriteError
from assetdepot.platform.ports.transport import TransportPort

log = logging.getLogger("transport.local")

class LocalFilesystemTransport(TransportPort):
    def __init__(self, root: str | None = None, public_url: str | None = None):
        self.root = os.path.abspath(root or settings.LOCAL_STORAGE_ROOT)
        self.public_url = public_url if public_url is not None else settings.LOCAL_PUBLIC_URL
        os.makedirs(self.root, exist_ok=True)

    def _path(self, key: str) -> str:
        safe = key.strip("/").replace("..", "")
        return os.path.join(self.root, safe)

    def _copy(self, source_path: str, dest: str) -> None:
        # copy next to the destination, then rename so readers never see a partial file
        partial = f"{dest}.{uuid.uuid4().hex}.part"
        try:
            shutil.copyfile(source_path, partial)
            os.replace(partial, dest)
        except BaseException:
            if os.path.exists(partial):
                os.remove(partial)
            raise

    async def push(self, asset, source_path: str) -> None:
        dest = self._path(asset.hash)
        try:
            await asyncio.to_thread(self._copy, source_path, dest)
        except OSError as e:
            raise TransportWriteError(f"Could not store {asset.hash} in {self.root}: {e}") from e
        log.debug("stored %s (%s bytes) at %s", asset.hash, asset.size, dest)

    async def remove(self, asset) -> None:
        path = self._path(asset.hash)
        try:
            await asyncio.to_thread(os.remove, path)
        except FileNotFoundError as e:
            raise TransportNotFoundError(f"{asset.hash} not found in {self.root}") from e
        except OSError as e:
            raise TransportWriteError(f"Could not remove {asset.hash} from {self.root}: {e}") from e

    async def url_for(self, asset) -> str | None:
        if not asset.hash:
            return None
        if self.public_url:
            return f"{self.public_url.rstrip('/')}/{quote(asset.hash)}"
        # No public base configured: expose the stored path; serve via nginx or an API proxy in real setups.
        return f"file://{quote(self._path(asset.hash))}"
