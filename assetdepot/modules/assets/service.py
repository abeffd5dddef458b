import logging
import os
import uuid
from contextlib import asynccontextmanager
from typing import Sequence
from urllib.parse import unquote, urlparse
import httpx
from sqlalchemy import inspect
from sqlalchemy.ext.asyncio import AsyncSession
from assetdepot.core.config import settings
from assetdepot.core.errors import (
    SourceNotFoundError,
    TransportError,
    TransportNotFoundError,
    UnknownTransportError,
)
from assetdepot.modules.assets.hooks import CREATE, REMOVE, HookChain
from assetdepot.modules.assets.models import Asset
from assetdepot.modules.assets.repository import AssetRepository
from assetdepot.modules.assets.staging import TempStaging
from assetdepot.platform.ports.event_bus import EventBusPort
from assetdepot.platform.ports.transport import TransportPort
from assetdepot.platform.provider_registry import TransportRegistry, registry

log = logging.getLogger("asset.service")

def extension_of(name: str | None) -> str:
    return os.path.splitext(name or "")[1].lstrip(".").lower()

def name_from_url(link: str) -> str:
    return os.path.basename(unquote(urlparse(link).path))

class AssetService:
    """Ingests assets from a buffer, a URL or a local file and commits them
    through the transport pinned on the record.

    Buffer and URL origins are staged to a scratch file and then go through
    ``from_file``, which is the only place identity is assigned and the
    push + save unit runs.
    """

    def __init__(
        self,
        session: AsyncSession,
        *,
        transports: TransportRegistry | None = None,
        staging: TempStaging | None = None,
        hooks: HookChain | None = None,
        http_client: httpx.AsyncClient | None = None,
        bus: EventBusPort | None = None,
    ):
        self.session = session
        self.repo = AssetRepository(session)
        self.transports = transports or registry.transports()
        self.staging = staging or TempStaging()
        self.hooks = hooks or HookChain()
        self.http_client = http_client
        self.bus = bus

    def _identify(self, asset: Asset, name: str | None) -> None:
        # hash and ext are assigned once and never rewritten
        if asset.ext is None:
            asset.ext = extension_of(name)
        if not asset.hash:
            asset.hash = str(uuid.uuid4())

    @asynccontextmanager
    async def _client(self):
        if self.http_client is not None:
            yield self.http_client
            return
        async with httpx.AsyncClient(follow_redirects=True, timeout=settings.FETCH_TIMEOUT_SECONDS) as client:
            yield client

    async def from_buffer(self, asset: Asset, data: bytes, name: str) -> Asset:
        self._identify(asset, name)
        async with self.staging.staged_buffer(data, asset.hash) as path:
            await self.from_file(asset, str(path), name)
        return asset

    async def from_url(self, asset: Asset, link: str) -> Asset:
        name = name_from_url(link)
        self._identify(asset, name)
        async with self._client() as client:
            async with self.staging.staged_url(link, asset.hash, client) as path:
                await self.from_file(asset, str(path), name)
        return asset

    async def from_file(self, asset: Asset, location: str, name: str | None = None) -> Asset:
        if not os.path.exists(location):
            raise SourceNotFoundError(location)

        # resolve before touching the record so an unknown transport leaves it as it was
        transport_name = self.transports.name_for(asset)
        transport = self.transports.resolve(transport_name)

        self._identify(asset, name)
        asset.name = name or asset.name or (f"{asset.hash}.{asset.ext}" if asset.ext else asset.hash)
        asset.size = os.stat(location).st_size
        asset.transport = transport_name
        # a re-ingest overwrites the object an existing row points at, so it must survive a failed save
        first_commit = not inspect(asset).persistent

        async def commit() -> None:
            await transport.push(asset, location)
            try:
                await self.repo.save(asset)
                await self.session.commit()
            except Exception:
                log.error("saving asset %s failed after push", asset.hash)
                if first_commit:
                    await self._discard(transport, asset)
                await self.session.rollback()
                raise

        await self.hooks.run(CREATE, asset, commit)
        log.info("asset %s committed via %s (%s bytes)", asset.hash, transport_name, asset.size)
        return asset

    # aliases
    file = from_file
    buffer = from_buffer
    download = from_url

    async def _discard(self, transport: TransportPort, asset: Asset) -> None:
        try:
            await transport.remove(asset)
        except TransportError:
            log.warning("could not discard stored object %s", asset.hash, exc_info=True)

    async def remove(self, asset: Asset) -> None:
        async def unit() -> None:
            await self._remove_stored(asset)
            await self.repo.delete(asset)
            await self.session.commit()

        await self.hooks.run(REMOVE, asset, unit)
        log.info("asset %s removed", asset.hash)

    async def _remove_stored(self, asset: Asset) -> None:
        # backend failures never block the metadata delete
        transport_name = self.transports.name_for(asset)
        try:
            await self.transports.resolve(transport_name).remove(asset)
        except TransportNotFoundError:
            log.info("stored object for asset %s already absent from %s", asset.hash, transport_name)
        except (TransportError, UnknownTransportError) as e:
            log.warning("removing asset %s from %s failed; metadata is removed anyway", asset.hash, transport_name, exc_info=True)
            await self._report_remove_failure(asset, transport_name, e)

    async def _report_remove_failure(self, asset: Asset, transport_name: str, error: Exception) -> None:
        bus = self.bus or registry.event_bus()
        try:
            await bus.publish(topic="asset.events", key=str(asset.hash or "-"), value={
                "event_type": "ASSET_TRANSPORT_REMOVE_FAILED",
                "asset_id": str(asset.id) if asset.id else None,
                "hash": asset.hash,
                "transport": transport_name,
                "error": str(error),
            })
        except Exception:
            log.exception("could not publish remove failure for asset %s", asset.hash)

    async def url(self, asset: Asset) -> str | None:
        try:
            transport = self.transports.resolve(self.transports.name_for(asset))
        except UnknownTransportError:
            return None
        return await transport.url_for(asset)

    async def sanitise(self, asset: Asset) -> dict:
        return {
            "id": str(asset.id) if asset.id else None,
            "url": await self.url(asset),
            "name": asset.name,
            "hash": asset.hash,
            "created": asset.created_at,
            "updated": asset.updated_at,
        }

    async def get(self, asset_id: uuid.UUID) -> Asset | None:
        return await self.repo.get(asset_id)

    async def list(self, limit: int = 50) -> Sequence[Asset]:
        return await self.repo.list(limit=limit)
