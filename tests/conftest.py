import os

# settings are read at import time; keep the test run off postgres
os.environ.setdefault("DATABASE_DSN", "sqlite+aiosqlite:///./.pytest-assets.db")
os.environ.setdefault("EVENT_BUS_PROVIDER", "noop")

import pytest
import pytest_asyncio
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from assetdepot.core.base import Base
from assetdepot.core.errors import TransportWriteError
from assetdepot.modules.assets.models import Asset
from assetdepot.modules.assets.staging import TempStaging
from assetdepot.platform.adapters.transport_local import LocalFilesystemTransport
from assetdepot.platform.provider_registry import TransportRegistry


class RecordingBus:
    def __init__(self):
        self.events: list[dict] = []

    async def publish(self, topic: str, key: str, value: dict, headers: dict | None = None) -> None:
        self.events.append({"topic": topic, "key": key, **value})


class FailingTransport:
    """Transport whose writes always fail."""

    def __init__(self):
        self.pushed: list[str] = []

    async def push(self, asset, source_path: str) -> None:
        self.pushed.append(asset.hash)
        raise TransportWriteError("disk full")

    async def remove(self, asset) -> None:
        raise TransportWriteError("disk full")

    async def url_for(self, asset) -> str | None:
        return None


@pytest_asyncio.fixture
async def sessionmaker(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'assets.db'}", poolclass=NullPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)
    await engine.dispose()


@pytest_asyncio.fixture
async def session(sessionmaker):
    async with sessionmaker() as session:
        yield session


@pytest.fixture
def store_dir(tmp_path):
    return tmp_path / "store"


@pytest.fixture
def scratch_dir(tmp_path):
    return tmp_path / "cache" / "tmp"


@pytest.fixture
def local_transport(store_dir):
    return LocalFilesystemTransport(str(store_dir), public_url="")


@pytest.fixture
def transports(local_transport):
    registry = TransportRegistry(default="local")
    registry.register("local", local_transport)
    return registry


@pytest.fixture
def staging(scratch_dir):
    return TempStaging(scratch_dir)


@pytest.fixture
def bus():
    return RecordingBus()


@pytest.fixture
def count_assets(sessionmaker):
    async def count() -> int:
        async with sessionmaker() as s:
            return await s.scalar(select(func.count()).select_from(Asset))
    return count


@pytest.fixture
def failing_transport():
    return FailingTransport()
