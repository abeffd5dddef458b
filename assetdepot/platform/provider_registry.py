from typing import Callable
from assetdepot.core.config import settings
from assetdepot.core.errors import UnknownTransportError
from assetdepot.platform.ports.transport import TransportPort
from assetdepot.platform.ports.event_bus import EventBusPort
from assetdepot.platform.adapters.bus_noop import NoopEventBus

DEFAULT_TRANSPORT = "local"

class TransportRegistry:
    """Name -> transport lookup. Factories run on first resolve and are cached."""

    def __init__(self, default: str | None = None):
        self._factories: dict[str, Callable[[], TransportPort]] = {}
        self._instances: dict[str, TransportPort] = {}
        self._default = default

    def register(self, name: str, factory: Callable[[], TransportPort] | TransportPort) -> None:
        self._instances.pop(name, None)
        # classes satisfy the protocol check too; they are factories, not instances
        if isinstance(factory, type) or not isinstance(factory, TransportPort):
            self._factories[name] = factory
        else:
            self._instances[name] = factory
            self._factories[name] = lambda: factory

    def names(self) -> list[str]:
        return sorted(self._factories)

    def resolve(self, name: str) -> TransportPort:
        if name not in self._instances:
            factory = self._factories.get(name)
            if factory is None:
                raise UnknownTransportError(name)
            self._instances[name] = factory()
        return self._instances[name]

    def default_name(self) -> str:
        return self._default or settings.ASSET_TRANSPORT or DEFAULT_TRANSPORT

    def name_for(self, asset) -> str:
        return asset.transport or self.default_name()

def _local_transport() -> TransportPort:
    from assetdepot.platform.adapters.transport_local import LocalFilesystemTransport
    return LocalFilesystemTransport(settings.LOCAL_STORAGE_ROOT)

def _s3_transport() -> TransportPort:
    from assetdepot.platform.adapters.transport_s3 import S3Transport
    return S3Transport()

class ProviderRegistry:
    _transports: TransportRegistry | None = None
    _event_bus: EventBusPort | None = None

    @classmethod
    def transports(cls) -> TransportRegistry:
        if cls._transports is None:
            transports = TransportRegistry()
            transports.register("local", _local_transport)
            transports.register("s3", _s3_transport)
            cls._transports = transports
        return cls._transports

    @classmethod
    def event_bus(cls) -> EventBusPort:
        if cls._event_bus is None:
            prov = (settings.EVENT_BUS_PROVIDER or "noop").lower()
            if prov == "redis":
                from assetdepot.platform.adapters.bus_redis import RedisEventBus
                cls._event_bus = RedisEventBus()
            else:
                cls._event_bus = NoopEventBus()
        return cls._event_bus

registry = ProviderRegistry()
