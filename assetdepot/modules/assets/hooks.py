import logging
from typing import Awaitable, Callable
from assetdepot.modules.assets.models import Asset
from assetdepot.platform.ports.event_bus import EventBusPort

log = logging.getLogger("asset.hooks")

CREATE = "create"
REMOVE = "remove"

Operation = Callable[[], Awaitable[None]]
Middleware = Callable[[Asset, Operation], Awaitable[None]]

class HookChain:
    """Middlewares wrapped around the create and remove units.

    A middleware is ``async def mw(asset, call_next)``. It observes the unit by
    awaiting ``call_next()`` and vetoes it by raising instead.
    """

    def __init__(self):
        self._middlewares: dict[str, list[Middleware]] = {CREATE: [], REMOVE: []}

    def use(self, event: str, middleware: Middleware) -> Middleware:
        if event not in self._middlewares:
            raise ValueError(f"Unknown hook event '{event}'")
        self._middlewares[event].append(middleware)
        return middleware

    async def run(self, event: str, asset: Asset, operation: Operation) -> None:
        call = operation
        # first registered middleware is the outermost
        for mw in reversed(self._middlewares[event]):
            call = _bind(mw, asset, call)
        await call()

def _bind(mw: Middleware, asset: Asset, call_next: Operation) -> Operation:
    async def step() -> None:
        await mw(asset, call_next)
    return step

_EVENT_TYPES = {CREATE: "ASSET_CREATED", REMOVE: "ASSET_REMOVED"}

def publish_events(bus: EventBusPort, event: str) -> Middleware:
    """Middleware that publishes ASSET_CREATED / ASSET_REMOVED once the unit succeeded."""
    event_type = _EVENT_TYPES[event]

    async def middleware(asset: Asset, call_next: Operation) -> None:
        await call_next()
        # the unit is already committed; a bus outage must not turn it into a failure
        try:
            await bus.publish(topic="asset.events", key=str(asset.hash or "-"), value={
                "event_type": event_type,
                "asset_id": str(asset.id) if asset.id else None,
                "hash": asset.hash,
                "transport": asset.transport,
                "size": asset.size,
            })
        except Exception:
            log.exception("could not publish %s for asset %s", event_type, asset.hash)
    return middleware
