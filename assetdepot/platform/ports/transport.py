from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from assetdepot.modules.assets.models import Asset

@runtime_checkable
class TransportPort(Protocol):
    """Storage medium for asset bytes, keyed by ``asset.hash``.

    ``push`` raises TransportWriteError and must not leave a partial object
    behind. ``remove`` raises TransportNotFoundError when the object is
    already gone. ``url_for`` returns None when no address can be produced.
    """

    async def push(self, asset: "Asset", source_path: str) -> None: ...

    async def remove(self, asset: "Asset") -> None: ...

    async def url_for(self, asset: "Asset") -> str | None: ...
