class AssetError(Exception):
    """Base class for every failure raised by the ingestion core."""


class SourceNotFoundError(AssetError):
    def __init__(self, location: str):
        super().__init__(f"Asset source does not exist in {location}")
        self.location = location


class FetchError(AssetError):
    """A URL origin was unreachable, answered non-2xx, or sent a bad body."""

    def __init__(self, url: str, reason: str, status_code: int | None = None):
        super().__init__(f"Failed to fetch {url}: {reason}")
        self.url = url
        self.reason = reason
        self.status_code = status_code


class UnknownTransportError(AssetError):
    def __init__(self, name: str):
        super().__init__(f"Unknown asset transport '{name}'")
        self.name = name


class TransportError(AssetError):
    pass


class TransportWriteError(TransportError):
    pass


class TransportNotFoundError(TransportError):
    """The stored object is already gone; callers treat removal as done."""


class OperationVetoedError(AssetError):
    """Raised by a hook middleware to refuse a create or remove unit."""
