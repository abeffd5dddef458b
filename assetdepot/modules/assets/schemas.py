from datetime import datetime
from pydantic import BaseModel, HttpUrl

class AssetFromUrlIn(BaseModel):
    link: HttpUrl

class AssetOut(BaseModel):
    id: str | None
    url: str | None
    name: str | None
    hash: str | None
    created: datetime | None
    updated: datetime | None
