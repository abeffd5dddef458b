import uuid
from typing import Sequence
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from assetdepot.modules.assets.models import Asset

class AssetRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def save(self, obj: Asset) -> Asset:
        self.session.add(obj)
        await self.session.flush()
        return obj

    async def get(self, asset_id: uuid.UUID) -> Asset | None:
        return await self.session.get(Asset, asset_id)

    async def list(self, limit: int = 50) -> Sequence[Asset]:
        q = select(Asset).order_by(Asset.created_at.desc()).limit(limit)
        res = await self.session.execute(q)
        return res.scalars().all()

    async def delete(self, obj: Asset) -> None:
        await self.session.delete(obj)
        await self.session.flush()
