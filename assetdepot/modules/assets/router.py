import logging
import uuid
from fastapi import APIRouter, UploadFile, File, Depends, HTTPException, Response
from sqlalchemy.ext.asyncio import AsyncSession
from assetdepot.core.config import settings
from assetdepot.core.db import get_session
from assetdepot.core.errors import (
    AssetError,
    FetchError,
    OperationVetoedError,
    SourceNotFoundError,
    TransportWriteError,
    UnknownTransportError,
)
from assetdepot.modules.assets.hooks import HookChain
from assetdepot.modules.assets.models import Asset
from assetdepot.modules.assets.schemas import AssetFromUrlIn, AssetOut
from assetdepot.modules.assets.service import AssetService

log = logging.getLogger(__name__)

router = APIRouter()

# shared by every request; main.py registers the host middlewares on startup
hooks = HookChain()

def svc(session: AsyncSession = Depends(get_session)) -> AssetService:
    return AssetService(session, hooks=hooks)

def _http_error(e: AssetError) -> HTTPException:
    if isinstance(e, SourceNotFoundError):
        return HTTPException(status_code=400, detail=str(e))
    if isinstance(e, (FetchError, TransportWriteError)):
        return HTTPException(status_code=502, detail=str(e))
    if isinstance(e, OperationVetoedError):
        return HTTPException(status_code=409, detail=str(e))
    if isinstance(e, UnknownTransportError):
        log.error("asset transport misconfigured: %s", e)
    return HTTPException(status_code=500, detail=str(e))

async def _load(service: AssetService, asset_id: uuid.UUID) -> Asset:
    obj = await service.get(asset_id)
    if obj is None:
        raise HTTPException(status_code=404, detail="Asset not found")
    return obj

@router.post("/upload", response_model=AssetOut, status_code=201)
async def upload_asset(file: UploadFile = File(...), service: AssetService = Depends(svc)):
    if file.size is not None and file.size > settings.MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=413, detail=f"File too large (>{settings.MAX_UPLOAD_BYTES} bytes)")
    data = await file.read()
    try:
        obj = await service.from_buffer(Asset(), data, file.filename or "")
    except AssetError as e:
        raise _http_error(e) from e
    return await service.sanitise(obj)

@router.post("/from-url", response_model=AssetOut, status_code=201)
async def asset_from_url(payload: AssetFromUrlIn, service: AssetService = Depends(svc)):
    try:
        obj = await service.from_url(Asset(), str(payload.link))
    except AssetError as e:
        raise _http_error(e) from e
    return await service.sanitise(obj)

@router.get("", response_model=list[AssetOut])
async def list_assets(limit: int = 50, service: AssetService = Depends(svc)):
    return [await service.sanitise(obj) for obj in await service.list(limit=min(limit, 200))]

@router.get("/{asset_id}", response_model=AssetOut)
async def get_asset(asset_id: uuid.UUID, service: AssetService = Depends(svc)):
    return await service.sanitise(await _load(service, asset_id))

@router.delete("/{asset_id}", status_code=204)
async def delete_asset(asset_id: uuid.UUID, service: AssetService = Depends(svc)):
    obj = await _load(service, asset_id)
    try:
        await service.remove(obj)
    except AssetError as e:
        raise _http_error(e) from e
    return Response(status_code=204)
