from fastapi import APIRouter
from assetdepot.modules.assets.router import router as assets_router

api_router = APIRouter()
api_router.include_router(assets_router, prefix="/assets", tags=["assets"])

@api_router.get("/health", tags=["health"])
async def health():
    return {"status": "ok"}
