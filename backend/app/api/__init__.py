from fastapi import APIRouter

from .adventures import router as adventures_router
from .data import router as data_router
from .settings import router as settings_router
from .sync import router as sync_router

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(adventures_router, prefix="/adventures", tags=["adventures"])
api_router.include_router(settings_router, prefix="/settings", tags=["settings"])
api_router.include_router(sync_router, prefix="/sync", tags=["sync"])
api_router.include_router(data_router, prefix="/data", tags=["data"])
