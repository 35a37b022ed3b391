from fastapi import APIRouter
from .websocket import router as ws_router
from .system import router as system_router
from .scan import router as scan_router
from .transforms import router as transforms_router
from .clouds import router as clouds_router
from .logs import router as logs_router

router = APIRouter(prefix="/api/v1")
router.include_router(system_router)
router.include_router(scan_router)
router.include_router(transforms_router)
router.include_router(clouds_router)
router.include_router(logs_router)
router.include_router(ws_router)
