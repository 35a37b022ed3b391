import asyncio
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from cloudscan.api.v1 import router as api_router
from cloudscan.core.config import settings
from cloudscan.core.logging_config import get_logger
from cloudscan.services.nodes.instance import node_manager
from cloudscan.services.websocket.manager import manager

logger = get_logger("cloudscan")


@asynccontextmanager
async def lifespan(_: FastAPI):
    # Startup
    node_manager.load_config()
    node_manager.start(asyncio.get_running_loop())
    logger.info(f"{settings.PROJECT_NAME} {settings.VERSION} started with {len(node_manager.nodes)} node(s)")

    yield

    # Shutdown
    node_manager.stop()
    manager.reset_active_connections()

app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Projects 3D point clouds into planar range scans",
    version=settings.VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)
