"""
Cloud To Scan API Server

Turns a stream of 3D point clouds into planar range scans, published over
websocket topics while at least one client listens.

Environment Variables:
    HOST: Server host address (default: 0.0.0.0)
    PORT: Server port (default: 8005)
    DEBUG: Enable debug mode with auto-reload (default: false)
    LOG_LEVEL: Root log level, TRACE shows every rejected point (default: INFO)
    LOG_DIR: Directory for the rotating log file (default: cloudscan/config/logs)
    SCAN_SOURCE: Point cloud source for the default node, "push" or "pcd" (default: push)
    SCAN_PCD_PATH: PCD file replayed when SCAN_SOURCE=pcd (default: ./test.pcd)
    SCAN_CLOUD_FRAME_ID: Frame id stamped on incoming clouds (default: kinect_depth_optical_frame)
    SCAN_RATE_HZ: Replay rate of the PCD feed (default: 10)
    SCAN_PARAMS_FILE: Optional JSON file with scan parameter overrides
    SCAN_NODES_FILE: Optional JSON file with a list of node definitions

CLI Usage:
    python main.py

    # Replay a recorded cloud
    SCAN_SOURCE=pcd SCAN_PCD_PATH=./room.pcd python main.py
"""

import uvicorn

from cloudscan.core.config import settings

if __name__ == "__main__":
    port = settings.PORT
    host = settings.HOST

    print(f"Starting {settings.PROJECT_NAME} on {host}:{port}")
    print(f"Point cloud source: {settings.SCAN_SOURCE}")

    # If reload is enabled, restrict watch scope to backend code only.
    reload_enabled = bool(settings.DEBUG)
    reload_dirs = None
    if reload_enabled:
        from pathlib import Path

        repo_root = Path(__file__).resolve().parent
        reload_dirs = [str(repo_root / "cloudscan")]

    uvicorn.run(
        "cloudscan.app:app",
        host=host,
        port=port,
        reload=reload_enabled,
        reload_dirs=reload_dirs,
    )
