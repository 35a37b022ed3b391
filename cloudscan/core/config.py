import os


class Settings:
    # API Settings
    PROJECT_NAME: str = "Cloud To Scan API"
    VERSION: str = "0.4.0"
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", 8005))
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")  # TRACE, DEBUG, INFO, WARNING, ERROR
    LOG_DIR: str = os.getenv("LOG_DIR", "")

    # Input feed settings
    SCAN_SOURCE: str = os.getenv("SCAN_SOURCE", "push")  # "push" or "pcd"
    SCAN_PCD_PATH: str = os.getenv("SCAN_PCD_PATH", "./test.pcd")
    SCAN_CLOUD_FRAME_ID: str = os.getenv("SCAN_CLOUD_FRAME_ID", "kinect_depth_optical_frame")
    SCAN_RATE_HZ: float = float(os.getenv("SCAN_RATE_HZ", 10.0))

    # Optional JSON files: scan parameter overrides and node definitions
    SCAN_PARAMS_FILE: str = os.getenv("SCAN_PARAMS_FILE", "")
    SCAN_NODES_FILE: str = os.getenv("SCAN_NODES_FILE", "")

    # Transform buffer
    TF_CACHE_TIME: float = float(os.getenv("TF_CACHE_TIME", 10.0))


settings = Settings()
