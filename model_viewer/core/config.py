import os
from pathlib import Path
from typing import Optional

import structlog
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = structlog.get_logger()


class Settings(BaseSettings):
    APP_NAME: str = "APS Model Viewer"
    ENV: str = "local"
    LOG_LEVEL: str = "INFO"

    # Autodesk Platform Services
    APS_BASE_URL: str = "https://developer.api.autodesk.com"
    APS_CLIENT_ID: str = ""
    APS_CLIENT_SECRET: str = ""
    APS_SCOPE: str = "data:write data:read bucket:create bucket:delete"
    APS_REGION: str = "US"
    HTTP_TIMEOUT: float = 60.0  # seconds

    # Object storage
    BUCKET_KEY: str = "model-viewer-bucket"
    BUCKET_POLICY_KEY: str = "transient"
    SIGNED_URL_MINUTES: int = 10

    # Token cache
    TOKEN_CACHE_KEY: str = "sdk_access_token"

    # Browser-side viewer gets its own read-only token
    VIEWER_SCOPE: str = "viewables:read"
    VIEWER_TOKEN_CACHE_KEY: str = "viewer_access_token"

    # Translation polling
    POLLING_INTERVAL: float = 5.0  # seconds
    POLLING_MAX_ATTEMPTS: Optional[int] = 720
    POLLING_TIMEOUT: Optional[float] = 3600.0  # seconds
    ACCEPT_PARTIAL_SUCCESS: bool = False

    # Viewer widget (options documented for SVF2)
    VIEWER_ENV: str = "AutodeskProduction2"
    VIEWER_API: str = "streamingV2"
    VIEWER_CONTAINER_ID: str = "viewer"
    VIEWER_SCRIPT_URL: str = "https://developer.api.autodesk.com/modelderivative/v2/viewers/7.*/viewer3D.min.js"
    VIEWER_STYLE_URL: str = "https://developer.api.autodesk.com/modelderivative/v2/viewers/7.*/style.min.css"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


class LocalSettings(Settings):
    ENV: str = "dev"


class ProductionSettings(Settings):
    ENV: str = "production"
    REDIS_URL: str = Field(..., validation_alias="REDIS_URL")
    APS_CLIENT_ID: str = Field(..., validation_alias="APS_CLIENT_ID")
    APS_CLIENT_SECRET: str = Field(..., validation_alias="APS_CLIENT_SECRET")
    TOKEN_STORE_PATH: Path = Field(default=Path("token_store.json"), validation_alias="TOKEN_STORE_PATH")
    TASK_QUEUE: str = "model_viewer_translations"
    JOB_RESULT_TTL: int = 86400  # seconds a finished job stays queryable


# Factory to choose the right config
def get_settings() -> Settings:
    env = os.getenv("ENV", "local")
    logger.debug("loading_settings", env=env)
    if env == "production":
        return ProductionSettings()  # type: ignore
    return LocalSettings()


settings = get_settings()
