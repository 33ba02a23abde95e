from pathlib import Path
from typing import List

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Load env from .env file
    model_config = {"env_file": ".env", "extra": "ignore"}

    # Remote source store
    SOURCE_BASE_URL: str = "https://brotemedia.sfo3.cdn.digitaloceanspaces.com/winfo/"
    UPLOADS_PREFIX: str = "uploads/"
    ADS_PREFIX: str = "ads/"
    FETCH_TIMEOUT_SECONDS: float = 10.0

    # Artifact cache
    CACHE_DIR: Path = Path("cache")
    CACHE_MAX_AGE_SECONDS: int = 31536000  # 1 year
    SINGLE_FLIGHT: bool = True

    # Encoder effort, 0 (fast) .. 6 (slowest, smallest)
    WEBP_METHOD: int = 4

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8087
    ALLOWED_ORIGINS: List[str] = ["*"]
    LOG_LEVEL: str = "INFO"


# Instantiate settings
settings = Settings()
