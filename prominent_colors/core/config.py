"""
Configuration settings for the Prominent Colors service.
"""
from pydantic import Field
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    """
    API_PREFIX: str = ""
    PROJECT_NAME: str = "Prominent Colors"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8080

    # Request limits
    MAX_REQUEST_BODY_SIZE_MB: int = Field(1, ge=1, description="Maximum request body and image size in MB")
    MAX_PROMINENT_COLORS: int = Field(5, ge=1, description="Upper bound on the number of colors a client may ask for")

    # URL fetching
    DISK_CACHE_DIR: str = "./cache"
    URL_FETCH_TIMEOUT_SECONDS: float = 10.0

    # Result cache
    RESULT_CACHE_TTL_SECONDS: float = 300.0
    RESULT_CACHE_CLEANUP_INTERVAL_SECONDS: float = 600.0

    # Logging
    LOG_DIR: str = "logs"
    LOG_LEVEL: str = "INFO"

    model_config = {
        "env_file": ".env",
        "case_sensitive": True,
        "extra": "ignore"
    }

    @property
    def max_request_body_size_bytes(self) -> int:
        return self.MAX_REQUEST_BODY_SIZE_MB << 20

settings = Settings()
