"""Environment-based configuration for the pipeline fields service."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Pipeline fields settings, loaded from environment variables."""

    # Server
    PORT: int = 8092
    LOG_LEVEL: str = "INFO"

    # Pipeline server connection (empty = schema fetching disabled)
    PIPELINE_SERVER_URL: str = ""

    # Pipeline server timeouts and retry
    PIPELINE_TIMEOUT_SECONDS: int = 30
    PIPELINE_CONNECT_TIMEOUT: int = 5
    PIPELINE_RETRY_ATTEMPTS: int = 3
    PIPELINE_RETRY_DELAY: float = 1.0
    PIPELINE_RETRY_BACKOFF: float = 2.0

    # Deployment-wide additions to the built-in exclusion list (JSON list)
    EXTRA_EXCLUDED_FIELDS: list[str] = []

    model_config = {"env_prefix": "", "case_sensitive": True}


settings = Settings()
