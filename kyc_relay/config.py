"""Application configuration using Pydantic Settings."""

from typing import List, Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Onfido
    ONFIDO_API_TOKEN: str
    ONFIDO_API_BASE: str = "https://api.us.onfido.com"
    ONFIDO_API_VERSION: str = "v3.6"
    ONFIDO_TIMEOUT_SECONDS: float = 30.0
    ONFIDO_WEBHOOK_TOKEN: Optional[str] = None  # Enables X-SHA2-Signature checks

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 3000
    LOG_LEVEL: str = "INFO"

    # CORS
    CORS_ORIGINS: str = ""  # Comma separated; empty means "*"
    CORS_ORIGIN_REGEX: Optional[str] = None  # e.g. r"^https://([a-z0-9-]+\.)*vercel\.app$"

    # Webhook store
    MERGE_PRECEDENCE: Literal["webhook", "live"] = "webhook"
    STORE_MAX_RUNS: int = 10000  # 0 disables the size bound
    STORE_TTL_SECONDS: int = 7 * 24 * 3600  # 0 disables expiry

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True)

    @property
    def cors_origins(self) -> List[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]


# Global settings instance
settings = Settings()
