from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Centralized application settings loaded from environment.

    Required env vars (.env):
      - DATABASE_URL (Postgres or SQLite connection string)
      - JWT_SECRET (HS256 secret shared with the auth gateway)

    Optional:
      - PRODUCT_SERVICE_URL / ORDER_SERVICE_URL (upstream base URLs)
      - *_TIMEOUT_SECONDS (bounded timeouts for upstream calls)
      - CART_WRITE_MAX_ATTEMPTS (retries when a cart version conflicts)
    """

    PROJECT_NAME: str = "Classroom Cart Service"
    API_V1_STR: str = "/api/v1"

    # DB config
    DATABASE_URL: str

    # JWT verification (backend-side)
    JWT_SECRET: str
    JWT_ALG: str = "HS256"

    # Upstream services
    PRODUCT_SERVICE_URL: str = "http://product-service:8080"
    ORDER_SERVICE_URL: str = "http://order-service:8080"
    PRODUCT_SERVICE_TIMEOUT_SECONDS: float = 5.0
    ORDER_SERVICE_TIMEOUT_SECONDS: float = 10.0

    # Optimistic concurrency on cart documents
    CART_WRITE_MAX_ATTEMPTS: int = 5

    LOG_LEVEL: str = "INFO"

    # Comma-separated list
    CORS_ORIGINS: str = "http://localhost:3000"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]


@lru_cache
def get_settings() -> Settings:
    """
    Cached settings loader.
    Ensures we don't re-parse .env on every import / request.
    """
    return Settings()
