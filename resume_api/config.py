from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    database_url: str
    jwt_secret_key: str
    jwt_refresh_secret_key: str
    jwt_expires_in: str = "1h"
    jwt_refresh_expires_in: str = "7d"
    environment: str = "development"
    debug: bool = False
    sentry_dsn: str = ""
    frontend_url: str = "http://localhost:3000"
    rate_limit_enabled: bool = True

    # S3-compatible object storage (MinIO, R2, S3)
    s3_endpoint_url: str = ""
    s3_access_key_id: str = ""
    s3_secret_access_key: str = ""
    s3_region: str = "us-east-1"
    s3_bucket: str = "resumes"
    s3_key_prefix: str = "portfolios"
    s3_public_base_url: str = ""
    presigned_url_ttl_seconds: int = 7 * 24 * 60 * 60
    max_portfolio_size: int = 20 * 1024 * 1024  # 20MB

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    @property
    def async_database_url(self) -> str:
        """``database_url`` pointed at the asyncpg driver for plain PostgreSQL URLs."""
        url = self.database_url
        if url.startswith("postgres://"):
            url = url.replace("postgres://", "postgresql://", 1)
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)

    @property
    def cors_origins(self) -> list[str]:
        """``frontend_url`` may list several origins separated by commas."""
        origins = [o.strip().rstrip("/") for o in self.frontend_url.split(",")]
        return list(dict.fromkeys(o for o in origins if o))

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"


@lru_cache
def get_settings() -> Settings:
    return Settings()
