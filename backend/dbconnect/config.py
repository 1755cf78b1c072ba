"""
Application configuration loaded from environment variables.
"""
from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings from environment variables."""

    # Runtime environment: "development" or "production"
    environment: str = "development"
    log_level: str = "INFO"

    # Catalog MongoDB (schema descriptors)
    mongo_uri: str = "mongodb://localhost:27017"
    mongo_uri_production: str | None = None
    catalog_db_name: str = "dbconnect"

    # Tenant MongoDB (one database per tenant)
    tenant_mongo_uri: str = "mongodb://localhost:27017"
    tenant_mongo_uri_production: str | None = None
    tenant_mongo_params: str = "retryWrites=true&w=majority&appName=dmappservices"
    tenant_connection_capacity: int = 64
    server_selection_timeout_ms: int = 5000

    # Redis (action token replay guard)
    redis_host: str = "localhost"
    redis_port: int = 6379

    # JWT Configuration
    jwt_secret_key: str = "CHANGE_ME_IN_PRODUCTION_USE_STRONG_SECRET"
    jwt_algorithm: str = "HS256"
    jwt_access_token_expire_minutes: int = 3 * 24 * 60
    auth_header_name: str = "x-auth-token"

    # Website session origins per environment
    website_origins_development: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]
    website_origins_production: list[str] = []

    # Action tokens
    action_token_max_age_seconds: int = 300
    action_token_replay_guard: bool = True

    # Pagination
    default_page_size: int = 100

    # Response envelope
    app_version: str = "1.0.0"
    api_version: str = "v1"

    class Config:
        env_file = ".env"
        extra = "ignore"

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def catalog_uri(self) -> str:
        """Catalog store URI for the active environment."""
        if self.is_production and self.mongo_uri_production:
            return self.mongo_uri_production
        return self.mongo_uri

    @property
    def tenant_uri(self) -> str:
        """Tenant store URI for the active environment."""
        if self.is_production and self.tenant_mongo_uri_production:
            return self.tenant_mongo_uri_production
        return self.tenant_mongo_uri

    @property
    def website_origins(self) -> list[str]:
        """Origins accepted for website session tokens."""
        if self.is_production:
            return self.website_origins_production
        return self.website_origins_development


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
