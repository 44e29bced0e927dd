"""Application Settings - Central Configuration"""
from functools import lru_cache
from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Record store backend: "mongo" (document database) or "local" (in-process, optional JSON file)
    store_backend: str = "mongo"

    # MongoDB
    mongo_uri: str = "mongodb://localhost:27017"
    mongo_db: str = "approval_desk_dev"

    # Local store - leave empty to keep records in memory only
    local_store_path: str = ""

    # Sessions
    jwt_secret: str = "approval-desk-dev-secret-change-me-before-deploying-anywhere-real"
    jwt_algorithm: str = "HS256"
    session_ttl_minutes: int = 480

    # Attachments (content handles are data URIs, checked by encoded length)
    attachments_max_mb: int = 10

    # Logging
    logs_path: str = "./logs"
    log_level: str = "INFO"
    log_to_file: bool = True

    # CORS - set to "*" to allow all origins
    cors_origins: str = "*"

    # Scheduler
    refresh_interval_seconds: int = 5  # Per-session dashboard refresh
    reconcile_interval_seconds: int = 60  # Repair half-applied multi-record transitions
    scheduler_enabled: bool = True

    # Environment
    environment: str = "development"
    debug: bool = True

    # Bootstrap administrator, created when the store has no approved admin
    # Change these in production!
    bootstrap_admin_name: str = "Administrator"
    bootstrap_admin_email: str = "admin@company.com"
    bootstrap_admin_password: str = "admin123"

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins string to list"""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def attachments_max_bytes(self) -> int:
        """Max attachment size in bytes"""
        return self.attachments_max_mb * 1024 * 1024

    @property
    def is_production(self) -> bool:
        """Check if running in production"""
        return self.environment.lower() == "production"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
