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

    # MongoDB
    mongo_uri: str = "mongodb://localhost:27017"
    mongo_db: str = "caseflow_dev"

    # Bearer tokens (HS256, issued by the host's login service)
    jwt_secret: str = "change-me-in-production-use-32-bytes-or-more"
    jwt_algorithm: str = "HS256"

    # Automation endpoint (scoring, document extraction)
    automation_base_url: str = "http://localhost:5000"
    automation_api_key: str = ""
    automation_timeout_seconds: float = 15.0

    # Workflow definition versioning
    version_allocation_retries: int = 3

    # Logging
    logs_path: str = "./logs"
    log_level: str = "INFO"
    log_to_file: bool = True

    # CORS - set to "*" to allow all origins
    cors_origins: str = "*"

    # Environment
    environment: str = "development"
    debug: bool = True

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins string to list"""
        return [origin.strip() for origin in self.cors_origins.split(",")]


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
