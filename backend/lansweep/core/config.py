from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    """Application settings."""

    # Application
    APP_NAME: str = "LAN Sweep"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # Network Scanning
    DEFAULT_NETWORK: Optional[str] = None  # e.g. "192.168.1", auto-detect if None
    PING_TIMEOUT_MS: int = 2500  # per probe
    BATCH_SIZE: int = 50  # probes in flight at once
    PROBE_METHOD: str = "icmp"  # icmp or arp

    # Vendor lookup
    QUERY_VENDOR: bool = False
    QUERY_VENDORS_TIMEOUT_MS: int = 60000  # whole enrichment phase
    VENDOR_API_URL: str = "http://macvendors.co/api/{mac}/json"
    VENDOR_CONCURRENCY: int = 8

    # CORS
    CORS_ORIGINS: list[str] = ["*"]

    class Config:
        env_file = ".env"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
