"""
Configuration models for sync operations.
"""

import os
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field, field_validator

MIN_BATCH_SIZE = 10
MAX_BATCH_SIZE = 100
DEFAULT_BATCH_SIZE = 50

DEFAULT_HISTORY_RETENTION = 10000
DEFAULT_LOG_RETENTION = 1000


class SyncInterval(str, Enum):
    """Recurring sync intervals that can be selected."""
    THIRTY_MINUTES = "thirty_minutes"
    HOURLY = "hourly"
    SIX_HOURS = "six_hours"
    DAILY = "daily"

    @property
    def seconds(self) -> int:
        return INTERVAL_SECONDS[self]


INTERVAL_SECONDS = {
    SyncInterval.THIRTY_MINUTES: 1800,
    SyncInterval.HOURLY: 3600,
    SyncInterval.SIX_HOURS: 21600,
    SyncInterval.DAILY: 86400,
}


def _env_bool(key: str, default: bool = False) -> bool:
    value = os.getenv(key)
    if value is None or value == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class SyncSettings(BaseModel):
    """
    Everything the sync engine reads from the configuration layer.
    Values are read-only to the engine.
    """
    # Remote catalog
    api_base_url: str = Field("https://b2b.gitec.ge/restapi/", description="Catalog API base URL")
    api_username: str = Field("", description="Catalog API username header")
    api_password: str = Field("", description="Catalog API password header")
    language: str = Field("ge", description="Catalog language code")
    request_timeout: float = Field(120.0, description="Read timeout for the catalog request in seconds")
    connect_timeout: float = Field(30.0, description="Connect timeout in seconds")
    verify_ssl: bool = Field(False, description="Verify the catalog's TLS certificate")

    # Retry policy
    max_attempts: int = Field(5, ge=1)
    retry_delay: float = Field(10.0, ge=0)
    backoff_factor: float = Field(1.5, ge=1)

    # Reconciliation pacing
    batch_size: int = Field(DEFAULT_BATCH_SIZE, description="Records per batch (10-100)")
    record_delay: float = Field(0.1, ge=0, description="Pause after each record in seconds")
    batch_cooldown: float = Field(2.0, ge=0, description="Pause after each batch in seconds")

    # Scheduling
    auto_sync_enabled: bool = False
    sync_interval: SyncInterval = SyncInterval.HOURLY

    # Backends
    store_backend: str = Field("memory", description="Product store backend (memory, woocommerce)")
    wc_url: Optional[str] = None
    wc_consumer_key: Optional[str] = None
    wc_consumer_secret: Optional[str] = None
    wp_username: Optional[str] = None
    wp_app_password: Optional[str] = None
    media_dir: str = Field("media", description="Where downloaded images are kept")

    # In-memory retention
    history_retention: int = Field(DEFAULT_HISTORY_RETENTION, ge=1, description="Change records kept in memory")
    log_retention: int = Field(DEFAULT_LOG_RETENTION, ge=1, description="Log entries kept in memory")

    firestore_enabled: bool = False
    google_cloud_project: Optional[str] = None

    @field_validator("batch_size", mode="before")
    @classmethod
    def clamp_batch_size(cls, v):
        if v is None or v == "":
            return DEFAULT_BATCH_SIZE
        return max(MIN_BATCH_SIZE, min(MAX_BATCH_SIZE, int(v)))

    @property
    def has_credentials(self) -> bool:
        return bool(self.api_username and self.api_password)

    @property
    def products_url(self) -> str:
        base = self.api_base_url if self.api_base_url.endswith("/") else f"{self.api_base_url}/"
        return f"{base}products"

    @classmethod
    def from_env(cls) -> "SyncSettings":
        """Build settings from environment variables."""
        values = {
            "api_base_url": os.getenv("GITEC_API_URL"),
            "api_username": os.getenv("GITEC_API_USERNAME"),
            "api_password": os.getenv("GITEC_API_PASSWORD"),
            "language": os.getenv("GITEC_LANGUAGE"),
            "request_timeout": os.getenv("GITEC_REQUEST_TIMEOUT"),
            "verify_ssl": _env_bool("GITEC_VERIFY_SSL", False),
            "batch_size": os.getenv("GITEC_SYNC_BATCH_SIZE"),
            "record_delay": os.getenv("GITEC_RECORD_DELAY"),
            "batch_cooldown": os.getenv("GITEC_BATCH_COOLDOWN"),
            "auto_sync_enabled": _env_bool("GITEC_AUTO_SYNC_ENABLED", False),
            "sync_interval": os.getenv("GITEC_SYNC_INTERVAL"),
            "store_backend": os.getenv("GITEC_STORE_BACKEND"),
            "wc_url": os.getenv("WC_URL"),
            "wc_consumer_key": os.getenv("WC_CONSUMER_KEY"),
            "wc_consumer_secret": os.getenv("WC_CONSUMER_SECRET"),
            "wp_username": os.getenv("WP_USERNAME"),
            "wp_app_password": os.getenv("WP_APP_PASSWORD"),
            "media_dir": os.getenv("GITEC_MEDIA_DIR"),
            "history_retention": os.getenv("GITEC_HISTORY_RETENTION"),
            "log_retention": os.getenv("GITEC_LOG_RETENTION"),
            "firestore_enabled": _env_bool("GITEC_FIRESTORE_ENABLED", False),
            "google_cloud_project": os.getenv("GOOGLE_CLOUD_PROJECT"),
        }
        # Unset variables fall back to the field defaults
        return cls(**{k: v for k, v in values.items() if v is not None})
