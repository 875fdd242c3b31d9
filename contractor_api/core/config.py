from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache
from typing import Optional

DEFAULT_MONGODB_URI = "mongodb://localhost:27017/paint-contractor"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # MongoDB URI - MONGODB_URL is accepted as an alternative variable name
    mongodb_uri: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("MONGODB_URI", "MONGODB_URL", "mongodb_uri"),
    )
    mongo_server_selection_timeout_ms: int = 5000
    mongo_socket_timeout_ms: int = 45000
    mongo_operation_timeout: float = 5.0  # seconds, per primary-store operation
    mongo_probe_interval_seconds: int = 30

    # Reject submissions that break the field rules (service enum, lengths, phone)
    strict_validation: bool = True
    # Include the correlation id and error text in 500 responses
    expose_error_details: bool = False

    # Email notifications
    email_notifications_enabled: bool = False
    email_user: Optional[str] = None
    email_pass: Optional[str] = None
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 587
    smtp_timeout: float = 10.0
    admin_email: str = "info@apnacontractors.com"

    # CORS settings
    allowed_origins: list[str] = ["*"]

    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 3000

    @property
    def effective_mongo_uri(self) -> str:
        """Get the effective MongoDB URI, falling back to the local default"""
        return self.mongodb_uri or DEFAULT_MONGODB_URI

    @property
    def email_configured(self) -> bool:
        return bool(self.email_notifications_enabled and self.email_user and self.email_pass)


@lru_cache
def get_settings():
    return Settings()
