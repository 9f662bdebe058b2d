# app/core/config.py - Consolidated

import os
from functools import lru_cache
from typing import List, Optional, Annotated
from pydantic import ConfigDict, BeforeValidator
from pydantic_settings import BaseSettings


def _parse_email_list(value):
    if value in (None, "", []):
        return []
    if isinstance(value, str):
        return [email.strip() for email in value.split(",") if email.strip()]
    if isinstance(value, (list, tuple, set)):
        return [str(email).strip() for email in value if str(email).strip()]
    return []


class Settings(BaseSettings):
    """
    Application settings.
    Loads values from environment variables (.env file)
    """
    # Database settings
    DATABASE_URL: str = ""

    # Storage strategy: "memory" or "database"
    STORAGE_BACKEND: str = "memory"

    # Catalog normalisation
    PRICE_HISTORY_RETENTION: int = 90
    PRICE_HISTORY_TIMEZONE: str = "UTC"
    NEW_PRODUCT_WINDOW_DAYS: int = 30
    DEFAULT_CATEGORY_ID: int = 1

    # Upstream brand APIs
    UPSTREAM_TIMEOUT_SECONDS: float = 30.0
    UPSTREAM_MAX_PAGES: int = 50
    SHOPIFY_API_VERSION: str = "2023-07"
    SHOPIFY_PAGE_SIZE: int = 250
    WOOCOMMERCE_PAGE_SIZE: int = 100

    # Scheduling
    SYNC_SCHEDULE: str = "0 */6 * * *"  # every 6 hours
    SYNC_SCHEDULE_ENABLED: bool = False
    PRICE_ALERT_INTERVAL_MINUTES: int = 60
    PRICE_ALERT_SCHEDULE_ENABLED: bool = False

    # 0 means an alert fires on every evaluation while the price condition holds
    PRICE_ALERT_RENOTIFY_MINUTES: int = 0

    # Email notifications
    NOTIFICATION_EMAILS: Annotated[List[str], BeforeValidator(lambda v: _parse_email_list(v))] = []

    # SMTP / Email
    SMTP_HOST: str = ""
    SMTP_PORT: int = 587
    SMTP_USERNAME: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_USE_TLS: bool = True
    SMTP_USE_SSL: bool = False
    SMTP_TIMEOUT: int = 30
    SMTP_FROM_EMAIL: Optional[str] = None
    SMTP_FROM_NAME: Optional[str] = None

    # SMS gateway (JSON POST with bearer token)
    SMS_API_URL: str = ""
    SMS_API_KEY: str = ""
    SMS_FROM_NUMBER: str = ""

    # Environment
    ENVIRONMENT: str = "development"
    DEBUG: bool = False

    model_config = ConfigDict(
        env_file=os.environ.get('ENV_FILE', '.env') if os.path.exists('.env') else None,
        case_sensitive=True,
        extra="ignore"
    )


@lru_cache()
def get_settings():
    """Cached settings to avoid loading .env file for every request"""
    return Settings()

def get_settings_no_cache():
    """Get settings without caching - useful for testing different environments"""
    return Settings()

def clear_settings_cache():
    """Clear the settings cache - useful when switching between environments"""
    get_settings.cache_clear()
