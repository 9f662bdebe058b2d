"""
Shared enums and constants used across the application.
"""

from enum import Enum


class ApiType(str, Enum):
    """Upstream catalog formats a brand can declare"""
    SHOPIFY = "shopify"
    WOOCOMMERCE = "woocommerce"
    GENERIC = "generic"


class SyncLogStatus(str, Enum):
    """Lifecycle of a single brand sync attempt"""
    RUNNING = "running"
    SUCCESS = "success"
    FAILED = "failed"


class NotificationType(str, Enum):
    """Channels a price alert can be delivered through"""
    EMAIL = "email"
    SMS = "sms"


class StorageBackend(str, Enum):
    MEMORY = "memory"
    DATABASE = "database"
