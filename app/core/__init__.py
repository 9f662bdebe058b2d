"""
Core module exports.
"""
from .enums import (
    ApiType,
    SyncLogStatus,
    NotificationType,
    StorageBackend
)

from .exceptions import (
    BaseServiceError,
    BrandApiError,
    FetchError,
    FormatError,
    ConfigurationError,
    ReconciliationError,
    NotFoundError,
    BrandNotFoundError,
    ProductNotFoundError,
    AlertNotFoundError,
    WishlistNotFoundError,
    NotificationError,
    SyncLogStateError
)

from .utils import (
    utc_now,
    model_to_schema,
    models_to_schemas,
    page_bounds
)
