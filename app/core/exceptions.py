class BaseServiceError(Exception):
    """Base exception for all service-related errors."""
    pass

class BrandApiError(BaseServiceError):
    """Base exception for upstream brand API errors."""
    pass

class FetchError(BrandApiError):
    """Raised when an upstream call fails or its body cannot be parsed."""
    pass

class FormatError(BrandApiError):
    """Raised when an upstream response has no recognisable product list."""
    pass

class ConfigurationError(BaseServiceError):
    """Raised when a brand is missing the API fields needed to sync it."""
    pass

class ReconciliationError(BaseServiceError):
    """Raised when a single product cannot be merged into the catalog."""

    def __init__(self, message: str, external_id: str = None):
        self.external_id = external_id
        super().__init__(message)

class NotFoundError(BaseServiceError):
    """Raised when a referenced entity does not exist."""
    pass

class BrandNotFoundError(NotFoundError):
    """Raised when brand is not found."""
    pass

class ProductNotFoundError(NotFoundError):
    """Raised when product is not found."""
    pass

class AlertNotFoundError(NotFoundError):
    """Raised when a price alert is not found."""
    pass

class WishlistNotFoundError(NotFoundError):
    """Raised when a wishlist is not found."""
    pass

class NotificationError(BaseServiceError):
    """Raised when a notification channel rejects a message."""
    pass

class SyncLogStateError(BaseServiceError):
    """Raised when a sync log that is already closed is closed again."""
    pass
