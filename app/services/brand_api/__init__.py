"""
Brand API adapters and the selector that picks one for a brand.

The registry maps a lower-cased api_type to the adapter class; anything not in
it (including "generic" itself) is handled by GenericAdapter.
"""
import logging
from typing import Dict, Optional

from app.core.config import Settings, get_settings
from app.core.enums import ApiType
from app.core.utils import utc_now
from app.schemas import BrandRead
from app.services.brand_api.base import AdapterFactory, BrandApiAdapter, Clock
from app.services.brand_api.client import UpstreamClient, UpstreamPage
from app.services.brand_api.generic import GenericAdapter
from app.services.brand_api.shopify import ShopifyAdapter
from app.services.brand_api.woocommerce import WooCommerceAdapter

logger = logging.getLogger(__name__)

ADAPTER_REGISTRY: Dict[str, AdapterFactory] = {
    ApiType.SHOPIFY.value: ShopifyAdapter,
    ApiType.WOOCOMMERCE.value: WooCommerceAdapter,
}

FALLBACK_ADAPTER: AdapterFactory = GenericAdapter


def select_adapter(
    brand: BrandRead,
    settings: Optional[Settings] = None,
    client: Optional[UpstreamClient] = None,
    clock: Clock = utc_now,
) -> Optional[BrandApiAdapter]:
    """
    Build the adapter for a brand.

    Returns None when the brand is missing api_key, api_endpoint or api_type.
    Raises ConfigurationError when the fields are present but unusable
    (e.g. malformed WooCommerce credentials).
    """
    missing = [name for name in ("api_key", "api_endpoint", "api_type") if not getattr(brand, name)]
    if missing:
        logger.warning(f"Brand {brand.name} (ID: {brand.id}) is missing API configuration: {', '.join(missing)}")
        return None

    settings = settings or get_settings()
    client = client or UpstreamClient(timeout=settings.UPSTREAM_TIMEOUT_SECONDS)

    api_type = brand.api_type.strip().lower()
    factory = ADAPTER_REGISTRY.get(api_type, FALLBACK_ADAPTER)
    if factory is FALLBACK_ADAPTER and api_type != ApiType.GENERIC.value:
        logger.info(f"Unknown api_type '{brand.api_type}' for {brand.name}; using the generic adapter")

    return factory(brand, client, settings, clock)


__all__ = [
    "ADAPTER_REGISTRY",
    "BrandApiAdapter",
    "GenericAdapter",
    "ShopifyAdapter",
    "UpstreamClient",
    "UpstreamPage",
    "WooCommerceAdapter",
    "select_adapter",
]
