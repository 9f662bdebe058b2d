"""
WooCommerce REST (wc/v3) catalog adapter.

Credentials are stored in the brand's api_key either as JSON
({"consumerKey": "...", "consumerSecret": "..."}) or as "key:secret", and are
sent as consumer_key / consumer_secret query parameters.
"""

import json
import logging
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError

from app.core.config import Settings
from app.core.exceptions import ConfigurationError, FormatError
from app.core.utils import utc_now
from app.schemas import BrandRead, ProductDraft
from app.services.brand_api.base import Clock
from app.services.brand_api.client import UpstreamClient
from app.services.brand_api.utils import (
    is_recent,
    join_url,
    parse_float,
    parse_int,
    parse_price,
    split_tags,
    unique,
)

logger = logging.getLogger(__name__)

SIZE_ATTRIBUTE_NAMES = {"size", "sizes"}
COLOR_ATTRIBUTE_NAMES = {"color", "colour", "colors", "colours"}


def parse_credentials(api_key: Optional[str]) -> Tuple[str, str]:
    """Return (consumer_key, consumer_secret) or raise ConfigurationError"""
    raw = (api_key or "").strip()
    key = secret = None

    if raw.startswith("{"):
        try:
            data = json.loads(raw)
        except ValueError:
            raise ConfigurationError("WooCommerce credentials are not valid JSON")
        if isinstance(data, dict):
            key = data.get("consumerKey") or data.get("consumer_key")
            secret = data.get("consumerSecret") or data.get("consumer_secret")
    elif ":" in raw:
        key, _, secret = raw.partition(":")

    if not key or not secret:
        raise ConfigurationError(
            'WooCommerce api_key must be {"consumerKey": ..., "consumerSecret": ...} or "key:secret"'
        )
    return str(key).strip(), str(secret).strip()


class WooCommerceAdapter:

    def __init__(
        self,
        brand: BrandRead,
        client: UpstreamClient,
        settings: Settings,
        clock: Clock = utc_now,
    ):
        self.brand = brand
        self.client = client
        self.settings = settings
        self.clock = clock
        try:
            self.consumer_key, self.consumer_secret = parse_credentials(brand.api_key)
        except ConfigurationError as e:
            raise ConfigurationError(f"Invalid API credentials format for {brand.name}: {e}")

    @property
    def products_url(self) -> str:
        return join_url(self.brand.api_endpoint, "wp-json/wc/v3/products")

    async def fetch_products(self) -> List[ProductDraft]:
        logger.info(f"Fetching products from WooCommerce for {self.brand.name}...")

        raw_products: List[Dict[str, Any]] = []
        page_number = 1
        total_pages = 1

        while page_number <= min(total_pages, self.settings.UPSTREAM_MAX_PAGES):
            page = await self.client.get(
                self.products_url,
                params={
                    "consumer_key": self.consumer_key,
                    "consumer_secret": self.consumer_secret,
                    "per_page": self.settings.WOOCOMMERCE_PAGE_SIZE,
                    "page": page_number,
                },
            )
            if not isinstance(page.payload, list):
                raise FormatError(f"WooCommerce response for {self.brand.name} is not a product list")
            raw_products.extend(page.payload)

            total_pages = parse_int(page.headers.get("X-WP-TotalPages")) or 1
            page_number += 1

        if total_pages > self.settings.UPSTREAM_MAX_PAGES:
            logger.warning(
                f"WooCommerce reports {total_pages} pages for {self.brand.name}; "
                f"only the first {self.settings.UPSTREAM_MAX_PAGES} were fetched"
            )

        now = self.clock()
        drafts = []
        for raw in raw_products:
            try:
                drafts.append(self.transform_product(raw, now))
            except (ValidationError, ValueError, TypeError, KeyError, AttributeError) as e:
                product_id = raw.get("id") if isinstance(raw, dict) else raw
                logger.warning(f"Skipping WooCommerce product {product_id} for {self.brand.name}: {e}")

        logger.info(f"Fetched {len(drafts)} products from WooCommerce for {self.brand.name}")
        return drafts

    def transform_product(self, product: Dict[str, Any], now=None) -> ProductDraft:
        now = now or self.clock()

        regular = parse_price(product.get("regular_price"))
        current = parse_price(product.get("price"))
        sale = parse_price(product.get("sale_price"))

        price = regular if regular is not None else (current if current is not None else 0.0)
        discounted_price = sale if sale is not None and sale < price else None

        attributes = [a for a in (product.get("attributes") or []) if isinstance(a, dict)]

        return ProductDraft(
            external_id=f"woocommerce-{product['id']}",
            name=product.get("name") or "",
            description=product.get("description") or product.get("short_description") or None,
            price=price,
            discounted_price=discounted_price,
            brand_id=self.brand.id,
            category_id=self.settings.DEFAULT_CATEGORY_ID,
            images=unique(img.get("src") for img in (product.get("images") or []) if isinstance(img, dict)),
            rating=parse_float(product.get("average_rating")),
            review_count=parse_int(product.get("rating_count")) or 0,
            in_stock=_in_stock(product),
            is_new=is_recent(
                product.get("date_created_gmt") or product.get("date_created"),
                now,
                self.settings.NEW_PRODUCT_WINDOW_DAYS
            ),
            is_featured=bool(product.get("featured")),
            sizes=_attribute_options(attributes, SIZE_ATTRIBUTE_NAMES),
            colors=_attribute_options(attributes, COLOR_ATTRIBUTE_NAMES),
            tags=split_tags(product.get("tags")),
            url=product.get("permalink") or join_url(
                self.brand.website or self.brand.api_endpoint, f"?p={product['id']}"
            ),
        )


def _attribute_options(attributes: List[Dict[str, Any]], names) -> List[str]:
    for attribute in attributes:
        if str(attribute.get("name", "")).strip().lower() in names:
            return unique(str(option) for option in (attribute.get("options") or []))
    return []


def _in_stock(product: Dict[str, Any]) -> bool:
    if isinstance(product.get("in_stock"), bool):
        return product["in_stock"]
    status = product.get("stock_status")
    if status:
        return status == "instock"
    return True
