"""
Shopify Admin REST catalog adapter.

Walks admin/api/<version>/products.json page by page (cursor pagination via the
Link header) and maps each product onto a ProductDraft:

- price comes from the first variant. When that variant carries a higher
  compare_at_price the product is on sale: compare_at_price becomes the list
  price and the variant price becomes discounted_price.
- sizes and colors come from the product options named size / color (colour),
  falling back to variant titles for sizes. "Default Title" is never a size.
- in_stock is true when any variant has positive inventory.
- is_new is true when the product was created within NEW_PRODUCT_WINDOW_DAYS.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError

from app.core.config import Settings
from app.core.exceptions import FormatError
from app.core.utils import utc_now
from app.schemas import BrandRead, ProductDraft
from app.services.brand_api.base import Clock
from app.services.brand_api.client import UpstreamClient
from app.services.brand_api.utils import (
    DEFAULT_VARIANT_TITLE,
    is_recent,
    join_url,
    parse_price,
    split_tags,
    unique,
)

logger = logging.getLogger(__name__)

SIZE_OPTION_NAMES = {"size", "sizes"}
COLOR_OPTION_NAMES = {"color", "colour", "colors", "colours"}


class ShopifyAdapter:

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

    def _get_headers(self) -> Dict[str, str]:
        return {"X-Shopify-Access-Token": self.brand.api_key}

    @property
    def products_url(self) -> str:
        return join_url(
            self.brand.api_endpoint,
            f"admin/api/{self.settings.SHOPIFY_API_VERSION}/products.json"
        )

    async def fetch_products(self) -> List[ProductDraft]:
        logger.info(f"Fetching products from Shopify for {self.brand.name}...")

        raw_products: List[Dict[str, Any]] = []
        url: Optional[str] = self.products_url
        params: Optional[Dict[str, Any]] = {"limit": self.settings.SHOPIFY_PAGE_SIZE}
        pages = 0

        while url and pages < self.settings.UPSTREAM_MAX_PAGES:
            page = await self.client.get(url, headers=self._get_headers(), params=params)
            pages += 1

            if not isinstance(page.payload, dict) or not isinstance(page.payload.get("products"), list):
                raise FormatError(f"Shopify response for {self.brand.name} has no 'products' list")
            raw_products.extend(page.payload["products"])

            # The next link already carries limit and page_info
            url, params = page.next_url, None

        if url:
            logger.warning(
                f"Stopped Shopify pagination for {self.brand.name} after {pages} pages; "
                f"raise UPSTREAM_MAX_PAGES to fetch the rest"
            )

        now = self.clock()
        drafts = []
        for raw in raw_products:
            try:
                drafts.append(self.transform_product(raw, now))
            except (ValidationError, ValueError, TypeError, KeyError, AttributeError) as e:
                logger.warning(f"Skipping Shopify product {_safe_id(raw)} for {self.brand.name}: {e}")

        logger.info(f"Fetched {len(drafts)} products from Shopify for {self.brand.name}")
        return drafts

    def transform_product(self, product: Dict[str, Any], now=None) -> ProductDraft:
        now = now or self.clock()
        variants = [v for v in (product.get("variants") or []) if isinstance(v, dict)]
        first_variant = variants[0] if variants else {}

        price, discounted_price = _sale_pricing(first_variant)
        sizes, colors = self._extract_options(product, variants)

        return ProductDraft(
            external_id=f"shopify-{product['id']}",
            name=product.get("title") or "",
            description=product.get("body_html") or None,
            price=price,
            discounted_price=discounted_price,
            brand_id=self.brand.id,
            category_id=self.settings.DEFAULT_CATEGORY_ID,
            images=unique(img.get("src") for img in (product.get("images") or []) if isinstance(img, dict)),
            in_stock=_any_in_stock(variants),
            is_new=is_recent(product.get("created_at"), now, self.settings.NEW_PRODUCT_WINDOW_DAYS),
            sizes=sizes,
            colors=colors,
            tags=split_tags(product.get("tags")),
            url=self._product_url(product),
        )

    def _extract_options(
        self, product: Dict[str, Any], variants: List[Dict[str, Any]]
    ) -> Tuple[List[str], List[str]]:
        size_key = color_key = None
        for index, option in enumerate(product.get("options") or [], start=1):
            if not isinstance(option, dict):
                continue
            name = str(option.get("name", "")).strip().lower()
            position = option.get("position") or index
            if name in SIZE_OPTION_NAMES:
                size_key = f"option{position}"
            elif name in COLOR_OPTION_NAMES:
                color_key = f"option{position}"

        if size_key:
            sizes = [v.get(size_key) for v in variants]
        else:
            sizes = [v.get("title") for v in variants]
        colors = [v.get(color_key) for v in variants] if color_key else []

        sizes = [s for s in unique(sizes) if s != DEFAULT_VARIANT_TITLE]
        return sizes, unique(colors)

    def _product_url(self, product: Dict[str, Any]) -> str:
        handle = product.get("handle") or product.get("id")
        base = self.brand.website or self.brand.api_endpoint
        return join_url(base, f"products/{handle}")


def _sale_pricing(variant: Dict[str, Any]) -> Tuple[float, Optional[float]]:
    current = parse_price(variant.get("price"))
    current = current if current is not None else 0.0
    compare_at = parse_price(variant.get("compare_at_price"))
    if compare_at is not None and compare_at > current:
        return compare_at, current
    return current, None


def _any_in_stock(variants: List[Dict[str, Any]]) -> bool:
    tracked = [v for v in variants if v.get("inventory_quantity") is not None]
    if not tracked:
        # Untracked inventory: Shopify keeps these purchasable
        return True
    return any((parse_price(v.get("inventory_quantity")) or 0) > 0 for v in tracked)


def _safe_id(raw: Any) -> str:
    return str(raw.get("id")) if isinstance(raw, dict) else repr(raw)[:50]
