"""
Adapter for brand APIs that follow no known platform format.

Everything here is best effort: several aliases are tried for each logical
field, the product list may be a bare array or nested under a handful of
envelope keys, and a product that cannot be mapped cleanly is still emitted
with safe defaults instead of failing the batch.
"""

import logging
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from app.core.config import Settings
from app.core.exceptions import FormatError
from app.core.utils import utc_now
from app.schemas import BrandRead, ProductDraft
from app.services.brand_api.base import Clock
from app.services.brand_api.client import UpstreamClient
from app.services.brand_api.utils import (
    DEFAULT_VARIANT_TITLE,
    first_present,
    is_recent,
    join_url,
    parse_float,
    parse_int,
    parse_price,
    split_tags,
    unique,
)

logger = logging.getLogger(__name__)

ENVELOPE_KEYS = ("products", "data", "items", "results")

NAME_FIELDS = ("name", "title", "product_name")
DESCRIPTION_FIELDS = ("description", "body_html", "summary")
PRICE_FIELDS = ("price", "current_price", "regular_price", "amount", "cost")
REFERENCE_PRICE_FIELDS = ("compare_at_price", "original_price", "regular_price", "list_price")
SALE_PRICE_FIELDS = ("discounted_price", "sale_price")
IMAGE_LIST_FIELDS = ("images", "image_urls", "photos")
IMAGE_FIELDS = ("image", "image_url", "thumbnail", "featured_image")
IMAGE_URL_KEYS = ("src", "url", "source")
URL_FIELDS = ("url", "permalink", "link", "product_url")
KEY_FIELDS = ("id", "product_id", "sku", "handle", "slug")
STOCK_FLAG_FIELDS = ("in_stock", "available", "is_available")
STOCK_COUNT_FIELDS = ("inventory_quantity", "stock_quantity", "stock", "quantity")
RATING_FIELDS = ("rating", "average_rating")
REVIEW_COUNT_FIELDS = ("review_count", "reviews_count", "rating_count", "number_of_reviews")
CREATED_FIELDS = ("created_at", "date_created", "published_at")

UNNAMED_PRODUCT = "Unnamed product"


def unwrap_products(payload: Any) -> List[Any]:
    """Find the product list in a bare array or one of the known envelopes"""
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        for key in ENVELOPE_KEYS:
            value = payload.get(key)
            if isinstance(value, list):
                return value
            # e.g. {"data": {"products": [...]}}
            if isinstance(value, dict):
                for inner_key in ENVELOPE_KEYS:
                    if isinstance(value.get(inner_key), list):
                        return value[inner_key]
    raise FormatError(
        f"No product list found in response (expected an array or one of {', '.join(ENVELOPE_KEYS)})"
    )


class GenericAdapter:

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
        return {"Authorization": f"Bearer {self.brand.api_key}"}

    async def fetch_products(self) -> List[ProductDraft]:
        logger.info(f"Fetching products from generic API for {self.brand.name}...")

        page = await self.client.get(self.brand.api_endpoint, headers=self._get_headers())
        try:
            raw_products = unwrap_products(page.payload)
        except FormatError as e:
            raise FormatError(f"{self.brand.name}: {e}")

        now = self.clock()
        drafts = []
        for raw in raw_products:
            if not isinstance(raw, dict):
                logger.warning(f"Ignoring non-object product entry from {self.brand.name}: {raw!r:.80}")
                continue
            if not self._has_identity(raw):
                logger.warning(f"Skipping product from {self.brand.name} with no id, url or name: {raw!r:.80}")
                continue
            try:
                drafts.append(self.transform_product(raw, now))
            except (ValidationError, ValueError, TypeError, KeyError, AttributeError) as e:
                logger.warning(f"Falling back to defaults for malformed product from {self.brand.name}: {e}")
                drafts.append(self._fallback_product(raw))

        logger.info(f"Fetched {len(drafts)} products from generic API for {self.brand.name}")
        return drafts

    def transform_product(self, product: Dict[str, Any], now=None) -> ProductDraft:
        now = now or self.clock()
        price, discounted_price = _pricing(product)

        return ProductDraft(
            external_id=self._external_id(product),
            name=_name(product),
            description=_text(first_present(product, DESCRIPTION_FIELDS)),
            price=price,
            discounted_price=discounted_price,
            brand_id=self.brand.id,
            category_id=self.settings.DEFAULT_CATEGORY_ID,
            images=_images(product),
            rating=parse_float(first_present(product, RATING_FIELDS)),
            review_count=parse_int(first_present(product, REVIEW_COUNT_FIELDS)) or 0,
            in_stock=_in_stock(product),
            is_new=_is_new(product, now, self.settings.NEW_PRODUCT_WINDOW_DAYS),
            is_featured=bool(first_present(product, ("featured", "is_featured"))),
            sizes=_sizes(product),
            colors=_labels(first_present(product, ("colors", "colours", "color", "colour"))),
            tags=split_tags(product.get("tags")),
            url=self._product_url(product),
        )

    def _fallback_product(self, product: Dict[str, Any]) -> ProductDraft:
        """Minimal draft for a record the full mapping could not handle"""
        return ProductDraft(
            external_id=self._external_id(product),
            name=_name(product),
            price=parse_price(first_present(product, PRICE_FIELDS)) or 0.0,
            brand_id=self.brand.id,
            category_id=self.settings.DEFAULT_CATEGORY_ID,
            url=self._product_url(product),
        )

    def _has_identity(self, product: Dict[str, Any]) -> bool:
        return any(
            first_present(product, fields) is not None
            for fields in (KEY_FIELDS, URL_FIELDS, NAME_FIELDS)
        )

    def _external_id(self, product: Dict[str, Any]) -> str:
        key = first_present(product, KEY_FIELDS)
        if key is None:
            key = _text(first_present(product, URL_FIELDS))
        if key is None:
            key = _name(product)
            logger.warning(f"Product {key!r} from {self.brand.name} has no id or url; keying it by name")
        return f"generic-{key}"

    def _product_url(self, product: Dict[str, Any]) -> str:
        url = first_present(product, URL_FIELDS)
        if isinstance(url, str) and url.strip():
            return url.strip()
        handle = first_present(product, ("handle", "slug", "id"))
        base = self.brand.website or self.brand.api_endpoint
        if handle is not None:
            return join_url(base, f"products/{handle}")
        return base


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _name(product: Dict[str, Any]) -> str:
    return _text(first_present(product, NAME_FIELDS)) or UNNAMED_PRODUCT


def _pricing(product: Dict[str, Any]):
    observed = None
    for field_name in PRICE_FIELDS:
        observed = parse_price(product.get(field_name))
        if observed is not None:
            break

    if observed is None:
        # No current price: list the first reference price as undiscounted
        for field_name in REFERENCE_PRICE_FIELDS + SALE_PRICE_FIELDS:
            fallback = parse_price(product.get(field_name))
            if fallback is not None:
                return fallback, None
        return 0.0, None

    # A higher reference price means the observed price is a promotion
    for field_name in REFERENCE_PRICE_FIELDS:
        reference = parse_price(product.get(field_name))
        if reference is not None and reference > observed:
            return reference, observed

    for field_name in SALE_PRICE_FIELDS:
        sale = parse_price(product.get(field_name))
        if sale is not None and sale < observed:
            return observed, sale

    return observed, None


def _image_url(image: Any) -> Optional[str]:
    if isinstance(image, str):
        return image.strip() or None
    if isinstance(image, dict):
        return _text(first_present(image, IMAGE_URL_KEYS))
    return None


def _images(product: Dict[str, Any]) -> List[str]:
    images = first_present(product, IMAGE_LIST_FIELDS)
    if isinstance(images, list):
        urls = unique(_image_url(image) for image in images)
        if urls:
            return urls
    single = _image_url(first_present(product, IMAGE_FIELDS))
    return [single] if single else []


def _labels(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return unique(part.strip() for part in value.split(","))
    if isinstance(value, list):
        labels = []
        for item in value:
            if isinstance(item, dict):
                item = first_present(item, ("name", "label", "value"))
            if item is not None:
                labels.append(str(item))
        return unique(labels)
    return [str(value)]


def _sizes(product: Dict[str, Any]) -> List[str]:
    sizes = _labels(first_present(product, ("sizes", "size")))
    if sizes:
        return sizes

    from_variants = []
    for variant in product.get("variants") or []:
        if not isinstance(variant, dict):
            continue
        label = variant.get("size") or variant.get("title")
        if label and DEFAULT_VARIANT_TITLE not in str(label):
            from_variants.append(str(label))
    return unique(from_variants)


def _in_stock(product: Dict[str, Any]) -> bool:
    for field_name in STOCK_FLAG_FIELDS:
        value = product.get(field_name)
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.strip().lower() in ("true", "false"):
            return value.strip().lower() == "true"

    count = parse_int(first_present(product, STOCK_COUNT_FIELDS))
    if count is not None:
        return count > 0

    status = product.get("stock_status")
    if isinstance(status, str):
        return status.replace("_", "").lower() == "instock"
    return True


def _is_new(product: Dict[str, Any], now, window_days: int) -> bool:
    flag = product.get("is_new")
    if isinstance(flag, bool):
        return flag
    return is_recent(first_present(product, CREATED_FIELDS), now, window_days)
