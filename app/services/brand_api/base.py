from datetime import datetime
from typing import Callable, List, Protocol, runtime_checkable

from app.core.config import Settings
from app.schemas import BrandRead, ProductDraft
from app.services.brand_api.client import UpstreamClient


@runtime_checkable
class BrandApiAdapter(Protocol):
    """
    Translates one upstream catalog format into canonical product drafts.

    fetch_products raises FetchError when the upstream call fails or its body
    cannot be decoded, and FormatError when no product list can be found in it.
    A single odd product never fails the whole fetch.
    """

    brand: BrandRead

    async def fetch_products(self) -> List[ProductDraft]:
        ...


Clock = Callable[[], datetime]

# Every registry entry is constructed with (brand, client, settings, clock)
AdapterFactory = Callable[[BrandRead, UpstreamClient, Settings, Clock], BrandApiAdapter]
