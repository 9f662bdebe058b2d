"""
Daily price history for catalog products.

A product keeps at most one sample per calendar date, oldest first, and only
the most recent `retention` samples. Dates are computed in a single reference
timezone (PRICE_HISTORY_TIMEZONE) so that every sync agrees on what "today" is.
"""

from datetime import date, datetime
from typing import Iterable, List, Optional, Union
from zoneinfo import ZoneInfo

from app.core.utils import utc_now
from app.schemas import PriceHistoryEntry

DEFAULT_RETENTION = 90


def today_in_timezone(tz_name: str = "UTC", now: Optional[datetime] = None) -> str:
    """Today's date as YYYY-MM-DD in the given IANA timezone"""
    now = now or utc_now()
    return now.astimezone(ZoneInfo(tz_name)).date().isoformat()


def _as_entry(entry: Union[PriceHistoryEntry, dict]) -> PriceHistoryEntry:
    if isinstance(entry, PriceHistoryEntry):
        return entry.model_copy()
    return PriceHistoryEntry.model_validate(entry)


def merge_price_history(
    history: Iterable[Union[PriceHistoryEntry, dict]],
    price: float,
    today: Union[str, date],
    retention: int = DEFAULT_RETENTION,
) -> List[PriceHistoryEntry]:
    """
    Merge today's observed price into an existing history.

    - an existing sample for today is replaced when the price differs
    - otherwise a sample for today is appended
    - samples are sorted by date and the oldest evicted beyond `retention`

    Legacy samples stored with full timestamps are folded onto their date, the
    last one seen for a day winning. The input is never mutated.
    """
    if retention < 1:
        raise ValueError("retention must be at least 1")

    today_key = today.isoformat() if isinstance(today, date) else str(today)[:10]

    by_date = {}
    for raw in history or []:
        entry = _as_entry(raw)
        by_date[entry.date] = entry

    existing = by_date.get(today_key)
    if existing is None or existing.price != price:
        by_date[today_key] = PriceHistoryEntry(date=today_key, price=price)

    merged = sorted(by_date.values(), key=lambda e: e.date)
    return merged[-retention:]
