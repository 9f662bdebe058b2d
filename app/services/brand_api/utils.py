"""Parsing helpers shared by the brand API adapters."""

import math
import re
from datetime import datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Optional, Sequence

_NON_NUMERIC = re.compile(r"[^\d.\-]")

# Shopify's placeholder title for products with a single variant
DEFAULT_VARIANT_TITLE = "Default Title"


def parse_price(value: Any) -> Optional[float]:
    """
    Parse an upstream price into a non-negative float.

    Accepts numbers, numeric strings (currency symbols and thousands separators
    are stripped) and {"amount": ...} / {"value": ...} objects. Anything that is
    empty, negative or not a number comes back as None.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, dict):
        return parse_price(first_present(value, ("amount", "value")))
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = _NON_NUMERIC.sub("", str(value).replace(",", ""))
        if not text:
            return None
        try:
            number = float(Decimal(text))
        except (InvalidOperation, ValueError):
            return None
    if math.isnan(number) or math.isinf(number) or number < 0:
        return None
    return number


def parse_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return None


def parse_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool) or value == "":
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return None if math.isnan(number) else number


def parse_timestamp(value: Any) -> Optional[datetime]:
    """ISO-8601 strings (with or without 'Z') or epoch seconds; naive values are taken as UTC."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    else:
        try:
            parsed = datetime.fromisoformat(str(value).strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def is_recent(value: Any, now: datetime, days: int) -> bool:
    created = parse_timestamp(value)
    if created is None:
        return False
    return now - created <= timedelta(days=days)


def first_present(data: Dict[str, Any], keys: Sequence[str]) -> Any:
    """Value of the first key that is present and not empty"""
    for key in keys:
        value = data.get(key)
        if value is not None and value != "" and value != []:
            return value
    return None


def unique(values: Iterable[Any]) -> List[Any]:
    """Drop duplicates and blanks, keeping first-seen order"""
    seen = set()
    result = []
    for value in values:
        if value is None or value == "":
            continue
        key = value.strip() if isinstance(value, str) else value
        if key in seen:
            continue
        seen.add(key)
        result.append(key)
    return result


def split_tags(value: Any) -> List[str]:
    """Tags arrive as a list of strings, a list of {"name": ...} or a comma separated string"""
    if not value:
        return []
    if isinstance(value, str):
        return unique(tag.strip() for tag in value.split(","))
    if isinstance(value, list):
        names = []
        for tag in value:
            if isinstance(tag, dict):
                tag = tag.get("name")
            if tag is not None:
                names.append(str(tag).strip())
        return unique(names)
    return []


def join_url(base: str, path: str) -> str:
    return f"{base.rstrip('/')}/{path.lstrip('/')}"
