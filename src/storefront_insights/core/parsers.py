"""
Reusable parsers for raw storefront export values.

These parsers handle the messy reality of storefront data:
- ISO-8601 timestamps with or without offsets, plus a few legacy formats
- Totals and prices that arrive as numbers or numeric strings
- Identifiers that arrive as strings or integers
"""

from datetime import datetime, timezone
from functools import lru_cache
import math

import numpy as np
import pandas as pd


def ensure_utc(value: datetime) -> datetime:
    """Return an aware UTC datetime; naive values are assumed to be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _is_missing(value) -> bool:
    if value is None:
        return True
    if isinstance(value, (float, np.floating)):
        return bool(pd.isna(value))
    if isinstance(value, str):
        return value.strip() == ""
    return False


class TimestampParser:
    """
    Robust timestamp parser for order creation dates.

    ISO-8601 is tried first (``2024-07-25T10:00:00Z``, ``2024-07-25``), then
    the fallback formats in order. Results are always aware UTC datetimes, or
    None when nothing matches.

    To extend: Add new format patterns to FALLBACK_FORMATS.
    """

    FALLBACK_FORMATS = [
        "%Y-%m-%d %H:%M:%S",  # SQL: 2024-07-25 10:00:00
        "%Y/%m/%d %H:%M:%S",  # 2024/07/25 10:00:00
        "%Y/%m/%d",           # ISO slash: 2024/07/25
        "%d/%m/%Y %H:%M",     # EU with time: 25/07/2024 10:00
        "%d/%m/%Y",           # EU slash: 25/07/2024
    ]

    CACHE_SIZE = 4096

    def __init__(self, custom_formats: list[str] | None = None, cache_size: int = CACHE_SIZE):
        """
        Args:
            custom_formats: Additional formats to try (prepended to defaults)
            cache_size: Distinct strings remembered; least recently used go first
        """
        self.formats = (custom_formats or []) + self.FALLBACK_FORMATS
        self._parse_text = lru_cache(maxsize=cache_size)(self._parse_text_uncached)

    def cache_info(self):
        return self._parse_text.cache_info()

    def parse(self, value) -> datetime | None:
        """Parse a raw timestamp value; returns None when it is unusable."""
        # pd.Timestamp and pd.NaT are both datetime subclasses
        if isinstance(value, datetime):
            if pd.isna(value):
                return None
            if isinstance(value, pd.Timestamp):
                value = value.to_pydatetime()
            return ensure_utc(value)
        if not isinstance(value, str) or _is_missing(value):
            return None

        return self._parse_text(value.strip())

    def _parse_text_uncached(self, text: str) -> datetime | None:
        result = self._parse_iso(text)
        if result is not None:
            return result
        for fmt in self.formats:
            try:
                return ensure_utc(datetime.strptime(text, fmt))
            except ValueError:
                continue
        return None

    @staticmethod
    def _parse_iso(text: str) -> datetime | None:
        candidate = text[:-1] + "+00:00" if text.endswith(("Z", "z")) else text
        try:
            return ensure_utc(datetime.fromisoformat(candidate))
        except ValueError:
            return None


def parse_amount(value) -> float | None:
    """
    Parse a monetary amount or quantity.

    Accepts ints, floats and numeric strings (surrounding whitespace is
    ignored). Booleans, NaN, infinities and anything else return None.
    """
    if isinstance(value, bool) or _is_missing(value):
        return None
    if isinstance(value, (int, float, np.integer, np.floating)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(number):
        return None
    return number


def parse_stock(value) -> int | None:
    """Parse a stock level; only integer-valued numbers are accepted."""
    number = parse_amount(value)
    if number is None or not number.is_integer():
        return None
    return int(number)


def normalize_id(value) -> str | None:
    """Identifiers may arrive as ints or strings; blank means missing."""
    if isinstance(value, bool) or _is_missing(value):
        return None
    if isinstance(value, (int, np.integer)):
        return str(int(value))
    if isinstance(value, str):
        return value.strip()
    return None


def normalize_label(value) -> str | None:
    """Collapse whitespace in a display name; blank means missing."""
    if not isinstance(value, str) or _is_missing(value):
        return None
    return " ".join(value.split())
