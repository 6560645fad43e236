import re
from decimal import ROUND_FLOOR, Decimal, InvalidOperation
from typing import Optional

_NUMBER_RE = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)$")


def normalize_price_text(text: str) -> str:
    """Turn a typed price into a plain ``1234.56`` string.

    A comma with no period among the last three characters marks Brazilian
    notation (``1.234,56``): periods are thousands separators and the comma is
    the decimal point. Otherwise, if both separators appear, commas are
    thousands separators (``1,234.56``).
    """
    value = (text or "").strip().lower().replace("r$", "").strip()
    if "," in value and "." not in value[-3:]:
        value = value.replace(".", "").replace(",", ".")
    elif "," in value and "." in value:
        value = value.replace(",", "")
    return value


def parse_price_to_cents(text: str) -> Optional[int]:
    """Parse a price typed in chat into integer cents, or None when it is not one.

    >>> parse_price_to_cents("1.234,56")
    123456
    """
    normalized = normalize_price_text(text)
    if not _NUMBER_RE.match(normalized):
        return None
    try:
        amount = Decimal(normalized)
    except InvalidOperation:
        return None
    if amount < 0:
        return None
    cents = (amount * 100 + Decimal("0.5")).to_integral_value(rounding=ROUND_FLOOR)
    return int(cents)
