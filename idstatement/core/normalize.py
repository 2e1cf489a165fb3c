"""
Token grammars and value normalization.

Two money conventions are in play: BCA prints ``1,234,567.89``
(comma thousands, period decimal) while Mandiri prints ``-1.234.567,89``
(period thousands, comma decimal, optional sign).
"""
import math
import re
from decimal import Decimal
from typing import Optional
import logging

logger = logging.getLogger(__name__)

DAY_MONTH_RX = re.compile(r'^(0[1-9]|[12][0-9]|3[01])/(0[1-9]|1[0-2])$')
DOT_MONEY_RX = re.compile(r'^\d{1,3}(,\d{3})*\.\d{2}$')
LOCAL_MONEY_RX = re.compile(r'^[-+]?(?:\d{1,3}(?:\.\d{3})+|\d+),\d{2}$')
UNSIGNED_LOCAL_MONEY_RX = re.compile(r'^(?:\d{1,3}(?:\.\d{3})+|\d+),\d{2}$')
LONG_DATE_RX = re.compile(r'^(0[1-9]|[12][0-9]|3[01])\s+([A-Za-z]{3})\s+(\d{4})(?:/\d{4})?$')
TIMESTAMP_RX = re.compile(r'^\d{2}:\d{2}:\d{2}\s+WIB$')
ROW_NUMBER_RX = re.compile(r'^\d+$')
YEAR_RX = re.compile(r'(?<!\d)((?:19|20)\d{2})(?!\d)')
PERIOD_RANGE_RX = re.compile(
    r'(\d{2}\s+[A-Za-z]{3}\s+\d{4})\s*-\s*(\d{2}\s+[A-Za-z]{3}\s+\d{4})'
)
TRAILING_NUMBER_RX = re.compile(r'\s+\d+\s*$')

MONTHS = {
    'jan': 1,
    'feb': 2,
    'mar': 3,
    'apr': 4,
    'may': 5, 'mei': 5,
    'jun': 6,
    'jul': 7,
    'aug': 8, 'agu': 8, 'ags': 8,
    'sep': 9,
    'oct': 10, 'okt': 10,
    'nov': 11,
    'dec': 12, 'des': 12,
}


def round_half_up(value: float) -> int:
    """Round like a spreadsheet does: 0.5 always goes up."""
    return int(math.floor(value + 0.5))


def is_day_month(text: str) -> bool:
    return bool(DAY_MONTH_RX.match(text))


def is_dot_money(text: str) -> bool:
    return bool(DOT_MONEY_RX.match(text))


def is_local_money(text: str) -> bool:
    return bool(LOCAL_MONEY_RX.match(text))


def is_unsigned_local_money(text: str) -> bool:
    return bool(UNSIGNED_LOCAL_MONEY_RX.match(text))


def is_long_date(text: str) -> bool:
    return bool(LONG_DATE_RX.match(text))


def is_timestamp(text: str) -> bool:
    return bool(TIMESTAMP_RX.match(text))


def is_row_number(text: str) -> bool:
    return bool(ROW_NUMBER_RX.match(text))


def is_signed(text: str) -> bool:
    return text.startswith('-') or text.startswith('+')


def parse_dot_money(value: str) -> Decimal:
    """
    Parse a comma-grouped, period-decimal amount.

    Args:
        value: Raw money string such as ``1,234.56``

    Returns:
        Decimal value
    """
    return Decimal(value.strip().replace(',', ''))


def parse_local_money(value: str, signed: bool = False) -> Decimal:
    """
    Parse a period-grouped, comma-decimal amount.

    Args:
        value: Raw money string such as ``-1.234,56``
        signed: Keep a leading minus instead of returning the magnitude

    Returns:
        Decimal value
    """
    stripped = value.strip()
    amount = Decimal(stripped.lstrip('+-').replace('.', '').replace(',', '.'))
    if signed and stripped.startswith('-'):
        amount = -amount
    return amount


def long_date_to_day_month(value: str) -> Optional[str]:
    """
    Convert ``DD Mon YYYY`` (optionally ``/YYYY`` suffixed) to ``DD/MM``.

    Args:
        value: Raw date string

    Returns:
        ``DD/MM`` string or None when the month name is unknown
    """
    match = LONG_DATE_RX.match(value.strip())
    if not match:
        return None

    day, month_name, _ = match.groups()
    month = MONTHS.get(month_name.lower())
    if month is None:
        logger.debug(f"Unknown month abbreviation: {month_name}")
        return None

    return f"{day}/{month:02d}"


def extract_year(value: str) -> Optional[int]:
    """Return the last 4-digit year fragment in a string."""
    years = YEAR_RX.findall(value)
    if not years:
        return None
    return int(years[-1])


def extract_period_year(text: str) -> Optional[int]:
    """
    Find the year of a ``DD Mon YYYY - DD Mon YYYY`` statement period.

    Args:
        text: Page text

    Returns:
        Year of the period start, or None
    """
    match = PERIOD_RANGE_RX.search(text)
    if not match:
        return None
    return extract_year(match.group(1))


def normalize_text(value: str) -> str:
    """
    Normalize text by trimming and cleaning.

    Args:
        value: Raw text string

    Returns:
        Cleaned text string
    """
    if not value:
        return ""

    return re.sub(r'\s+', ' ', value.strip())


def strip_trailing_number(value: str) -> str:
    """Drop a bare number left dangling at the end of a description."""
    return TRAILING_NUMBER_RX.sub('', value)

