"""
Proximity-based fallback for Mandiri pages whose rows cannot be rebuilt.

Instead of grouping rows, every date token pulls in the numbers and text
printed within a vertical window around it.
"""
from typing import List, Optional
import logging

from .loader import Token
from .normalize import (
    is_local_money, is_long_date, is_row_number, is_signed, is_timestamp,
    long_date_to_day_month, normalize_text, parse_local_money, strip_trailing_number
)
from .strategy import OPENING_BALANCE_PHRASE, TransactionStrategy
from ..models.schema import TransactionRecord

logger = logging.getLogger(__name__)


class DirectTokenParser(TransactionStrategy):
    """Builds one record per date token from nearby numeric and text tokens."""

    name = "direct_token"

    NUMBER_WINDOW = 20
    DESCRIPTION_WINDOW = 25

    def __init__(self, opening_balance_phrase: str = OPENING_BALANCE_PHRASE,
                 number_window: Optional[float] = None,
                 description_window: Optional[float] = None):
        super().__init__(opening_balance_phrase)
        self.number_window = number_window or self.NUMBER_WINDOW
        self.description_window = description_window or self.DESCRIPTION_WINDOW

    def parse(self, tokens: List[Token], year: int) -> List[TransactionRecord]:
        dates = [t for t in tokens if is_long_date(t.text)]
        numbers = [t for t in tokens if is_local_money(t.text)]

        records = []
        for date_token in dates:
            record = self._extract_around(date_token, tokens, numbers, year)
            if record:
                records.append(record)

        return records

    def _extract_around(self, date_token: Token, tokens: List[Token],
                        numbers: List[Token], year: int) -> Optional[TransactionRecord]:
        day_month = long_date_to_day_month(date_token.text)
        if day_month is None:
            return None

        related = [n for n in numbers if abs(n.y - date_token.y) < self.number_window]
        if len(related) < 2:
            logger.debug(f"{date_token.text}: fewer than two numbers nearby")
            return None

        by_x = sorted(related, key=lambda t: t.x)
        balance_token = by_x[-1]
        amount_token = next(
            (n for n in related if n is not balance_token and is_signed(n.text)),
            by_x[-2]
        )

        nearby = [
            t for t in tokens
            if abs(t.y - date_token.y) < self.description_window
            and t not in (date_token, amount_token, balance_token)
            and not is_timestamp(t.text)
            and not is_local_money(t.text)
            and not (is_row_number(t.text) and t.x < date_token.x)
        ]
        nearby.sort(key=lambda t: t.x)
        description = strip_trailing_number(normalize_text(' '.join(t.text for t in nearby)))

        return TransactionRecord(
            year=year,
            date_day_month=day_month,
            description=description,
            kind=self.classify(amount_token.text, description),
            amount=parse_local_money(amount_token.text),
            balance=parse_local_money(balance_token.text, signed=True)
        )
