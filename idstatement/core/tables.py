"""
Row-based extraction for Mandiri e-statements.

Tokens are clustered into rows by their y-coordinate, then every data row
is read by the role of its cells (ordinal, date, amount, balance,
description) rather than by document order.
"""
from functools import cmp_to_key
from typing import Dict, List, Optional, Sequence
import logging

from .loader import Token
from .normalize import (
    is_local_money, is_long_date, is_row_number, is_timestamp, is_unsigned_local_money,
    long_date_to_day_month, normalize_text, parse_local_money, round_half_up
)
from .strategy import OPENING_BALANCE_PHRASE, TransactionStrategy
from ..models.schema import TransactionRecord

logger = logging.getLogger(__name__)


def group_by_y(tokens: List[Token], bucket: float = 2) -> List[List[Token]]:
    """
    Cluster tokens into horizontal groups.

    Args:
        tokens: Tokens to group
        bucket: Size of the y bucket; each token lands on the nearest multiple

    Returns:
        Groups ordered top to bottom, tokens in each group left to right
    """
    groups: Dict[float, List[Token]] = {}

    for token in tokens:
        key = round_half_up(token.y / bucket) * bucket
        groups.setdefault(key, []).append(token)

    return [
        sorted(groups[key], key=lambda t: t.x)
        for key in sorted(groups, reverse=True)
    ]


class RowReconstructionParser(TransactionStrategy):
    """Primary Mandiri strategy: header row first, then one record per row."""

    name = "row_reconstruction"

    ROW_BUCKET = 2
    DESCRIPTION_LINE_GAP = 5

    def __init__(self, row_number_labels: Sequence[str] = ("no",),
                 date_labels: Sequence[str] = ("tanggal", "date"),
                 opening_balance_phrase: str = OPENING_BALANCE_PHRASE,
                 row_bucket: Optional[float] = None):
        super().__init__(opening_balance_phrase)
        self.row_number_labels = [label.lower() for label in row_number_labels]
        self.date_labels = [label.lower() for label in date_labels]
        self.row_bucket = row_bucket or self.ROW_BUCKET

    def find_header_row(self, rows: List[List[Token]]) -> int:
        """Index of the first row holding both a row-number and a date label."""
        for i, row in enumerate(rows):
            texts = {token.text.lower() for token in row}
            if texts.intersection(self.row_number_labels) and texts.intersection(self.date_labels):
                return i
        return -1

    def parse(self, tokens: List[Token], year: int) -> List[TransactionRecord]:
        rows = group_by_y(tokens, self.row_bucket)

        header_idx = self.find_header_row(rows)
        if header_idx == -1:
            logger.debug("Header row not found")
            return []

        records = []
        for row in rows[header_idx + 1:]:
            record = self._extract_row(row, year)
            if record:
                records.append(record)

        return records

    def _extract_row(self, row: List[Token], year: int) -> Optional[TransactionRecord]:
        """Extract transaction data from a row of tokens."""
        if not row or not is_row_number(row[0].text):
            return None

        ordinal = row[0]
        date_token = next((t for t in row if is_long_date(t.text)), None)
        if date_token is None:
            return None

        day_month = long_date_to_day_month(date_token.text)
        if day_month is None:
            return None

        amount_token = next(
            (t for t in row if t is not date_token and is_local_money(t.text)), None
        )
        if amount_token is None:
            logger.debug(f"Row {ordinal.text}: no amount")
            return None

        balance_candidates = [
            t for t in row
            if t is not amount_token and is_unsigned_local_money(t.text)
        ]
        if not balance_candidates:
            logger.debug(f"Row {ordinal.text}: no balance")
            return None
        balance_token = max(balance_candidates, key=lambda t: t.x)

        description_tokens = [
            t for t in row
            if t not in (ordinal, date_token, amount_token, balance_token)
            and not is_timestamp(t.text)
        ]
        description_tokens.sort(key=cmp_to_key(self._reading_order))
        description = normalize_text(' '.join(t.text for t in description_tokens))

        return TransactionRecord(
            year=year,
            date_day_month=day_month,
            description=description,
            kind=self.classify(amount_token.text, description),
            amount=parse_local_money(amount_token.text),
            balance=parse_local_money(balance_token.text)
        )

    def _reading_order(self, a: Token, b: Token) -> float:
        if abs(a.y - b.y) > self.DESCRIPTION_LINE_GAP:
            return b.y - a.y
        return a.x - b.x


class PatternLineParser(TransactionStrategy):
    """Last-resort Mandiri strategy reading fixed column positions per line."""

    name = "pattern_line"

    LINE_BUCKET = 1

    def __init__(self, opening_balance_phrase: str = OPENING_BALANCE_PHRASE,
                 line_bucket: Optional[float] = None):
        super().__init__(opening_balance_phrase)
        self.line_bucket = line_bucket or self.LINE_BUCKET

    def parse(self, tokens: List[Token], year: int) -> List[TransactionRecord]:
        records = []

        for line in group_by_y(tokens, self.line_bucket):
            record = self._extract_line(line, year)
            if record:
                records.append(record)

        return records

    def _extract_line(self, line: List[Token], year: int) -> Optional[TransactionRecord]:
        if not line or not is_row_number(line[0].text):
            return None

        date_token = next((t for t in line if is_long_date(t.text)), None)
        if date_token is None:
            return None

        day_month = long_date_to_day_month(date_token.text)
        if day_month is None:
            return None

        numbers = [t for t in line if is_local_money(t.text)]
        if len(numbers) < 2:
            return None

        balance_token = numbers[-1]
        amount_token = numbers[-2]

        start_x = max(line[0].x, date_token.x)
        description = normalize_text(' '.join(
            t.text for t in line
            if start_x < t.x < amount_token.x
            and t is not date_token
            and not is_timestamp(t.text)
        ))

        return TransactionRecord(
            year=year,
            date_day_month=day_month,
            description=description,
            kind=self.classify(amount_token.text, description),
            amount=parse_local_money(amount_token.text),
            balance=parse_local_money(balance_token.text, signed=True)
        )
