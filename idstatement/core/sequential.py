"""
Sequential parser for BCA debit statements.

BCA pages list each transaction as a run of tokens in document order:
a ``DD/MM`` date, the description, an optional ``CBG <code>`` branch pair,
further description lines, the mutation amount (followed by ``DB`` for
debits) and finally the running balance.
"""
from typing import Any, Dict, List, Optional, Sequence, Tuple
import logging

from .anchors import find_anchor_index
from .loader import Token
from .normalize import extract_year, is_day_month, is_dot_money, normalize_text, parse_dot_money
from .strategy import OPENING_BALANCE_PHRASE, TransactionStrategy
from ..models.schema import TransactionKind, TransactionRecord

logger = logging.getLogger(__name__)


class SequentialStatementParser(TransactionStrategy):
    """Walks a page's token stream with a small per-transaction state machine."""

    name = "sequential"

    YEAR_WINDOW = 10
    HEADER_WINDOW = 5
    MARKER_LOOKAHEAD = 2

    def __init__(self, period_label: str = "PERIODE", date_label: str = "TANGGAL",
                 description_label: str = "KETERANGAN", branch_marker: str = "CBG",
                 debit_marker: str = "DB", credit_marker: str = "CR",
                 terminators: Sequence[str] = ("saldo awal :", "bersambung ke halaman"),
                 opening_balance_phrase: str = OPENING_BALANCE_PHRASE,
                 fuzzy_threshold: float = 100):
        super().__init__(opening_balance_phrase)
        self.period_label = period_label
        self.date_label = date_label
        self.description_label = description_label
        self.branch_marker = branch_marker
        self.debit_marker = debit_marker
        self.credit_marker = credit_marker
        self.terminators = [t.lower() for t in terminators]
        self.fuzzy_threshold = fuzzy_threshold

    def resolve_year(self, tokens: List[Token], fallback: int) -> Optional[int]:
        """
        Read the statement year printed after the period label.

        Args:
            tokens: Page tokens
            fallback: Year used when the label carries no year

        Returns:
            Year, or None when the period label is absent
        """
        anchor = find_anchor_index(tokens, self.period_label, self.fuzzy_threshold)
        if anchor == -1:
            return None

        for token in tokens[anchor + 1:anchor + self.YEAR_WINDOW]:
            year = extract_year(token.text)
            if year is not None:
                return year

        logger.debug(f"No year after '{self.period_label}', using {fallback}")
        return fallback

    def find_table_start(self, tokens: List[Token]) -> int:
        """Index of the first date token under the column headers, or -1."""
        date_idx = find_anchor_index(tokens, self.date_label, self.fuzzy_threshold)
        if date_idx == -1:
            return -1

        description_idx = find_anchor_index(
            tokens, self.description_label, self.fuzzy_threshold,
            start=date_idx - self.HEADER_WINDOW + 1,
            stop=date_idx + self.HEADER_WINDOW
        )
        if description_idx == -1:
            return -1

        for i in range(date_idx + 1, len(tokens)):
            if is_day_month(tokens[i].text):
                return i

        return -1

    def parse(self, tokens: List[Token], year: int) -> List[TransactionRecord]:
        page_year = self.resolve_year(tokens, year)
        if page_year is None:
            logger.debug(f"Period label '{self.period_label}' not found")
            return []

        start = self.find_table_start(tokens)
        if start == -1:
            logger.debug("Transaction table header not found")
            return []

        records = []
        current = None
        idx = start

        while idx < len(tokens):
            text = tokens[idx].text

            if self._is_terminator(text):
                break

            if is_day_month(text):
                self._emit(current, page_year, records)
                current, idx, terminated = self._scan_record(tokens, idx)
                if terminated:
                    break
                continue

            # Continuation lines printed after the balance
            if current is not None and self._is_description_fragment(text):
                current['fragments'].append(text)
            idx += 1

        self._emit(current, page_year, records)
        return records

    def _scan_record(self, tokens: List[Token], idx: int) -> Tuple[Dict[str, Any], int, bool]:
        """
        Consume one transaction starting at a date token.

        Returns:
            (draft record, index to resume at, whether a terminator was hit)
        """
        draft = {
            'date': tokens[idx].text,
            'fragments': [],
            'kind': TransactionKind.CREDIT,
            'amount': None,
            'balance': None,
        }
        idx += 1

        if idx < len(tokens) and not is_day_month(tokens[idx].text) \
                and not is_dot_money(tokens[idx].text):
            draft['fragments'].append(tokens[idx].text)
            idx += 1

        if idx < len(tokens) and tokens[idx].text == self.branch_marker:
            idx += 2

        while idx < len(tokens):
            text = tokens[idx].text

            if self._is_terminator(text):
                return draft, idx, True

            if is_day_month(text):
                return draft, idx, False

            if is_dot_money(text):
                amount = parse_dot_money(text)
                if draft['amount'] is not None:
                    draft['balance'] = amount
                    return draft, idx + 1, False

                draft['amount'] = amount
                marker_idx = self._debit_marker_index(tokens, idx)
                if marker_idx is not None:
                    draft['kind'] = TransactionKind.DEBIT
                    idx = marker_idx + 1
                else:
                    idx += 1
                continue

            if draft['amount'] is None and self._is_description_fragment(text):
                draft['fragments'].append(text)
            idx += 1

        return draft, idx, False

    def _debit_marker_index(self, tokens: List[Token], idx: int) -> Optional[int]:
        """Position of a debit marker among the next non-blank tokens.

        PDFLoader already drops blank words; pages handed to ``parse_pages``
        by other extractors may still carry them between amount and marker.
        """
        for j in range(idx + 1, min(idx + 1 + self.MARKER_LOOKAHEAD, len(tokens))):
            text = tokens[j].text.strip()
            if text == self.debit_marker:
                return j
            if text:
                return None
        return None

    def _is_terminator(self, text: str) -> bool:
        lowered = text.lower()
        return any(phrase in lowered for phrase in self.terminators)

    def _is_description_fragment(self, text: str) -> bool:
        stripped = text.strip()
        return bool(stripped) and stripped not in (self.debit_marker, self.credit_marker) \
            and not is_dot_money(stripped) and not is_day_month(stripped)

    def _emit(self, draft: Optional[Dict[str, Any]], year: int,
              records: List[TransactionRecord]):
        if draft is None:
            return

        description = normalize_text(' '.join(draft['fragments']))
        kind = draft['kind']
        amount = draft['amount']
        balance = draft['balance']

        if description.lower() == self.opening_balance_phrase:
            kind = TransactionKind.OPENING_BALANCE
            # The opening line prints a single figure: the starting balance
            if balance is None:
                balance = amount

        if amount is None or balance is None:
            logger.debug(f"Dropping {draft['date']} '{description}': no amount/balance")
            return

        records.append(TransactionRecord(
            year=year,
            date_day_month=draft['date'],
            description=description,
            kind=kind,
            amount=amount,
            balance=balance
        ))
