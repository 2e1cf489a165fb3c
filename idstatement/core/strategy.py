"""
Strategy base class and the fallback chain that escalates between strategies.
"""
from typing import List, Optional, Sequence, Tuple
import logging

from .loader import Token
from ..models.schema import TransactionKind, TransactionRecord

logger = logging.getLogger(__name__)

OPENING_BALANCE_PHRASE = "saldo awal"


class TransactionStrategy:
    """One heuristic that turns a page's tokens into transaction records.

    Subclasses implement :meth:`parse` and must never raise on malformed
    layout: anything they cannot recognise is simply skipped.
    """

    name = "strategy"

    def __init__(self, opening_balance_phrase: str = OPENING_BALANCE_PHRASE):
        self.opening_balance_phrase = opening_balance_phrase.lower()

    def parse(self, tokens: List[Token], year: int) -> List[TransactionRecord]:
        raise NotImplementedError

    def classify(self, signed_text: str, description: str) -> TransactionKind:
        """Sign decides debit/credit; an opening-balance description wins."""
        if self.opening_balance_phrase in description.lower():
            return TransactionKind.OPENING_BALANCE
        if signed_text.startswith('-'):
            return TransactionKind.DEBIT
        return TransactionKind.CREDIT

    def __repr__(self):
        return f"{self.__class__.__name__}()"


class StrategyChain:
    """Ordered strategies tried until one yields records."""

    def __init__(self, strategies: Sequence[TransactionStrategy]):
        if not strategies:
            raise ValueError("A strategy chain needs at least one strategy")
        self.strategies = list(strategies)

    def run(self, tokens: List[Token], year: int) -> Tuple[List[TransactionRecord], Optional[str]]:
        """
        Run strategies in order.

        Args:
            tokens: Page tokens
            year: Resolved statement year

        Returns:
            (records, name of the strategy that produced them or None)
        """
        for strategy in self.strategies:
            records = strategy.parse(tokens, year)
            if records:
                logger.debug(f"{strategy.name} produced {len(records)} records")
                return records, strategy.name
            logger.debug(f"{strategy.name} produced nothing, escalating")

        return [], None

    @property
    def names(self) -> List[str]:
        return [s.name for s in self.strategies]
