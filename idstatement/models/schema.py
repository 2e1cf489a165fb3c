"""
Pydantic models for parsed bank statement data.
"""
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, field_validator

from ..core.normalize import DAY_MONTH_RX


class TransactionKind(str, Enum):
    """Direction of a statement line."""
    DEBIT = "debit"
    CREDIT = "credit"
    OPENING_BALANCE = "opening_balance"


class TransactionRecord(BaseModel):
    """Individual transaction record."""
    year: int
    date_day_month: str
    description: str
    kind: TransactionKind
    amount: Decimal
    balance: Decimal

    @field_validator('date_day_month')
    @classmethod
    def validate_day_month(cls, v):
        if not DAY_MONTH_RX.match(v):
            raise ValueError(f"Expected DD/MM date, got: {v!r}")
        return v

    @field_validator('amount')
    @classmethod
    def validate_amount_magnitude(cls, v):
        """Amounts carry no sign; direction lives in ``kind``."""
        if v < 0:
            raise ValueError(f"Amount must be a magnitude, got: {v}")
        return v

    @property
    def date_text(self) -> str:
        return f"{self.date_day_month}/{self.year}"


class PageReport(BaseModel):
    """Per-page parsing diagnostics."""
    page_num: int
    strategy: Optional[str] = None
    records: int = 0
    skipped: bool = False
    reason: Optional[str] = None


class StatementResult(BaseModel):
    """Complete parse result for one statement document."""
    template_id: str
    year: int
    transactions: List[TransactionRecord]
    pages: List[PageReport]

    @property
    def empty_pages(self) -> List[int]:
        """Pages that were processed but produced no records."""
        return [p.page_num for p in self.pages if not p.skipped and p.records == 0]
