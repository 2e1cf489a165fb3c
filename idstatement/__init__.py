"""
Indonesian Bank Statement Parser

Extracts transactions from BCA and Mandiri debit statement PDFs by
reconstructing them from positioned text tokens extracted with pdfplumber.
"""

__version__ = "1.0.0"

from .core.runner import parse_statement, parse_pages, StatementParser
from .core.detectors import detect_template
from .core.loader import Token, PageData
from .models.schema import TransactionRecord, TransactionKind, PageReport, StatementResult

__all__ = [
    "parse_statement",
    "parse_pages",
    "StatementParser",
    "detect_template",
    "Token",
    "PageData",
    "TransactionRecord",
    "TransactionKind",
    "PageReport",
    "StatementResult"
]
