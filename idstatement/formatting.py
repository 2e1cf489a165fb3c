"""
Display helpers for parsed transactions.

These only decorate output; they never change the records themselves.
"""
from decimal import Decimal, ROUND_HALF_UP

from .models.schema import TransactionKind, TransactionRecord

# Biller codes seen in e-wallet top-ups and bill payments, first match wins
MERCHANT_CODES = [
    ("UBP60146073701FFFFFF", "GOJEK"),
    ("UBP60148930801", "SHOPEEPAY"),
    ("UBP6014530180", "PEMBAYARAN KAI"),
    ("UBP6014400190", "MANDIRI PULSA"),
    ("UBP60146000101FF", "GRAB / OVO"),
    ("UBP60148890801F", "MIDTRANS"),
    ("UBP6014603290", "E-MONEY"),
]

KIND_COLORS = {
    TransactionKind.CREDIT: "green",
    TransactionKind.OPENING_BALANCE: "green",
    TransactionKind.DEBIT: "red",
}


def tag_description(description: str) -> str:
    """Append the merchant label for a known biller code."""
    for code, label in MERCHANT_CODES:
        if code in description:
            return f"{description} **({label})**"
    return description


def format_rupiah(amount: Decimal) -> str:
    """Format an amount the Indonesian way, e.g. ``Rp1.234.567,89``."""
    quantized = Decimal(amount).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)
    sign = '-' if quantized < 0 else ''
    grouped = f"{abs(quantized):,.2f}"
    local = grouped.replace(',', '_').replace('.', ',').replace('_', '.')
    return f"{sign}Rp{local}"


def mutation_text(record: TransactionRecord) -> str:
    """Signed amount as shown next to a statement line."""
    prefix = '-' if record.kind == TransactionKind.DEBIT else '+'
    return f"{prefix}{format_rupiah(record.amount)}"


def kind_color(record: TransactionRecord) -> str:
    return KIND_COLORS.get(record.kind, "white")
