"""
Serialization of parsed transactions to CSV and JSON.
"""
import csv
import io
from pathlib import Path
from typing import Iterable, List, TextIO
import logging

from .models.schema import StatementResult, TransactionRecord

logger = logging.getLogger(__name__)

CSV_COLUMNS = ["tgl", "ket", "type", "mutasi", "saldo"]


def record_to_row(record: TransactionRecord) -> dict:
    return {
        "tgl": record.date_text,
        "ket": record.description,
        "type": record.kind.value,
        "mutasi": str(record.amount),
        "saldo": str(record.balance),
    }


def write_csv_rows(records: Iterable[TransactionRecord], handle: TextIO):
    writer = csv.DictWriter(handle, fieldnames=CSV_COLUMNS, quoting=csv.QUOTE_ALL,
                            lineterminator="\n")
    writer.writeheader()
    for record in records:
        writer.writerow(record_to_row(record))


def to_csv(records: Iterable[TransactionRecord]) -> str:
    """Render records as CSV text."""
    buffer = io.StringIO()
    write_csv_rows(records, buffer)
    return buffer.getvalue()


def write_csv(records: List[TransactionRecord], path: Path) -> Path:
    """
    Write records to a CSV file.

    Args:
        records: Records to write
        path: Destination file

    Returns:
        The path written
    """
    with open(path, 'w', encoding='utf-8', newline='') as f:
        write_csv_rows(records, f)
    logger.info(f"Wrote {len(records)} transactions to {path}")
    return path


def to_json(result: StatementResult, indent: int = 2) -> str:
    return result.model_dump_json(indent=indent)
