"""
Tests for row grouping and the row-based Mandiri parsers.
"""
from decimal import Decimal

from .conftest import MANDIRI_HEADER, row_tokens
from ..core.loader import Token
from ..core.tables import PatternLineParser, RowReconstructionParser, group_by_y
from ..models.schema import TransactionKind


class TestGroupByY:

    def test_groups_within_bucket(self):
        a = Token("A", 100.0, 680.4)
        b = Token("B", 20.0, 679.7)
        c = Token("C", 50.0, 650.0)

        rows = group_by_y([c, a, b], bucket=2)

        assert rows == [[b, a], [c]]

    def test_top_to_bottom(self):
        low = Token("low", 0.0, 100.0)
        high = Token("high", 0.0, 700.0)

        assert group_by_y([low, high], bucket=1) == [[high], [low]]

    def test_integer_rounding_is_finer(self):
        a = Token("A", 0.0, 500.2)
        b = Token("B", 10.0, 500.9)

        assert len(group_by_y([a, b], bucket=2)) == 1
        assert len(group_by_y([a, b], bucket=1)) == 2

    def test_empty(self):
        assert group_by_y([]) == []


class TestRowReconstructionParser:

    def test_credit_row(self):
        tokens = row_tokens(MANDIRI_HEADER, 700.0)
        tokens += row_tokens(["1", "01 Jan 2025", "TRANSFER MASUK", "+1.000.000,00", "5.000.000,00"], 680.0)

        records = RowReconstructionParser().parse(tokens, 2025)

        assert len(records) == 1
        record = records[0]
        assert record.kind == TransactionKind.CREDIT
        assert record.amount == Decimal("1000000")
        assert record.balance == Decimal("5000000")
        assert record.description == "TRANSFER MASUK"
        assert record.date_day_month == "01/01"
        assert record.year == 2025

    def test_table_page(self, mandiri_table_tokens):
        records = RowReconstructionParser().parse(mandiri_table_tokens, 2024)

        assert [r.date_day_month for r in records] == ["01/01", "02/01", "03/01"]
        assert records[1].kind == TransactionKind.DEBIT
        assert records[1].amount == Decimal("500000")
        assert records[2].description == "BIAYA ADMIN"
        assert records[2].balance == Decimal("4487500")

    def test_english_header(self):
        tokens = row_tokens(["No", "Date", "Remarks", "Amount", "Balance"], 700.0)
        tokens += row_tokens(["1", "01 Feb 2025", "PAYROLL", "10.000.000,00", "12.000.000,00"], 680.0)

        records = RowReconstructionParser().parse(tokens, 2025)

        assert len(records) == 1
        assert records[0].kind == TransactionKind.CREDIT
        assert records[0].amount == Decimal("10000000")

    def test_no_header(self, mandiri_headerless_tokens):
        assert RowReconstructionParser().parse(mandiri_headerless_tokens, 2024) == []

    def test_rows_above_header_are_ignored(self):
        tokens = row_tokens(["9", "01 Jan 2025", "BUKAN TRANSAKSI", "1,00", "2,00"], 750.0)
        tokens += row_tokens(MANDIRI_HEADER, 700.0)
        tokens += row_tokens(["1", "02 Jan 2025", "SETORAN", "3,00", "5,00"], 680.0)

        records = RowReconstructionParser().parse(tokens, 2025)

        assert [r.description for r in records] == ["SETORAN"]

    def test_incomplete_rows_are_dropped(self):
        tokens = row_tokens(MANDIRI_HEADER, 700.0)
        tokens += row_tokens(["1", "01 Jan 2025", "TANPA SALDO", "-1.000,00"], 680.0)
        tokens += row_tokens(["2", "TANPA TANGGAL", "BIAYA", "-1.000,00", "9.000,00"], 660.0)
        tokens += row_tokens(["x", "03 Jan 2025", "BUKAN NOMOR", "-1.000,00", "9.000,00"], 640.0)
        tokens += row_tokens(["4", "04 Jan 2025", "LENGKAP", "-1.000,00", "8.000,00"], 620.0)

        records = RowReconstructionParser().parse(tokens, 2025)

        assert [r.description for r in records] == ["LENGKAP"]

    def test_impossible_day_is_dropped(self):
        tokens = row_tokens(MANDIRI_HEADER, 700.0)
        tokens += row_tokens(["1", "45 Jan 2024", "X", "-1,00", "2,00"], 680.0)
        tokens += row_tokens(["2", "31 Jan 2024", "Y", "-1,00", "1,00"], 660.0)

        records = RowReconstructionParser().parse(tokens, 2024)

        assert [r.date_day_month for r in records] == ["31/01"]

    def test_opening_balance_phrase_in_description(self):
        tokens = row_tokens(MANDIRI_HEADER, 700.0)
        tokens += row_tokens(["1", "01 Jan 2025", "Saldo Awal Bulan", "-0,00", "7.000.000,00"], 680.0)

        records = RowReconstructionParser().parse(tokens, 2025)

        assert records[0].kind == TransactionKind.OPENING_BALANCE
        assert records[0].amount == Decimal("0")

    def test_timestamp_excluded_and_cells_joined(self):
        tokens = row_tokens(MANDIRI_HEADER, 700.0)
        tokens += row_tokens(["1", "01 Jan 2025", "QRIS", "-25.000,00", "975.000,00"], 680.0)
        tokens.append(Token("KOPI KENANGAN", 200.0, 680.5))
        tokens.append(Token("08:01:02 WIB", 100.0, 679.6))

        records = RowReconstructionParser().parse(tokens, 2025)

        assert records[0].description == "QRIS KOPI KENANGAN"

    def test_rightmost_unsigned_decimal_is_balance(self):
        tokens = row_tokens(MANDIRI_HEADER, 700.0)
        tokens += row_tokens(
            ["1", "01 Jan 2025", "TRANSFER", "-100,00", "5,00", "900,00"],
            680.0, xs=[30.0, 60.0, 150.0, 300.0, 350.0, 450.0]
        )

        records = RowReconstructionParser().parse(tokens, 2025)

        assert records[0].amount == Decimal("100")
        assert records[0].balance == Decimal("900")
        assert records[0].description == "TRANSFER 5,00"


class TestPatternLineParser:

    def test_line(self):
        tokens = row_tokens(
            ["7", "05 Feb 2025", "BELANJA", "10:00:00 WIB", "-75.000,00", "925.000,00"],
            500.0, xs=[30.0, 60.0, 150.0, 250.0, 350.0, 450.0]
        )

        records = PatternLineParser().parse(tokens, 2025)

        assert len(records) == 1
        record = records[0]
        assert record.kind == TransactionKind.DEBIT
        assert record.amount == Decimal("75000")
        assert record.balance == Decimal("925000")
        assert record.description == "BELANJA"
        assert record.date_day_month == "05/02"

    def test_requires_two_numbers_and_ordinal(self):
        tokens = row_tokens(["1", "05 Feb 2025", "BELANJA", "925.000,00"], 500.0)
        tokens += row_tokens(["CATATAN", "06 Feb 2025", "X", "-1,00", "2,00"], 480.0)

        assert PatternLineParser().parse(tokens, 2025) == []

    def test_opening_balance(self):
        tokens = row_tokens(["1", "01 Mar 2025", "SALDO AWAL", "0,00", "1.000,00"], 500.0)

        records = PatternLineParser().parse(tokens, 2025)

        assert records[0].kind == TransactionKind.OPENING_BALANCE
