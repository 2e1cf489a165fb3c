"""
Tests for the BCA sequential parser.
"""
from decimal import Decimal

from .conftest import stream_tokens
from ..core.loader import Token
from ..core.sequential import SequentialStatementParser
from ..models.schema import TransactionKind


class TestSequentialStatementParser:

    def test_debit_record(self, bca_header):
        tokens = stream_tokens(bca_header + ["01/01", "TARIKAN ATM", "50,000.00", "DB", "950,000.00"])

        records = SequentialStatementParser().parse(tokens, 2025)

        assert len(records) == 1
        record = records[0]
        assert record.kind == TransactionKind.DEBIT
        assert record.amount == Decimal("50000")
        assert record.balance == Decimal("950000")
        assert record.description == "TARIKAN ATM"
        assert record.date_day_month == "01/01"
        assert record.year == 2024

    def test_full_page(self, bca_page_tokens):
        records = SequentialStatementParser().parse(bca_page_tokens, 2025)

        assert [r.date_day_month for r in records] == ["01/01", "02/01", "03/01"]

        opening, debit, credit = records
        assert opening.kind == TransactionKind.OPENING_BALANCE
        assert opening.amount == Decimal("1000000")
        assert opening.balance == Decimal("1000000")

        assert debit.kind == TransactionKind.DEBIT

        assert credit.kind == TransactionKind.CREDIT
        assert credit.amount == Decimal("200000")
        assert credit.balance == Decimal("1150000")
        # Branch code pair is skipped, continuation line is kept
        assert credit.description == "TRSF E-BANKING CR ANDI BIAYA ADMIN"

    def test_debit_marker_after_blank_token(self, bca_header):
        tokens = stream_tokens(bca_header + ["05/02", "BIAYA ADM", "15,000.00", "", "DB", "85,000.00"])

        records = SequentialStatementParser().parse(tokens, 2025)

        assert len(records) == 1
        assert records[0].kind == TransactionKind.DEBIT
        assert records[0].balance == Decimal("85000")
        assert records[0].description == "BIAYA ADM"

    def test_money_without_marker_is_credit(self, bca_header):
        tokens = stream_tokens(bca_header + ["05/02", "BUNGA", "1,234.56", "86,234.56"])

        records = SequentialStatementParser().parse(tokens, 2025)

        assert records[0].kind == TransactionKind.CREDIT
        assert records[0].amount == Decimal("1234.56")

    def test_multi_fragment_description(self, bca_header):
        tokens = stream_tokens(bca_header + [
            "06/02", "TRSF E-BANKING DB", "0602/FTSCY/WS95031", "BUDI SANTOSO",
            "100,000.00", "DB", "900,000.00",
        ])

        records = SequentialStatementParser().parse(tokens, 2025)

        assert records[0].description == "TRSF E-BANKING DB 0602/FTSCY/WS95031 BUDI SANTOSO"
        assert records[0].kind == TransactionKind.DEBIT

    def test_opening_balance_is_case_insensitive(self, bca_header):
        tokens = stream_tokens(bca_header + ["01/03", "Saldo Awal", "0.00", "500,000.00"])

        records = SequentialStatementParser().parse(tokens, 2025)

        assert records[0].kind == TransactionKind.OPENING_BALANCE
        assert records[0].balance == Decimal("500000")

    def test_record_without_balance_is_dropped(self, bca_header):
        tokens = stream_tokens(bca_header + [
            "07/02", "SETORAN", "10.00",
            "08/02", "TARIKAN", "5.00", "DB", "5.00",
        ])

        records = SequentialStatementParser().parse(tokens, 2025)

        assert [r.date_day_month for r in records] == ["08/02"]

    def test_terminator_ends_page(self, bca_header):
        tokens = stream_tokens(bca_header + [
            "09/02", "SETORAN", "10.00", "20.00",
            "SALDO AWAL : 10.00",
            "10/02", "SETORAN", "10.00", "30.00",
        ])

        records = SequentialStatementParser().parse(tokens, 2025)

        assert len(records) == 1

    def test_missing_period_label(self):
        tokens = stream_tokens(["TANGGAL", "KETERANGAN", "01/01", "X", "1.00", "2.00"])

        assert SequentialStatementParser().parse(tokens, 2025) == []

    def test_missing_description_header(self):
        tokens = stream_tokens(["PERIODE", "JANUARI 2024", "TANGGAL", "MUTASI", "01/01", "X", "1.00", "2.00"])

        assert SequentialStatementParser().parse(tokens, 2025) == []

    def test_description_header_too_far(self):
        tokens = stream_tokens([
            "PERIODE", "JANUARI 2024", "TANGGAL", "A", "B", "C", "D", "E", "KETERANGAN",
            "01/01", "X", "1.00", "2.00",
        ])

        assert SequentialStatementParser().parse(tokens, 2025) == []

    def test_year_falls_back_when_period_has_no_year(self):
        tokens = stream_tokens(["PERIODE", ":", "TANGGAL", "KETERANGAN", "01/01", "X", "1.00", "2.00"])

        records = SequentialStatementParser().parse(tokens, 2019)

        assert records[0].year == 2019

    def test_fuzzy_anchor(self):
        tokens = stream_tokens(["PERIODE:", "MEI 2023", "TANGGAL", "KETERANGAN", "01/05", "X", "1.00", "2.00"])

        assert SequentialStatementParser().parse(tokens, 2025) == []
        records = SequentialStatementParser(fuzzy_threshold=90).parse(tokens, 2025)
        assert records[0].year == 2023

    def test_malformed_stream_does_not_raise(self, bca_header):
        tokens = stream_tokens(bca_header + ["01/01", "CBG"])
        assert SequentialStatementParser().parse(tokens, 2025) == []

        tokens = stream_tokens(bca_header + ["01/01"])
        assert SequentialStatementParser().parse(tokens, 2025) == []

    def test_reparse_is_identical(self, bca_page_tokens):
        parser = SequentialStatementParser()
        first = [r.model_dump() for r in parser.parse(bca_page_tokens, 2025)]
        second = [r.model_dump() for r in parser.parse(bca_page_tokens, 2025)]
        assert first == second

    def test_tokens_are_not_mutated(self, bca_page_tokens):
        snapshot = [(t.text, t.x, t.y) for t in bca_page_tokens]
        SequentialStatementParser().parse(bca_page_tokens, 2025)
        assert [(t.text, t.x, t.y) for t in bca_page_tokens] == snapshot
        assert isinstance(bca_page_tokens[0], Token)
