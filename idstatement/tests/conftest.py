"""
Shared fixtures: synthetic token streams for both statement layouts.
"""
import pytest

from ..core.loader import PageData, Token

COLUMN_X = [30.0, 60.0, 150.0, 350.0, 450.0]


def stream_tokens(texts, x=50.0, y=780.0, line_height=12.0):
    """Tokens in document order, one per line, as a sequential layout reads."""
    return [Token(text, x, y - i * line_height, 40.0, 10.0) for i, text in enumerate(texts)]


def row_tokens(cells, y, xs=None):
    """Tokens of one table row laid out on the standard column grid."""
    xs = xs or COLUMN_X
    return [Token(text, xs[i], y, 40.0, 10.0) for i, text in enumerate(cells)]


BCA_HEADER = [
    "REKENING TAHAPAN", "KCU SUDIRMAN", "PERIODE", ":", "JANUARI 2024",
    "MATA UANG", "IDR", "TANGGAL", "KETERANGAN", "CBG", "MUTASI", "SALDO",
]

MANDIRI_HEADER = ["No", "Tanggal", "Keterangan", "Nominal (IDR)", "Saldo (IDR)"]


@pytest.fixture
def bca_header():
    return list(BCA_HEADER)


@pytest.fixture
def bca_page_tokens():
    return stream_tokens(BCA_HEADER + [
        "01/01", "SALDO AWAL", "1,000,000.00",
        "02/01", "TARIKAN ATM", "50,000.00", "DB", "950,000.00",
        "03/01", "TRSF E-BANKING CR", "CBG", "0123", "ANDI", "200,000.00", "1,150,000.00",
        "BIAYA ADMIN",
        "Bersambung ke halaman berikut",
        "04/01", "TIDAK DIBACA", "1.00", "1,150,001.00",
    ])


@pytest.fixture
def mandiri_table_tokens():
    tokens = []
    tokens += [Token("Periode", 30.0, 780.0), Token("01 Jan 2024 - 31 Jan 2024", 90.0, 780.0)]
    tokens += row_tokens(MANDIRI_HEADER, 700.0)
    tokens += row_tokens(["1", "01 Jan 2024", "TRANSFER MASUK", "+1.000.000,00", "5.000.000,00"], 680.0)
    tokens.append(Token("10:15:32 WIB", 60.0, 670.0))
    tokens += row_tokens(["2", "02 Jan 2024", "TARIK TUNAI", "-500.000,00", "4.500.000,00"], 640.0)
    tokens += row_tokens(["3", "03 Jan 2024/2024", "BIAYA ADMIN", "-12.500,00", "4.487.500,00"], 600.0)
    return tokens


@pytest.fixture
def mandiri_headerless_tokens():
    tokens = []
    tokens += row_tokens(["1", "01 Jan 2024", "TRANSFER MASUK", "+1.000.000,00", "5.000.000,00"], 680.0)
    tokens += row_tokens(["2", "02 Jan 2024", "TARIK TUNAI", "-500.000,00", "4.500.000,00"], 640.0)
    return tokens


@pytest.fixture
def make_page():
    def _make(tokens, page_num=1):
        return PageData(page_num=page_num, width=595.0, height=842.0, tokens=tokens)
    return _make
