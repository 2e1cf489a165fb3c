"""
End-to-end parsing orchestration.
"""
from typing import Any, Dict, List, Optional
import logging

from .detectors import TemplateDetector
from .errors import DocumentLoadError, UnknownFormatError
from .loader import PageData, PasswordCallback, PDFLoader, PDFSource
from .normalize import extract_period_year
from .proximity import DirectTokenParser
from .sequential import SequentialStatementParser
from .strategy import OPENING_BALANCE_PHRASE, StrategyChain, TransactionStrategy
from .tables import PatternLineParser, RowReconstructionParser
from ..models.schema import PageReport, StatementResult

logger = logging.getLogger(__name__)

DEFAULT_FALLBACK_YEAR = 2025


def build_strategies(template: Dict[str, Any]) -> List[TransactionStrategy]:
    """
    Instantiate the strategies a template asks for, in fallback order.

    Args:
        template: Template configuration

    Returns:
        Ordered list of strategies
    """
    layout = template.get('layout')
    phrase = template.get('opening_balance', OPENING_BALANCE_PHRASE)

    if layout == 'sequential':
        anchors = template.get('anchors', {})
        markers = template.get('markers', {})
        return [SequentialStatementParser(
            period_label=anchors.get('period_label', 'PERIODE'),
            date_label=anchors.get('date_label', 'TANGGAL'),
            description_label=anchors.get('description_label', 'KETERANGAN'),
            branch_marker=markers.get('branch_code', 'CBG'),
            debit_marker=markers.get('debit', 'DB'),
            credit_marker=markers.get('credit', 'CR'),
            terminators=template.get('terminators', ("saldo awal :", "bersambung ke halaman")),
            opening_balance_phrase=phrase,
            fuzzy_threshold=anchors.get('fuzzy_threshold', 100)
        )]

    if layout == 'row_table':
        header = template.get('header', {})
        tolerances = template.get('tolerances', {})
        factories = {
            'row_reconstruction': lambda: RowReconstructionParser(
                row_number_labels=header.get('row_number', ['no']),
                date_labels=header.get('date', ['tanggal', 'date']),
                opening_balance_phrase=phrase,
                row_bucket=tolerances.get('row_bucket')
            ),
            'direct_token': lambda: DirectTokenParser(
                opening_balance_phrase=phrase,
                number_window=tolerances.get('number_window'),
                description_window=tolerances.get('description_window')
            ),
            'pattern_line': lambda: PatternLineParser(
                opening_balance_phrase=phrase,
                line_bucket=tolerances.get('line_bucket')
            ),
        }
        names = template.get('strategies') or list(factories)
        unknown = [name for name in names if name not in factories]
        if unknown:
            raise UnknownFormatError(f"Unknown strategies in template: {', '.join(unknown)}")
        return [factories[name]() for name in names]

    raise UnknownFormatError(f"Unsupported layout: {layout}")


class StatementParser:
    """Main parser class that orchestrates the page loop for one template."""

    def __init__(self, template_id: str, fallback_year: Optional[int] = None,
                 verbose: bool = False, detector: Optional[TemplateDetector] = None):
        self.template_id = template_id
        self.verbose = verbose

        detector = detector or TemplateDetector()
        self.template = detector.require_template(template_id)

        year_config = self.template.get('year', {})
        self.fallback_year = fallback_year or year_config.get('fallback', DEFAULT_FALLBACK_YEAR)
        self.chain = StrategyChain(build_strategies(self.template))

        if verbose:
            logging.basicConfig(level=logging.DEBUG)

    def parse(self, source: PDFSource, password: Optional[str] = None,
              ask_password: Optional[PasswordCallback] = None,
              ask_retry_password: Optional[PasswordCallback] = None) -> StatementResult:
        """
        Load a PDF and parse every page.

        Args:
            source: Path, bytes or binary file object
            password: Password to try first
            ask_password: Called when the PDF needs a password
            ask_retry_password: Called after a rejected password

        Returns:
            StatementResult object
        """
        loader = PDFLoader(
            source,
            password=password,
            ask_password=ask_password,
            ask_retry_password=ask_retry_password,
            extraction=self.template.get('extraction')
        )
        try:
            pages = loader.load()

            if not pages:
                raise DocumentLoadError("No pages found in PDF")

            return self.parse_pages(pages)

        finally:
            loader.close()

    def parse_pages(self, pages: List[PageData]) -> StatementResult:
        """
        Parse already extracted pages. Performs no I/O.

        Args:
            pages: Pages in document order

        Returns:
            StatementResult object
        """
        year = self.resolve_document_year(pages)
        transactions = []
        reports = []

        for page in pages:
            if self._is_trailing_disclaimer(page, pages):
                logger.info(f"Skipping disclaimer page {page.page_num}")
                reports.append(PageReport(
                    page_num=page.page_num, skipped=True, reason="trailing disclaimer"
                ))
                continue

            records, strategy = self.chain.run(page.tokens, year)
            if records:
                logger.info(f"Page {page.page_num}: {len(records)} transactions via {strategy}")
            else:
                logger.info(f"Page {page.page_num}: no transactions recognised")

            reports.append(PageReport(
                page_num=page.page_num,
                strategy=strategy,
                records=len(records),
                reason=None if records else "no transactions recognised"
            ))
            transactions.extend(records)

        return StatementResult(
            template_id=self.template_id,
            year=year,
            transactions=transactions,
            pages=reports
        )

    def resolve_document_year(self, pages: List[PageData]) -> int:
        """Statement year read from the first page, or the fallback year."""
        if not pages:
            return self.fallback_year

        source = self.template.get('year', {}).get('source')
        year = None

        if source == 'first_page_period':
            year = extract_period_year(pages[0].text)
        elif source == 'period_label':
            sequential = self.chain.strategies[0]
            year = sequential.resolve_year(pages[0].tokens, self.fallback_year)

        if year is None:
            logger.warning(f"Statement period not found, using fallback year {self.fallback_year}")
            return self.fallback_year
        return year

    def _is_trailing_disclaimer(self, page: PageData, pages: List[PageData]) -> bool:
        """Last page carrying the disclaimer marker but none of the column headers.

        Headers are matched as printed, so each template lists its own casing.
        """
        config = self.template.get('disclaimer')
        if not config or page is not pages[-1]:
            return False

        text = page.text
        if config.get('marker', 'disclaimer').lower() not in text.lower():
            return False

        return not any(header in text for header in config.get('headers', []))


def parse_pages(pages: List[PageData], template_id: str,
                fallback_year: Optional[int] = None) -> StatementResult:
    """
    Parse already extracted pages with the given template.

    Args:
        pages: Pages in document order
        template_id: Template ID to use
        fallback_year: Year used when the statement period cannot be read

    Returns:
        StatementResult object
    """
    return StatementParser(template_id, fallback_year).parse_pages(pages)


def parse_statement(source: PDFSource, template_id: str,
                    password: Optional[str] = None,
                    ask_password: Optional[PasswordCallback] = None,
                    ask_retry_password: Optional[PasswordCallback] = None,
                    fallback_year: Optional[int] = None,
                    verbose: bool = False) -> StatementResult:
    """
    Parse a bank statement PDF.

    Args:
        source: Path, bytes or binary file object
        template_id: Template ID to use
        password: Password to try first
        ask_password: Called when the PDF needs a password
        ask_retry_password: Called after a rejected password
        fallback_year: Year used when the statement period cannot be read
        verbose: Enable verbose logging

    Returns:
        StatementResult object
    """
    parser = StatementParser(template_id, fallback_year, verbose)
    return parser.parse(source, password, ask_password, ask_retry_password)
