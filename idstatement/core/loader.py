"""
PDF loading and token extraction using pdfplumber.
"""
import io
import re
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Callable, Dict, Any, List, Optional, Union
import logging

import pdfplumber
from pdfminer.pdfdocument import PDFPasswordIncorrect

from .errors import DocumentLoadError, PasswordError

logger = logging.getLogger(__name__)

PasswordCallback = Callable[[], Optional[str]]
PDFSource = Union[str, Path, bytes, BinaryIO]

DEFAULT_EXTRACTION = {
    'x_tolerance': 1.5,
    'y_tolerance': 2,
    'keep_blank_chars': True,
    'use_text_flow': True,
}

LIGATURES = {
    'ﬁ': 'fi',
    'ﬂ': 'fl',
    'ﬀ': 'ff',
    'ﬃ': 'ffi',
    'ﬄ': 'ffl',
    'ﬆ': 'st',
    'ﬅ': 'st'
}


@dataclass(frozen=True, eq=False, repr=False)
class Token:
    """A positioned text fragment, read-only once extracted.

    ``y`` is in PDF user space (grows upward), so reading order top to
    bottom is descending ``y``. Equality is identity: two fragments with the
    same text and position are still different tokens.
    """
    text: str
    x: float
    y: float
    width: Optional[float] = None
    height: Optional[float] = None

    def __repr__(self):
        return f"Token('{self.text}', x={self.x:.1f}, y={self.y:.1f})"


class PageData:
    """Represents a page with extracted tokens and metadata."""
    def __init__(self, page_num: int, width: float, height: float, tokens: List[Token]):
        self.page_num = page_num
        self.width = width
        self.height = height
        self.tokens = tokens

    @property
    def text(self) -> str:
        """All token texts joined with single spaces."""
        return ' '.join(token.text for token in self.tokens)

    def __repr__(self):
        return f"PageData(page_num={self.page_num}, tokens={len(self.tokens)})"


def _is_password_failure(exc: BaseException) -> bool:
    """pdfplumber wraps pdfminer errors, so look one level down as well."""
    if isinstance(exc, PDFPasswordIncorrect):
        return True
    inner = exc.args[0] if exc.args else None
    if isinstance(inner, PDFPasswordIncorrect):
        return True
    return isinstance(exc.__cause__, PDFPasswordIncorrect)


def normalize_token_text(text: str) -> str:
    """Normalize text by handling ligatures and multiple spaces."""
    for ligature, replacement in LIGATURES.items():
        text = text.replace(ligature, replacement)
    text = re.sub(r'\s+', ' ', text)
    return text.strip()


class PDFLoader:
    """Handles PDF opening, decryption and token extraction."""

    def __init__(self, source: PDFSource, password: Optional[str] = None,
                 ask_password: Optional[PasswordCallback] = None,
                 ask_retry_password: Optional[PasswordCallback] = None,
                 max_password_attempts: int = 3,
                 extraction: Optional[Dict[str, Any]] = None):
        self.source = source
        self.password = password
        self.ask_password = ask_password
        self.ask_retry_password = ask_retry_password
        self.max_password_attempts = max_password_attempts
        self.extraction = dict(DEFAULT_EXTRACTION, **(extraction or {}))
        self._pdf = None
        self._pages = []

    def _stream(self):
        if isinstance(self.source, (str, Path)):
            return self.source
        if isinstance(self.source, (bytes, bytearray)):
            return io.BytesIO(self.source)
        self.source.seek(0)
        return self.source

    def _open(self):
        """Open the document, asking for passwords as needed."""
        password = self.password
        attempts = 0

        while True:
            try:
                pdf = pdfplumber.open(self._stream(), password=password or "")
                if attempts:
                    logger.info(f"PDF unlocked after {attempts} password attempt(s)")
                return pdf
            except Exception as e:
                if not _is_password_failure(e):
                    logger.error(f"Error opening PDF: {e}")
                    raise DocumentLoadError(f"Could not open PDF: {e}") from e

            if attempts >= self.max_password_attempts:
                raise PasswordError("Incorrect password", attempts=attempts)

            callback = self.ask_password if password is None else self.ask_retry_password
            if callback is None:
                raise PasswordError("PDF is password protected", attempts=attempts)

            password = callback()
            attempts += 1
            if not password:
                raise PasswordError("No password supplied", attempts=attempts)

    def load(self) -> List[PageData]:
        """Load PDF and extract tokens from all pages."""
        if self._pages:
            return self._pages

        self._pdf = self._open()
        logger.info(f"Loaded PDF with {len(self._pdf.pages)} pages")

        try:
            for i, page in enumerate(self._pdf.pages, 1):
                words_data = page.extract_words(**self.extraction)

                tokens = []
                for word_data in words_data:
                    text = normalize_token_text(word_data.get('text', ''))
                    if not text:
                        continue
                    x0 = word_data.get('x0', 0)
                    x1 = word_data.get('x1', 0)
                    top = word_data.get('top', 0)
                    bottom = word_data.get('bottom', 0)
                    tokens.append(Token(
                        text=text,
                        x=x0,
                        y=page.height - bottom,
                        width=x1 - x0,
                        height=bottom - top
                    ))

                self._pages.append(PageData(
                    page_num=i,
                    width=page.width,
                    height=page.height,
                    tokens=tokens
                ))
                logger.debug(f"Page {i}: {len(tokens)} tokens extracted")
        except Exception as e:
            logger.error(f"Error extracting tokens: {e}")
            raise DocumentLoadError(f"Could not read PDF content: {e}") from e

        return self._pages

    def get_page(self, page_num: int) -> Optional[PageData]:
        """Get a specific page by number (1-indexed)."""
        if not self._pages:
            self.load()

        if 1 <= page_num <= len(self._pages):
            return self._pages[page_num - 1]
        return None

    def close(self):
        """Close the PDF file."""
        if self._pdf:
            self._pdf.close()
            self._pdf = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
