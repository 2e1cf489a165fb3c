"""
Debug overlay tool for visual QA of token classification.
"""
from pathlib import Path
from typing import List, Optional, Tuple
import logging
from PIL import Image, ImageDraw, ImageFont
import fitz  # PyMuPDF

from ..core.detectors import TemplateDetector
from ..core.errors import PasswordError
from ..core.loader import PDFLoader, PageData, Token
from ..core.normalize import is_day_month, is_dot_money, is_local_money, is_long_date, is_timestamp
from ..core.tables import group_by_y

logger = logging.getLogger(__name__)

COLORS = {
    'anchor': (255, 0, 0, 220),
    'date': (0, 170, 0, 220),
    'money': (255, 140, 0, 220),
    'timestamp': (128, 128, 128, 200),
    'text': (0, 150, 255, 128),
}


def _font(size: int):
    try:
        return ImageFont.truetype("arial.ttf", size)
    except OSError:
        return ImageFont.load_default()


class DebugOverlay:
    """Creates visual debug overlays showing how tokens were classified."""

    def __init__(self, pdf_path: Path, template_id: str, password: Optional[str] = None):
        self.pdf_path = pdf_path
        self.template_id = template_id

        detector = TemplateDetector()
        self.template = detector.require_template(template_id)
        self.anchor_labels = self._anchor_labels()

        self.loader = PDFLoader(pdf_path, password=password,
                                extraction=self.template.get('extraction'))
        self.pages = self.loader.load()

        self.pdf_doc = fitz.open(str(pdf_path))
        if self.pdf_doc.needs_pass and not self.pdf_doc.authenticate(password or ""):
            raise PasswordError("Could not unlock PDF for rendering")

    def _anchor_labels(self) -> set:
        labels = set()
        for value in self.template.get('anchors', {}).values():
            if isinstance(value, str):
                labels.add(value.lower())
        for values in self.template.get('header', {}).values():
            labels.update(v.lower() for v in values)
        return labels

    def classify(self, token: Token) -> str:
        """Name of the role a token plays for the template's parsers."""
        text = token.text
        if text.lower() in self.anchor_labels:
            return 'anchor'
        if is_day_month(text) or is_long_date(text):
            return 'date'
        if is_dot_money(text) or is_local_money(text):
            return 'money'
        if is_timestamp(text):
            return 'timestamp'
        return 'text'

    def create_overlays(self, output_dir: Path) -> List[Path]:
        """
        Create debug overlay images for all pages.

        Args:
            output_dir: Directory to save overlay images

        Returns:
            Paths of the written images
        """
        output_dir.mkdir(parents=True, exist_ok=True)
        written = []

        for page_data in self.pages:
            page_num = page_data.page_num

            pdf_page = self.pdf_doc[page_num - 1]
            mat = fitz.Matrix(2.0, 2.0)  # 2x zoom for better visibility
            pix = pdf_page.get_pixmap(matrix=mat)
            img = Image.frombytes("RGB", [pix.width, pix.height], pix.samples)

            overlay = self._create_page_overlay(page_data, img.size)
            combined = Image.alpha_composite(img.convert("RGBA"), overlay)

            output_path = output_dir / f"page_{page_num:02d}_overlay.png"
            combined.save(output_path)
            written.append(output_path)
            logger.info(f"Created overlay: {output_path}")

        return written

    def _create_page_overlay(self, page_data: PageData, img_size: Tuple[int, int]) -> Image.Image:
        overlay = Image.new("RGBA", img_size, (0, 0, 0, 0))
        draw = ImageDraw.Draw(overlay)

        scale_x = img_size[0] / page_data.width
        scale_y = img_size[1] / page_data.height

        if self.template.get('layout') == 'row_table':
            self._draw_row_bands(draw, page_data, scale_y, img_size[0])

        font = _font(8)
        for token in page_data.tokens:
            role = self.classify(token)
            x0, y0, x1, y1 = self._token_box(token, page_data, scale_x, scale_y)
            width = 1 if role == 'text' else 2
            draw.rectangle([x0, y0, x1, y1], outline=COLORS[role], width=width)
            if role != 'text':
                draw.text((x0, y0 - 10), role, fill=COLORS[role], font=font)

        return overlay

    def _draw_row_bands(self, draw: ImageDraw.Draw, page_data: PageData,
                        scale_y: float, img_width: int):
        """Draw a guide line under every reconstructed row."""
        tolerances = self.template.get('tolerances', {})
        for row in group_by_y(page_data.tokens, tolerances.get('row_bucket', 2)):
            y = int((page_data.height - row[0].y) * scale_y)
            draw.line([0, y, img_width, y], fill=(255, 255, 0, 120), width=1)

    @staticmethod
    def _token_box(token: Token, page_data: PageData,
                   scale_x: float, scale_y: float) -> Tuple[int, int, int, int]:
        """Convert a token from PDF space (y up) to image space (y down)."""
        width = token.width or 0
        height = token.height or 0
        bottom = page_data.height - token.y
        return (
            int(token.x * scale_x),
            int((bottom - height) * scale_y),
            int((token.x + width) * scale_x),
            int(bottom * scale_y),
        )

    def close(self):
        """Close resources."""
        if hasattr(self, 'loader'):
            self.loader.close()
        if hasattr(self, 'pdf_doc'):
            self.pdf_doc.close()


def create_debug_overlay(pdf_path: Path, template_id: str, output_dir: Path,
                         password: Optional[str] = None) -> List[Path]:
    """
    Create debug overlay images for a PDF.

    Args:
        pdf_path: Path to PDF file
        template_id: Template ID to use
        output_dir: Directory to save overlay images
        password: Password for encrypted PDFs

    Returns:
        Paths of the written images
    """
    overlay = DebugOverlay(pdf_path, template_id, password=password)
    try:
        return overlay.create_overlays(output_dir)
    finally:
        overlay.close()
