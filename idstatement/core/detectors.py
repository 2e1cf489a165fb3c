"""
Template registry and advisory format detection.

Templates are YAML files keyed by ``template_id``. Detection is only a
hint for the CLI ``detect`` command and the API's ``auto`` mode; parsing
always uses the template the caller names.
"""
import yaml
from pathlib import Path
from typing import Dict, Any, Optional, List
import logging

from .anchors import find_anchors_in_page
from .errors import UnknownFormatError
from .loader import PDFLoader, PageData

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).parent.parent / "templates"


def read_template(path: Path) -> Optional[Dict[str, Any]]:
    """Parse one template file, or None when it is unreadable or has no id."""
    try:
        data = yaml.safe_load(path.read_text(encoding='utf-8'))
    except (OSError, yaml.YAMLError) as e:
        logger.error(f"Skipping template {path.name}: {e}")
        return None

    if not isinstance(data, dict) or not data.get('template_id'):
        logger.warning(f"Skipping template {path.name}: missing template_id")
        return None
    return data


class TemplateDetector:
    """Registry of statement templates."""

    def __init__(self, templates_dir: Optional[Path] = None):
        self.templates_dir = templates_dir or TEMPLATES_DIR
        self.templates: Dict[str, Dict[str, Any]] = {}

        if not self.templates_dir.is_dir():
            logger.warning(f"No templates directory at {self.templates_dir}")
            return

        for path in sorted(self.templates_dir.glob("*.yaml")):
            template = read_template(path)
            if template:
                self.templates[template['template_id']] = template

        logger.debug(f"Templates available: {', '.join(self.list_templates())}")

    def detect_template(self, pages: List[PageData]) -> Optional[str]:
        """
        Pick the first template, by priority, whose labels all appear on one page.

        Args:
            pages: Pages of the document

        Returns:
            Template ID, or None when nothing matches
        """
        if not pages:
            logger.error("No pages to inspect")
            return None

        by_priority = sorted(self.templates.values(), key=lambda t: t.get('priority', 100))
        for template in by_priority:
            if any(not self.missing_labels(page, template) for page in pages):
                logger.info(f"Pages match template: {template['template_id']}")
                return template['template_id']

        logger.warning("No template matches these pages")
        return None

    def missing_labels(self, page: PageData, template: Dict[str, Any]) -> List[str]:
        """Required labels of ``template`` that cannot be found on ``page``."""
        rules = template.get('page_match', {})
        required = rules.get('must_contain', [])
        if not required:
            # A template without labels would match any document
            return ['<no labels configured>']

        found = find_anchors_in_page(page, required, rules.get('fuzzy_threshold', 85))
        missing = [label for label in required if label not in found]
        if missing:
            logger.debug(f"Page {page.page_num} lacks {missing} for {template['template_id']}")
        return missing

    def get_template(self, template_id: str) -> Optional[Dict[str, Any]]:
        return self.templates.get(template_id)

    def require_template(self, template_id: str) -> Dict[str, Any]:
        """Get template configuration by ID or raise UnknownFormatError."""
        template = self.get_template(template_id)
        if not template:
            raise UnknownFormatError(
                f"Template not found: {template_id} "
                f"(available: {', '.join(self.list_templates())})"
            )
        return template

    def list_templates(self) -> List[str]:
        return sorted(self.templates)


def detect_template(pdf_path: Path, password: Optional[str] = None) -> Optional[str]:
    """
    Open a PDF and report which template its pages match.

    Args:
        pdf_path: Path to PDF file
        password: Password for encrypted PDFs

    Returns:
        Template ID, or None when nothing matches
    """
    registry = TemplateDetector()
    with PDFLoader(pdf_path, password=password) as loader:
        return registry.detect_template(loader.load())
