"""
Anchor finding over token streams using fuzzy matching.
"""
from typing import List, Optional, Dict, Iterable
from rapidfuzz import fuzz
import logging

from .loader import Token, PageData

logger = logging.getLogger(__name__)


class AnchorMatch:
    """Represents a found anchor with position and confidence."""
    def __init__(self, index: int, token: Token, confidence: float, target: str):
        self.index = index
        self.token = token
        self.confidence = confidence
        self.target = target

    def __repr__(self):
        return f"AnchorMatch('{self.target}', index={self.index}, confidence={self.confidence:.1f})"


def find_anchor(tokens: List[Token], target: str, fuzzy_threshold: float = 100,
                start: int = 0, stop: Optional[int] = None) -> Optional[AnchorMatch]:
    """
    Find the first exact anchor, or the best fuzzy one, in a token range.

    Args:
        tokens: Token stream to search
        target: Anchor text to find
        fuzzy_threshold: Minimum rapidfuzz ratio (0-100); 100 means exact only
        start: First index to inspect
        stop: Index to stop before (defaults to end of stream)

    Returns:
        AnchorMatch if found, None otherwise
    """
    start = max(start, 0)
    stop = len(tokens) if stop is None else min(stop, len(tokens))

    for i in range(start, stop):
        if tokens[i].text == target:
            return AnchorMatch(i, tokens[i], 100.0, target)

    if fuzzy_threshold >= 100:
        return None

    best_match = None
    best_confidence = 0.0
    target_lower = target.lower()

    for i in range(start, stop):
        confidence = fuzz.ratio(tokens[i].text.lower(), target_lower)
        if confidence > best_confidence and confidence >= fuzzy_threshold:
            best_confidence = confidence
            best_match = AnchorMatch(i, tokens[i], confidence, target)

    return best_match


def find_anchor_index(tokens: List[Token], target: str, fuzzy_threshold: float = 100,
                      start: int = 0, stop: Optional[int] = None) -> int:
    """Index of the anchor found by :func:`find_anchor`, or -1."""
    match = find_anchor(tokens, target, fuzzy_threshold, start, stop)
    return match.index if match else -1


def find_anchors_in_page(page: PageData, targets: Iterable[str],
                         fuzzy_threshold: float = 85) -> Dict[str, AnchorMatch]:
    """
    Find multiple anchors in a page.

    Args:
        page: Page data to search
        targets: Target strings to find
        fuzzy_threshold: Minimum confidence score

    Returns:
        Dictionary mapping target strings to AnchorMatch objects
    """
    results = {}

    for target in targets:
        match = find_anchor(page.tokens, target, fuzzy_threshold)
        if match:
            results[target] = match
            logger.debug(f"Found anchor '{target}' with confidence {match.confidence:.1f}")
        else:
            logger.debug(f"Anchor '{target}' not found on page {page.page_num}")

    return results
