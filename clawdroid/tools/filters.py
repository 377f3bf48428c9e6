"""
Element filters - Deduplicate, rank and compact UIElements for model context.
"""

import json
import logging
import math
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from clawdroid.agent.models import CompactElement, UIElement
from clawdroid.tools.parsers.uiautomator_parser import (
    compute_screen_hash,
    get_interactive_elements,
)

logger = logging.getLogger("clawdroid")

# Centers closer than this (per axis, after snapping) count as the same on-screen spot
DEDUP_TOLERANCE_PX = 5


class RelevanceWeights(BaseModel):
    """Additive weights of the relevance score."""

    model_config = ConfigDict(frozen=True)

    enabled: int = 10
    editable: int = 8
    focused: int = 6
    actionable: int = 5
    has_text: int = 3


DEFAULT_WEIGHTS = RelevanceWeights()


def relevance_score(element: UIElement, weights: RelevanceWeights = DEFAULT_WEIGHTS) -> int:
    score = 0
    if element.enabled:
        score += weights.enabled
    if element.editable:
        score += weights.editable
    if element.focused:
        score += weights.focused
    if element.clickable or element.long_clickable:
        score += weights.actionable
    if element.text:
        score += weights.has_text
    return score


def compact_element(element: UIElement) -> CompactElement:
    """Reduce a full element to the fields the model needs."""
    return CompactElement(
        text=element.text,
        center=element.center,
        action=element.action,
        enabled=element.enabled,
        checked=element.checked,
        focused=element.focused,
        hint=element.hint,
        editable=element.editable,
        scrollable=element.scrollable,
    )


def _snap(value: int, tolerance: int) -> int:
    # Round half up onto the grid
    return math.floor(value / tolerance + 0.5) * tolerance


class RelevanceFilter:
    """Collapses overlapping elements and keeps the most relevant ones."""

    def __init__(
        self,
        weights: RelevanceWeights = DEFAULT_WEIGHTS,
        tolerance: int = DEDUP_TOLERANCE_PX,
    ):
        if tolerance <= 0:
            raise ValueError(f"tolerance must be positive, got {tolerance}")
        self.weights = weights
        self.tolerance = tolerance

    def score(self, element: UIElement) -> int:
        return relevance_score(element, self.weights)

    def cell(self, element: UIElement) -> Tuple[int, int]:
        return (
            _snap(element.center[0], self.tolerance),
            _snap(element.center[1], self.tolerance),
        )

    def deduplicate(self, elements: List[UIElement]) -> List[UIElement]:
        """Keep one element per grid cell: the highest score, first seen on ties."""
        by_cell: Dict[Tuple[int, int], UIElement] = {}
        for element in elements:
            key = self.cell(element)
            current = by_cell.get(key)
            if current is None or self.score(element) > self.score(current):
                by_cell[key] = element
        return list(by_cell.values())

    def rank(self, elements: List[UIElement], limit: int) -> List[UIElement]:
        """Deduplicate, sort by descending score (stable) and cut to ``limit``."""
        survivors = self.deduplicate(elements)
        survivors.sort(key=self.score, reverse=True)
        if len(elements) != len(survivors):
            logger.debug(f"Collapsed {len(elements) - len(survivors)} overlapping elements")
        return survivors[: max(limit, 0)]

    def filter(self, elements: List[UIElement], limit: int) -> List[CompactElement]:
        return [compact_element(e) for e in self.rank(elements, limit)]


def filter_elements(
    elements: List[UIElement],
    limit: int,
    weights: RelevanceWeights = DEFAULT_WEIGHTS,
    tolerance: int = DEDUP_TOLERANCE_PX,
) -> List[CompactElement]:
    """Dedupe by center, rank by relevance and return the top ``limit`` as compact elements."""
    return RelevanceFilter(weights, tolerance).filter(elements, limit)


def format_screen_context(
    elements: List[CompactElement], max_chars: Optional[int] = None
) -> str:
    """
    Serialize compact elements as a JSON array for the prompt.

    Args:
        elements: Compact elements, most relevant first
        max_chars: Optional size bound; trailing elements are dropped until
            the array fits

    Returns:
        JSON array text
    """
    payloads = [e.to_payload() for e in elements]
    text = json.dumps(payloads, separators=(",", ":"), ensure_ascii=False)
    if max_chars is None:
        return text
    while payloads and len(text) > max_chars:
        payloads.pop()
        text = json.dumps(payloads, separators=(",", ":"), ensure_ascii=False)
    return text


class ScreenSnapshot(BaseModel):
    """Everything derived from one hierarchy dump."""

    elements: List[UIElement]
    compact: List[CompactElement]
    screen_hash: str


def describe_screen(
    xml_content: str,
    limit: int,
    weights: RelevanceWeights = DEFAULT_WEIGHTS,
    tolerance: int = DEDUP_TOLERANCE_PX,
) -> ScreenSnapshot:
    """Extract, rank and fingerprint one hierarchy dump."""
    elements = get_interactive_elements(xml_content)
    return ScreenSnapshot(
        elements=elements,
        compact=filter_elements(elements, limit, weights, tolerance),
        screen_hash=compute_screen_hash(elements),
    )
