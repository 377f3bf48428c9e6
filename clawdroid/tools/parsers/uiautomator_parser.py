"""
UIAutomator XML Parser - Flattens a uiautomator dump into interactive UIElement records.

Each node with a ``bounds`` attribute that is either actionable (clickable,
editable, long-clickable, scrollable) or carries visible text/description
becomes one UIElement with its center, size, state flags and a suggested
action. Nodes are visited depth-first in document order.
"""

import hashlib
import logging
import re
import xml.etree.ElementTree as ET
from typing import List, Optional, Tuple

from clawdroid.agent.models import ElementAction, UIElement

logger = logging.getLogger("clawdroid")

# Bounds format: "[left,top][right,bottom]"
BOUNDS_PATTERN = re.compile(r"\[(-?\d+),(-?\d+)\]\[(-?\d+),(-?\d+)\]")

EDITABLE_CLASSES = ("EditText", "AutoCompleteTextView")
DUMP_BANNERS = ("UI hierchary dumped", "UI hierarchy dumped")
HIERARCHY_END = "</hierarchy>"


def strip_dump_banner(output: str) -> str:
    """Remove the status line uiautomator prints after the XML document."""
    end = output.rfind(HIERARCHY_END)
    tail_start = end + len(HIERARCHY_END) if end != -1 else 0
    for banner in DUMP_BANNERS:
        idx = output.find(banner, tail_start)
        if idx != -1:
            return output[:idx].strip()
    return output


def parse_bounds(bounds_str: str) -> Optional[Tuple[Tuple[int, int], Tuple[int, int]]]:
    """
    Parse a bounds string into center point and size.

    Args:
        bounds_str: Bounds string from uiautomator, e.g. "[100,200][300,260]"

    Returns:
        ``((center_x, center_y), (width, height))``, or None when the string
        is not four integers or the rectangle is empty
    """
    match = BOUNDS_PATTERN.fullmatch(bounds_str.strip())
    if not match:
        return None
    x1, y1, x2, y2 = (int(g) for g in match.groups())
    width = x2 - x1
    height = y2 - y1
    if width <= 0 or height <= 0:
        return None
    return ((x1 + x2) // 2, (y1 + y2) // 2), (width, height)


def _flag(element: ET.Element, name: str) -> bool:
    return element.get(name, "false").lower() == "true"


def _infer_action(
    editable: bool, clickable: bool, long_clickable: bool, scrollable: bool
) -> ElementAction:
    if editable:
        return "type"
    if long_clickable and not clickable:
        return "longpress"
    if scrollable and not clickable:
        return "scroll"
    if clickable:
        return "tap"
    return "read"


class UIAutomatorParser:
    """
    Parses uiautomator dump XML into a flat list of UIElement records.

    Input XML format:
    <hierarchy rotation="0">
        <node index="0" text="" resource-id="" class="android.widget.FrameLayout"
              package="com.android.launcher3" content-desc="" checkable="false"
              checked="false" clickable="false" enabled="true" focusable="false"
              focused="false" scrollable="false" long-clickable="false" password="false"
              selected="false" bounds="[0,0][1080,2400]">
            <node ...>...</node>
        </node>
    </hierarchy>
    """

    def parse(self, xml_content: str) -> List[UIElement]:
        """
        Parse uiautomator XML into UIElements.

        Args:
            xml_content: Raw XML string from uiautomator dump

        Returns:
            Elements in document order, or an empty list if the XML is unusable
        """
        xml_content = self._clean(xml_content)
        if not xml_content:
            logger.warning("Accessibility XML is empty; screen may still be loading.")
            return []

        try:
            root = ET.fromstring(xml_content)
        except (ET.ParseError, ValueError) as e:
            logger.warning(f"Accessibility XML parse failed; screen may still be loading: {e}")
            return []

        elements: List[UIElement] = []
        if root.tag == "hierarchy":
            for child in root:
                self._visit(child, "root", 0, elements)
        else:
            self._visit(root, "root", 0, elements)
        return elements

    def _clean(self, xml_content: str) -> str:
        """Strip anything before the XML start and the dump banner after it."""
        xml_content = (xml_content or "").strip()
        if not xml_content.startswith("<?xml") and not xml_content.startswith("<hierarchy"):
            start_idx = xml_content.find("<hierarchy")
            if start_idx != -1:
                xml_content = xml_content[start_idx:]
        return strip_dump_banner(xml_content)

    def _visit(
        self, element: ET.Element, parent: str, depth: int, out: List[UIElement]
    ) -> None:
        if element.tag != "node":
            return

        raw_bounds = element.get("bounds")
        if not raw_bounds:
            # No geometry: children inherit this node's parent context
            for child in element:
                self._visit(child, parent, depth, out)
            return

        clickable = _flag(element, "clickable")
        long_clickable = _flag(element, "long-clickable")
        scrollable = _flag(element, "scrollable")
        class_name = element.get("class", "")
        editable = any(c in class_name for c in EDITABLE_CLASSES) or _flag(element, "editable")
        text = element.get("text", "")
        desc = element.get("content-desc", "")
        resource_id = element.get("resource-id", "")
        type_name = class_name.split(".")[-1]
        label = text or desc or resource_id.split("/")[-1] or type_name

        interactive = clickable or editable or long_clickable or scrollable
        if interactive or text or desc:
            geometry = parse_bounds(raw_bounds)
            if geometry:
                center, size = geometry
                out.append(
                    UIElement(
                        id=resource_id,
                        text=text or desc,
                        type=type_name,
                        bounds=raw_bounds,
                        center=center,
                        size=size,
                        clickable=clickable,
                        editable=editable,
                        enabled=element.get("enabled", "true").lower() != "false",
                        checked=_flag(element, "checked"),
                        focused=_flag(element, "focused"),
                        selected=_flag(element, "selected"),
                        scrollable=scrollable,
                        long_clickable=long_clickable,
                        password=_flag(element, "password"),
                        hint=element.get("hint", ""),
                        action=_infer_action(editable, clickable, long_clickable, scrollable),
                        parent=parent,
                        depth=depth,
                    )
                )

        for child in element:
            self._visit(child, label, depth + 1, out)


def get_interactive_elements(xml_content: str) -> List[UIElement]:
    """Parse a hierarchy dump with a fresh UIAutomatorParser."""
    return UIAutomatorParser().parse(xml_content)


def screen_signature(elements: List[UIElement]) -> str:
    """Concatenate the identity and state of every element in order."""
    def _bool(value: bool) -> str:
        return "true" if value else "false"

    return ";".join(
        f"{e.id}|{e.text}|{e.center[0]},{e.center[1]}|{_bool(e.enabled)}|{_bool(e.checked)}"
        for e in elements
    )


def compute_screen_hash(elements: List[UIElement]) -> str:
    """Stable fingerprint of an element list, used to tell a changed screen from a stuck one."""
    return hashlib.sha1(screen_signature(elements).encode("utf-8")).hexdigest()
