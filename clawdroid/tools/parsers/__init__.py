"""Parsers for UI dump formats."""

from clawdroid.tools.parsers.uiautomator_parser import (
    UIAutomatorParser,
    compute_screen_hash,
    get_interactive_elements,
    parse_bounds,
    screen_signature,
    strip_dump_banner,
)

__all__ = [
    "UIAutomatorParser",
    "compute_screen_hash",
    "get_interactive_elements",
    "parse_bounds",
    "screen_signature",
    "strip_dump_banner",
]
