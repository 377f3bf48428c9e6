"""
Recover an ActionDecision from free-form model text.

Strategies run in order and the first that yields a valid decision wins:

1. parse the text as JSON;
2. parse it again with raw newlines/carriage returns turned into spaces;
3. parse the first ``{...}`` span the same way.

If none succeeds the caller gets a ``wait`` decision instead of an error.
"""

import json
import logging
import re
from typing import Any, Callable, List, Optional

from pydantic import ValidationError

from clawdroid.agent.models import ActionDecision, sanitize_coordinates

logger = logging.getLogger("clawdroid")

PARSE_FAILURE_REASON = "Failed to parse response, waiting"
LOG_SNIPPET_CHARS = 200

JSON_OBJECT_PATTERN = re.compile(r"\{[\s\S]*\}")

__all__ = [
    "PARSE_FAILURE_REASON",
    "parse_json_response",
    "sanitize_coordinates",
    "sanitize_json_text",
]


def sanitize_json_text(raw: str) -> str:
    """Replace literal newlines, which models leave inside JSON strings, with spaces."""
    return raw.replace("\n", " ").replace("\r", " ")


def _direct(text: str) -> Any:
    return json.loads(text)


def _sanitized(text: str) -> Any:
    return json.loads(sanitize_json_text(text))


def _embedded(text: str) -> Any:
    match = JSON_OBJECT_PATTERN.search(text)
    if not match:
        raise ValueError("no JSON object in text")
    return json.loads(sanitize_json_text(match.group(0)))


RECOVERY_STRATEGIES: List[Callable[[str], Any]] = [_direct, _sanitized, _embedded]


def _recover(text: str) -> Optional[ActionDecision]:
    for strategy in RECOVERY_STRATEGIES:
        try:
            data = strategy(text)
        except ValueError:
            continue
        if not isinstance(data, dict):
            continue
        try:
            return ActionDecision.model_validate(data)
        except ValidationError as e:
            logger.debug(f"Recovered JSON is not a decision ({strategy.__name__}): {e}")
    return None


def parse_json_response(text: str) -> ActionDecision:
    """
    Turn raw model output into an ActionDecision.

    Never raises on bad text; unparseable output becomes a ``wait`` decision.
    Coordinates are always sanitized.
    """
    decision = _recover(text or "")
    if decision is None:
        logger.warning(f"Could not parse LLM response: {(text or '')[:LOG_SNIPPET_CHARS]}")
        return ActionDecision.wait(PARSE_FAILURE_REASON)
    return decision
