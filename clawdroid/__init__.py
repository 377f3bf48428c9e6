"""
clawdroid - Turn Android accessibility dumps into model context and model replies into actions.
"""

from clawdroid.agent.models import (
    ActionDecision,
    ChatMessage,
    CompactElement,
    ImagePart,
    TextPart,
    UIElement,
)
from clawdroid.config import ClawdroidConfig

__version__ = "0.1.0"

__all__ = [
    "ActionDecision",
    "ChatMessage",
    "ClawdroidConfig",
    "CompactElement",
    "ImagePart",
    "TextPart",
    "UIElement",
]
