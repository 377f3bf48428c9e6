"""Conversation shaping: history bounding and screenshot selection."""

from typing import List

from clawdroid.agent.models import ChatMessage, ImagePart, TextPart


def trim_messages(messages: List[ChatMessage], max_history_steps: int) -> List[ChatMessage]:
    """
    Keep the conversation within ``max_history_steps`` user/assistant turns.

    The system message, when present, stays first. Dropped turns are replaced
    by one user note stating how many earlier steps were omitted.

    Args:
        messages: Full conversation, system message (if any) first
        max_history_steps: Number of turns to retain

    Returns:
        The original list when it already fits, else a new trimmed list
    """
    if not messages:
        return messages

    system = messages[0] if messages[0].role == "system" else None
    rest = messages[1:] if system else messages

    max_messages = max_history_steps * 2
    if len(rest) <= max_messages:
        return messages

    dropped = len(rest) - max_messages
    steps_dropped = dropped // 2
    summary = ChatMessage(role="user", content=f"[{steps_dropped} earlier steps omitted]")
    trimmed = [summary, *rest[dropped:]]
    return [system, *trimmed] if system else trimmed


def _without_images(message: ChatMessage) -> ChatMessage:
    if isinstance(message.content, str):
        return message
    parts = [p for p in message.content if isinstance(p, TextPart)]
    if len(parts) == len(message.content):
        return message
    return message.model_copy(update={"content": parts or ""})


def apply_vision_mode(messages: List[ChatMessage], vision_mode: str) -> List[ChatMessage]:
    """
    Drop screenshots the configured vision mode does not want sent.

    ``off`` removes every image part, ``fallback`` keeps only the images of
    the latest message that has any, ``always`` keeps them all.

    Args:
        messages: Conversation, usually already trimmed
        vision_mode: One of off, fallback, always

    Returns:
        The original list when nothing was removed, else a new list
    """
    if vision_mode == "always":
        return messages

    keep = None
    if vision_mode == "fallback":
        keep = next(
            (i for i in range(len(messages) - 1, -1, -1) if _has_image(messages[i])),
            None,
        )

    shaped = [m if i == keep else _without_images(m) for i, m in enumerate(messages)]
    if all(a is b for a, b in zip(shaped, messages)):
        return messages
    return shaped


def _has_image(message: ChatMessage) -> bool:
    return not isinstance(message.content, str) and any(
        isinstance(p, ImagePart) for p in message.content
    )
