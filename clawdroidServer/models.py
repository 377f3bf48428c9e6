"""Pydantic models for HTTP and WebSocket request/response."""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from clawdroid.agent.models import ChatMessage


class ScreenRequest(BaseModel):
    """Raw accessibility dump to turn into model context."""

    xml: str = Field(..., description="uiautomator dump XML")
    limit: Optional[int] = Field(default=None, gt=0, description="Maximum elements returned (default: config max_elements)")
    max_chars: Optional[int] = Field(default=None, gt=0, description="Size bound for the serialized context")


class ScreenResponse(BaseModel):
    elements: List[Dict[str, Any]]
    context: str
    screen_hash: str
    count: int = Field(..., description="Number of elements extracted before ranking")


class DecisionRequest(BaseModel):
    """Conversation to send to the configured provider."""

    messages: List[ChatMessage] = Field(..., min_length=1)
    max_history_steps: Optional[int] = Field(default=None, ge=0, description="Turns kept (default: config max_history_steps)")


class EventType(str, Enum):
    """Event types for WebSocket messages."""

    CONNECTION_STATUS = "connection_status"
    DECISION_CHUNK = "decision_chunk"
    DECISION_COMPLETE = "decision_complete"
    DECISION_ERROR = "decision_error"


class WebSocketMessage(BaseModel):
    """Base format for all WebSocket messages."""

    event_type: EventType
    timestamp: float
    data: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
