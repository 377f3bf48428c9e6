"""Provider interface shared by every decision backend."""

from abc import ABC, abstractmethod
from typing import AsyncIterator, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from clawdroid.agent.models import ActionDecision, ChatMessage


class ProviderCapabilities(BaseModel):
    model_config = ConfigDict(frozen=True)

    supports_images: bool
    supports_streaming: bool


class LLMProvider(ABC):
    """
    Proposes the next action for a conversation.

    ``get_decision`` resolves to a decision even when the model's reply is
    malformed; transport and backend errors are raised unchanged.
    ``get_decision_stream`` yields text fragments which concatenate to the
    decision text (schema-validated backends yield progress markers and then
    the final JSON object).
    """

    capabilities: ProviderCapabilities

    def __init__(self, model: str):
        self.model = model

    @abstractmethod
    async def get_decision(self, messages: List[ChatMessage]) -> ActionDecision:
        """Ask the backend for the next action."""

    @abstractmethod
    def get_decision_stream(self, messages: List[ChatMessage]) -> AsyncIterator[str]:
        """Yield decision text fragments as the backend produces them."""

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(model={self.model!r})"


def split_system(messages: List[ChatMessage]) -> Tuple[str, List[ChatMessage]]:
    """Separate the system instruction from the rest of the conversation.

    Non-text system content yields an empty instruction.
    """
    system: Optional[ChatMessage] = next((m for m in messages if m.role == "system"), None)
    system_text = system.content if system and isinstance(system.content, str) else ""
    return system_text, [m for m in messages if m.role != "system"]
