"""OpenRouter provider with schema-constrained output."""

import logging
from typing import Any, AsyncIterator, Dict, List, Optional, Tuple, Union

from openai import AsyncOpenAI
from pydantic import BaseModel, Field, ValidationError

from clawdroid import constants
from clawdroid.agent.models import ActionDecision, ChatMessage, TextPart
from clawdroid.agent.providers.base import LLMProvider, ProviderCapabilities, split_system

logger = logging.getLogger("clawdroid")

PROGRESS_MARKER = "."
SCHEMA_FAILURE_REASON = "Response did not match the decision schema, waiting"


class DecisionSchema(BaseModel):
    """Output schema sent to the backend; mirrors ActionDecision."""

    think: Optional[str] = Field(None, description="Your reasoning about the current screen state and what to do next")
    plan: Optional[List[str]] = Field(None, description="3-5 high-level steps to achieve the goal")
    planProgress: Optional[str] = Field(None, description="Which plan step you are currently on")
    action: str = Field(..., description="The action to take: tap, type, scroll, enter, back, home, wait, done, longpress, launch, clear, clipboard_get, clipboard_set, paste, shell, open_url, switch_app, notifications, pull_file, push_file, keyevent, open_settings, read_screen, submit_message, copy_visible_text, wait_for_content, find_and_tap, compose_email")
    coordinates: Optional[Tuple[Union[int, float], Union[int, float]]] = Field(None, description="Target as [x, y], used by tap, longpress, type and paste")
    text: Optional[str] = Field(None, description="Text to type, clipboard text, or email body for compose_email")
    direction: Optional[str] = Field(None, description="Scroll direction: up, down, left, right")
    reason: Optional[str] = Field(None, description="Why you chose this action")
    package: Optional[str] = Field(None, description="App package name for launch action")
    activity: Optional[str] = Field(None, description="Activity name for launch action")
    uri: Optional[str] = Field(None, description="URI for launch action")
    extras: Optional[Dict[str, str]] = Field(None, description="Intent extras for launch action")
    command: Optional[str] = Field(None, description="Shell command to run")
    filename: Optional[str] = Field(None, description="Screenshot filename")
    query: Optional[str] = Field(None, description="Email address for compose_email, search term for find_and_tap, or filter for copy_visible_text")
    url: Optional[str] = Field(None, description="URL to open for open_url action")
    path: Optional[str] = Field(None, description="Device file path for pull_file action")
    source: Optional[str] = Field(None, description="Local file path for push_file action")
    dest: Optional[str] = Field(None, description="Device destination path for push_file action")
    code: Optional[int] = Field(None, description="Android keycode number for keyevent action")
    setting: Optional[str] = Field(None, description="Setting name for open_settings: wifi, bluetooth, display, sound, battery, location, apps, date, accessibility, developer")


RESPONSE_FORMAT = {
    "type": "json_schema",
    "json_schema": {
        "name": "action_decision",
        "schema": DecisionSchema.model_json_schema(),
    },
}


class OpenRouterProvider(LLMProvider):
    """Structured-output provider: the reply is validated, not recovered."""

    capabilities = ProviderCapabilities(supports_images=True, supports_streaming=True)

    def __init__(
        self,
        model: str = constants.DEFAULT_OPENROUTER_MODEL,
        api_key: Optional[str] = None,
        client: Optional[AsyncOpenAI] = None,
    ):
        super().__init__(model)
        self.client = client or AsyncOpenAI(
            api_key=api_key, base_url=constants.OPENROUTER_API_BASE_URL
        )

    def to_schema_messages(self, messages: List[ChatMessage]) -> Tuple[str, List[Dict[str, Any]]]:
        """Return the system instruction and the remaining turns in wire format."""
        system, rest = split_system(messages)
        converted = []
        for msg in rest:
            if isinstance(msg.content, str):
                converted.append({"role": msg.role, "content": msg.content})
                continue
            parts = [
                {"type": "text", "text": part.text}
                if isinstance(part, TextPart)
                else {"type": "image_url", "image_url": {"url": part.data_url()}}
                for part in msg.content
            ]
            converted.append({"role": msg.role, "content": parts})
        return system, converted

    def _request(self, messages: List[ChatMessage]) -> Dict[str, Any]:
        system, converted = self.to_schema_messages(messages)
        wire = [{"role": "system", "content": system}] if system else []
        return {
            "model": self.model,
            "response_format": RESPONSE_FORMAT,
            "messages": wire + converted,
        }

    def _validate(self, content: str) -> ActionDecision:
        try:
            structured = DecisionSchema.model_validate_json(content)
        except ValidationError as e:
            logger.warning(f"Structured response failed validation: {e.error_count()} errors")
            return ActionDecision.wait(SCHEMA_FAILURE_REASON)
        # ActionDecision sanitizes coordinates on construction
        return ActionDecision.model_validate(structured.model_dump(exclude_none=True))

    async def get_decision(self, messages: List[ChatMessage]) -> ActionDecision:
        response = await self.client.chat.completions.create(**self._request(messages))
        content = response.choices[0].message.content if response.choices else None
        return self._validate(content or "")

    async def get_decision_stream(self, messages: List[ChatMessage]) -> AsyncIterator[str]:
        stream = await self.client.chat.completions.create(**self._request(messages), stream=True)
        fragments = []
        async for chunk in stream:
            if not chunk.choices:
                continue
            content = chunk.choices[0].delta.content
            if content:
                fragments.append(content)
                yield PROGRESS_MARKER
        decision = self._validate("".join(fragments))
        yield decision.model_dump_json(by_alias=True, exclude_none=True)
