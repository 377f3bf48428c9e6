"""OpenAI-compatible chat provider (OpenAI, Groq, Ollama)."""

import logging
from typing import Any, AsyncIterator, Dict, List, Optional

from openai import AsyncOpenAI

from clawdroid import constants
from clawdroid.agent.models import ActionDecision, ChatMessage, TextPart
from clawdroid.agent.parsing import parse_json_response
from clawdroid.agent.providers.base import LLMProvider, ProviderCapabilities

logger = logging.getLogger("clawdroid")

JSON_MODE = {"type": "json_object"}


class OpenAIProvider(LLMProvider):
    """Chat completions in JSON mode with free-text decision recovery.

    The system message stays inline. Backends without vision get a text
    placeholder where each image was.
    """

    def __init__(
        self,
        model: str,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        supports_images: bool = True,
        client: Optional[AsyncOpenAI] = None,
    ):
        super().__init__(model)
        self.client = client or AsyncOpenAI(api_key=api_key, base_url=base_url)
        self.capabilities = ProviderCapabilities(
            supports_images=supports_images, supports_streaming=True
        )

    @classmethod
    def for_openai(cls, api_key: Optional[str], model: str = constants.DEFAULT_OPENAI_MODEL):
        return cls(model, api_key=api_key)

    @classmethod
    def for_groq(cls, api_key: Optional[str], model: str = constants.DEFAULT_GROQ_MODEL):
        return cls(
            model,
            api_key=api_key,
            base_url=constants.GROQ_API_BASE_URL,
            supports_images=False,
        )

    @classmethod
    def for_ollama(
        cls,
        model: str = constants.DEFAULT_OLLAMA_MODEL,
        base_url: str = constants.OLLAMA_API_BASE_URL,
    ):
        # The SDK insists on a key; Ollama ignores it
        return cls(model, api_key="ollama", base_url=base_url)

    def to_openai_messages(self, messages: List[ChatMessage]) -> List[Dict[str, Any]]:
        converted = []
        for msg in messages:
            if isinstance(msg.content, str):
                converted.append({"role": msg.role, "content": msg.content})
                continue
            parts = []
            for part in msg.content:
                if isinstance(part, TextPart):
                    parts.append({"type": "text", "text": part.text})
                elif self.capabilities.supports_images:
                    parts.append(
                        {
                            "type": "image_url",
                            "image_url": {"url": part.data_url(), "detail": "low"},
                        }
                    )
                else:
                    parts.append({"type": "text", "text": constants.IMAGE_PLACEHOLDER})
            converted.append({"role": msg.role, "content": parts})
        return converted

    async def get_decision(self, messages: List[ChatMessage]) -> ActionDecision:
        response = await self.client.chat.completions.create(
            model=self.model,
            response_format=JSON_MODE,
            messages=self.to_openai_messages(messages),
        )
        content = response.choices[0].message.content if response.choices else None
        return parse_json_response(content or "{}")

    async def get_decision_stream(self, messages: List[ChatMessage]) -> AsyncIterator[str]:
        stream = await self.client.chat.completions.create(
            model=self.model,
            response_format=JSON_MODE,
            messages=self.to_openai_messages(messages),
            stream=True,
        )
        async for chunk in stream:
            if not chunk.choices:
                continue
            content = chunk.choices[0].delta.content
            if content:
                yield content
