"""AWS Bedrock provider.

Bedrock hosts several model families behind one ``invoke_model`` call, each
with its own request body and response shape:

- Anthropic: multi-turn messages with a top-level ``system`` field and images.
- Meta (Llama): one flattened Llama-3 chat template string.
- Anything else (e.g. Titan): one flattened ``inputText`` prompt.

boto3 is synchronous, so calls run in a worker thread.
"""

import asyncio
import json
import logging
from typing import Any, AsyncIterator, Dict, List, Optional

import boto3

from clawdroid import constants
from clawdroid.agent.models import ActionDecision, ChatMessage, TextPart
from clawdroid.agent.parsing import parse_json_response
from clawdroid.agent.providers.base import LLMProvider, ProviderCapabilities, split_system

logger = logging.getLogger("clawdroid")

ANTHROPIC_VERSION = "bedrock-2023-05-31"
ANTHROPIC_MAX_TOKENS = 1024
FLAT_MAX_TOKENS = 512
FLAT_TEMPERATURE = 0.1

META_PROMPT_TEMPLATE = (
    "<|begin_of_text|><|start_header_id|>system<|end_header_id|>\n\n{system}<|eot_id|>"
    "<|start_header_id|>user<|end_header_id|>\n\n{user}\n\n"
    "Respond with ONLY a valid JSON object, no other text.<|eot_id|>"
    "<|start_header_id|>assistant<|end_header_id|>\n\n"
)
GENERIC_PROMPT_TEMPLATE = "{system}\n\n{user}\n\nRespond with ONLY a valid JSON object."


def is_anthropic_model(model: str) -> bool:
    return any(fragment in model for fragment in constants.BEDROCK_ANTHROPIC_MODELS)


def is_meta_model(model: str) -> bool:
    lowered = model.lower()
    return any(fragment in lowered for fragment in constants.BEDROCK_META_MODELS)


class BedrockProvider(LLMProvider):
    def __init__(
        self,
        model: str = constants.DEFAULT_BEDROCK_MODEL,
        region: str = constants.DEFAULT_AWS_REGION,
        client: Any = None,
    ):
        super().__init__(model)
        self.client = client or boto3.client("bedrock-runtime", region_name=region)
        # Family is fixed for the lifetime of the provider
        if is_anthropic_model(model):
            self.family = "anthropic"
        elif is_meta_model(model):
            self.family = "meta"
        else:
            self.family = "generic"
        self.capabilities = ProviderCapabilities(
            supports_images=self.family == "anthropic", supports_streaming=True
        )

    def build_anthropic_messages(self, messages: List[ChatMessage]) -> Dict[str, Any]:
        system, rest = split_system(messages)
        converted = []
        for msg in rest:
            if isinstance(msg.content, str):
                converted.append({"role": msg.role, "content": msg.content})
                continue
            parts = []
            for part in msg.content:
                if isinstance(part, TextPart):
                    parts.append({"type": "text", "text": part.text})
                else:
                    parts.append(
                        {
                            "type": "image",
                            "source": {
                                "type": "base64",
                                "media_type": part.mime_type,
                                "data": part.base64,
                            },
                        }
                    )
            converted.append({"role": msg.role, "content": parts})
        return {
            "anthropic_version": ANTHROPIC_VERSION,
            "max_tokens": ANTHROPIC_MAX_TOKENS,
            "system": system,
            "messages": converted,
        }

    @staticmethod
    def _flatten_text(message: ChatMessage) -> str:
        if isinstance(message.content, str):
            return message.content
        return "\n".join(
            part.text if isinstance(part, TextPart) else constants.IMAGE_PLACEHOLDER
            for part in message.content
        )

    def build_request(self, messages: List[ChatMessage]) -> Dict[str, Any]:
        """Build the request body for this model's family."""
        if self.family == "anthropic":
            return self.build_anthropic_messages(messages)

        # Single-prompt families see the system text and the latest user turn only
        system, rest = split_system(messages)
        user_turns = [self._flatten_text(m) for m in rest if m.role == "user"]
        last_user = user_turns[-1] if user_turns else ""

        if self.family == "meta":
            return {
                "prompt": META_PROMPT_TEMPLATE.format(system=system, user=last_user),
                "max_gen_len": FLAT_MAX_TOKENS,
                "temperature": FLAT_TEMPERATURE,
            }
        return {
            "inputText": GENERIC_PROMPT_TEMPLATE.format(system=system, user=last_user),
            "textGenerationConfig": {
                "maxTokenCount": FLAT_MAX_TOKENS,
                "temperature": FLAT_TEMPERATURE,
            },
        }

    def extract_response(self, body: Dict[str, Any]) -> str:
        """Pull the generated text out of a family-specific response body."""
        if self.family == "anthropic":
            return body["content"][0]["text"]
        if self.family == "meta":
            return body.get("generation") or ""
        return body["results"][0]["outputText"]

    def _invoke(self, request: Dict[str, Any]) -> Dict[str, Any]:
        response = self.client.invoke_model(
            modelId=self.model,
            body=json.dumps(request),
            contentType="application/json",
            accept="application/json",
        )
        return json.loads(response["body"].read())

    async def get_decision(self, messages: List[ChatMessage]) -> ActionDecision:
        request = self.build_request(messages)
        logger.debug(f"Invoking Bedrock model {self.model} ({self.family})")
        body = await asyncio.to_thread(self._invoke, request)
        return parse_json_response(self.extract_response(body))

    async def get_decision_stream(self, messages: List[ChatMessage]) -> AsyncIterator[str]:
        if self.family != "anthropic":
            # Only Anthropic models stream here; others answer in one piece
            decision = await self.get_decision(messages)
            yield decision.model_dump_json(by_alias=True, exclude_none=True)
            return

        response = await asyncio.to_thread(
            self.client.invoke_model_with_response_stream,
            modelId=self.model,
            body=json.dumps(self.build_anthropic_messages(messages)),
            contentType="application/json",
        )
        events = iter(response.get("body") or [])
        while True:
            event: Optional[Dict[str, Any]] = await asyncio.to_thread(next, events, None)
            if event is None:
                break
            chunk = event.get("chunk")
            if not chunk or not chunk.get("bytes"):
                continue
            data = json.loads(chunk["bytes"])
            if data.get("type") == "content_block_delta":
                text = (data.get("delta") or {}).get("text")
                if text:
                    yield text
