"""Decision providers and the factory that picks one from configuration."""

import logging
from typing import Optional

from clawdroid.agent.providers.base import LLMProvider, ProviderCapabilities
from clawdroid.agent.providers.bedrock_provider import BedrockProvider
from clawdroid.agent.providers.openai_provider import OpenAIProvider
from clawdroid.agent.providers.openrouter_provider import OpenRouterProvider
from clawdroid.config import ClawdroidConfig

logger = logging.getLogger("clawdroid")

__all__ = [
    "BedrockProvider",
    "LLMProvider",
    "OpenAIProvider",
    "OpenRouterProvider",
    "ProviderCapabilities",
    "get_llm_provider",
]


def get_llm_provider(config: Optional[ClawdroidConfig] = None) -> LLMProvider:
    """
    Build the provider selected by ``config.llm_provider``.

    Args:
        config: Configuration to use (default: loaded from the environment)

    Returns:
        A provider bound to the configured model for its whole lifetime
    """
    config = config or ClawdroidConfig.from_env()
    name = config.llm_provider

    if name == "bedrock":
        provider: LLMProvider = BedrockProvider(config.bedrock_model, region=config.aws_region)
    elif name == "openrouter":
        provider = OpenRouterProvider(config.openrouter_model, api_key=config.openrouter_api_key)
    elif name == "groq":
        provider = OpenAIProvider.for_groq(config.groq_api_key, config.groq_model)
    elif name == "ollama":
        provider = OpenAIProvider.for_ollama(config.ollama_model, config.ollama_base_url)
    elif name == "openai":
        provider = OpenAIProvider.for_openai(config.openai_api_key, config.openai_model)
    else:
        raise ValueError(f"Unknown LLM provider: {name}")

    logger.info(f"Using {name} provider: {provider!r}")
    return provider
