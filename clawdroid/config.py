"""Runtime configuration for clawdroid."""

import logging
import os
from pathlib import Path
from typing import Literal, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field

from clawdroid import constants

logger = logging.getLogger("clawdroid")

ProviderName = Literal["openai", "groq", "ollama", "openrouter", "bedrock"]
VisionMode = Literal["off", "fallback", "always"]

# Environment variable -> config field
ENV_FIELDS = {
    "LLM_PROVIDER": "llm_provider",
    "OPENAI_API_KEY": "openai_api_key",
    "GROQ_API_KEY": "groq_api_key",
    "OPENROUTER_API_KEY": "openrouter_api_key",
    "OPENAI_MODEL": "openai_model",
    "GROQ_MODEL": "groq_model",
    "OLLAMA_MODEL": "ollama_model",
    "OLLAMA_BASE_URL": "ollama_base_url",
    "OPENROUTER_MODEL": "openrouter_model",
    "BEDROCK_MODEL": "bedrock_model",
    "AWS_REGION": "aws_region",
    "MAX_ELEMENTS": "max_elements",
    "MAX_HISTORY_STEPS": "max_history_steps",
    "STREAMING_ENABLED": "streaming_enabled",
    "VISION_MODE": "vision_mode",
}


class ClawdroidConfig(BaseModel):
    """Provider selection, credentials and context limits."""

    llm_provider: ProviderName = Field(default="groq", description="Decision backend")

    openai_api_key: Optional[str] = None
    groq_api_key: Optional[str] = None
    openrouter_api_key: Optional[str] = None

    openai_model: str = constants.DEFAULT_OPENAI_MODEL
    groq_model: str = constants.DEFAULT_GROQ_MODEL
    ollama_model: str = constants.DEFAULT_OLLAMA_MODEL
    ollama_base_url: str = constants.OLLAMA_API_BASE_URL
    openrouter_model: str = constants.DEFAULT_OPENROUTER_MODEL
    bedrock_model: str = constants.DEFAULT_BEDROCK_MODEL
    aws_region: str = constants.DEFAULT_AWS_REGION

    max_elements: int = Field(default=constants.DEFAULT_MAX_ELEMENTS, gt=0)
    max_history_steps: int = Field(default=constants.DEFAULT_MAX_HISTORY_STEPS, ge=0)
    streaming_enabled: bool = constants.DEFAULT_STREAMING_ENABLED
    vision_mode: VisionMode = constants.DEFAULT_VISION_MODE

    def model_for(self) -> str:
        """Return the model id of the selected provider."""
        return getattr(self, f"{self.llm_provider}_model")

    @classmethod
    def from_env(cls, dotenv_path: str | None = None) -> "ClawdroidConfig":
        """Build config from environment variables (and a .env file if present)."""
        load_dotenv(dotenv_path)
        values = {}
        for env_name, field_name in ENV_FIELDS.items():
            value = os.environ.get(env_name)
            if value:
                values[field_name] = value
        logger.debug(f"Loaded config from environment: {sorted(values)}")
        return cls(**values)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "ClawdroidConfig":
        """Build config from a YAML mapping whose keys are field names."""
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Config file {path} must contain a mapping")
        return cls(**data)
