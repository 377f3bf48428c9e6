import pytest
from pydantic import ValidationError

from clawdroid import constants
from clawdroid.config import ENV_FIELDS, ClawdroidConfig


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    for name in ENV_FIELDS:
        # setenv first so values a .env file loads are undone too
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    return tmp_path / "missing.env"


def test_defaults():
    config = ClawdroidConfig()

    assert config.llm_provider == "groq"
    assert config.model_for() == constants.DEFAULT_GROQ_MODEL
    assert config.max_elements == 40
    assert config.max_history_steps == 10
    assert config.vision_mode == "fallback"


def test_from_env(monkeypatch, clean_env):
    monkeypatch.setenv("LLM_PROVIDER", "openrouter")
    monkeypatch.setenv("OPENROUTER_API_KEY", "sk-or")
    monkeypatch.setenv("OPENROUTER_MODEL", "openai/gpt-4o-mini")
    monkeypatch.setenv("MAX_ELEMENTS", "25")
    monkeypatch.setenv("STREAMING_ENABLED", "false")

    config = ClawdroidConfig.from_env(clean_env)

    assert config.llm_provider == "openrouter"
    assert config.openrouter_api_key == "sk-or"
    assert config.model_for() == "openai/gpt-4o-mini"
    assert config.max_elements == 25
    assert config.streaming_enabled is False


def test_from_env_reads_dotenv_file(clean_env, tmp_path):
    dotenv = tmp_path / ".env"
    dotenv.write_text("LLM_PROVIDER=bedrock\nAWS_REGION=eu-west-1\n", encoding="utf-8")

    config = ClawdroidConfig.from_env(dotenv)

    assert config.llm_provider == "bedrock"
    assert config.aws_region == "eu-west-1"


def test_from_env_rejects_unknown_provider(monkeypatch, clean_env):
    monkeypatch.setenv("LLM_PROVIDER", "carrier-pigeon")

    with pytest.raises(ValidationError):
        ClawdroidConfig.from_env(clean_env)


def test_from_yaml(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("llm_provider: ollama\nollama_model: llava\nmax_history_steps: 4\n", encoding="utf-8")

    config = ClawdroidConfig.from_yaml(path)

    assert config.llm_provider == "ollama"
    assert config.model_for() == "llava"
    assert config.max_history_steps == 4


def test_from_yaml_requires_mapping(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("- just\n- a list\n", encoding="utf-8")

    with pytest.raises(ValueError, match="mapping"):
        ClawdroidConfig.from_yaml(path)


def test_limits_are_validated():
    with pytest.raises(ValidationError):
        ClawdroidConfig(max_elements=0)
