"""Default tables for the clawdroid agent: API endpoints, models, device paths, limits."""

GROQ_API_BASE_URL = "https://api.groq.com/openai/v1"
OLLAMA_API_BASE_URL = "http://localhost:11434/v1"
OPENROUTER_API_BASE_URL = "https://openrouter.ai/api/v1"

DEFAULT_GROQ_MODEL = "llama-3.3-70b-versatile"
DEFAULT_OPENAI_MODEL = "gpt-4o"
DEFAULT_BEDROCK_MODEL = "us.meta.llama3-3-70b-instruct-v1:0"
DEFAULT_OPENROUTER_MODEL = "anthropic/claude-3.5-sonnet"
DEFAULT_OLLAMA_MODEL = "llama3.2"
DEFAULT_AWS_REGION = "us-east-1"

# Model id fragments identifying a Bedrock model family.
# Anthropic ids are matched case-sensitively, Meta ids case-insensitively.
BEDROCK_ANTHROPIC_MODELS = ("anthropic",)
BEDROCK_META_MODELS = ("meta", "llama")

DEVICE_DUMP_PATH = "/sdcard/window_dump.xml"

DEFAULT_MAX_ELEMENTS = 40
DEFAULT_MAX_HISTORY_STEPS = 10
DEFAULT_STREAMING_ENABLED = True
DEFAULT_VISION_MODE = "fallback"

IMAGE_PLACEHOLDER = "[Screenshot attached]"
