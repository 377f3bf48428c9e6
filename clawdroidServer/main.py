"""ClawdroidServer - HTTP/WebSocket front end for clawdroid.

Usage:
    uvicorn clawdroidServer.main:app --host 0.0.0.0 --port 8000

    # Or run directly:
    python -m clawdroidServer.main
"""

import logging
import os
import uuid
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request, WebSocket
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from clawdroid import __version__
from clawdroid.agent.history import apply_vision_mode, trim_messages
from clawdroid.agent.providers import LLMProvider, get_llm_provider
from clawdroid.config import ClawdroidConfig
from clawdroid.tools.filters import describe_screen, format_screen_context

from .models import DecisionRequest, ScreenRequest, ScreenResponse
from .websocket_handler import handle_websocket, manager

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("clawdroidServer")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("ClawdroidServer starting up...")
    yield
    logger.info("ClawdroidServer shutting down...")


app = FastAPI(
    title="ClawdroidServer",
    description="Android screen context and next-action decisions for language-model agents",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_config() -> ClawdroidConfig:
    """Configuration loaded once from the environment."""
    config = getattr(app.state, "config", None)
    if config is None:
        config_path = os.environ.get("CLAWDROID_CONFIG_PATH")
        config = ClawdroidConfig.from_yaml(config_path) if config_path else ClawdroidConfig.from_env()
        app.state.config = config
    return config


def get_provider(config: ClawdroidConfig = Depends(get_config)) -> LLMProvider:
    """Provider built on first use and shared by later requests."""
    provider = getattr(app.state, "provider", None)
    if provider is None:
        provider = get_llm_provider(config)
        app.state.provider = provider
    return provider


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "name": "ClawdroidServer",
        "version": __version__,
        "endpoints": {
            "screen": "/screen",
            "decision": "/decision",
            "websocket": "/ws",
            "health": "/health",
            "status": "/status",
        },
    }


@app.get("/health")
async def health_check():
    return {"status": "healthy"}


@app.get("/status")
async def server_status():
    return {
        "status": "running",
        "active_connections": manager.get_client_count(),
        "max_connections": manager.max_connections,
    }


@app.post("/screen", response_model=ScreenResponse)
async def screen(request: ScreenRequest, config: ClawdroidConfig = Depends(get_config)):
    """Turn a hierarchy dump into ranked compact elements and a fingerprint."""
    snapshot = describe_screen(request.xml, request.limit or config.max_elements)
    return ScreenResponse(
        elements=[e.to_payload() for e in snapshot.compact],
        context=format_screen_context(snapshot.compact, request.max_chars),
        screen_hash=snapshot.screen_hash,
        count=len(snapshot.elements),
    )


@app.post("/decision")
async def decision(
    request: DecisionRequest,
    config: ClawdroidConfig = Depends(get_config),
    provider: LLMProvider = Depends(get_provider),
):
    """Trim the conversation and ask the provider for the next action."""
    max_steps = request.max_history_steps
    if max_steps is None:
        max_steps = config.max_history_steps
    messages = apply_vision_mode(trim_messages(request.messages, max_steps), config.vision_mode)
    result = await provider.get_decision(messages)
    return result.to_payload()


@app.websocket("/ws")
async def websocket_endpoint(
    websocket: WebSocket,
    config: ClawdroidConfig = Depends(get_config),
    provider: LLMProvider = Depends(get_provider),
):
    """Streamed decision; see handle_websocket for the protocol."""
    await handle_websocket(websocket, str(uuid.uuid4()), provider, config)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled exception: {exc}")
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "detail": str(exc)},
    )


def main():
    """Run the server using uvicorn."""
    import uvicorn

    host = os.environ.get("CLAWDROID_HOST", "0.0.0.0")
    port = int(os.environ.get("CLAWDROID_PORT", "8000"))
    reload = os.environ.get("CLAWDROID_RELOAD", "false").lower() == "true"

    logger.info(f"Starting ClawdroidServer on {host}:{port}")

    uvicorn.run(
        "clawdroidServer.main:app",
        host=host,
        port=port,
        reload=reload,
        log_level="info",
    )


if __name__ == "__main__":
    main()
