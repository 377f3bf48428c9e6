"""WebSocket connection handler for ClawdroidServer."""

import asyncio
import logging
import time
from typing import Dict

from fastapi import WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from clawdroid.agent.history import apply_vision_mode, trim_messages
from clawdroid.agent.parsing import parse_json_response
from clawdroid.agent.providers import LLMProvider
from clawdroid.config import ClawdroidConfig

from .models import DecisionRequest, EventType, WebSocketMessage

logger = logging.getLogger("clawdroidServer")

REQUEST_TIMEOUT_SECONDS = 30.0


class ConnectionManager:
    """Tracks active WebSocket connections."""

    def __init__(self, max_connections: int = 10):
        self.active_connections: Dict[str, WebSocket] = {}
        self.max_connections = max_connections

    async def connect(self, websocket: WebSocket, client_id: str) -> bool:
        """Accept a new WebSocket connection.

        Returns:
            True if connection was accepted, False if limit reached
        """
        if len(self.active_connections) >= self.max_connections:
            logger.warning(f"Connection limit reached, rejecting client {client_id}")
            return False

        await websocket.accept()
        self.active_connections[client_id] = websocket
        logger.info(f"Client {client_id} connected. Active connections: {len(self.active_connections)}")
        return True

    def disconnect(self, client_id: str):
        self.active_connections.pop(client_id, None)
        logger.info(f"Client {client_id} disconnected. Active connections: {len(self.active_connections)}")

    async def send_message(self, client_id: str, message: WebSocketMessage):
        websocket = self.active_connections.get(client_id)
        if websocket is None:
            return
        try:
            await websocket.send_json(message.model_dump(mode="json"))
        except Exception as e:
            logger.warning(f"Failed to send message to {client_id}: {e}")

    def get_client_count(self) -> int:
        return len(self.active_connections)


manager = ConnectionManager()


def _event(event_type: EventType, data: dict | None = None, error: str | None = None) -> WebSocketMessage:
    return WebSocketMessage(event_type=event_type, timestamp=time.time(), data=data, error=error)


async def handle_websocket(
    websocket: WebSocket,
    client_id: str,
    provider: LLMProvider,
    config: ClawdroidConfig,
):
    """Serve one streamed decision.

    Protocol:
    1. Client connects and receives a connection_status event
    2. Client sends a DecisionRequest JSON
    3. Server sends one decision_chunk event per streamed fragment
       (skipped when streaming is disabled in the config)
    4. Server sends decision_complete with the parsed decision, or decision_error
    """
    if not await manager.connect(websocket, client_id):
        await websocket.close(code=1008, reason="Connection limit reached")
        return

    try:
        await manager.send_message(
            client_id, _event(EventType.CONNECTION_STATUS, {"status": "connected", "client_id": client_id})
        )

        try:
            data = await asyncio.wait_for(websocket.receive_json(), timeout=REQUEST_TIMEOUT_SECONDS)
        except asyncio.TimeoutError:
            await manager.send_message(
                client_id, _event(EventType.DECISION_ERROR, error="Timeout waiting for decision request")
            )
            return

        try:
            request = DecisionRequest(**data)
        except (ValidationError, TypeError) as e:
            await manager.send_message(
                client_id, _event(EventType.DECISION_ERROR, error=f"Invalid request: {e}")
            )
            return

        max_steps = request.max_history_steps
        if max_steps is None:
            max_steps = config.max_history_steps
        messages = apply_vision_mode(trim_messages(request.messages, max_steps), config.vision_mode)
        logger.info(f"Client {client_id} decision request: {len(messages)} messages via {provider!r}")

        if config.streaming_enabled:
            fragments = []
            async for fragment in provider.get_decision_stream(messages):
                fragments.append(fragment)
                await manager.send_message(client_id, _event(EventType.DECISION_CHUNK, {"text": fragment}))
            decision = parse_json_response("".join(fragments))
        else:
            decision = await provider.get_decision(messages)

        await manager.send_message(
            client_id, _event(EventType.DECISION_COMPLETE, {"decision": decision.to_payload()})
        )

    except WebSocketDisconnect:
        logger.info(f"Client {client_id} disconnected during decision")

    except Exception as e:
        logger.exception(f"Error handling WebSocket for {client_id}")
        await manager.send_message(client_id, _event(EventType.DECISION_ERROR, error=str(e)))

    finally:
        manager.disconnect(client_id)
