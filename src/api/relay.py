"""WebSocket relay around the prompt operation."""

import asyncio
import json
import logging

import httpx
from fastapi import WebSocket, WebSocketDisconnect

from src.agent import CompletionClient
from src.api.handlers import process_prompt
from src.api.models import PromptRequest, PromptResponse, RelayReply
from src.services.conversation_store import ConversationStore

logger = logging.getLogger(__name__)

RELAY_ERROR = "Error processing request"


class TransportError(Exception):
    """Raised when the remote prompt endpoint cannot be reached or fails."""


async def forward_prompt(relay_url: str, request: PromptRequest) -> str:
    """POST the prompt to a remote ``/api/prompt`` endpoint and return its reply.

    Raises:
        TransportError: On network failure, non-2xx status or a bad body
    """
    try:
        async with httpx.AsyncClient() as client:
            response = await client.post(relay_url, json=request.model_dump())
            response.raise_for_status()
            return PromptResponse.model_validate(response.json()).botResponse
    except (httpx.HTTPError, ValueError) as e:
        raise TransportError(f"Relay call to {relay_url} failed: {e}") from e


def create_relay_handler(
    store: ConversationStore,
    client: CompletionClient,
    relay_url: str | None = None,
):
    """Create WebSocket relay handler.

    Args:
        store: Conversation store shared with the HTTP endpoint
        client: Completion client wrapping the provider
        relay_url: When set, prompts are POSTed to this remote endpoint
            instead of being handled in-process

    Returns:
        WebSocket handler function
    """

    async def answer(raw: str | bytes | None) -> str:
        if raw is None:
            raise ValueError("Message carried neither text nor bytes")
        payload = json.loads(raw)
        request = PromptRequest.model_validate(payload)
        logger.info(f"Received message from user {request.userId}: {request.prompt}")
        if relay_url:
            if not request.userId:
                raise ValueError("userId is required")
            return await forward_prompt(relay_url, request)
        return await process_prompt(store, client, request.userId, request.prompt)

    async def handle_message(websocket: WebSocket, raw: str | bytes | None) -> None:
        try:
            bot_response = await answer(raw)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Error processing relay message: {e}", exc_info=True)
            bot_response = RELAY_ERROR

        try:
            await websocket.send_text(RelayReply(botResponse=bot_response).model_dump_json())
        except (WebSocketDisconnect, RuntimeError) as e:
            logger.info(f"Dropping reply, client already gone: {e}")

    async def relay(websocket: WebSocket) -> None:
        """WebSocket endpoint: one reply per inbound message."""
        await websocket.accept()
        logger.info("New client connected")

        in_flight: set[asyncio.Task] = set()
        try:
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    raise WebSocketDisconnect(message.get("code", 1000))
                # Binary frames carry JSON too
                raw = message.get("text")
                if raw is None:
                    raw = message.get("bytes")
                task = asyncio.create_task(handle_message(websocket, raw))
                in_flight.add(task)
                task.add_done_callback(in_flight.discard)
        except WebSocketDisconnect:
            logger.info("Client disconnected")
        finally:
            pending = list(in_flight)
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

    return relay
