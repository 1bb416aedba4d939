"""API request handlers."""

import asyncio
import logging

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from src.agent import CompletionClient
from src.api.models import ErrorResponse, PromptRequest, PromptResponse
from src.services.conversation_store import ConversationStore, Turn

logger = logging.getLogger(__name__)

MISSING_USER_ID = "userId is required to track conversations."
INTERNAL_ERROR = "An internal error occurred."


class MissingUserIdError(ValueError):
    """Raised when a prompt arrives without a userId."""


async def process_prompt(
    store: ConversationStore,
    client: CompletionClient,
    user_id: str | None,
    prompt: str,
) -> str:
    """Append the prompt to the user's conversation and return the reply.

    Requests for the same user are serialized, so turns land in call order.
    If the provider fails, the user turn is rolled back and the error is
    re-raised.

    Raises:
        MissingUserIdError: If user_id is empty
        ProviderError: If the completion provider fails
    """
    if not user_id:
        raise MissingUserIdError(MISSING_USER_ID)

    async with store.lock(user_id):
        store.append(user_id, Turn(role="user", content=prompt))
        try:
            bot_response = await client.complete(store.get_or_create(user_id))
        except (Exception, asyncio.CancelledError):
            store.discard_last(user_id)
            raise
        store.append(user_id, Turn(role="assistant", content=bot_response))

    return bot_response


def create_health_handler():
    """Create health check handler."""

    async def health():
        """Health check endpoint."""
        return {"status": "healthy"}

    return health


def create_prompt_handler(store: ConversationStore, client: CompletionClient):
    """Create prompt handler with store and client dependencies.

    Args:
        store: Conversation store shared with the WebSocket relay
        client: Completion client wrapping the provider

    Returns:
        Prompt handler function
    """

    async def prompt(request: PromptRequest) -> PromptResponse:
        """Prompt endpoint: forwards the conversation to the provider."""
        try:
            bot_response = await process_prompt(store, client, request.userId, request.prompt)
        except MissingUserIdError:
            raise HTTPException(status_code=400, detail=MISSING_USER_ID)
        except Exception as e:
            logger.error(f"Error interacting with provider for user {request.userId}: {e}", exc_info=True)
            raise HTTPException(status_code=500, detail=INTERNAL_ERROR)

        return PromptResponse(prompt=request.prompt, botResponse=bot_response)

    return prompt


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Render HTTPException as an ``{"error": ...}`` body."""
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=str(exc.detail)).model_dump(),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies are client errors, reported as 400."""
    logger.info(f"Rejected malformed request to {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=400,
        content=ErrorResponse(error="Invalid request body.").model_dump(),
    )
