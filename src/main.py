"""FastAPI application entry point."""

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from pydantic_ai import Agent
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.agent import CompletionClient, MODEL_NAME, create_agent, create_model
from src.api.handlers import (
    create_health_handler,
    create_prompt_handler,
    http_exception_handler,
    validation_exception_handler,
)
from src.api.middleware import OriginGuardMiddleware
from src.api.models import PromptResponse
from src.api.relay import create_relay_handler
from src.config import Config, ConfigurationError, load_config
from src.services.conversation_store import ConversationStore

logger = logging.getLogger(__name__)

# Load .env file if it exists (for local development)
env_path = Path(__file__).parent.parent / ".env"


def create_app(
    config: Config,
    agent: Agent | None = None,
    store: ConversationStore | None = None,
) -> FastAPI:
    """Build the application.

    Args:
        config: Application configuration
        agent: Agent to use instead of one built from config (tests pass a
            FunctionModel-backed agent here)
        store: Conversation store; a fresh one is created when omitted

    Returns:
        Configured FastAPI app
    """
    if agent is None:
        agent = create_agent(create_model(config.groq_api_base_url, config.groq_api_key))
    if store is None:
        store = ConversationStore(
            max_turns=config.max_turns,
            ttl_seconds=config.conversation_ttl_seconds,
        )
    client = CompletionClient(agent)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Lifespan context manager for startup/shutdown."""
        logger.info(f"🚀 Starting prompt relay on port {config.port}")
        logger.info(f"🤖 Model: {MODEL_NAME}")
        if config.relay_url:
            logger.info(f"📡 WebSocket relay forwarding to {config.relay_url}")
        yield
        logger.info("👋 Shutting down prompt relay...")

    app = FastAPI(
        title="Prompt Relay",
        description="Relay chat prompts to a hosted LLM with per-user history",
        lifespan=lifespan,
    )
    app.state.store = store
    app.state.config = config

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.allowed_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type", "Authorization"],
    )
    # Added last so it runs first
    app.add_middleware(OriginGuardMiddleware, allowed_origins=config.allowed_origins)

    # Register routes
    app.get("/health")(create_health_handler())
    app.post("/api/prompt", response_model=PromptResponse)(create_prompt_handler(store, client))
    relay = create_relay_handler(store, client, relay_url=config.relay_url)
    app.websocket("/")(relay)
    app.websocket("/ws")(relay)

    return app


def build_app() -> FastAPI:
    """Load configuration and build the app, exiting if it is incomplete.

    Usable as ``uvicorn src.main:build_app --factory``.
    """
    logging.basicConfig(level=logging.INFO, format="[%(asctime)s] %(levelname)s %(name)s - %(message)s")
    if env_path.exists():
        load_dotenv(env_path)

    try:
        config = load_config()
    except ConfigurationError as e:
        logger.error(f"Error: {e}")
        sys.exit(1)

    return create_app(config)


def main():
    """Run the FastAPI server."""
    import uvicorn

    app = build_app()
    uvicorn.run(app, host="0.0.0.0", port=app.state.config.port)


if __name__ == "__main__":
    main()
