"""Agent module for creating and configuring the Pydantic AI agent."""

from src.agent.agent import (
    MODEL_NAME,
    SYSTEM_PREAMBLE,
    CompletionClient,
    ProviderError,
    create_agent,
    create_model,
)

__all__ = [
    "MODEL_NAME",
    "SYSTEM_PREAMBLE",
    "CompletionClient",
    "ProviderError",
    "create_agent",
    "create_model",
]
