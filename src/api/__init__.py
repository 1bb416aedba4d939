"""API module for request/response models and handlers."""

from src.api.models import PromptRequest, PromptResponse, RelayReply
from src.api.handlers import create_health_handler, create_prompt_handler, process_prompt
from src.api.relay import create_relay_handler

__all__ = [
    "PromptRequest",
    "PromptResponse",
    "RelayReply",
    "create_health_handler",
    "create_prompt_handler",
    "create_relay_handler",
    "process_prompt",
]
