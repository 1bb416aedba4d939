"""Services module for business logic."""

from src.services.conversation_store import ConversationStore, Turn

__all__ = ["ConversationStore", "Turn"]
