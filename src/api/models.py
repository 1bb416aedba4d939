"""Pydantic models for API requests and responses."""

from typing import Any

from pydantic import BaseModel, Field, field_validator


class PromptRequest(BaseModel):
    """Prompt request from client."""

    prompt: str = Field("", description="User prompt text")
    userId: str | None = Field(None, description="Identifier used to track the conversation")

    @field_validator("userId", mode="before")
    @classmethod
    def coerce_numeric_user_id(cls, value: Any) -> Any:
        """Identifiers are opaque; numeric ones are keyed by their text form."""
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value


class PromptResponse(BaseModel):
    """Prompt response to client."""

    prompt: str = Field(..., description="Echo of the user prompt")
    botResponse: str = Field(..., description="Generated reply")


class RelayReply(BaseModel):
    """Message sent back over the WebSocket."""

    botResponse: str = Field(..., description="Generated reply or generic error text")


class ErrorResponse(BaseModel):
    """Error body for 4xx/5xx responses."""

    error: str
