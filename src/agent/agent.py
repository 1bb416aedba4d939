"""Pydantic AI agent that generates sales-bot stress test questions."""

import logging

from pydantic_ai import Agent
from pydantic_ai.messages import (
    ModelMessage,
    ModelRequest,
    ModelResponse,
    TextPart,
    UserPromptPart,
)
from pydantic_ai.models import Model
from pydantic_ai.models.openai import OpenAIChatModel
from pydantic_ai.providers.openai import OpenAIProvider

from src.services.conversation_store import Turn

logger = logging.getLogger(__name__)

MODEL_NAME = "llama-3.3-70b-versatile"

# Agent instructions
SYSTEM_PREAMBLE = """
You are a SALES BOT STRESS TEST GENERATOR.

Your job is NOT to sell.
Your job is NOT to answer questions.
Your job is to generate realistic client questions that will test a sales assistant configured with:

- Structured sales phases (qualification → proposal → escalation)
- Strict pricing rules (cannot invent prices)
- Escalation tool called need_human
- Strategic qualification requirements
- No invented timelines
- Must rely strictly on knowledge base
- Must detect when to escalate
- Must sell outcomes (growth, efficiency), not technology

The company being tested:
Sinergia GDL — IA agents and digital solutions.

They offer:
- AI implementations (from 45,000 MXN + monthly packages)
- App development (15,000 MXN to 180,000 MXN+)
- CRM integrations
- Automation of sales and internal processes
- Scalable AI systems
- Security protocols
- Payment integrations
- Support and training

Your objective:

When the user writes exactly:
sales test

You must:

1. Analyze the business model and pricing structure.
2. Identify potential weak points in sales flow:
   - Missing information
   - Budget ambiguity
   - Timeline pressure
   - Integration complexity
   - Enterprise-level requirements
   - Customization edge cases
   - Escalation triggers
3. Generate 10 realistic, human-like, strategic test questions that:
   - Could challenge the sales bot
   - May require clarification
   - May push toward escalation
   - May test pricing integrity
   - May test integration limits
   - May test ROI claims
   - May test scalability
4. Write them in Spanish.
5. Number them 1–10.
6. Do NOT answer them.
7. No intro text.
8. No explanations.
9. No emojis.

Each execution must produce different question angles.

If the message is anything other than:
sales test

Respond exactly with:

This is for testing purposes only!

No additional words.
"""


class ProviderError(Exception):
    """Raised when the completion provider fails or returns nothing."""


def create_model(api_base_url: str, api_key: str, model_name: str = MODEL_NAME) -> Model:
    """Create the chat model for the Groq OpenAI-compatible API."""
    provider = OpenAIProvider(base_url=api_base_url, api_key=api_key)
    return OpenAIChatModel(model_name, provider=provider)


def create_agent(model: Model | str) -> Agent:
    """Create and configure the Pydantic AI agent.

    The preamble is passed as ``instructions`` rather than ``system_prompt`` so
    it is sent on every run, including runs that carry message history.

    Args:
        model: Chat model (see :func:`create_model`) or a model name

    Returns:
        Configured Pydantic AI agent
    """
    return Agent(model, instructions=SYSTEM_PREAMBLE)


def to_message_history(turns: list[Turn]) -> list[ModelMessage]:
    """Convert stored turns to Pydantic AI message format."""
    history: list[ModelMessage] = []
    for turn in turns:
        if turn.role == "user":
            history.append(ModelRequest(parts=[UserPromptPart(content=turn.content)]))
        elif turn.role == "assistant":
            history.append(ModelResponse(parts=[TextPart(content=turn.content)]))
    return history


class CompletionClient:
    """Single blocking round trip to the provider for a whole conversation."""

    def __init__(self, agent: Agent):
        self.agent = agent

    async def complete(self, turns: list[Turn]) -> str:
        """Return the reply to the last user turn in ``turns``.

        Raises:
            ProviderError: If the provider call fails or yields no text
        """
        if not turns or turns[-1].role != "user":
            raise ProviderError("Conversation must end with a user turn")

        latest = turns[-1]
        message_history = to_message_history(turns[:-1])

        try:
            result = await self.agent.run(latest.content, message_history=message_history)
        except Exception as e:
            raise ProviderError(f"Provider call failed: {e}") from e

        output = result.output
        if not output:
            raise ProviderError("Provider returned no choice")
        return str(output)
