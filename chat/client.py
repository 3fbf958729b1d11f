"""
Thin synchronous wrapper around the OpenAI chat-completion endpoint.
"""

import logging
from dataclasses import dataclass

from openai import OpenAI, OpenAIError

from chat.errors import CompletionError, ConfigMissingError

logger = logging.getLogger(__name__)

SYSTEM = "system"
USER = "user"
ASSISTANT = "assistant"


@dataclass
class Turn:
    """One message in a conversation."""
    role: str
    content: str

    def to_message(self) -> dict:
        return {"role": self.role, "content": self.content}


class CompletionClient:
    """
    Sends a conversation history to OpenAI and returns the reply text.

    No retries and no timeout beyond the SDK default.
    """

    def __init__(self, api_key: str | None = None, client=None):
        if client is None:
            if not api_key:
                raise ConfigMissingError(
                    "No OpenAI API key configured. Set secrets.openai-key in config.yml "
                    "or the OPENAI_API_KEY environment variable."
                )
            client = OpenAI(api_key=api_key)
        self.client = client

    def complete(self, model: str, history: list[Turn]) -> str:
        """
        Get the assistant reply for a conversation.

        Args:
            model: OpenAI model identifier
            history: Turns in conversational order, system Turn first

        Returns:
            Reply text from the model

        Raises:
            ValueError: if the history does not start with a system Turn
            CompletionError: if the request fails or the reply is empty
        """
        if not history or history[0].role != SYSTEM:
            raise ValueError("history must start with a system turn")

        logger.debug("Requesting completion from %s with %d turns", model, len(history))
        try:
            response = self.client.chat.completions.create(
                model=model,
                messages=[turn.to_message() for turn in history],
            )
        except OpenAIError as e:
            raise CompletionError(f"could not complete request to openai: {e}") from e

        if not response.choices:
            raise CompletionError("openai returned no choices")

        content = response.choices[0].message.content
        if content is None:
            raise CompletionError("openai returned an empty message")
        return content
