"""Chat completion service backed by the OpenAI API."""

import logging
import os

from openai import OpenAI

from utils.constants import DEFAULT_COMPLETION_MODEL

logger = logging.getLogger(__name__)


class CompletionService:
    """Generates assistant replies from a system prompt and conversation history."""

    def __init__(self, client, model: str = DEFAULT_COMPLETION_MODEL):
        """Initialize the completion service.

        Args:
            client: OpenAI client (or any object exposing chat.completions.create)
            model: Model identifier sent with every request
        """
        self.client = client
        self.model = model

    @classmethod
    def from_env(cls) -> "CompletionService":
        """Create a service using OPENAI_API_KEY and OPENAI_MODEL."""
        client = OpenAI(api_key=os.environ.get("OPENAI_API_KEY"))
        model = os.environ.get("OPENAI_MODEL", DEFAULT_COMPLETION_MODEL)
        return cls(client, model=model)

    def build_messages(
        self, prompt: str, history: list[dict[str, str]]
    ) -> list[dict[str, str]]:
        """Prepend the system prompt to the conversation history."""
        return [{"role": "system", "content": prompt}, *history]

    def complete(self, prompt: str, history: list[dict[str, str]]) -> str:
        """Request a reply for the conversation.

        API errors are not caught here; callers decide what a failed
        completion means.

        Returns:
            Content of the first choice, or an empty string if there is none
        """
        completion = self.client.chat.completions.create(
            model=self.model,
            messages=self.build_messages(prompt, history),
        )

        if not completion.choices:
            logger.warning("Completion returned no choices")
            return ""
        return completion.choices[0].message.content or ""
