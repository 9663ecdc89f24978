"""LLM port: a single chat completion against a hosted model."""

from abc import ABC, abstractmethod


class LLMPort(ABC):
    """Abstraction for the AI completion collaborator."""

    @abstractmethod
    async def complete(self, system: str, user: str) -> str | None:
        """
        Send one system + user turn and return the first choice's text.

        Returns None when the upstream answered without any content.
        Raises LLMConfigurationError or LLMGatewayError on failure.
        """
        ...
