import logging

from openai import APIError, AsyncOpenAI

from unilib.errors import LLMConfigurationError, LLMGatewayError
from unilib.ports.llm import LLMPort

logger = logging.getLogger(__name__)


class OpenAILLMAdapter(LLMPort):
    """LLM adapter using the OpenAI SDK (OpenAI itself or any compatible base URL)."""

    def __init__(self, api_key: str, model: str, base_url: str | None = None) -> None:
        self._client = AsyncOpenAI(api_key=api_key, base_url=base_url) if api_key else None
        self._model = model

    async def complete(self, system: str, user: str) -> str | None:
        """Send a chat completion request to OpenAI."""
        if self._client is None:
            raise LLMConfigurationError("OpenAI API key is not configured")

        logger.info("OpenAI request: model=%s", self._model)
        try:
            resp = await self._client.chat.completions.create(
                model=self._model,
                messages=[
                    {"role": "system", "content": system},
                    {"role": "user", "content": user},
                ],
            )
        except APIError as exc:
            logger.error("OpenAI error: %s", exc)
            raise LLMGatewayError("Failed to get AI recommendation") from exc

        result = resp.choices[0].message.content if resp.choices else None
        logger.info("OpenAI response: %d chars", len(result or ""))
        return result
