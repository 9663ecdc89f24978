import logging

import httpx

from unilib.errors import LLMConfigurationError, LLMGatewayError
from unilib.ports.llm import LLMPort

logger = logging.getLogger(__name__)


class GatewayLLMAdapter(LLMPort):
    """LLM adapter for an OpenAI-compatible chat completions gateway."""

    def __init__(
        self,
        url: str,
        api_key: str,
        model: str,
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._url = url
        self._api_key = api_key
        self._model = model
        self._timeout = timeout
        self._transport = transport

    async def complete(self, system: str, user: str) -> str | None:
        """Send a single chat completion request to the gateway."""
        if not self._api_key:
            raise LLMConfigurationError("AI gateway API key is not configured")

        payload = {
            "model": self._model,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
        }
        headers = {"Authorization": f"Bearer {self._api_key}"}
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            logger.info("Gateway request: model=%s, prompt=%d chars", self._model, len(system))
            resp = await client.post(self._url, json=payload, headers=headers)

        if resp.is_error:
            logger.error("AI gateway error: %d %s", resp.status_code, resp.text)
            raise LLMGatewayError("Failed to get AI recommendation")

        choices = resp.json().get("choices") or []
        content = (choices[0].get("message") or {}).get("content") if choices else None
        logger.info("Gateway response: %d chars", len(content or ""))
        return content
