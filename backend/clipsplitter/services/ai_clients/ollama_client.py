"""
Ollama chat client.

Uses Ollama's OpenAI-compatible /v1/chat/completions endpoint.
"""

import logging

import httpx

from clipsplitter.config import Settings
from clipsplitter.services.ai_clients.base import (
    AIClientConfig,
    AIClientResponseError,
    ChatUsage,
    HTTPClientBase,
)

logger = logging.getLogger(__name__)


class OllamaClient(HTTPClientBase):
    """
    Async client for a local Ollama server.

    Example:
        async with OllamaClient.from_settings(settings) as client:
            content, _ = await client.chat([{"role": "user", "content": "Hi"}])
    """

    name = "ollama"

    def __init__(
        self,
        config: AIClientConfig,
        default_model: str = "qwen2.5:14b",
        http_client: httpx.AsyncClient | None = None,
    ):
        super().__init__(config, http_client)
        self.default_model = default_model

    @classmethod
    def from_settings(cls, settings: Settings) -> "OllamaClient":
        """Create OllamaClient from application settings."""
        if not settings.ollama_url:
            raise ValueError("OllamaClient requires OLLAMA_URL")
        config = AIClientConfig(
            base_url=settings.ollama_url.rstrip("/"),
            timeout=float(settings.llm_timeout),
        )
        return cls(config, default_model=settings.ollama_model)

    def auth_headers(self) -> dict[str, str]:
        return {}

    async def chat(
        self,
        messages: list[dict],
        model: str | None = None,
        temperature: float = 0.7,
        num_predict: int | None = None,
    ) -> tuple[str, ChatUsage]:
        """
        Chat completion using Ollama OpenAI-compatible endpoint.

        Returns:
            Tuple of (response_content, ChatUsage).
            Note: ChatUsage(0, 0) as Ollama doesn't report token usage here.

        Raises:
            AIClientError: If chat completion fails
        """
        if model is None:
            model = self.default_model

        logger.debug(f"Chat with {model}, {len(messages)} messages")

        request_body: dict = {
            "model": model,
            "messages": messages,
            "temperature": temperature,
        }
        if num_predict is not None:
            request_body["max_tokens"] = num_predict

        try:
            response = await self._request(
                "POST",
                f"{self.config.base_url}/v1/chat/completions",
                json=request_body,
            )
            result = response.json()
        except httpx.HTTPError as e:
            logger.error(f"Ollama chat failed with {model}: {e}")
            raise self.map_http_error(e, model) from e

        try:
            content = result["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise AIClientResponseError(
                "Ollama chat: malformed response",
                provider=self.name,
                model=model,
                response_body=str(result)[:500],
                original_error=e,
            ) from e

        logger.debug(f"Chat response: {len(content)} chars")
        return content.strip(), ChatUsage()
