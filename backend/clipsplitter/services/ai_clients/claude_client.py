"""
Claude API client implementation.

Provides async chat completions via Anthropic's SDK.
The SDK handles retries of transient errors (max_retries).
"""

import logging

from anthropic import APIConnectionError, APIStatusError, APITimeoutError, AsyncAnthropic

from clipsplitter.config import Settings
from clipsplitter.services.ai_clients.base import (
    AIClientConfig,
    AIClientConnectionError,
    AIClientResponseError,
    AIClientTimeoutError,
    ChatUsage,
)

logger = logging.getLogger(__name__)

# Default Claude model (using alias for auto-updates)
DEFAULT_CLAUDE_MODEL = "claude-sonnet-4-5"


class ClaudeClient:
    """
    Async client for Anthropic's Claude API.

    Example:
        async with ClaudeClient.from_settings(settings) as client:
            content, usage = await client.chat([
                {"role": "system", "content": "You write titles."},
                {"role": "user", "content": "..."},
            ])
    """

    name = "claude"

    def __init__(
        self,
        config: AIClientConfig,
        default_model: str = DEFAULT_CLAUDE_MODEL,
        client: AsyncAnthropic | None = None,
    ):
        """
        Initialize Claude client.

        Args:
            config: AI client configuration with API key
            default_model: Default Claude model to use
            client: Pre-built SDK client (tests)

        Raises:
            ValueError: If API key is not provided
        """
        if not config.api_key and client is None:
            raise ValueError(
                "ClaudeClient requires API key. Set ANTHROPIC_API_KEY."
            )

        self.config = config
        self.default_model = default_model
        self.client = client or AsyncAnthropic(
            api_key=config.api_key,
            timeout=config.timeout,
            max_retries=config.max_retries,
        )

        logger.info(f"ClaudeClient initialized, model: {default_model}")

    @classmethod
    def from_settings(cls, settings: Settings) -> "ClaudeClient":
        """Create ClaudeClient from application settings."""
        config = AIClientConfig(
            base_url="https://api.anthropic.com",
            api_key=settings.anthropic_api_key,
            timeout=float(settings.llm_timeout),
        )
        return cls(config, default_model=settings.claude_model)

    async def __aenter__(self) -> "ClaudeClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the SDK client."""
        await self.client.close()

    async def chat(
        self,
        messages: list[dict],
        model: str | None = None,
        temperature: float = 0.7,
        num_predict: int | None = None,
    ) -> tuple[str, ChatUsage]:
        """
        Chat completion with token usage tracking.

        System messages are moved into the API's system parameter.

        Args:
            messages: List of chat messages [{"role": "user", "content": "..."}]
            model: Model name (default: claude-sonnet)
            temperature: Sampling temperature
            num_predict: Max tokens to generate (default: 1024)

        Returns:
            Tuple of (response_content, ChatUsage)

        Raises:
            AIClientError: If chat completion fails
        """
        if model is None:
            model = self.default_model

        system_content = None
        chat_messages = []
        for msg in messages:
            if msg["role"] == "system":
                system_content = msg["content"]
            else:
                chat_messages.append({"role": msg["role"], "content": msg["content"]})

        kwargs = {
            "model": model,
            "max_tokens": num_predict or 1024,
            "temperature": temperature,
            "messages": chat_messages,
        }
        if system_content:
            kwargs["system"] = system_content

        try:
            response = await self.client.messages.create(**kwargs)

        except APITimeoutError as e:
            logger.error(f"Claude timeout: {e}")
            raise AIClientTimeoutError(
                "Claude request timeout",
                provider=self.name,
                model=model,
                original_error=e,
            ) from e

        except APIConnectionError as e:
            logger.error(f"Claude connection error: {e}")
            raise AIClientConnectionError(
                f"Cannot connect to Claude API: {e}",
                provider=self.name,
                original_error=e,
            ) from e

        except APIStatusError as e:
            logger.error(f"Claude API error: {e.status_code} - {e.message}")
            raise AIClientResponseError(
                f"Claude API error: {e.message}",
                provider=self.name,
                model=model,
                status_code=e.status_code,
                response_body=str(e.body) if e.body else None,
                original_error=e,
            ) from e

        content = "".join(
            block.text for block in response.content if getattr(block, "type", "") == "text"
        )
        usage = ChatUsage(
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
        )
        logger.info(
            f"Claude response: {len(content)} chars, "
            f"tokens: {usage.input_tokens} in / {usage.output_tokens} out"
        )
        return content.strip(), usage
