"""
Base protocols for AI provider clients.

Two capabilities, each with interchangeable backends:
- ChatClient: chat completion (OpenAI, Claude, Ollama) used for summaries
- SpeechClient: speech-to-text (OpenAI, AssemblyAI, Deepgram, Whisper)
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, runtime_checkable

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from clipsplitter.models.schemas import TranscriptResult

# Retry configuration for transient errors
RETRY_DECORATOR = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=4, max=60),
    retry=retry_if_exception_type((httpx.ConnectError, httpx.TimeoutException)),
    reraise=True,
)


@dataclass
class AIClientConfig:
    """
    Configuration for AI client instances.

    Attributes:
        base_url: API endpoint URL
        timeout: Request timeout in seconds
        api_key: Optional API key for authenticated services
        max_retries: Number of retry attempts for transient errors
    """

    base_url: str
    timeout: float = 300.0
    api_key: str | None = None
    max_retries: int = 3


@dataclass
class ChatUsage:
    """
    Token usage statistics from LLM response.

    For providers without usage tracking, returns zeros.

    Attributes:
        input_tokens: Tokens in the input prompt
        output_tokens: Tokens generated in response
    """

    input_tokens: int = 0
    output_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        """Total tokens used."""
        return self.input_tokens + self.output_tokens


@runtime_checkable
class ChatClient(Protocol):
    """
    Protocol for chat completion backends.

    Example:
        async def title(client: ChatClient, text: str) -> str:
            content, _ = await client.chat([{"role": "user", "content": text}])
            return content
    """

    name: str

    async def chat(
        self,
        messages: list[dict],
        model: str | None = None,
        temperature: float = 0.7,
        num_predict: int | None = None,
    ) -> tuple[str, ChatUsage]:
        """
        Chat completion with message history.

        Args:
            messages: List of messages [{"role": "user", "content": "..."}]
            model: Model name (uses default if None)
            temperature: Sampling temperature
            num_predict: Max tokens to generate (model default if None)

        Returns:
            Tuple of (response_content, ChatUsage)

        Raises:
            AIClientError: If chat completion fails
        """
        ...

    async def close(self) -> None:
        """Close the client and release resources."""
        ...


@runtime_checkable
class SpeechClient(Protocol):
    """Protocol for speech-to-text backends."""

    name: str

    async def transcribe(
        self,
        audio_path: Path,
        language: str | None = None,
    ) -> TranscriptResult:
        """
        Transcribe an audio file.

        Args:
            audio_path: 16 kHz mono WAV
            language: Language hint (backend default if None)

        Returns:
            TranscriptResult with text, detected language and timed segments

        Raises:
            AIClientError: If transcription fails
        """
        ...

    async def close(self) -> None:
        """Close the client and release resources."""
        ...


class AIClientError(Exception):
    """
    Base exception for AI client errors.

    Attributes:
        message: Error description
        provider: AI provider name (openai, claude, deepgram, etc.)
        model: Model that caused the error
        original_error: Underlying exception if available
    """

    def __init__(
        self,
        message: str,
        provider: str | None = None,
        model: str | None = None,
        original_error: Exception | None = None,
    ):
        self.message = message
        self.provider = provider
        self.model = model
        self.original_error = original_error
        super().__init__(message)

    def __str__(self) -> str:
        parts = [self.message]
        if self.provider:
            parts.append(f"provider={self.provider}")
        if self.model:
            parts.append(f"model={self.model}")
        return " | ".join(parts)


class AIClientTimeoutError(AIClientError):
    """Raised when a request times out."""

    pass


class AIClientConnectionError(AIClientError):
    """Raised when connection to AI service fails."""

    pass


class AIClientResponseError(AIClientError):
    """
    Raised when AI service returns an error response.

    Attributes:
        status_code: HTTP status code if available
        response_body: Response body if available
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_body: str | None = None,
        **kwargs,
    ):
        super().__init__(message, **kwargs)
        self.status_code = status_code
        self.response_body = response_body


class HTTPClientBase(ABC):
    """
    Shared plumbing for httpx-based clients.

    Owns one AsyncClient and the context manager protocol. Subclasses map
    httpx failures to AIClientError via map_http_error().
    """

    name: str

    def __init__(
        self,
        config: AIClientConfig,
        http_client: httpx.AsyncClient | None = None,
    ):
        """
        Initialize client.

        Args:
            config: Client configuration with URL, key and timeout
            http_client: Injected httpx.AsyncClient (tests use MockTransport)
        """
        self.config = config
        self.http_client = http_client or httpx.AsyncClient(timeout=config.timeout)

    @RETRY_DECORATOR
    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        """Send one request, retrying transient failures; raises on HTTP errors."""
        headers = {**self.auth_headers(), **kwargs.pop("headers", {})}
        response = await self.http_client.request(method, url, headers=headers, **kwargs)
        response.raise_for_status()
        return response

    @abstractmethod
    def auth_headers(self) -> dict[str, str]:
        """Authentication headers for every request."""

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.http_client.aclose()

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close()

    def map_http_error(self, error: Exception, model: str | None = None) -> AIClientError:
        """Translate an httpx exception into the AIClientError hierarchy."""
        if isinstance(error, httpx.TimeoutException):
            return AIClientTimeoutError(
                f"{self.name} request timeout",
                provider=self.name,
                model=model,
                original_error=error,
            )
        if isinstance(error, httpx.HTTPStatusError):
            return AIClientResponseError(
                f"{self.name} API error: HTTP {error.response.status_code}",
                provider=self.name,
                model=model,
                status_code=error.response.status_code,
                response_body=error.response.text[:500],
                original_error=error,
            )
        if isinstance(error, httpx.ConnectError):
            return AIClientConnectionError(
                f"Cannot connect to {self.name} at {self.config.base_url}",
                provider=self.name,
                original_error=error,
            )
        return AIClientError(
            f"{self.name} request failed: {error}",
            provider=self.name,
            model=model,
            original_error=error,
        )
