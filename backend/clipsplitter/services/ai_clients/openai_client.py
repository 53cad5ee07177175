"""
OpenAI API clients.

- OpenAIChatClient: /v1/chat/completions for summaries and captions
- OpenAISpeechClient: /v1/audio/transcriptions (whisper-1)

Both talk plain HTTP through httpx; no SDK dependency.
"""

import asyncio
import logging
import time
from pathlib import Path

import httpx

from clipsplitter.config import Settings
from clipsplitter.models.schemas import TranscriptResult, TranscriptSegment
from clipsplitter.services.ai_clients.base import (
    AIClientConfig,
    AIClientError,
    AIClientResponseError,
    ChatUsage,
    HTTPClientBase,
)

logger = logging.getLogger(__name__)

OPENAI_BASE_URL = "https://api.openai.com"


class OpenAIChatClient(HTTPClientBase):
    """
    Chat completions client for the OpenAI API.

    Example:
        async with OpenAIChatClient.from_settings(settings) as client:
            content, usage = await client.chat(
                [{"role": "user", "content": "Summarize..."}],
                temperature=0.3,
            )
    """

    name = "openai"

    def __init__(
        self,
        config: AIClientConfig,
        default_model: str = "gpt-3.5-turbo",
        http_client: httpx.AsyncClient | None = None,
    ):
        if not config.api_key:
            raise ValueError("OpenAIChatClient requires API key. Set OPENAI_API_KEY.")
        super().__init__(config, http_client)
        self.default_model = default_model

    @classmethod
    def from_settings(cls, settings: Settings) -> "OpenAIChatClient":
        """Create client from application settings."""
        config = AIClientConfig(
            base_url=OPENAI_BASE_URL,
            api_key=settings.openai_api_key,
            timeout=float(settings.llm_timeout),
        )
        return cls(config, default_model=settings.openai_chat_model)

    def auth_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.config.api_key}"}

    async def chat(
        self,
        messages: list[dict],
        model: str | None = None,
        temperature: float = 0.7,
        num_predict: int | None = None,
    ) -> tuple[str, ChatUsage]:
        """
        Chat completion.

        Args:
            messages: List of chat messages [{"role": "user", "content": "..."}]
            model: Model name (default: gpt-3.5-turbo)
            temperature: Sampling temperature
            num_predict: Max tokens to generate (sent as max_tokens)

        Returns:
            Tuple of (response_content, ChatUsage)

        Raises:
            AIClientError: If chat completion fails
        """
        if model is None:
            model = self.default_model

        request_body: dict = {
            "model": model,
            "messages": messages,
            "temperature": temperature,
        }
        if num_predict is not None:
            request_body["max_tokens"] = num_predict

        logger.debug(f"OpenAI chat: model={model}, messages={len(messages)}")

        try:
            response = await self._request(
                "POST",
                f"{self.config.base_url}/v1/chat/completions",
                json=request_body,
            )
            result = response.json()
        except httpx.HTTPError as e:
            logger.error(f"OpenAI chat failed: {e}")
            raise self.map_http_error(e, model) from e

        try:
            content = result["choices"][0]["message"]["content"] or ""
        except (KeyError, IndexError, TypeError) as e:
            raise AIClientResponseError(
                "OpenAI chat: malformed response",
                provider=self.name,
                model=model,
                response_body=str(result)[:500],
                original_error=e,
            ) from e

        raw_usage = result.get("usage") or {}
        usage = ChatUsage(
            input_tokens=raw_usage.get("prompt_tokens", 0),
            output_tokens=raw_usage.get("completion_tokens", 0),
        )
        logger.info(
            f"OpenAI response: {len(content)} chars, "
            f"tokens: {usage.input_tokens} in / {usage.output_tokens} out"
        )
        return content.strip(), usage


class OpenAISpeechClient(HTTPClientBase):
    """
    Transcription client for OpenAI-compatible /v1/audio/transcriptions.

    Also used for self-hosted Whisper servers exposing the same endpoint
    (see WhisperClient).

    Example:
        async with OpenAISpeechClient.from_settings(settings) as client:
            result = await client.transcribe(audio_path, language="en")
    """

    name = "openai"

    def __init__(
        self,
        config: AIClientConfig,
        model: str = "whisper-1",
        http_client: httpx.AsyncClient | None = None,
    ):
        super().__init__(config, http_client)
        self.model = model

    @classmethod
    def from_settings(cls, settings: Settings) -> "OpenAISpeechClient":
        """Create client from application settings."""
        if not settings.openai_api_key:
            raise ValueError("OpenAISpeechClient requires API key. Set OPENAI_API_KEY.")
        config = AIClientConfig(
            base_url=OPENAI_BASE_URL,
            api_key=settings.openai_api_key,
            timeout=settings.transcribe_timeout,
        )
        return cls(config, model=settings.openai_transcription_model)

    def auth_headers(self) -> dict[str, str]:
        if self.config.api_key:
            return {"Authorization": f"Bearer {self.config.api_key}"}
        return {}

    async def transcribe(
        self,
        audio_path: Path,
        language: str | None = None,
    ) -> TranscriptResult:
        """
        Transcribe audio file.

        Args:
            audio_path: Path to audio file
            language: Optional ISO-639-1 language hint

        Returns:
            TranscriptResult with segments from verbose_json

        Raises:
            FileNotFoundError: If file doesn't exist
            AIClientError: If transcription fails
        """
        audio_path = Path(audio_path)
        if not audio_path.exists():
            raise FileNotFoundError(f"File not found: {audio_path}")

        data = {"model": self.model, "response_format": "verbose_json"}
        if language:
            data["language"] = language

        size_mb = audio_path.stat().st_size / 1024 / 1024
        logger.info(f"Transcribing with {self.name}: {audio_path.name} ({size_mb:.1f} MB)")
        start_time = time.time()

        # Read once: the retry loop resends the same bytes
        audio = await asyncio.to_thread(audio_path.read_bytes)
        files = {"file": (audio_path.name, audio, "audio/wav")}

        try:
            response = await self._request(
                "POST",
                f"{self.config.base_url}/v1/audio/transcriptions",
                files=files,
                data=data,
            )
            result = response.json()
        except httpx.HTTPError as e:
            logger.error(f"{self.name} transcription failed: {e}")
            raise self.map_http_error(e, self.model) from e

        if "text" not in result:
            raise AIClientError(
                "Transcription response has no text",
                provider=self.name,
                model=self.model,
            )

        segments = [
            TranscriptSegment(
                start=float(seg.get("start", 0.0)),
                end=float(seg.get("end", 0.0)),
                text=seg.get("text", "").strip(),
            )
            for seg in result.get("segments") or []
        ]

        elapsed = time.time() - start_time
        logger.debug(f"{self.name} transcription: {len(segments)} segments in {elapsed:.1f}s")

        return TranscriptResult(
            text=result["text"].strip(),
            language=result.get("language") or language,
            segments=segments,
            duration=result.get("duration"),
            provider=self.name,
        )
