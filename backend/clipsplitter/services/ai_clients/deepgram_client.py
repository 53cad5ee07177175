"""
Deepgram transcription client (pre-recorded audio, /v1/listen).
"""

import asyncio
import logging
from pathlib import Path

import httpx

from clipsplitter.config import Settings
from clipsplitter.models.schemas import TranscriptResult, TranscriptSegment
from clipsplitter.services.ai_clients.base import (
    AIClientConfig,
    AIClientResponseError,
    HTTPClientBase,
)

logger = logging.getLogger(__name__)

DEEPGRAM_BASE_URL = "https://api.deepgram.com"


class DeepgramClient(HTTPClientBase):
    """
    Async client for Deepgram speech-to-text.

    Example:
        async with DeepgramClient.from_settings(settings) as client:
            result = await client.transcribe(audio_path, language="en")
    """

    name = "deepgram"

    def __init__(
        self,
        config: AIClientConfig,
        model: str = "nova",
        default_language: str = "en",
        http_client: httpx.AsyncClient | None = None,
    ):
        if not config.api_key:
            raise ValueError("DeepgramClient requires API key. Set DEEPGRAM_API_KEY.")
        super().__init__(config, http_client)
        self.model = model
        self.default_language = default_language

    @classmethod
    def from_settings(cls, settings: Settings) -> "DeepgramClient":
        """Create client from application settings."""
        config = AIClientConfig(
            base_url=DEEPGRAM_BASE_URL,
            api_key=settings.deepgram_api_key,
            timeout=settings.transcribe_timeout,
        )
        return cls(
            config,
            model=settings.deepgram_model,
            default_language=settings.default_language,
        )

    def auth_headers(self) -> dict[str, str]:
        return {"Authorization": f"Token {self.config.api_key}"}

    async def transcribe(
        self,
        audio_path: Path,
        language: str | None = None,
    ) -> TranscriptResult:
        """
        Transcribe audio file in one request.

        Raises:
            FileNotFoundError: If file doesn't exist
            AIClientError: If transcription fails
        """
        audio_path = Path(audio_path)
        if not audio_path.exists():
            raise FileNotFoundError(f"File not found: {audio_path}")

        language = language or self.default_language
        params = {
            "language": language,
            "punctuate": "true",
            "utterances": "true",
            "model": self.model,
        }

        logger.info(f"Transcribing with deepgram: {audio_path.name}")
        audio = await asyncio.to_thread(audio_path.read_bytes)

        try:
            response = await self._request(
                "POST",
                f"{self.config.base_url}/v1/listen",
                params=params,
                content=audio,
                headers={"Content-Type": "audio/wav"},
            )
            result = response.json()
        except httpx.HTTPError as e:
            logger.error(f"Deepgram request failed: {e}")
            raise self.map_http_error(e, self.model) from e

        try:
            channel = result["results"]["channels"][0]
            text = channel["alternatives"][0]["transcript"]
        except (KeyError, IndexError, TypeError) as e:
            raise AIClientResponseError(
                "Deepgram: malformed response",
                provider=self.name,
                model=self.model,
                response_body=str(result)[:500],
                original_error=e,
            ) from e

        segments = [
            TranscriptSegment(
                start=float(u.get("start", 0.0)),
                end=float(u.get("end", 0.0)),
                text=u.get("transcript", "").strip(),
            )
            for u in result["results"].get("utterances") or []
        ]

        return TranscriptResult(
            text=text.strip(),
            language=channel.get("detected_language") or language,
            segments=segments,
            duration=(result.get("metadata") or {}).get("duration"),
            provider=self.name,
        )
