"""
Self-hosted Whisper transcription client.

Talks to an OpenAI-compatible Whisper ASR server (e.g. faster-whisper-server)
at settings.whisper_url.
"""

from clipsplitter.config import Settings
from clipsplitter.services.ai_clients.base import AIClientConfig
from clipsplitter.services.ai_clients.openai_client import OpenAISpeechClient


class WhisperClient(OpenAISpeechClient):
    """
    Client for a self-hosted Whisper service.

    Example:
        async with WhisperClient.from_settings(settings) as client:
            result = await client.transcribe(audio_path)
    """

    name = "whisper"

    @classmethod
    def from_settings(cls, settings: Settings) -> "WhisperClient":
        """Create WhisperClient from application settings."""
        if not settings.whisper_url:
            raise ValueError("WhisperClient requires WHISPER_URL")
        config = AIClientConfig(
            base_url=settings.whisper_url.rstrip("/"),
            timeout=settings.transcribe_timeout,
        )
        return cls(config, model=settings.whisper_model)

