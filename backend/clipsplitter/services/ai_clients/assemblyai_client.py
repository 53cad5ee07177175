"""
AssemblyAI transcription client.

Three-step flow: upload the audio, create a transcript job, poll until the
job is completed or errored.
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
    AIClientResponseError,
    AIClientTimeoutError,
    HTTPClientBase,
)

logger = logging.getLogger(__name__)

ASSEMBLYAI_BASE_URL = "https://api.assemblyai.com"

# Seconds between transcript status polls
POLL_INTERVAL = 3.0

# Words per timed segment when grouping word-level timings
WORDS_PER_SEGMENT = 12


class AssemblyAIClient(HTTPClientBase):
    """
    Async client for the AssemblyAI v2 API.

    Example:
        async with AssemblyAIClient.from_settings(settings) as client:
            result = await client.transcribe(audio_path, language="en")
    """

    name = "assemblyai"

    def __init__(
        self,
        config: AIClientConfig,
        poll_interval: float = POLL_INTERVAL,
        http_client: httpx.AsyncClient | None = None,
    ):
        if not config.api_key:
            raise ValueError("AssemblyAIClient requires API key. Set ASSEMBLYAI_API_KEY.")
        super().__init__(config, http_client)
        self.poll_interval = poll_interval

    @classmethod
    def from_settings(cls, settings: Settings) -> "AssemblyAIClient":
        """Create client from application settings."""
        config = AIClientConfig(
            base_url=ASSEMBLYAI_BASE_URL,
            api_key=settings.assemblyai_api_key,
            timeout=settings.transcribe_timeout,
        )
        return cls(config)

    def auth_headers(self) -> dict[str, str]:
        return {"authorization": self.config.api_key or ""}

    async def transcribe(
        self,
        audio_path: Path,
        language: str | None = None,
    ) -> TranscriptResult:
        """
        Upload, transcribe and wait for completion.

        Polling stops after config.timeout seconds.

        Raises:
            FileNotFoundError: If file doesn't exist
            AIClientTimeoutError: If the job does not finish in time
            AIClientError: If any request fails or the job errors
        """
        audio_path = Path(audio_path)
        if not audio_path.exists():
            raise FileNotFoundError(f"File not found: {audio_path}")

        logger.info(f"Transcribing with assemblyai: {audio_path.name}")
        start_time = time.time()
        audio = await asyncio.to_thread(audio_path.read_bytes)

        try:
            upload = await self._request(
                "POST",
                f"{self.config.base_url}/v2/upload",
                content=audio,
                headers={"content-type": "application/octet-stream"},
            )
            upload_url = upload.json()["upload_url"]

            body: dict = {"audio_url": upload_url}
            if language:
                body["language_code"] = language
            else:
                body["language_detection"] = True

            created = await self._request(
                "POST",
                f"{self.config.base_url}/v2/transcript",
                json=body,
            )
            transcript_id = created.json()["id"]
            logger.debug(f"AssemblyAI job {transcript_id} created")

            while True:
                polled = await self._request(
                    "GET",
                    f"{self.config.base_url}/v2/transcript/{transcript_id}",
                )
                result = polled.json()
                status = result.get("status")

                if status == "completed":
                    break
                if status == "error":
                    raise AIClientResponseError(
                        f"AssemblyAI transcription failed: {result.get('error')}",
                        provider=self.name,
                        response_body=str(result.get("error")),
                    )
                if time.time() - start_time > self.config.timeout:
                    raise AIClientTimeoutError(
                        f"AssemblyAI job {transcript_id} not finished "
                        f"after {self.config.timeout:.0f}s",
                        provider=self.name,
                    )
                await asyncio.sleep(self.poll_interval)

        except httpx.HTTPError as e:
            logger.error(f"AssemblyAI request failed: {e}")
            raise self.map_http_error(e) from e
        except KeyError as e:
            raise AIClientResponseError(
                f"AssemblyAI: malformed response (missing {e})",
                provider=self.name,
                original_error=e,
            ) from e

        elapsed = time.time() - start_time
        logger.debug(f"AssemblyAI transcription finished in {elapsed:.1f}s")

        # Word timings are in milliseconds
        duration = result.get("audio_duration")
        return TranscriptResult(
            text=(result.get("text") or "").strip(),
            language=result.get("language_code") or language,
            segments=_group_words(result.get("words") or []),
            duration=float(duration) if duration is not None else None,
            provider=self.name,
        )


def _group_words(words: list[dict]) -> list[TranscriptSegment]:
    """Group word-level timings (ms) into short timed segments (s)."""
    segments: list[TranscriptSegment] = []
    for i in range(0, len(words), WORDS_PER_SEGMENT):
        chunk = words[i:i + WORDS_PER_SEGMENT]
        segments.append(
            TranscriptSegment(
                start=chunk[0].get("start", 0) / 1000,
                end=chunk[-1].get("end", 0) / 1000,
                text=" ".join(w.get("text", "") for w in chunk).strip(),
            )
        )
    return segments
