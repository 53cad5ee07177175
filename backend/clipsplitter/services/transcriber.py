"""
Clip transcription service.

Extracts speech audio from a clip and sends it to the selected speech
backend. Backend-agnostic: works with any SpeechClient.
"""

import logging
import time
from pathlib import Path

from clipsplitter.config import Settings
from clipsplitter.models.schemas import TranscriptResult
from clipsplitter.services.ai_clients import SpeechClient
from clipsplitter.services.audio_extractor import AudioExtractor

logger = logging.getLogger(__name__)
perf_logger = logging.getLogger("clipsplitter.perf")


class ClipTranscriber:
    """
    Clip transcription service.

    Example:
        async with DeepgramClient.from_settings(settings) as client:
            transcriber = ClipTranscriber(client, settings)
            result = await transcriber.transcribe(Path("segment_1_ab12.mp4"))
            print(result.text)
    """

    def __init__(
        self,
        speech_client: SpeechClient,
        settings: Settings,
        extractor: AudioExtractor | None = None,
    ):
        """
        Initialize transcriber.

        Args:
            speech_client: Backend used for speech-to-text
            settings: Application settings
            extractor: Audio extractor (default: AudioExtractor(settings))
        """
        self.speech_client = speech_client
        self.settings = settings
        self.extractor = extractor or AudioExtractor(settings)

    @property
    def backend(self) -> str:
        """Name of the speech backend in use."""
        return self.speech_client.name

    async def transcribe(
        self,
        clip_path: Path,
        language_hint: str | None = None,
    ) -> TranscriptResult:
        """
        Transcribe a clip by extracting audio first.

        The temporary WAV is always removed, also when the backend fails.

        Args:
            clip_path: Path to video clip
            language_hint: Optional language code passed to the backend

        Returns:
            TranscriptResult from the backend

        Raises:
            FileNotFoundError: If clip doesn't exist
            MediaProcessingError: If audio extraction fails
            AIClientError: If the backend call fails
        """
        clip_path = Path(clip_path)
        logger.info(f"Starting transcription: {clip_path.name} via {self.backend}")

        start_time = time.time()
        audio_path = await self.extractor.extract(clip_path)
        extract_time = time.time() - start_time

        try:
            backend_start = time.time()
            result = await self.speech_client.transcribe(audio_path, language_hint)
            backend_time = time.time() - backend_start
        finally:
            audio_path.unlink(missing_ok=True)

        total_time = time.time() - start_time
        logger.info(
            f"Transcription complete: {len(result.text.split())} words, "
            f"{len(result.segments)} segments, language={result.language}"
        )
        perf_logger.info(
            f"PERF | transcribe | backend={self.backend} | "
            f"extract={extract_time:.1f}s | "
            f"{self.backend}={backend_time:.1f}s | "
            f"total={total_time:.1f}s"
        )
        return result
