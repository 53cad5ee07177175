"""
Audio extraction service using ffmpeg.

Extracts speech-ready audio from clips for transcription backends.
"""

import asyncio
import logging
import uuid
from pathlib import Path

from clipsplitter.config import Settings
from clipsplitter.utils.media_utils import MediaProcessingError, run_ffmpeg

logger = logging.getLogger(__name__)

# Speech backends expect 16 kHz mono PCM
AUDIO_SAMPLE_RATE = 16000


class AudioExtractor:
    """
    Extracts audio from video files using ffmpeg.

    Example:
        extractor = AudioExtractor(settings)
        audio_path = await extractor.extract(clip_path)
    """

    def __init__(self, settings: Settings):
        self.settings = settings

    async def extract(
        self,
        video_path: Path,
        output_dir: Path | None = None,
    ) -> Path:
        """
        Extract audio from a video file as 16 kHz mono WAV.

        Args:
            video_path: Path to input video file
            output_dir: Output directory (default: settings.temp_dir)

        Returns:
            Path to extracted audio file (WAV). Caller removes it.

        Raises:
            MediaProcessingError: If ffmpeg fails
            FileNotFoundError: If video file doesn't exist
        """
        video_path = Path(video_path)

        if not video_path.exists():
            raise FileNotFoundError(f"Video file not found: {video_path}")

        if output_dir is None:
            output_dir = self.settings.temp_dir

        output_dir.mkdir(parents=True, exist_ok=True)

        # Unique name: several segments may be transcribed concurrently
        audio_path = output_dir / f"{video_path.stem}_{uuid.uuid4().hex[:8]}_audio.wav"

        logger.debug(f"Extracting audio: {video_path.name} -> {audio_path.name}")

        args = [
            "-i", str(video_path),
            "-vn",                      # No video
            "-acodec", "pcm_s16le",     # 16-bit PCM
            "-ar", str(AUDIO_SAMPLE_RATE),
            "-ac", "1",                 # Mono
            str(audio_path),
        ]
        await asyncio.to_thread(run_ffmpeg, args, self.settings.transcode_timeout)

        if not audio_path.exists():
            raise MediaProcessingError("Audio extraction failed: output file not created")

        size_mb = audio_path.stat().st_size / 1024 / 1024
        logger.debug(f"Audio extracted: {audio_path.name} ({size_mb:.1f} MB)")

        return audio_path
