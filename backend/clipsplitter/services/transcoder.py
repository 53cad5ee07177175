"""
Segment transcoder using ffmpeg.

Cuts one planned interval out of the source video and reframes it to a
fixed aspect ratio by scaling to fit and padding (no cropping).
"""

import asyncio
import logging
import os
import time
import uuid
from pathlib import Path

from clipsplitter.config import Settings
from clipsplitter.models.schemas import SegmentPlan
from clipsplitter.utils.media_utils import MediaProcessingError, run_ffmpeg

logger = logging.getLogger(__name__)
perf_logger = logging.getLogger("clipsplitter.perf")


def target_frame_size(aspect_width: int, aspect_height: int, height: int) -> tuple[int, int]:
    """
    Output frame size for an aspect ratio at a given height.

    Both sides are rounded to even numbers (required by yuv420p/libx264).

    Example:
        >>> target_frame_size(9, 16, 1920)
        (1080, 1920)
    """
    even_height = max(2, height - height % 2)
    width = round(even_height * aspect_width / aspect_height)
    even_width = max(2, width - width % 2)
    return even_width, even_height


def partial_path(final_path: Path) -> Path:
    """Hidden sibling that ffmpeg writes to before the rename into place."""
    return final_path.with_name(f".{final_path.stem}_{uuid.uuid4().hex[:8]}{final_path.suffix}")


def letterbox_filter(width: int, height: int) -> str:
    """Scale-to-fit then pad with black bars to exactly width x height."""
    return (
        f"scale={width}:{height}:force_original_aspect_ratio=decrease,"
        f"pad={width}:{height}:(ow-iw)/2:(oh-ih)/2:black,"
        f"setsar=1"
    )


class FFmpegTranscoder:
    """
    Reframes planned segments with ffmpeg.

    Example:
        transcoder = FFmpegTranscoder(settings)
        clip = await transcoder.transform(source, plan, out_path, 9, 16)
    """

    name = "ffmpeg"

    def __init__(self, settings: Settings):
        """
        Initialize transcoder.

        Args:
            settings: Application settings (codec, preset, crf, timeout)
        """
        self.settings = settings

    def build_args(
        self,
        source_path: Path,
        plan: SegmentPlan,
        output_path: Path,
        aspect_width: int,
        aspect_height: int,
    ) -> list[str]:
        """Build ffmpeg arguments for one segment."""
        width, height = target_frame_size(
            aspect_width, aspect_height, self.settings.target_height
        )
        return [
            "-ss", f"{plan.start_time:.3f}",
            "-i", str(source_path),
            "-t", f"{plan.duration:.3f}",
            "-vf", letterbox_filter(width, height),
            "-c:v", self.settings.video_codec,
            "-preset", self.settings.encode_preset,
            "-crf", str(self.settings.encode_crf),
            "-pix_fmt", "yuv420p",
            "-c:a", self.settings.audio_codec,
            "-movflags", "+faststart",
            str(output_path),
        ]

    async def transform(
        self,
        source_path: Path,
        plan: SegmentPlan,
        output_path: Path,
        aspect_width: int = 9,
        aspect_height: int = 16,
    ) -> Path:
        """
        Cut and reframe one segment.

        Args:
            source_path: Source video
            plan: Interval to cut
            output_path: Destination clip path
            aspect_width: Target aspect ratio width
            aspect_height: Target aspect ratio height

        Returns:
            Path to the reframed clip

        Raises:
            FileNotFoundError: If the source video is missing
            MediaProcessingError: If ffmpeg fails or produces no output
        """
        source_path = Path(source_path)
        if not source_path.exists():
            raise FileNotFoundError(f"Video file not found: {source_path}")

        output_path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = partial_path(output_path)
        args = self.build_args(source_path, plan, temp_path, aspect_width, aspect_height)

        logger.info(
            f"Transcoding segment {plan.index} ({plan.label}) -> {output_path.name}"
        )
        start_time = time.time()

        try:
            # Run ffmpeg in thread pool to not block event loop
            await asyncio.to_thread(run_ffmpeg, args, self.settings.transcode_timeout)
            if not temp_path.exists():
                raise MediaProcessingError("Transcode failed: output file not created")
            os.replace(temp_path, output_path)
        finally:
            temp_path.unlink(missing_ok=True)

        elapsed = time.time() - start_time
        size_mb = output_path.stat().st_size / 1024 / 1024
        perf_logger.info(
            f"PERF | transcode | segment={plan.index} | "
            f"duration={plan.duration:.1f}s | size={size_mb:.1f}MB | time={elapsed:.1f}s"
        )
        return output_path
