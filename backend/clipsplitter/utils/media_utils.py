"""
Media utilities for video file handling.

Provides common functions for media file operations:
- Duration and frame size detection via ffprobe
- ffmpeg invocation with error mapping
- Media type detection by extension
"""

import logging
import subprocess
from pathlib import Path

logger = logging.getLogger(__name__)

# Supported media extensions
VIDEO_EXTENSIONS = frozenset({".mp4", ".mkv", ".avi", ".mov", ".webm"})


class MediaProcessingError(RuntimeError):
    """ffmpeg/ffprobe failure.

    Attributes:
        tool: Binary that failed ("ffmpeg" or "ffprobe")
        returncode: Process exit code (None if it never ran)
        stderr: Tail of the process stderr
    """

    def __init__(
        self,
        message: str,
        tool: str = "ffmpeg",
        returncode: int | None = None,
        stderr: str = "",
    ):
        self.tool = tool
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(message)


def is_video_file(file_path: Path) -> bool:
    """Check if file is a video file by extension.

    Args:
        file_path: Path to media file

    Returns:
        True if file has video extension
    """
    return file_path.suffix.lower() in VIDEO_EXTENSIONS


def run_ffmpeg(args: list[str], timeout: float) -> None:
    """Run ffmpeg with the given arguments (blocking).

    Call through asyncio.to_thread from async code.

    Args:
        args: Arguments after the "ffmpeg" binary name
        timeout: Seconds before the process is killed

    Raises:
        MediaProcessingError: On non-zero exit, timeout or missing binary
    """
    cmd = ["ffmpeg", "-hide_banner", "-y", *args]
    logger.debug(f"ffmpeg: {' '.join(cmd)}")

    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as e:
        raise MediaProcessingError(
            f"ffmpeg timed out after {timeout:g}s", tool="ffmpeg"
        ) from e
    except FileNotFoundError as e:
        raise MediaProcessingError("ffmpeg not installed", tool="ffmpeg") from e

    if result.returncode != 0:
        stderr_tail = (result.stderr or "")[-500:]
        logger.error(f"ffmpeg failed: {stderr_tail}")
        raise MediaProcessingError(
            f"ffmpeg error (code {result.returncode})",
            tool="ffmpeg",
            returncode=result.returncode,
            stderr=stderr_tail,
        )


def get_media_duration(media_path: Path) -> float:
    """Get media duration using ffprobe.

    Args:
        media_path: Path to media file

    Returns:
        Duration in seconds

    Raises:
        MediaProcessingError: If ffprobe fails or prints no duration
    """
    result = _run_ffprobe(
        [
            "-show_entries", "format=duration",
            "-of", "csv=p=0",
            str(media_path),
        ]
    )
    try:
        return float(result.strip())
    except ValueError as e:
        raise MediaProcessingError(
            f"ffprobe returned no duration for {media_path.name}", tool="ffprobe"
        ) from e


def get_frame_size(media_path: Path) -> tuple[int, int]:
    """Get (width, height) of the first video stream using ffprobe.

    Raises:
        MediaProcessingError: If ffprobe fails or the file has no video stream
    """
    result = _run_ffprobe(
        [
            "-select_streams", "v:0",
            "-show_entries", "stream=width,height",
            "-of", "csv=s=x:p=0",
            str(media_path),
        ]
    )
    try:
        width, height = result.strip().split("x")[:2]
        return int(width), int(height)
    except ValueError as e:
        raise MediaProcessingError(
            f"ffprobe returned no frame size for {media_path.name}", tool="ffprobe"
        ) from e


def _run_ffprobe(args: list[str]) -> str:
    """Run ffprobe quietly and return stdout."""
    try:
        result = subprocess.run(
            ["ffprobe", "-v", "quiet", *args],
            capture_output=True,
            text=True,
            timeout=30,
        )
    except (subprocess.TimeoutExpired, FileNotFoundError) as e:
        raise MediaProcessingError(f"ffprobe failed: {e}", tool="ffprobe") from e

    if result.returncode != 0:
        raise MediaProcessingError(
            f"ffprobe error (code {result.returncode})",
            tool="ffprobe",
            returncode=result.returncode,
            stderr=(result.stderr or "")[-500:],
        )
    return result.stdout
