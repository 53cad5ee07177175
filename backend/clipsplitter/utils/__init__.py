"""
Shared utilities.

Modules:
    media_utils: ffmpeg/ffprobe invocation and media type detection
"""

from clipsplitter.utils.media_utils import (
    MediaProcessingError,
    get_frame_size,
    get_media_duration,
    is_video_file,
    run_ffmpeg,
)

__all__ = [
    "MediaProcessingError",
    "get_frame_size",
    "get_media_duration",
    "is_video_file",
    "run_ffmpeg",
]
