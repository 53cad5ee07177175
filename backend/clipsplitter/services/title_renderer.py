"""
Title overlay service.

Renders caption text to a PNG with Pillow and burns it into a clip with
ffmpeg's overlay filter. The text is an image, not a subtitle track, so
no libass/drawtext support is needed in the ffmpeg build.
"""

import asyncio
import logging
import os
import time
import uuid
from pathlib import Path

from PIL import Image, ImageDraw, ImageFont

from clipsplitter.config import Settings
from clipsplitter.services.transcoder import partial_path
from clipsplitter.utils.media_utils import MediaProcessingError, get_frame_size, run_ffmpeg

logger = logging.getLogger(__name__)
perf_logger = logging.getLogger("clipsplitter.perf")

TEXT_COLOR = (255, 255, 255, 255)
BOX_COLOR = (0, 0, 0, 204)  # Black at 80% opacity
LINE_HEIGHT_RATIO = 1.2

# Vertical nudge applied after centering on the anchor line
VERTICAL_NUDGE = 5


def overlay_position(
    frame_width: int,
    frame_height: int,
    image_width: int,
    image_height: int,
    vertical_fraction: float,
) -> tuple[int, int]:
    """
    Top-left position of the title image inside the frame.

    Horizontally centered; vertically centered on frame_height * fraction,
    clamped so the image stays inside the frame.

    Example:
        >>> overlay_position(1080, 1920, 600, 120, 0.14)
        (240, 214)
    """
    x = (frame_width - image_width) // 2
    y = round(frame_height * vertical_fraction) - image_height // 2 + VERTICAL_NUDGE
    x = max(0, min(x, frame_width - image_width))
    y = max(0, min(y, frame_height - image_height))
    return x, y


def wrap_text(
    text: str,
    font: ImageFont.ImageFont | ImageFont.FreeTypeFont,
    max_width: float,
) -> list[str]:
    """Greedy word wrap by measured pixel width.

    A single word wider than max_width gets its own line.
    """
    lines: list[str] = []
    current = ""
    for word in text.split():
        candidate = f"{current} {word}" if current else word
        if current and font.getlength(candidate) > max_width:
            lines.append(current)
            current = word
        else:
            current = candidate
    if current:
        lines.append(current)
    return lines


class TitleRenderer:
    """
    Renders titles and composites them onto clips.

    Example:
        renderer = TitleRenderer(settings)
        size = await renderer.frame_size(clip_path)
        image_path = await renderer.render("Why Cats Rule The Internet", size[0], renderer.temp_image_path())
        await renderer.composite(clip_path, image_path, size)
    """

    name = "pillow"

    def __init__(self, settings: Settings):
        self.settings = settings

    def _load_font(self) -> ImageFont.ImageFont | ImageFont.FreeTypeFont:
        size = self.settings.title_font_size
        if self.settings.title_font_path:
            return ImageFont.truetype(str(self.settings.title_font_path), size)
        return ImageFont.load_default(size=size)

    def render_image(self, text: str, frame_width: int) -> Image.Image:
        """
        Draw wrapped text on a semi-transparent box.

        Args:
            text: Title text
            frame_width: Width of the target video; text wraps at 90% of it

        Returns:
            RGBA image sized to the text plus padding

        Raises:
            ValueError: If text is empty
        """
        if not text.strip():
            raise ValueError("Cannot render empty title")

        font = self._load_font()
        padding = self.settings.title_padding
        max_text_width = frame_width * self.settings.title_max_width_ratio - 2 * padding
        lines = wrap_text(text, font, max_text_width)

        line_height = round(self.settings.title_font_size * LINE_HEIGHT_RATIO)
        text_width = max(font.getlength(line) for line in lines)
        width = min(int(text_width + 2 * padding), frame_width)
        height = line_height * len(lines) + 2 * padding

        image = Image.new("RGBA", (width, height), BOX_COLOR)
        draw = ImageDraw.Draw(image)
        for i, line in enumerate(lines):
            line_width = font.getlength(line)
            x = (width - line_width) / 2
            y = padding + i * line_height + (line_height - self.settings.title_font_size) / 2
            draw.text((x, y), line, font=font, fill=TEXT_COLOR)

        return image

    def temp_image_path(self) -> Path:
        """Unique PNG path in temp_dir for one render."""
        return self.settings.temp_dir / f"title_{uuid.uuid4().hex[:12]}.png"

    async def frame_size(self, clip_path: Path) -> tuple[int, int]:
        """(width, height) of the clip, probed with ffprobe."""
        return await asyncio.to_thread(get_frame_size, clip_path)

    async def render(self, text: str, frame_width: int, output_path: Path) -> Path:
        """
        Render the title to a PNG file.

        Returns:
            Path to the PNG
        """
        output_path.parent.mkdir(parents=True, exist_ok=True)

        def _draw_and_save() -> None:
            self.render_image(text, frame_width).save(output_path, format="PNG")

        await asyncio.to_thread(_draw_and_save)
        return output_path

    async def composite(
        self,
        clip_path: Path,
        image_path: Path,
        frame_size: tuple[int, int],
        vertical_fraction: float | None = None,
    ) -> Path:
        """
        Burn the image into the clip, replacing the clip file in place.

        ffmpeg writes a sibling temp file which is renamed over the clip, so
        a failed composite leaves the original clip untouched. This is a full
        re-encode and is bounded by transcode_timeout.

        Args:
            clip_path: Clip to overlay (replaced on success)
            image_path: PNG produced by render()
            frame_size: (width, height) from frame_size()
            vertical_fraction: Anchor line as a fraction of frame height

        Returns:
            clip_path

        Raises:
            MediaProcessingError: If ffmpeg fails
        """
        if vertical_fraction is None:
            vertical_fraction = self.settings.title_vertical_fraction

        frame_width, frame_height = frame_size
        with Image.open(image_path) as image:
            image_width, image_height = image.size

        x, y = overlay_position(
            frame_width, frame_height, image_width, image_height, vertical_fraction
        )

        start_time = time.time()
        temp_path = partial_path(clip_path)
        args = [
            "-i", str(clip_path),
            "-i", str(image_path),
            "-filter_complex", f"[0:v][1:v]overlay={x}:{y}[out]",
            "-map", "[out]",
            "-map", "0:a?",
            "-c:v", self.settings.video_codec,
            "-preset", self.settings.encode_preset,
            "-crf", str(self.settings.encode_crf),
            "-c:a", "copy",
            "-movflags", "+faststart",
            "-pix_fmt", "yuv420p",
            str(temp_path),
        ]

        try:
            await asyncio.to_thread(run_ffmpeg, args, self.settings.transcode_timeout)
            if not temp_path.exists():
                raise MediaProcessingError("Overlay failed: output file not created")
            os.replace(temp_path, clip_path)
        finally:
            temp_path.unlink(missing_ok=True)

        logger.debug(f"Title composited at ({x}, {y}) on {clip_path.name}")
        perf_logger.info(
            f"PERF | title_overlay | clip={clip_path.name} | "
            f"time={time.time() - start_time:.1f}s"
        )
        return clip_path
