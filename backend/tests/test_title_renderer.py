"""Tests for title rendering and overlay compositing."""

from pathlib import Path
from unittest.mock import patch

import pytest
from PIL import Image

from clipsplitter.services.title_renderer import (
    TitleRenderer,
    overlay_position,
    wrap_text,
)
from clipsplitter.utils.media_utils import MediaProcessingError


class FixedWidthFont:
    """10 px per character."""

    def getlength(self, text):
        return 10 * len(text)


def test_overlay_position_centered_on_anchor_line():
    assert overlay_position(1080, 1920, 600, 120, 0.14) == (240, 214)


def test_overlay_position_is_clamped_to_frame():
    assert overlay_position(1080, 1920, 600, 120, 0.0) == (240, 0)
    assert overlay_position(1080, 1920, 600, 120, 1.0) == (240, 1800)
    assert overlay_position(500, 500, 800, 100, 0.5) == (0, 205)


def test_wrap_text():
    lines = wrap_text("one two three four five", FixedWidthFont(), max_width=90)

    assert lines == ["one two", "three", "four five"]


def test_wrap_text_long_word_gets_own_line():
    lines = wrap_text("a supercalifragilistic b", FixedWidthFont(), max_width=50)

    assert lines == ["a", "supercalifragilistic", "b"]


def test_render_image(settings):
    renderer = TitleRenderer(settings)
    text = "Why This One Trick Changes Everything"

    image = renderer.render_image(text, frame_width=1080)

    font = renderer._load_font()
    lines = wrap_text(text, font, 1080 * 0.9 - 2 * settings.title_padding)
    assert image.mode == "RGBA"
    assert image.width <= 1080
    assert image.height == round(settings.title_font_size * 1.2) * len(lines) + 2 * settings.title_padding
    assert image.getpixel((0, 0)) == (0, 0, 0, 204)


def test_render_image_wraps_on_narrow_frames(settings):
    renderer = TitleRenderer(settings)

    wide = renderer.render_image("A title long enough to wrap on small frames", 1080)
    narrow = renderer.render_image("A title long enough to wrap on small frames", 360)

    assert narrow.width <= 360
    assert narrow.height > wide.height


def test_render_image_rejects_empty_text(settings):
    with pytest.raises(ValueError):
        TitleRenderer(settings).render_image("  ", 1080)


def fake_ffmpeg(args, timeout):
    Path(args[-1]).write_bytes(b"clip with title")


@pytest.fixture
def title_png(settings, tmp_path):
    path = tmp_path / "title.png"
    TitleRenderer(settings).render_image("Fake Catchy Title", 1080).save(path, format="PNG")
    return path


@pytest.mark.asyncio
async def test_composite_replaces_clip_in_place(settings, tmp_path, title_png):
    clip = tmp_path / "segment_1_abc.mp4"
    clip.write_bytes(b"clip")

    with patch(
        "clipsplitter.services.title_renderer.run_ffmpeg", side_effect=fake_ffmpeg
    ) as run:
        result = await TitleRenderer(settings).composite(clip, title_png, (1080, 1920))

    assert result == clip
    assert clip.read_bytes() == b"clip with title"

    args, timeout = run.call_args.args
    filter_graph = args[args.index("-filter_complex") + 1]
    assert filter_graph.startswith("[0:v][1:v]overlay=")
    assert args[args.index("-c:a") + 1] == "copy"
    # Full re-encode, bounded like a transcode
    assert timeout == settings.transcode_timeout

    # Hidden ffmpeg output is gone
    assert sorted(p.name for p in tmp_path.iterdir() if p.name.startswith(".")) == []


@pytest.mark.asyncio
async def test_failed_composite_keeps_original_clip(settings, tmp_path, title_png):
    clip = tmp_path / "segment_1_abc.mp4"
    clip.write_bytes(b"clip")

    def partial_then_fail(args, timeout):
        Path(args[-1]).write_bytes(b"half a clip")
        raise MediaProcessingError("ffmpeg error (code 1)", returncode=1)

    with patch(
        "clipsplitter.services.title_renderer.run_ffmpeg", side_effect=partial_then_fail
    ):
        with pytest.raises(MediaProcessingError):
            await TitleRenderer(settings).composite(clip, title_png, (1080, 1920))

    assert clip.read_bytes() == b"clip"
    assert sorted(p.name for p in tmp_path.iterdir() if p.name.startswith(".")) == []


@pytest.mark.asyncio
async def test_frame_size_reads_clip_dimensions(settings, tmp_path):
    with patch(
        "clipsplitter.services.title_renderer.get_frame_size", return_value=(720, 1280)
    ) as probe:
        size = await TitleRenderer(settings).frame_size(tmp_path / "clip.mp4")

    assert size == (720, 1280)
    probe.assert_called_once_with(tmp_path / "clip.mp4")


def test_temp_image_paths_are_unique(settings):
    renderer = TitleRenderer(settings)

    first, second = renderer.temp_image_path(), renderer.temp_image_path()

    assert first != second
    assert first.parent == settings.temp_dir
    assert first.suffix == ".png"


@pytest.mark.asyncio
async def test_render_writes_png(settings, tmp_path):
    path = await TitleRenderer(settings).render("Hello", 1080, tmp_path / "t" / "title.png")

    with Image.open(path) as image:
        assert image.format == "PNG"
        assert image.mode == "RGBA"
