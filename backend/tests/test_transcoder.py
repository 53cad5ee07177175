"""Tests for ffmpeg-based transcoding, audio extraction and probing."""

import subprocess
from pathlib import Path
from unittest.mock import patch

import pytest

from clipsplitter.models.schemas import SegmentPlan
from clipsplitter.services.audio_extractor import AudioExtractor
from clipsplitter.services.pipeline import describe_video
from clipsplitter.services.transcoder import (
    FFmpegTranscoder,
    letterbox_filter,
    target_frame_size,
)
from clipsplitter.utils.media_utils import (
    MediaProcessingError,
    get_frame_size,
    get_media_duration,
    run_ffmpeg,
)

PLAN = SegmentPlan(index=2, start_time=12.5, end_time=27.5, duration=15.0)


def completed(cmd, returncode=0, stdout="", stderr=""):
    return subprocess.CompletedProcess(cmd, returncode, stdout=stdout, stderr=stderr)


def ffmpeg_writing_output(cmd, **kwargs):
    """subprocess.run stand-in: ffmpeg 'succeeds' and writes its last argument."""
    Path(cmd[-1]).write_bytes(b"encoded")
    return completed(cmd)


@pytest.mark.parametrize(
    "aspect,height,expected",
    [
        ((9, 16), 1920, (1080, 1920)),
        ((16, 9), 1080, (1920, 1080)),
        ((1, 1), 1081, (1080, 1080)),
        ((4, 5), 1350, (1080, 1350)),
    ],
)
def test_target_frame_size_is_even(aspect, height, expected):
    assert target_frame_size(*aspect, height) == expected


def test_letterbox_filter_pads_without_cropping():
    vf = letterbox_filter(1080, 1920)

    assert vf.startswith("scale=1080:1920:force_original_aspect_ratio=decrease,")
    assert "pad=1080:1920:(ow-iw)/2:(oh-ih)/2:black" in vf
    assert "crop" not in vf


def test_build_args(settings, tmp_path):
    args = FFmpegTranscoder(settings).build_args(
        tmp_path / "in.mp4", PLAN, tmp_path / "out.mp4", 9, 16
    )

    assert args[args.index("-ss") + 1] == "12.500"
    assert args[args.index("-t") + 1] == "15.000"
    assert args[args.index("-vf") + 1] == letterbox_filter(1080, 1920)
    assert args[args.index("-c:v") + 1] == "libx264"
    assert args[args.index("-crf") + 1] == "23"
    assert args[-1] == str(tmp_path / "out.mp4")


@pytest.mark.asyncio
async def test_transform_runs_ffmpeg(settings, tmp_path):
    source = tmp_path / "in.mp4"
    source.write_bytes(b"source")
    output = tmp_path / "clips" / "segment_3_abc.mp4"

    with patch("clipsplitter.utils.media_utils.subprocess.run", side_effect=ffmpeg_writing_output) as run:
        result = await FFmpegTranscoder(settings).transform(source, PLAN, output)

    assert result == output
    assert output.read_bytes() == b"encoded"
    cmd = run.call_args.args[0]
    assert cmd[:3] == ["ffmpeg", "-hide_banner", "-y"]
    assert run.call_args.kwargs["timeout"] == settings.transcode_timeout
    # ffmpeg writes a hidden sibling which is renamed into place
    assert Path(cmd[-1]).name.startswith(".segment_3_abc_")
    assert [p.name for p in output.parent.iterdir()] == ["segment_3_abc.mp4"]


@pytest.mark.asyncio
async def test_transform_missing_source(settings, tmp_path):
    with pytest.raises(FileNotFoundError):
        await FFmpegTranscoder(settings).transform(tmp_path / "nope.mp4", PLAN, tmp_path / "o.mp4")


@pytest.mark.asyncio
async def test_transform_ffmpeg_failure(settings, tmp_path):
    source = tmp_path / "in.mp4"
    source.write_bytes(b"source")

    with patch(
        "clipsplitter.utils.media_utils.subprocess.run",
        return_value=completed([], returncode=1, stderr="Invalid data found"),
    ):
        with pytest.raises(MediaProcessingError) as exc_info:
            await FFmpegTranscoder(settings).transform(source, PLAN, tmp_path / "o.mp4")

    assert exc_info.value.returncode == 1
    assert "Invalid data" in exc_info.value.stderr


@pytest.mark.asyncio
async def test_transform_timeout_leaves_no_partial_clip(settings, tmp_path):
    source = tmp_path / "in.mp4"
    source.write_bytes(b"source")
    output = tmp_path / "clips" / "segment_3_abc.mp4"

    def killed_midway(cmd, **kwargs):
        Path(cmd[-1]).write_bytes(b"half a clip")
        raise subprocess.TimeoutExpired(cmd, kwargs["timeout"])

    with patch("clipsplitter.utils.media_utils.subprocess.run", side_effect=killed_midway):
        with pytest.raises(MediaProcessingError, match="timed out"):
            await FFmpegTranscoder(settings).transform(source, PLAN, output)

    assert list(output.parent.iterdir()) == []


def test_run_ffmpeg_timeout():
    with patch(
        "clipsplitter.utils.media_utils.subprocess.run",
        side_effect=subprocess.TimeoutExpired("ffmpeg", 5),
    ):
        with pytest.raises(MediaProcessingError, match="timed out"):
            run_ffmpeg(["-i", "x"], timeout=5)


def test_run_ffmpeg_timeout_reports_sub_second_values():
    with patch(
        "clipsplitter.utils.media_utils.subprocess.run",
        side_effect=subprocess.TimeoutExpired("ffmpeg", 0.2),
    ):
        with pytest.raises(MediaProcessingError, match=r"timed out after 0\.2s"):
            run_ffmpeg(["-i", "x"], timeout=0.2)


def test_run_ffmpeg_missing_binary():
    with patch("clipsplitter.utils.media_utils.subprocess.run", side_effect=FileNotFoundError):
        with pytest.raises(MediaProcessingError, match="not installed"):
            run_ffmpeg(["-i", "x"], timeout=5)


def test_probe_helpers(tmp_path):
    with patch(
        "clipsplitter.utils.media_utils.subprocess.run",
        return_value=completed([], stdout="123.456\n"),
    ):
        assert get_media_duration(tmp_path / "v.mp4") == pytest.approx(123.456)

    with patch(
        "clipsplitter.utils.media_utils.subprocess.run",
        return_value=completed([], stdout="1920x1080\n"),
    ):
        assert get_frame_size(tmp_path / "v.mp4") == (1920, 1080)

    with patch(
        "clipsplitter.utils.media_utils.subprocess.run",
        return_value=completed([], stdout="N/A\n"),
    ):
        with pytest.raises(MediaProcessingError):
            get_media_duration(tmp_path / "v.mp4")


@pytest.mark.asyncio
async def test_describe_video(tmp_path):
    source = tmp_path / "My Talk (final).mp4"
    source.write_bytes(b"video")

    with patch(
        "clipsplitter.utils.media_utils.subprocess.run",
        return_value=completed([], stdout="95.0\n"),
    ):
        asset = await describe_video(source)

    assert asset.video_id == "My_Talk_final"
    assert asset.duration_seconds == 95.0
    assert asset.source_path == source


@pytest.mark.asyncio
async def test_audio_extractor(settings, tmp_path):
    clip = tmp_path / "segment_1_abc.mp4"
    clip.write_bytes(b"clip")

    with patch("clipsplitter.utils.media_utils.subprocess.run", side_effect=ffmpeg_writing_output) as run:
        audio = await AudioExtractor(settings).extract(clip)

    assert audio.parent == settings.temp_dir
    assert audio.name.startswith("segment_1_abc_") and audio.suffix == ".wav"
    cmd = run.call_args.args[0]
    assert cmd[cmd.index("-ar") + 1] == "16000"
    assert cmd[cmd.index("-ac") + 1] == "1"
