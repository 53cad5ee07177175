"""Shared test fixtures."""

from pathlib import Path

import pytest

from clipsplitter.config import Settings
from clipsplitter.models.schemas import EnrichmentConfig, SegmentPlan, SummaryStyle, VideoAsset
from clipsplitter.services.providers import StageProviders

from fakes import FakeSummarizer, FakeTitleRenderer, FakeTranscoder, FakeTranscriber


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings isolated from the environment and pointing into tmp_path."""
    return Settings(
        _env_file=None,
        data_root=tmp_path,
        inbox_dir=tmp_path / "inbox",
        output_dir=tmp_path / "clips",
        temp_dir=tmp_path / "temp",
        openai_api_key=None,
        assemblyai_api_key=None,
        deepgram_api_key=None,
        anthropic_api_key=None,
        whisper_url=None,
        ollama_url=None,
        max_parallel_segments=2,
    )


@pytest.fixture
def asset(tmp_path: Path) -> VideoAsset:
    source = tmp_path / "talk.mp4"
    source.write_bytes(b"source video")
    return VideoAsset(video_id="talk", source_path=source, duration_seconds=300.0)


@pytest.fixture
def plan() -> SegmentPlan:
    return SegmentPlan(index=0, start_time=10.0, end_time=25.0, duration=15.0)


@pytest.fixture
def enrichment() -> EnrichmentConfig:
    return EnrichmentConfig(summary_style=SummaryStyle.CONCISE)


@pytest.fixture
def fakes():
    """Fresh fake providers; tests tweak them before building StageProviders."""
    return {
        "transcoder": FakeTranscoder(),
        "transcriber": FakeTranscriber(),
        "summarizer": FakeSummarizer(),
        "title_renderer": FakeTitleRenderer(),
    }


@pytest.fixture
def make_providers(fakes):
    """Factory for StageProviders; pass transcriber=None to simulate no backend."""

    def factory(**overrides) -> StageProviders:
        parts = {**fakes, **overrides}
        return StageProviders(
            transcoder=parts["transcoder"],
            title_renderer=parts["title_renderer"],
            transcriber=parts["transcriber"],
            summarizer=parts["summarizer"],
        )

    return factory
