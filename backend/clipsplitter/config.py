"""
Application configuration and settings.
"""

from functools import lru_cache
from pathlib import Path

import yaml
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Paths
    data_root: Path = Path("/data")
    inbox_dir: Path = Path("/data/inbox")
    output_dir: Path = Path("/data/clips")
    temp_dir: Path = Path("/data/temp")
    prompts_dir: Path | None = None  # External prompts directory (overrides built-in)

    # Segment planning
    default_segment_count: int = 5
    default_min_duration: float = 5.0
    default_max_duration: float = 60.0
    max_segment_count: int = 20
    plan_max_attempts: int = 100  # Placement attempts per segment slot

    # Batch
    max_parallel_segments: int = 2

    # Transcoding
    target_height: int = 1920
    video_codec: str = "libx264"
    audio_codec: str = "aac"
    encode_preset: str = "fast"
    encode_crf: int = 23

    # Per-call timeouts (seconds)
    transcode_timeout: float = 600.0
    transcribe_timeout: float = 900.0
    summarize_timeout: float = 120.0
    render_timeout: float = 120.0
    subprocess_timeout_grace: float = 5.0  # Extra asyncio wait on top of ffmpeg timeouts

    # Provider credentials (a backend is "configured" when its value is set)
    openai_api_key: str | None = None
    assemblyai_api_key: str | None = None
    deepgram_api_key: str | None = None
    anthropic_api_key: str | None = None
    whisper_url: str | None = None  # Self-hosted Whisper (OpenAI-compatible)
    ollama_url: str | None = None

    # Provider priority (first configured wins)
    transcription_priority: list[str] = ["openai", "assemblyai", "deepgram", "whisper"]
    summarization_priority: list[str] = ["openai", "claude", "ollama"]

    # Models
    openai_transcription_model: str = "whisper-1"
    openai_chat_model: str = "gpt-3.5-turbo"
    claude_model: str = "claude-sonnet-4-5"
    ollama_model: str = "qwen2.5:14b"
    deepgram_model: str = "nova"
    whisper_model: str = "large-v3-turbo"
    default_language: str = "en"
    llm_timeout: int = 300

    # Title overlay
    title_font_size: int = 56
    title_padding: int = 25
    title_vertical_fraction: float = 0.14
    title_max_width_ratio: float = 0.9
    title_font_path: Path | None = None  # Bold TTF; Pillow default font if unset

    # Logging
    log_level: str = "INFO"
    log_format: str = "structured"  # "simple" or "structured"

    # Per-module log levels (optional overrides)
    log_level_ai_client: str | None = None
    log_level_pipeline: str | None = None
    log_level_planner: str | None = None
    log_level_transcriber: str | None = None
    log_level_summarizer: str | None = None

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "frozen": True}


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


BUILTIN_PROMPTS = Path(__file__).parent / "prompts" / "summarizer.yaml"


def load_prompts(settings: Settings | None = None) -> dict:
    """
    Load the summarizer prompt catalogue.

    Lookup order (first found wins):
    1. prompts_dir/summarizer.yaml (external)
    2. clipsplitter/prompts/summarizer.yaml (built-in)

    Args:
        settings: Optional settings instance

    Returns:
        Parsed catalogue with "styles", "social_description" and
        "social_title" sections

    Raises:
        FileNotFoundError: If no catalogue file is found
    """
    if settings is None:
        settings = get_settings()

    paths_to_check: list[Path] = []
    if settings.prompts_dir and settings.prompts_dir.exists():
        paths_to_check.append(settings.prompts_dir / "summarizer.yaml")
    paths_to_check.append(BUILTIN_PROMPTS)

    for path in paths_to_check:
        if path.exists():
            with open(path, "r", encoding="utf-8") as f:
                return yaml.safe_load(f)

    raise FileNotFoundError(
        f"Prompt catalogue not found. Checked paths: {[str(p) for p in paths_to_check]}"
    )
