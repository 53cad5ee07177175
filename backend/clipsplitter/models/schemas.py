"""
Pydantic models for the clip splitting pipeline.
"""

from datetime import datetime
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, computed_field

from clipsplitter.config import get_settings


class VideoAsset(BaseModel):
    """Source video descriptor. Owned by the caller, read-only for the core."""

    model_config = ConfigDict(frozen=True)

    video_id: str
    source_path: Path
    duration_seconds: float = Field(ge=0)


class SegmentPlan(BaseModel):
    """One planned time interval of the source video."""

    model_config = ConfigDict(frozen=True)

    index: int = Field(ge=0)
    start_time: float = Field(ge=0)
    end_time: float
    duration: float

    @computed_field
    @property
    def label(self) -> str:
        """Human-readable interval, e.g. '00:01:05-00:01:20'."""
        return f"{_format_time(self.start_time)}-{_format_time(self.end_time)}"


class PlanConfig(BaseModel):
    """Segment planning constraints.

    Omitted fields fall back to the DEFAULT_SEGMENT_COUNT /
    DEFAULT_MIN_DURATION / DEFAULT_MAX_DURATION settings. min/max are not
    cross-validated: the planner swaps an inverted pair.
    """

    model_config = ConfigDict(validate_default=True)

    requested_count: int = Field(
        default_factory=lambda: get_settings().default_segment_count, ge=1, le=20
    )
    min_duration: float = Field(
        default_factory=lambda: get_settings().default_min_duration, gt=0
    )
    max_duration: float = Field(
        default_factory=lambda: get_settings().default_max_duration, gt=0
    )


class SummaryStyle(str, Enum):
    """Summary flavours supported by the summarizer prompts."""
    CONCISE = "concise"
    DETAILED = "detailed"
    BULLET_POINTS = "bullet_points"
    SOCIAL_MEDIA = "social_media"


class EnrichmentConfig(BaseModel):
    """Per-batch switches for the optional enrichment stages."""

    target_aspect_width: int = Field(default=9, gt=0)
    target_aspect_height: int = Field(default=16, gt=0)
    enable_transcription: bool = True
    enable_summarization: bool = True
    summary_style: SummaryStyle = SummaryStyle.CONCISE
    enable_title_overlay: bool = True
    language_hint: str | None = None


class StageName(str, Enum):
    """Stages of a segment pipeline, in execution order."""
    TRANSCODE = "transcode"
    TRANSCRIBE = "transcribe"
    SUMMARIZE = "summarize"
    SOCIAL_CAPTION = "social_caption"
    TITLE_OVERLAY = "title_overlay"


class OutcomeStatus(str, Enum):
    """Result tag of one stage."""
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"


class StageOutcome(BaseModel):
    """Tagged result of one stage: success with artifacts, failure or skip."""

    model_config = ConfigDict(frozen=True)

    status: OutcomeStatus
    artifact_path: Path | None = None
    extra_paths: list[Path] = Field(default_factory=list)
    reason: str | None = None
    provider: str | None = None
    elapsed_seconds: float | None = None

    @classmethod
    def success(
        cls,
        artifact_path: Path,
        *,
        extra_paths: list[Path] | None = None,
        provider: str | None = None,
        elapsed_seconds: float | None = None,
    ) -> "StageOutcome":
        return cls(
            status=OutcomeStatus.SUCCEEDED,
            artifact_path=artifact_path,
            extra_paths=extra_paths or [],
            provider=provider,
            elapsed_seconds=elapsed_seconds,
        )

    @classmethod
    def failure(
        cls,
        reason: str,
        *,
        provider: str | None = None,
        elapsed_seconds: float | None = None,
    ) -> "StageOutcome":
        return cls(
            status=OutcomeStatus.FAILED,
            reason=reason,
            provider=provider,
            elapsed_seconds=elapsed_seconds,
        )

    @classmethod
    def skipped(cls, reason: str) -> "StageOutcome":
        return cls(status=OutcomeStatus.SKIPPED, reason=reason)

    @computed_field
    @property
    def succeeded(self) -> bool:
        return self.status == OutcomeStatus.SUCCEEDED


class SegmentState(str, Enum):
    """Position of a segment in its pipeline.

    Planned -> Transcoded -> Transcribed -> Summarized -> CaptionComposed -> Finalized
    """
    PLANNED = "planned"
    TRANSCODED = "transcoded"
    TRANSCRIBED = "transcribed"
    SUMMARIZED = "summarized"
    CAPTION_COMPOSED = "caption_composed"
    FINALIZED = "finalized"


class TranscriptSegment(BaseModel):
    """Single timed piece of a transcript."""

    start: float
    end: float
    text: str

    @computed_field
    @property
    def start_time(self) -> str:
        """Formatted start time (HH:MM:SS)."""
        return _format_time(self.start)


class TranscriptResult(BaseModel):
    """Speech-to-text output for one clip."""

    text: str
    language: str | None = None
    segments: list[TranscriptSegment] = Field(default_factory=list)
    duration: float | None = None
    provider: str


class SocialCaption(BaseModel):
    """Short title and hashtag description for a clip."""

    title: str
    description: str


class SegmentArtifactBundle(BaseModel):
    """Immutable per-segment result handed over on finalization.

    Optional stage slots are None when the stage was never reached
    (after a fatal transcode failure).
    """

    model_config = ConfigDict(frozen=True)

    plan: SegmentPlan
    segment_id: str
    state: SegmentState
    history: list[SegmentState]
    transcode: StageOutcome
    transcribe: StageOutcome | None = None
    summarize: StageOutcome | None = None
    social_caption: StageOutcome | None = None
    title_overlay: StageOutcome | None = None
    cancelled: bool = False

    @computed_field
    @property
    def clip_path(self) -> Path | None:
        """Final clip (title overlay replaces the reframed clip in place)."""
        if self.transcode.succeeded:
            return self.transcode.artifact_path
        return None

    @computed_field
    @property
    def failed_stages(self) -> list[StageName]:
        """Stages whose outcome is Failed."""
        return [
            name
            for name in StageName
            if (outcome := self.outcome(name)) is not None
            and outcome.status == OutcomeStatus.FAILED
        ]

    def outcome(self, stage: StageName) -> StageOutcome | None:
        """Outcome for a stage by name."""
        return getattr(self, stage.value)


class BatchStatus(str, Enum):
    """Batch-level status."""
    ALL_SUCCEEDED = "all_succeeded"
    PARTIAL = "partial"
    PLANNING_FAILED = "planning_failed"


class BatchResult(BaseModel):
    """Ordered bundles (plan order) plus batch-level status."""

    video_id: str
    status: BatchStatus
    bundles: list[SegmentArtifactBundle] = Field(default_factory=list)
    transcription_backend: str | None = None
    summarization_backend: str | None = None
    cancelled: bool = False
    elapsed_seconds: float = 0.0

    @computed_field
    @property
    def clip_count(self) -> int:
        """Number of segments with a usable clip."""
        return sum(1 for b in self.bundles if b.clip_path is not None)


class JobStatus(str, Enum):
    """Status of a split job."""
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


class SplitRequest(BaseModel):
    """Request to split a video from the inbox."""

    video_filename: str
    plan: PlanConfig = Field(default_factory=PlanConfig)
    enrichment: EnrichmentConfig = Field(default_factory=EnrichmentConfig)


class SplitJob(BaseModel):
    """A batch run tracked by the job manager."""

    job_id: str
    video_path: Path
    status: JobStatus = JobStatus.PENDING
    progress: float = Field(ge=0, le=100, default=0)
    current_stage: str = ""
    segments_done: int = 0
    segments_total: int = 0
    created_at: datetime
    completed_at: datetime | None = None
    error: str | None = None
    result: BatchResult | None = None


class ProvidersInfo(BaseModel):
    """Backends selected at startup."""

    transcription: str | None
    summarization: str | None
    transcription_priority: list[str]
    summarization_priority: list[str]


def _format_time(seconds: float) -> str:
    """Format seconds as HH:MM:SS."""
    h = int(seconds // 3600)
    m = int((seconds % 3600) // 60)
    s = int(seconds % 60)
    return f"{h:02d}:{m:02d}:{s:02d}"
