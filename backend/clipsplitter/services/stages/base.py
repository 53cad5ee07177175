"""
Stage abstraction for segment pipelines.

Each stage is one transformation step over a single segment:
- A name (StageName) identifying its slot in the artifact bundle
- The SegmentState reached once the stage has been processed
- A fatal flag: a fatal failure ends the segment's pipeline
- execute(): performs the work and returns a StageOutcome
- skip_reason(): returns why the stage should not run (disabled, no input)

Stages never catch their own failures: they raise StageError (or let
backend errors propagate) and the orchestrator converts the failure into a
Failed outcome at the stage boundary.

Example:
    class TranscribeStage(BaseStage):
        name = StageName.TRANSCRIBE
        reaches = SegmentState.TRANSCRIBED

        async def execute(self, run: SegmentRun) -> StageOutcome:
            transcriber = self.providers.require_transcriber()
            ...
"""

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Awaitable
from dataclasses import dataclass, field
from pathlib import Path
from typing import TypeVar

from clipsplitter.config import Settings
from clipsplitter.models.schemas import (
    EnrichmentConfig,
    SegmentArtifactBundle,
    SegmentPlan,
    SegmentState,
    SocialCaption,
    StageName,
    StageOutcome,
    TranscriptResult,
    VideoAsset,
)
from clipsplitter.services.artifacts import ArtifactPaths
from clipsplitter.services.providers import StageProviders

T = TypeVar("T")


class StageError(Exception):
    """Error during stage execution.

    Attributes:
        stage_name: Name of the stage that failed
        message: Error description
        cause: Original exception (if any)
    """

    def __init__(
        self,
        stage_name: str,
        message: str,
        cause: Exception | None = None,
    ):
        self.stage_name = stage_name
        self.message = message
        self.cause = cause
        super().__init__(f"[{stage_name}] {message}")


class StageTimeoutError(StageError):
    """An external call inside a stage exceeded its timeout."""

    def __init__(self, stage_name: str, timeout: float):
        self.timeout = timeout
        super().__init__(stage_name, f"timed out after {timeout:g}s")


@dataclass
class SegmentRun:
    """Mutable state of one segment while its pipeline runs.

    Exclusively owned by one orchestrator run; frozen into a
    SegmentArtifactBundle by finalize().

    Attributes:
        asset: Source video
        plan: Interval being processed
        enrichment: Stage switches for this batch
        segment_id: Random id used in artifact names
        paths: Artifact locations
        clip_path: Last good clip (set by transcode)
        transcript: Transcript, when transcription succeeded
        caption: Social caption, when it was generated
        outcomes: Recorded outcome per stage
        history: States passed through, in order
    """

    asset: VideoAsset
    plan: SegmentPlan
    enrichment: EnrichmentConfig
    segment_id: str
    paths: ArtifactPaths
    clip_path: Path | None = None
    transcript: TranscriptResult | None = None
    caption: SocialCaption | None = None
    outcomes: dict[StageName, StageOutcome] = field(default_factory=dict)
    history: list[SegmentState] = field(default_factory=lambda: [SegmentState.PLANNED])
    cancelled: bool = False

    @property
    def state(self) -> SegmentState:
        return self.history[-1]

    def advance(self, state: SegmentState) -> None:
        """Move forward to state; repeated or backward moves are ignored."""
        order = list(SegmentState)
        if order.index(state) > order.index(self.state):
            self.history.append(state)

    def record(self, stage: StageName, outcome: StageOutcome) -> None:
        self.outcomes[stage] = outcome

    def finalize(self) -> SegmentArtifactBundle:
        """Enter Finalized (exactly once) and freeze the bundle."""
        if self.state == SegmentState.FINALIZED:
            raise RuntimeError(f"Segment {self.plan.index} already finalized")
        self.history.append(SegmentState.FINALIZED)
        return SegmentArtifactBundle(
            plan=self.plan,
            segment_id=self.segment_id,
            state=self.state,
            history=list(self.history),
            transcode=self.outcomes.get(
                StageName.TRANSCODE, StageOutcome.skipped("not started")
            ),
            transcribe=self.outcomes.get(StageName.TRANSCRIBE),
            summarize=self.outcomes.get(StageName.SUMMARIZE),
            social_caption=self.outcomes.get(StageName.SOCIAL_CAPTION),
            title_overlay=self.outcomes.get(StageName.TITLE_OVERLAY),
            cancelled=self.cancelled,
        )


class BaseStage(ABC):
    """Abstract base class for segment stages.

    Subclasses must implement:
    - name: StageName of the bundle slot
    - reaches: SegmentState entered after this stage is processed
    - execute(): Async method that performs the work

    Optional overrides:
    - fatal: True if failure invalidates the segment (transcode only)
    - skip_reason(): Why the stage should not run for this segment
    """

    name: StageName
    reaches: SegmentState
    fatal: bool = False

    def __init__(self, providers: StageProviders, settings: Settings):
        """Initialize stage.

        Args:
            providers: Capability objects (transcoder, transcriber, ...)
            settings: Application settings (timeouts)
        """
        self.providers = providers
        self.settings = settings

    @abstractmethod
    async def execute(self, run: SegmentRun) -> StageOutcome:
        """Execute the stage.

        Args:
            run: Segment state with results of previous stages

        Returns:
            Successful StageOutcome with the produced artifact

        Raises:
            StageError: If execution fails
        """
        pass

    def skip_reason(self, run: SegmentRun) -> str | None:
        """Reason to skip this stage, or None to run it."""
        return None

    async def call(self, awaitable: Awaitable[T], timeout: float, grace: float = 0.0) -> T:
        """Await one external call with its own timeout.

        grace extends the wait beyond timeout for calls that already enforce
        timeout themselves (ffmpeg subprocesses), so the process is killed
        and cleaned up before the call is abandoned.
        """
        try:
            return await asyncio.wait_for(awaitable, timeout=timeout + grace)
        except asyncio.TimeoutError as e:
            raise StageTimeoutError(self.name.value, timeout + grace) from e

    async def ffmpeg_call(self, awaitable: Awaitable[T], timeout: float) -> T:
        """call() for work bounded by an ffmpeg subprocess timeout."""
        return await self.call(awaitable, timeout, grace=self.settings.subprocess_timeout_grace)

    def require_clip(self, run: SegmentRun) -> Path:
        """Clip produced by transcode.

        Raises:
            StageError: If there is no clip to operate on
        """
        if run.clip_path is None:
            raise StageError(self.name.value, "No clip available")
        return run.clip_path

