"""
Segment pipeline orchestrator.

Drives one segment through its stages, strictly in order:

    Planned -> Transcoded -> Transcribed -> Summarized -> CaptionComposed -> Finalized

Every stage failure is caught at the stage boundary and recorded as a
Failed outcome. A failed fatal stage (transcode) finalizes the segment
immediately; failed optional stages let the chain continue. Finalized is
entered exactly once per segment.
"""

import asyncio
import logging
import time

from clipsplitter.config import Settings
from clipsplitter.models.schemas import (
    EnrichmentConfig,
    SegmentArtifactBundle,
    SegmentPlan,
    StageName,
    StageOutcome,
    VideoAsset,
)
from clipsplitter.services.artifacts import ArtifactPaths, new_segment_id
from clipsplitter.services.providers import ProviderUnavailableError, StageProviders
from clipsplitter.services.stages import (
    BaseStage,
    SegmentRun,
    StageError,
    create_default_stages,
)

logger = logging.getLogger(__name__)
perf_logger = logging.getLogger("clipsplitter.perf")

CANCELLED_REASON = "cancelled"


class PipelineError(Exception):
    """
    Pipeline misuse (not a stage failure).

    Stage failures never raise out of the orchestrator; this is raised only
    for invalid input such as a plan outside the source video.

    Attributes:
        stage: Stage involved, if any
        message: Error description
        cause: Original exception (if any)
    """

    def __init__(
        self,
        stage: StageName | None,
        message: str,
        cause: Exception | None = None,
    ):
        self.stage = stage
        self.message = message
        self.cause = cause
        prefix = f"[{stage.value}] " if stage else ""
        super().__init__(f"{prefix}{message}")


def describe_failure(error: Exception) -> str:
    """Short, human-readable failure reason for a bundle slot."""
    if isinstance(error, StageError):
        return error.message
    if isinstance(error, ProviderUnavailableError):
        return str(error)
    message = str(error) or error.__class__.__name__
    return f"{error.__class__.__name__}: {message}"


class SegmentPipeline:
    """
    Per-segment pipeline orchestrator.

    Example:
        pipeline = SegmentPipeline(providers, settings)
        bundle = await pipeline.run(asset, plan, enrichment)
        if bundle.clip_path:
            print(bundle.clip_path, bundle.failed_stages)
    """

    def __init__(
        self,
        providers: StageProviders,
        settings: Settings,
        stages: list[BaseStage] | None = None,
    ):
        """
        Initialize orchestrator.

        Args:
            providers: Capability objects for the stages
            settings: Application settings (timeouts, output_dir)
            stages: Stage chain (default: create_default_stages())
        """
        self.providers = providers
        self.settings = settings
        self.stages = stages if stages is not None else create_default_stages(providers, settings)

    def new_run(
        self,
        asset: VideoAsset,
        plan: SegmentPlan,
        enrichment: EnrichmentConfig,
    ) -> SegmentRun:
        """Fresh run-state with a random segment id and artifact paths."""
        segment_id = new_segment_id()
        return SegmentRun(
            asset=asset,
            plan=plan,
            enrichment=enrichment,
            segment_id=segment_id,
            paths=ArtifactPaths.for_segment(
                self.settings.output_dir, asset.video_id, plan.index, segment_id
            ),
        )

    def cancelled_bundle(
        self,
        asset: VideoAsset,
        plan: SegmentPlan,
        enrichment: EnrichmentConfig,
    ) -> SegmentArtifactBundle:
        """Bundle for a segment that was never started."""
        run = self.new_run(asset, plan, enrichment)
        run.cancelled = True
        run.record(StageName.TRANSCODE, StageOutcome.skipped(CANCELLED_REASON))
        return run.finalize()

    def failed_bundle(
        self,
        asset: VideoAsset,
        plan: SegmentPlan,
        enrichment: EnrichmentConfig,
        error: Exception,
    ) -> SegmentArtifactBundle:
        """Bundle for a segment whose run raised outside any stage."""
        run = self.new_run(asset, plan, enrichment)
        run.record(StageName.TRANSCODE, StageOutcome.failure(describe_failure(error)))
        return run.finalize()

    async def run(
        self,
        asset: VideoAsset,
        plan: SegmentPlan,
        enrichment: EnrichmentConfig,
        cancel_event: asyncio.Event | None = None,
    ) -> SegmentArtifactBundle:
        """
        Run all stages for one segment.

        Cancellation is checked between stages: the stage in flight always
        completes, remaining stages are recorded as skipped("cancelled").

        Args:
            asset: Source video
            plan: Segment interval
            enrichment: Stage switches
            cancel_event: Batch cancellation signal

        Returns:
            Immutable SegmentArtifactBundle

        Raises:
            PipelineError: If the plan lies outside the source video
        """
        if plan.end_time > asset.duration_seconds + 1e-6:
            raise PipelineError(
                None,
                f"Segment {plan.index} ends at {plan.end_time:.2f}s, "
                f"past video end {asset.duration_seconds:.2f}s",
            )

        run = self.new_run(asset, plan, enrichment)

        logger.info(f"Segment {plan.index} ({plan.label}) started as {run.paths.stem}")
        started = time.time()

        for stage in self.stages:
            if cancel_event is not None and cancel_event.is_set():
                self._cancel_remaining(run)
                break

            reason = stage.skip_reason(run)
            if reason is not None:
                logger.debug(f"Segment {plan.index}: {stage.name.value} skipped ({reason})")
                run.record(stage.name, StageOutcome.skipped(reason))
                run.advance(stage.reaches)
                continue

            outcome = await self._run_stage(stage, run)
            run.record(stage.name, outcome)

            if not outcome.succeeded and stage.fatal:
                logger.error(
                    f"Segment {plan.index}: fatal {stage.name.value} failure, "
                    f"finalizing without enrichment: {outcome.reason}"
                )
                break

            run.advance(stage.reaches)

        bundle = run.finalize()

        elapsed = time.time() - started
        failed = ", ".join(s.value for s in bundle.failed_stages) or "none"
        perf_logger.info(
            f"PERF | segment | index={plan.index} | duration={plan.duration:.1f}s | "
            f"failed={failed} | cancelled={bundle.cancelled} | time={elapsed:.1f}s"
        )
        return bundle

    async def _run_stage(self, stage: BaseStage, run: SegmentRun) -> StageOutcome:
        """Execute one stage, converting any failure into a Failed outcome."""
        started = time.time()
        try:
            outcome = await stage.execute(run)
        except Exception as e:
            elapsed = time.time() - started
            reason = describe_failure(e)
            level = logging.ERROR if stage.fatal else logging.WARNING
            logger.log(
                level,
                f"Segment {run.plan.index}: {stage.name.value} failed after "
                f"{elapsed:.1f}s: {reason}",
            )
            return StageOutcome.failure(reason, elapsed_seconds=round(elapsed, 3))

        elapsed = round(time.time() - started, 3)
        logger.debug(f"Segment {run.plan.index}: {stage.name.value} done in {elapsed:.1f}s")
        return outcome.model_copy(update={"elapsed_seconds": elapsed})

    def _cancel_remaining(self, run: SegmentRun) -> None:
        """Record every stage that has no outcome yet as cancelled."""
        run.cancelled = True
        for stage in self.stages:
            if stage.name not in run.outcomes:
                run.record(stage.name, StageOutcome.skipped(CANCELLED_REASON))
        logger.info(f"Segment {run.plan.index} cancelled at {run.state.value}")
