"""
Batch coordinator.

Plans the segments of one video and fans the segment pipeline out over
them with a bounded number of concurrent workers.
"""

import asyncio
import logging
import random
import re
import time
from pathlib import Path
from typing import Awaitable, Callable

from clipsplitter.config import Settings
from clipsplitter.models.schemas import (
    BatchResult,
    BatchStatus,
    EnrichmentConfig,
    PlanConfig,
    SegmentArtifactBundle,
    SegmentPlan,
    VideoAsset,
)
from clipsplitter.services.planner import plan_segments
from clipsplitter.services.providers import StageProviders
from clipsplitter.utils.media_utils import get_media_duration

from .orchestrator import SegmentPipeline

logger = logging.getLogger(__name__)
perf_logger = logging.getLogger("clipsplitter.perf")

# Type alias for progress callback
# Signature: (segments_done, segments_total, message) -> None
ProgressCallback = Callable[[int, int, str], Awaitable[None]]


async def describe_video(video_path: Path, video_id: str | None = None) -> VideoAsset:
    """
    Build a VideoAsset for a file, probing its duration with ffprobe.

    Args:
        video_path: Source video
        video_id: Identifier used for the output directory
            (default: file stem, slugified)

    Raises:
        FileNotFoundError: If the file doesn't exist
        MediaProcessingError: If ffprobe fails
    """
    video_path = Path(video_path)
    if not video_path.exists():
        raise FileNotFoundError(f"Video file not found: {video_path}")

    duration = await asyncio.to_thread(get_media_duration, video_path)
    if video_id is None:
        video_id = re.sub(r"[^A-Za-z0-9_-]+", "_", video_path.stem).strip("_") or "video"

    return VideoAsset(video_id=video_id, source_path=video_path, duration_seconds=duration)


def batch_status(bundles: list[SegmentArtifactBundle]) -> BatchStatus:
    """all_succeeded only when every segment has a transcoded clip."""
    if not bundles:
        return BatchStatus.PLANNING_FAILED
    if all(b.transcode.succeeded for b in bundles):
        return BatchStatus.ALL_SUCCEEDED
    return BatchStatus.PARTIAL


class BatchCoordinator:
    """
    Runs one planning pass and all segment pipelines of a video.

    Example:
        coordinator = BatchCoordinator(providers, settings)
        result = await coordinator.run(asset, PlanConfig(requested_count=3), EnrichmentConfig())
        for bundle in result.bundles:
            print(bundle.plan.index, bundle.clip_path)
    """

    def __init__(
        self,
        providers: StageProviders,
        settings: Settings,
        pipeline: SegmentPipeline | None = None,
        rng: random.Random | None = None,
    ):
        """
        Initialize coordinator.

        Args:
            providers: Capability objects, built once at startup
            settings: Application settings (worker budget, planning limits)
            pipeline: Segment pipeline (default: SegmentPipeline(providers, settings))
            rng: Random source for planning (tests pass a seeded one)
        """
        self.providers = providers
        self.settings = settings
        self.pipeline = pipeline or SegmentPipeline(providers, settings)
        self.rng = rng
        self.max_parallel = max(1, settings.max_parallel_segments)

    def plan(self, asset: VideoAsset, plan_config: PlanConfig) -> list[SegmentPlan]:
        """Plan segments for the asset."""
        return plan_segments(
            asset.duration_seconds,
            plan_config.requested_count,
            plan_config.min_duration,
            plan_config.max_duration,
            max_attempts=self.settings.plan_max_attempts,
            max_count=self.settings.max_segment_count,
            rng=self.rng,
        )

    async def run(
        self,
        asset: VideoAsset,
        plan_config: PlanConfig,
        enrichment: EnrichmentConfig,
        cancel_event: asyncio.Event | None = None,
        progress_callback: ProgressCallback | None = None,
    ) -> BatchResult:
        """
        Plan and process all segments of a video.

        Segments beyond the worker budget wait for a free slot. Once
        cancel_event is set, waiting segments are not started and running
        ones stop after their current stage.

        Args:
            asset: Source video
            plan_config: Planning constraints
            enrichment: Stage switches
            cancel_event: Batch cancellation signal
            progress_callback: Optional async callback after each segment

        Returns:
            BatchResult with bundles in plan order
        """
        started = time.time()
        plans = self.plan(asset, plan_config)

        if not plans:
            logger.warning(
                f"No segments planned for {asset.video_id}: "
                f"{asset.duration_seconds:.1f}s video, {plan_config.requested_count} x "
                f"{plan_config.min_duration:.1f}-{plan_config.max_duration:.1f}s"
            )
            return BatchResult(
                video_id=asset.video_id,
                status=BatchStatus.PLANNING_FAILED,
                transcription_backend=self.providers.transcription_backend,
                summarization_backend=self.providers.summarization_backend,
            )

        logger.info(
            f"Batch {asset.video_id}: {len(plans)} segments, "
            f"{self.max_parallel} workers"
        )

        semaphore = asyncio.Semaphore(self.max_parallel)
        done = 0

        async def process_segment(plan: SegmentPlan) -> SegmentArtifactBundle:
            nonlocal done
            async with semaphore:
                if cancel_event is not None and cancel_event.is_set():
                    logger.info(f"Segment {plan.index} not started: batch cancelled")
                    bundle = self.pipeline.cancelled_bundle(asset, plan, enrichment)
                else:
                    try:
                        bundle = await self.pipeline.run(asset, plan, enrichment, cancel_event)
                    except Exception as e:
                        logger.error(f"Segment {plan.index} aborted: {e}", exc_info=True)
                        bundle = self.pipeline.failed_bundle(asset, plan, enrichment, e)

            done += 1
            if progress_callback is not None:
                try:
                    await progress_callback(
                        done, len(plans), f"Segment {plan.index + 1}/{len(plans)} finished"
                    )
                except Exception as e:
                    logger.warning(f"Progress callback failed for segment {plan.index}: {e}")
            return bundle

        # gather keeps input order, so bundles come back in plan order
        bundles = await asyncio.gather(*(process_segment(p) for p in plans))

        cancelled = cancel_event is not None and cancel_event.is_set()
        result = BatchResult(
            video_id=asset.video_id,
            status=batch_status(bundles),
            bundles=bundles,
            transcription_backend=self.providers.transcription_backend,
            summarization_backend=self.providers.summarization_backend,
            cancelled=cancelled,
            elapsed_seconds=round(time.time() - started, 3),
        )

        perf_logger.info(
            f"PERF | batch | video={asset.video_id} | segments={len(bundles)} | "
            f"clips={result.clip_count} | status={result.status.value} | "
            f"time={result.elapsed_seconds:.1f}s"
        )
        return result
