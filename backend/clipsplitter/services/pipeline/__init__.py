"""
Pipeline module for clip processing.

- orchestrator: per-segment stage chain (SegmentPipeline)
- batch: planning + bounded fan-out over segments (BatchCoordinator)

Example:
    from clipsplitter.services.pipeline import BatchCoordinator, describe_video

    asset = await describe_video(Path("inbox/talk.mp4"))
    coordinator = BatchCoordinator(providers, settings)
    result = await coordinator.run(asset, PlanConfig(), EnrichmentConfig())
"""

from .batch import BatchCoordinator, ProgressCallback, batch_status, describe_video
from .orchestrator import PipelineError, SegmentPipeline, describe_failure

__all__ = [
    "BatchCoordinator",
    "ProgressCallback",
    "batch_status",
    "describe_video",
    "PipelineError",
    "SegmentPipeline",
    "describe_failure",
]
