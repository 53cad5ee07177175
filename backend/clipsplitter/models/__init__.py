"""
Pydantic models for the clip splitting pipeline.
"""

from clipsplitter.models.schemas import (
    BatchResult,
    BatchStatus,
    EnrichmentConfig,
    OutcomeStatus,
    PlanConfig,
    SegmentArtifactBundle,
    SegmentPlan,
    SegmentState,
    SocialCaption,
    StageName,
    StageOutcome,
    SummaryStyle,
    TranscriptResult,
    TranscriptSegment,
    VideoAsset,
)

__all__ = [
    "BatchResult",
    "BatchStatus",
    "EnrichmentConfig",
    "OutcomeStatus",
    "PlanConfig",
    "SegmentArtifactBundle",
    "SegmentPlan",
    "SegmentState",
    "SocialCaption",
    "StageName",
    "StageOutcome",
    "SummaryStyle",
    "TranscriptResult",
    "TranscriptSegment",
    "VideoAsset",
]
