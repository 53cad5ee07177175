"""
Segment pipeline stages.

Each stage is a self-contained step over one segment. The default chain,
in order:

    transcode -> transcribe -> summarize -> social_caption -> title_overlay

Usage:
    from clipsplitter.services.stages import SegmentRun, create_default_stages

    stages = create_default_stages(providers, settings)
    for stage in stages:
        outcome = await stage.execute(run)
"""

from clipsplitter.services.stages.base import (
    BaseStage,
    SegmentRun,
    StageError,
    StageTimeoutError,
)
from clipsplitter.services.stages.caption_stage import SocialCaptionStage
from clipsplitter.services.stages.summarize_stage import SummarizeStage
from clipsplitter.services.stages.title_overlay_stage import TitleOverlayStage
from clipsplitter.services.stages.transcode_stage import TranscodeStage
from clipsplitter.services.stages.transcribe_stage import TranscribeStage

__all__ = [
    # Base classes
    "BaseStage",
    "SegmentRun",
    "StageError",
    "StageTimeoutError",
    # Stage implementations
    "TranscodeStage",
    "TranscribeStage",
    "SummarizeStage",
    "SocialCaptionStage",
    "TitleOverlayStage",
    # Factory function
    "create_default_stages",
]


def create_default_stages(providers, settings) -> list[BaseStage]:
    """Create the default stage chain in execution order.

    Args:
        providers: StageProviders with the selected backends
        settings: Application settings

    Returns:
        Ordered list of stages
    """
    return [
        TranscodeStage(providers, settings),
        TranscribeStage(providers, settings),
        SummarizeStage(providers, settings),
        SocialCaptionStage(providers, settings),
        TitleOverlayStage(providers, settings),
    ]
