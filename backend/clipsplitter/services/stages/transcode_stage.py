"""
Transcode stage: cut the planned interval and reframe it.

The only fatal stage: without a clip nothing downstream can run.
"""

from clipsplitter.models.schemas import SegmentState, StageName, StageOutcome
from clipsplitter.services.stages.base import BaseStage, SegmentRun


class TranscodeStage(BaseStage):
    """Cut and letterbox/pillarbox one segment.

    Output:
        StageOutcome with the reframed clip path; sets run.clip_path

    Example:
        stage = TranscodeStage(providers, settings)
        outcome = await stage.execute(run)
    """

    name = StageName.TRANSCODE
    reaches = SegmentState.TRANSCODED
    fatal = True

    async def execute(self, run: SegmentRun) -> StageOutcome:
        transcoder = self.providers.transcoder
        clip_path = await self.ffmpeg_call(
            transcoder.transform(
                run.asset.source_path,
                run.plan,
                run.paths.clip,
                run.enrichment.target_aspect_width,
                run.enrichment.target_aspect_height,
            ),
            self.settings.transcode_timeout,
        )
        run.clip_path = clip_path
        return StageOutcome.success(clip_path, provider=transcoder.name)
