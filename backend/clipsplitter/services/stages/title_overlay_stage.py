"""
Title overlay stage: burn the caption title into the clip.
"""

from clipsplitter.models.schemas import SegmentState, StageName, StageOutcome
from clipsplitter.services.stages.base import BaseStage, SegmentRun


class TitleOverlayStage(BaseStage):
    """Render the caption title and composite it onto the clip in place.

    Skipped entirely when no caption text is available.
    """

    name = StageName.TITLE_OVERLAY
    reaches = SegmentState.CAPTION_COMPOSED

    def skip_reason(self, run: SegmentRun) -> str | None:
        if not run.enrichment.enable_title_overlay:
            return "disabled"
        if run.caption is None:
            return "no caption text"
        return None

    async def execute(self, run: SegmentRun) -> StageOutcome:
        renderer = self.providers.title_renderer
        clip_path = self.require_clip(run)

        frame_size = await self.call(
            renderer.frame_size(clip_path), self.settings.render_timeout
        )

        # Intermediate PNG lives in temp_dir and never outlives the stage
        image_path = renderer.temp_image_path()
        try:
            await self.call(
                renderer.render(run.caption.title, frame_size[0], image_path),
                self.settings.render_timeout,
            )
            await self.ffmpeg_call(
                renderer.composite(clip_path, image_path, frame_size),
                self.settings.transcode_timeout,
            )
        finally:
            image_path.unlink(missing_ok=True)

        return StageOutcome.success(clip_path, provider=renderer.name)
