"""
Social caption stage: title and hashtag description for the clip.
"""

import asyncio

from clipsplitter.models.schemas import SegmentState, StageName, StageOutcome
from clipsplitter.services.stages.base import BaseStage, SegmentRun


class SocialCaptionStage(BaseStage):
    """Generate the caption used by the title overlay.

    Input:
        run.transcript (skipped when there is no transcript text)

    Output:
        segment_{n}_{id}_social_title.txt (artifact) and
        segment_{n}_{id}_social_description.txt (extra); sets run.caption
    """

    name = StageName.SOCIAL_CAPTION
    reaches = SegmentState.SUMMARIZED

    def skip_reason(self, run: SegmentRun) -> str | None:
        if not run.enrichment.enable_summarization:
            return "disabled"
        if run.transcript is None or not run.transcript.text.strip():
            return "no transcript text"
        return None

    async def execute(self, run: SegmentRun) -> StageOutcome:
        summarizer = self.providers.require_summarizer()

        caption = await self.call(
            summarizer.social_caption(run.transcript.text),
            self.settings.summarize_timeout,
        )

        title_path = run.paths.social_title
        description_path = run.paths.social_description
        await asyncio.to_thread(title_path.write_text, caption.title, encoding="utf-8")
        await asyncio.to_thread(
            description_path.write_text, caption.description, encoding="utf-8"
        )

        run.caption = caption
        return StageOutcome.success(
            title_path,
            extra_paths=[description_path],
            provider=summarizer.backend,
        )
