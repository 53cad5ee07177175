"""
Summarize stage: condense the clip transcript.
"""

import asyncio

from clipsplitter.models.schemas import SegmentState, StageName, StageOutcome
from clipsplitter.services.stages.base import BaseStage, SegmentRun


class SummarizeStage(BaseStage):
    """Summarize the transcript in the batch's summary style.

    Runs also when transcription failed: the summarizer then writes its
    fixed "no content" summary without calling the backend.

    Output:
        Summary written to segment_{n}_{id}_summary.txt
    """

    name = StageName.SUMMARIZE
    reaches = SegmentState.SUMMARIZED

    def skip_reason(self, run: SegmentRun) -> str | None:
        if not run.enrichment.enable_summarization:
            return "disabled"
        return None

    async def execute(self, run: SegmentRun) -> StageOutcome:
        summarizer = self.providers.require_summarizer()
        text = run.transcript.text if run.transcript else ""

        summary = await self.call(
            summarizer.summarize(text, run.enrichment.summary_style),
            self.settings.summarize_timeout,
        )

        path = run.paths.summary
        await asyncio.to_thread(path.write_text, summary, encoding="utf-8")
        return StageOutcome.success(path, provider=summarizer.backend)
