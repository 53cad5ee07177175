"""
Transcribe stage: speech-to-text for one clip.
"""

import asyncio

from clipsplitter.models.schemas import SegmentState, StageName, StageOutcome
from clipsplitter.services.stages.base import BaseStage, SegmentRun


class TranscribeStage(BaseStage):
    """Transcribe the clip with the selected speech backend.

    Input:
        run.clip_path from TranscodeStage

    Output:
        Transcript text written to segment_{n}_{id}.txt; sets run.transcript
    """

    name = StageName.TRANSCRIBE
    reaches = SegmentState.TRANSCRIBED

    def skip_reason(self, run: SegmentRun) -> str | None:
        if not run.enrichment.enable_transcription:
            return "disabled"
        return None

    async def execute(self, run: SegmentRun) -> StageOutcome:
        transcriber = self.providers.require_transcriber()
        clip_path = self.require_clip(run)

        transcript = await self.call(
            transcriber.transcribe(clip_path, run.enrichment.language_hint),
            self.settings.transcribe_timeout,
        )

        path = run.paths.transcript
        await asyncio.to_thread(path.write_text, transcript.text, encoding="utf-8")

        run.transcript = transcript
        return StageOutcome.success(path, provider=transcriber.backend)
