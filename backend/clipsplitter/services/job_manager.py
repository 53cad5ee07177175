"""
Job manager for batch split runs.

Tracks jobs in memory and owns one cancellation event per job.
"""

import asyncio
import logging
import uuid
from datetime import datetime
from pathlib import Path

from clipsplitter.models.schemas import BatchResult, JobStatus, SplitJob

logger = logging.getLogger(__name__)


class JobManager:
    """
    Manager for split jobs.

    Stores jobs in-memory (suitable for a single worker process).

    Example:
        manager = JobManager()
        job = manager.create_job(Path("inbox/video.mp4"))
        cancel_event = manager.cancel_event(job.job_id)
        ...
        manager.complete_job(job.job_id, result)
    """

    def __init__(self):
        self._jobs: dict[str, SplitJob] = {}
        self._cancel_events: dict[str, asyncio.Event] = {}

    def create_job(self, video_path: Path) -> SplitJob:
        """
        Create a new pending job.

        Args:
            video_path: Path to source video

        Returns:
            Created SplitJob with unique ID
        """
        job_id = str(uuid.uuid4())[:8]

        job = SplitJob(
            job_id=job_id,
            video_path=video_path,
            status=JobStatus.PENDING,
            created_at=datetime.now(),
        )

        self._jobs[job_id] = job
        self._cancel_events[job_id] = asyncio.Event()

        logger.info(f"Created job {job_id} for {video_path.name}")
        return job

    def get_job(self, job_id: str) -> SplitJob | None:
        return self._jobs.get(job_id)

    def list_jobs(self) -> list[SplitJob]:
        return list(self._jobs.values())

    def cancel_event(self, job_id: str) -> asyncio.Event:
        """Cancellation signal passed to the batch coordinator."""
        return self._cancel_events[job_id]

    def mark_running(self, job_id: str) -> None:
        job = self._jobs.get(job_id)
        if job:
            job.status = JobStatus.RUNNING

    async def update_progress(self, job_id: str, done: int, total: int, message: str) -> None:
        """
        Progress callback target for the batch coordinator.

        Args:
            job_id: Job identifier
            done: Segments finished so far
            total: Segments planned
            message: Human-readable status
        """
        job = self._jobs.get(job_id)
        if not job:
            logger.warning(f"Job {job_id} not found for progress update")
            return

        job.segments_done = done
        job.segments_total = total
        job.progress = round(100 * done / total, 1) if total else 0
        job.current_stage = message
        logger.debug(f"Job {job_id}: {message}")

    def request_cancel(self, job_id: str) -> bool:
        """
        Signal cancellation for a job.

        Returns:
            False if the job is unknown or already finished
        """
        job = self._jobs.get(job_id)
        if job is None or job.status in (JobStatus.COMPLETED, JobStatus.FAILED, JobStatus.CANCELLED):
            return False

        self._cancel_events[job_id].set()
        logger.info(f"Cancellation requested for job {job_id}")
        return True

    def complete_job(self, job_id: str, result: BatchResult) -> None:
        """Store the batch result; a cancelled batch ends as CANCELLED."""
        job = self._jobs.get(job_id)
        if not job:
            logger.warning(f"Job {job_id} not found for completion")
            return

        job.status = JobStatus.CANCELLED if result.cancelled else JobStatus.COMPLETED
        if not result.cancelled:
            job.progress = 100
        job.current_stage = job.status.value.capitalize()
        job.completed_at = datetime.now()
        job.result = result

        logger.info(
            f"Job {job_id} {job.status.value}: {result.status.value}, "
            f"{result.clip_count}/{len(result.bundles)} clips"
        )

    def fail_job(self, job_id: str, error: str) -> None:
        job = self._jobs.get(job_id)
        if not job:
            logger.warning(f"Job {job_id} not found for failure")
            return

        job.status = JobStatus.FAILED
        job.error = error
        job.completed_at = datetime.now()

        logger.error(f"Job {job_id} failed: {error}")


# Global job manager instance
job_manager = JobManager()


def get_job_manager() -> JobManager:
    """Get global job manager instance."""
    return job_manager
