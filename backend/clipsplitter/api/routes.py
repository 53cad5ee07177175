"""
HTTP API routes for the clip splitter.

Provides endpoints for:
- Starting a split job on an inbox video
- Querying and cancelling jobs
- Listing inbox files and selected providers
"""

import logging
from pathlib import Path

from fastapi import APIRouter, BackgroundTasks, HTTPException, Request

from clipsplitter.config import get_settings
from clipsplitter.models.schemas import (
    EnrichmentConfig,
    PlanConfig,
    ProvidersInfo,
    SplitJob,
    SplitRequest,
)
from clipsplitter.services.job_manager import get_job_manager
from clipsplitter.services.pipeline import BatchCoordinator, describe_video
from clipsplitter.services.providers import StageProviders
from clipsplitter.utils.media_utils import is_video_file

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["clips"])


def get_providers(request: Request) -> StageProviders:
    """Providers built once at startup by the application lifespan."""
    return request.app.state.providers


async def run_split(
    job_id: str,
    video_path: Path,
    providers: StageProviders,
    plan_config: PlanConfig,
    enrichment: EnrichmentConfig,
) -> None:
    """
    Background task running one batch.

    Args:
        job_id: Job identifier
        video_path: Path to source video
        providers: Stage providers
        plan_config: Planning constraints
        enrichment: Stage switches
    """
    job_manager = get_job_manager()
    settings = get_settings()
    coordinator = BatchCoordinator(providers, settings)

    async def progress_callback(done: int, total: int, message: str) -> None:
        await job_manager.update_progress(job_id, done, total, message)

    job_manager.mark_running(job_id)
    try:
        asset = await describe_video(video_path)
        result = await coordinator.run(
            asset,
            plan_config,
            enrichment,
            cancel_event=job_manager.cancel_event(job_id),
            progress_callback=progress_callback,
        )
        job_manager.complete_job(job_id, result)

    except Exception as e:
        logger.exception(f"Split error for job {job_id}")
        job_manager.fail_job(job_id, str(e))


@router.post("/split", response_model=SplitJob)
async def start_split(
    split_request: SplitRequest,
    background_tasks: BackgroundTasks,
    request: Request,
) -> SplitJob:
    """
    Start splitting a video from the inbox.

    Raises:
        404: Video file not found in inbox
    """
    settings = get_settings()
    video_path = settings.inbox_dir / split_request.video_filename

    if not video_path.exists():
        raise HTTPException(
            status_code=404,
            detail=f"Video file not found: {split_request.video_filename}",
        )

    job_manager = get_job_manager()
    job = job_manager.create_job(video_path)

    background_tasks.add_task(
        run_split,
        job.job_id,
        video_path,
        get_providers(request),
        split_request.plan,
        split_request.enrichment,
    )

    logger.info(f"Started split job {job.job_id}: {split_request.video_filename}")
    return job


@router.get("/jobs/{job_id}", response_model=SplitJob)
async def get_job_status(job_id: str) -> SplitJob:
    """
    Get split job status.

    Raises:
        404: Job not found
    """
    job = get_job_manager().get_job(job_id)

    if not job:
        raise HTTPException(status_code=404, detail=f"Job not found: {job_id}")

    return job


@router.post("/jobs/{job_id}/cancel", response_model=SplitJob)
async def cancel_job(job_id: str) -> SplitJob:
    """
    Request cancellation of a running job.

    Segments not yet started are dropped; running ones finish their
    current stage.

    Raises:
        404: Job not found
        409: Job already finished
    """
    job_manager = get_job_manager()
    job = job_manager.get_job(job_id)

    if not job:
        raise HTTPException(status_code=404, detail=f"Job not found: {job_id}")

    if not job_manager.request_cancel(job_id):
        raise HTTPException(
            status_code=409,
            detail=f"Job {job_id} already {job.status.value}",
        )

    return job


@router.get("/jobs", response_model=list[SplitJob])
async def list_jobs() -> list[SplitJob]:
    """List all split jobs."""
    return get_job_manager().list_jobs()


@router.get("/inbox", response_model=list[str])
async def list_inbox_files() -> list[str]:
    """
    List video files in inbox directory.

    Returns:
        Sorted video filenames (mp4, mkv, avi, mov, webm)
    """
    settings = get_settings()

    if not settings.inbox_dir.exists():
        return []

    files = [
        f.name
        for f in settings.inbox_dir.iterdir()
        if f.is_file() and is_video_file(f)
    ]

    return sorted(files)


@router.get("/providers", response_model=ProvidersInfo)
async def get_selected_providers(request: Request) -> ProvidersInfo:
    """Backends selected at startup."""
    settings = get_settings()
    providers = get_providers(request)
    return ProvidersInfo(
        transcription=providers.transcription_backend,
        summarization=providers.summarization_backend,
        transcription_priority=list(settings.transcription_priority),
        summarization_priority=list(settings.summarization_priority),
    )
