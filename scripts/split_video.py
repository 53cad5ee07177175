#!/usr/bin/env python3
"""
Split one local video into enriched clips and print a per-segment report.

Uses the providers configured in the environment / .env, same as the API.

Usage:
    python3 scripts/split_video.py /data/inbox/talk.mp4 --count 3 --min 10 --max 30
    docker exec -it clipsplitter python3 /app/scripts/split_video.py /data/inbox/talk.mp4
"""

import argparse
import asyncio
import sys
import time
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "backend"))

from clipsplitter.config import get_settings
from clipsplitter.logging_config import setup_logging
from clipsplitter.models.schemas import EnrichmentConfig, PlanConfig, StageName
from clipsplitter.services.pipeline import BatchCoordinator, describe_video
from clipsplitter.services.providers import ProcessingStrategy


def parse_args(settings) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("video", type=Path, help="Source video file")
    parser.add_argument(
        "--count", type=int, default=settings.default_segment_count, help="Segments to plan (1-20)"
    )
    parser.add_argument("--min", type=float, default=settings.default_min_duration, dest="min_duration")
    parser.add_argument("--max", type=float, default=settings.default_max_duration, dest="max_duration")
    parser.add_argument("--no-transcription", action="store_true")
    parser.add_argument("--no-summary", action="store_true")
    parser.add_argument("--no-title", action="store_true")
    parser.add_argument("--language", default=None, help="Language hint, e.g. en")
    return parser.parse_args()


def print_report(result) -> None:
    print("\n" + "=" * 60)
    print(f"RESULT: {result.status.value} ({result.clip_count}/{len(result.bundles)} clips)")
    print(f"  transcription: {result.transcription_backend or '-'}")
    print(f"  summarization: {result.summarization_backend or '-'}")
    print(f"  elapsed: {result.elapsed_seconds:.1f}s")
    print("=" * 60)

    for bundle in result.bundles:
        print(f"\nSegment {bundle.plan.index + 1}: {bundle.plan.label} ({bundle.plan.duration:.1f}s)")
        print(f"  clip: {bundle.clip_path or '-'}")
        for name in StageName:
            outcome = bundle.outcome(name)
            if outcome is None:
                print(f"  {name.value:15} not reached")
                continue
            detail = outcome.reason or outcome.provider or ""
            print(f"  {name.value:15} {outcome.status.value:10} {detail}")


async def main() -> int:
    settings = get_settings()
    args = parse_args(settings)
    setup_logging(settings)

    print("=" * 60)
    print(f"Video: {args.video}")
    asset = await describe_video(args.video)
    print(f"  video_id: {asset.video_id}")
    print(f"  duration: {asset.duration_seconds:.1f}s")

    plan_config = PlanConfig(
        requested_count=args.count,
        min_duration=args.min_duration,
        max_duration=args.max_duration,
    )
    enrichment = EnrichmentConfig(
        enable_transcription=not args.no_transcription,
        enable_summarization=not args.no_summary,
        enable_title_overlay=not args.no_title,
        language_hint=args.language,
    )

    providers = ProcessingStrategy(settings).build_providers()
    start_time = time.time()
    try:
        result = await BatchCoordinator(providers, settings).run(asset, plan_config, enrichment)
    finally:
        await providers.aclose()

    print_report(result)
    print(f"\nTotal: {time.time() - start_time:.1f}s")
    return 0 if result.clip_count else 1


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
