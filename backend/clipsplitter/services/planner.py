"""
Segment planner.

Turns a video duration and duration constraints into a sorted list of
non-overlapping random intervals. Pure: no I/O, randomness comes from an
injectable random.Random.

Placement policy:
- Each slot gets a bounded number of attempts (plan_max_attempts, 100 by
  default). A slot that cannot be placed is skipped, never retried forever.
- Candidate starts are drawn uniformly over the positions that do not
  overlap accepted intervals. This is the distribution rejection sampling
  over [0, duration - length] converges to, without wasting attempts.
- A candidate is also rejected when it would leave too little room for the
  slots still to come. After the random attempts, a final deterministic
  attempt puts a minimum-length interval at the start of the largest gap.
"""

import logging
import math
import random

from clipsplitter.models.schemas import SegmentPlan

logger = logging.getLogger(__name__)

# Upper bound for requested segment count
MAX_SEGMENT_COUNT = 20

DEFAULT_MAX_ATTEMPTS = 100

# Float slack for interval arithmetic
EPSILON = 1e-9

# Upper bound on one-ulp endpoint adjustments per interval
MAX_NUDGES = 64

Interval = tuple[float, float]


def plan_segments(
    video_duration: float,
    requested_count: int,
    min_duration: float,
    max_duration: float,
    *,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    max_count: int = MAX_SEGMENT_COUNT,
    rng: random.Random | None = None,
) -> list[SegmentPlan]:
    """
    Plan random non-overlapping segments inside a video.

    Never raises for infeasible input: returns an empty list instead
    (video shorter than min_duration, non-positive count or durations).

    Args:
        video_duration: Total video duration in seconds
        requested_count: Desired number of segments (clamped to max_count)
        min_duration: Minimum segment duration in seconds
        max_duration: Maximum segment duration (swapped with min if smaller)
        max_attempts: Placement attempts per slot
        max_count: Upper bound for requested_count
        rng: Random source (default: fresh random.Random())

    Returns:
        Plans sorted by start_time, indexed from 0. Length <= requested_count.

    Example:
        >>> plans = plan_segments(100, 5, 5, 20, rng=random.Random(7))
        >>> [round(p.duration, 1) for p in plans]
    """
    if rng is None:
        rng = random.Random()

    if requested_count <= 0 or min_duration <= 0 or max_duration <= 0:
        logger.debug(
            f"Nothing to plan: count={requested_count}, "
            f"min={min_duration}, max={max_duration}"
        )
        return []

    if min_duration > max_duration:
        min_duration, max_duration = max_duration, min_duration

    if video_duration < min_duration:
        logger.info(
            f"Video too short for segments: {video_duration:.1f}s < min {min_duration:.1f}s"
        )
        return []

    count = min(requested_count, max_count)
    max_duration = min(max_duration, video_duration)

    accepted: list[Interval] = []
    for slot in range(count):
        still_needed = count - slot - 1
        interval = _place_slot(
            accepted,
            video_duration,
            min_duration,
            max_duration,
            still_needed,
            max_attempts,
            rng,
        )
        if interval is None:
            logger.debug(f"Slot {slot} skipped after {max_attempts} attempts")
            continue
        accepted.append(interval)

    accepted.sort()
    plans = [
        SegmentPlan(
            index=i,
            start_time=start,
            end_time=end,
            duration=min(max(end - start, min_duration), max_duration),
        )
        for i, (start, end) in enumerate(accepted)
    ]

    logger.info(
        f"Planned {len(plans)}/{requested_count} segments "
        f"in {video_duration:.1f}s video ({min_duration:.1f}-{max_duration:.1f}s each)"
    )
    return plans


def overlaps(start: float, end: float, other: Interval) -> bool:
    """Interval overlap test. Touching intervals do not overlap."""
    return start < other[1] and other[0] < end


def _place_slot(
    accepted: list[Interval],
    video_duration: float,
    min_duration: float,
    max_duration: float,
    still_needed: int,
    max_attempts: int,
    rng: random.Random,
) -> Interval | None:
    """Find one interval for a slot, or None when the slot must be skipped."""
    gaps = free_gaps(accepted, video_duration)
    if not gaps:
        return None

    free_total = sum(end - start for start, end in gaps)
    largest_gap = max(end - start for start, end in gaps)

    # Budget left for this slot after reserving the minimum for later slots
    remaining_budget = free_total - still_needed * min_duration
    upper = min(max_duration, remaining_budget, largest_gap)
    if upper + EPSILON < min_duration:
        return None
    upper = max(upper, min_duration)

    for _ in range(max_attempts):
        duration = rng.uniform(min_duration, upper)
        drawn = _draw_start(gaps, duration, rng)
        if drawn is None:
            continue

        start, gap = drawn
        fitted = fit_endpoints(start, min(start + duration, gap[1]), gap, min_duration, max_duration)
        if fitted is None:
            continue
        start, end = fitted
        if any(overlaps(start, end, existing) for existing in accepted):
            continue
        if _capacity(free_gaps([*accepted, (start, end)], video_duration), min_duration) < still_needed:
            continue
        return start, end

    # Last attempt: shortest interval at the start of the largest gap
    gap = max(gaps, key=lambda g: g[1] - g[0])
    gap_start, gap_end = gap
    if gap_end - gap_start + EPSILON < min_duration:
        return None
    candidate = fit_endpoints(
        gap_start, min(gap_start + min_duration, gap_end), gap, min_duration, max_duration
    )
    if candidate is None:
        return None
    if any(overlaps(*candidate, existing) for existing in accepted):
        return None
    if _capacity(free_gaps([*accepted, candidate], video_duration), min_duration) < still_needed:
        return None
    return candidate


def free_gaps(accepted: list[Interval], video_duration: float) -> list[Interval]:
    """Uncovered sub-intervals of [0, video_duration], in order."""
    gaps: list[Interval] = []
    cursor = 0.0
    for start, end in sorted(accepted):
        if start > cursor:
            gaps.append((cursor, start))
        cursor = max(cursor, end)
    if cursor < video_duration:
        gaps.append((cursor, video_duration))
    return gaps


def _capacity(gaps: list[Interval], min_duration: float) -> int:
    """How many minimum-length intervals still fit in the gaps."""
    return sum(math.floor((end - start + EPSILON) / min_duration) for start, end in gaps)


def _draw_start(
    gaps: list[Interval], duration: float, rng: random.Random
) -> tuple[float, Interval] | None:
    """Draw a start uniformly over all positions where duration fits in a gap.

    Returns the start together with the gap it lies in.
    """
    fitting = [(start, end) for start, end in gaps if end - start + EPSILON >= duration]
    if not fitting:
        return None

    slack = [max(end - start - duration, 0.0) for start, end in fitting]
    total = sum(slack)
    if total <= 0:
        gap = rng.choice(fitting)
        return gap[0], gap

    point = rng.uniform(0, total)
    for gap, room in zip(fitting, slack):
        if point <= room:
            return gap[0] + point, gap
        point -= room
    return fitting[-1][0] + slack[-1], fitting[-1]


def fit_endpoints(
    start: float,
    end: float,
    gap: Interval,
    min_duration: float,
    max_duration: float,
) -> Interval | None:
    """
    Nudge endpoints inside gap until end - start lies in [min, max].

    start + duration rounds, so the difference can land an ulp outside the
    bounds. Endpoints move one ulp at a time (end first, start once end
    reaches the gap edge). Some lengths have no exact float pair at a given
    position (min == max far from zero); such intervals are kept when they
    are within EPSILON of the bounds, and the plan's duration field carries
    the clamped value.

    Returns:
        (start, end) inside gap, or None if the interval does not fit
    """
    gap_start, gap_end = gap
    s, e = start, end
    for _ in range(MAX_NUDGES):
        length = e - s
        if length < min_duration:
            if e < gap_end:
                e = math.nextafter(e, math.inf)
            elif s > gap_start:
                s = math.nextafter(s, -math.inf)
            else:
                break
        elif length > max_duration:
            e = math.nextafter(e, -math.inf)
        else:
            return s, e

    if min_duration - EPSILON <= end - start <= max_duration + EPSILON:
        return start, end
    return None
