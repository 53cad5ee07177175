"""Tests for the random segment planner."""

import random

import pytest

from clipsplitter.services.planner import EPSILON, fit_endpoints, free_gaps, overlaps, plan_segments


def assert_valid_plan(plans, video_duration, min_duration, max_duration, exact_length=True):
    for i, plan in enumerate(plans):
        assert plan.index == i
        assert plan.start_time >= 0
        assert plan.end_time <= video_duration
        assert min_duration <= plan.duration <= max_duration
        if exact_length:
            assert min_duration <= plan.end_time - plan.start_time <= max_duration
        else:
            assert plan.end_time - plan.start_time == pytest.approx(plan.duration, abs=EPSILON)

    for prev, cur in zip(plans, plans[1:]):
        assert prev.start_time <= cur.start_time
        assert prev.end_time <= cur.start_time


@pytest.mark.parametrize("seed", range(25))
def test_five_segments_fit_in_hundred_seconds(seed):
    plans = plan_segments(100, 5, 5, 20, rng=random.Random(seed))

    assert len(plans) == 5
    assert_valid_plan(plans, 100, 5, 20)


def test_video_shorter_than_min_duration_gives_empty_plan():
    assert plan_segments(2, 5, 5, 10, rng=random.Random(1)) == []


@pytest.mark.parametrize(
    "count,min_d,max_d",
    [(0, 5, 10), (-3, 5, 10), (3, 0, 10), (3, 5, 0), (3, -1, 10)],
)
def test_non_positive_input_gives_empty_plan(count, min_d, max_d):
    assert plan_segments(100, count, min_d, max_d) == []


def test_random_inputs_always_produce_valid_plans():
    rng = random.Random(1234)
    for _ in range(300):
        video = rng.uniform(1, 600)
        count = rng.randint(1, 20)
        min_d = rng.uniform(0.5, 30)
        max_d = rng.uniform(min_d, 90)

        plans = plan_segments(video, count, min_d, max_d, rng=random.Random(rng.random()))

        assert len(plans) <= count
        if video < min_d:
            assert plans == []
        else:
            assert_valid_plan(plans, video, min_d, min(max_d, video))


def test_inverted_min_max_is_swapped():
    plans = plan_segments(200, 4, 30, 10, rng=random.Random(3))

    assert len(plans) == 4
    assert_valid_plan(plans, 200, 10, 30)


def test_requested_count_is_clamped():
    plans = plan_segments(10_000, 50, 1, 5, rng=random.Random(5))

    assert len(plans) == 20


def test_max_duration_capped_by_video_duration():
    plans = plan_segments(12, 1, 5, 60, rng=random.Random(9))

    assert len(plans) == 1
    assert_valid_plan(plans, 12, 5, 12)


def test_exact_fit_packs_the_whole_video():
    plans = plan_segments(25, 5, 5, 5, rng=random.Random(11))

    assert len(plans) == 5
    assert_valid_plan(plans, 25, 5, 5)
    assert sum(p.duration for p in plans) == pytest.approx(25)


def test_infeasible_count_returns_fewer_segments():
    plans = plan_segments(30, 10, 5, 5, rng=random.Random(2))

    assert 1 <= len(plans) <= 6
    assert_valid_plan(plans, 30, 5, 5, exact_length=False)


def test_same_seed_same_plan():
    first = plan_segments(300, 6, 5, 40, rng=random.Random(42))
    second = plan_segments(300, 6, 5, 40, rng=random.Random(42))

    assert first == second


def test_labels_are_formatted_intervals():
    plans = plan_segments(7200, 3, 60, 120, rng=random.Random(0))

    for plan in plans:
        start, end = plan.label.split("-")
        assert len(start) == len(end) == 8
        assert start.count(":") == 2


def test_overlaps_treats_touching_intervals_as_disjoint():
    assert not overlaps(0, 5, (5, 10))
    assert not overlaps(10, 12, (5, 10))
    assert overlaps(4, 6, (5, 10))
    assert overlaps(6, 7, (5, 10))


def test_free_gaps():
    assert free_gaps([], 10) == [(0.0, 10)]
    assert free_gaps([(2, 4), (6, 10)], 10) == [(0.0, 2), (4, 6)]
    assert free_gaps([(0, 3)], 10) == [(3, 10)]


@pytest.mark.parametrize("seed", range(20))
def test_fixed_length_segments_report_exact_duration(seed):
    rng = random.Random(seed)
    length = rng.uniform(1, 15)

    plans = plan_segments(300, 8, length, length, rng=rng)

    assert len(plans) == 8
    assert all(plan.duration == length for plan in plans)
    assert_valid_plan(plans, 300, length, length, exact_length=False)


def test_fit_endpoints_moves_rounded_interval_into_bounds():
    # 5.1 - 0.1 rounds to 4.999999999999999
    assert 5.1 - 0.1 < 5

    start, end = fit_endpoints(0.1, 5.1, (0.0, 100.0), 5, 20)

    assert 5 <= end - start <= 20
    assert start == 0.1


def test_fit_endpoints_moves_start_at_gap_edge():
    start, end = fit_endpoints(0.1, 5.1, (0.0, 5.1), 5, 20)

    assert end == 5.1
    assert 5 <= end - start <= 20


def test_fit_endpoints_rejects_interval_that_does_not_fit():
    assert fit_endpoints(1.0, 3.0, (1.0, 3.0), 5, 20) is None
