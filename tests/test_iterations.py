"""Tests for iteration classification."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

from gh_report.iterations import (
    classify_iteration,
    find_relevant_iterations,
    iteration_end,
    parse_start_date,
)
from gh_report.models import IterationCategory, ProjectIteration

# Wednesday afternoon; iterations are two weeks starting on Mondays.
NOW = datetime(2024, 5, 15, 14, 30, tzinfo=timezone.utc)
TODAY = NOW.date()


def _iter(title: str, start: str, duration: int = 14) -> ProjectIteration:
    return ProjectIteration(id=f"id-{title}", title=title, start_date=start, duration=duration)


SPRINT_1 = _iter("Sprint 1", "2024-04-15")  # ends 04-29
SPRINT_2 = _iter("Sprint 2", "2024-04-29")  # ends 05-13
SPRINT_3 = _iter("Sprint 3", "2024-05-13")  # contains 05-15
SPRINT_4 = _iter("Sprint 4", "2024-05-27")
SPRINT_5 = _iter("Sprint 5", "2024-06-10")


# ── classify_iteration ──────────────────────────────────────────────────────


def test_classify_current_previous_next() -> None:
    assert classify_iteration(SPRINT_3, NOW) is IterationCategory.CURRENT
    assert classify_iteration(SPRINT_2, NOW) is IterationCategory.PREVIOUS
    assert classify_iteration(SPRINT_4, NOW) is IterationCategory.NEXT


def test_classify_window_is_half_open() -> None:
    """Start day is inside the window, end day is not."""
    starts_today = _iter("a", "2024-05-15", 7)
    ends_today = _iter("b", "2024-05-08", 7)
    assert classify_iteration(starts_today, NOW) is IterationCategory.CURRENT
    assert classify_iteration(ends_today, NOW) is IterationCategory.PREVIOUS


def test_classify_ignores_time_of_day() -> None:
    late_evening = datetime(2024, 5, 12, 23, 59, tzinfo=timezone.utc)
    assert classify_iteration(SPRINT_3, late_evening) is IterationCategory.NEXT
    just_after_midnight = datetime(2024, 5, 13, 0, 1, tzinfo=timezone.utc)
    assert classify_iteration(SPRINT_3, just_after_midnight) is IterationCategory.CURRENT


def test_classify_accepts_plain_date() -> None:
    assert classify_iteration(SPRINT_3, TODAY) is IterationCategory.CURRENT


def test_classify_unparsable_start_counts_as_elapsed() -> None:
    broken = _iter("broken", "not-a-date")
    assert classify_iteration(broken, NOW) is IterationCategory.PREVIOUS
    assert parse_start_date(broken) is None
    assert iteration_end(broken) is None


def test_iteration_end() -> None:
    assert iteration_end(SPRINT_3) == date(2024, 5, 27)


# ── find_relevant_iterations ───────────────────────────────────────────────


def test_find_relevant_on_unordered_set() -> None:
    shuffled = [SPRINT_4, SPRINT_1, SPRINT_5, SPRINT_3, SPRINT_2]
    relevant = find_relevant_iterations(shuffled, NOW)
    assert relevant.previous == SPRINT_2
    assert relevant.current == SPRINT_3
    assert relevant.next == SPRINT_4


def test_find_relevant_empty() -> None:
    relevant = find_relevant_iterations([], NOW)
    assert relevant.previous is None
    assert relevant.current is None
    assert relevant.next is None


def test_find_relevant_between_iterations() -> None:
    """A gap between sprints yields no current iteration."""
    relevant = find_relevant_iterations([SPRINT_2, SPRINT_4], NOW)
    assert relevant.current is None
    assert relevant.previous == SPRINT_2
    assert relevant.next == SPRINT_4


def test_find_relevant_previous_uses_end_not_start() -> None:
    """A long iteration that started earlier but ended later wins previous."""
    long_one = _iter("long", "2024-04-01", 40)  # ends 05-11
    short_one = _iter("short", "2024-05-01", 5)  # ends 05-06
    relevant = find_relevant_iterations([short_one, long_one], NOW)
    assert relevant.previous == long_one


def test_find_relevant_skips_unparsable() -> None:
    broken = _iter("broken", "15/05/2024")
    relevant = find_relevant_iterations([broken, SPRINT_2], NOW)
    assert relevant.previous == SPRINT_2
    relevant = find_relevant_iterations([broken], NOW)
    assert relevant.previous is None


def test_find_relevant_overlapping_current_does_not_crash() -> None:
    overlap = _iter("Overlap", "2024-05-14", 3)
    relevant = find_relevant_iterations([SPRINT_3, overlap], NOW)
    assert relevant.current in (SPRINT_3, overlap)
    assert relevant.previous is None
    assert relevant.next is None


def test_current_excluded_from_previous_and_next() -> None:
    iterations = [_iter(f"s{i}", (date(2024, 3, 4) + timedelta(days=14 * i)).isoformat()) for i in range(10)]
    for offset in range(0, 140, 3):
        day = date(2024, 3, 1) + timedelta(days=offset)
        relevant = find_relevant_iterations(iterations, day)
        if relevant.current is not None:
            assert relevant.current != relevant.previous
            assert relevant.current != relevant.next
            assert classify_iteration(relevant.current, day) is IterationCategory.CURRENT


def test_previous_and_next_bounds() -> None:
    """previous ends on/before today with the latest end; next starts after today with the earliest start."""
    iterations = [
        _iter("a", "2024-03-04", 10),
        _iter("b", "2024-03-20", 3),
        _iter("c", "2024-04-02", 21),
        _iter("d", "2024-05-01", 2),
        _iter("e", "2024-05-20", 7),
        _iter("f", "2024-06-30", 1),
    ]
    for offset in range(0, 130, 2):
        day = date(2024, 3, 1) + timedelta(days=offset)
        relevant = find_relevant_iterations(list(reversed(iterations)), day)

        ended = [i for i in iterations if iteration_end(i) <= day]
        if relevant.previous is None:
            assert not ended
        else:
            assert iteration_end(relevant.previous) <= day
            assert iteration_end(relevant.previous) == max(iteration_end(i) for i in ended)

        upcoming = [i for i in iterations if parse_start_date(i) > day]
        if relevant.next is None:
            assert not upcoming
        else:
            assert parse_start_date(relevant.next) > day
            assert parse_start_date(relevant.next) == min(parse_start_date(i) for i in upcoming)
