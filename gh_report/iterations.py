"""Classify project iterations relative to a reference date.

An iteration covers the half-open window ``[start, start + duration)`` in
whole days.  The reference instant is truncated to its calendar date, so the
time of day never matters.

If several iterations contain today (an overlapping configuration), the one
evaluated last is reported as current.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta

from gh_report.models import IterationCategory, ProjectIteration, RelevantIterations

logger = logging.getLogger(__name__)


def parse_start_date(iteration: ProjectIteration) -> date | None:
    """Return the iteration's start date, or ``None`` if it is unparsable."""
    try:
        return date.fromisoformat(iteration.start_date)
    except (TypeError, ValueError):
        return None


def iteration_end(iteration: ProjectIteration) -> date | None:
    """Exclusive end date: ``start + duration`` days."""
    start = parse_start_date(iteration)
    if start is None:
        return None
    return start + timedelta(days=iteration.duration)


def _as_date(now: datetime | date) -> date:
    return now.date() if isinstance(now, datetime) else now


def classify_iteration(
    iteration: ProjectIteration, now: datetime | date
) -> IterationCategory:
    """Place one iteration in the past, present or future.

    An unparsable start date counts as already elapsed.
    """
    start = parse_start_date(iteration)
    if start is None:
        return IterationCategory.PREVIOUS

    today = _as_date(now)
    end = start + timedelta(days=iteration.duration)
    if today < start:
        return IterationCategory.NEXT
    if today >= end:
        return IterationCategory.PREVIOUS
    return IterationCategory.CURRENT


def find_relevant_iterations(
    iterations: list[ProjectIteration], now: datetime | date
) -> RelevantIterations:
    """Pick the latest-ended previous, the current and the earliest next iteration.

    Iterations with an unparsable start date have no comparable end, so they
    never win the previous slot. Single pass over an unordered list.
    """
    today = _as_date(now)
    previous: ProjectIteration | None = None
    previous_end: date | None = None
    current: ProjectIteration | None = None
    upcoming: ProjectIteration | None = None
    upcoming_start: date | None = None

    for iteration in iterations:
        start = parse_start_date(iteration)
        if start is None:
            logger.debug(
                "Skipping iteration %r with unparsable start date %r",
                iteration.title,
                iteration.start_date,
            )
            continue
        end = start + timedelta(days=iteration.duration)

        if today < start:
            if upcoming_start is None or start < upcoming_start:
                upcoming, upcoming_start = iteration, start
        elif today >= end:
            if previous_end is None or end > previous_end:
                previous, previous_end = iteration, end
        else:
            if current is not None:
                logger.warning(
                    "Iterations %r and %r both contain %s; using %r",
                    current.title,
                    iteration.title,
                    today.isoformat(),
                    iteration.title,
                )
            current = iteration

    return RelevantIterations(previous=previous, current=current, next=upcoming)
