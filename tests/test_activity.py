"""Tests for the activity-since predicates and time boundaries."""

from __future__ import annotations

import time
from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from gh_report.activity import (
    issue_active_since,
    lookback_cutoff,
    pr_active_since,
    today_boundary,
)
from gh_report.models import Issue, PullRequest

NOW = datetime(2024, 5, 15, 14, 30, tzinfo=timezone.utc)


def _make_pr(
    state: str = "closed",
    created_at: datetime | None = None,
    merged_at: datetime | None = None,
    closed_at: datetime | None = None,
) -> PullRequest:
    created = created_at or NOW - timedelta(days=14)
    return PullRequest(
        owner="owner",
        repo="r",
        number=42,
        title="Add feature",
        state=state,
        author="alice",
        assignees=frozenset(),
        created_at=created,
        updated_at=NOW,
        url="https://github.com/owner/r/pull/42",
        merged_at=merged_at,
        closed_at=closed_at,
    )


def _make_issue(
    state: str = "closed",
    created_at: datetime | None = None,
    closed_at: datetime | None = None,
) -> Issue:
    return Issue(
        owner="owner",
        repo="r",
        number=7,
        title="Bug",
        state=state,
        author="alice",
        assignees=frozenset(),
        created_at=created_at or NOW - timedelta(days=14),
        updated_at=NOW,
        url="https://github.com/owner/r/issues/7",
        closed_at=closed_at,
    )


# ── Pull requests ───────────────────────────────────────────────────────────


def test_open_pr_always_active() -> None:
    pr = _make_pr(state="open", created_at=NOW - timedelta(days=365))
    assert pr_active_since(pr, NOW)
    assert pr_active_since(pr, NOW + timedelta(days=30))


def test_pr_created_merged_or_closed_after_cutoff() -> None:
    cutoff = NOW - timedelta(days=1)
    assert pr_active_since(_make_pr(created_at=NOW - timedelta(hours=1)), cutoff)
    assert pr_active_since(_make_pr(merged_at=NOW - timedelta(hours=2)), cutoff)
    assert pr_active_since(_make_pr(closed_at=NOW - timedelta(hours=3)), cutoff)


def test_pr_cutoff_is_inclusive() -> None:
    cutoff = NOW - timedelta(days=1)
    assert pr_active_since(_make_pr(merged_at=cutoff), cutoff)


def test_stale_merged_pr_not_active() -> None:
    """Merged yesterday morning, created two weeks ago, cutoff now - 1 day."""
    yesterday_morning = datetime(2024, 5, 14, 9, 0, tzinfo=timezone.utc)
    pr = _make_pr(merged_at=yesterday_morning, closed_at=yesterday_morning)
    assert not pr_active_since(pr, lookback_cutoff(1, NOW))
    assert not pr_active_since(pr, today_boundary(NOW))


def test_pr_activity_is_monotonic() -> None:
    pr = _make_pr(merged_at=NOW - timedelta(hours=30))
    cutoffs = [NOW - timedelta(hours=h) for h in range(0, 400, 5)]
    results = [pr_active_since(pr, c) for c in cutoffs]
    # cutoffs move backwards in time: once true, stays true
    first_true = results.index(True)
    assert all(results[first_true:])


# ── Issues ──────────────────────────────────────────────────────────────────


def test_open_issue_always_active() -> None:
    assert issue_active_since(_make_issue(state="open"), NOW)


def test_issue_created_or_closed_after_cutoff() -> None:
    cutoff = today_boundary(NOW)
    assert issue_active_since(_make_issue(created_at=NOW - timedelta(hours=1)), cutoff)
    assert issue_active_since(_make_issue(closed_at=NOW - timedelta(hours=1)), cutoff)
    assert not issue_active_since(_make_issue(closed_at=NOW - timedelta(days=2)), cutoff)


# ── Boundaries ──────────────────────────────────────────────────────────────


def test_today_boundary_is_midnight() -> None:
    assert today_boundary(NOW) == datetime(2024, 5, 15, tzinfo=timezone.utc)


def test_today_boundary_defaults_to_local_aware() -> None:
    boundary = today_boundary()
    assert boundary.tzinfo is not None
    assert (boundary.hour, boundary.minute, boundary.second) == (0, 0, 0)


def test_lookback_cutoff() -> None:
    assert lookback_cutoff(3, NOW) == NOW - timedelta(days=3)


# ── DST change days ─────────────────────────────────────────────────────────

BERLIN = ZoneInfo("Europe/Berlin")


@pytest.fixture
def berlin_local_time(monkeypatch: pytest.MonkeyPatch):
    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset is unavailable on this platform")
    monkeypatch.setenv("TZ", "Europe/Berlin")
    time.tzset()
    yield
    monkeypatch.undo()
    time.tzset()


def test_today_boundary_on_spring_forward_with_fixed_offset(berlin_local_time) -> None:
    """Afternoon is +02:00 but midnight was still +01:00."""
    afternoon = datetime(2024, 3, 31, 14, 0, tzinfo=BERLIN).astimezone()
    assert afternoon.utcoffset() == timedelta(hours=2)

    boundary = today_boundary(afternoon)
    assert boundary == datetime(2024, 3, 30, 23, 0, tzinfo=timezone.utc)
    assert boundary.utcoffset() == timedelta(hours=1)


def test_today_boundary_on_fall_back_with_fixed_offset(berlin_local_time) -> None:
    afternoon = datetime(2024, 10, 27, 14, 0, tzinfo=BERLIN).astimezone()
    assert today_boundary(afternoon) == datetime(2024, 10, 26, 22, 0, tzinfo=timezone.utc)


def test_today_boundary_with_zoneinfo() -> None:
    afternoon = datetime(2024, 3, 31, 14, 0, tzinfo=BERLIN)
    assert today_boundary(afternoon) == datetime(2024, 3, 30, 23, 0, tzinfo=timezone.utc)


def test_late_evening_before_spring_forward_is_not_today(berlin_local_time) -> None:
    afternoon = datetime(2024, 3, 31, 14, 0, tzinfo=BERLIN).astimezone()
    closed_last_night = datetime(2024, 3, 30, 23, 30, tzinfo=BERLIN)
    issue = _make_issue(created_at=datetime(2024, 3, 1, tzinfo=BERLIN), closed_at=closed_last_night)
    assert not issue_active_since(issue, today_boundary(afternoon))
