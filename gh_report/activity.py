"""Decide whether an issue or pull request saw real work since a cutoff.

``updated_at`` moves on any metadata change (labels, bot comments), so these
predicates look only at lifecycle timestamps.  Open items always count as
active.  The same predicates serve both the coarse lookback cutoff used while
collecting and the stricter today boundary used while summarising.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from gh_report.models import Issue, PullRequest


def _at_or_after(moment: datetime | None, cutoff: datetime) -> bool:
    return moment is not None and moment >= cutoff


def pr_active_since(pr: PullRequest, cutoff: datetime) -> bool:
    """True if the PR is open, or was created, merged or closed at/after *cutoff*."""
    if pr.state == "open":
        return True
    return (
        _at_or_after(pr.created_at, cutoff)
        or _at_or_after(pr.merged_at, cutoff)
        or _at_or_after(pr.closed_at, cutoff)
    )


def issue_active_since(issue: Issue, cutoff: datetime) -> bool:
    """True if the issue is open, or was created or closed at/after *cutoff*."""
    if issue.state == "open":
        return True
    return _at_or_after(issue.created_at, cutoff) or _at_or_after(
        issue.closed_at, cutoff
    )


def local_now() -> datetime:
    """Current instant as a timezone-aware local datetime."""
    return datetime.now().astimezone()


def today_boundary(now: datetime | None = None) -> datetime:
    """Local midnight of *now*, carrying the UTC offset in force at midnight.

    ``local_now()`` yields a fixed offset, which is wrong for midnight on a
    DST-change day, so such values are re-resolved in the system zone.  A
    real zone (``zoneinfo``) computes the midnight offset by itself.
    """
    now = now or local_now()
    if isinstance(now.tzinfo, timezone) and now.utcoffset() == now.astimezone().utcoffset():
        return datetime.combine(now.date(), datetime.min.time()).astimezone()
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


def lookback_cutoff(days: int, now: datetime | None = None) -> datetime:
    """``now - days``."""
    now = now or local_now()
    return now - timedelta(days=days)
