"""Three-tier concurrent collector.

1. Organization projects and per-repository pipelines run side by side.
2. Within a repository: issues, pull requests, issue comments and review
   comments are listed concurrently.
3. Once the pull requests are known, their reviews are listed concurrently.

Every tier joins all of its tasks before looking at failures, then raises the
first one in repository/operation order.  A failed repository fails the whole
collection; a failed organization project listing is only logged.
Cancelling the task that runs ``collect`` cancels every in-flight retrieval.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Sequence
from datetime import datetime
from typing import Any, TypeVar

from gh_report.activity import lookback_cutoff, pr_active_since
from gh_report.exceptions import CollectionError, InvalidRepositoryError
from gh_report.models import (
    ItemKind,
    Options,
    Project,
    PullRequest,
    RepoReport,
    Review,
)
from gh_report.progress import NullProgress, ProgressObserver
from gh_report.source import DataSource

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Four tier-2 listings per repository.
LISTING_STEPS = 4
# Attaching organization projects once everything has joined.
ASSOCIATION_STEPS = 1


def parse_repository(full_name: str) -> tuple[str, str]:
    """Split ``owner/name``; anything else raises ``InvalidRepositoryError``."""
    parts = full_name.strip().split("/")
    if len(parts) != 2 or not parts[0] or not parts[1]:
        raise InvalidRepositoryError(full_name)
    return parts[0], parts[1]


def _unwrap(results: Sequence[Any]) -> None:
    """Re-raise cancellation found among gathered results."""
    for result in results:
        if isinstance(result, BaseException) and not isinstance(result, Exception):
            raise result


async def _gather_all(*aws: Awaitable[T]) -> list[T | BaseException]:
    """Run *aws* concurrently and wait for every one, failures included."""
    results = await asyncio.gather(*aws, return_exceptions=True)
    _unwrap(results)
    return results


# ── Tier 1 ──────────────────────────────────────────────────────────────────


async def collect(
    source: DataSource,
    options: Options,
    progress: ProgressObserver | None = None,
    now: datetime | None = None,
) -> list[RepoReport]:
    """Collect activity for every repository in ``options.repos``.

    Returns one ``RepoReport`` per repository, in input order, or raises.

    Raises:
        InvalidRepositoryError: Before any I/O, for a malformed repository.
        CollectionError: If any required retrieval failed.
    """
    progress = progress or NullProgress()
    since = lookback_cutoff(options.days, now)

    repos = [parse_repository(r) for r in options.repos]
    owners = list(dict.fromkeys(owner for owner, _ in repos))

    logger.info(
        "Collecting %d repositories (%d organizations) since %s",
        len(repos),
        len(owners),
        since.isoformat(timespec="minutes"),
    )

    for idx in range(len(repos)):
        progress.set_total(idx, LISTING_STEPS + ASSOCIATION_STEPS)

    project_tasks = [_collect_projects(source, owner) for owner in owners]
    repo_tasks = [
        _collect_repo(source, owner, repo, since, options.user, progress, idx)
        for idx, (owner, repo) in enumerate(repos)
    ]
    results = await _gather_all(*project_tasks, *repo_tasks)

    org_projects: dict[str, list[Project]] = dict(zip(owners, results[: len(owners)]))
    repo_results = results[len(owners):]

    for result in repo_results:
        if isinstance(result, BaseException):
            raise result

    reports: list[RepoReport] = list(repo_results)
    for idx, report in enumerate(reports):
        report.projects = org_projects.get(report.owner, [])
        progress.increment(idx)

    logger.info("Collected %d repositories", len(reports))
    return reports


async def _collect_projects(source: DataSource, owner: str) -> list[Project]:
    """Projects are supplementary: failures become an empty list."""
    try:
        projects = await source.list_projects(owner)
    except Exception as exc:
        logger.warning("Could not fetch projects for %s: %s", owner, exc)
        return []
    logger.debug("Fetched %d projects for %s", len(projects), owner)
    return projects


# ── Tiers 2 and 3 ───────────────────────────────────────────────────────────


async def _step(aw: Awaitable[T], progress: ProgressObserver, repo_index: int) -> T:
    try:
        return await aw
    finally:
        progress.increment(repo_index)


async def _collect_repo(
    source: DataSource,
    owner: str,
    repo: str,
    since: datetime,
    user: str | None,
    progress: ProgressObserver,
    repo_index: int,
) -> RepoReport:
    """Collect and filter one repository."""
    issues, prs, comments, review_comments = await _gather_all(
        _step(source.list_issues(owner, repo, since), progress, repo_index),
        _step(source.list_pull_requests(owner, repo, since), progress, repo_index),
        _step(source.list_issue_comments(owner, repo, since), progress, repo_index),
        _step(source.list_review_comments(owner, repo, since), progress, repo_index),
    )

    for operation, result in (
        ("listing issues", issues),
        ("listing PRs", prs),
        ("listing issue comments", comments),
        ("listing review comments", review_comments),
    ):
        if isinstance(result, BaseException):
            raise CollectionError(owner, repo, operation) from result

    report = RepoReport(owner=owner, repo=repo)

    report.issues = [
        issue
        for issue in issues
        if issue.kind is ItemKind.ISSUE and (user is None or issue.author == user)
    ]
    # The pulls listing is cut off by updated_at, which automation bumps;
    # keep only PRs with lifecycle activity since the cutoff.
    report.pull_requests = [
        pr
        for pr in prs
        if (user is None or pr.author == user) and pr_active_since(pr, since)
    ]
    report.issue_comments = [
        c for c in comments if user is None or c.author == user
    ]
    report.review_comments = [
        c for c in review_comments if user is None or c.author == user
    ]

    if report.pull_requests:
        progress.set_total(
            repo_index,
            LISTING_STEPS + len(report.pull_requests) + ASSOCIATION_STEPS,
        )
        report.reviews = await _collect_reviews(
            source, owner, repo, report.pull_requests, progress, repo_index
        )

    logger.debug(
        "%s/%s: %d issues, %d PRs, %d comments, %d review comments",
        owner,
        repo,
        len(report.issues),
        len(report.pull_requests),
        len(report.issue_comments),
        len(report.review_comments),
    )
    return report


async def _collect_reviews(
    source: DataSource,
    owner: str,
    repo: str,
    prs: list[PullRequest],
    progress: ProgressObserver,
    repo_index: int,
) -> dict[int, list[Review]]:
    """List reviews of every PR concurrently; PRs without reviews are omitted."""
    results = await _gather_all(*(
        _step(source.list_reviews(owner, repo, pr.number), progress, repo_index)
        for pr in prs
    ))

    reviews: dict[int, list[Review]] = {}
    for pr, result in zip(prs, results):
        if isinstance(result, BaseException):
            raise CollectionError(owner, repo, "listing reviews", pr.number) from result
        if result:
            reviews[pr.number] = result
    return reviews
