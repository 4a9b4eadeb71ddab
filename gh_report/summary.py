"""Daily-report synthesis: today's work and tomorrow's plan.

Work items are judged against the *today boundary* (local midnight), not the
lookback window used to collect the data.  Plan items ignore dates entirely
and look at lifecycle state plus the projects' current iterations.

Key invariants:
    - A comment or review entry never points at a PR the user authored,
      whenever that PR was opened; the PR entry already covers it.
    - At most one comment entry and one review entry per (repo, number).
    - Plan items are unique per (repo, number); a project item matching an
      open PR only fills in the PR's missing status.
"""

from __future__ import annotations

import logging
from datetime import datetime
from urllib.parse import urlparse

from gh_report.activity import issue_active_since, local_now, pr_active_since, today_boundary
from gh_report.iterations import find_relevant_iterations
from gh_report.models import PlanItem, ProjectItem, RepoReport, Review, WorkItem

logger = logging.getLogger(__name__)

DONE_STATES = frozenset({"DONE", "CLOSED", "MERGED"})


# ── Helpers ─────────────────────────────────────────────────────────────────


def build_review_summary(reviews: list[Review] | None) -> str:
    """``"@alice APPROVED; @bob COMMENTED"``; pending reviews and repeats dropped."""
    parts: list[str] = []
    seen: set[tuple[str, str]] = set()
    for review in reviews or []:
        if review.state == "PENDING":
            continue
        key = (review.reviewer, review.state)
        if key in seen:
            continue
        seen.add(key)
        parts.append(f"@{review.reviewer} {review.state}")
    return "; ".join(parts)


def url_in_repo(url: str, full_repo: str) -> bool:
    """True if *url* points inside ``https://github.com/<full_repo>/``."""
    path = urlparse(url).path.lower()
    return path.startswith(f"/{full_repo.lower()}/")


def _is_done(item: ProjectItem) -> bool:
    # Any finished token in either field; a board column named "Closed" counts too.
    return item.status.upper() in DONE_STATES or item.state.upper() in DONE_STATES


# ── Today's work ───────────────────────────────────────────────────────────


def extract_work_items(
    reports: list[RepoReport],
    user: str | None,
    now: datetime | None = None,
) -> list[WorkItem]:
    """List what *user* worked on today across all repositories."""
    today = today_boundary(now)
    items: list[WorkItem] = []

    for rr in reports:
        full_repo = rr.full_name
        user_prs = [pr for pr in rr.pull_requests if user is None or pr.author == user]

        # Every PR by the user, not just today's.
        authored = {pr.number for pr in user_prs}

        for pr in user_prs:
            if not pr_active_since(pr, today):
                continue
            items.append(WorkItem(
                kind="pr",
                repo=full_repo,
                number=pr.number,
                title=pr.title,
                state=pr.display_state,
                url=pr.url,
                review_info=build_review_summary(rr.reviews.get(pr.number)),
            ))

        for issue in rr.issues:
            if user is not None and issue.author != user:
                continue
            # Assigned only to others: someone else's task.
            if user is not None and issue.assignees and user not in issue.assignees:
                continue
            if not issue_active_since(issue, today):
                continue
            items.append(WorkItem(
                kind="issue",
                repo=full_repo,
                number=issue.number,
                title=issue.title,
                state=issue.state,
                url=issue.url,
            ))

        commented: set[int] = set()
        for comment in rr.issue_comments:
            if user is not None and comment.author != user:
                continue
            number = comment.parent_number
            if comment.created_at < today or number is None:
                continue
            if number in authored or number in commented:
                continue
            commented.add(number)
            items.append(WorkItem(
                kind="comment",
                repo=full_repo,
                number=number,
                title=f"Commented on #{number}",
                url=comment.url,
            ))

        reviewed: set[int] = set()
        for comment in rr.review_comments:
            if user is not None and comment.author != user:
                continue
            number = comment.parent_number
            if comment.created_at < today or number is None:
                continue
            if number in authored or number in reviewed:
                continue
            reviewed.add(number)
            items.append(WorkItem(
                kind="review",
                repo=full_repo,
                number=number,
                title=f"Reviewed PR #{number}",
                url=comment.url,
            ))

    logger.debug("Extracted %d work items", len(items))
    return items


# ── Tomorrow's plan ────────────────────────────────────────────────────────


def extract_plan_items(
    reports: list[RepoReport],
    user: str | None,
    now: datetime | None = None,
) -> list[PlanItem]:
    """List what *user* still has in flight: open PRs and current-iteration items."""
    now = now or local_now()
    items: list[PlanItem] = []
    by_key: dict[tuple[str, int], PlanItem] = {}

    # Source A: the user's unfinished pull requests.
    for rr in reports:
        full_repo = rr.full_name
        for pr in rr.pull_requests:
            if user is not None and pr.author != user:
                continue
            if user is not None and pr.assignees and user not in pr.assignees:
                continue
            # Lifecycle, not display_state: a closed draft is still closed.
            if pr.merged_at is not None or pr.state == "closed":
                continue
            plan = PlanItem(
                repo=full_repo,
                number=pr.number,
                title=pr.title,
                url=pr.url,
                source="open_pr",
            )
            if plan.key in by_key:
                continue
            by_key[plan.key] = plan
            items.append(plan)

    # Source B: unfinished items of each project's current iteration.
    for rr in reports:
        full_repo = rr.full_name
        for project in rr.projects:
            current = find_relevant_iterations(project.iterations, now).current
            if current is None:
                continue
            for item in project.items:
                if item.iteration != current.title:
                    continue
                if not url_in_repo(item.url, full_repo):
                    continue
                if user is not None and user not in item.assignees:
                    continue
                if _is_done(item):
                    continue

                key = (full_repo, item.number)
                existing = by_key.get(key)
                if existing is not None:
                    if not existing.status:
                        existing.status = item.status
                    continue
                plan = PlanItem(
                    repo=full_repo,
                    number=item.number,
                    title=item.title,
                    url=item.url,
                    status=item.status,
                    source="project_item",
                )
                by_key[key] = plan
                items.append(plan)

    logger.debug("Extracted %d plan items", len(items))
    return items


# ── Prompt and text rendering ──────────────────────────────────────────────

PROMPT_TEMPLATE = """\
You are a daily-report assistant. Write a work report from the activity data below.

Date range: {date_range}
User: {user}

Output exactly the following format and nothing else:

Today's work
<description>, <status>, <URL>

Tomorrow's plan
<description>, <URL>

Rules:
- One entry per line
- PR status: merged -> Merged, open with reviews -> Submitted (in review), \
open without reviews -> Submitted, draft -> Draft, closed -> Closed
- Issue status: open -> In progress, closed -> Closed
- Describe comment and review activity as: Discussed issue #N / Reviewed PR #N
- Tomorrow's plan comes from unfinished PRs and unfinished current-iteration items
- Do not include status or priority labels (Testing, In Development, Todo, P0, P1, ...) in the plan

Activity data:
"""


def build_prompt_template(since: datetime, until: datetime, user: str | None) -> str:
    date_range = f"{since:%Y-%m-%d} ~ {until:%Y-%m-%d}"
    return PROMPT_TEMPLATE.format(date_range=date_range, user=user or "(all users)")


def format_work_data(items: list[WorkItem]) -> str:
    if not items:
        return "(no work items for today)\n"
    lines: list[str] = []
    for item in items:
        ref = f"{item.repo}#{item.number} {item.title}"
        if item.kind == "pr":
            lines.append(
                f"- [PR] {ref} | State: {item.state} | Review: {item.review_info} | {item.url}"
            )
        elif item.kind == "issue":
            lines.append(f"- [Issue] {ref} | State: {item.state} | {item.url}")
        elif item.kind == "comment":
            lines.append(f"- [Comment] {ref} | {item.url}")
        elif item.kind == "review":
            lines.append(f"- [Review] {ref} | {item.url}")
    return "\n".join(lines) + "\n"


def format_plan_data(items: list[PlanItem]) -> str:
    if not items:
        return "(no plan items for tomorrow)\n"
    lines = []
    for item in items:
        status = f" | Status: {item.status}" if item.status else ""
        lines.append(
            f"- [{item.source}] {item.repo}#{item.number} {item.title}{status} | {item.url}"
        )
    return "\n".join(lines) + "\n"


def build_summary_prompt(
    reports: list[RepoReport],
    since: datetime,
    until: datetime,
    user: str | None,
    now: datetime | None = None,
) -> str:
    """Full prompt text, ready for the text-generation API or manual pasting."""
    work_items = extract_work_items(reports, user, now)
    plan_items = extract_plan_items(reports, user, now)
    return (
        build_prompt_template(since, until, user)
        + "\n=== Today's work data ===\n"
        + format_work_data(work_items)
        + "\n=== Tomorrow's plan data ===\n"
        + format_plan_data(plan_items)
    )


def render_summary(
    reports: list[RepoReport],
    since: datetime,
    until: datetime,
    user: str | None,
    now: datetime | None = None,
) -> str:
    """Structured work/plan blocks followed by the prompt to paste into an assistant."""
    work_items = extract_work_items(reports, user, now)
    plan_items = extract_plan_items(reports, user, now)
    return (
        "========== Today's work ==========\n"
        + format_work_data(work_items)
        + "\n========== Tomorrow's plan ==========\n"
        + format_plan_data(plan_items)
        + "\n========== Prompt (copy everything below into an assistant) ==========\n\n"
        + build_summary_prompt(reports, since, until, user, now)
    )
