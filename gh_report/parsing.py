"""Convert raw GitHub REST/GraphQL JSON into model objects.

Missing optional fields fall back to empty values; parsing never errors on
absent keys.  Content that may be either an issue or a pull request is tagged
with an explicit ``ItemKind``.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any

from gh_report.models import (
    Issue,
    IssueComment,
    ItemKind,
    ProjectItem,
    ProjectIteration,
    PullRequest,
    Review,
    ReviewComment,
)

_TRAILING_NUMBER = re.compile(r"/(\d+)$")

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse an ISO-8601 API timestamp (``...Z``) into an aware datetime."""
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def number_from_url(url: str | None) -> int | None:
    """Return the trailing ``/<number>`` of an API URL, if any."""
    if not url:
        return None
    match = _TRAILING_NUMBER.search(url.rstrip("/"))
    return int(match.group(1)) if match else None


def _login(raw_user: dict[str, Any] | None) -> str:
    return (raw_user or {}).get("login", "ghost")


def _assignees(raw: dict[str, Any]) -> frozenset[str]:
    return frozenset(_login(a) for a in raw.get("assignees") or [])


# ── REST ────────────────────────────────────────────────────────────────────


def parse_issue(raw: dict[str, Any], owner: str, repo: str) -> Issue:
    """Build an ``Issue``; entries carrying a ``pull_request`` object are tagged as PRs."""
    return Issue(
        owner=owner,
        repo=repo,
        number=raw.get("number", 0),
        title=raw.get("title", ""),
        state=raw.get("state", ""),
        author=_login(raw.get("user")),
        assignees=_assignees(raw),
        created_at=parse_timestamp(raw.get("created_at")) or _EPOCH,
        updated_at=parse_timestamp(raw.get("updated_at")) or _EPOCH,
        closed_at=parse_timestamp(raw.get("closed_at")),
        url=raw.get("html_url", ""),
        kind=ItemKind.PULL_REQUEST if raw.get("pull_request") else ItemKind.ISSUE,
    )


def parse_pull_request(raw: dict[str, Any], owner: str, repo: str) -> PullRequest:
    return PullRequest(
        owner=owner,
        repo=repo,
        number=raw.get("number", 0),
        title=raw.get("title", ""),
        state=raw.get("state", ""),
        author=_login(raw.get("user")),
        assignees=_assignees(raw),
        created_at=parse_timestamp(raw.get("created_at")) or _EPOCH,
        updated_at=parse_timestamp(raw.get("updated_at")) or _EPOCH,
        closed_at=parse_timestamp(raw.get("closed_at")),
        merged_at=parse_timestamp(raw.get("merged_at")),
        draft=bool(raw.get("draft", False)),
        url=raw.get("html_url", ""),
    )


def parse_issue_comment(raw: dict[str, Any]) -> IssueComment:
    return IssueComment(
        author=_login(raw.get("user")),
        created_at=parse_timestamp(raw.get("created_at")) or _EPOCH,
        parent_number=number_from_url(raw.get("issue_url")),
        body=raw.get("body") or "",
        url=raw.get("html_url", ""),
    )


def parse_review_comment(raw: dict[str, Any]) -> ReviewComment:
    return ReviewComment(
        author=_login(raw.get("user")),
        created_at=parse_timestamp(raw.get("created_at")) or _EPOCH,
        parent_number=number_from_url(raw.get("pull_request_url")),
        body=raw.get("body") or "",
        url=raw.get("html_url", ""),
        path=raw.get("path") or "",
    )


def parse_review(raw: dict[str, Any], pull_number: int) -> Review:
    return Review(
        reviewer=_login(raw.get("user")),
        state=raw.get("state", ""),
        pull_number=pull_number,
    )


# ── GraphQL (Projects v2) ──────────────────────────────────────────────────


def parse_iterations(field_nodes: list[dict[str, Any] | None]) -> list[ProjectIteration]:
    """Collect current and completed iterations from a project's field nodes.

    Non-iteration fields come back as empty objects and are skipped.
    """
    iterations: list[ProjectIteration] = []
    for node in field_nodes:
        if not node or not node.get("id"):
            continue
        config = node.get("configuration") or {}
        for raw in (config.get("iterations") or []) + (
            config.get("completedIterations") or []
        ):
            iterations.append(ProjectIteration(
                id=raw.get("id", ""),
                title=raw.get("title", ""),
                start_date=raw.get("startDate", ""),
                duration=raw.get("duration", 0),
            ))
    return iterations


def parse_project_item(raw: dict[str, Any]) -> ProjectItem | None:
    """Build a ``ProjectItem``; returns ``None`` for draft items without content."""
    content = raw.get("content") or {}
    number = content.get("number")
    if not number:
        return None

    typename = content.get("__typename") or raw.get("type", "")
    kind = ItemKind.PULL_REQUEST if typename in ("PullRequest", "PULL_REQUEST") else ItemKind.ISSUE

    iteration = ""
    status = ""
    status_from_field = False
    for value in (raw.get("fieldValues") or {}).get("nodes") or []:
        if not value:
            continue
        if value.get("iterationId"):
            iteration = value.get("title", "")
        elif value.get("name") and not status_from_field:
            # Prefer the field literally named "Status" over other selects.
            field_name = (value.get("field") or {}).get("name", "")
            if field_name.lower() == "status":
                status = value["name"]
                status_from_field = True
            elif not status:
                status = value["name"]

    return ProjectItem(
        number=number,
        title=content.get("title", ""),
        url=content.get("url", ""),
        state=content.get("state", ""),
        kind=kind,
        iteration=iteration,
        status=status,
        assignees=tuple(
            _login(a) for a in (content.get("assignees") or {}).get("nodes") or []
        ),
    )
