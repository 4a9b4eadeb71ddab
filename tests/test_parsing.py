"""Tests for raw GitHub JSON parsing."""

from __future__ import annotations

from datetime import datetime, timezone

from gh_report.models import ItemKind
from gh_report.parsing import (
    number_from_url,
    parse_issue,
    parse_issue_comment,
    parse_iterations,
    parse_project_item,
    parse_pull_request,
    parse_review,
    parse_review_comment,
    parse_timestamp,
)


def test_parse_timestamp() -> None:
    assert parse_timestamp("2024-05-15T09:30:00Z") == datetime(2024, 5, 15, 9, 30, tzinfo=timezone.utc)
    assert parse_timestamp(None) is None
    assert parse_timestamp("") is None


def test_number_from_url() -> None:
    assert number_from_url("https://api.github.com/repos/o/r/issues/123") == 123
    assert number_from_url("https://api.github.com/repos/o/r/pulls/7/") == 7
    assert number_from_url("https://api.github.com/repos/o/r") is None
    assert number_from_url(None) is None


# ── REST ────────────────────────────────────────────────────────────────────


def test_parse_issue_tags_pull_requests() -> None:
    raw = {
        "number": 5,
        "title": "Crash on start",
        "state": "open",
        "user": {"login": "alice"},
        "assignees": [{"login": "bob"}, {"login": "alice"}],
        "created_at": "2024-05-15T08:00:00Z",
        "updated_at": "2024-05-15T09:00:00Z",
        "html_url": "https://github.com/o/r/issues/5",
    }
    issue = parse_issue(raw, "o", "r")
    assert issue.kind is ItemKind.ISSUE
    assert issue.author == "alice"
    assert issue.assignees == frozenset({"alice", "bob"})
    assert issue.closed_at is None

    as_pr = parse_issue({**raw, "pull_request": {"url": "..."}}, "o", "r")
    assert as_pr.kind is ItemKind.PULL_REQUEST


def test_parse_issue_tolerates_missing_fields() -> None:
    issue = parse_issue({"number": 1}, "o", "r")
    assert issue.author == "ghost"
    assert issue.title == ""
    assert issue.assignees == frozenset()


def test_parse_pull_request() -> None:
    pr = parse_pull_request(
        {
            "number": 42,
            "title": "Add feature",
            "state": "closed",
            "user": {"login": "alice"},
            "created_at": "2024-05-01T08:00:00Z",
            "updated_at": "2024-05-15T09:00:00Z",
            "closed_at": "2024-05-15T09:00:00Z",
            "merged_at": "2024-05-15T09:00:00Z",
            "draft": False,
            "html_url": "https://github.com/o/r/pull/42",
        },
        "o",
        "r",
    )
    assert pr.merged_at == datetime(2024, 5, 15, 9, 0, tzinfo=timezone.utc)
    assert pr.display_state == "merged"


def test_parse_comments_link_to_parent() -> None:
    comment = parse_issue_comment({
        "user": {"login": "bob"},
        "created_at": "2024-05-15T10:00:00Z",
        "issue_url": "https://api.github.com/repos/o/r/issues/12",
        "body": None,
        "html_url": "https://github.com/o/r/issues/12#issuecomment-1",
    })
    assert comment.parent_number == 12
    assert comment.body == ""

    review_comment = parse_review_comment({
        "user": {"login": "bob"},
        "created_at": "2024-05-15T10:00:00Z",
        "pull_request_url": "https://api.github.com/repos/o/r/pulls/13",
        "body": "nit",
        "path": "README.md",
    })
    assert review_comment.parent_number == 13
    assert review_comment.path == "README.md"


def test_parse_review() -> None:
    review = parse_review({"user": {"login": "carol"}, "state": "APPROVED"}, 42)
    assert (review.reviewer, review.state, review.pull_number) == ("carol", "APPROVED", 42)


# ── GraphQL ─────────────────────────────────────────────────────────────────


def test_parse_iterations_includes_completed() -> None:
    nodes = [
        {},
        None,
        {"id": "f1", "name": "Status"},
        {
            "id": "f2",
            "name": "Iteration",
            "configuration": {
                "iterations": [{"id": "i3", "title": "Sprint 3", "startDate": "2024-05-13", "duration": 14}],
                "completedIterations": [{"id": "i2", "title": "Sprint 2", "startDate": "2024-04-29", "duration": 14}],
            },
        },
    ]
    iterations = parse_iterations(nodes)
    assert [i.title for i in iterations] == ["Sprint 3", "Sprint 2"]
    assert iterations[0].start_date == "2024-05-13"
    assert iterations[0].duration == 14


def _raw_item(field_values: list, typename: str = "Issue", content: dict | None = None) -> dict:
    return {
        "type": "ISSUE",
        "content": content if content is not None else {
            "__typename": typename,
            "number": 7,
            "title": "Bug",
            "url": "https://github.com/o/r/issues/7",
            "state": "OPEN",
            "assignees": {"nodes": [{"login": "alice"}]},
        },
        "fieldValues": {"nodes": field_values},
    }


def test_parse_project_item() -> None:
    item = parse_project_item(_raw_item([
        {},
        {"title": "Sprint 3", "iterationId": "i3"},
        {"name": "In Progress", "field": {"name": "Status"}},
    ]))
    assert item is not None
    assert item.kind is ItemKind.ISSUE
    assert item.iteration == "Sprint 3"
    assert item.status == "In Progress"
    assert item.assignees == ("alice",)


def test_parse_project_item_prefers_status_field() -> None:
    item = parse_project_item(_raw_item([
        {"name": "P1", "field": {"name": "Priority"}},
        {"name": "Todo", "field": {"name": "Status"}},
        {"name": "Large", "field": {"name": "Size"}},
    ]))
    assert item.status == "Todo"

    without_status = parse_project_item(_raw_item([
        {"name": "P1", "field": {"name": "Priority"}},
        {"name": "Large", "field": {"name": "Size"}},
    ]))
    assert without_status.status == "P1"


def test_parse_project_item_kind_from_typename() -> None:
    item = parse_project_item(_raw_item([], typename="PullRequest"))
    assert item.kind is ItemKind.PULL_REQUEST


def test_parse_project_item_skips_drafts() -> None:
    assert parse_project_item(_raw_item([], content={"title": "Draft idea"})) is None
    assert parse_project_item({"content": None}) is None
