"""Sectioned CSV rendering of the collected reports.

Sections, in order: Issues, Pull Requests, Issue Comments, Review Comments,
Project Items.  Each is a bare title line, a CSV header and its rows; a blank
line separates sections and empty sections are skipped.
"""

from __future__ import annotations

import csv
from datetime import datetime
from typing import TextIO

from gh_report.activity import local_now
from gh_report.config import COMMENT_BODY_MAX
from gh_report.iterations import find_relevant_iterations
from gh_report.models import RepoReport
from gh_report.summary import build_review_summary, url_in_repo

ISSUE_HEADER = ["Repo", "Number", "Title", "State", "User", "Date"]
PR_HEADER = ["Repo", "Number", "Title", "State", "User", "Date", "Reviews"]
ISSUE_COMMENT_HEADER = ["Repo", "Issue Number", "User", "Date", "Body"]
REVIEW_COMMENT_HEADER = ["Repo", "PR Number", "User", "Date", "Path", "Body"]
PROJECT_ITEM_HEADER = [
    "Repo", "Project", "Iteration", "Category", "Number", "Title", "State", "Status",
]


def truncate(text: str, max_len: int = COMMENT_BODY_MAX) -> str:
    """Flatten to one line and cut to *max_len* characters with ``...``."""
    text = text.replace("\r", "").replace("\n", " ")
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."


def _number(value: int | None) -> str:
    return "?" if value is None else str(value)


def _project_rows(rr: RepoReport, now: datetime) -> list[list[str]]:
    rows: list[list[str]] = []
    full_repo = rr.full_name
    for project in rr.projects:
        repo_items = [i for i in project.items if url_in_repo(i.url, full_repo)]
        if not repo_items:
            continue
        relevant = find_relevant_iterations(project.iterations, now)
        for category, iteration in (
            ("Previous", relevant.previous),
            ("Current", relevant.current),
            ("Next", relevant.next),
        ):
            if iteration is None:
                continue
            for item in repo_items:
                if item.iteration != iteration.title:
                    continue
                rows.append([
                    full_repo,
                    project.title,
                    iteration.title,
                    category,
                    str(item.number),
                    item.title,
                    item.state,
                    item.status,
                ])
    return rows


def write_report(
    out: TextIO,
    reports: list[RepoReport],
    now: datetime | None = None,
) -> None:
    """Write every repository's activity to *out* as sectioned CSV."""
    now = now or local_now()
    issue_rows: list[list[str]] = []
    pr_rows: list[list[str]] = []
    issue_comment_rows: list[list[str]] = []
    review_comment_rows: list[list[str]] = []
    project_item_rows: list[list[str]] = []

    for rr in reports:
        full_repo = rr.full_name

        for issue in rr.issues:
            issue_rows.append([
                full_repo,
                str(issue.number),
                issue.title,
                issue.state,
                issue.author,
                f"{issue.updated_at:%Y-%m-%d}",
            ])

        for pr in rr.pull_requests:
            pr_rows.append([
                full_repo,
                str(pr.number),
                pr.title,
                pr.display_state,
                pr.author,
                f"{pr.updated_at:%Y-%m-%d}",
                build_review_summary(rr.reviews.get(pr.number)),
            ])

        for c in rr.issue_comments:
            issue_comment_rows.append([
                full_repo,
                _number(c.parent_number),
                c.author,
                f"{c.created_at:%Y-%m-%d}",
                truncate(c.body.strip()),
            ])

        for c in rr.review_comments:
            review_comment_rows.append([
                full_repo,
                _number(c.parent_number),
                c.author,
                f"{c.created_at:%Y-%m-%d}",
                c.path,
                truncate(c.body.strip()),
            ])

        project_item_rows.extend(_project_rows(rr, now))

    sections = [
        ("Issues", ISSUE_HEADER, issue_rows),
        ("Pull Requests", PR_HEADER, pr_rows),
        ("Issue Comments", ISSUE_COMMENT_HEADER, issue_comment_rows),
        ("Review Comments", REVIEW_COMMENT_HEADER, review_comment_rows),
        ("Project Items", PROJECT_ITEM_HEADER, project_item_rows),
    ]

    writer = csv.writer(out, lineterminator="\n")
    first = True
    for title, header, rows in sections:
        if not rows:
            continue
        if not first:
            out.write("\n")
        first = False
        out.write(f"{title}\n")
        writer.writerow(header)
        writer.writerows(rows)
