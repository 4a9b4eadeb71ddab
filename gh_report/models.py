"""Domain models for gh-report."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class ItemKind(str, Enum):
    """Discriminant for content that may be either an issue or a pull request."""

    ISSUE = "Issue"
    PULL_REQUEST = "PullRequest"


class IterationCategory(str, Enum):
    """Where an iteration sits relative to a reference date."""

    PREVIOUS = "previous"
    CURRENT = "current"
    NEXT = "next"


# ── Activity records ────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Issue:
    """An issue as returned by the issues endpoint.

    ``kind`` is ``PULL_REQUEST`` when the endpoint handed back a pull request;
    the collector drops those.
    """

    owner: str
    repo: str
    number: int
    title: str
    state: str  # open, closed
    author: str
    assignees: frozenset[str]
    created_at: datetime
    updated_at: datetime
    url: str
    closed_at: datetime | None = None
    kind: ItemKind = ItemKind.ISSUE


@dataclass(frozen=True)
class PullRequest:
    """A pull request with its lifecycle timestamps."""

    owner: str
    repo: str
    number: int
    title: str
    state: str  # open, closed
    author: str
    assignees: frozenset[str]
    created_at: datetime
    updated_at: datetime
    url: str
    closed_at: datetime | None = None
    merged_at: datetime | None = None
    draft: bool = False

    @property
    def display_state(self) -> str:
        """``merged``, ``draft`` or the raw state."""
        if self.merged_at is not None:
            return "merged"
        if self.draft:
            return "draft"
        return self.state


@dataclass(frozen=True)
class IssueComment:
    """A conversation comment on an issue or pull request."""

    author: str
    created_at: datetime
    parent_number: int | None
    body: str
    url: str


@dataclass(frozen=True)
class ReviewComment:
    """A line-level review comment on a pull request."""

    author: str
    created_at: datetime
    parent_number: int | None
    body: str
    url: str
    path: str = ""


@dataclass(frozen=True)
class Review:
    """A review submitted on a pull request."""

    reviewer: str
    state: str  # APPROVED, CHANGES_REQUESTED, COMMENTED, DISMISSED, PENDING
    pull_number: int


# ── Projects and iterations ────────────────────────────────────────────────


@dataclass(frozen=True)
class ProjectIteration:
    """One iteration (sprint) of a project's iteration field."""

    id: str
    title: str
    start_date: str  # YYYY-MM-DD
    duration: int  # days


@dataclass(frozen=True)
class ProjectItem:
    """An issue or pull request tracked by a project."""

    number: int
    title: str
    url: str
    state: str  # OPEN, CLOSED, MERGED
    kind: ItemKind
    iteration: str = ""
    status: str = ""
    assignees: tuple[str, ...] = ()


@dataclass
class Project:
    """A project with its iterations and items."""

    title: str
    number: int
    iterations: list[ProjectIteration] = field(default_factory=list)
    items: list[ProjectItem] = field(default_factory=list)


@dataclass(frozen=True)
class RelevantIterations:
    """At most one previous, current and next iteration."""

    previous: ProjectIteration | None = None
    current: ProjectIteration | None = None
    next: ProjectIteration | None = None


# ── Collection ──────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Options:
    """Parameters of one collection run."""

    repos: list[str]
    days: int = 1
    user: str | None = None


@dataclass
class RepoReport:
    """Everything collected for one repository."""

    owner: str
    repo: str
    issues: list[Issue] = field(default_factory=list)
    pull_requests: list[PullRequest] = field(default_factory=list)
    issue_comments: list[IssueComment] = field(default_factory=list)
    review_comments: list[ReviewComment] = field(default_factory=list)
    reviews: dict[int, list[Review]] = field(default_factory=dict)
    projects: list[Project] = field(default_factory=list)

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"


# ── Synthesized output ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class WorkItem:
    """One entry of today's work."""

    kind: str  # pr, issue, comment, review
    repo: str
    number: int
    title: str
    url: str
    state: str = ""
    review_info: str = ""


@dataclass
class PlanItem:
    """One entry of tomorrow's plan."""

    repo: str
    number: int
    title: str
    url: str
    source: str  # open_pr, project_item
    status: str = ""

    @property
    def key(self) -> tuple[str, int]:
        return (self.repo, self.number)
