"""Data sources for the collector: the abstract capability and its GitHub implementation."""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone

from gh_report.config import PROJECT_ITEMS_PAGE_SIZE, PROJECTS_PAGE_SIZE, REST_PER_PAGE
from gh_report.exceptions import GitHubAPIError
from gh_report.github_client import GitHubClient
from gh_report.models import (
    Issue,
    IssueComment,
    Project,
    ProjectItem,
    PullRequest,
    Review,
    ReviewComment,
)
from gh_report.parsing import (
    parse_issue,
    parse_issue_comment,
    parse_iterations,
    parse_project_item,
    parse_pull_request,
    parse_review,
    parse_review_comment,
    parse_timestamp,
)

logger = logging.getLogger(__name__)


class DataSource(ABC):
    """Retrieval operations the collector depends on.

    Every operation paginates transparently and raises a single exception on
    transport or authentication failure.
    """

    @abstractmethod
    async def list_issues(self, owner: str, repo: str, since: datetime) -> list[Issue]:
        """Issues (and pull requests, tagged by kind) updated since *since*."""

    @abstractmethod
    async def list_pull_requests(
        self, owner: str, repo: str, since: datetime
    ) -> list[PullRequest]:
        """Pull requests updated since *since*, newest first."""

    @abstractmethod
    async def list_issue_comments(
        self, owner: str, repo: str, since: datetime
    ) -> list[IssueComment]:
        """Issue and PR conversation comments updated since *since*."""

    @abstractmethod
    async def list_review_comments(
        self, owner: str, repo: str, since: datetime
    ) -> list[ReviewComment]:
        """Line-level review comments updated since *since*."""

    @abstractmethod
    async def list_reviews(self, owner: str, repo: str, number: int) -> list[Review]:
        """All reviews of one pull request."""

    @abstractmethod
    async def list_projects(self, org: str) -> list[Project]:
        """Projects of an organization with their iterations and items."""


# ── GraphQL Queries ─────────────────────────────────────────────────────────

QUERY_PROJECTS = """
query($org: String!, $cursor: String) {
  organization(login: $org) {
    projectsV2(first: %d, after: $cursor) {
      pageInfo { hasNextPage endCursor }
      nodes {
        id
        title
        number
        fields(first: 30) {
          nodes {
            ... on ProjectV2IterationField {
              id
              name
              configuration {
                iterations { id title startDate duration }
                completedIterations { id title startDate duration }
              }
            }
          }
        }
      }
    }
  }
}
""" % PROJECTS_PAGE_SIZE

QUERY_PROJECT_ITEMS = """
query($projectId: ID!, $cursor: String) {
  node(id: $projectId) {
    ... on ProjectV2 {
      items(first: %d, after: $cursor) {
        pageInfo { hasNextPage endCursor }
        nodes {
          type
          content {
            __typename
            ... on Issue {
              title
              number
              url
              state
              assignees(first: 10) { nodes { login } }
            }
            ... on PullRequest {
              title
              number
              url
              state
              assignees(first: 10) { nodes { login } }
            }
          }
          fieldValues(first: 20) {
            nodes {
              ... on ProjectV2ItemFieldIterationValue {
                title
                iterationId
              }
              ... on ProjectV2ItemFieldSingleSelectValue {
                name
                field { ... on ProjectV2FieldCommon { name } }
              }
            }
          }
        }
      }
    }
  }
}
""" % PROJECT_ITEMS_PAGE_SIZE


def _iso(moment: datetime) -> str:
    return moment.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class GitHubSource(DataSource):
    """``DataSource`` backed by the GitHub REST and GraphQL APIs."""

    def __init__(self, client: GitHubClient) -> None:
        self._client = client

    # ── REST listings ───────────────────────────────────────────────────

    async def list_issues(self, owner: str, repo: str, since: datetime) -> list[Issue]:
        params = {
            "state": "all",
            "since": _iso(since),
            "sort": "updated",
            "per_page": REST_PER_PAGE,
        }
        issues: list[Issue] = []
        async for page in self._client.paginate(f"/repos/{owner}/{repo}/issues", params):
            issues.extend(parse_issue(raw, owner, repo) for raw in page)
        return issues

    async def list_pull_requests(
        self, owner: str, repo: str, since: datetime
    ) -> list[PullRequest]:
        """The pulls endpoint has no ``since`` filter: page through the
        newest-updated first and stop at the first PR older than *since*."""
        params = {
            "state": "all",
            "sort": "updated",
            "direction": "desc",
            "per_page": REST_PER_PAGE,
        }
        prs: list[PullRequest] = []
        async for page in self._client.paginate(f"/repos/{owner}/{repo}/pulls", params):
            for raw in page:
                updated_at = parse_timestamp(raw.get("updated_at"))
                if updated_at is not None and updated_at < since:
                    return prs
                prs.append(parse_pull_request(raw, owner, repo))
        return prs

    async def list_issue_comments(
        self, owner: str, repo: str, since: datetime
    ) -> list[IssueComment]:
        params = {"since": _iso(since), "sort": "updated", "per_page": REST_PER_PAGE}
        comments: list[IssueComment] = []
        async for page in self._client.paginate(
            f"/repos/{owner}/{repo}/issues/comments", params
        ):
            comments.extend(parse_issue_comment(raw) for raw in page)
        return comments

    async def list_review_comments(
        self, owner: str, repo: str, since: datetime
    ) -> list[ReviewComment]:
        params = {"since": _iso(since), "sort": "updated", "per_page": REST_PER_PAGE}
        comments: list[ReviewComment] = []
        async for page in self._client.paginate(
            f"/repos/{owner}/{repo}/pulls/comments", params
        ):
            comments.extend(parse_review_comment(raw) for raw in page)
        return comments

    async def list_reviews(self, owner: str, repo: str, number: int) -> list[Review]:
        reviews: list[Review] = []
        async for page in self._client.paginate(
            f"/repos/{owner}/{repo}/pulls/{number}/reviews",
            {"per_page": REST_PER_PAGE},
        ):
            reviews.extend(parse_review(raw, number) for raw in page)
        return reviews

    # ── Projects (GraphQL) ──────────────────────────────────────────────

    async def list_projects(self, org: str) -> list[Project]:
        """List projects with iterations, then fetch every project's items concurrently.

        Any project whose items cannot be fetched fails the whole call.
        """
        metas: list[tuple[str, Project]] = []
        cursor: str | None = None
        while True:
            data = await self._client.graphql(
                QUERY_PROJECTS, variables={"org": org, "cursor": cursor}
            )
            conn = ((data.get("organization") or {}).get("projectsV2")) or {}
            for node in conn.get("nodes") or []:
                if not node:
                    continue
                project = Project(
                    title=node.get("title", ""),
                    number=node.get("number", 0),
                    iterations=parse_iterations(
                        (node.get("fields") or {}).get("nodes") or []
                    ),
                )
                metas.append((node["id"], project))

            page_info = conn.get("pageInfo") or {}
            if not page_info.get("hasNextPage"):
                break
            cursor = page_info.get("endCursor")

        logger.debug("Organization %s: %d projects", org, len(metas))

        results = await asyncio.gather(
            *(self._fetch_project_items(project_id) for project_id, _ in metas),
            return_exceptions=True,
        )
        projects: list[Project] = []
        for (_, project), result in zip(metas, results):
            if isinstance(result, Exception):
                raise GitHubAPIError(
                    f"fetching items for project {project.title!r}: {result}"
                ) from result
            if isinstance(result, BaseException):
                raise result
            project.items = result
            projects.append(project)
        return projects

    async def _fetch_project_items(self, project_id: str) -> list[ProjectItem]:
        """Page through all items of one project, skipping draft items."""
        items: list[ProjectItem] = []
        cursor: str | None = None
        while True:
            data = await self._client.graphql(
                QUERY_PROJECT_ITEMS,
                variables={"projectId": project_id, "cursor": cursor},
            )
            conn = ((data.get("node") or {}).get("items")) or {}
            for node in conn.get("nodes") or []:
                item = parse_project_item(node or {})
                if item is not None:
                    items.append(item)

            page_info = conn.get("pageInfo") or {}
            if not page_info.get("hasNextPage"):
                break
            cursor = page_info.get("endCursor")
        return items
