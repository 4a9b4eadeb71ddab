"""Exception hierarchy for gh-report."""


class ReportError(Exception):
    """Base exception for report errors."""

    pass


class ConfigError(ReportError):
    """Configuration is missing or invalid."""

    pass


class InvalidRepositoryError(ReportError):
    """Repository identifier is not in ``owner/name`` form."""

    def __init__(self, repository: str) -> None:
        super().__init__(f"invalid repo format {repository!r}, expected owner/repo")
        self.repository = repository


class GitHubAPIError(ReportError):
    """A GitHub REST or GraphQL request failed."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class CollectionError(ReportError):
    """A required retrieval for one repository failed."""

    def __init__(
        self, owner: str, repo: str, operation: str, number: int | None = None
    ) -> None:
        target = f"{owner}/{repo}" if number is None else f"{owner}/{repo}#{number}"
        super().__init__(f"{operation} for {target}")
        self.owner = owner
        self.repo = repo
        self.operation = operation
        self.number = number

    def __str__(self) -> str:
        base = super().__str__()
        if self.__cause__ is not None:
            return f"{base}: {self.__cause__}"
        return base


class SummaryGenerationError(ReportError):
    """The text-generation API call failed."""

    pass
