"""Centralised configuration and constants."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from gh_report.exceptions import ConfigError

# ── GitHub API ──────────────────────────────────────────────────────────────
GITHUB_TOKEN: str | None = os.getenv("GITHUB_TOKEN")
GITHUB_API_BASE: str = "https://api.github.com"
GRAPHQL_URL: str = "https://api.github.com/graphql"
REQUEST_TIMEOUT: int = 30  # seconds

# ── Fetch settings ─────────────────────────────────────────────────────────
REST_PER_PAGE: int = 100
PROJECTS_PAGE_SIZE: int = 20
PROJECT_ITEMS_PAGE_SIZE: int = 100
RATE_LIMIT_BUFFER: int = 5
RETRY_MAX: int = 3
RETRY_BACKOFF: float = 2.0  # seconds, exponential base

# ── Anthropic API ──────────────────────────────────────────────────────────
ANTHROPIC_API_KEY: str | None = os.getenv("ANTHROPIC_API_KEY")
ANTHROPIC_BASE_URL: str | None = os.getenv("ANTHROPIC_BASE_URL")
ANTHROPIC_DEFAULT_BASE_URL: str = "https://api.anthropic.com"
ANTHROPIC_VERSION: str = "2023-06-01"
DEFAULT_MODEL: str = "claude-sonnet-4-20250514"
MAX_TOKENS: int = 4096
AI_REQUEST_TIMEOUT: int = 120  # seconds

# ── Report defaults ────────────────────────────────────────────────────────
DEFAULT_LOOKBACK_DAYS: int = 1
OUTPUT_FORMATS: tuple[str, ...] = ("csv", "summary")
COMMENT_BODY_MAX: int = 80


@dataclass
class Config:
    """Settings for one report run, merged from env, YAML file and flags."""

    repos: list[str] = field(default_factory=list)
    days: int = DEFAULT_LOOKBACK_DAYS
    user: str | None = None
    token: str | None = None
    format: str = "csv"
    ai: bool = False
    anthropic_key: str | None = None
    anthropic_base_url: str | None = None
    model: str = DEFAULT_MODEL

    def validate(self) -> list[str]:
        """Validate configuration values. Returns list of error messages."""
        errors: list[str] = []

        if not self.repos:
            errors.append("No repositories specified (use --repos or the config file)")
        if not self.token:
            errors.append(
                "No GitHub token provided (use --token, the config file or GITHUB_TOKEN)"
            )
        if self.days < 1:
            errors.append("days must be at least 1")
        if self.format not in OUTPUT_FORMATS:
            errors.append(
                f"Unknown format {self.format!r}, expected one of {', '.join(OUTPUT_FORMATS)}"
            )
        if self.ai and not self.anthropic_key:
            errors.append(
                "No Anthropic API key provided "
                "(use --anthropic-key, the config file or ANTHROPIC_API_KEY)"
            )

        return errors


def load_config_file(path: str | Path) -> dict[str, Any]:
    """Read a YAML config file into a plain mapping.

    Raises:
        ConfigError: If the file is missing, unparsable or not a mapping.
    """
    config_path = Path(path)
    if not config_path.is_file():
        raise ConfigError(f"Config file not found: {config_path}")

    try:
        data = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigError(f"Parsing config file {config_path}: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file must contain a mapping: {config_path}")
    return data


def split_repos(value: str | list[str] | None) -> list[str]:
    """Normalise a comma-separated string or list into stripped repo names."""
    if not value:
        return []
    if isinstance(value, str):
        value = value.split(",")
    return [str(r).strip() for r in value if str(r).strip()]


def build_config(
    path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> Config:
    """Merge defaults, environment, config file and explicit overrides.

    Precedence is ``overrides`` > config file > environment > defaults.
    Override values that are ``None`` count as "not given".
    """
    file_data = load_config_file(path) if path else {}
    given = {k: v for k, v in (overrides or {}).items() if v is not None}

    def pick(key: str, default: Any = None) -> Any:
        if key in given:
            return given[key]
        value = file_data.get(key)
        return default if value in (None, "") else value

    try:
        days = int(pick("days", DEFAULT_LOOKBACK_DAYS))
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"days must be an integer: {exc}") from exc

    return Config(
        repos=split_repos(pick("repos")),
        days=days,
        user=pick("user") or None,
        token=pick("token", GITHUB_TOKEN),
        format=pick("format", "csv"),
        ai=bool(pick("ai", False)),
        anthropic_key=pick("anthropic_key", ANTHROPIC_API_KEY),
        anthropic_base_url=pick("anthropic_base_url", ANTHROPIC_BASE_URL),
        model=pick("model", DEFAULT_MODEL),
    )
