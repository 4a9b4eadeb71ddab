"""Wire configuration, GitHub collection and output rendering together."""

from __future__ import annotations

import asyncio
import logging
from typing import TextIO

from gh_report.activity import local_now, lookback_cutoff
from gh_report.anthropic_client import AnthropicClient
from gh_report.collector import collect
from gh_report.config import Config
from gh_report.exceptions import ConfigError
from gh_report.github_client import GitHubClient
from gh_report.models import Options, RepoReport
from gh_report.printer import write_report
from gh_report.progress import LoggingProgress, ProgressObserver
from gh_report.source import GitHubSource
from gh_report.summary import build_summary_prompt, render_summary

logger = logging.getLogger(__name__)


async def fetch_reports(
    options: Options,
    token: str | None,
    progress: ProgressObserver | None = None,
) -> list[RepoReport]:
    """Collect *options* from GitHub with a client scoped to this call."""
    async with GitHubClient(token) as client:
        return await collect(GitHubSource(client), options, progress)


def generate_report(config: Config, out: TextIO) -> None:
    """Run one report end to end and write the result to *out*.

    Raises:
        ConfigError: If *config* does not validate.
        ReportError: If collection or text generation fails. Nothing is
            written to *out* in that case.
    """
    errors = config.validate()
    if errors:
        raise ConfigError("; ".join(errors))

    options = Options(repos=config.repos, days=config.days, user=config.user)
    reports = asyncio.run(
        fetch_reports(options, config.token, LoggingProgress(config.repos))
    )

    now = local_now()
    since = lookback_cutoff(config.days, now)

    if config.format == "summary":
        if config.ai:
            prompt = build_summary_prompt(reports, since, now, config.user, now)
            with AnthropicClient(
                config.anthropic_key or "", config.model, config.anthropic_base_url
            ) as ai:
                text = ai.create_message(prompt)
            out.write(text.rstrip("\n") + "\n")
        else:
            out.write(render_summary(reports, since, now, config.user, now))
    else:
        write_report(out, reports, now)
