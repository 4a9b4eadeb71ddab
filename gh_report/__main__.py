"""Entry-point for ``python -m gh_report`` and the ``gh-report`` command."""

from __future__ import annotations

import argparse
import logging
import sys

from gh_report import __version__
from gh_report.config import OUTPUT_FORMATS, build_config
from gh_report.exceptions import ReportError
from gh_report.runner import generate_report

logger = logging.getLogger("gh_report")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gh-report",
        description=(
            "Collect recent issues, pull requests, comments, reviews and "
            "project iterations from GitHub repositories and turn them into a "
            "daily work report."
        ),
        epilog=(
            "examples:\n"
            "  gh-report -c config.yaml\n"
            "  gh-report -r owner/repo1,owner/repo2 -d 7 -u mylogin\n"
            "  gh-report -c config.yaml -f summary\n"
            "  gh-report -c config.yaml -f summary --ai"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-c", "--config", help="YAML config file")
    parser.add_argument("-r", "--repos", help="comma-separated owner/repo list")
    parser.add_argument("-d", "--days", type=int, help="lookback window in days (default: 1)")
    parser.add_argument("-u", "--user", help="only include activity by this login")
    parser.add_argument("--token", help="GitHub token (default: $GITHUB_TOKEN)")
    parser.add_argument(
        "-f", "--format", choices=OUTPUT_FORMATS, help="output format (default: csv)"
    )
    parser.add_argument(
        "--ai",
        action="store_true",
        default=None,
        help="generate the summary with the Anthropic API",
    )
    parser.add_argument(
        "--anthropic-key", help="Anthropic API key (default: $ANTHROPIC_API_KEY)"
    )
    parser.add_argument(
        "--anthropic-base-url",
        help="Anthropic API base URL (default: $ANTHROPIC_BASE_URL)",
    )
    parser.add_argument("--model", help="model name for --ai")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    parser.add_argument(
        "--version", action="version", version=f"gh-report {__version__}"
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Parse arguments, run the report and return the exit status."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s",
        stream=sys.stderr,
    )

    try:
        config = build_config(
            args.config,
            {
                "repos": args.repos,
                "days": args.days,
                "user": args.user,
                "token": args.token,
                "format": args.format,
                "ai": args.ai,
                "anthropic_key": args.anthropic_key,
                "anthropic_base_url": args.anthropic_base_url,
                "model": args.model,
            },
        )
        generate_report(config, sys.stdout)
    except ReportError as exc:
        logger.error("%s", exc)
        return 1
    except KeyboardInterrupt:
        logger.error("Interrupted")
        return 130
    return 0


if __name__ == "__main__":
    sys.exit(main())
