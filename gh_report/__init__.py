"""gh-report: daily work reports from GitHub activity."""

__version__ = "0.1.0"
