"""GitHub pull request lookups."""

from .enricher import PullRequestEnricher

__all__ = ["PullRequestEnricher"]
