"""
Pull request staleness filter.

A pull request is stale when it was created strictly before ``now - threshold``.
"""

from datetime import datetime, timedelta
from typing import Iterable, List

from miners.models import PullRequestSummary

# Two days times two: open for four days before a pull request is reported
DEFAULT_STALE_THRESHOLD = timedelta(hours=2 * 2 * 24)


def is_stale(pr: PullRequestSummary, now: datetime, threshold: timedelta) -> bool:
    """Return True if ``pr`` was created strictly before the staleness cutoff."""
    if threshold < timedelta(0):
        raise ValueError("Staleness threshold must not be negative")
    return pr.created_at < now - threshold


def select_stale(
    now: datetime, threshold: timedelta, prs: Iterable[PullRequestSummary]
) -> List[PullRequestSummary]:
    """
    Select the stale pull requests, keeping their input order.

    Args:
        now (datetime): Reference time, timezone aware
        threshold (timedelta): Minimum age of a stale pull request
        prs (Iterable[PullRequestSummary]): Pull requests to filter

    Returns:
        List[PullRequestSummary]: The stale pull requests

    Raises:
        ValueError: If the threshold is negative
    """
    if threshold < timedelta(0):
        raise ValueError("Staleness threshold must not be negative")
    cutoff = now - threshold
    return [pr for pr in prs if pr.created_at < cutoff]
