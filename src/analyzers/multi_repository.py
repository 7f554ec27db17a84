"""
Multi-Repository Stale Pull Request Aggregation Module.

This module queries every watched repository for its open pull requests, applies
the staleness filter and folds the results into a single StaleReport. It handles:

- Bounded concurrent repository queries
- Order-stable merging of per-repository results
- Per-repository failure isolation and logging
"""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Sequence

from config import logger
from analyzers.models import StaleReport
from analyzers.staleness import DEFAULT_STALE_THRESHOLD, select_stale
from miners.base import FetchError, PullRequestSource
from miners.models import PullRequestSummary, RepositoryReference


class StaleReportAggregator:
    """
    Coordinates the stale pull request lookup over multiple repositories.

    A repository whose query fails is logged and skipped; it never prevents
    the other repositories from being reported.

    Attributes:
        source (PullRequestSource): Provider of open pull requests.
        threshold (timedelta): Minimum age of a stale pull request.
        max_workers (int): Maximum number of concurrent repository queries.
    """

    def __init__(
        self,
        source: PullRequestSource,
        threshold: timedelta = DEFAULT_STALE_THRESHOLD,
        max_workers: int = 4,
    ):
        """Initialize the aggregator.

        Args:
            source (PullRequestSource): Provider of open pull requests.
            threshold (timedelta): Minimum age of a stale pull request.
            max_workers (int): Maximum number of concurrent repository queries.

        Raises:
            ValueError: If max_workers is lower than one or threshold is negative.
        """
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        if threshold < timedelta(0):
            raise ValueError("Staleness threshold must not be negative")
        self.source = source
        self.threshold = threshold
        self.max_workers = max_workers

    async def _query_repository(
        self, ref: RepositoryReference, semaphore: asyncio.Semaphore
    ) -> Optional[List[PullRequestSummary]]:
        async with semaphore:
            try:
                return await self.source.list_open_pull_requests(ref)
            except FetchError as e:
                logger.error(
                    {
                        "message": "Couldn't get pull requests",
                        "repository": str(ref),
                        "error": str(e.cause),
                    }
                )
                return None
            except Exception as e:
                logger.error(
                    {
                        "message": "Unexpected error while getting pull requests",
                        "repository": str(ref),
                        "error": str(e),
                    },
                    exc_info=True,
                )
                return None

    async def run(
        self, refs: Sequence[RepositoryReference], now: Optional[datetime] = None
    ) -> StaleReport:
        """
        Build the stale pull request report for the given repositories.

        Args:
            refs (Sequence[RepositoryReference]): Repositories to inspect, in order.
            now (Optional[datetime]): Reference time, defaults to the current UTC time.

        Returns:
            StaleReport: Stale pull request URLs in repository order, then
                source order within each repository.
        """
        now = now or datetime.now(timezone.utc)
        semaphore = asyncio.Semaphore(self.max_workers)

        # gather keeps the order of refs regardless of completion order
        results = await asyncio.gather(
            *(self._query_repository(ref, semaphore) for ref in refs)
        )

        stale_urls: List[str] = []
        failed_repositories: List[str] = []
        for ref, prs in zip(refs, results):
            if prs is None:
                failed_repositories.append(ref.full_name)
                continue

            stale_prs = select_stale(now, self.threshold, prs)
            for pr in stale_prs:
                if not pr.has_url:
                    logger.warning(
                        {
                            "message": "Skipping stale pull request without URL",
                            "repository": str(ref),
                            "pr_number": pr.id,
                        }
                    )
                    continue
                stale_urls.append(pr.url)

            logger.info(
                {
                    "message": "Repository inspected",
                    "repository": str(ref),
                    "open_prs_count": len(prs),
                    "stale_prs_count": len(stale_prs),
                }
            )

        return StaleReport(
            stale_count=len(stale_urls),
            stale_urls=stale_urls,
            failed_repositories=failed_repositories,
            generated_at=now,
        )
