"""
GitHub Pull Request Mining Module.

Queries the open pull requests of GitHub repositories and transforms them into
PullRequestSummary models. PyGithub is synchronous, so each query runs in a
worker thread to allow several repositories to be inspected concurrently.
"""

import asyncio
from datetime import datetime, timezone
from typing import List, Optional, Tuple

import requests
from github import Auth, Github, GithubException
from github.PullRequest import PullRequest
from github.Repository import Repository

from config import logger
from miners.base import FetchError, PullRequestSource
from miners.models import PullRequestSummary, RepositoryReference

DEFAULT_BASE_URL = "https://api.github.com"


class RateLimitExhausted(Exception):
    """Raised when no GitHub API calls remain until the rate limit resets."""


class GitHubMiner(PullRequestSource):
    """
    GitHubMiner lists the open pull requests of GitHub repositories.

    Authentication happens once at construction; the same client is reused for
    every repository of a pass.
    """

    def __init__(
        self,
        github_token: str,
        base_url: str = DEFAULT_BASE_URL,
        github: Optional[Github] = None,
    ):
        """Initialize GitHub miner with authentication and configuration.

        Args:
            github_token (str): GitHub API token for authentication.
            base_url (str): GitHub API base URL.
            github (Optional[Github]): Preconfigured client, mainly for tests.
        """
        self.github = github or Github(
            auth=Auth.Token(github_token), base_url=base_url
        )

    def _rate_limit_status(self) -> Tuple[int, int, datetime]:
        remaining, limit = self.github.rate_limiting
        reset_time = datetime.fromtimestamp(
            self.github.rate_limiting_resettime, tz=timezone.utc
        )
        return remaining, limit, reset_time

    def _check_rate_limit(self, check_name: str, enforce: bool = True) -> None:
        """
        Log the GitHub API rate limit status.

        Before the first request PyGithub fetches the status from the rate limit
        endpoint, which does not count against the quota.

        Args:
            check_name (str): Identifier for the rate limit check point.
            enforce (bool): Fail when the quota is exhausted. Checks made after
                a query only log, the query already succeeded.

        Raises:
            RateLimitExhausted: When no requests remain before the reset time.
        """
        remaining, limit, reset_time = self._rate_limit_status()
        now = datetime.now(timezone.utc)
        logger.debug(
            {
                "message": f"{check_name} API rate limit status",
                "remaining_points": remaining,
                "total_points": limit,
                "reset_time": reset_time.isoformat(),
                "minutes_to_reset": (reset_time - now).total_seconds() / 60,
            }
        )

        if 0 < remaining < (limit * 0.1):
            logger.warning(
                {
                    "message": "GitHub API rate limit running low",
                    "remaining_points": remaining,
                    "reset_time": reset_time.isoformat(),
                }
            )

        if enforce and remaining == 0 and reset_time > now:
            wait_time = (reset_time - now).total_seconds()
            logger.critical(
                {
                    "message": "GitHub API rate limit exhausted",
                    "reset_time": reset_time.isoformat(),
                    "wait_time_seconds": wait_time,
                }
            )
            raise RateLimitExhausted(
                f"GitHub API rate limit exhausted. Resets in {wait_time/60:.1f} minutes"
            )

    def _get_pr_data(
        self, pr: PullRequest, ref: RepositoryReference
    ) -> PullRequestSummary:
        """Convert a GitHub PullRequest object to a Pydantic model.

        Args:
            pr (PullRequest): The GitHub PullRequest object.
            ref (RepositoryReference): Repository the pull request belongs to.

        Returns:
            PullRequestSummary: A Pydantic model representing the PR.
        """
        return PullRequestSummary(
            id=pr.number,
            created_at=pr.created_at,
            url=pr.html_url,
            repository=ref.full_name,
            title=pr.title,
        )

    def _fetch_open_pull_requests(
        self, ref: RepositoryReference
    ) -> List[PullRequestSummary]:
        self._check_rate_limit("Repository lookup")
        repo: Repository = self.github.get_repo(ref.full_name)
        prs = [
            self._get_pr_data(pr, ref) for pr in repo.get_pulls(state="open")
        ]
        self._check_rate_limit("PR listing", enforce=False)
        return prs

    async def list_open_pull_requests(
        self, ref: RepositoryReference
    ) -> List[PullRequestSummary]:
        """
        List the open pull requests of a GitHub repository.

        Args:
            ref (RepositoryReference): The repository to query.

        Returns:
            List[PullRequestSummary]: Open pull requests in the order GitHub returns them.

        Raises:
            FetchError: If the repository cannot be queried.
        """
        logger.info({"message": "Listing open pull requests", "repository": str(ref)})

        try:
            prs = await asyncio.to_thread(self._fetch_open_pull_requests, ref)
        except (GithubException, requests.RequestException, RateLimitExhausted) as e:
            raise FetchError(ref, e) from e

        logger.debug(
            {
                "message": "Open pull requests listed",
                "repository": str(ref),
                "open_prs_count": len(prs),
            }
        )
        return prs
