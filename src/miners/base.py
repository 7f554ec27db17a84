"""
Abstract Base Class for Pull Request Sources.

Defines the interface for querying the open pull requests of a repository.
All sources (GitHub, GitLab, etc.) should implement this interface.
"""

from abc import ABC, abstractmethod
from typing import List

from miners.models import PullRequestSummary, RepositoryReference


class FetchError(Exception):
    """
    Raised when the open pull requests of a repository cannot be retrieved.

    Attributes:
        repository (RepositoryReference): Repository whose query failed.
        cause (BaseException): Underlying transport, authorization or API error.
    """

    def __init__(self, repository: RepositoryReference, cause: BaseException):
        super().__init__(
            f"Couldn't get pull requests for {repository.full_name}: {cause}"
        )
        self.repository = repository
        self.cause = cause


class PullRequestSource(ABC):
    """
    Abstract base class for pull request sources.

    Implementations should handle:
    - Authentication with the repository service (once, at construction)
    - Querying the pull requests that are open at call time
    - Transformation to PullRequestSummary models, preserving upstream order
    """

    @abstractmethod
    async def list_open_pull_requests(
        self, ref: RepositoryReference
    ) -> List[PullRequestSummary]:
        """
        Return the currently open pull requests of a repository.

        A single attempt is made; callers decide what to do on failure.

        Args:
            ref (RepositoryReference): Repository to query

        Returns:
            List[PullRequestSummary]: Open pull requests in upstream order

        Raises:
            FetchError: If the query fails
        """
        pass
