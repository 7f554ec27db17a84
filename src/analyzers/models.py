"""
Stale Pull Request Report Models.

Defines the aggregated result of one pass over the watch-list.
Uses Pydantic for validation and serialization.
"""

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator


class StaleReport(BaseModel):
    """
    Stale pull requests found across all watched repositories.

    Attributes:
        stale_count (int): Number of stale pull requests
        stale_urls (List[str]): Links to the stale pull requests, in watch-list
            order then source order within a repository
        failed_repositories (List[str]): Repositories whose query failed
        generated_at (datetime): When the report was produced
    """

    stale_count: int = Field(default=0, ge=0)
    stale_urls: List[str] = Field(default_factory=list)
    failed_repositories: List[str] = Field(default_factory=list)
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @model_validator(mode="after")
    def check_count_matches_urls(self) -> "StaleReport":
        if self.stale_count != len(self.stale_urls):
            raise ValueError(
                f"stale_count ({self.stale_count}) does not match the number "
                f"of stale URLs ({len(self.stale_urls)})"
            )
        return self

    @property
    def representative_url(self) -> Optional[str]:
        """Link shown in the notification: the first stale pull request, if any."""
        return self.stale_urls[0] if self.stale_urls else None

    @property
    def is_empty(self) -> bool:
        return self.stale_count == 0
