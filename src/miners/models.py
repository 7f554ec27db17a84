"""
Repository Mining Data Models.

Defines the value types exchanged between the watch-list, pull request sources
and the staleness analysis. Uses Pydantic for validation.
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator


class MalformedRepositoryEntry(ValueError):
    """Raised when a watch-list entry is not of the form ``owner/name``."""

    def __init__(self, entry: str):
        super().__init__(
            f"Invalid repo name supplied: {entry!r}. If repo name is "
            "github.com/owner/repo, supplied format is 'owner/repo'"
        )
        self.entry = entry


class RepositoryReference(BaseModel):
    """Identifies one watched repository."""

    model_config = ConfigDict(frozen=True)

    owner: str
    name: str

    @field_validator("owner", "name")
    def ensure_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be empty")
        return v

    @classmethod
    def parse(cls, entry: str) -> "RepositoryReference":
        """
        Build a reference from an ``owner/name`` string.

        Args:
            entry (str): Watch-list entry

        Returns:
            RepositoryReference: The parsed reference

        Raises:
            MalformedRepositoryEntry: If the entry does not have exactly two
                non-empty parts
        """
        parts = [part.strip() for part in entry.strip().split("/")]
        if len(parts) != 2 or not all(parts):
            raise MalformedRepositoryEntry(entry)
        return cls(owner=parts[0], name=parts[1])

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"

    def __str__(self) -> str:
        return self.full_name


class PullRequestSummary(BaseModel):
    """Open pull request as returned by a pull request source."""

    model_config = ConfigDict(frozen=True)

    id: int
    created_at: datetime
    url: Optional[str] = None
    repository: str = ""
    title: Optional[str] = None

    @field_validator("created_at")
    def ensure_timezone(cls, v: datetime) -> datetime:
        # PyGithub returns naive UTC timestamps in older releases
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @property
    def has_url(self) -> bool:
        return bool(self.url and self.url.strip())
