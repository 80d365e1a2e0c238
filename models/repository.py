"""Normalized GitHub repository data returned to the dashboard."""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Optional


@dataclass
class Repository:
    """Snapshot of a GitHub repository, fetched per request and never persisted."""

    id: int
    name: str
    full_name: str
    description: Optional[str]
    visibility: str
    is_private: bool
    is_fork: bool
    language: Optional[str]
    star_count: int
    fork_count: int
    size: int
    last_pushed_at: Optional[str]
    created_at: Optional[str]
    updated_at: Optional[str]
    url: str
    clone_url: str
    topics: list[str] = field(default_factory=list)
    has_issues: bool = True
    is_archived: bool = False
    default_branch: str = "main"
    open_issues_count: int = 0

    @classmethod
    def from_github(cls, payload: dict[str, Any]) -> "Repository":
        private = bool(payload.get("private", False))
        visibility = payload.get("visibility") or ("private" if private else "public")
        return cls(
            id=payload["id"],
            name=payload.get("name", ""),
            full_name=payload.get("full_name", ""),
            description=payload.get("description") or None,
            visibility=visibility,
            is_private=private,
            is_fork=bool(payload.get("fork", False)),
            language=payload.get("language") or None,
            star_count=payload.get("stargazers_count") or 0,
            fork_count=payload.get("forks_count") or 0,
            size=payload.get("size") or 0,
            last_pushed_at=payload.get("pushed_at"),
            created_at=payload.get("created_at"),
            updated_at=payload.get("updated_at"),
            url=payload.get("html_url", ""),
            clone_url=payload.get("clone_url", ""),
            topics=list(payload.get("topics") or []),
            has_issues=bool(payload.get("has_issues", True)),
            is_archived=bool(payload.get("archived", False)),
            default_branch=payload.get("default_branch") or "main",
            open_issues_count=payload.get("open_issues_count") or 0,
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class RateLimitInfo:
    remaining: int
    reset_at: str


@dataclass
class RepositoriesPage:
    """One page of ``/user/repos``.

    ``total_count`` is an estimate: the listing endpoint exposes no total,
    so it is derived from the ``Link`` header and the page size.
    """

    repositories: list[Repository]
    total_count: int
    has_next_page: bool
    next_cursor: Optional[str]
    rate_limit: RateLimitInfo

    def to_dict(self) -> dict[str, Any]:
        return {
            "repositories": [repo.to_dict() for repo in self.repositories],
            "total_count": self.total_count,
            "has_next_page": self.has_next_page,
            "next_cursor": self.next_cursor,
            "rate_limit": asdict(self.rate_limit),
        }


@dataclass
class SearchResult:
    repositories: list[Repository]
    total_count: int
    incomplete_results: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "repositories": [repo.to_dict() for repo in self.repositories],
            "total_count": self.total_count,
            "incomplete_results": self.incomplete_results,
        }
