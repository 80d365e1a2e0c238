"""Work-log entries appended to daily per-repository markdown files."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from models.task import TaskStatus, isoformat_now


@dataclass
class WorkLogMetadata:
    branch: Optional[str] = None
    github_issue: Optional[int] = None
    pr_url: Optional[str] = None
    tokens_used: Optional[int] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "WorkLogMetadata":
        data = data or {}
        return cls(
            branch=data.get("branch"),
            github_issue=data.get("githubIssue"),
            pr_url=data.get("prUrl"),
            tokens_used=data.get("tokensUsed"),
        )

    def to_dict(self) -> dict[str, Any]:
        payload = {
            "branch": self.branch,
            "githubIssue": self.github_issue,
            "prUrl": self.pr_url,
            "tokensUsed": self.tokens_used,
        }
        return {key: value for key, value in payload.items() if value is not None}


@dataclass
class WorkLogEntry:
    """A single append-only record in a repository's daily log."""

    task_id: str
    task_title: str
    repository: str
    status: TaskStatus
    timestamp: str = field(default_factory=isoformat_now)
    progress_update: Optional[str] = None
    issues_discovered: list[str] = field(default_factory=list)
    improvements_made: list[str] = field(default_factory=list)
    metadata: Optional[WorkLogMetadata] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "WorkLogEntry":
        metadata = data.get("metadata")
        return cls(
            task_id=data.get("taskId") or "",
            task_title=data.get("taskTitle") or "",
            repository=data.get("repository") or "",
            status=TaskStatus(data.get("status")),
            timestamp=data.get("timestamp") or isoformat_now(),
            progress_update=data.get("progressUpdate"),
            issues_discovered=list(data.get("issuesDiscovered") or []),
            improvements_made=list(data.get("improvementsMade") or []),
            metadata=WorkLogMetadata.from_dict(metadata) if isinstance(metadata, dict) else None,
        )

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "timestamp": self.timestamp,
            "taskId": self.task_id,
            "taskTitle": self.task_title,
            "repository": self.repository,
            "status": self.status.value,
        }
        if self.progress_update:
            payload["progressUpdate"] = self.progress_update
        if self.issues_discovered:
            payload["issuesDiscovered"] = list(self.issues_discovered)
        if self.improvements_made:
            payload["improvementsMade"] = list(self.improvements_made)
        if self.metadata is not None:
            payload["metadata"] = self.metadata.to_dict()
        return payload


@dataclass
class DailyWorkLog:
    date: str
    repository: str
    entries: list[WorkLogEntry] = field(default_factory=list)
    exists: bool = True

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DailyWorkLog":
        return cls(
            date=data.get("date", ""),
            repository=data.get("repository", ""),
            entries=[WorkLogEntry.from_dict(entry) for entry in data.get("entries") or []],
            exists=bool(data.get("exists", True)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date,
            "repository": self.repository,
            "entries": [entry.to_dict() for entry in self.entries],
            "exists": self.exists,
        }
