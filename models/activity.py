"""Activity log records of user actions and system events."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import StrEnum
from typing import Any, Optional

from models.task import isoformat_now


class ActivityType(StrEnum):
    CONNECTION = "connection"
    TASK = "task"
    GITHUB = "github"
    NAVIGATION = "navigation"


class ActivityLevel(StrEnum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class ActivityEvent(StrEnum):
    """Values stored in a record's ``userAction`` metadata."""

    REPOSITORY_CONNECTED = "repository_connected"
    REPOSITORY_DISCONNECTED = "repository_disconnected"
    REPOSITORY_CONNECTION_FAILED = "repository_connection_failed"
    TASK_CREATED = "task_created"
    TASK_STARTED = "task_started"
    TASK_COMPLETED = "task_completed"
    TASK_FAILED = "task_failed"
    TASK_CANCELLED = "task_cancelled"
    TASK_UPDATED = "task_updated"
    GITHUB_SYNC_STARTED = "github_sync_started"
    GITHUB_SYNC_COMPLETED = "github_sync_completed"
    GITHUB_SYNC_FAILED = "github_sync_failed"
    GITHUB_API_CALL = "github_api_call"
    GITHUB_RATE_LIMIT_WARNING = "github_rate_limit_warning"
    GITHUB_RATE_LIMIT_EXCEEDED = "github_rate_limit_exceeded"
    TAB_SWITCHED = "tab_switched"
    WORKSPACE_OPENED = "workspace_opened"
    WORKSPACE_CLOSED = "workspace_closed"
    APP_INITIALIZED = "app_initialized"
    ERROR_OCCURRED = "error_occurred"


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp; a trailing ``Z`` or no offset means UTC."""
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass
class ActivityLog:
    id: str
    type: ActivityType
    level: ActivityLevel
    title: str
    description: str
    timestamp: str = field(default_factory=isoformat_now)
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def created(self) -> datetime:
        return parse_timestamp(self.timestamp)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ActivityLog":
        return cls(
            id=str(data["id"]),
            type=ActivityType(data["type"]),
            level=ActivityLevel(data["level"]),
            title=data.get("title") or "",
            description=data.get("description") or "",
            timestamp=data.get("timestamp") or isoformat_now(),
            metadata=dict(data.get("metadata") or {}),
        )

    def to_dict(self) -> dict[str, Any]:
        payload = {
            "id": self.id,
            "timestamp": self.timestamp,
            "type": self.type.value,
            "level": self.level.value,
            "title": self.title,
            "description": self.description,
        }
        if self.metadata:
            payload["metadata"] = self.metadata
        return payload


@dataclass
class ActivityLogFilter:
    """Criteria for narrowing the activity log; unset fields match everything."""

    type: Optional[ActivityType] = None
    level: Optional[ActivityLevel] = None
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    search_query: Optional[str] = None
    repository_id: Optional[int] = None

    def matches(self, log: ActivityLog) -> bool:
        if self.type and log.type != self.type:
            return False
        if self.level and log.level != self.level:
            return False
        if self.start or self.end:
            created = log.created
            if self.start and created < self.start:
                return False
            if self.end and created > self.end:
                return False
        if self.search_query:
            query = self.search_query.lower()
            haystack = (
                log.title,
                log.description,
                log.metadata.get("repositoryName") or "",
                log.metadata.get("taskTitle") or "",
            )
            if not any(query in text.lower() for text in haystack):
                return False
        if self.repository_id is not None and log.metadata.get("repositoryId") != self.repository_id:
            return False
        return True
