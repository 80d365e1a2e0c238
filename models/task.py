"""A task is a unit of work tracked against a repository

Each task lives in its own markdown file named after its id.
The file starts with a front-matter block holding the task metadata,
followed by free-form markdown describing the work.
The id of a task never changes once the file is created.
A task moves between pending, in_progress, completed and failed.
The dashboard works with a flattened Task projection of the file.

"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import StrEnum
from typing import Any, Optional

import bleach
from markdown import markdown as render_markdown
from markupsafe import Markup

DESCRIPTION_MAX_LENGTH = 200
DESCRIPTION_MAX_LINES = 3


def isoformat_now() -> str:
    """Current UTC time in the ``2024-01-01T12:00:00.000Z`` form used on the wire."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def render_task_description_html(description: Optional[str]) -> Markup:
    """Render task description Markdown into sanitized HTML."""
    if not description:
        return Markup("")
    html = render_markdown(
        description,
        extensions=["extra", "sane_lists", "codehilite"],
        output_format="html5",
        tab_length=2,
    )
    allowed_tags = list(bleach.sanitizer.ALLOWED_TAGS) + [
        "p",
        "pre",
        "code",
        "ul",
        "ol",
        "li",
        "table",
        "thead",
        "tbody",
        "tr",
        "th",
        "td",
        "div",
        "span",
        "h1",
        "h2",
        "h3",
        "h4",
        "hr",
        "br",
    ]
    allowed_attributes = {
        **bleach.sanitizer.ALLOWED_ATTRIBUTES,
        "a": ["href", "title", "target", "rel"],
        "code": ["class"],
    }
    sanitized_html = bleach.clean(html, tags=allowed_tags, attributes=allowed_attributes)
    return Markup(sanitized_html)


class TaskStatus(StrEnum):
    """Lifecycle states for tasks and work-log entries."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


class CheckStatus(StrEnum):
    """Outcome of a build or lint run attached to a task."""

    PENDING = "pending"
    SUCCESS = "success"
    FAILURE = "failure"


# attribute name -> front-matter key
_WIRE_KEYS = {
    "id": "id",
    "title": "title",
    "status": "status",
    "repository": "repository",
    "epic": "epic",
    "branch": "branch",
    "created_at": "createdAt",
    "updated_at": "updatedAt",
    "started_at": "startedAt",
    "completed_at": "completedAt",
    "tokens_used": "tokensUsed",
    "github_issue": "githubIssue",
    "pr_url": "prUrl",
    "build_status": "buildStatus",
    "lint_status": "lintStatus",
    "error_message": "errorMessage",
}
_ATTRIBUTES = {wire: attr for attr, wire in _WIRE_KEYS.items()}


def to_wire_keys(data: dict[str, Any]) -> dict[str, Any]:
    """Translate attribute-style keys (``pr_url``) to front-matter keys (``prUrl``)."""
    return {_WIRE_KEYS.get(key, key): value for key, value in (data or {}).items()}


def _optional_check_status(value: Any) -> Optional[CheckStatus]:
    if value in (None, ""):
        return None
    return CheckStatus(value)


@dataclass
class TaskFileMetadata:
    id: str
    title: str
    status: TaskStatus = TaskStatus.PENDING
    repository: str = ""
    epic: str = ""
    branch: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    started_at: Optional[str] = None
    completed_at: Optional[str] = None
    tokens_used: int = 0
    github_issue: Optional[int] = None
    pr_url: Optional[str] = None
    build_status: Optional[CheckStatus] = None
    lint_status: Optional[CheckStatus] = None
    error_message: Optional[str] = None
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TaskFileMetadata":
        """Build metadata from front-matter or JSON keys.

        Accepts both the camelCase wire keys and attribute names. Keys that
        are not part of the model are kept in ``extra`` so that a rewrite
        does not drop them.
        """
        values: dict[str, Any] = {}
        extra: dict[str, Any] = {}
        for key, value in (data or {}).items():
            attribute = _ATTRIBUTES.get(key) or (key if key in _WIRE_KEYS else None)
            if attribute is None:
                extra[key] = value
            else:
                values[attribute] = value
        if not values.get("id") or not values.get("title"):
            raise ValueError("Task ID and title are required")
        values["id"] = str(values["id"])
        values["title"] = str(values["title"])
        values["status"] = TaskStatus(values.get("status") or TaskStatus.PENDING)
        values["build_status"] = _optional_check_status(values.get("build_status"))
        values["lint_status"] = _optional_check_status(values.get("lint_status"))
        values["tokens_used"] = int(values.get("tokens_used") or 0)
        if values.get("github_issue") not in (None, ""):
            values["github_issue"] = int(values["github_issue"])
        else:
            values["github_issue"] = None
        for key in ("repository", "epic"):
            values[key] = str(values.get(key) or "")
        return cls(extra=extra, **values)

    def to_dict(self) -> dict[str, Any]:
        """Serialize with wire keys, omitting unset optional values."""
        payload: dict[str, Any] = {}
        for attribute, wire in _WIRE_KEYS.items():
            value = getattr(self, attribute)
            if value is None:
                continue
            if isinstance(value, StrEnum):
                value = value.value
            payload[wire] = value
        for key, value in self.extra.items():
            if key not in payload and value is not None:
                payload[key] = value
        return payload


@dataclass
class TaskFile:
    metadata: TaskFileMetadata
    content: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TaskFile":
        if not isinstance(data, dict) or not isinstance(data.get("metadata"), dict):
            raise ValueError("Task payload must include a metadata object")
        return cls(
            metadata=TaskFileMetadata.from_dict(data["metadata"]),
            content=str(data.get("content") or ""),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"metadata": self.metadata.to_dict(), "content": self.content}


def summarize_content(content: str) -> str:
    lines = (content or "").split("\n")
    summary = " ".join(lines[:DESCRIPTION_MAX_LINES])
    if len(summary) > DESCRIPTION_MAX_LENGTH or len(lines) > DESCRIPTION_MAX_LINES:
        return summary[:DESCRIPTION_MAX_LENGTH] + "..."
    return summary


@dataclass
class Task:
    """Dashboard view of a task file."""

    id: str
    title: str
    description: str
    status: TaskStatus
    repository_id: str
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    started_at: Optional[str] = None
    completed_at: Optional[str] = None
    branch_name: Optional[str] = None
    pr_url: Optional[str] = None
    build_status: Optional[CheckStatus] = None
    lint_status: Optional[CheckStatus] = None
    ai_tokens_used: int = 0
    error_message: Optional[str] = None

    @classmethod
    def from_task_file(cls, task_file: TaskFile) -> "Task":
        metadata = task_file.metadata
        return cls(
            id=metadata.id,
            title=metadata.title,
            description=summarize_content(task_file.content),
            status=metadata.status,
            repository_id=metadata.repository,
            created_at=metadata.created_at,
            updated_at=metadata.updated_at,
            started_at=metadata.started_at,
            completed_at=metadata.completed_at,
            branch_name=metadata.branch,
            pr_url=metadata.pr_url,
            build_status=metadata.build_status,
            lint_status=metadata.lint_status,
            ai_tokens_used=metadata.tokens_used,
            error_message=metadata.error_message,
        )

    @property
    def description_html(self) -> Markup:
        return render_task_description_html(self.description)

    def __repr__(self):
        return f"<Task {self.id}>"
