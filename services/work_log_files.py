"""Markdown layout and validation for the daily work-log files."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from models.task import TaskStatus
from models.work_log import DailyWorkLog, WorkLogEntry
from services.task_files import validate_path_segment

LOG_FILE_SUFFIX = ".md"
REQUIRED_ENTRY_FIELDS = ("taskId", "taskTitle", "repository")


def validate_repository(repository: Any) -> str:
    return validate_path_segment(repository, "Repository")


def validate_work_log_entry(entry: Any) -> WorkLogEntry:
    """Check the raw entry payload and build a WorkLogEntry from it."""
    if not entry or not isinstance(entry, dict):
        raise ValueError("Entry is required and must be an object")
    if any(not entry.get(name) for name in REQUIRED_ENTRY_FIELDS):
        raise ValueError("Entry must have taskId, taskTitle, and repository")
    if entry.get("status") not in {status.value for status in TaskStatus}:
        raise ValueError("Entry status must be one of: pending, in_progress, completed, failed")
    timestamp = entry.get("timestamp")
    if timestamp is not None:
        _parse_timestamp(timestamp)
    return WorkLogEntry.from_dict(entry)


def _parse_timestamp(value: Any) -> datetime:
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError as exc:
        raise ValueError(f"Invalid entry timestamp: {value}") from exc


def logs_dir(root: str | Path, repository: str) -> Path:
    validate_repository(repository)
    return Path(root) / repository


def log_file_path(root: str | Path, repository: str, date: str) -> Path:
    return logs_dir(root, repository) / f"{date}{LOG_FILE_SUFFIX}"


def today() -> str:
    return datetime.now(timezone.utc).date().isoformat()


def daily_log_header(repository: str, date: str) -> str:
    return (
        f"# Work Log - {repository} - {date}\n\n"
        "Generated automatically by the workbench workflow system.\n\n"
        "---\n\n"
    )


def format_log_entry(entry: WorkLogEntry) -> str:
    """Render one entry as a markdown subsection closed by a horizontal rule."""
    moment = _parse_timestamp(entry.timestamp)
    if moment.tzinfo is not None:
        moment = moment.astimezone()
    parts = [f"### {moment.strftime('%H:%M:%S')} - {entry.task_title} ({entry.status.value})\n\n"]

    if entry.progress_update:
        parts.append(f"**Progress**: {entry.progress_update}\n\n")
    if entry.issues_discovered:
        items = "\n".join(f"- {issue}" for issue in entry.issues_discovered)
        parts.append(f"**Issues Discovered**:\n{items}\n\n")
    if entry.improvements_made:
        items = "\n".join(f"- {improvement}" for improvement in entry.improvements_made)
        parts.append(f"**Improvements Made**:\n{items}\n\n")

    metadata = entry.metadata
    if metadata is not None and metadata.to_dict():
        lines = ["**Metadata**:\n"]
        if metadata.branch:
            lines.append(f"- Branch: {metadata.branch}\n")
        if metadata.github_issue:
            lines.append(f"- GitHub Issue: #{metadata.github_issue}\n")
        if metadata.pr_url:
            lines.append(f"- PR URL: {metadata.pr_url}\n")
        if metadata.tokens_used:
            lines.append(f"- Tokens Used: {metadata.tokens_used}\n")
        parts.append("".join(lines) + "\n")

    parts.append("---\n\n")
    return "".join(parts)


def list_daily_logs(
    root: str | Path,
    repository: str,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
) -> list[DailyWorkLog]:
    """Describe the daily log files of a repository within the optional bounds.

    Entries are not parsed back out of the markdown; every log is returned
    with an empty entry list.
    """
    directory = logs_dir(root, repository)
    if not directory.is_dir():
        return []
    logs: list[DailyWorkLog] = []
    for path in sorted(directory.iterdir()):
        if path.suffix != LOG_FILE_SUFFIX or not path.is_file():
            continue
        date = path.stem
        if start_date and date < start_date:
            continue
        if end_date and date > end_date:
            continue
        logs.append(DailyWorkLog(date=date, repository=repository, entries=[], exists=True))
    return logs
