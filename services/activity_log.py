"""Activity log of connection, task, GitHub and navigation events.

Records are kept newest first in memory and mirrored to a JSON file when a
path is configured. The log is capped at ``max_logs`` records and drops
records older than ``retention_days``. Persistence failures are logged and
never raised to the caller.
"""
from __future__ import annotations

import csv
import io
import json
import logging
import secrets
import string
import threading
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable, Optional

from models.activity import (
    ActivityEvent,
    ActivityLevel,
    ActivityLog,
    ActivityLogFilter,
    ActivityType,
)
from utils.file_lock import FileLockRegistry

MAX_LOGS = 1000
RETENTION_DAYS = 30
RECENT_ACTIVITY_WINDOW = timedelta(days=1)
EXPORT_FORMATS = ("json", "csv")
CSV_HEADERS = ["Timestamp", "Type", "Level", "Title", "Description"]
CSV_METADATA_HEADERS = ["Repository", "Task", "Branch", "Duration", "Error"]
_ID_ALPHABET = string.ascii_lowercase + string.digits


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _format_timestamp(moment: datetime) -> str:
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class ActivityLogger:
    def __init__(
        self,
        path: str | Path | None = None,
        *,
        file_locks: Optional[FileLockRegistry] = None,
        max_logs: int = MAX_LOGS,
        retention_days: int = RETENTION_DAYS,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.path = Path(path) if path else None
        self.file_locks = file_locks or FileLockRegistry()
        self.max_logs = max_logs
        self.retention = timedelta(days=retention_days)
        self._clock = clock
        self._lock = threading.Lock()
        self._listeners: list[Callable[[list[ActivityLog]], None]] = []
        self._logs: list[ActivityLog] = self._load()
        with self._lock:
            if self._prune():
                self._save()

    def _load(self) -> list[ActivityLog]:
        if self.path is None or not self.path.is_file():
            return []
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
            logs = [ActivityLog.from_dict(item) for item in raw]
            logs.sort(key=lambda log: log.created, reverse=True)
        except (OSError, ValueError, KeyError, TypeError):
            logging.error("Failed to load activity logs from %s", self.path, exc_info=True)
            return []
        return logs

    def _save(self) -> None:
        if self.path is None:
            return
        payload = json.dumps([log.to_dict() for log in self._logs], ensure_ascii=False, indent=2)
        try:
            self.file_locks.write(self.path, payload)
        except OSError:
            logging.error("Failed to save activity logs to %s", self.path, exc_info=True)

    def _prune(self) -> bool:
        """Apply the size cap and the retention window; True when records were dropped."""
        before = len(self._logs)
        cutoff = self._clock() - self.retention
        self._logs = [log for log in self._logs[: self.max_logs] if log.created > cutoff]
        return len(self._logs) != before

    def _notify(self) -> None:
        snapshot = list(self._logs)
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logging.warning("Activity log listener failed", exc_info=True)

    def subscribe(self, listener: Callable[[list[ActivityLog]], None]) -> Callable[[], None]:
        """Call ``listener`` with every log change; returns the unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _generate_id(self) -> str:
        suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(7))
        return f"{int(self._clock().timestamp() * 1000)}-{suffix}"

    def log(
        self,
        type: ActivityType | str,
        level: ActivityLevel | str,
        title: str,
        description: str,
        metadata: Optional[dict[str, Any]] = None,
    ) -> ActivityLog:
        entry = ActivityLog(
            id=self._generate_id(),
            type=ActivityType(type),
            level=ActivityLevel(level),
            title=title,
            description=description,
            timestamp=_format_timestamp(self._clock()),
            metadata={key: value for key, value in (metadata or {}).items() if value is not None},
        )
        with self._lock:
            self._logs.insert(0, entry)
            del self._logs[self.max_logs :]
            self._save()
        self._notify()
        return entry

    def log_repository_connected(
        self, repository_id: int, repository_name: str, local_path: Optional[str] = None
    ) -> ActivityLog:
        return self.log(
            ActivityType.CONNECTION,
            ActivityLevel.SUCCESS,
            "Repository connected",
            f"Successfully connected to {repository_name} repository",
            {
                "repositoryId": repository_id,
                "repositoryName": repository_name,
                "userAction": ActivityEvent.REPOSITORY_CONNECTED.value,
                "context": {"localPath": local_path} if local_path else None,
            },
        )

    def log_repository_disconnected(self, repository_id: int, repository_name: str) -> ActivityLog:
        return self.log(
            ActivityType.CONNECTION,
            ActivityLevel.INFO,
            "Repository disconnected",
            f"Disconnected from {repository_name} repository",
            {
                "repositoryId": repository_id,
                "repositoryName": repository_name,
                "userAction": ActivityEvent.REPOSITORY_DISCONNECTED.value,
            },
        )

    def log_repository_connection_failed(self, repository_name: str, error: str) -> ActivityLog:
        return self.log(
            ActivityType.CONNECTION,
            ActivityLevel.ERROR,
            "Repository connection failed",
            f"Failed to connect to {repository_name}: {error}",
            {
                "repositoryName": repository_name,
                "errorMessage": error,
                "userAction": ActivityEvent.REPOSITORY_CONNECTION_FAILED.value,
            },
        )

    def log_task_created(
        self,
        task_id: str,
        task_title: str,
        repository_id: Optional[int],
        repository_name: str,
        *,
        github_url: Optional[str] = None,
        branch_name: Optional[str] = None,
    ) -> ActivityLog:
        return self.log(
            ActivityType.TASK,
            ActivityLevel.INFO,
            "Task created",
            f'New task "{task_title}" created for {repository_name}',
            {
                "taskId": task_id,
                "taskTitle": task_title,
                "repositoryId": repository_id,
                "repositoryName": repository_name,
                "branchName": branch_name,
                "githubUrl": github_url,
                "userAction": ActivityEvent.TASK_CREATED.value,
            },
        )

    def log_task_started(self, task_id: str, task_title: str) -> ActivityLog:
        return self.log(
            ActivityType.TASK,
            ActivityLevel.INFO,
            "Task started",
            f'Task "{task_title}" execution started',
            {
                "taskId": task_id,
                "taskTitle": task_title,
                "taskStatus": "in_progress",
                "userAction": ActivityEvent.TASK_STARTED.value,
            },
        )

    def log_task_completed(
        self, task_id: str, task_title: str, duration: Optional[float] = None
    ) -> ActivityLog:
        return self.log(
            ActivityType.TASK,
            ActivityLevel.SUCCESS,
            "Task completed",
            f'Task "{task_title}" completed successfully',
            {
                "taskId": task_id,
                "taskTitle": task_title,
                "taskStatus": "completed",
                "duration": duration,
                "userAction": ActivityEvent.TASK_COMPLETED.value,
            },
        )

    def log_task_failed(self, task_id: str, task_title: str, error: str) -> ActivityLog:
        return self.log(
            ActivityType.TASK,
            ActivityLevel.ERROR,
            "Task failed",
            f'Task "{task_title}" failed: {error}',
            {
                "taskId": task_id,
                "taskTitle": task_title,
                "taskStatus": "failed",
                "errorMessage": error,
                "userAction": ActivityEvent.TASK_FAILED.value,
            },
        )

    def log_github_sync(
        self,
        repository_name: str,
        stage: str,
        *,
        duration: Optional[float] = None,
        api_call_count: Optional[int] = None,
        error: Optional[str] = None,
    ) -> ActivityLog:
        """Record a sync ``stage``: ``started``, ``completed`` or ``failed``."""
        events = {
            "started": (ActivityLevel.INFO, ActivityEvent.GITHUB_SYNC_STARTED),
            "completed": (ActivityLevel.SUCCESS, ActivityEvent.GITHUB_SYNC_COMPLETED),
            "failed": (ActivityLevel.ERROR, ActivityEvent.GITHUB_SYNC_FAILED),
        }
        if stage not in events:
            raise ValueError(f"Unknown sync stage: {stage}")
        level, event = events[stage]
        return self.log(
            ActivityType.GITHUB,
            level,
            f"GitHub sync {stage}",
            f"GitHub synchronization {stage} for {repository_name}",
            {
                "repositoryName": repository_name,
                "userAction": event.value,
                "duration": duration,
                "apiCallCount": api_call_count,
                "errorMessage": error if stage == "failed" else None,
            },
        )

    def log_github_api_call(
        self, endpoint: str, method: str, rate_limit_remaining: Optional[int] = None
    ) -> ActivityLog:
        return self.log(
            ActivityType.GITHUB,
            ActivityLevel.INFO,
            "GitHub API call",
            f"{method} {endpoint}",
            {
                "userAction": ActivityEvent.GITHUB_API_CALL.value,
                "rateLimitRemaining": rate_limit_remaining,
                "context": {"endpoint": endpoint, "method": method},
            },
        )

    def log_github_rate_limit(self, remaining: int, reset_time: str) -> ActivityLog:
        if remaining < 100:
            level = ActivityLevel.ERROR
        elif remaining < 500:
            level = ActivityLevel.WARNING
        else:
            level = ActivityLevel.INFO
        event = (
            ActivityEvent.GITHUB_RATE_LIMIT_EXCEEDED
            if remaining == 0
            else ActivityEvent.GITHUB_RATE_LIMIT_WARNING
        )
        return self.log(
            ActivityType.GITHUB,
            level,
            "GitHub rate limit",
            f"GitHub API rate limit: {remaining} requests remaining. Resets at {reset_time}",
            {
                "rateLimitRemaining": remaining,
                "userAction": event.value,
                "context": {"resetTime": reset_time},
            },
        )

    def log_tab_switch(
        self, previous_tab: str, current_tab: str, repository_name: Optional[str] = None
    ) -> ActivityLog:
        description = f"Switched from {previous_tab} to {current_tab} tab"
        if repository_name:
            description = f"{description} in {repository_name}"
        return self.log(
            ActivityType.NAVIGATION,
            ActivityLevel.INFO,
            "Tab switched",
            description,
            {
                "previousTab": previous_tab,
                "currentTab": current_tab,
                "repositoryName": repository_name,
                "userAction": ActivityEvent.TAB_SWITCHED.value,
            },
        )

    def log_workspace_access(self, repository_name: str, action: str) -> ActivityLog:
        if action not in ("opened", "closed"):
            raise ValueError(f"Unknown workspace action: {action}")
        opened = action == "opened"
        return self.log(
            ActivityType.NAVIGATION,
            ActivityLevel.INFO,
            f"Workspace {action}",
            f"{'Accessed' if opened else 'Closed'} workspace for {repository_name}",
            {
                "repositoryName": repository_name,
                "userAction": (
                    ActivityEvent.WORKSPACE_OPENED if opened else ActivityEvent.WORKSPACE_CLOSED
                ).value,
            },
        )

    def get_logs(self, filters: Optional[ActivityLogFilter] = None) -> list[ActivityLog]:
        with self._lock:
            logs = list(self._logs)
        if filters is None:
            return logs
        return [log for log in logs if filters.matches(log)]

    def export_logs(
        self,
        format: str = "json",
        include_metadata: bool = False,
        filters: Optional[ActivityLogFilter] = None,
    ) -> str:
        if format not in EXPORT_FORMATS:
            raise ValueError("Export format must be one of: json, csv")
        logs = self.get_logs(filters)
        if format == "json":
            return json.dumps([log.to_dict() for log in logs], ensure_ascii=False, indent=2)

        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        headers = CSV_HEADERS + (CSV_METADATA_HEADERS if include_metadata else [])
        writer.writerow(headers)
        for log in logs:
            row = [log.timestamp, log.type.value, log.level.value, log.title, log.description]
            if include_metadata:
                metadata = log.metadata
                duration = metadata.get("duration")
                row.extend(
                    [
                        metadata.get("repositoryName") or "",
                        metadata.get("taskTitle") or "",
                        metadata.get("branchName") or "",
                        "" if duration is None else str(duration),
                        metadata.get("errorMessage") or "",
                    ]
                )
            writer.writerow(row)
        return buffer.getvalue().rstrip("\n")

    def clear_logs(self) -> None:
        with self._lock:
            self._logs = []
            self._save()
        self._notify()

    def get_statistics(self) -> dict[str, Any]:
        """Totals by type and level, plus the count of records from the last day."""
        logs = self.get_logs()
        since = self._clock() - RECENT_ACTIVITY_WINDOW
        by_type = {activity_type.value: 0 for activity_type in ActivityType}
        by_level = {level.value: 0 for level in ActivityLevel}
        recent = 0
        for log in logs:
            by_type[log.type.value] += 1
            by_level[log.level.value] += 1
            if log.created > since:
                recent += 1
        return {
            "total": len(logs),
            "byType": by_type,
            "byLevel": by_level,
            "recentActivity": recent,
        }
