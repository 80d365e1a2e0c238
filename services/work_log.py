"""Client for appending task history to the backend work logs.

Logging is best effort: every method swallows and logs its own failures so
that a broken log endpoint never interrupts the task operation that
triggered it.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from models.task import TaskStatus
from models.work_log import DailyWorkLog, WorkLogEntry, WorkLogMetadata
from services.backend_client import Transport, error_from_response

WORK_LOGS_PATH = "/work-logs"


class WorkLogClient:
    def __init__(self, client: Transport):
        self.client = client

    def log_task_created(
        self,
        task_id: str,
        task_title: str,
        repository: str,
        *,
        branch: Optional[str] = None,
        github_issue: Optional[int] = None,
    ) -> bool:
        entry = WorkLogEntry(
            task_id=task_id,
            task_title=task_title,
            repository=repository,
            status=TaskStatus.PENDING,
            progress_update="Task created automatically",
            metadata=WorkLogMetadata(branch=branch, github_issue=github_issue),
        )
        return self._write_entry(repository, entry)

    def log_task_status_change(
        self,
        task_id: str,
        task_title: str,
        repository: str,
        status: TaskStatus | str,
        progress_update: Optional[str] = None,
        issues_discovered: Optional[Iterable[str]] = None,
        improvements_made: Optional[Iterable[str]] = None,
    ) -> bool:
        entry = WorkLogEntry(
            task_id=task_id,
            task_title=task_title,
            repository=repository,
            status=TaskStatus(status),
            progress_update=progress_update,
            issues_discovered=list(issues_discovered or []),
            improvements_made=list(improvements_made or []),
        )
        return self._write_entry(repository, entry)

    def log_progress(
        self,
        task_id: str,
        task_title: str,
        repository: str,
        progress_update: str,
        *,
        tokens_used: Optional[int] = None,
        pr_url: Optional[str] = None,
    ) -> bool:
        metadata = None
        if tokens_used is not None or pr_url is not None:
            metadata = WorkLogMetadata(tokens_used=tokens_used, pr_url=pr_url)
        entry = WorkLogEntry(
            task_id=task_id,
            task_title=task_title,
            repository=repository,
            status=TaskStatus.IN_PROGRESS,
            progress_update=progress_update,
            metadata=metadata,
        )
        return self._write_entry(repository, entry)

    def log_issues_discovered(
        self, task_id: str, task_title: str, repository: str, issues: list[str]
    ) -> bool:
        entry = WorkLogEntry(
            task_id=task_id,
            task_title=task_title,
            repository=repository,
            status=TaskStatus.IN_PROGRESS,
            progress_update=f"Issues discovered: {len(issues)} items",
            issues_discovered=list(issues),
        )
        return self._write_entry(repository, entry)

    def log_improvements(
        self, task_id: str, task_title: str, repository: str, improvements: list[str]
    ) -> bool:
        entry = WorkLogEntry(
            task_id=task_id,
            task_title=task_title,
            repository=repository,
            status=TaskStatus.IN_PROGRESS,
            progress_update=f"Improvements implemented: {len(improvements)} items",
            improvements_made=list(improvements),
        )
        return self._write_entry(repository, entry)

    def _write_entry(self, repository: str, entry: WorkLogEntry) -> bool:
        try:
            status, body = self.client.request(
                "POST",
                f"{WORK_LOGS_PATH}/entry",
                payload={"repository": repository, "entry": entry.to_dict()},
            )
            if status >= 400:
                raise error_from_response(status, body, "write log entry")
        except Exception:
            logging.error("Failed to write work log entry for task %s", entry.task_id, exc_info=True)
            return False
        return True

    def get_work_logs(
        self,
        repository: str,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
    ) -> list[DailyWorkLog]:
        params = {"repository": repository, "startDate": start_date, "endDate": end_date}
        try:
            status, body = self.client.request("GET", WORK_LOGS_PATH, params=params)
            if status >= 400:
                raise error_from_response(status, body, "get work logs")
            return [DailyWorkLog.from_dict(item) for item in body or []]
        except Exception:
            logging.error("Failed to get work logs for %s", repository, exc_info=True)
            return []
