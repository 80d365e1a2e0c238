"""Cached client-side access to the task files served by the backend API."""

from __future__ import annotations

import logging
import secrets
import string
import time
from typing import Any, Callable, Mapping, Optional

from models.task import (
    Task,
    TaskFile,
    TaskFileMetadata,
    TaskStatus,
    isoformat_now,
    to_wire_keys,
)
from services.backend_client import Transport, error_from_response
from services.work_log import WorkLogClient

TASKS_PATH = "/epics/tasks"
DEFAULT_CACHE_TTL_SECONDS = 1.0
TASK_ID_ALPHABET = string.ascii_lowercase + string.digits
TASK_ID_SUFFIX_LENGTH = 7
NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
}
STATUS_CHANGE_MESSAGES = {
    TaskStatus.PENDING: "Task moved back to pending",
    TaskStatus.IN_PROGRESS: "Task started",
    TaskStatus.COMPLETED: "Task completed successfully",
    TaskStatus.FAILED: "Task failed",
}
_IMMUTABLE_KEYS = ("id", "createdAt")


class TaskNotFoundError(LookupError):
    """Raised when an update targets a task the backend does not have."""


def generate_task_id() -> str:
    suffix = "".join(secrets.choice(TASK_ID_ALPHABET) for _ in range(TASK_ID_SUFFIX_LENGTH))
    return f"task-{int(time.time() * 1000)}-{suffix}"


class TaskFileStore:
    """Task CRUD with an in-memory read cache.

    The cache holds the last listing keyed by task id, plus single files read
    or written since. Those may belong to other repositories, so a cache hit
    only returns tasks of the requested repository. A listing is reused until
    ``cache_ttl`` seconds have passed, ``force_refresh`` is requested or
    another repository is asked for.
    Concurrent refreshes are not coordinated; both callers simply fetch.
    """

    def __init__(
        self,
        client: Transport,
        *,
        cache_ttl: float = DEFAULT_CACHE_TTL_SECONDS,
        work_log: Optional[WorkLogClient] = None,
        default_repository: Optional[str] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.client = client
        self.cache_ttl = cache_ttl
        self.work_log = work_log
        self.default_repository = default_repository
        self._clock = clock
        self._cache: dict[str, TaskFile] = {}
        self._cached_repository: Optional[str] = None
        self._last_refresh: Optional[float] = None

    def _repository(self, repository: Optional[str]) -> Optional[str]:
        return repository or self.default_repository

    def _cache_is_fresh(self, repository: Optional[str]) -> bool:
        if not self._cache or self._last_refresh is None:
            return False
        if repository != self._cached_repository:
            return False
        return self._clock() - self._last_refresh < self.cache_ttl

    def clear_cache(self) -> None:
        self._cache.clear()
        self._cached_repository = None
        self._last_refresh = None

    def cached(self, task_id: str) -> Optional[TaskFile]:
        return self._cache.get(task_id)

    def load_tasks_from_epics(
        self, repository: Optional[str] = None, force_refresh: bool = False
    ) -> list[Task]:
        repository = self._repository(repository)
        if not force_refresh and self._cache_is_fresh(repository):
            return [
                Task.from_task_file(task_file)
                for task_file in self._cache.values()
                if not repository or task_file.metadata.repository == repository
            ]

        params = {
            "repository": repository,
            "_t": int(time.time() * 1000),
            "_r": secrets.token_hex(4),
        }
        status, body = self.client.request(
            "GET", TASKS_PATH, params=params, headers=NO_CACHE_HEADERS
        )
        if status >= 400:
            raise error_from_response(status, body, "load tasks")

        task_files = [TaskFile.from_dict(item) for item in body or []]
        self._cache = {task_file.metadata.id: task_file for task_file in task_files}
        self._cached_repository = repository
        self._last_refresh = self._clock()
        return [Task.from_task_file(task_file) for task_file in task_files]

    def create_task_file(
        self,
        metadata: Mapping[str, Any],
        content: str,
        repository: Optional[str] = None,
    ) -> TaskFile:
        data = to_wire_keys(dict(metadata))
        for key in ("id", "createdAt", "updatedAt"):
            data.pop(key, None)
        repository = repository or data.get("repository") or self.default_repository
        now = isoformat_now()
        data.update({"id": generate_task_id(), "createdAt": now, "updatedAt": now})
        if repository:
            data["repository"] = repository
        task_file = TaskFile(metadata=TaskFileMetadata.from_dict(data), content=content or "")

        status, body = self.client.request(
            "POST",
            TASKS_PATH,
            params={"repository": repository},
            payload=task_file.to_dict(),
        )
        if status >= 400:
            raise error_from_response(status, body, "create task file")
        created = TaskFile.from_dict(body) if body else task_file
        self._cache[created.metadata.id] = created

        created_metadata = created.metadata
        self._notify(
            "log_task_created",
            created_metadata.id,
            created_metadata.title,
            created_metadata.repository,
            branch=created_metadata.branch,
            github_issue=created_metadata.github_issue,
        )
        return created

    def update_task_file(
        self,
        task_id: str,
        updates: Mapping[str, Any],
        content: Optional[str] = None,
        repository: Optional[str] = None,
    ) -> TaskFile:
        """Merge ``updates`` into a task and persist it.

        A task that is not cached is read from the backend first.
        """
        existing = self._cache.get(task_id)
        if existing is None:
            existing = self._fetch(task_id, repository)
            if existing is None:
                raise TaskNotFoundError(f"Task {task_id} not found")
        repository = self._repository(repository or existing.metadata.repository)

        changes = to_wire_keys(dict(updates))
        for key in _IMMUTABLE_KEYS:
            changes.pop(key, None)
        merged = existing.metadata.to_dict()
        merged.update(changes)
        now = isoformat_now()
        merged["updatedAt"] = now

        new_status = TaskStatus(merged.get("status") or existing.metadata.status)
        if new_status != existing.metadata.status:
            if new_status == TaskStatus.IN_PROGRESS and not merged.get("startedAt"):
                merged["startedAt"] = now
            if new_status == TaskStatus.COMPLETED and not merged.get("completedAt"):
                merged["completedAt"] = now

        updated = TaskFile(
            metadata=TaskFileMetadata.from_dict(merged),
            content=existing.content if content is None else content,
        )
        status, body = self.client.request(
            "PUT",
            f"{TASKS_PATH}/{task_id}",
            params={"repository": repository},
            payload=updated.to_dict(),
        )
        if status == 404:
            self._cache.pop(task_id, None)
            raise TaskNotFoundError(f"Task {task_id} not found")
        if status >= 400:
            raise error_from_response(status, body, "update task file")
        result = TaskFile.from_dict(body) if body else updated
        self._cache[task_id] = result

        metadata = result.metadata
        if metadata.status != existing.metadata.status:
            self._notify(
                "log_task_status_change",
                metadata.id,
                metadata.title,
                metadata.repository,
                metadata.status,
                STATUS_CHANGE_MESSAGES[metadata.status],
            )
        if metadata.pr_url and not existing.metadata.pr_url:
            self._notify(
                "log_progress",
                metadata.id,
                metadata.title,
                metadata.repository,
                f"Pull request created: {metadata.pr_url}",
                pr_url=metadata.pr_url,
            )
        return result

    def get_task_file(self, task_id: str, repository: Optional[str] = None) -> Optional[TaskFile]:
        cached = self._cache.get(task_id)
        if cached is not None:
            return cached
        return self._fetch(task_id, repository)

    def delete_task_file(self, task_id: str, repository: Optional[str] = None) -> bool:
        status, body = self.client.request(
            "DELETE",
            f"{TASKS_PATH}/{task_id}",
            params={"repository": self._repository(repository)},
        )
        self._cache.pop(task_id, None)
        if status == 404:
            return False
        if status >= 400:
            raise error_from_response(status, body, "delete task file")
        return True

    def _fetch(self, task_id: str, repository: Optional[str]) -> Optional[TaskFile]:
        status, body = self.client.request(
            "GET",
            f"{TASKS_PATH}/{task_id}",
            params={"repository": self._repository(repository)},
            headers=NO_CACHE_HEADERS,
        )
        if status == 404:
            return None
        if status >= 400:
            raise error_from_response(status, body, "get task file")
        task_file = TaskFile.from_dict(body)
        self._cache[task_id] = task_file
        return task_file

    def _notify(self, method: str, *args, **kwargs) -> None:
        if self.work_log is None:
            return
        try:
            getattr(self.work_log, method)(*args, **kwargs)
        except Exception:
            logging.warning("Work log %s failed for task %s", method, args[0], exc_info=True)
