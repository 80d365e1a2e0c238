"""
utils/file_lock.py
Per-path write serialization for the task and work-log files.

Writers to the same path are served strictly in the order they asked for the
lock. Lock state for a path only exists while somebody holds or waits for it.
"""

from __future__ import annotations

import fcntl
import os
import tempfile
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator


class _KeyState:
    __slots__ = ("condition", "next_ticket", "serving", "users")

    def __init__(self):
        self.condition = threading.Condition()
        self.next_ticket = 0
        self.serving = 0
        self.users = 0


class KeyedLock:
    """FIFO mutex per key, with reference-counted entries."""

    def __init__(self):
        self._guard = threading.Lock()
        self._states: dict[str, _KeyState] = {}

    def _enter(self, key: str) -> _KeyState:
        with self._guard:
            state = self._states.get(key)
            if state is None:
                state = _KeyState()
                self._states[key] = state
            state.users += 1
            return state

    def _leave(self, key: str, state: _KeyState) -> None:
        with self._guard:
            state.users -= 1
            if state.users == 0 and self._states.get(key) is state:
                del self._states[key]

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        state = self._enter(key)
        try:
            with state.condition:
                ticket = state.next_ticket
                state.next_ticket += 1
                while state.serving != ticket:
                    state.condition.wait()
            try:
                yield
            finally:
                with state.condition:
                    state.serving += 1
                    state.condition.notify_all()
        finally:
            self._leave(key, state)

    def queued(self, key: str) -> int:
        """Number of holders plus waiters for ``key``."""
        with self._guard:
            state = self._states.get(key)
        if state is None:
            return 0
        with state.condition:
            return state.next_ticket - state.serving

    def __len__(self) -> int:
        with self._guard:
            return len(self._states)


class FileLockRegistry:
    """Serializes writes per file path.

    The in-process lock covers threads of one server process. With
    ``advisory`` enabled an ``fcntl.flock`` on a sidecar ``.lock`` file is
    also taken so that several processes sharing the directory queue up too.
    Sidecar files are never deleted; removing them would let two processes
    lock different inodes for the same path.
    """

    def __init__(self, advisory: bool = True):
        self.advisory = advisory
        self.locks = KeyedLock()

    @staticmethod
    def _key(path: str | os.PathLike) -> str:
        return os.path.abspath(os.fspath(path))

    @contextmanager
    def hold(self, path: str | os.PathLike) -> Iterator[None]:
        key = self._key(path)
        with self.locks.hold(key):
            if not self.advisory:
                yield
                return
            lock_path = Path(f"{key}.lock")
            lock_path.parent.mkdir(parents=True, exist_ok=True)
            with open(lock_path, "w") as fd:
                fcntl.flock(fd, fcntl.LOCK_EX)
                try:
                    yield
                finally:
                    fcntl.flock(fd, fcntl.LOCK_UN)

    def write(self, path: str | os.PathLike, content: str) -> None:
        with self.hold(path):
            _atomic_write(Path(path), content)

    def create(self, path: str | os.PathLike, content: str) -> None:
        """Write a new file, raising FileExistsError if it is already there."""
        with self.hold(path):
            if Path(path).exists():
                raise FileExistsError(os.fspath(path))
            _atomic_write(Path(path), content)

    def update(self, path: str | os.PathLike, content: str) -> None:
        """Rewrite an existing file, raising FileNotFoundError if it is missing."""
        with self.hold(path):
            if not Path(path).exists():
                raise FileNotFoundError(os.fspath(path))
            _atomic_write(Path(path), content)

    def append(self, path: str | os.PathLike, content: str, header: str = "") -> bool:
        """Append ``content``; a missing file is started with ``header``.

        Returns True when the file was created by this call.
        """
        target = Path(path)
        with self.hold(target):
            created = not target.exists()
            existing = header if created else target.read_text(encoding="utf-8")
            _atomic_write(target, existing + content)
        return created

    def delete(self, path: str | os.PathLike) -> None:
        with self.hold(path):
            Path(path).unlink()


def _atomic_write(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, temp_path = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(content)
        os.replace(temp_path, path)
    except BaseException:
        if os.path.exists(temp_path):
            os.unlink(temp_path)
        raise


__all__ = ["FileLockRegistry", "KeyedLock"]
