"""Single-flight guard for change-detection runs."""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Iterator


class RunAlreadyActive(RuntimeError):
    """Another run holds the lock."""


class RunLock:
    """
    Non-blocking in-process mutex keyed by name.

    Two overlapping runs could both read the same latest snapshot and both
    log the same diff, so callers take this lock around every run.
    """

    def __init__(self, name: str = "change-detection-run") -> None:
        self.name = name
        self._lock = threading.Lock()

    @property
    def locked(self) -> bool:
        return self._lock.locked()

    @contextmanager
    def hold(self) -> Iterator[None]:
        if not self._lock.acquire(blocking=False):
            raise RunAlreadyActive(f"{self.name} is already running")
        try:
            yield
        finally:
            self._lock.release()
