"""Task runners for notification delivery."""

from __future__ import annotations

import threading
from collections.abc import Callable

from src.config.logging_config import get_logger

logger = get_logger(__name__)


class DetachedTaskRunner:
    """Runs each task on its own daemon thread.

    The caller gets no handle back: tasks cannot be awaited or cancelled, and
    a failing task is logged here instead of reaching the caller.
    """

    def __init__(self, thread_name_prefix: str = "notify") -> None:
        self._thread_name_prefix = thread_name_prefix
        self._counter = 0
        self._lock = threading.Lock()

    def run(self, name: str, task: Callable[[], object]) -> None:
        with self._lock:
            self._counter += 1
            thread_name = f"{self._thread_name_prefix}-{self._counter}"

        thread = threading.Thread(
            target=self._execute, args=(name, task), name=thread_name, daemon=True
        )
        thread.start()
        logger.debug("notification_task_started", task=name, thread=thread_name)

    def _execute(self, name: str, task: Callable[[], object]) -> None:
        try:
            task()
        except Exception:  # noqa: BLE001
            logger.exception("notification_task_failed", task=name)


class InlineTaskRunner:
    """Runs tasks synchronously on the calling thread."""

    def run(self, name: str, task: Callable[[], object]) -> None:
        try:
            task()
        except Exception:  # noqa: BLE001
            logger.exception("notification_task_failed", task=name)


__all__ = ["DetachedTaskRunner", "InlineTaskRunner"]
