"""Helpers for waiting on completions in tests."""

from __future__ import annotations

import threading
from typing import List, Optional

from .client import ClientResult
from .config import HarnessSettings


class CompletionRecorder:
    """A completion callback that remembers every result it receives.

    ``wait()`` blocks for a bounded time only; it fails instead of hanging.
    """

    def __init__(self, settings: Optional[HarnessSettings] = None):
        self.settings = settings or HarnessSettings.from_env()
        self.results: List[ClientResult] = []
        self.threads: List[str] = []
        self._lock = threading.Lock()
        self._called = threading.Event()

    def __call__(self, result: ClientResult) -> None:
        with self._lock:
            self.results.append(result)
            self.threads.append(threading.current_thread().name)
        self._called.set()

    @property
    def call_count(self) -> int:
        with self._lock:
            return len(self.results)

    def wait(self, timeout: Optional[float] = None) -> ClientResult:
        """Return the first result, waiting at most ``timeout`` seconds."""

        timeout = self.settings.wait_timeout if timeout is None else timeout
        if not self._called.wait(timeout):
            raise TimeoutError(f"completion was not called within {timeout}s")
        with self._lock:
            return self.results[0]
