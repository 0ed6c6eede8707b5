"""Lazily opened, time-expiring backend handles.

Opening a backend can be expensive, so the opened reference is cached per
repository and reused until ``ttl`` seconds have passed. Failures to open
are cached too: a missing repository is reported once per window rather
than on every request.
"""

from __future__ import annotations

import threading
import time
from typing import Any, Callable, Optional

from warehouse.exceptions import BackendError
from warehouse.logging import get_logger

logger = get_logger("backend")

DEFAULT_TTL = 300.0


class BackendHandle:
    """Cached reference to the backend opened at ``path``.

    Args:
        path: Backend location; blank means the repository has no backend.
        opener: Callable opening the backend at a path. It signals a broken
            or missing backend by raising ``BackendError``.
        ttl: Seconds a computed value stays valid.
        clock: Monotonic time source.
    """

    def __init__(
        self,
        path: str,
        opener: Callable[[str], Any],
        ttl: float = DEFAULT_TTL,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._path = path or ""
        self._opener = opener
        self.ttl = ttl
        self._clock = clock
        self._lock = threading.Lock()
        # (value, computed_at); swapped as a whole
        self._cell: tuple[Any, Optional[float]] = (None, None)
        # bumped by invalidate/repoint; a retrieval started under an older
        # generation must not be stored
        self._generation = 0

    @property
    def path(self) -> str:
        return self._path

    def get(self) -> Any:
        """Return the backend reference, reopening it when the cache expired.

        Returns None when the path is blank or the backend failed to open.
        Errors other than ``BackendError`` propagate. If the handle is
        repointed or invalidated while a backend is being opened, that
        result is discarded and the backend is opened again.
        """
        while True:
            with self._lock:
                value, computed_at = self._cell
                path = self._path
                generation = self._generation
            if computed_at is not None and self._clock() - computed_at <= self.ttl:
                return value

            value = self._retrieve(path)
            with self._lock:
                if generation == self._generation:
                    self._cell = (value, self._clock())
                    return value

    def invalidate(self) -> None:
        with self._lock:
            self._cell = (None, None)
            self._generation += 1

    def repoint(self, path: str) -> None:
        """Switch to a new backend location and drop the cached reference."""
        with self._lock:
            self._path = path or ""
            self._cell = (None, None)
            self._generation += 1

    def _retrieve(self, path: str) -> Any:
        if not path.strip():
            return None
        try:
            return self._opener(path)
        except BackendError as e:
            logger.warning(e.message)
            return None
