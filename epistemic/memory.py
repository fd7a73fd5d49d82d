from __future__ import annotations

import threading
from typing import Callable

from cachetools import TTLCache

from epistemic.controller import StudyController


class SessionStore:
    def __init__(
        self,
        factory: Callable[[str], StudyController],
        *,
        maxsize: int = 10_000,
        ttl_seconds: int = 60 * 60,
    ) -> None:
        self._factory = factory
        self._cache: TTLCache[str, StudyController] = TTLCache(maxsize=maxsize, ttl=ttl_seconds)
        # TTLCache is not thread-safe.
        self._lock = threading.Lock()

    def get_or_create(self, session_id: str) -> StudyController:
        with self._lock:
            controller = self._cache.get(session_id)
            if controller is None:
                controller = self._factory(session_id)
                self._cache[session_id] = controller
        return controller

    def get(self, session_id: str) -> StudyController | None:
        with self._lock:
            return self._cache.get(session_id)

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)
