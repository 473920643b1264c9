"""Per-template mutual exclusion for check-then-write scheduling.

Auto-scheduling and quick-add both check whether a (template, date) pair is
taken before inserting. Holding the template's lock across the check and the
insert keeps two writers in this process from both succeeding.
Uses in-memory locks (suitable for single-instance deployments); across
processes, the store's uniqueness constraint is the guard.
"""

import contextlib
import logging
import threading
from typing import Dict, Iterator

logger = logging.getLogger(__name__)


class TemplateLockRegistry:
    """Hands out one lock per template ID.

    Thread-safe. Locks are created on first use and kept for the life of
    the registry.
    """

    def __init__(self) -> None:
        self._locks: Dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def lock_for(self, template_id: str) -> threading.Lock:
        """Return the lock for a template, creating it if needed."""
        with self._guard:
            lock = self._locks.get(template_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[template_id] = lock
            return lock

    @contextlib.contextmanager
    def hold(self, template_id: str) -> Iterator[None]:
        """Context manager: acquire the template's lock on enter, release on exit."""
        if self.is_held(template_id):
            logger.debug("Waiting for scheduling lock on template %s", template_id)
        with self.lock_for(template_id):
            yield

    def is_held(self, template_id: str) -> bool:
        """Whether some caller currently holds the template's lock."""
        with self._guard:
            lock = self._locks.get(template_id)
        return lock is not None and lock.locked()
