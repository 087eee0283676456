"""
Optimistic updates with rollback.

The new state is published before persistence runs; if persistence raises,
the previous state is handed back to the caller so it can be restored.
"""
from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar('T')


def _resolve(optimistic_state, current_state):
    return optimistic_state(current_state) if callable(optimistic_state) else optimistic_state


def perform_optimistic_update(
    current_state: T,
    optimistic_state: T | Callable[[T], T],
    update_fn: Callable[[T], Any],
    on_optimistic_update: Callable[[T], None],
    on_error: Callable[[Exception, T], None],
    on_success: Optional[Callable[[T], None]] = None,
) -> dict[str, Any]:
    """Apply ``optimistic_state`` now, persist with ``update_fn``, roll back on failure.

    Returns ``{'success': True}`` or ``{'success': False, 'error': exc}``.
    """
    previous = current_state
    new_state = _resolve(optimistic_state, current_state)
    on_optimistic_update(new_state)
    try:
        update_fn(new_state)
    except Exception as exc:
        logger.warning('optimistic update failed, rolling back: %s', exc)
        on_error(exc, previous)
        return {'success': False, 'error': exc}
    if on_success is not None:
        on_success(new_state)
    return {'success': True}


class OptimisticState(Generic[T]):
    """A value with a pending flag, updated optimistically through ``update_fn``."""

    def __init__(self, initial: T, update_fn: Callable[[T], Any]):
        self.state = initial
        self.is_pending = False
        self.error: Optional[Exception] = None
        self._update_fn = update_fn
        self._previous: Optional[T] = None
        self._lock = threading.Lock()

    def update(self, updater: T | Callable[[T], T]) -> bool:
        with self._lock:
            self._previous = self.state
            self.is_pending = True
            self.error = None

            def _apply(value):
                self.state = value

            def _restore(exc, previous):
                self.error = exc
                self.state = previous

            result = perform_optimistic_update(self.state, updater, self._update_fn, _apply, _restore)
            self.is_pending = False
            return result['success']

    def rollback(self) -> None:
        with self._lock:
            if self._previous is not None:
                self.state = self._previous
                self._previous = None
