"""
Runtime feature flags.

Defaults live in ``FEATURE_FLAGS``; overrides are kept in the cache so
every worker sees them. Subscribers are per-process callbacks invoked with
the new value whenever a flag changes through this module.
"""
from __future__ import annotations

import logging
import threading
from typing import Callable

from django.core.cache import cache

logger = logging.getLogger(__name__)

FEATURE_FLAGS: dict[str, bool] = {
    'SHOW_DEBUG_PANEL': False,
    'ENABLE_ANALYTICS_VIEW': False,
    'ENABLE_CUDYR': True,
    'ENABLE_MEDICAL_HANDOFF': True,
    'ENABLE_EMAIL_CENSUS': True,
}

OVERRIDES_KEY = 'census:feature_flags'


class UnknownFlag(KeyError):
    pass


class FeatureFlags:
    def __init__(self, defaults: dict[str, bool]):
        self.defaults = dict(defaults)
        self._listeners: dict[str, list[Callable[[bool], None]]] = {}
        self._lock = threading.Lock()

    def _check(self, flag: str) -> None:
        if flag not in self.defaults:
            raise UnknownFlag(flag)

    def _overrides(self) -> dict[str, bool]:
        return dict(cache.get(OVERRIDES_KEY) or {})

    def _notify(self, flag: str, value: bool) -> None:
        for callback in list(self._listeners.get(flag, ())):
            try:
                callback(value)
            except Exception:
                logger.exception('feature flag listener failed for %s', flag)

    def _set(self, flag: str, value: bool | None) -> bool:
        self._check(flag)
        with self._lock:
            overrides = self._overrides()
            if value is None:
                overrides.pop(flag, None)
            else:
                overrides[flag] = bool(value)
            cache.set(OVERRIDES_KEY, overrides, None)
        current = self.is_enabled(flag)
        logger.info('feature flag %s -> %s', flag, current)
        self._notify(flag, current)
        return current

    def is_enabled(self, flag: str) -> bool:
        self._check(flag)
        return bool(self._overrides().get(flag, self.defaults[flag]))

    def enable(self, flag: str) -> bool:
        return self._set(flag, True)

    def disable(self, flag: str) -> bool:
        return self._set(flag, False)

    def toggle(self, flag: str) -> bool:
        return self._set(flag, not self.is_enabled(flag))

    def reset(self, flag: str | None = None) -> None:
        if flag is not None:
            self._set(flag, None)
            return
        cache.delete(OVERRIDES_KEY)
        for name in self.defaults:
            self._notify(name, self.defaults[name])

    def get_all(self) -> dict[str, bool]:
        overrides = self._overrides()
        return {name: bool(overrides.get(name, default)) for name, default in self.defaults.items()}

    def subscribe(self, flag: str, callback: Callable[[bool], None]) -> Callable[[], None]:
        self._check(flag)
        self._listeners.setdefault(flag, []).append(callback)

        def unsubscribe():
            try:
                self._listeners.get(flag, []).remove(callback)
            except ValueError:
                pass
        return unsubscribe


feature_flags = FeatureFlags(FEATURE_FLAGS)


def is_feature_enabled(flag: str) -> bool:
    return feature_flags.is_enabled(flag)
