"""Locator-keyed change notification.

Observers register on a locator. A standard locator hears every change the
resolver publishes for it; a notification locator (``insert@...`` etc.)
hears only that action, because the resolver publishes each write on both
forms. With ``include_descendants`` an observer on a collection also hears
its rows.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass

import structlog

logger = structlog.get_logger()

Observer = Callable[[str], None]


@dataclass(frozen=True, slots=True)
class _Registration:
    locator: str
    callback: Observer
    include_descendants: bool

    def matches(self, locator: str) -> bool:
        if locator == self.locator:
            return True
        return self.include_descendants and locator.startswith(self.locator.rstrip("/") + "/")


class ChangeNotifier:
    """Thread-safe observer registry. Callbacks run outside the lock."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._registrations: list[_Registration] = []

    def register(self, locator: str, callback: Observer, include_descendants: bool = False) -> None:
        with self._lock:
            self._registrations.append(_Registration(locator, callback, include_descendants))

    def unregister(self, callback: Observer) -> int:
        """Remove every registration of ``callback``; returns how many were removed."""
        with self._lock:
            before = len(self._registrations)
            self._registrations = [r for r in self._registrations if r.callback is not callback]
            return before - len(self._registrations)

    def __len__(self) -> int:
        with self._lock:
            return len(self._registrations)

    def notify(self, locator: str) -> int:
        """Invoke every observer matching ``locator``; returns the count invoked.

        A failing observer is logged and does not stop the others.
        """
        with self._lock:
            targets = [r.callback for r in self._registrations if r.matches(locator)]
        for callback in targets:
            try:
                callback(locator)
            except Exception:
                logger.exception("observer_failed", locator=locator)
        return len(targets)
