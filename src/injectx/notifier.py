"""Notifier — the reactive core shared by every injected container.

A Notifier owns exactly one current Status, the exposed state value, and an
ordered list of observers. Observers are called synchronously, in
registration order, with (status, state) whenever the status changes.

Dispatch is re-entrancy safe: each pass iterates a snapshot of the observer
list, so unsubscribing mid-pass takes effect after the pass and observers
added mid-pass wait for the next one. A set_status() issued by an observer
is queued and delivered once the current pass completes, keeping
transitions strictly ordered.

Auto-dispose: when the last observer leaves, disposal is handed to the
scheduler instead of running inline. An observer that re-subscribes in the
same scheduling turn (a view torn down and rebuilt) keeps the state alive.
"""

from __future__ import annotations

import logging
import weakref
from collections import deque
from typing import Any, Callable, Generic, TypeVar

from injectx.exceptions import ConfigurationError, InjectxError
from injectx.scheduling import Scheduler
from injectx.status import IDLE, Data, Status

logger = logging.getLogger("injectx.notifier")

T = TypeVar("T")

Observer = Callable[[Status, Any], None]
Disposer = Callable[[], None]

_UNSET = object()


class _Entry:
    """One registration. Identity-compared, so duplicates stay independent."""

    __slots__ = ("callback",)

    def __init__(self, callback: Observer) -> None:
        self.callback = callback


class Notifier(Generic[T]):
    """Single-owner status holder with subscribe/notify/dispose."""

    __slots__ = (
        "_status",
        "_state",
        "_entries",
        "_queued",
        "_dispatching",
        "_disposed",
        "_scheduler",
        "_auto_dispose",
        "_on_dispose",
        "name",
        "__weakref__",
    )

    def __init__(
        self,
        state: T | None = None,
        *,
        status: Status = IDLE,
        scheduler: Scheduler | None = None,
        auto_dispose: bool = False,
        on_dispose: Callable[[], None] | None = None,
        name: str | None = None,
    ) -> None:
        if auto_dispose and scheduler is None:
            raise ConfigurationError("auto_dispose needs a scheduler for its grace window")
        self._status = status
        self._state = state
        self._entries: list[_Entry] = []
        self._queued: deque[tuple[Status, Any]] = deque()
        self._dispatching = False
        self._disposed = False
        self._scheduler = scheduler
        self._auto_dispose = auto_dispose
        self._on_dispose = on_dispose
        self.name = name

    @property
    def status(self) -> Status:
        return self._status

    @property
    def state(self) -> T | None:
        """The exposed value. Survives Waiting/Error so views can keep showing it."""
        return self._state

    @property
    def disposed(self) -> bool:
        return self._disposed

    @property
    def has_observers(self) -> bool:
        return bool(self._entries)

    @property
    def observer_count(self) -> int:
        return len(self._entries)

    def subscribe(self, observer: Observer) -> Disposer:
        """Register observer. Returns a function that removes this registration.

        The returned function holds only a weak reference to the notifier.
        """
        if self._disposed:
            raise InjectxError(f"cannot subscribe to disposed {self!r}")
        entry = _Entry(observer)
        self._entries.append(entry)
        ref = weakref.ref(self)

        def _unsubscribe() -> None:
            notifier = ref()
            if notifier is not None:
                notifier._remove(entry)

        return _unsubscribe

    def _remove(self, entry: _Entry) -> None:
        try:
            self._entries.remove(entry)
        except ValueError:
            return  # already removed
        if not self._entries and self._auto_dispose and not self._disposed:
            self._scheduler(self._dispose_if_unused)

    def _dispose_if_unused(self) -> None:
        if not self._entries and not self._disposed:
            self.dispose()

    def set_status(self, status: Status, state: Any = _UNSET) -> None:
        """Replace the status and notify every observer.

        A Data status also becomes the exposed state unless state is given.
        No-op once disposed, so late settlements racing a teardown are dropped.
        """
        if self._disposed:
            logger.debug("Dropped %r on disposed %r", status, self)
            return
        self._status = status
        if state is not _UNSET:
            self._state = state
        elif isinstance(status, Data):
            self._state = status.value
        self._dispatch(status, self._state)

    def notify(self) -> None:
        """Re-send the current status to every observer."""
        if self._disposed:
            return
        self._dispatch(self._status, self._state)

    def _dispatch(self, status: Status, state: Any) -> None:
        self._queued.append((status, state))
        if self._dispatching:
            return
        self._dispatching = True
        try:
            while self._queued:
                status, state = self._queued.popleft()
                for entry in list(self._entries):
                    if self._disposed:
                        return
                    entry.callback(status, state)
        finally:
            self._dispatching = False
            self._queued.clear()

    def dispose(self) -> None:
        """Drop all observers and release owned resources. Idempotent."""
        if self._disposed:
            return
        self._disposed = True
        self._entries.clear()
        self._queued.clear()
        logger.debug("Disposed %r", self)
        if self._on_dispose is not None:
            self._on_dispose()

    def __repr__(self) -> str:
        label = self.name or hex(id(self))
        state = "disposed" if self._disposed else f"{self._status!r}"
        return f"Notifier({label}, {state})"
