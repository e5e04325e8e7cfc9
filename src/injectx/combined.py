"""Combinator — reduce several containers' statuses into one outcome.

combine_status() derives one Status from an ordered list of sources:

    any Waiting  -> the first Waiting found (scanning stops there)
    any Error    -> the last Error found
    any Idle     -> an Idle
    all Data     -> Data(COMBINED_DATA)

The synthetic Data never merges the sources' values; callbacks read each
source's own state.

OnCombined dispatches a derived status to exactly one of four optional
callbacks. listen_to() wires a list of sources to a render hook and keeps
one subscription per source; disposing the listener drops them all, and
each source then tears itself down once nobody else observes it.
"""

from __future__ import annotations

from typing import Any, Callable, Generic, Protocol, Sequence, TypeVar

from injectx.notifier import Disposer, Observer
from injectx.scheduling import Scheduler
from injectx.status import COMBINED_DATA, Data, Error, Idle, Status, Waiting

T = TypeVar("T")
R = TypeVar("R")


class Source(Protocol):
    """Anything with a status, an exposed state and subscribe()."""

    @property
    def status(self) -> Status: ...

    @property
    def state(self) -> Any: ...

    def subscribe(self, observer: Observer) -> Disposer: ...


def combine_status(sources: Sequence[Source]) -> Status:
    """Derive one status from sources, in source order."""
    if not sources:
        raise ValueError("combine_status() needs at least one source")
    error: Status | None = None
    idle: Status | None = None
    for source in sources:
        status = source.status
        if status.is_waiting:
            return status
        if status.has_error:
            error = status
        if status.is_idle:
            idle = status
    if error is not None:
        return error
    if idle is not None:
        return idle
    return Data(COMBINED_DATA)


class OnCombined(Generic[T, R]):
    """Callbacks chosen by the combined status of a group of sources.

    Unset callbacks fall back: Waiting and Error go to on_data; Idle tries
    on_data, then on_waiting, then on_error.

    Usage:
        on = OnCombined.or_else(on_waiting=lambda: "loading", otherwise=lambda s: f"{s}")
        on(user.status, user.state)
    """

    __slots__ = ("on_idle", "on_waiting", "on_error", "on_data", "data_only")

    def __init__(
        self,
        *,
        on_idle: Callable[[T], R] | None = None,
        on_waiting: Callable[[T], R] | None = None,
        on_error: Callable[[T, Any], R] | None = None,
        on_data: Callable[[T], R] | None = None,
        data_only: bool = False,
    ) -> None:
        self.on_idle = on_idle
        self.on_waiting = on_waiting
        self.on_error = on_error
        self.on_data = on_data
        self.data_only = data_only

    @classmethod
    def any(cls, builder: Callable[[T], R]) -> OnCombined[T, R]:
        """Invoke builder on every notification, whatever the status."""
        return cls(on_data=builder)

    @classmethod
    def data(cls, fn: Callable[[T], R]) -> OnCombined[T, R]:
        """Only re-render when the notifying source has data."""
        return cls(on_data=fn, data_only=True)

    @classmethod
    def waiting(cls, fn: Callable[[], R]) -> OnCombined[T, R]:
        return cls(on_waiting=lambda _: fn())

    @classmethod
    def error(cls, fn: Callable[[Any], R]) -> OnCombined[T, R]:
        return cls(on_error=lambda _, err: fn(err))

    @classmethod
    def or_else(
        cls,
        *,
        otherwise: Callable[[T], R],
        on_idle: Callable[[], R] | None = None,
        on_waiting: Callable[[], R] | None = None,
        on_error: Callable[[Any], R] | None = None,
        on_data: Callable[[T], R] | None = None,
    ) -> OnCombined[T, R]:
        """Callbacks not given default to otherwise."""
        return cls(
            on_idle=(lambda _: on_idle()) if on_idle else otherwise,
            on_waiting=(lambda _: on_waiting()) if on_waiting else otherwise,
            on_error=(lambda _, err: on_error(err)) if on_error else (lambda s, _: otherwise(s)),
            on_data=on_data or otherwise,
        )

    @classmethod
    def when(
        cls,
        *,
        on_idle: Callable[[], R],
        on_waiting: Callable[[], R],
        on_error: Callable[[Any], R],
        on_data: Callable[[T], R],
    ) -> OnCombined[T, R]:
        """Every status handled explicitly."""
        return cls(
            on_idle=lambda _: on_idle(),
            on_waiting=lambda _: on_waiting(),
            on_error=lambda _, err: on_error(err),
            on_data=on_data,
        )

    def __call__(self, status: Status, state: T) -> R | None:
        if isinstance(status, Waiting):
            if self.on_waiting is not None:
                return self.on_waiting(state)
            return self._data(state)
        if isinstance(status, Error):
            if self.on_error is not None:
                return self.on_error(state, status.cause)
            return self._data(state)
        if isinstance(status, Idle):
            if self.on_idle is not None:
                return self.on_idle(state)
            if self.on_data is not None:
                return self.on_data(state)
            if self.on_waiting is not None:
                return self.on_waiting(state)
            if self.on_error is not None:
                return self.on_error(state, None)
            return None
        return self._data(state)

    def _data(self, state: T) -> R | None:
        return self.on_data(state) if self.on_data is not None else None

    def __repr__(self) -> str:
        present = [n for n in ("on_idle", "on_waiting", "on_error", "on_data") if getattr(self, n)]
        suffix = ", data_only" if self.data_only else ""
        return f"OnCombined({', '.join(present)}{suffix})"


class CombinedListener(Generic[T, R]):
    """A live subscription of one view to a group of sources."""

    __slots__ = (
        "_sources",
        "_on_combined",
        "_render",
        "_on_set_state",
        "_on_after_build",
        "_should_rebuild",
        "_exposed",
        "_scheduler",
        "_disposers",
        "_disposed",
    )

    def __init__(
        self,
        sources: Sequence[Source],
        on_combined: OnCombined[T, R],
        render: Callable[[R | None], None],
        *,
        on_set_state: OnCombined[T, Any] | None = None,
        on_after_build: OnCombined[T, Any] | None = None,
        should_rebuild: Callable[[], bool] | None = None,
        exposed: Source | None = None,
        scheduler: Scheduler | None = None,
    ) -> None:
        if not sources:
            raise ValueError("listen_to() needs at least one source")
        if on_after_build is not None and scheduler is None:
            raise ValueError("on_after_build needs a scheduler")
        self._sources = list(sources)
        self._on_combined = on_combined
        self._render = render
        self._on_set_state = on_set_state
        self._on_after_build = on_after_build
        self._should_rebuild = should_rebuild
        self._exposed = exposed
        self._scheduler = scheduler
        self._disposers: list[Disposer] = []
        self._disposed = False

    @property
    def status(self) -> Status:
        return combine_status(self._sources)

    @property
    def disposed(self) -> bool:
        return self._disposed

    def build(self, source: Source | None = None) -> R | None:
        """Evaluate the combinator against the current statuses."""
        state = (self._exposed or source or self._sources[0]).state
        return self._on_combined(self.status, state)

    def _start(self) -> None:
        for source in self._sources:
            self._disposers.append(source.subscribe(self._observer_for(source)))
        self._render(self.build())
        self._after_build(self._sources[0])

    def _observer_for(self, source: Source) -> Observer:
        def _on_notify(status: Status, state: Any) -> None:
            self._on_source_notified(source)

        return _on_notify

    def _on_source_notified(self, source: Source) -> None:
        if self._disposed:
            return
        if self._should_rebuild is not None and not self._should_rebuild():
            return
        if self._on_set_state is not None:
            self._on_set_state(self.status, (self._exposed or source).state)
        if self._on_combined.data_only and not source.status.has_data:
            return
        self._render(self.build(source))
        self._after_build(source)

    def _after_build(self, source: Source) -> None:
        if self._on_after_build is None:
            return
        exposed = self._exposed or source

        def _run() -> None:
            if not self._disposed:
                self._on_after_build(self.status, exposed.state)

        self._scheduler(_run)

    def dispose(self) -> None:
        """Unsubscribe from every source."""
        if self._disposed:
            return
        self._disposed = True
        for disposer in self._disposers:
            disposer()
        self._disposers.clear()

    def __repr__(self) -> str:
        state = "disposed" if self._disposed else f"{len(self._sources)} sources"
        return f"CombinedListener({state})"


def listen_to(
    sources: Sequence[Source],
    on_combined: OnCombined[T, R],
    render: Callable[[R | None], None],
    **options: Any,
) -> CombinedListener[T, R]:
    """Subscribe render to a group of sources. Renders once immediately.

    Options: on_set_state, on_after_build, should_rebuild, exposed, scheduler
    (see CombinedListener). Call .dispose() on the result to stop.

    Usage:
        listener = listen_to(
            [user, settings],
            OnCombined.or_else(on_waiting=lambda: "spinner", otherwise=lambda s: "page"),
            view.update,
        )
    """
    listener = CombinedListener(sources, on_combined, render, **options)
    listener._start()
    return listener
