"""Injected state — a lazily created Notifier fed by a creator function.

The creator may return a plain value, an awaitable, or a
concurrent.futures.Future (work done on another thread). Plain values start
the container Idle with the value exposed; pending results show Waiting
until they settle into Data or Error. Creator failures become Error
statuses and are never raised back to the caller.

Settlements are marshalled onto the owning execution context: awaitables
run on the asyncio loop, thread futures go through the scheduler. A
settlement arriving after disposal is dropped.

After auto-disposal the container is re-created on next use.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import inspect
import logging
from typing import Any, Awaitable, Callable, Generic, TypeVar

from injectx.exceptions import CodecError, ConfigurationError
from injectx.notifier import Disposer, Notifier, Observer
from injectx.persistence import PersistState, PersistStore
from injectx.scheduling import Scheduler
from injectx.status import IDLE, WAITING, Data, Error, Status

logger = logging.getLogger("injectx.injected")

T = TypeVar("T")

Creator = Callable[[], "T | Awaitable[T] | concurrent.futures.Future[T]"]


def is_pending(result: Any) -> bool:
    """Does result still have to settle?"""
    return isinstance(result, concurrent.futures.Future) or inspect.isawaitable(result)


class Injected(Generic[T]):
    """Injected state with status tracking, side effects and optional durability.

    Usage:
        registry = Registry(store=MemoryStore())
        counter = registry.inject(lambda: 0, persist=PersistState("counter"))
        counter.subscribe(lambda status, state: print(status, state))
        counter.set_state(lambda n: n + 1)   # Data(1), persisted as "1"
    """

    def __init__(
        self,
        creator: Creator,
        *,
        scheduler: Scheduler,
        store: PersistStore | None = None,
        initial_state: T | None = None,
        lazy: bool = True,
        auto_dispose: bool = True,
        persist: PersistState[T] | None = None,
        on_initialized: Callable[[T], None] | None = None,
        on_waiting: Callable[[], None] | None = None,
        on_data: Callable[[T], None] | None = None,
        on_error: Callable[[BaseException], None] | None = None,
        on_disposed: Callable[[T | None], None] | None = None,
        name: str | None = None,
    ) -> None:
        self._creator = creator
        self._mock_creator: Creator | None = None
        self._scheduler = scheduler
        self._initial_state = initial_state
        self._auto_dispose = auto_dispose
        self._persist = persist
        self._store = None
        if persist is not None:
            self._store = persist.store if persist.store is not None else store
            if self._store is None:
                raise ConfigurationError(f"{persist!r} has no store and none was given")
        self._on_initialized = on_initialized
        self._on_waiting = on_waiting
        self._on_data = on_data
        self._on_error = on_error
        self._on_disposed = on_disposed
        self.name = name
        self._notifier: Notifier[T] | None = None
        self._pending: set[asyncio.Future] = set()
        if not lazy:
            self._ensure()

    # --- Lifecycle ---

    def _ensure(self) -> Notifier[T]:
        notifier = self._notifier
        if notifier is None or notifier.disposed:
            notifier = Notifier(
                self._initial_state,
                scheduler=self._scheduler,
                auto_dispose=self._auto_dispose,
                on_dispose=self._on_notifier_disposed,
                name=self.name,
            )
            self._notifier = notifier
            logger.debug("Creating %r", self)
            self._initialize(notifier)
            if self._on_initialized is not None:
                self._on_initialized(notifier.state)
        return notifier

    def _initialize(self, notifier: Notifier[T]) -> None:
        if self._persist is None:
            self._run_creator(notifier, idle=True, write=False)
            return
        token = self._persist.read(self._store)
        if is_pending(token):
            notifier.set_status(WAITING)
            self._settle(
                notifier,
                token,
                lambda value: self._hydrate(notifier, value),
                lambda err: self._fail(notifier, err),
            )
        else:
            self._hydrate(notifier, token)

    def _hydrate(self, notifier: Notifier[T], token: str | None) -> None:
        if token is None:
            # Nothing stored yet: store the default as soon as it exists.
            self._run_creator(notifier, idle=True, write=True)
            return
        try:
            value = self._persist.codec.decode(token)
        except CodecError as err:
            logger.warning(f"Discarding persisted token for {self._persist.key!r}: {err}")
            if self._persist.fallback is not None:
                self._succeed(notifier, self._persist.fallback(), idle=True, write=True)
            else:
                self._run_creator(notifier, idle=True, write=True)
            return
        notifier.set_status(IDLE, value)

    def _on_notifier_disposed(self) -> None:
        for future in list(self._pending):
            future.cancel()
        self._pending.clear()
        if self._on_disposed is not None:
            self._on_disposed(self._notifier.state if self._notifier else None)

    @property
    def creator(self) -> Creator:
        return self._mock_creator if self._mock_creator is not None else self._creator

    def inject_mock(self, creator: Creator) -> None:
        """Replace the creator (for tests). Takes effect on next creation."""
        self._mock_creator = creator
        self.dispose()

    def dispose(self) -> None:
        if self._notifier is not None:
            self._notifier.dispose()

    @property
    def disposed(self) -> bool:
        return self._notifier is None or self._notifier.disposed

    # --- Creation and settlement ---

    def _run_creator(self, notifier: Notifier[T], *, idle: bool, write: bool) -> None:
        try:
            result = self.creator()
        except Exception as err:
            self._fail(notifier, err)
            return
        self._apply(notifier, result, idle=idle, write=write)

    def _apply(self, notifier: Notifier[T], result: Any, *, idle: bool, write: bool = True) -> None:
        if not is_pending(result):
            self._succeed(notifier, result, idle=idle, write=write)
            return
        notifier.set_status(WAITING)
        if self._on_waiting is not None:
            self._on_waiting()
        self._settle(
            notifier,
            result,
            lambda value: self._succeed(notifier, value, idle=False, write=write),
            lambda err: self._fail(notifier, err),
        )

    def _succeed(self, notifier: Notifier[T], value: T, *, idle: bool, write: bool) -> None:
        if notifier.disposed:
            logger.debug("Dropped value for disposed %r", self)
            return
        if write and self._persist is not None:
            self._persist.write(self._store, value)
        if idle:
            notifier.set_status(IDLE, value)
            return
        notifier.set_status(Data(value))
        if self._on_data is not None:
            self._on_data(value)

    def _fail(self, notifier: Notifier[T], err: BaseException) -> None:
        if notifier.disposed:
            logger.debug("Dropped error for disposed %r: %r", self, err)
            return
        notifier.set_status(Error(err))
        if self._on_error is not None:
            self._on_error(err)

    def _settle(
        self,
        notifier: Notifier[T],
        pending: Any,
        on_value: Callable[[Any], None],
        on_error: Callable[[BaseException], None],
    ) -> None:
        def _deliver(future) -> None:
            if notifier.disposed or future.cancelled():
                logger.debug("Dropped settlement for %r", self)
                return
            err = future.exception()
            if err is not None:
                on_error(err)
            else:
                on_value(future.result())

        if isinstance(pending, concurrent.futures.Future):
            # Done callbacks run on the worker thread; hop back first.
            pending.add_done_callback(lambda f: self._scheduler(lambda: _deliver(f)))
            return
        future = asyncio.ensure_future(pending)
        if future is not pending:
            # Only tasks created here are ours to cancel on dispose.
            self._pending.add(future)
            future.add_done_callback(self._pending.discard)
        future.add_done_callback(_deliver)

    # --- Reading ---

    @property
    def state(self) -> T | None:
        return self._ensure().state

    @state.setter
    def state(self, value: T) -> None:
        self._succeed(self._ensure(), value, idle=False, write=True)

    @property
    def status(self) -> Status:
        return self._ensure().status

    @property
    def is_idle(self) -> bool:
        return self.status.is_idle

    @property
    def is_waiting(self) -> bool:
        return self.status.is_waiting

    @property
    def has_error(self) -> bool:
        return self.status.has_error

    @property
    def has_data(self) -> bool:
        return self.status.has_data

    @property
    def error(self) -> BaseException | None:
        return self.status.error

    @property
    def has_observers(self) -> bool:
        return self._notifier is not None and self._notifier.has_observers

    # --- Mutation ---

    def set_state(self, fn: Callable[[T | None], T | Awaitable[T]]) -> None:
        """Derive the next state from the current one. fn may return an awaitable."""
        notifier = self._ensure()
        try:
            result = fn(notifier.state)
        except Exception as err:
            self._fail(notifier, err)
            return
        self._apply(notifier, result, idle=False)

    def refresh(self) -> None:
        """Re-run the creator and write its result through."""
        self._run_creator(self._ensure(), idle=True, write=True)

    def delete_persisted(self) -> None:
        if self._persist is not None:
            self._persist.delete(self._store)

    # --- Observation ---

    def subscribe(self, observer: Observer) -> Disposer:
        return self._ensure().subscribe(observer)

    def notify(self) -> None:
        self._ensure().notify()

    def __repr__(self) -> str:
        label = self.name or hex(id(self))
        if self._notifier is None:
            return f"Injected({label}, uncreated)"
        return f"Injected({label}, {self._notifier.status!r})"
