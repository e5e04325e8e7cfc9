"""Registry — the explicit handle that owns shared collaborators.

One Registry is built at the application entry point and handed to
whatever needs to inject state. It owns the scheduler, the durable store
and the frame clock, and remembers every container it created so they can
be torn down together.
"""

from __future__ import annotations

import logging
import weakref
from typing import Any, Callable, TypeVar

from injectx.animation import InjectedAnimation
from injectx.clock import ManualTicker, Ticker
from injectx.injected import Creator, Injected
from injectx.persistence import PersistStore
from injectx.scheduling import ManualScheduler, Scheduler
from injectx.theme import InjectedTheme

logger = logging.getLogger("injectx.registry")

T = TypeVar("T")


class Registry:
    """Factory and owner for injected containers.

    Usage:
        registry = Registry(scheduler=asyncio_scheduler(), store=FileStore("state.json"))
        user = registry.inject(fetch_user)
        theme = registry.inject_theme(light_themes=LIGHT, dark_themes=DARK, persist_key="theme")
        fade = registry.inject_animation(duration=0.3)
        ...
        registry.dispose_all()
    """

    def __init__(
        self,
        *,
        scheduler: Scheduler | None = None,
        store: PersistStore | None = None,
        ticker: Ticker | None = None,
    ) -> None:
        self.scheduler: Scheduler = scheduler if scheduler is not None else ManualScheduler()
        self.store = store
        self.ticker: Ticker = ticker if ticker is not None else ManualTicker()
        self._containers: weakref.WeakSet = weakref.WeakSet()

    def _track(self, container: T) -> T:
        self._containers.add(container)
        return container

    def inject(self, creator: Creator, **options: Any) -> Injected:
        """Inject state produced by creator (a value, an awaitable or a thread future)."""
        return self._track(Injected(creator, scheduler=self.scheduler, store=self.store, **options))

    def inject_theme(self, **options: Any) -> InjectedTheme:
        return self._track(InjectedTheme(scheduler=self.scheduler, store=self.store, **options))

    def inject_animation(self, **options: Any) -> InjectedAnimation:
        return self._track(InjectedAnimation(ticker=self.ticker, scheduler=self.scheduler, **options))

    @property
    def container_count(self) -> int:
        return len(self._containers)

    def dispose_all(self) -> None:
        """Dispose every container created through this registry."""
        containers = list(self._containers)
        for container in containers:
            container.dispose()
        logger.debug("Disposed %d containers", len(containers))

    def run_pending(self) -> None:
        """Flush the scheduler when it is a ManualScheduler (tests, headless runs)."""
        flush: Callable[[], None] | None = getattr(self.scheduler, "flush", None)
        if flush is not None:
            flush()
