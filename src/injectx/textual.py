"""Textual integration for injectx. Opt-in — requires textual.

Provides the three collaborators a Textual app plugs in: a scheduler bound
to the app's message loop, a frame clock driven by an app interval timer,
and a guarded render hook for listen_to().

Guard + NoMatches + thread-marshal are enforced here, not at callsites.
_paused_apps has a single owner (this module): an id is present exactly
while inside a pause() context.
"""

import threading
import time
from contextlib import contextmanager

from textual.css.query import NoMatches

from injectx.clock import Ticker
from injectx.combined import listen_to as _listen_to

# Module-owned pause state, keyed by id(app) so multiple apps work in tests.
_paused_apps: set[int] = set()


@contextmanager
def pause(app):
    """Suspend guarded renders during widget replacement."""
    key = id(app)
    _paused_apps.add(key)
    try:
        yield
    finally:
        _paused_apps.discard(key)


def is_safe(app) -> bool:
    """Is the widget tree in a queryable state?"""
    return app.is_running and id(app) not in _paused_apps


def scheduler(app):
    """Scheduler running callbacks on the app's loop after pending messages.

    Usage:
        registry = Registry(scheduler=injectx.textual.scheduler(app), ticker=TextualTicker(app))
    """
    _main = threading.get_ident()

    def _schedule(fn):
        if threading.get_ident() != _main:
            app.call_from_thread(app.call_later, fn)
        else:
            app.call_later(fn)

    return _schedule


class TextualTicker(Ticker):
    """Frame clock backed by app.set_interval. Runs only while something listens."""

    def __init__(self, app, fps: int = 60) -> None:
        super().__init__()
        self._app = app
        self._interval = 1 / fps
        self._timer = None

    @property
    def now(self) -> float:
        return time.monotonic()

    @property
    def running(self) -> bool:
        return self._timer is not None

    def _on_activity(self) -> None:
        if self._timer is None:
            self._timer = self._app.set_interval(self._interval, self._on_interval)

    def _on_interval(self) -> None:
        self._frame(time.monotonic())
        if not self.is_active and self._timer is not None:
            self._timer.stop()
            self._timer = None


def listen(app, sources, on_combined, render, **options):
    """listen_to() whose render hook safely touches Textual widgets.

    Skips renders while the app is paused or not running, swallows
    NoMatches from widget queries, and marshals cross-thread calls via
    call_from_thread.
    """
    _main = threading.get_ident()

    def _guarded(result):
        if not is_safe(app):
            return
        if threading.get_ident() != _main:
            app.call_from_thread(_safe, result)
        else:
            _safe(result)

    def _safe(result):
        try:
            render(result)
        except NoMatches:
            pass

    return _listen_to(sources, on_combined, _guarded, **options)
