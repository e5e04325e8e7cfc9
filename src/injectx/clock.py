"""Frame clock — the external per-frame tick source for animations.

A Ticker hands every subscriber the current monotonic time once per frame,
and runs one-shot next-frame callbacks after the tick subscribers. The core
never reads real time itself; subclasses decide where frames come from.
"""

from __future__ import annotations

from typing import Callable

Disposer = Callable[[], None]
TickCallback = Callable[[float], None]


class Ticker:
    """Base frame clock. Subclasses call _frame(now) once per frame."""

    def __init__(self) -> None:
        self._subscribers: list[TickCallback] = []
        self._frame_callbacks: list[Callable[[], None]] = []
        self._now = 0.0

    @property
    def now(self) -> float:
        """Time of the most recent frame, in seconds."""
        return self._now

    @property
    def is_active(self) -> bool:
        return bool(self._subscribers) or bool(self._frame_callbacks)

    def subscribe(self, callback: TickCallback) -> Disposer:
        """Receive the frame time on every frame. Returns a function that removes it."""
        self._subscribers.append(callback)
        self._on_activity()

        def _unsubscribe() -> None:
            try:
                self._subscribers.remove(callback)
            except ValueError:
                pass  # already removed

        return _unsubscribe

    def call_next_frame(self, fn: Callable[[], None]) -> None:
        """Run fn once, after the tick subscribers of the next frame."""
        self._frame_callbacks.append(fn)
        self._on_activity()

    def _on_activity(self) -> None:
        """Hook for clocks that only run while something listens."""

    def _frame(self, now: float) -> None:
        # Callbacks registered during this frame belong to the next one.
        due, self._frame_callbacks = self._frame_callbacks, []
        self._now = now
        for callback in list(self._subscribers):
            callback(now)
        for fn in due:
            fn()


class ManualTicker(Ticker):
    """Headless clock advanced explicitly. Drives animations in tests.

    Usage:
        ticker = ManualTicker()
        ticker.tick(0.1)        # one frame, 100ms later
        ticker.advance(1.0)     # frames of 1/60s until 1s has passed
    """

    def tick(self, dt: float = 1 / 60) -> None:
        """Emit one frame dt seconds after the previous one."""
        self._frame(self._now + dt)

    def advance(self, duration: float, step: float = 1 / 60) -> None:
        """Emit frames of `step` seconds until `duration` has elapsed."""
        remaining = duration
        while remaining > 1e-9:
            dt = min(step, remaining)
            self.tick(dt)
            remaining -= dt
