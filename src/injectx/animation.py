"""Animation — a progress value driven by the frame clock.

AnimationController moves a value between lower_bound and upper_bound on
every frame of a Ticker and reports status changes:

    DISMISSED  resting at lower_bound
    FORWARD    moving toward upper_bound
    REVERSE    moving toward lower_bound
    COMPLETED  resting at upper_bound

InjectedAnimation layers the repeat/reverse automaton on top. Whenever the
controller comes to rest it spends one unit of the repeat budget and either
runs another leg (reversing, or snapping back to the starting bound and
going the same way again) or, when the budget is spent, resolves the
completion future returned by trigger().

A repeat budget of 0 means "forever" and never decrements. The synthetic
snap back to the starting bound is written under skip_dismiss_status so it
doesn't re-enter the handler.
"""

from __future__ import annotations

import enum
import logging
from concurrent.futures import Future
from typing import Any, Callable

from injectx.clock import Ticker
from injectx.curves import Curve, linear
from injectx.exceptions import ConfigurationError
from injectx.notifier import Disposer, Notifier, Observer
from injectx.scheduling import Scheduler
from injectx.status import Data, Status
from injectx.tween import Tween

logger = logging.getLogger("injectx.animation")


def _remover(listeners: list, fn: Callable) -> Disposer:
    def _remove() -> None:
        try:
            listeners.remove(fn)
        except ValueError:
            pass  # already removed

    return _remove


class AnimationStatus(enum.Enum):
    DISMISSED = "dismissed"
    FORWARD = "forward"
    REVERSE = "reverse"
    COMPLETED = "completed"


class AnimationController:
    """Ticker-driven value between two bounds, with value and status listeners."""

    def __init__(
        self,
        ticker: Ticker,
        *,
        duration: float = 0.5,
        reverse_duration: float | None = None,
        value: float | None = None,
        lower_bound: float = 0.0,
        upper_bound: float = 1.0,
    ) -> None:
        if upper_bound <= lower_bound:
            raise ConfigurationError(f"upper_bound {upper_bound} must exceed lower_bound {lower_bound}")
        self._ticker = ticker
        self.duration = duration
        self.reverse_duration = reverse_duration
        self.lower_bound = lower_bound
        self.upper_bound = upper_bound
        self._direction = AnimationStatus.FORWARD
        self._listeners: list[Callable[[], None]] = []
        self._status_listeners: list[Callable[[AnimationStatus], None]] = []
        self._untick: Disposer | None = None
        self._simulation: tuple[float, float, float, float] | None = None
        self._disposed = False
        self._status = AnimationStatus.DISMISSED
        self._value = lower_bound
        self._internal_set_value(lower_bound if value is None else value)
        self._last_reported_status = self._status

    @property
    def value(self) -> float:
        return self._value

    @value.setter
    def value(self, value: float) -> None:
        """Jump to value, stopping any motion."""
        self.stop()
        self._internal_set_value(value)
        self._notify_listeners()
        self._check_status_changed()

    @property
    def status(self) -> AnimationStatus:
        return self._status

    @property
    def is_animating(self) -> bool:
        return self._untick is not None

    def _internal_set_value(self, value: float) -> None:
        self._value = min(max(value, self.lower_bound), self.upper_bound)
        if self._value == self.lower_bound:
            self._status = AnimationStatus.DISMISSED
        elif self._value == self.upper_bound:
            self._status = AnimationStatus.COMPLETED
        elif self._direction is AnimationStatus.FORWARD:
            self._status = AnimationStatus.FORWARD
        else:
            self._status = AnimationStatus.REVERSE

    # --- Motion ---

    def forward(self, from_value: float | None = None) -> None:
        self._direction = AnimationStatus.FORWARD
        if from_value is not None:
            self.value = from_value
        self._animate_to(self.upper_bound)

    def reverse(self, from_value: float | None = None) -> None:
        self._direction = AnimationStatus.REVERSE
        if from_value is not None:
            self.value = from_value
        self._animate_to(self.lower_bound)

    def stop(self) -> None:
        if self._untick is not None:
            self._untick()
            self._untick = None
        self._simulation = None

    def _animate_to(self, target: float) -> None:
        if self._disposed:
            raise ConfigurationError("AnimationController used after dispose()")
        duration = self.duration
        if self._direction is AnimationStatus.REVERSE and self.reverse_duration is not None:
            duration = self.reverse_duration
        remaining = abs(target - self._value) / (self.upper_bound - self.lower_bound)
        self.stop()
        if duration * remaining <= 0:
            if self._value != target:
                self._value = target
                self._notify_listeners()
            self._status = self._resting_status()
            self._check_status_changed()
            return
        self._simulation = (self._value, target, self._ticker.now, duration * remaining)
        self._status = self._direction
        self._untick = self._ticker.subscribe(self._tick)
        self._check_status_changed()

    def _resting_status(self) -> AnimationStatus:
        if self._direction is AnimationStatus.FORWARD:
            return AnimationStatus.COMPLETED
        return AnimationStatus.DISMISSED

    def _tick(self, now: float) -> None:
        if self._simulation is None:
            return  # stopped earlier in this frame
        begin, target, start, duration = self._simulation
        t = (now - start) / duration
        if t >= 1.0:
            self._value = target
            self._status = self._resting_status()
            self.stop()
        else:
            self._value = begin + (target - begin) * t
        self._notify_listeners()
        self._check_status_changed()

    # --- Listeners ---

    def add_listener(self, fn: Callable[[], None]) -> Disposer:
        """Called after every value change."""
        self._listeners.append(fn)
        return _remover(self._listeners, fn)

    def add_status_listener(self, fn: Callable[[AnimationStatus], None]) -> Disposer:
        """Called with the new status whenever it changes."""
        self._status_listeners.append(fn)
        return _remover(self._status_listeners, fn)

    def _notify_listeners(self) -> None:
        for fn in list(self._listeners):
            fn()

    def _check_status_changed(self) -> None:
        status = self._status
        if status is not self._last_reported_status:
            self._last_reported_status = status
            for fn in list(self._status_listeners):
                fn(status)

    def dispose(self) -> None:
        """Stop and release the ticker subscription."""
        self.stop()
        self._listeners.clear()
        self._status_listeners.clear()
        self._disposed = True

    def __repr__(self) -> str:
        return f"AnimationController({self._value:.3f}, {self._status.value})"


class CurvedProgress:
    """Curve-shaped projection of a controller's value, within the same bounds."""

    __slots__ = ("controller", "curve")

    def __init__(self, controller: AnimationController, curve: Curve) -> None:
        self.controller = controller
        self.curve = curve

    @property
    def value(self) -> float:
        c = self.controller
        span = c.upper_bound - c.lower_bound
        t = (c.value - c.lower_bound) / span
        return c.lower_bound + span * self.curve.transform(t)

    def __repr__(self) -> str:
        return f"CurvedProgress({self.curve!r})"


class InjectedAnimation:
    """Injected animation: repeat/reverse automaton over an AnimationController.

    The controller is created on first use and bound to the ticker. Every
    value change is published as Data(progress) on the underlying Notifier,
    so animations combine and subscribe like any other injected state.

    Usage:
        animation = registry.inject_animation(duration=1.0, repeats=2, should_reverse_repeats=True)
        done = animation.trigger()     # concurrent.futures.Future
        ...                            # frames tick
        done.result()                  # resolved once both legs have run
    """

    def __init__(
        self,
        *,
        ticker: Ticker,
        scheduler: Scheduler,
        duration: float = 0.5,
        reverse_duration: float | None = None,
        curve: Curve = linear,
        reverse_curve: Curve | None = None,
        initial_value: float | None = None,
        lower_bound: float = 0.0,
        upper_bound: float = 1.0,
        repeats: int | None = None,
        should_reverse_repeats: bool = False,
        should_auto_start: bool = False,
        on_initialized: Callable[[InjectedAnimation], None] | None = None,
        end_animation_listener: Callable[[], None] | None = None,
        auto_dispose: bool = True,
        name: str | None = None,
    ) -> None:
        if duration < 0 or (reverse_duration is not None and reverse_duration < 0):
            raise ConfigurationError("animation durations cannot be negative")
        if repeats is not None and repeats < 0:
            raise ConfigurationError(f"repeats must be >= 0, got {repeats}")
        self._ticker = ticker
        self._scheduler = scheduler
        self._defaults = {
            "duration": duration,
            "reverse_duration": reverse_duration,
            "curve": curve,
            "reverse_curve": reverse_curve,
            "repeats": repeats,
            "should_reverse_repeats": should_reverse_repeats,
        }
        self.initial_value = initial_value
        self.lower_bound = lower_bound
        self.upper_bound = upper_bound
        self.should_auto_start = should_auto_start
        self._on_initialized = on_initialized
        self._end_animation_listener = end_animation_listener
        self._auto_dispose = auto_dispose
        self.name = name
        self._notifier: Notifier[float] | None = None
        self._rebuild_listeners: list[Callable[[], None]] = []
        self._curve_listeners: list[Callable[[], None]] = []
        self._reset_default_state()

    def _reset_default_state(self) -> None:
        self.duration: float = self._defaults["duration"]
        self.reverse_duration: float | None = self._defaults["reverse_duration"]
        self.curve: Curve = self._defaults["curve"]
        self.reverse_curve: Curve | None = self._defaults["reverse_curve"]
        self.repeats: int | None = self._defaults["repeats"]
        self.should_reverse_repeats: bool = self._defaults["should_reverse_repeats"]
        self._end_future: Future | None = None
        self.is_animating = False
        self.skip_dismiss_status = False
        self.repeat_count: int | None = None
        self._rebuild_listeners.clear()
        self._curve_listeners.clear()
        self._controller: AnimationController | None = None
        self._curved: CurvedProgress | None = None
        self._reverse_curved: CurvedProgress | None = None

    # --- Lifecycle ---

    def _ensure(self) -> Notifier[float]:
        notifier = self._notifier
        if notifier is None or notifier.disposed:
            controller = AnimationController(
                self._ticker,
                duration=self.duration,
                reverse_duration=self.reverse_duration,
                value=self.initial_value,
                lower_bound=self.lower_bound,
                upper_bound=self.upper_bound,
            )
            notifier = Notifier(
                controller.value,
                scheduler=self._scheduler,
                auto_dispose=self._auto_dispose,
                on_dispose=self._on_notifier_disposed,
                name=self.name,
            )
            self._notifier = notifier
            self._controller = controller
            controller.add_listener(self._on_value_changed)
            controller.add_status_listener(self._on_status_changed)
            logger.debug("Initialized %r", self)
            if self._on_initialized is not None:
                self._on_initialized(self)
            if self.should_auto_start:
                self.trigger()
        return notifier

    def _on_notifier_disposed(self) -> None:
        if self._controller is not None:
            self._controller.dispose()
        future = self._end_future
        self._reset_default_state()
        if future is not None:
            future.cancel()

    def dispose(self) -> None:
        if self._notifier is not None:
            self._notifier.dispose()

    @property
    def controller(self) -> AnimationController:
        self._ensure()
        return self._controller

    # --- Source protocol ---

    @property
    def status(self) -> Status:
        return self._ensure().status

    @property
    def state(self) -> float:
        return self.controller.value

    @property
    def value(self) -> float:
        return self.controller.value

    @property
    def has_observers(self) -> bool:
        return self._notifier is not None and self._notifier.has_observers

    def subscribe(self, observer: Observer) -> Disposer:
        return self._ensure().subscribe(observer)

    def notify(self) -> None:
        self._ensure().notify()

    # --- Curves ---

    @property
    def curved_progress(self) -> CurvedProgress:
        """Cached curve-shaped projection; uses reverse_curve while reversing."""
        controller = self.controller
        if self.reverse_curve is None:
            if self._curved is None:
                self._curved = CurvedProgress(controller, self.curve)
            return self._curved
        if self._reverse_curved is None:
            reversing = controller.status is AnimationStatus.REVERSE
            self._reverse_curved = CurvedProgress(controller, self.reverse_curve if reversing else self.curve)
        return self._reverse_curved

    @property
    def curved_value(self) -> float:
        return self.curved_progress.value

    # --- Automaton ---

    def _on_value_changed(self) -> None:
        self._notifier.set_status(Data(self._controller.value))

    def _on_status_changed(self, status: AnimationStatus) -> None:
        if status is not AnimationStatus.COMPLETED and status is not AnimationStatus.DISMISSED:
            self._reverse_curved = None
            return
        if self.skip_dismiss_status:
            return
        if self.repeat_count is None:
            self.repeat_count = self.repeats if self.repeats is not None else 1
        if self.repeat_count == 1:
            self._finish()
            return
        if self.repeat_count > 1:
            self.repeat_count -= 1
        controller = self._controller
        if status is AnimationStatus.COMPLETED:
            if self.should_reverse_repeats:
                controller.reverse()
            else:
                self._snap_to(self.lower_bound)
                controller.forward()
        else:
            if self.should_reverse_repeats:
                controller.forward()
            else:
                self._snap_to(self.upper_bound)
                controller.reverse()

    def _snap_to(self, value: float) -> None:
        self.skip_dismiss_status = True
        try:
            self._controller.value = value
        finally:
            self.skip_dismiss_status = False

    def _finish(self) -> None:
        self.is_animating = False
        future, self._end_future = self._end_future, None
        if future is not None and not future.done():
            future.set_result(None)
        if self._end_animation_listener is not None:
            self._end_animation_listener()
        self.repeat_count = None
        # Rebuild once more so views settle on the resting value.
        self._ticker.call_next_frame(self._notify_if_alive)

    def _notify_if_alive(self) -> None:
        if self._notifier is not None:
            self._notifier.notify()

    def _pending_future(self) -> Future:
        if self._end_future is None:
            self._end_future = Future()
        return self._end_future

    def trigger(self, restart: bool = False) -> Future:
        """Start the animation; the future resolves when the repeat budget is spent.

        Without restart: from DISMISSED go forward, from COMPLETED go in
        reverse, and do nothing while already animating. With restart: jump
        to the initial value and start over with a fresh budget.
        """
        self._ensure()
        future = self._pending_future()
        if restart:
            self.repeat_count = None
            self._start(reset=True)
        elif not self.is_animating:
            self._start(reset=False)
        return future

    def _start(self, *, reset: bool) -> None:
        controller = self._controller
        if reset:
            self._snap_to(self.initial_value if self.initial_value is not None else self.lower_bound)
        self.is_animating = True
        if controller.status is AnimationStatus.COMPLETED:
            controller.reverse()
        else:
            controller.forward()
        if self.repeat_count is None and self.is_animating:
            self.repeat_count = self.repeats if self.repeats is not None else 1

    def refresh(self) -> Future:
        """Replay per-rebuild listeners and notify, without touching the motion.

        Returns a future resolved at the next natural completion.
        """
        notifier = self._ensure()
        future = self._pending_future()
        for fn in list(self._rebuild_listeners):
            fn()
        notifier.notify()
        return future

    def reset_parameters(
        self,
        *,
        duration: float | None = None,
        reverse_duration: float | None = None,
        curve: Curve | None = None,
        reverse_curve: Curve | None = None,
        repeats: int | None = None,
        should_reverse_repeats: bool | None = None,
    ) -> None:
        """Change configuration live, taking effect on the running animation."""
        if duration is not None:
            self.duration = duration
            if self._controller is not None:
                self._controller.duration = duration
        if reverse_duration is not None:
            self.reverse_duration = reverse_duration
            if self._controller is not None:
                self._controller.reverse_duration = reverse_duration
        if repeats is not None:
            self.repeats = repeats
            self.repeat_count = None
        if should_reverse_repeats is not None:
            self.should_reverse_repeats = should_reverse_repeats
            self.repeat_count = None
        curve_changed = False
        if curve is not None:
            self.curve = curve
            curve_changed = True
        if reverse_curve is not None:
            self.reverse_curve = reverse_curve
            curve_changed = True
        if curve_changed:
            self._curved = None
            self._reverse_curved = None
            for fn in list(self._curve_listeners):
                fn()

    def add_rebuild_listener(self, fn: Callable[[], None]) -> Disposer:
        """fn runs on every refresh(), to re-derive implicit tweens."""
        self._rebuild_listeners.append(fn)
        return _remover(self._rebuild_listeners, fn)

    def add_curve_listener(self, fn: Callable[[], None]) -> Disposer:
        """fn runs whenever reset_parameters() changes a curve."""
        self._curve_listeners.append(fn)
        return _remover(self._curve_listeners, fn)

    def __repr__(self) -> str:
        label = self.name or hex(id(self))
        if self._controller is None:
            return f"InjectedAnimation({label}, uninitialized)"
        return f"InjectedAnimation({label}, {self._controller!r}, repeat_count={self.repeat_count})"


class Animate:
    """Implicit and explicit tweens evaluated against an InjectedAnimation.

    Call it from a render function. An implicit value animates from where it
    is to the new target whenever the target changes; an explicit tween is
    built by a function of the current value and re-derived on refresh().

    Usage:
        animate = Animate(animation)

        def render():
            width = animate(200.0 if selected else 100.0, "width")
            opacity = animate.from_tween(lambda current: Tween(0.0, 1.0), "opacity")
    """

    def __init__(self, animation: InjectedAnimation) -> None:
        self._animation = animation
        self._implicit: dict[str, Tween] = {}
        self._explicit: dict[str, Tween] = {}
        self._previous: dict[str, Tween] = {}
        self._disposer = animation.add_rebuild_listener(self._on_rebuild)

    def _progress(self) -> float:
        a = self._animation
        return (a.curved_value - a.lower_bound) / (a.upper_bound - a.lower_bound)

    def __call__(self, target: Any, name: str = "value") -> Any:
        tween = self._implicit.get(name)
        if tween is None:
            self._implicit[name] = Tween(target, target)
            return target
        if target != tween.end:
            current = tween.transform(self._progress())
            self._implicit[name] = tween = Tween(current, target)
            self._animation.trigger(restart=True)
        return tween.transform(self._progress())

    def from_tween(self, fn: Callable[[Any], Tween], name: str = "tween") -> Any:
        tween = self._explicit.get(name)
        if tween is None:
            previous = self._previous.pop(name, None)
            current = previous.transform(self._progress()) if previous is not None else None
            tween = fn(current)
            if not isinstance(tween, Tween):
                raise ConfigurationError(f"from_tween() builder must return a Tween, got {tween!r}")
            self._explicit[name] = tween
            if previous is not None and previous != tween:
                self._animation.trigger(restart=True)
        return tween.transform(self._progress())

    def _on_rebuild(self) -> None:
        self._previous.update(self._explicit)
        self._explicit = {}

    def dispose(self) -> None:
        self._disposer()
