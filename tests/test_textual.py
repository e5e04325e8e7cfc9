"""Tests for injectx.textual — Textual integration layer."""

import threading

import pytest
from textual.css.query import NoMatches

from injectx import Data, Notifier, OnCombined
from injectx import textual as itx


class _Timer:
    def __init__(self):
        self.stopped = False

    def stop(self):
        self.stopped = True


class _MockApp:
    """Minimal mock matching the Textual App interface itx needs."""

    def __init__(self, *, is_running=True):
        self.is_running = is_running
        self._call_from_thread_log = []
        self._later = []
        self._intervals = []

    def call_from_thread(self, fn, *args):
        self._call_from_thread_log.append((fn, args))
        fn(*args)

    def call_later(self, fn, *args):
        self._later.append((fn, args))

    def set_interval(self, interval, callback):
        timer = _Timer()
        self._intervals.append((interval, callback, timer))
        return timer

    def run_later(self):
        later, self._later = self._later, []
        for fn, args in later:
            fn(*args)


class TestScheduler:
    def test_uses_call_later(self):
        app = _MockApp()
        schedule = itx.scheduler(app)
        ran = []
        schedule(lambda: ran.append(1))
        assert ran == []
        app.run_later()
        assert ran == [1]
        assert app._call_from_thread_log == []

    def test_thread_marshal(self):
        app = _MockApp()
        schedule = itx.scheduler(app)
        ran = []

        t = threading.Thread(target=lambda: schedule(lambda: ran.append(1)))
        t.start()
        t.join()

        assert len(app._call_from_thread_log) == 1
        app.run_later()
        assert ran == [1]


class TestTicker:
    def test_timer_starts_on_demand(self):
        app = _MockApp()
        ticker = itx.TextualTicker(app, fps=30)
        assert not ticker.running
        frames = []
        ticker.subscribe(frames.append)
        ticker.subscribe(frames.append)
        assert ticker.running
        assert len(app._intervals) == 1
        assert app._intervals[0][0] == pytest.approx(1 / 30)

    def test_frames_carry_monotonic_time(self):
        app = _MockApp()
        ticker = itx.TextualTicker(app)
        frames = []
        ticker.subscribe(frames.append)
        _, on_interval, _ = app._intervals[0]
        on_interval()
        on_interval()
        assert len(frames) == 2
        assert frames[0] <= frames[1]

    def test_timer_stops_when_idle(self):
        app = _MockApp()
        ticker = itx.TextualTicker(app)
        ran = []
        ticker.call_next_frame(lambda: ran.append(1))
        _, on_interval, timer = app._intervals[0]
        on_interval()
        assert ran == [1]
        assert timer.stopped
        assert not ticker.running
        ticker.call_next_frame(lambda: None)
        assert len(app._intervals) == 2


class TestListen:
    def test_renders_when_safe(self):
        app = _MockApp()
        source = Notifier(1)
        renders = []
        itx.listen(app, [source], OnCombined.any(lambda s: s), renders.append)
        source.set_status(Data(2))
        assert renders == [1, 2]

    def test_skips_when_not_running(self):
        app = _MockApp(is_running=False)
        source = Notifier(1)
        renders = []
        itx.listen(app, [source], OnCombined.any(lambda s: s), renders.append)
        source.set_status(Data(2))
        assert renders == []

    def test_skips_during_pause(self):
        app = _MockApp()
        source = Notifier(1)
        renders = []
        itx.listen(app, [source], OnCombined.any(lambda s: s), renders.append)
        with itx.pause(app):
            source.set_status(Data(2))
        assert renders == [1]

    def test_catches_nomatch(self):
        """NoMatches from widget queries are silently swallowed."""
        app = _MockApp()
        source = Notifier(1)

        def _raise_nomatch(result):
            raise NoMatches("StatusFooter")

        listener = itx.listen(app, [source], OnCombined.any(lambda s: s), _raise_nomatch)
        source.set_status(Data(2))
        listener.dispose()

    def test_propagates_real_errors(self):
        app = _MockApp()
        source = Notifier(1)
        calls = []

        def _raise_value_error(result):
            calls.append(result)
            if len(calls) > 1:
                raise ValueError("boom")

        itx.listen(app, [source], OnCombined.any(lambda s: s), _raise_value_error)
        with pytest.raises(ValueError, match="boom"):
            source.set_status(Data(2))

    def test_thread_marshal(self):
        """Notifications from a background thread render via call_from_thread."""
        app = _MockApp()
        source = Notifier(1)
        renders = []
        itx.listen(app, [source], OnCombined.any(lambda s: s), renders.append)

        t = threading.Thread(target=lambda: source.set_status(Data(2)))
        t.start()
        t.join()

        assert renders == [1, 2]
        assert len(app._call_from_thread_log) == 1


class TestPause:
    def test_pause_restores_on_exception(self):
        app = _MockApp()
        assert itx.is_safe(app)

        with pytest.raises(RuntimeError):
            with itx.pause(app):
                assert not itx.is_safe(app)
                raise RuntimeError("oops")

        assert itx.is_safe(app)

    def test_pause_does_not_mutate_app(self):
        app = _MockApp()
        attrs_before = set(vars(app))
        with itx.pause(app):
            attrs_during = set(vars(app))
        assert attrs_before == attrs_during
        assert attrs_before == set(vars(app))

    def test_multiple_apps_independent(self):
        app_a = _MockApp()
        app_b = _MockApp()
        with itx.pause(app_a):
            assert not itx.is_safe(app_a)
            assert itx.is_safe(app_b)
