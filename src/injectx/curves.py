"""Easing curves — map linear progress t in [0, 1] onto a shaped progress.

Every curve maps 0 to 0 and 1 to 1 exactly.
"""

from __future__ import annotations


class Curve:
    """Base easing curve. Subclasses implement _transform."""

    __slots__ = ()

    def transform(self, t: float) -> float:
        if not 0.0 <= t <= 1.0:
            raise ValueError(f"curve input must be within [0, 1], got {t!r}")
        if t == 0.0 or t == 1.0:
            return t
        return self._transform(t)

    def _transform(self, t: float) -> float:
        raise NotImplementedError

    @property
    def flipped(self) -> Curve:
        return Flipped(self)


class Linear(Curve):
    __slots__ = ()

    def _transform(self, t: float) -> float:
        return t

    def __repr__(self) -> str:
        return "Linear()"


class Decelerate(Curve):
    __slots__ = ()

    def _transform(self, t: float) -> float:
        t = 1.0 - t
        return 1.0 - t * t

    def __repr__(self) -> str:
        return "Decelerate()"


class Cubic(Curve):
    """Cubic bezier through (0, 0), (a, b), (c, d), (1, 1)."""

    __slots__ = ("a", "b", "c", "d")

    _ERROR_BOUND = 0.001

    def __init__(self, a: float, b: float, c: float, d: float) -> None:
        self.a, self.b, self.c, self.d = a, b, c, d

    @staticmethod
    def _evaluate(a: float, b: float, m: float) -> float:
        return 3 * a * (1 - m) * (1 - m) * m + 3 * b * (1 - m) * m * m + m * m * m

    def _transform(self, t: float) -> float:
        # Bisect for the bezier parameter whose x matches t.
        start, end = 0.0, 1.0
        while True:
            midpoint = (start + end) / 2
            estimate = self._evaluate(self.a, self.c, midpoint)
            if abs(t - estimate) < self._ERROR_BOUND:
                return self._evaluate(self.b, self.d, midpoint)
            if estimate < t:
                start = midpoint
            else:
                end = midpoint

    def __eq__(self, other) -> bool:
        return isinstance(other, Cubic) and (self.a, self.b, self.c, self.d) == (
            other.a, other.b, other.c, other.d,
        )

    def __hash__(self) -> int:
        return hash((Cubic, self.a, self.b, self.c, self.d))

    def __repr__(self) -> str:
        return f"Cubic({self.a}, {self.b}, {self.c}, {self.d})"


class Interval(Curve):
    """0 until begin, curve between begin and end, 1 after end."""

    __slots__ = ("begin", "end", "curve")

    def __init__(self, begin: float, end: float, curve: Curve | None = None) -> None:
        if not 0.0 <= begin <= end <= 1.0:
            raise ValueError(f"invalid interval [{begin}, {end}]")
        self.begin, self.end = begin, end
        self.curve = curve or linear

    def _transform(self, t: float) -> float:
        if self.end == self.begin:
            return 0.0 if t < self.begin else 1.0
        t = min(max((t - self.begin) / (self.end - self.begin), 0.0), 1.0)
        return self.curve.transform(t)

    def __repr__(self) -> str:
        return f"Interval({self.begin}, {self.end}, {self.curve!r})"


class Flipped(Curve):
    """The curve mirrored on both axes; ease-in becomes ease-out."""

    __slots__ = ("curve",)

    def __init__(self, curve: Curve) -> None:
        self.curve = curve

    def _transform(self, t: float) -> float:
        return 1.0 - self.curve.transform(1.0 - t)

    @property
    def flipped(self) -> Curve:
        return self.curve

    def __repr__(self) -> str:
        return f"Flipped({self.curve!r})"


linear = Linear()
decelerate = Decelerate()
ease = Cubic(0.25, 0.1, 0.25, 1.0)
ease_in = Cubic(0.42, 0.0, 1.0, 1.0)
ease_out = Cubic(0.0, 0.0, 0.58, 1.0)
ease_in_out = Cubic(0.42, 0.0, 0.58, 1.0)
fast_out_slow_in = Cubic(0.4, 0.0, 0.2, 1.0)
