"""Tweens — interpolate between two values of the same kind.

Built-in strategies cover floats, ints (rounded), numeric tuples such as
offsets, sizes or RGBA colors (named tuples keep their type), and any
object with a lerp(other, t) method. Other types need register_lerp().

Asking for a type with no strategy is a programmer error and raises
ConfigurationError right away, instead of animating something wrong.
"""

from __future__ import annotations

from numbers import Real
from typing import Any, Callable, Generic, TypeVar

from injectx.exceptions import ConfigurationError

T = TypeVar("T")

LerpFn = Callable[[Any, Any, float], Any]

_strategies: dict[type, LerpFn] = {}


def register_lerp(kind: type, fn: LerpFn) -> None:
    """Teach lerp() how to interpolate instances of kind (and subclasses)."""
    _strategies[kind] = fn


def _lerp_float(begin: float, end: float, t: float) -> float:
    return begin + (end - begin) * t


def _lerp_int(begin: int, end: int, t: float) -> int:
    return round(begin + (end - begin) * t)


def _lerp_tuple(begin: tuple, end: tuple, t: float) -> tuple:
    if len(begin) != len(end):
        raise ConfigurationError(f"cannot interpolate {begin!r} and {end!r}: length differs")
    values = [lerp(b, e, t) for b, e in zip(begin, end)]
    if hasattr(begin, "_fields"):
        return type(begin)(*values)
    return tuple(values)


def strategy_for(sample: Any) -> LerpFn:
    """Find the interpolation strategy for sample's type."""
    if isinstance(sample, bool):
        raise ConfigurationError("bool has no built-in tween. Please use register_lerp().")
    for kind in type(sample).__mro__:
        fn = _strategies.get(kind)
        if fn is not None:
            return fn
    if isinstance(sample, int):
        return _lerp_int
    if isinstance(sample, Real):
        return _lerp_float
    if isinstance(sample, tuple):
        for item in sample:
            strategy_for(item)
        return _lerp_tuple
    if callable(getattr(sample, "lerp", None)):
        return lambda begin, end, t: begin.lerp(end, t)
    raise ConfigurationError(
        f"The {type(sample).__name__} property has no built-in tween. "
        "Please use Tween(..., lerp=fn) or register_lerp()."
    )


def lerp(begin: Any, end: Any, t: float) -> Any:
    """Value between begin (t=0) and end (t=1). A None endpoint takes the other one."""
    if begin is None and end is None:
        return None
    if begin is None:
        begin = end
    elif end is None:
        end = begin
    return strategy_for(begin)(begin, end, t)


class Tween(Generic[T]):
    """A begin/end pair. The strategy is resolved when the tween is built."""

    __slots__ = ("begin", "end", "_lerp")

    def __init__(self, begin: T | None, end: T | None, *, lerp: LerpFn | None = None) -> None:
        self.begin = begin
        self.end = end
        sample = begin if begin is not None else end
        if lerp is not None or sample is None:
            self._lerp = lerp
        else:
            self._lerp = strategy_for(sample)

    def transform(self, t: float) -> T | None:
        if t == 0.0:
            return self.begin if self.begin is not None else self.end
        if t == 1.0:
            return self.end if self.end is not None else self.begin
        if self._lerp is None:
            return lerp(self.begin, self.end, t)
        begin = self.begin if self.begin is not None else self.end
        end = self.end if self.end is not None else self.begin
        return self._lerp(begin, end, t)

    def __eq__(self, other) -> bool:
        return isinstance(other, Tween) and (self.begin, self.end) == (other.begin, other.end)

    def __repr__(self) -> str:
        return f"Tween({self.begin!r}, {self.end!r})"
