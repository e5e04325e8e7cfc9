"""Status model — the immutable snapshot of a container's condition.

A status is exactly one of four variants: Idle, Waiting, Error(cause) or
Data(value). Predicates are derived from the variant, never stored.
Only Error and Data carry a payload, so a transition can never leak the
value of an earlier Data into a later status.
"""

from __future__ import annotations

from typing import Any


class Status:
    """Base class for the four status variants."""

    __slots__ = ()

    @property
    def is_idle(self) -> bool:
        return isinstance(self, Idle)

    @property
    def is_waiting(self) -> bool:
        return isinstance(self, Waiting)

    @property
    def has_error(self) -> bool:
        return isinstance(self, Error)

    @property
    def has_data(self) -> bool:
        return isinstance(self, Data)

    @property
    def error(self) -> BaseException | Any | None:
        """The cause when in Error, else None."""
        return None

    @property
    def data(self) -> Any:
        """The value when in Data, else None."""
        return None

    def __setattr__(self, name, value):
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __delattr__(self, name):
        raise AttributeError(f"{type(self).__name__} is immutable")


class Idle(Status):
    __slots__ = ()

    def __eq__(self, other) -> bool:
        return isinstance(other, Idle)

    def __hash__(self) -> int:
        return hash(Idle)

    def __repr__(self) -> str:
        return "Idle()"


class Waiting(Status):
    __slots__ = ()

    def __eq__(self, other) -> bool:
        return isinstance(other, Waiting)

    def __hash__(self) -> int:
        return hash(Waiting)

    def __repr__(self) -> str:
        return "Waiting()"


class Error(Status):
    """Failure status carrying the cause of the failure."""

    __slots__ = ("cause",)

    def __init__(self, cause: BaseException | Any) -> None:
        object.__setattr__(self, "cause", cause)

    @property
    def error(self) -> BaseException | Any:
        return self.cause

    def __eq__(self, other) -> bool:
        return isinstance(other, Error) and other.cause is self.cause

    def __hash__(self) -> int:
        return hash((Error, id(self.cause)))

    def __repr__(self) -> str:
        return f"Error({self.cause!r})"


class Data(Status):
    """Success status carrying the new value."""

    __slots__ = ("value",)

    def __init__(self, value: Any) -> None:
        object.__setattr__(self, "value", value)

    @property
    def data(self) -> Any:
        return self.value

    def __eq__(self, other) -> bool:
        return isinstance(other, Data) and other.value == self.value

    def __hash__(self) -> int:
        try:
            return hash((Data, self.value))
        except TypeError:
            return hash(Data)

    def __repr__(self) -> str:
        return f"Data({self.value!r})"


class _CombinedData:
    """Sentinel payload of the synthetic Data derived from all-Data sources."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "COMBINED_DATA"


COMBINED_DATA = _CombinedData()

IDLE = Idle()
WAITING = Waiting()
