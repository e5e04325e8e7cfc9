"""Exception hierarchy for injectx.

Only programmer mistakes surface as exceptions. Creator failures become
Error statuses and codec failures are recovered by the owning container.
"""


class InjectxError(Exception):
    """Base exception for all injectx errors."""


class ConfigurationError(InjectxError, TypeError):
    """Raised immediately when a container or animation is misconfigured."""


class CodecError(InjectxError, ValueError):
    """Raised by a codec when a persisted token cannot be decoded."""


class UnknownThemeError(InjectxError, KeyError):
    """Raised when selecting a theme key that was never registered."""
