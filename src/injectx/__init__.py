"""injectx: injected reactive state with status tracking, persistence and animation."""

from importlib.metadata import version as _version

__version__ = _version("injectx")

from injectx.status import Status, Idle, Waiting, Error, Data, IDLE, WAITING, COMBINED_DATA
from injectx.notifier import Notifier
from injectx.scheduling import ManualScheduler, asyncio_scheduler
from injectx.clock import Ticker, ManualTicker
from injectx.persistence import PersistState, MemoryStore, FileStore, JsonCodec
from injectx.injected import Injected
from injectx.combined import OnCombined, CombinedListener, combine_status, listen_to
from injectx.theme import InjectedTheme, ThemeMode, Brightness, ThemeSelection, ThemeCodec
from injectx.tween import Tween, lerp, register_lerp
from injectx.animation import AnimationController, AnimationStatus, InjectedAnimation, Animate
from injectx.registry import Registry
from injectx.exceptions import InjectxError, ConfigurationError, CodecError, UnknownThemeError
from injectx import curves
# textual NOT auto-imported: opt-in only

__all__ = [
    "Status",
    "Idle",
    "Waiting",
    "Error",
    "Data",
    "IDLE",
    "WAITING",
    "COMBINED_DATA",
    "Notifier",
    "ManualScheduler",
    "asyncio_scheduler",
    "Ticker",
    "ManualTicker",
    "PersistState",
    "MemoryStore",
    "FileStore",
    "JsonCodec",
    "Injected",
    "OnCombined",
    "CombinedListener",
    "combine_status",
    "listen_to",
    "InjectedTheme",
    "ThemeMode",
    "Brightness",
    "ThemeSelection",
    "ThemeCodec",
    "Tween",
    "lerp",
    "register_lerp",
    "AnimationController",
    "AnimationStatus",
    "InjectedAnimation",
    "Animate",
    "Registry",
    "InjectxError",
    "ConfigurationError",
    "CodecError",
    "UnknownThemeError",
    "curves",
]
