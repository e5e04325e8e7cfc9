"""Theme switching — selected theme key plus light/dark/system mode.

The persisted axis is the (key, mode) pair, stored as the token
"<key>#|#<flags>" where flags is "" (system), "0" (light) or "1" (dark).
A token that is empty, malformed or names an unknown key is replaced by
the first registered key in system mode, and the corrected token is
written back straight away.
"""

from __future__ import annotations

import enum
from typing import Callable, Generic, NamedTuple, TypeVar

from injectx.exceptions import CodecError, ConfigurationError, UnknownThemeError
from injectx.injected import Injected
from injectx.notifier import Disposer, Observer
from injectx.persistence import PersistState, PersistStore
from injectx.scheduling import Scheduler
from injectx.status import Status

T = TypeVar("T")

SEPARATOR = "#|#"


class ThemeMode(enum.Enum):
    SYSTEM = ""
    LIGHT = "0"
    DARK = "1"


class Brightness(enum.Enum):
    LIGHT = "light"
    DARK = "dark"


class ThemeSelection(NamedTuple):
    key: str
    mode: ThemeMode = ThemeMode.SYSTEM


class ThemeCodec:
    """Codec for ThemeSelection tokens, validating keys against known ones."""

    def __init__(self, keys: list[str]) -> None:
        self.keys = list(keys)

    def encode(self, value: ThemeSelection) -> str:
        return f"{value.key}{SEPARATOR}{value.mode.value}"

    def decode(self, token: str) -> ThemeSelection:
        key, sep, flags = token.partition(SEPARATOR)
        if not sep:
            raise CodecError(f"missing separator in theme token {token!r}")
        if key not in self.keys:
            raise CodecError(f"unknown theme key {key!r}")
        try:
            mode = ThemeMode(flags)
        except ValueError as err:
            raise CodecError(f"unknown theme flags {flags!r}") from err
        return ThemeSelection(key, mode)


class InjectedTheme(Generic[T]):
    """Theme state: which registered theme is selected and in which mode.

    Usage:
        theme = registry.inject_theme(
            light_themes={"classic": light, "ocean": ocean_light},
            dark_themes={"classic": dark},
            persist_key="__theme__",
        )
        theme.toggle()
        theme.state = "ocean"
        palette = theme.dark_theme if theme.is_dark else theme.light_theme
    """

    def __init__(
        self,
        *,
        light_themes: dict[str, T],
        dark_themes: dict[str, T] | None = None,
        theme_mode: ThemeMode = ThemeMode.SYSTEM,
        scheduler: Scheduler,
        store: PersistStore | None = None,
        persist_key: str | None = None,
        platform_brightness: Callable[[], Brightness] | None = None,
        auto_dispose: bool = False,
        name: str | None = None,
    ) -> None:
        self.light_themes = dict(light_themes)
        self.dark_themes = dict(dark_themes or {})
        keys = list(self.light_themes) + [k for k in self.dark_themes if k not in self.light_themes]
        if not keys:
            raise ConfigurationError("inject_theme() needs at least one theme")
        self._keys = keys
        self._platform_brightness = platform_brightness or (lambda: Brightness.LIGHT)
        default = ThemeSelection(keys[0], theme_mode)
        persist = None
        if persist_key is not None:
            persist = PersistState(
                persist_key,
                codec=ThemeCodec(keys),
                store=store,
                fallback=lambda: ThemeSelection(keys[0], ThemeMode.SYSTEM),
            )
        self._injected: Injected[ThemeSelection] = Injected(
            lambda: default,
            scheduler=scheduler,
            store=store,
            persist=persist,
            auto_dispose=auto_dispose,
            name=name,
        )

    # --- Selection ---

    @property
    def selection(self) -> ThemeSelection:
        return self._injected.state

    @property
    def state(self) -> str:
        """Selected theme key."""
        return self.selection.key

    @state.setter
    def state(self, key: str) -> None:
        if key not in self._keys:
            raise UnknownThemeError(key)
        self._injected.state = self.selection._replace(key=key)

    @property
    def theme_mode(self) -> ThemeMode:
        return self.selection.mode

    @theme_mode.setter
    def theme_mode(self, mode: ThemeMode) -> None:
        self._injected.state = self.selection._replace(mode=mode)

    def toggle(self) -> None:
        """Light <-> dark. From system mode, go opposite the platform brightness."""
        mode = self.theme_mode
        if mode is ThemeMode.SYSTEM:
            dark = self._platform_brightness() is Brightness.DARK
            self.theme_mode = ThemeMode.LIGHT if dark else ThemeMode.DARK
        elif mode is ThemeMode.DARK:
            self.theme_mode = ThemeMode.LIGHT
        else:
            self.theme_mode = ThemeMode.DARK

    # --- Resolved themes ---

    @property
    def supported_light_themes(self) -> dict[str, T]:
        return dict(self.light_themes)

    @property
    def supported_dark_themes(self) -> dict[str, T]:
        return dict(self.dark_themes)

    @property
    def light_theme(self) -> T:
        key = self.state
        if key in self.light_themes:
            return self.light_themes[key]
        return self.dark_themes[key]

    @property
    def dark_theme(self) -> T:
        key = self.state
        if key in self.dark_themes:
            return self.dark_themes[key]
        return self.light_themes[key]

    @property
    def is_dark(self) -> bool:
        key = self.state
        if key not in self.light_themes:
            return True
        if key not in self.dark_themes:
            return False
        mode = self.theme_mode
        if mode is ThemeMode.SYSTEM:
            return self._platform_brightness() is Brightness.DARK
        return mode is ThemeMode.DARK

    @property
    def active_theme(self) -> T:
        return self.dark_theme if self.is_dark else self.light_theme

    # --- Source protocol ---

    @property
    def status(self) -> Status:
        return self._injected.status

    def subscribe(self, observer: Observer) -> Disposer:
        return self._injected.subscribe(observer)

    def dispose(self) -> None:
        self._injected.dispose()

    def __repr__(self) -> str:
        return f"InjectedTheme({self.selection!r})"
