"""Persistence — durable stores and the codec contract.

A container that opts into durability holds a PersistState: a store key
plus a Codec turning its value into a token string and back. The container
hydrates from the store on creation and re-encodes after every mutation,
before its observers are notified.

Stores may be synchronous or return awaitables from any method. Pending
asynchronous writes are kept referenced until they finish.
"""

from __future__ import annotations

import asyncio
import inspect
import json
import logging
import os
from pathlib import Path
from typing import Any, Awaitable, Callable, Generic, Protocol, TypeVar

from injectx.exceptions import CodecError

logger = logging.getLogger("injectx.persistence")

T = TypeVar("T")


class PersistStore(Protocol):
    """Key-value durable store. Any method may return an awaitable."""

    def get(self, key: str) -> str | None | Awaitable[str | None]: ...

    def set(self, key: str, value: str) -> None | Awaitable[None]: ...

    def remove(self, key: str) -> None | Awaitable[None]: ...

    def clear(self) -> None | Awaitable[None]: ...


class Codec(Protocol[T]):
    """encode never fails; decode raises CodecError on a bad token."""

    def encode(self, value: T) -> str: ...

    def decode(self, token: str) -> T: ...


class MemoryStore:
    """In-process store. The default for tests and headless runs."""

    def __init__(self, data: dict[str, str] | None = None) -> None:
        self.data: dict[str, str] = dict(data) if data else {}

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def remove(self, key: str) -> None:
        self.data.pop(key, None)

    def clear(self) -> None:
        self.data.clear()

    def __repr__(self) -> str:
        return f"MemoryStore({self.data!r})"


class FileStore:
    """JSON file store that survives process restarts.

    Every write rewrites the whole file through a temporary file and an
    atomic rename. A missing or corrupt file starts the store empty.
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        self._data: dict[str, str] | None = None

    def _load(self) -> dict[str, str]:
        if self._data is None:
            self._data = {}
            if self.path.exists():
                try:
                    with self.path.open("r", encoding="utf-8") as f:
                        loaded = json.load(f)
                except (OSError, json.JSONDecodeError) as err:
                    logger.warning(f"Ignoring unreadable store {self.path}: {err}")
                else:
                    if isinstance(loaded, dict):
                        self._data = {str(k): str(v) for k, v in loaded.items()}
        return self._data

    def _save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        with tmp.open("w", encoding="utf-8") as f:
            json.dump(self._load(), f, indent=2, sort_keys=True)
        os.replace(tmp, self.path)

    def get(self, key: str) -> str | None:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        self._load()[key] = value
        self._save()

    def remove(self, key: str) -> None:
        if self._load().pop(key, None) is not None:
            self._save()

    def clear(self) -> None:
        self._load().clear()
        self._save()


class JsonCodec(Generic[T]):
    """Codec for JSON-representable values, with optional converters.

    Usage:
        codec = JsonCodec(to_json=lambda todo: todo.as_dict(), from_json=Todo.from_dict)
    """

    def __init__(
        self,
        *,
        to_json: Callable[[T], Any] | None = None,
        from_json: Callable[[Any], T] | None = None,
    ) -> None:
        self._to_json = to_json
        self._from_json = from_json

    def encode(self, value: T) -> str:
        return json.dumps(self._to_json(value) if self._to_json else value)

    def decode(self, token: str) -> T:
        try:
            raw = json.loads(token)
        except json.JSONDecodeError as err:
            raise CodecError(f"not a JSON token: {token!r}") from err
        if self._from_json is None:
            return raw
        try:
            return self._from_json(raw)
        except (TypeError, ValueError, KeyError) as err:
            raise CodecError(f"cannot rebuild value from {raw!r}") from err


class PersistState(Generic[T]):
    """Durability settings of one container: key, codec and optional store.

    When store is None the container falls back to its registry's store.
    fallback, when given, supplies the value that replaces an undecodable
    token; otherwise the container's creator is run again.
    """

    def __init__(
        self,
        key: str,
        *,
        codec: Codec[T] | None = None,
        store: PersistStore | None = None,
        fallback: Callable[[], T] | None = None,
    ) -> None:
        self.key = key
        self.codec: Codec[T] = codec if codec is not None else JsonCodec()
        self.store = store
        self.fallback = fallback
        self._pending: set[asyncio.Future] = set()

    @property
    def pending_writes(self) -> int:
        return len(self._pending)

    def read(self, store: PersistStore) -> str | None | Awaitable[str | None]:
        """Raw token from the store, or an awaitable of it."""
        return store.get(self.key)

    def write(self, store: PersistStore, value: T) -> None:
        """Encode value and issue the store write without waiting for it."""
        self._keep(store.set(self.key, self.codec.encode(value)))

    def delete(self, store: PersistStore) -> None:
        self._keep(store.remove(self.key))

    def _keep(self, result: Any) -> None:
        if not inspect.isawaitable(result):
            return
        future = asyncio.ensure_future(result)
        self._pending.add(future)
        future.add_done_callback(self._on_written)

    def _on_written(self, future: asyncio.Future) -> None:
        self._pending.discard(future)
        if not future.cancelled() and future.exception() is not None:
            logger.error("Failed to persist %r", self.key, exc_info=future.exception())

    def __repr__(self) -> str:
        return f"PersistState({self.key!r})"
