"""Persisted key-value stores with change notification.

Each store holds a single JSON document. Several processes may share the same
file; the last writer wins and there is no locking.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Callable
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Any, Protocol

from .exceptions import PersistenceError

logger = logging.getLogger(__name__)

ChangeCallback = Callable[[Any], None]


class StateStore(Protocol):
    """Interface the timer engine persists through."""

    def get(self) -> Any | None: ...

    def set(self, value: Any) -> None: ...

    def subscribe(self, callback: ChangeCallback) -> Callable[[], None]: ...


class _Subscribers:
    def __init__(self):
        self._callbacks: list[ChangeCallback] = []

    def subscribe(self, callback: ChangeCallback) -> Callable[[], None]:
        self._callbacks.append(callback)

        def unsubscribe() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return unsubscribe

    def notify(self, value: Any) -> None:
        for callback in list(self._callbacks):
            callback(value)


class JsonFileStore:
    """JSON document on disk, written atomically."""

    def __init__(self, path: Path | str):
        self.path = Path(path)
        self._subscribers = _Subscribers()
        self._signature: tuple[int, int, int] | None = None

    def _stat_signature(self) -> tuple[int, int, int] | None:
        try:
            st = self.path.stat()
        except OSError:
            return None
        return (st.st_ino, st.st_mtime_ns, st.st_size)

    def get(self) -> Any | None:
        """Return the stored value, or None if missing or unreadable."""
        self._signature = self._stat_signature()
        if self._signature is None:
            return None
        try:
            return json.loads(self.path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError, UnicodeDecodeError) as e:
            logger.warning("ignoring unreadable store %s: %s", self.path, e)
            return None

    def set(self, value: Any) -> None:
        """Replace the stored value.

        Raises:
            PersistenceError: If the value cannot be serialized or written.
        """
        try:
            payload = json.dumps(value, indent=2)
        except (TypeError, ValueError) as e:
            raise PersistenceError(f"Cannot serialize value for {self.path}: {e}") from e

        tmp_path: Path | None = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with NamedTemporaryFile(
                "w", delete=False, encoding="utf-8", dir=str(self.path.parent)
            ) as handle:
                tmp_path = Path(handle.name)
                handle.write(payload)
                handle.flush()
                os.fsync(handle.fileno())
            tmp_path.chmod(0o600)
            os.replace(tmp_path, self.path)
        except OSError as e:
            if tmp_path is not None and tmp_path.exists():
                tmp_path.unlink()
            raise PersistenceError(f"Cannot write {self.path}: {e}") from e

        self._signature = self._stat_signature()

    def subscribe(self, callback: ChangeCallback) -> Callable[[], None]:
        """Register ``callback`` for writes made by other processes."""
        return self._subscribers.subscribe(callback)

    def poll(self) -> bool:
        """Notify subscribers if the file changed since our last read or write.

        Returns True when a change was detected.
        """
        signature = self._stat_signature()
        if signature == self._signature:
            return False
        value = self.get()
        self._subscribers.notify(value)
        return True


class MemoryStore:
    """In-process store with the same interface as ``JsonFileStore``."""

    def __init__(self, value: Any | None = None):
        self._value = value
        self._subscribers = _Subscribers()
        self.writes = 0

    def get(self) -> Any | None:
        if self._value is None:
            return None
        return json.loads(json.dumps(self._value))

    def set(self, value: Any) -> None:
        try:
            self._value = json.loads(json.dumps(value))
        except (TypeError, ValueError) as e:
            raise PersistenceError(f"Cannot serialize value: {e}") from e
        self.writes += 1

    def subscribe(self, callback: ChangeCallback) -> Callable[[], None]:
        return self._subscribers.subscribe(callback)

    def external_set(self, value: Any | None) -> None:
        """Write as another process would, notifying subscribers."""
        self._value = value
        self._subscribers.notify(self.get())
