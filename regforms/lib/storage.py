"""Session-scoped key/value stores for persisted form state.

A store holds opaque strings under string keys for the lifetime of one
user session. The engine only ever talks to the ``SessionStore`` protocol;
which backend is used is a deployment decision (see ``create_session_store``).
"""

from __future__ import annotations

import logging
import os
import re
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING, Dict, List, Optional, Protocol, runtime_checkable

from regforms.lib.errors import PersistenceError

if TYPE_CHECKING:
    from regforms.lib.settings import FormSettings

logger = logging.getLogger(__name__)

__all__ = [
    "SessionStore",
    "MemorySessionStore",
    "FileSessionStore",
    "NullSessionStore",
    "create_session_store",
]

_SAFE_NAME = re.compile(r"[^A-Za-z0-9_.-]")


@runtime_checkable
class SessionStore(Protocol):
    """Minimal storage contract, shaped like the browser's sessionStorage."""

    def get_item(self, key: str) -> Optional[str]:
        ...

    def set_item(self, key: str, value: str) -> None:
        ...

    def remove_item(self, key: str) -> None:
        ...


class MemorySessionStore:
    """In-process store; one instance per session."""

    def __init__(self) -> None:
        self._items: Dict[str, str] = {}

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def keys(self) -> List[str]:
        return sorted(self._items)

    def __len__(self) -> int:
        return len(self._items)


class NullSessionStore:
    """Store for non-interactive (server-rendered) contexts: keeps nothing."""

    def get_item(self, key: str) -> Optional[str]:
        return None

    def set_item(self, key: str, value: str) -> None:
        pass

    def remove_item(self, key: str) -> None:
        pass


class FileSessionStore:
    """One JSON file per key under ``<root>/<session_id>/``.

    Writes go to a temp file in the same directory and are moved into place
    with ``os.replace`` so a reader never sees a half-written entry.
    """

    def __init__(self, root: Path | str, session_id: str) -> None:
        if not session_id:
            raise ValueError("session_id is required for FileSessionStore")
        self.root = Path(root)
        self.session_id = session_id
        self.session_dir = self.root / _safe_name(session_id)

    def _path(self, key: str) -> Path:
        return self.session_dir / f"{_safe_name(key)}.json"

    def get_item(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            logger.debug("No session entry %s for %s", key, self.session_id)
            return None
        try:
            return path.read_text(encoding="utf-8")
        except OSError as exc:
            raise PersistenceError("Could not read session entry", key=key, cause=exc) from exc

    def set_item(self, key: str, value: str) -> None:
        path = self._path(key)
        try:
            self.session_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.session_dir, prefix=".tmp-", suffix=".json")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(value)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise PersistenceError("Could not write session entry", key=key, cause=exc) from exc

    def remove_item(self, key: str) -> None:
        path = self._path(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            raise PersistenceError("Could not remove session entry", key=key, cause=exc) from exc

    def keys(self) -> List[str]:
        if not self.session_dir.exists():
            return []
        return sorted(
            p.stem for p in self.session_dir.glob("*.json") if not p.name.startswith(".tmp-")
        )

    def clear(self) -> int:
        """Delete every entry of this session. Returns the number removed."""
        count = 0
        for key in self.keys():
            self.remove_item(key)
            count += 1
        logger.info("Cleared %d session entries for %s", count, self.session_id)
        return count


def _safe_name(name: str) -> str:
    return _SAFE_NAME.sub("_", name)


def create_session_store(
    settings: "FormSettings",
    session_id: Optional[str] = None,
) -> SessionStore:
    """Build the store configured in settings.

    Args:
        settings: Loaded FormSettings
        session_id: Session identifier, required for the file backend
    """
    backend = settings.storage_backend
    if backend == "none" or settings.execution_context == "non_interactive":
        return NullSessionStore()
    if backend == "file":
        if not session_id:
            raise ValueError("The file storage backend needs a session_id")
        return FileSessionStore(settings.get_storage_dir(), session_id)
    return MemorySessionStore()
