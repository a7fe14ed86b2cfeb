"""
File-backed queue store keeping one JSON document per session.

Persistence is intentionally simple and robust:

* documents are serialized as JSON text by ``stringify`` and decoded by
  ``parse``, so the rest of the runtime only ever sees the native shape
* writes are atomic via ``os.replace`` of a uniquely named temporary file
* optional ``fsync`` is available for stronger durability semantics
* blocking file I/O runs in a worker thread so the event loop stays free
"""

from __future__ import annotations

import asyncio
import json
import os
import tempfile
from pathlib import Path
from typing import Any, Optional
from urllib.parse import quote

from .models import StoredQueue


class JsonFileQueueStore:
    """
    Manage per-session JSON documents inside one directory.

    Parameters
    ----------
    directory:
        Directory holding ``<session id>.json`` files. Created on first write.
    fsync:
        If true, force the data and directory entries to disk on every write.
    """

    def __init__(self, directory: str, *, fsync: bool = False) -> None:
        self._directory = Path(directory).expanduser().resolve()
        self._fsync = bool(fsync)

    @property
    def directory(self) -> Path:
        """Return fully resolved storage directory."""
        return self._directory

    def path_for(self, session_id: str) -> Path:
        """Return the document path for one session id."""
        # Session ids are opaque; quote them so they can never escape the directory.
        return self._directory / f"{quote(str(session_id), safe='')}.json"

    async def get(self, session_id: str) -> Optional[str]:
        """
        Read the raw JSON text for a session.

        Returns
        -------
        str | None
            File contents, or ``None`` when no document exists.
        """
        return await asyncio.to_thread(self._read, self.path_for(session_id))

    async def set(self, session_id: str, value: str) -> bool:
        """Atomically write the raw JSON text for a session."""
        await asyncio.to_thread(self._write, self.path_for(session_id), value)
        return True

    async def delete(self, session_id: str) -> bool:
        """Remove the document for a session, returning whether it existed."""
        return await asyncio.to_thread(self._unlink, self.path_for(session_id))

    def stringify(self, value: StoredQueue) -> str:
        return json.dumps(value, separators=(",", ":"), sort_keys=True)

    def parse(self, value: Optional[str]) -> Optional[dict[str, Any]]:
        """
        Decode stored JSON text.

        Raises
        ------
        ValueError
            When the file holds valid JSON that is not an object.
        """
        if value is None:
            return None
        data = json.loads(value)
        if not isinstance(data, dict):
            raise ValueError("Queue document must contain a JSON object.")
        return data

    def _read(self, path: Path) -> Optional[str]:
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def _write(self, path: Path, text: str) -> None:
        """
        Persist text atomically.

        The method writes to a uniquely named temporary file next to the
        document and then renames it, so readers only observe either the old
        file or a complete new one, and overlapping writes of one session
        never share a temporary file (the last rename wins).
        """
        parent = path.parent
        parent.mkdir(parents=True, exist_ok=True)

        temp_path: Optional[Path] = None
        try:
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=parent,
                prefix=f"{path.name}.",
                suffix=".tmp",
                delete=False,
            ) as handle:
                temp_path = Path(handle.name)
                handle.write(text)
                handle.flush()
                if self._fsync:
                    os.fsync(handle.fileno())
            os.replace(temp_path, path)
        except Exception:
            if temp_path is not None:
                temp_path.unlink(missing_ok=True)
            raise

        if self._fsync:
            dir_fd = os.open(str(parent), os.O_RDONLY)
            try:
                os.fsync(dir_fd)
            finally:
                os.close(dir_fd)

    def _unlink(self, path: Path) -> bool:
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        return True
