"""
In-memory storage engine used when no queue store is configured.

The store keeps one native :class:`~guild_queue.models.StoredQueue` document
per session id. No serialization happens: ``stringify`` and ``parse`` are
identity functions, which makes it the reference implementation of the
:class:`~guild_queue.store_protocol.QueueStoreManager` contract.
"""

from __future__ import annotations

from typing import Any, Optional

from .models import StoredQueue


class DefaultQueueStore:
    """
    Process-local queue store backed by a dictionary.

    Notes
    -----
    * State is lost when the process exits; use a persistent backend for
      anything that must survive restarts.
    * Methods are synchronous. The queue runtime accepts both synchronous and
      asynchronous stores, so nothing needs to be awaited here.
    """

    def __init__(self) -> None:
        self._data: dict[str, Any] = {}

    def get(self, session_id: str) -> Optional[StoredQueue]:
        """Return the stored document for a session, or ``None``."""
        return self._data.get(session_id)

    def set(self, session_id: str, value: Any) -> bool:
        """Store a document for a session."""
        self._data[session_id] = value
        return True

    def delete(self, session_id: str) -> bool:
        """
        Remove a session document.

        Returns
        -------
        bool
            ``True`` when an entry existed.
        """
        return self._data.pop(session_id, None) is not None

    def stringify(self, value: StoredQueue) -> StoredQueue:
        return value

    def parse(self, value: Any) -> Optional[StoredQueue]:
        return value

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._data
