"""
Thin orchestration layer between queues and their store backend.

:class:`QueueSaver` is the only component that talks to the store: it applies
the backend's ``parse``/``stringify`` hooks so that :class:`~guild_queue.queue.Queue`
only ever handles native :class:`~guild_queue.models.StoredQueue` documents.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from .config import QueueOptions
from .helpers import maybe_await
from .models import StoredQueue
from .store import DefaultQueueStore
from .store_protocol import QueueStoreManager, TargetedQueueStoreManager, is_targeted_store

_LOGGER = logging.getLogger(__name__)


class QueueSaver:
    """
    Resolve the configured store and delegate document reads/writes to it.

    Parameters
    ----------
    options:
        Queue options. When ``options.queue_store`` is ``None`` a private
        :class:`DefaultQueueStore` is created.
    """

    def __init__(self, options: Optional[QueueOptions] = None) -> None:
        self.options = options or QueueOptions()
        self._store: QueueStoreManager = self.options.queue_store or DefaultQueueStore()

    @property
    def store(self) -> QueueStoreManager:
        """Return the resolved store backend."""
        return self._store

    @property
    def max_previous_tracks(self) -> int:
        return self.options.max_previous_tracks

    @property
    def supports_targeted_ops(self) -> bool:
        """Return ``True`` when the store exposes field-granular operations."""
        return is_targeted_store(self._store)

    async def run_targeted(self, operation: str, session_id: str, *args: Any) -> Any:
        """
        Invoke one :class:`TargetedQueueStoreManager` operation on the store.

        Raises
        ------
        TypeError
            When the store does not advertise targeted operations.
        """
        if not self.supports_targeted_ops:
            raise TypeError(f"Store {type(self._store).__name__} does not support targeted operations.")
        store: TargetedQueueStoreManager = self._store  # type: ignore[assignment]
        _LOGGER.debug("Targeted store operation %s session=%s", operation, session_id)
        return await maybe_await(getattr(store, operation)(session_id, *args))

    async def get(self, session_id: str) -> Optional[dict[str, Any]]:
        """Load and parse the document for a session."""
        raw = await maybe_await(self._store.get(session_id))
        return await maybe_await(self._store.parse(raw))

    async def set(self, session_id: str, value: StoredQueue) -> Any:
        """Stringify and persist the document for a session."""
        serialized = await maybe_await(self._store.stringify(value))
        _LOGGER.debug(
            "Saving queue session=%s tracks=%d previous=%d",
            session_id,
            len(value.get("tracks") or []),
            len(value.get("previous") or []),
        )
        return await maybe_await(self._store.set(session_id, serialized))

    async def delete(self, session_id: str) -> Any:
        """Delete the document for a session."""
        _LOGGER.debug("Deleting queue session=%s", session_id)
        return await maybe_await(self._store.delete(session_id))

    async def sync(self, session_id: str) -> Optional[dict[str, Any]]:
        """Fetch the authoritative document; currently identical to :meth:`get`."""
        return await self.get(session_id)
