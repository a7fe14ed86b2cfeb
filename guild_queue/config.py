"""
Configuration model for session queues.

One :class:`QueueOptions` instance is typically shared by every queue of an
application: it names the store all sessions persist into, the retention cap
for the previously played list and the optional change watcher.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:  # pragma: no cover - typing-only imports
    from .store_protocol import QueueStoreManager
    from .watcher import QueueChangesWatcher

DEFAULT_MAX_PREVIOUS_TRACKS = 25


@dataclass(slots=True)
class QueueOptions:
    """
    Queue construction options.

    Parameters
    ----------
    max_previous_tracks:
        Maximum length of the ``previous`` list after every save. ``0`` keeps
        no history at all.
    queue_store:
        Store backend shared by all queues. ``None`` selects a fresh
        :class:`~guild_queue.store.DefaultQueueStore`.
    queue_changes_watcher:
        Optional observer notified about shuffles, additions and removals.
    """

    max_previous_tracks: int = DEFAULT_MAX_PREVIOUS_TRACKS
    queue_store: Optional["QueueStoreManager"] = None
    queue_changes_watcher: Optional["QueueChangesWatcher"] = None

    def __post_init__(self) -> None:
        """Validate the retention cap at construction time."""
        if isinstance(self.max_previous_tracks, bool) or not isinstance(self.max_previous_tracks, int):
            raise ValueError("QueueOptions.max_previous_tracks must be an integer.")
        if self.max_previous_tracks < 0:
            raise ValueError("QueueOptions.max_previous_tracks must be >= 0.")
