"""
Store protocols used by :class:`guild_queue.saver.QueueSaver`.

The queue runtime depends on this abstract method surface rather than a
specific in-memory implementation, enabling external backends such as Redis
or a directory of JSON files without changing the queue API.

Every method may be implemented either as a plain function or as a coroutine
function; callers always resolve results through
:func:`guild_queue.helpers.maybe_await`.
"""

from __future__ import annotations

from collections.abc import Awaitable
from typing import Any, Optional, Protocol, TypeVar, Union

from .models import AnyTrack, StoredQueue, Track

T = TypeVar("T")
MaybeAwaitable = Union[T, Awaitable[T]]


class QueueStoreManager(Protocol):
    """
    Behavioral contract for queue state backends.

    ``get`` must return the raw (unparsed) value and ``set`` receives the
    value already passed through ``stringify``. Backends that store native
    documents simply make ``stringify``/``parse`` identity functions.
    """

    def get(self, session_id: str) -> MaybeAwaitable[Any]:
        """Return the raw stored value for a session, or ``None``."""

    def set(self, session_id: str, value: Any) -> MaybeAwaitable[Optional[bool]]:
        """Persist a raw (already stringified) value for a session."""

    def delete(self, session_id: str) -> MaybeAwaitable[Optional[bool]]:
        """Delete a session entry."""

    def stringify(self, value: StoredQueue) -> MaybeAwaitable[Any]:
        """Convert a queue document into the backend's storage form."""

    def parse(self, value: Any) -> MaybeAwaitable[Optional[dict[str, Any]]]:
        """Convert a raw stored value back into a (possibly partial) document."""


class TargetedQueueStoreManager(QueueStoreManager, Protocol):
    """
    Extended contract for backends with field-granular remote operations.

    Implementations advertise themselves with ``supports_targeted_ops = True``
    so :func:`is_targeted_store` can route single-field operations around the
    full load/save cycle.
    """

    supports_targeted_ops: bool

    # current track
    def get_current(self, session_id: str) -> MaybeAwaitable[Optional[Track]]: ...

    def set_current(self, session_id: str, track: Optional[Track]) -> MaybeAwaitable[None]: ...

    # tracks list
    def get_tracks_count(self, session_id: str) -> MaybeAwaitable[int]: ...

    def get_track_at(self, session_id: str, index: int) -> MaybeAwaitable[Optional[AnyTrack]]: ...

    def get_tracks_range(
        self, session_id: str, start: int, end: Optional[int] = None
    ) -> MaybeAwaitable[list[AnyTrack]]:
        """Return tracks sliced with Python slice semantics."""

    def get_all_tracks(self, session_id: str) -> MaybeAwaitable[list[AnyTrack]]: ...

    def push_track(self, session_id: str, *tracks: AnyTrack) -> MaybeAwaitable[int]:
        """Append tracks and return the new list length."""

    def unshift_track(self, session_id: str, *tracks: AnyTrack) -> MaybeAwaitable[int]:
        """Prepend tracks (keeping their order) and return the new list length."""

    def shift_track(self, session_id: str) -> MaybeAwaitable[Optional[AnyTrack]]: ...

    def set_track_at(self, session_id: str, index: int, track: AnyTrack) -> MaybeAwaitable[None]: ...

    def clear_tracks(self, session_id: str) -> MaybeAwaitable[None]: ...

    def replace_tracks(self, session_id: str, tracks: list[AnyTrack]) -> MaybeAwaitable[None]: ...

    # previous list
    def get_previous_count(self, session_id: str) -> MaybeAwaitable[int]: ...

    def get_previous_at(self, session_id: str, index: int) -> MaybeAwaitable[Optional[Track]]: ...

    def get_all_previous(self, session_id: str) -> MaybeAwaitable[list[Track]]: ...

    def add_to_previous(self, session_id: str, track: Track, max_size: int) -> MaybeAwaitable[None]:
        """Prepend to the previous list and trim it to ``max_size`` entries."""

    def shift_previous(self, session_id: str) -> MaybeAwaitable[Optional[Track]]: ...

    def clear_previous(self, session_id: str) -> MaybeAwaitable[None]: ...

    # full document
    def load_full(self, session_id: str) -> MaybeAwaitable[StoredQueue]: ...

    def save_full(
        self, session_id: str, stored: StoredQueue, max_previous_tracks: int
    ) -> MaybeAwaitable[None]: ...

    # lifecycle
    def delete_all(self, session_id: str) -> MaybeAwaitable[None]: ...


def is_targeted_store(store: Any) -> bool:
    """Return ``True`` when ``store`` advertises the targeted operations marker."""
    return getattr(store, "supports_targeted_ops", False) is True
