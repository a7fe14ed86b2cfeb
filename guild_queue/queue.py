"""
Session queue backed entirely by the configured store.

Only the currently playing track lives in memory. ``tracks`` and ``previous``
are fetched from the store on every call, mutated as a local copy and written
back, so several processes can share one queue through a common backend.

Every mutation follows the same cycle::

    load -> mutate local copy -> snapshot/notify watcher -> save -> return

No lock or version check is held between load and save: two concurrent
mutations of the same session may overwrite each other (last write wins).
Callers needing stronger guarantees serialize operations per session.
"""

from __future__ import annotations

import logging
import math
import random
from collections.abc import Callable, Mapping
from typing import Any, Optional, TypedDict, Union

from .config import QueueOptions
from .exceptions import QueueDataNotFoundError
from .models import (
    AnyTrack,
    StoredQueue,
    Track,
    filter_valid_tracks,
    is_track,
    snapshot_queue,
    tracks_match,
)
from .saver import QueueSaver
from .watcher import emit_queue_change, has_handler

__all__ = ("Queue", "QueueUtils", "RemovedTracks")

_LOGGER = logging.getLogger(__name__)


class RemovedTracks(TypedDict):
    removed: list[AnyTrack]


def _is_index(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _duration(track: Optional[Mapping[str, Any]]) -> float:
    if not track:
        return 0
    info = track.get("info")
    if not isinstance(info, Mapping):
        return 0
    duration = info.get("duration")
    if isinstance(duration, bool) or not isinstance(duration, (int, float)) or math.isnan(duration):
        return 0
    return duration


def _splice_bounds(length: int, index: int, amount: int) -> tuple[int, int]:
    """Resolve ``Array.prototype.splice`` style start/count into slice bounds."""
    start = max(length + index, 0) if index < 0 else min(index, length)
    count = max(0, min(amount, length - start))
    return start, start + count


class QueueUtils:
    """Maintenance helpers exposed as ``queue.utils``."""

    def __init__(self, queue: "Queue") -> None:
        self._queue = queue

    async def save(self) -> None:
        """Rewrite the stored document, re-applying the retention cap."""
        stored = await self._queue._load()
        await self._queue._save(stored)

    async def sync(self, override: bool = True, dont_sync_current: bool = True) -> None:
        """
        Reconcile local state with the store.

        Only ``current`` is cached locally, so syncing adopts the remote
        current track when ``dont_sync_current`` is false and none is set.
        ``override`` is accepted for API compatibility.

        Raises
        ------
        QueueDataNotFoundError
            When the store holds no document for this session.
        """
        queue = self._queue
        data = await queue._saver.sync(queue.session_id)
        if data is None:
            raise QueueDataNotFoundError(queue.session_id)
        remote_current = data.get("current")
        if not dont_sync_current and queue.current is None and is_track(remote_current):
            queue.current = remote_current

    async def destroy(self) -> Any:
        """Delete this session's document from the store."""
        queue = self._queue
        if queue._saver.supports_targeted_ops:
            return await queue._saver.run_targeted("delete_all", queue.session_id)
        return await queue._saver.delete(queue.session_id)

    async def to_json(self) -> StoredQueue:
        """Return an independent copy of the full queue state."""
        stored = await self._queue._load()
        self._queue._apply_retention(stored)
        return snapshot_queue(stored)

    async def total_duration(self) -> float:
        """Sum of queued track durations plus the current track, in milliseconds."""
        stored = await self._queue._load()
        return sum((_duration(track) for track in stored["tracks"]), _duration(self._queue.current))


class Queue:
    """
    Playback queue of one session.

    Parameters
    ----------
    session_id:
        Store key of this queue (e.g. a guild id).
    data:
        Optional initial state. Only ``current`` is used, and only when it is a
        resolved track; lists already live in the store.
    saver:
        Shared :class:`QueueSaver`. A private one is built from ``options``
        when omitted.
    options:
        Queue options; defaults to the saver's options.
    """

    def __init__(
        self,
        session_id: str,
        data: Optional[Mapping[str, Any]] = None,
        saver: Optional[QueueSaver] = None,
        options: Optional[QueueOptions] = None,
    ) -> None:
        self._session_id = str(session_id)
        self._saver = saver or QueueSaver(options)
        self.options = options or self._saver.options
        self._watcher = self.options.queue_changes_watcher
        self.max_previous_tracks = self._saver.max_previous_tracks
        current = (data or {}).get("current")
        self.current: Optional[Track] = current if is_track(current) else None
        self.utils = QueueUtils(self)

    @property
    def session_id(self) -> str:
        return self._session_id

    def __repr__(self) -> str:
        title = (self.current or {}).get("info", {}).get("title")
        return f"Queue(session_id={self._session_id!r}, current={title!r})"

    # ------------------------------------------------------------------ #
    # Load / save cycle
    # ------------------------------------------------------------------ #

    async def _load(self) -> StoredQueue:
        """Fetch the stored document; lists are copied, absent ones become empty."""
        data = await self._saver.get(self._session_id)
        if not isinstance(data, Mapping):
            data = {}
        previous = data.get("previous")
        tracks = data.get("tracks")
        return {
            "current": self.current,
            "previous": list(previous) if isinstance(previous, list) else [],
            "tracks": list(tracks) if isinstance(tracks, list) else [],
        }

    def _apply_retention(self, stored: StoredQueue) -> None:
        del stored["previous"][self.max_previous_tracks:]

    async def _save(self, stored: StoredQueue) -> None:
        self._apply_retention(stored)
        await self._saver.set(self._session_id, stored)

    def _wants(self, *events: str) -> bool:
        return any(has_handler(self._watcher, event) for event in events)

    def _notify(self, event: str, *args: Any) -> None:
        emit_queue_change(self._watcher, event, self._session_id, *args)

    # ------------------------------------------------------------------ #
    # Reads
    # ------------------------------------------------------------------ #

    async def get_tracks(self) -> list[AnyTrack]:
        if self._saver.supports_targeted_ops:
            return list(await self._saver.run_targeted("get_all_tracks", self._session_id))
        return (await self._load())["tracks"]

    async def get_track_count(self) -> int:
        if self._saver.supports_targeted_ops:
            return int(await self._saver.run_targeted("get_tracks_count", self._session_id))
        return len((await self._load())["tracks"])

    async def get_track(self, index: int) -> Optional[AnyTrack]:
        """Return the track at ``index`` or ``None`` when out of range."""
        if index < 0:
            return None
        if self._saver.supports_targeted_ops:
            return await self._saver.run_targeted("get_track_at", self._session_id, index)
        tracks = (await self._load())["tracks"]
        return tracks[index] if index < len(tracks) else None

    async def get_tracks_slice(self, start: int, end: Optional[int] = None) -> list[AnyTrack]:
        if self._saver.supports_targeted_ops:
            return list(await self._saver.run_targeted("get_tracks_range", self._session_id, start, end))
        return (await self._load())["tracks"][start:end]

    async def get_previous(self) -> list[Track]:
        if self._saver.supports_targeted_ops:
            return list(await self._saver.run_targeted("get_all_previous", self._session_id))
        return (await self._load())["previous"]

    async def get_previous_track(self, index: int) -> Optional[Track]:
        if index < 0:
            return None
        if self._saver.supports_targeted_ops:
            return await self._saver.run_targeted("get_previous_at", self._session_id, index)
        previous = (await self._load())["previous"]
        return previous[index] if index < len(previous) else None

    async def get_previous_count(self) -> int:
        if self._saver.supports_targeted_ops:
            return int(await self._saver.run_targeted("get_previous_count", self._session_id))
        return len((await self._load())["previous"])

    async def find_track_index(self, predicate: Callable[[AnyTrack], Any]) -> int:
        """Return the first index whose track satisfies ``predicate``, or ``-1``."""
        tracks = (await self._load())["tracks"]
        return next((index for index, track in enumerate(tracks) if predicate(track)), -1)

    # ------------------------------------------------------------------ #
    # Low-level primitives (no validation, no watcher events)
    # ------------------------------------------------------------------ #

    async def clear_tracks(self) -> None:
        if self._saver.supports_targeted_ops:
            await self._saver.run_targeted("clear_tracks", self._session_id)
            return
        stored = await self._load()
        stored["tracks"] = []
        await self._save(stored)

    async def unshift_track(self, track: AnyTrack) -> int:
        """Insert ``track`` at the head of the queue and return the new length."""
        if self._saver.supports_targeted_ops:
            return int(await self._saver.run_targeted("unshift_track", self._session_id, track))
        stored = await self._load()
        stored["tracks"].insert(0, track)
        await self._save(stored)
        return len(stored["tracks"])

    async def push_track(self, track: AnyTrack) -> int:
        """Append ``track`` and return the new length."""
        if self._saver.supports_targeted_ops:
            return int(await self._saver.run_targeted("push_track", self._session_id, track))
        stored = await self._load()
        stored["tracks"].append(track)
        await self._save(stored)
        return len(stored["tracks"])

    async def shift_track(self) -> Optional[AnyTrack]:
        """Remove and return the head of the queue, or ``None`` when empty."""
        if self._saver.supports_targeted_ops:
            return await self._saver.run_targeted("shift_track", self._session_id)
        stored = await self._load()
        if not stored["tracks"]:
            return None
        shifted = stored["tracks"].pop(0)
        await self._save(stored)
        return shifted

    async def set_tracks(self, tracks: list[AnyTrack]) -> None:
        """Replace the whole track list verbatim."""
        if self._saver.supports_targeted_ops:
            await self._saver.run_targeted("replace_tracks", self._session_id, list(tracks))
            return
        stored = await self._load()
        stored["tracks"] = list(tracks)
        await self._save(stored)

    async def move_track(self, from_index: int, to_index: int) -> None:
        """Move one track; silently ignored when ``from_index`` is out of range."""
        stored = await self._load()
        tracks = stored["tracks"]
        if not 0 <= from_index < len(tracks):
            return
        tracks.insert(to_index, tracks.pop(from_index))
        await self._save(stored)

    async def add_to_previous(self, track: Track) -> None:
        """Record ``track`` as the most recently played one."""
        if self._saver.supports_targeted_ops:
            await self._saver.run_targeted(
                "add_to_previous", self._session_id, track, self.max_previous_tracks
            )
            return
        stored = await self._load()
        stored["previous"].insert(0, track)
        await self._save(stored)

    async def replace_track(self, index: int, track: AnyTrack) -> bool:
        if self._saver.supports_targeted_ops:
            count = int(await self._saver.run_targeted("get_tracks_count", self._session_id))
            if not 0 <= index < count:
                return False
            await self._saver.run_targeted("set_track_at", self._session_id, index, track)
            return True
        stored = await self._load()
        if not 0 <= index < len(stored["tracks"]):
            return False
        stored["tracks"][index] = track
        await self._save(stored)
        return True

    async def swap_tracks(self, first: int, second: int) -> bool:
        stored = await self._load()
        tracks = stored["tracks"]
        if not (0 <= first < len(tracks) and 0 <= second < len(tracks)):
            return False
        tracks[first], tracks[second] = tracks[second], tracks[first]
        await self._save(stored)
        return True

    async def shift_previous(self) -> Optional[Track]:
        """
        Pop the most recently played track from ``previous``.

        Typical use is replaying the last song::

            previous = await queue.shift_previous()
            if previous is not None:
                await player.play(previous)
        """
        if self._saver.supports_targeted_ops:
            return await self._saver.run_targeted("shift_previous", self._session_id)
        stored = await self._load()
        if not stored["previous"]:
            return None
        removed = stored["previous"].pop(0)
        await self._save(stored)
        return removed

    # ------------------------------------------------------------------ #
    # Watched mutations
    # ------------------------------------------------------------------ #

    async def shuffle(self) -> int:
        """
        Shuffle the queued tracks and return their count.

        Two tracks are simply swapped; longer queues get a Fisher-Yates pass.
        """
        stored = await self._load()
        tracks = stored["tracks"]
        if len(tracks) <= 1:
            return len(tracks)
        old_stored = snapshot_queue(stored) if self._wants("shuffled") else None

        if len(tracks) == 2:
            tracks[0], tracks[1] = tracks[1], tracks[0]
        else:
            for i in range(len(tracks) - 1, 0, -1):
                j = random.randint(0, i)
                tracks[i], tracks[j] = tracks[j], tracks[i]

        if old_stored is not None:
            self._notify("shuffled", old_stored, snapshot_queue(stored))
        await self._save(stored)
        return len(tracks)

    async def add(self, track_or_tracks: Any, index: Optional[int] = None) -> int:
        """
        Add one or more tracks and return the new queue length.

        Invalid entries are dropped (see
        :func:`~guild_queue.models.filter_valid_tracks`). An in-range ``index``
        inserts the batch there, anything else appends it.
        """
        valid_tracks = filter_valid_tracks(track_or_tracks)
        stored = await self._load()
        tracks = stored["tracks"]
        old_stored = snapshot_queue(stored) if self._wants("tracks_add") else None

        if _is_index(index) and 0 <= index < len(tracks):
            position = index
            tracks[index:index] = valid_tracks
        else:
            position = len(tracks)
            tracks.extend(valid_tracks)

        if old_stored is not None:
            self._notify("tracks_add", list(valid_tracks), position, old_stored, snapshot_queue(stored))
        await self._save(stored)
        return len(tracks)

    async def splice(
        self,
        index: int,
        amount: int,
        track_or_tracks: Any = None,
    ) -> Union[AnyTrack, list[AnyTrack], int, None]:
        """
        Remove ``amount`` tracks at ``index`` and optionally insert new ones.

        Returns the removed track when exactly one was removed, otherwise the
        list of removed tracks. On an empty queue the call degrades to
        :meth:`add` (returning the new length) or returns ``None`` when there
        is nothing to insert.

        Examples::

            await queue.splice(4, 10)            # drop 10 tracks from position 4
            await queue.splice(1, 1)             # drop the track at position 1
            await queue.splice(4, 0, tracks)     # insert tracks at position 4
        """
        stored = await self._load()
        tracks = stored["tracks"]
        replacing = track_or_tracks is not None
        if not tracks:
            if replacing:
                return await self.add(track_or_tracks)
            return None

        valid_tracks = filter_valid_tracks(track_or_tracks) if replacing else []
        notify_add = replacing and self._wants("tracks_add")
        notify_removed = self._wants("tracks_removed")
        old_stored = snapshot_queue(stored) if notify_add or notify_removed else None

        start, stop = _splice_bounds(len(tracks), index, amount)
        removed = tracks[start:stop]
        tracks[start:stop] = valid_tracks

        if old_stored is not None:
            new_stored = snapshot_queue(stored)
            if notify_add:
                self._notify("tracks_add", list(valid_tracks), start, old_stored, new_stored)
            if notify_removed:
                self._notify("tracks_removed", list(removed), start, old_stored, new_stored)
        await self._save(stored)
        return removed[0] if len(removed) == 1 else removed

    async def remove(self, query: Any) -> Optional[RemovedTracks]:
        """
        Remove tracks by index, indices, track or tracks.

        Accepted queries:

        * ``4`` removes the track at index 4
        * ``[1, 5]`` removes the tracks at those indices; every index refers
          to the queue as it was before the call, so ``[0, 1]`` drops the
          first two tracks rather than the first and third
        * a track removes its first match
        * a list of tracks (optionally mixed with indices) removes every match

        Tracks match when the first field present on both sides among
        ``encoded``, ``info.identifier``, ``info.uri``, ``info.title``,
        ``info.isrc`` and ``info.artworkUrl`` is equal.

        Returns ``{"removed": [...]}`` or ``None`` when nothing was removed.
        """
        stored = await self._load()
        tracks = stored["tracks"]
        old_stored = snapshot_queue(stored) if self._wants("tracks_removed") else None
        position: Union[int, list[int]]

        if _is_index(query):
            if not 0 <= query < len(tracks):
                return None
            removed = [tracks.pop(query)]
            position = query
        elif isinstance(query, (list, tuple)):
            if all(_is_index(entry) for entry in query):
                positions: list[int] = []
                for entry in query:
                    if 0 <= entry < len(tracks) and entry not in positions:
                        positions.append(entry)
            else:
                positions = [
                    i
                    for i, track in enumerate(tracks)
                    if any(
                        entry == i if _is_index(entry) else tracks_match(track, entry)
                        for entry in query
                    )
                ]
            if not positions:
                return None
            removed = [tracks[i] for i in positions]
            for i in sorted(positions, reverse=True):
                del tracks[i]
            position = positions
        else:
            position = next((i for i, track in enumerate(tracks) if tracks_match(track, query)), -1)
            if position < 0:
                return None
            removed = [tracks.pop(position)]

        if old_stored is not None:
            self._notify("tracks_removed", list(removed), position, old_stored, snapshot_queue(stored))
        await self._save(stored)
        _LOGGER.debug("Removed %d tracks from queue session=%s", len(removed), self._session_id)
        return {"removed": removed}
