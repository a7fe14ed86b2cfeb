"""
Redis-backed queue store implementation.

The store implements both the base ``QueueStoreManager`` protocol and the
targeted superset, so :class:`guild_queue.queue.Queue` can push, shift and
read single tracks without round-tripping the whole document.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Optional

from guild_queue.models import AnyTrack, StoredQueue, Track
from redis.asyncio import Redis


@dataclass(slots=True)
class RedisQueueStoreConfig:
    """
    Configuration for :class:`RedisQueueStore`.

    Parameters
    ----------
    redis_url:
        Redis connection URL used when a client is not directly supplied.
    namespace:
        Prefix for all redis keys created by this store.
    """

    redis_url: str = "redis://127.0.0.1:6379/0"
    namespace: str = "guild-queue"

    def __post_init__(self) -> None:
        if not self.namespace:
            raise ValueError("RedisQueueStoreConfig.namespace must be a non-empty string.")


class RedisQueueStore:
    """
    Redis-backed implementation of the targeted queue store API.

    Data model
    ----------
    * ``<namespace>:<session>:current`` holds the current track as JSON text
    * ``<namespace>:<session>:tracks`` is a Redis list of JSON tracks
    * ``<namespace>:<session>:previous`` is a Redis list, most recent first
    * ``<namespace>:<session>:saved`` marks that a full document was written,
      so an empty queue still counts as stored

    Notes
    -----
    This backend is centralized: every process sharing the namespace sees the
    same queues. Full-document writes run inside a MULTI/EXEC pipeline so
    readers never observe a half-written queue.
    """

    supports_targeted_ops = True

    def __init__(
        self,
        *,
        config: RedisQueueStoreConfig | None = None,
        redis_client: Redis | None = None,
    ) -> None:
        self.config = config or RedisQueueStoreConfig()
        self._redis = redis_client or Redis.from_url(self.config.redis_url)

    async def close(self) -> None:
        """Release the underlying connection pool."""
        await self._redis.aclose()

    # ------------------------------------------------------------------ #
    # Key helpers
    # ------------------------------------------------------------------ #

    def _key_current(self, session_id: str) -> str:
        return f"{self.config.namespace}:{session_id}:current"

    def _key_tracks(self, session_id: str) -> str:
        return f"{self.config.namespace}:{session_id}:tracks"

    def _key_previous(self, session_id: str) -> str:
        return f"{self.config.namespace}:{session_id}:previous"

    def _key_saved(self, session_id: str) -> str:
        return f"{self.config.namespace}:{session_id}:saved"

    def _keys(self, session_id: str) -> tuple[str, str, str, str]:
        return (
            self._key_current(session_id),
            self._key_tracks(session_id),
            self._key_previous(session_id),
            self._key_saved(session_id),
        )

    # ------------------------------------------------------------------ #
    # Serialization helpers
    # ------------------------------------------------------------------ #

    def _encode(self, value: Any) -> str:
        return json.dumps(value, separators=(",", ":"), sort_keys=True)

    def _decode(self, value: Any) -> Any:
        if value is None or value is False:
            return None
        if isinstance(value, bytes):
            return json.loads(value.decode("utf-8"))
        if isinstance(value, str):
            return json.loads(value)
        return value

    def _decode_list(self, values: list[Any]) -> list[Any]:
        return [self._decode(item) for item in values]

    # ------------------------------------------------------------------ #
    # Base store API
    # ------------------------------------------------------------------ #

    async def get(self, session_id: str) -> Optional[StoredQueue]:
        """Return the full document, or ``None`` when nothing is stored."""
        if not await self._redis.exists(*self._keys(session_id)):
            return None
        return await self.load_full(session_id)

    async def set(self, session_id: str, value: StoredQueue) -> bool:
        # Callers already trimmed ``previous``; keep whatever was handed over.
        previous = value.get("previous") or []
        await self.save_full(session_id, value, len(previous))
        return True

    async def delete(self, session_id: str) -> bool:
        return bool(await self._redis.delete(*self._keys(session_id)))

    def stringify(self, value: StoredQueue) -> StoredQueue:
        return value

    def parse(self, value: Any) -> Optional[dict[str, Any]]:
        if isinstance(value, (str, bytes)):
            return self._decode(value)
        return value

    # ------------------------------------------------------------------ #
    # Current track
    # ------------------------------------------------------------------ #

    async def get_current(self, session_id: str) -> Optional[Track]:
        return self._decode(await self._redis.get(self._key_current(session_id)))

    async def set_current(self, session_id: str, track: Optional[Track]) -> None:
        if track is None:
            await self._redis.delete(self._key_current(session_id))
            return
        await self._redis.set(self._key_current(session_id), self._encode(track))

    # ------------------------------------------------------------------ #
    # Tracks list
    # ------------------------------------------------------------------ #

    async def get_tracks_count(self, session_id: str) -> int:
        return int(await self._redis.llen(self._key_tracks(session_id)))

    async def get_track_at(self, session_id: str, index: int) -> Optional[AnyTrack]:
        if index < 0:
            return None
        return self._decode(await self._redis.lindex(self._key_tracks(session_id), index))

    async def get_tracks_range(
        self, session_id: str, start: int, end: Optional[int] = None
    ) -> list[AnyTrack]:
        """
        Return ``tracks[start:end]``.

        Non-negative bounds map onto one LRANGE call; negative bounds fall back
        to slicing the full list locally.
        """
        if start < 0 or (end is not None and end < 0):
            return (await self.get_all_tracks(session_id))[start:end]
        if end is not None and end <= start:
            return []
        stop = -1 if end is None else end - 1
        raw = await self._redis.lrange(self._key_tracks(session_id), start, stop)
        return self._decode_list(raw)

    async def get_all_tracks(self, session_id: str) -> list[AnyTrack]:
        return self._decode_list(await self._redis.lrange(self._key_tracks(session_id), 0, -1))

    async def push_track(self, session_id: str, *tracks: AnyTrack) -> int:
        if not tracks:
            return await self.get_tracks_count(session_id)
        return int(await self._redis.rpush(self._key_tracks(session_id), *map(self._encode, tracks)))

    async def unshift_track(self, session_id: str, *tracks: AnyTrack) -> int:
        if not tracks:
            return await self.get_tracks_count(session_id)
        # LPUSH inserts one by one at the head, so feed it in reverse order.
        encoded = [self._encode(track) for track in reversed(tracks)]
        return int(await self._redis.lpush(self._key_tracks(session_id), *encoded))

    async def shift_track(self, session_id: str) -> Optional[AnyTrack]:
        return self._decode(await self._redis.lpop(self._key_tracks(session_id)))

    async def set_track_at(self, session_id: str, index: int, track: AnyTrack) -> None:
        await self._redis.lset(self._key_tracks(session_id), index, self._encode(track))

    async def clear_tracks(self, session_id: str) -> None:
        await self._redis.delete(self._key_tracks(session_id))

    async def replace_tracks(self, session_id: str, tracks: list[AnyTrack]) -> None:
        key = self._key_tracks(session_id)
        async with self._redis.pipeline(transaction=True) as pipe:
            pipe.delete(key)
            if tracks:
                pipe.rpush(key, *map(self._encode, tracks))
            await pipe.execute()

    # ------------------------------------------------------------------ #
    # Previous list
    # ------------------------------------------------------------------ #

    async def get_previous_count(self, session_id: str) -> int:
        return int(await self._redis.llen(self._key_previous(session_id)))

    async def get_previous_at(self, session_id: str, index: int) -> Optional[Track]:
        if index < 0:
            return None
        return self._decode(await self._redis.lindex(self._key_previous(session_id), index))

    async def get_all_previous(self, session_id: str) -> list[Track]:
        return self._decode_list(await self._redis.lrange(self._key_previous(session_id), 0, -1))

    async def add_to_previous(self, session_id: str, track: Track, max_size: int) -> None:
        key = self._key_previous(session_id)
        async with self._redis.pipeline(transaction=True) as pipe:
            if max_size <= 0:
                pipe.delete(key)
            else:
                pipe.lpush(key, self._encode(track))
                pipe.ltrim(key, 0, max_size - 1)
            await pipe.execute()

    async def shift_previous(self, session_id: str) -> Optional[Track]:
        return self._decode(await self._redis.lpop(self._key_previous(session_id)))

    async def clear_previous(self, session_id: str) -> None:
        await self._redis.delete(self._key_previous(session_id))

    # ------------------------------------------------------------------ #
    # Full document
    # ------------------------------------------------------------------ #

    async def load_full(self, session_id: str) -> StoredQueue:
        current_key, tracks_key, previous_key, _ = self._keys(session_id)
        async with self._redis.pipeline(transaction=True) as pipe:
            pipe.get(current_key)
            pipe.lrange(tracks_key, 0, -1)
            pipe.lrange(previous_key, 0, -1)
            current, tracks, previous = await pipe.execute()
        return {
            "current": self._decode(current),
            "previous": self._decode_list(previous),
            "tracks": self._decode_list(tracks),
        }

    async def save_full(self, session_id: str, stored: StoredQueue, max_previous_tracks: int) -> None:
        current_key, tracks_key, previous_key, saved_key = self._keys(session_id)
        tracks = list(stored.get("tracks") or [])
        previous = list(stored.get("previous") or [])[: max(0, max_previous_tracks)]
        current = stored.get("current")
        async with self._redis.pipeline(transaction=True) as pipe:
            pipe.delete(current_key, tracks_key, previous_key)
            pipe.set(saved_key, "1")
            if current is not None:
                pipe.set(current_key, self._encode(current))
            if tracks:
                pipe.rpush(tracks_key, *map(self._encode, tracks))
            if previous:
                pipe.rpush(previous_key, *map(self._encode, previous))
            await pipe.execute()

    async def delete_all(self, session_id: str) -> None:
        await self._redis.delete(*self._keys(session_id))
