"""
guild_queue
===========

Store-backed playback queues for multi-session music bots.

Each session (for example a Discord guild) owns one :class:`Queue`. Only the
currently playing track is held in memory; the upcoming tracks and the
previously played history live in a pluggable store, so queues survive
restarts and can be shared between processes:

* :class:`guild_queue.store.DefaultQueueStore` keeps documents in memory
* :class:`guild_queue.persistence.JsonFileQueueStore` writes one JSON file
  per session
* ``guild_queue_redis.RedisQueueStore`` (optional plugin) keeps queues in
  Redis and supports targeted single-field operations

Features:

* duration validation of added tracks (resolved tracks shorter than 10s are
  rejected)
* capped previously-played history
* fuzzy removal by encoded handle, identifier, uri, title, isrc or artwork
* change notifications with before/after snapshots for observers

Store switching can be done with one parameter:

    from guild_queue import create_queue_store

    store = create_queue_store("memory")
    store = create_queue_store("redis", redis_url="redis://127.0.0.1:6379/0")

Typical usage::

    from guild_queue import Queue, QueueOptions, QueueSaver

    saver = QueueSaver(QueueOptions(max_previous_tracks=10))
    queue = Queue("guild-1", saver=saver)

    await queue.add(tracks)
    await queue.shuffle()
    next_track = await queue.shift_track()
"""

from .backends import StoreBackend, available_backends, create_queue_store
from .config import DEFAULT_MAX_PREVIOUS_TRACKS, QueueOptions
from .exceptions import (
    BackendConfigurationError,
    BackendNotAvailableError,
    GuildQueueError,
    QueueDataNotFoundError,
)
from .models import (
    AnyTrack,
    StoredQueue,
    Track,
    TrackInfo,
    UnresolvedTrack,
    filter_valid_tracks,
    is_track,
    is_unresolved_track,
    is_valid_track,
    tracks_match,
)
from .persistence import JsonFileQueueStore
from .queue import Queue, QueueUtils, RemovedTracks
from .saver import QueueSaver
from .store import DefaultQueueStore
from .store_protocol import QueueStoreManager, TargetedQueueStoreManager, is_targeted_store
from .watcher import LoggingQueueWatcher, QueueChangesWatcher, emit_queue_change

__all__ = [
    "AnyTrack",
    "BackendConfigurationError",
    "BackendNotAvailableError",
    "DEFAULT_MAX_PREVIOUS_TRACKS",
    "DefaultQueueStore",
    "GuildQueueError",
    "JsonFileQueueStore",
    "LoggingQueueWatcher",
    "Queue",
    "QueueChangesWatcher",
    "QueueDataNotFoundError",
    "QueueOptions",
    "QueueSaver",
    "QueueStoreManager",
    "QueueUtils",
    "RemovedTracks",
    "StoreBackend",
    "StoredQueue",
    "TargetedQueueStoreManager",
    "Track",
    "TrackInfo",
    "UnresolvedTrack",
    "available_backends",
    "create_queue_store",
    "emit_queue_change",
    "filter_valid_tracks",
    "is_targeted_store",
    "is_track",
    "is_unresolved_track",
    "is_valid_track",
    "tracks_match",
]
