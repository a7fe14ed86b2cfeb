"""
Redis backend plugin for guild_queue.

This package is kept separate from the core library so users can opt into
Redis-backed queue storage only when needed:

    from guild_queue import Queue, QueueOptions, QueueSaver
    from guild_queue_redis import RedisQueueStore, RedisQueueStoreConfig

    store = RedisQueueStore(config=RedisQueueStoreConfig(namespace="music-bot"))
    saver = QueueSaver(QueueOptions(queue_store=store))
    queue = Queue("guild-1", saver=saver)

Redis mode keeps every queue centralized, so several bot processes can share
the same sessions. The store advertises targeted operations, which lets
queues push, shift and read single tracks without reloading the whole list.

Users can either import this package directly or use the core backend factory:

    from guild_queue import create_queue_store
    store = create_queue_store("redis", redis_url="redis://127.0.0.1:6379/0")
"""

from .store import RedisQueueStore, RedisQueueStoreConfig

__all__ = ["RedisQueueStore", "RedisQueueStoreConfig"]
