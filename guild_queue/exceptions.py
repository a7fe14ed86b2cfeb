"""
Custom exceptions raised by the guild queue runtime.

Keeping library-specific errors in one module gives users a predictable
import surface for catching and handling operational edge cases. Store
backends keep raising their own native errors (``OSError``,
``redis.exceptions.RedisError``...); those are never wrapped here.
"""


class GuildQueueError(Exception):
    """Base error type for all library-level exceptions."""


class QueueDataNotFoundError(GuildQueueError):
    """
    Raised when a queue sync finds no stored document for a session.

    The queue keeps working against an empty document in every other
    operation, so only an explicit ``utils.sync()`` treats absence as an error.
    """

    def __init__(self, session_id: str) -> None:
        super().__init__(f"No data found to sync for session id: {session_id!r}")
        self.session_id = session_id


class BackendConfigurationError(GuildQueueError):
    """Raised when a store backend name or its options are invalid."""


class BackendNotAvailableError(GuildQueueError):
    """
    Raised when a store backend is requested but its optional package is absent.

    The Redis backend, for example, needs the ``guild_queue_redis`` plugin and
    the ``redis`` client library to be importable.
    """
