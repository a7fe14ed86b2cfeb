"""
Backend factory helpers for easy store switching.

This module gives application developers a uniform way to pick a queue store
by name without rewriting bootstrap logic::

    store = create_queue_store("memory")
    store = create_queue_store("json", directory="./data/queues")
    store = create_queue_store("redis", redis_url="redis://127.0.0.1:6379/0")
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from .exceptions import BackendConfigurationError, BackendNotAvailableError
from .persistence import JsonFileQueueStore
from .store import DefaultQueueStore
from .store_protocol import QueueStoreManager


class StoreBackend(str, Enum):
    """
    Built-in backend names supported by the factory helpers.

    MEMORY
        In-process dictionary store.
    JSON
        One JSON file per session inside a directory.
    REDIS
        Centralized, targeted Redis store provided by the optional plugin.
    """

    MEMORY = "memory"
    JSON = "json"
    REDIS = "redis"


def _normalize_backend(backend: str | StoreBackend) -> StoreBackend:
    """
    Normalize backend name into :class:`StoreBackend` enum value.
    """
    if isinstance(backend, StoreBackend):
        return backend
    lowered = str(backend).strip().lower()
    try:
        return StoreBackend(lowered)
    except ValueError as exc:
        valid = ", ".join(item.value for item in StoreBackend)
        raise BackendConfigurationError(
            f"Unknown backend {backend!r}. Supported values: {valid}."
        ) from exc


def _reject_unknown(backend: StoreBackend, options: dict[str, Any]) -> None:
    if options:
        unknown = ", ".join(sorted(str(key) for key in options))
        raise BackendConfigurationError(
            f"Unknown {backend.value} backend options: {unknown}."
        )


def available_backends() -> tuple[str, ...]:
    """
    Return backend names available in the current environment.

    The Redis backend appears only when the plugin and its client library
    import cleanly.
    """
    backends = [StoreBackend.MEMORY.value, StoreBackend.JSON.value]
    try:
        __import__("guild_queue_redis")
    except Exception:  # noqa: BLE001 - optional dependency probing
        pass
    else:
        backends.append(StoreBackend.REDIS.value)
    return tuple(backends)


def create_queue_store(
    backend: str | StoreBackend = StoreBackend.MEMORY,
    **backend_options: Any,
) -> QueueStoreManager:
    """
    Create a queue store instance from a short backend name.

    Parameters
    ----------
    backend:
        Backend selector string (``"memory"``, ``"json"`` or ``"redis"``).
    backend_options:
        Backend-specific options.

        JSON options:
            ``directory`` (str, required) and ``fsync`` (bool).
        Redis options:
            ``redis_url`` (str), ``namespace`` (str), ``redis_client``
            and optional plugin-native ``config`` object.
    """
    selected = _normalize_backend(backend)
    if selected is StoreBackend.MEMORY:
        _reject_unknown(selected, backend_options)
        return DefaultQueueStore()
    if selected is StoreBackend.JSON:
        directory = backend_options.pop("directory", None)
        if not directory:
            raise BackendConfigurationError("JSON backend requires a 'directory' option.")
        fsync = bool(backend_options.pop("fsync", False))
        _reject_unknown(selected, backend_options)
        return JsonFileQueueStore(str(directory), fsync=fsync)
    if selected is StoreBackend.REDIS:
        try:
            from guild_queue_redis import RedisQueueStore, RedisQueueStoreConfig
        except Exception as exc:  # noqa: BLE001 - optional dependency may be absent
            raise BackendNotAvailableError(
                "Redis backend requires the 'guild_queue_redis' plugin and the 'redis' package."
            ) from exc

        config = backend_options.pop("config", None)
        redis_client = backend_options.pop("redis_client", None)
        if config is None:
            redis_url = str(backend_options.pop("redis_url", "redis://127.0.0.1:6379/0"))
            namespace = str(backend_options.pop("namespace", "guild-queue"))
            config = RedisQueueStoreConfig(redis_url=redis_url, namespace=namespace)
        _reject_unknown(selected, backend_options)
        return RedisQueueStore(config=config, redis_client=redis_client)
    raise BackendConfigurationError(f"Unhandled backend: {selected!r}")
