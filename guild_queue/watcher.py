"""
Queue change notification protocol.

A watcher is any object exposing some of the callbacks of
:class:`QueueChangesWatcher`. Callbacks that are missing are skipped, and
callbacks that raise are logged and ignored: a broken observer can never abort
or corrupt a queue mutation.

Snapshot arguments (``old_stored_queue`` / ``new_stored_queue``) are
independent copies taken by the queue, so observers may keep them around.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Callable
from typing import Any, Optional, Protocol, Union

from .models import AnyTrack, StoredQueue, Track

__all__ = (
    "QUEUE_CHANGE_EVENTS",
    "LoggingQueueWatcher",
    "QueueChangesWatcher",
    "emit_queue_change",
    "has_handler",
)

_LOGGER = logging.getLogger(__name__)

QUEUE_CHANGE_EVENTS = (
    "tracks_add",
    "tracks_removed",
    "shuffled",
    "seeked",
    "volume_changed",
    "pause_resume",
    "repeat_mode_changed",
)


class QueueChangesWatcher(Protocol):
    """Observer contract; implement only the callbacks you care about."""

    def tracks_add(
        self,
        session_id: str,
        tracks: list[AnyTrack],
        position: int,
        old_stored_queue: StoredQueue,
        new_stored_queue: StoredQueue,
    ) -> None: ...

    def tracks_removed(
        self,
        session_id: str,
        tracks: list[AnyTrack],
        position: Union[int, list[int]],
        old_stored_queue: StoredQueue,
        new_stored_queue: StoredQueue,
    ) -> None: ...

    def shuffled(
        self,
        session_id: str,
        old_stored_queue: StoredQueue,
        new_stored_queue: StoredQueue,
    ) -> None: ...

    def seeked(
        self,
        session_id: str,
        track: Track,
        old_position: int,
        new_position: int,
        player: Any,
        old_stored_queue: StoredQueue,
        new_stored_queue: StoredQueue,
    ) -> None: ...

    def volume_changed(self, session_id: str, player: Any) -> None: ...

    def pause_resume(self, session_id: str, player: Any) -> None: ...

    def repeat_mode_changed(self, session_id: str, player: Any) -> None: ...


def has_handler(watcher: Optional[object], event: str) -> bool:
    """Return ``True`` when ``watcher`` implements the callback for ``event``."""
    return watcher is not None and callable(getattr(watcher, event, None))


# Strong references to scheduled callbacks; the loop only keeps weak ones.
_PENDING_TASKS: set["asyncio.Future[Any]"] = set()


def _log_task_failure(task: "asyncio.Future[Any]") -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        _LOGGER.debug("Async queue watcher callback failed", exc_info=exc)


def emit_queue_change(watcher: Optional[object], event: str, *args: Any) -> bool:
    """
    Deliver one change event to ``watcher`` on a best-effort basis.

    Awaitable results (coroutines, futures, custom awaitables) are scheduled
    on the running loop without being awaited. The playback layer uses this
    for ``seeked``, ``volume_changed``, ``pause_resume`` and
    ``repeat_mode_changed``; the queue itself emits the remaining events.

    Returns
    -------
    bool
        ``True`` when a callback existed and was invoked (even if it failed).
    """
    if not has_handler(watcher, event):
        return False
    callback = getattr(watcher, event)
    try:
        result = callback(*args)
    except Exception:
        _LOGGER.debug("Queue watcher callback %s failed", event, exc_info=True)
        return True
    if inspect.isawaitable(result):
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            if inspect.iscoroutine(result):
                result.close()
            _LOGGER.debug("Dropped async queue watcher callback %s: no running loop", event)
            return True
        try:
            task = asyncio.ensure_future(result, loop=loop)
        except Exception:
            _LOGGER.debug("Queue watcher callback %s returned an unusable awaitable", event, exc_info=True)
            return True
        _PENDING_TASKS.add(task)
        task.add_done_callback(_PENDING_TASKS.discard)
        task.add_done_callback(_log_task_failure)
    return True


class LoggingQueueWatcher:
    """
    Watcher that reports every queue change through :mod:`logging`.

    Parameters
    ----------
    logger:
        Destination logger. Defaults to this module's logger.
    describe_session:
        Optional callable turning a session id into a readable label (for
        example a guild name lookup).
    """

    def __init__(
        self,
        *,
        logger: Optional[logging.Logger] = None,
        describe_session: Optional[Callable[[str], Optional[str]]] = None,
    ) -> None:
        self._logger = logger or _LOGGER
        self._describe_session = describe_session

    def _label(self, session_id: str) -> str:
        if self._describe_session is not None:
            label = self._describe_session(session_id)
            if label:
                return label
        return str(session_id)

    def shuffled(self, session_id, old_stored_queue, new_stored_queue) -> None:
        self._logger.info("%s: Queue got shuffled", self._label(session_id))

    def tracks_add(self, session_id, tracks, position, old_stored_queue, new_stored_queue) -> None:
        self._logger.info(
            "%s: %d tracks got added into the queue at position #%s",
            self._label(session_id),
            len(tracks),
            position,
        )

    def tracks_removed(self, session_id, tracks, position, old_stored_queue, new_stored_queue) -> None:
        self._logger.info(
            "%s: %d tracks got removed from the queue at position #%s",
            self._label(session_id),
            len(tracks),
            position,
        )

    def seeked(
        self,
        session_id,
        track,
        old_position,
        new_position,
        player,
        old_stored_queue,
        new_stored_queue,
    ) -> None:
        info = (track or {}).get("info") or {}
        self._logger.info(
            '%s: Track "%s" seeked from %ds to %ds',
            self._label(session_id),
            info.get("title") or "Unknown Track",
            int(old_position // 1000),
            int(new_position // 1000),
        )

    def volume_changed(self, session_id, player) -> None:
        self._logger.info(
            "%s: Volume changed to %s%%",
            self._label(session_id),
            getattr(player, "volume", "?"),
        )

    def pause_resume(self, session_id, player) -> None:
        paused = getattr(player, "paused", None)
        self._logger.info(
            "%s: Playback %s",
            self._label(session_id),
            "paused" if paused else "resumed",
        )

    def repeat_mode_changed(self, session_id, player) -> None:
        self._logger.info(
            "%s: Repeat mode changed to %s",
            self._label(session_id),
            getattr(player, "repeat_mode", "?"),
        )
