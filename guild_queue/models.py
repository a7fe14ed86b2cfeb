"""
Data model for persisted queues and the track capability predicates.

Tracks are produced by the playback library and travel through the queue as
plain JSON-like mappings. The queue never subclasses or wraps them: whether an
item is a resolved :class:`Track` or an :class:`UnresolvedTrack` is decided by
the :func:`is_track` / :func:`is_unresolved_track` predicates, so any extra
keys the playback library attaches (requester, plugin info...) round-trip
through every store untouched.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any, Optional, TypedDict, Union

MIN_TRACK_DURATION_MS = 10_000
"""Resolved tracks shorter than this are rejected by :func:`is_valid_track`."""


class TrackInfo(TypedDict, total=False):
    identifier: str
    title: str
    author: str
    uri: Optional[str]
    isrc: Optional[str]
    artworkUrl: Optional[str]
    duration: int
    isSeekable: bool
    isStream: bool
    sourceName: str


class Track(TypedDict, total=False):
    encoded: str
    info: TrackInfo
    pluginInfo: dict[str, Any]
    userData: dict[str, Any]
    requester: Any


class UnresolvedTrack(TypedDict, total=False):
    encoded: Optional[str]
    info: TrackInfo
    requester: Any


AnyTrack = Union[Track, UnresolvedTrack]


class StoredQueue(TypedDict):
    """Persisted state of one session queue."""

    current: Optional[Track]
    previous: list[Track]
    tracks: list[AnyTrack]


def is_track(value: Any) -> bool:
    """Return ``True`` when ``value`` is a resolved, playable track."""
    if not isinstance(value, Mapping):
        return False
    encoded = value.get("encoded")
    return isinstance(encoded, str) and bool(encoded) and isinstance(value.get("info"), Mapping)


def is_unresolved_track(value: Any) -> bool:
    """
    Return ``True`` for placeholder tracks that still need resolving.

    A placeholder has no playback handle but carries enough info (title, uri
    or identifier) for a later search to resolve it.
    """
    if not isinstance(value, Mapping) or is_track(value):
        return False
    info = value.get("info")
    if not isinstance(info, Mapping):
        return False
    return any(info.get(key) for key in ("title", "uri", "identifier"))


def is_valid_track(track: AnyTrack) -> bool:
    """
    Check whether a track may enter the queue.

    Resolved tracks need a numeric duration of at least
    :data:`MIN_TRACK_DURATION_MS`; unresolved tracks have no duration yet and
    always pass.
    """
    if not is_track(track):
        return True
    duration = track["info"].get("duration")
    if isinstance(duration, bool) or not isinstance(duration, (int, float)):
        return False
    if math.isnan(duration):
        return False
    return duration >= MIN_TRACK_DURATION_MS


def filter_valid_tracks(track_or_tracks: Any) -> list[AnyTrack]:
    """
    Normalize ``add``/``splice`` input into a flat list of acceptable tracks.

    Accepts a single track, a sequence of tracks, or a sequence whose entries
    are themselves sequences (one level of nesting is flattened). Anything that
    is neither a track nor an unresolved track is dropped, then
    :func:`is_valid_track` is applied.
    """
    if track_or_tracks is None:
        return []
    if isinstance(track_or_tracks, (list, tuple)):
        items: list[Any] = []
        for entry in track_or_tracks:
            if isinstance(entry, (list, tuple)):
                items.extend(entry)
            else:
                items.append(entry)
    else:
        items = [track_or_tracks]
    return [
        item
        for item in items
        if (is_track(item) or is_unresolved_track(item)) and is_valid_track(item)
    ]


# Evaluated in order; the first field present on both sides decides the match.
_MATCH_FIELDS: tuple[tuple[str, ...], ...] = (
    ("encoded",),
    ("info", "identifier"),
    ("info", "uri"),
    ("info", "title"),
    ("info", "isrc"),
    ("info", "artworkUrl"),
)


def _field(track: Any, path: tuple[str, ...]) -> Any:
    value = track
    for key in path:
        if not isinstance(value, Mapping):
            return None
        value = value.get(key)
    return value


def tracks_match(candidate: Any, query: Any) -> bool:
    """
    Return ``True`` when ``candidate`` is the track described by ``query``.

    Fields are compared in priority order: ``encoded``, ``info.identifier``,
    ``info.uri``, ``info.title``, ``info.isrc``, ``info.artworkUrl``. A field
    is only consulted when every earlier one was missing on at least one side;
    the first field present on both sides decides by equality.
    """
    for path in _MATCH_FIELDS:
        wanted = _field(query, path)
        actual = _field(candidate, path)
        if wanted and actual:
            return wanted == actual
    return False


def empty_stored_queue() -> StoredQueue:
    return {"current": None, "previous": [], "tracks": []}


def snapshot_queue(stored: StoredQueue) -> StoredQueue:
    """
    Copy queue state so observers cannot alias live data.

    ``current`` is shallow-copied and both lists are copied; the tracks inside
    the lists are shared.
    """
    current = stored.get("current")
    return {
        "current": dict(current) if current else None,
        "previous": list(stored.get("previous") or []),
        "tracks": list(stored.get("tracks") or []),
    }
