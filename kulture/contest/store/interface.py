"""EntryStore protocol - pluggable storage for contest entries.

Implementations: InMemoryStore (demo, lost on restart), SQLEntryStore
(durable, keyed by video_id and (video_id, voter)).

The ledger serializes all calls; stores need not be thread-safe.
"""

from __future__ import annotations

from typing import Iterator, Protocol, runtime_checkable

from kulture.contest.models import VideoEntry


@runtime_checkable
class EntryStore(Protocol):
    """Abstract interface for reading/writing video entries."""

    def get(self, video_id: str) -> VideoEntry | None:
        """Fetch an entry by video ID."""
        ...

    def put(self, entry: VideoEntry) -> None:
        """Insert or replace an entry. New entries append to registration order."""
        ...

    def for_each_ordered(self) -> Iterator[VideoEntry]:
        """Iterate all entries in registration order."""
        ...

    def clear(self) -> None:
        """Drop every entry (epoch rollover)."""
        ...

    def load_epoch(self) -> int | None:
        """Persisted epoch, or None if never set."""
        ...

    def save_epoch(self, epoch: int) -> None:
        ...


__all__ = ["EntryStore"]
