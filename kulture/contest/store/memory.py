"""In-memory EntryStore. State is lost on restart."""

from __future__ import annotations

from typing import Iterator

from kulture.contest.models import VideoEntry


class InMemoryStore:
    """Dict-backed store; dict insertion order is registration order."""

    def __init__(self) -> None:
        self._entries: dict[str, VideoEntry] = {}
        self._epoch: int | None = None

    def get(self, video_id: str) -> VideoEntry | None:
        return self._entries.get(video_id)

    def put(self, entry: VideoEntry) -> None:
        self._entries[entry.video_id] = entry

    def for_each_ordered(self) -> Iterator[VideoEntry]:
        return iter(list(self._entries.values()))

    def clear(self) -> None:
        self._entries.clear()

    def load_epoch(self) -> int | None:
        return self._epoch

    def save_epoch(self, epoch: int) -> None:
        self._epoch = epoch

    def __len__(self) -> int:
        return len(self._entries)


__all__ = ["InMemoryStore"]
