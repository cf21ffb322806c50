"""SQLAlchemy-backed EntryStore.

Durable replacement for InMemoryStore: entries keyed by video_id, voter
tallies keyed by (video_id, voter), epoch in a singleton state row. Each
call runs in its own short transaction.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import datetime, timezone
from typing import Iterator

from sqlalchemy import Engine, create_engine, delete, select
from sqlalchemy.orm import Session, sessionmaker

from kulture.contest.models import VideoEntry

from .schema import Base, ContestState, VideoEntryRow, VoterTallyRow


def _as_utc(ts: datetime) -> datetime:
    """SQLite drops tzinfo on read; stored values are always UTC."""
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts


def _to_entry(row: VideoEntryRow, ledger: dict[str, int]) -> VideoEntry:
    return VideoEntry(
        video_id=row.video_id,
        title=row.title,
        creator=row.creator,
        archive_reference=row.archive_reference,
        vote_count=row.vote_count,
        gross_contribution=row.gross_contribution,
        voter_ledger=ledger,
        registered_at=_as_utc(row.registered_at),
    )


class SQLEntryStore:
    """Relational EntryStore (SQLite, Postgres, ...)."""

    def __init__(self, url: str | None = None, engine: Engine | None = None):
        if engine is None:
            if url is None:
                raise ValueError("SQLEntryStore needs a database url or an engine")
            engine = create_engine(url)
        self.engine = engine
        Base.metadata.create_all(self.engine)
        self._session = sessionmaker(self.engine, expire_on_commit=False)

    def get(self, video_id: str) -> VideoEntry | None:
        with self._session() as session:
            row = session.scalars(
                select(VideoEntryRow).where(VideoEntryRow.video_id == video_id)
            ).one_or_none()
            if row is None:
                return None
            tallies = session.scalars(
                select(VoterTallyRow).where(VoterTallyRow.video_id == video_id)
            ).all()
            return _to_entry(row, {t.voter: t.votes for t in tallies})

    def put(self, entry: VideoEntry) -> None:
        with self._session.begin() as session:
            row = session.scalars(
                select(VideoEntryRow).where(VideoEntryRow.video_id == entry.video_id)
            ).one_or_none()
            if row is None:
                row = VideoEntryRow(video_id=entry.video_id)
                session.add(row)
            row.title = entry.title
            row.creator = entry.creator
            row.archive_reference = entry.archive_reference
            row.vote_count = entry.vote_count
            row.gross_contribution = entry.gross_contribution
            row.registered_at = entry.registered_at
            session.flush()
            self._sync_tallies(session, entry)

    def _sync_tallies(self, session: Session, entry: VideoEntry) -> None:
        existing = {
            t.voter: t
            for t in session.scalars(
                select(VoterTallyRow).where(VoterTallyRow.video_id == entry.video_id)
            )
        }
        for voter, votes in entry.voter_ledger.items():
            tally = existing.pop(voter, None)
            if tally is None:
                session.add(VoterTallyRow(video_id=entry.video_id, voter=voter, votes=votes))
            elif tally.votes != votes:
                tally.votes = votes
        for stale in existing.values():
            session.delete(stale)

    def for_each_ordered(self) -> Iterator[VideoEntry]:
        with self._session() as session:
            rows = session.scalars(select(VideoEntryRow).order_by(VideoEntryRow.id)).all()
            ledgers: dict[str, dict[str, int]] = defaultdict(dict)
            for t in session.scalars(select(VoterTallyRow)):
                ledgers[t.video_id][t.voter] = t.votes
        return iter([_to_entry(row, ledgers.get(row.video_id, {})) for row in rows])

    def clear(self) -> None:
        with self._session.begin() as session:
            session.execute(delete(VoterTallyRow))
            session.execute(delete(VideoEntryRow))

    def load_epoch(self) -> int | None:
        with self._session() as session:
            state = session.get(ContestState, 1)
            return state.epoch if state is not None else None

    def save_epoch(self, epoch: int) -> None:
        with self._session.begin() as session:
            state = session.get(ContestState, 1)
            if state is None:
                session.add(ContestState(id=1, epoch=epoch))
            else:
                state.epoch = epoch

    def close(self) -> None:
        self.engine.dispose()


__all__ = ["SQLEntryStore"]
