"""SQLAlchemy tables backing the durable contest store."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class VideoEntryRow(Base):
    """One registered video. Row id order is registration order."""

    __tablename__ = "contest_video"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
        comment="Registration sequence (tie-break for equal vote counts)",
    )
    video_id: Mapped[str] = mapped_column(
        String,
        unique=True,
        nullable=False,
        comment="Opaque ID assigned by the upload registry",
    )
    title: Mapped[str] = mapped_column(String, nullable=False)
    creator: Mapped[str] = mapped_column(String, nullable=False)
    archive_reference: Mapped[str] = mapped_column(
        String,
        nullable=False,
        comment="Permanent-storage transaction ID of the archived video",
    )
    vote_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    gross_contribution: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        default=0,
        comment="Sum of accepted vote costs in lamports",
    )
    registered_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )


class VoterTallyRow(Base):
    """Votes cast by one voter for one video (anti-spam bookkeeping)."""

    __tablename__ = "contest_voter_tally"

    video_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("contest_video.video_id", ondelete="CASCADE"),
        primary_key=True,
    )
    voter: Mapped[str] = mapped_column(String, primary_key=True)
    votes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class ContestState(Base):
    """Singleton table tracking the current contest epoch.

    Always contains exactly one row (id=1) once the epoch is saved.
    """

    __tablename__ = "contest_state"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        default=1,
        comment="Singleton row (always id=1)",
    )
    epoch: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="Current contest epoch (advanced on rollover)",
    )


__all__ = ["Base", "ContestState", "VideoEntryRow", "VoterTallyRow"]
