"""Pydantic models for the contest ledger.

Three groups:
- VideoEntry / PrizePool: mutable ledger state, owned by ContestLedger
- VoteReceipt / VoteRejection: per-vote return values, never stored
- PayoutPlan / ContestResult / Standings: immutable reporting snapshots

All models serialize with camelCase aliases on the wire
(``model_dump(mode="json", by_alias=True)``) and accept either form on input.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .constants import LAMPORTS_PER_SOL, VOTE_COST_ATOMIC, VOTE_COST_MAJOR
from .errors import ContestError, RejectionReason


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class _FrozenWireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True,
    )


# ---------------------------------------------------------------------------
# Ledger state
# ---------------------------------------------------------------------------


class VideoEntry(_WireModel):
    """One registered video and its vote bookkeeping for the current epoch."""

    video_id: str = Field(min_length=1)
    title: str
    creator: str
    archive_reference: str
    vote_count: int = Field(default=0, ge=0)
    gross_contribution: int = Field(default=0, ge=0)
    voter_ledger: dict[str, int] = Field(
        default_factory=dict,
        description="Map of voter -> votes cast for this video",
    )
    registered_at: datetime

    @property
    def voter_count(self) -> int:
        """Distinct voters, not total votes."""
        return len(self.voter_ledger)

    def votes_by(self, voter: str) -> int:
        return self.voter_ledger.get(voter, 0)

    def record_vote(self, voter: str, cost: int) -> None:
        self.vote_count += 1
        self.gross_contribution += cost
        self.voter_ledger[voter] = self.votes_by(voter) + 1


class PrizePool(_WireModel):
    """Epoch-scoped accumulator of accepted vote payments."""

    total_lamports: int = Field(default=0, ge=0)
    total_votes_cast: int = Field(default=0, ge=0)

    @property
    def total_major_units(self) -> float:
        return self.total_lamports / LAMPORTS_PER_SOL

    def credit(self, cost: int) -> None:
        self.total_lamports += cost
        self.total_votes_cast += 1

    @classmethod
    def from_entries(cls, entries: list[VideoEntry]) -> PrizePool:
        """Rebuild pool totals from stored entries (restart recovery)."""
        return cls(
            total_lamports=sum(e.gross_contribution for e in entries),
            total_votes_cast=sum(e.vote_count for e in entries),
        )


# ---------------------------------------------------------------------------
# Vote outcomes
# ---------------------------------------------------------------------------


class VoteReceipt(_FrozenWireModel):
    """Proof of an accepted vote, returned to the caller."""

    voter: str
    video_id: str
    cost_lamports: int = VOTE_COST_ATOMIC
    timestamp: datetime
    transaction_signature: str = Field(
        description="Opaque settlement reference, unique per accepted vote",
    )

    @property
    def accepted(self) -> bool:
        return True


class VoteRejection(_FrozenWireModel):
    """A vote that failed a precondition. No state was changed."""

    voter: str
    video_id: str
    reason: RejectionReason
    votes_cast: int = 0

    @property
    def accepted(self) -> bool:
        return False

    def to_error(self) -> ContestError:
        """Typed exception for callers that want to raise."""
        if self.reason is RejectionReason.UNKNOWN_VIDEO:
            detail = f"video {self.video_id} not found"
        else:
            detail = f"{self.voter} already voted {self.votes_cast}x for {self.video_id}"
        return self.reason.error_type(detail)


# ---------------------------------------------------------------------------
# Settlement
# ---------------------------------------------------------------------------


class WinnerEntry(_FrozenWireModel):
    """One ranked prize recipient."""

    rank: int = Field(ge=1)
    video_id: str
    title: str
    creator: str
    votes: int
    prize_lamports: int
    percentage: int


class PayoutPlan(_FrozenWireModel):
    """Who gets how much. Handed to the settlement executor as-is."""

    epoch: int
    prize_pool_lamports: int
    total_votes_cast: int
    winners: list[WinnerEntry]
    creator_fund_lamports: int
    platform_reserve_lamports: int

    @property
    def distributed_lamports(self) -> int:
        """Sum paid to winner entries."""
        return sum(w.prize_lamports for w in self.winners)

    @property
    def unallocated_lamports(self) -> int:
        """Pool left after winners, creator fund and reserve (rounding, empty ranks)."""
        return (
            self.prize_pool_lamports
            - self.distributed_lamports
            - self.creator_fund_lamports
            - self.platform_reserve_lamports
        )


class ContestResult(PayoutPlan):
    """Settled contest for one epoch. The caller owns archiving it."""

    executed_at: datetime
    transaction_signature: str


# ---------------------------------------------------------------------------
# Standings
# ---------------------------------------------------------------------------


class StandingEntry(_FrozenWireModel):
    """Leaderboard row. The per-voter ledger is deliberately absent."""

    rank: int = Field(ge=1)
    video_id: str
    title: str
    creator: str
    archive_reference: str
    vote_count: int
    gross_contribution: int
    voter_count: int
    registered_at: datetime

    @classmethod
    def from_entry(cls, rank: int, entry: VideoEntry) -> StandingEntry:
        return cls(
            rank=rank,
            video_id=entry.video_id,
            title=entry.title,
            creator=entry.creator,
            archive_reference=entry.archive_reference,
            vote_count=entry.vote_count,
            gross_contribution=entry.gross_contribution,
            voter_count=entry.voter_count,
            registered_at=entry.registered_at,
        )


class Standings(_FrozenWireModel):
    """Current leaderboard snapshot."""

    epoch: int
    entries: list[StandingEntry]
    prize_pool_lamports: int
    prize_pool_sol: float
    total_votes: int
    vote_cost_lamports: int = VOTE_COST_ATOMIC
    vote_cost_sol: float = VOTE_COST_MAJOR


__all__ = [
    "ContestResult",
    "PayoutPlan",
    "PrizePool",
    "StandingEntry",
    "Standings",
    "VideoEntry",
    "VoteReceipt",
    "VoteRejection",
    "WinnerEntry",
]
