"""ContestLedger - paid voting and prize settlement for one contest epoch.

Mechanics:
- Each vote costs VOTE_COST_ATOMIC (0.0009 SOL) and feeds the prize pool.
- A voter may cast at most MAX_VOTES_PER_WALLET votes per video. There is
  no limit across videos and no check against the video's creator.
- Settlement ranks videos by votes and splits the pool 40% / 6% x 5, with
  20% creator fund and 10% platform reserve reported for the executor.

All mutations run under one lock, so the check-then-increment of a vote is
serializable and pool totals match accepted votes exactly. The lock is
never held across the settlement executor call.
"""

from __future__ import annotations

import threading
from datetime import datetime, timezone
from typing import Callable

import bittensor as bt

from .constants import MAX_VOTES_PER_WALLET, VOTE_COST_ATOMIC
from .errors import RejectionReason
from .models import (
    ContestResult,
    PayoutPlan,
    PrizePool,
    StandingEntry,
    Standings,
    VideoEntry,
    VoteReceipt,
    VoteRejection,
)
from .settlement import (
    SettlementExecutor,
    SimulatedSettlementExecutor,
    compute_payout_plan,
    new_reference,
    rank_entries,
)
from .store.interface import EntryStore
from .store.memory import InMemoryStore


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def short_wallet(voter: str | None) -> str:
    """Truncate a wallet address for log readability."""
    if not voter:
        return "none"
    return voter[:8]


class ContestLedger:
    """Owns registration, vote intake, the prize pool and settlement.

    Usage:
        ledger = ContestLedger()
        ledger.register_video("vid_1", "Title", "creator_wallet", "ar_tx")
        outcome = ledger.cast_vote("voter_wallet", "vid_1")
        if outcome.accepted:
            ...
        result = await ledger.execute_contest()
    """

    def __init__(
        self,
        store: EntryStore | None = None,
        settlement: SettlementExecutor | None = None,
        clock: Callable[[], datetime] | None = None,
        id_factory: Callable[[str], str] | None = None,
        epoch: int | None = None,
    ):
        self._store = store if store is not None else InMemoryStore()
        self._settlement = settlement if settlement is not None else SimulatedSettlementExecutor()
        self._clock = clock or _utcnow
        self._new_id = id_factory or new_reference
        self._lock = threading.Lock()

        entries = list(self._store.for_each_ordered())
        stored_epoch = self._store.load_epoch()
        if epoch is None:
            epoch = stored_epoch
        elif entries and stored_epoch is not None and epoch != stored_epoch:
            # Stored entries belong to stored_epoch; advancing goes through rollover()
            raise ValueError(f"Store holds entries for epoch {stored_epoch}, not {epoch}")
        if epoch is None:
            epoch = self._clock().year
        self._epoch = epoch
        self._store.save_epoch(epoch)

        self._pool = PrizePool.from_entries(entries)

    @property
    def epoch(self) -> int:
        return self._epoch

    @property
    def prize_pool(self) -> PrizePool:
        """Copy of the current pool totals."""
        with self._lock:
            return self._pool.model_copy()

    # -- Registration --

    def register_video(
        self, video_id: str, title: str, creator: str, archive_reference: str,
    ) -> bool:
        """Register a video for the contest.

        Returns False (and changes nothing) if the ID is already registered;
        the first registration's data is kept.
        """
        if not video_id:
            raise ValueError("video_id must be a non-empty string")

        with self._lock:
            if self._store.get(video_id) is not None:
                bt.logging.warning({"contest_register": {"video_id": video_id, "status": "duplicate"}})
                return False
            self._store.put(VideoEntry(
                video_id=video_id,
                title=title,
                creator=creator,
                archive_reference=archive_reference,
                registered_at=self._clock(),
            ))

        bt.logging.info({"contest_register": {"video_id": video_id, "creator": creator, "status": "registered"}})
        return True

    # -- Voting --

    def cast_vote(self, voter: str, video_id: str) -> VoteReceipt | VoteRejection:
        """Cast one paid vote.

        Preconditions, first failure wins and nothing changes:
        1. video_id is registered            -> "unknown video"
        2. voter has fewer than 3 votes here  -> "vote limit reached"
        """
        with self._lock:
            entry = self._store.get(video_id)
            if entry is None:
                rejection = VoteRejection(
                    voter=voter, video_id=video_id, reason=RejectionReason.UNKNOWN_VIDEO,
                )
            elif entry.votes_by(voter) >= MAX_VOTES_PER_WALLET:
                rejection = VoteRejection(
                    voter=voter, video_id=video_id,
                    reason=RejectionReason.VOTE_LIMIT_REACHED,
                    votes_cast=entry.votes_by(voter),
                )
            else:
                entry.record_vote(voter, VOTE_COST_ATOMIC)
                self._store.put(entry)
                self._pool.credit(VOTE_COST_ATOMIC)
                receipt = VoteReceipt(
                    voter=voter,
                    video_id=video_id,
                    cost_lamports=VOTE_COST_ATOMIC,
                    timestamp=self._clock(),
                    transaction_signature=self._new_id("vote"),
                )
                video_votes = entry.vote_count
                pool_lamports = self._pool.total_lamports
                rejection = None

        if rejection is not None:
            bt.logging.info({
                "contest_vote": {
                    "voter": short_wallet(voter),
                    "video_id": video_id,
                    "status": "rejected",
                    "reason": rejection.reason.value,
                }
            })
            return rejection

        bt.logging.info({
            "contest_vote": {
                "voter": short_wallet(voter),
                "video_id": video_id,
                "status": "accepted",
                "video_votes": video_votes,
                "pool_lamports": pool_lamports,
            }
        })
        return receipt

    def vote_count_for(self, voter: str, video_id: str) -> int:
        """Votes ``voter`` has cast for ``video_id`` this epoch."""
        with self._lock:
            entry = self._store.get(video_id)
            return entry.votes_by(voter) if entry is not None else 0

    # -- Reporting --

    def get_standings(self) -> Standings:
        """All registered videos in ranking order, plus pool totals."""
        with self._lock:
            ranked = rank_entries(self._store.for_each_ordered())
            rows = [StandingEntry.from_entry(i + 1, e) for i, e in enumerate(ranked)]
            pool = self._pool.model_copy()
            epoch = self._epoch
        return Standings(
            epoch=epoch,
            entries=rows,
            prize_pool_lamports=pool.total_lamports,
            prize_pool_sol=pool.total_major_units,
            total_votes=pool.total_votes_cast,
        )

    # -- Settlement --

    def plan_contest(self) -> PayoutPlan:
        """Compute payouts for the current state without settling.

        Raises:
            EmptySettlementError: no video has any votes.
        """
        with self._lock:
            entries = [e.model_copy(deep=True) for e in self._store.for_each_ordered()]
            pool = self._pool.model_copy()
            epoch = self._epoch
        return compute_payout_plan(epoch, pool, entries)

    async def execute_contest(self) -> ContestResult:
        """Settle the epoch through the settlement executor.

        Leaves votes and pool untouched, so standings stay queryable and a
        repeat call computes identical payouts. Use ``rollover`` to start the
        next epoch.

        Raises:
            EmptySettlementError: no video has any votes.
        """
        plan = self.plan_contest()
        bt.logging.info({
            "contest_execute": {
                "epoch": plan.epoch,
                "pool_lamports": plan.prize_pool_lamports,
                "total_votes": plan.total_votes_cast,
                "winners": len(plan.winners),
            }
        })

        reference = await self._settlement.settle(plan)
        result = ContestResult(
            **plan.model_dump(),
            executed_at=self._clock(),
            transaction_signature=reference,
        )

        for w in result.winners:
            bt.logging.info({
                "contest_winner": {
                    "rank": w.rank,
                    "video_id": w.video_id,
                    "creator": w.creator,
                    "votes": w.votes,
                    "prize_lamports": w.prize_lamports,
                    "percentage": w.percentage,
                }
            })
        bt.logging.info({
            "contest_reserves": {
                "creator_fund_lamports": result.creator_fund_lamports,
                "platform_reserve_lamports": result.platform_reserve_lamports,
                "reference": reference,
            }
        })
        return result

    # -- Epoch lifecycle --

    def rollover(self, next_epoch: int | None = None) -> int:
        """Clear all entries and the pool and start a new epoch.

        Returns the new epoch.
        """
        with self._lock:
            previous = self._epoch
            if next_epoch is None:
                next_epoch = previous + 1
            if next_epoch <= previous:
                raise ValueError(f"Epoch must advance: {next_epoch} <= {previous}")
            self._store.clear()
            self._store.save_epoch(next_epoch)
            self._pool = PrizePool()
            self._epoch = next_epoch

        bt.logging.info({"contest_rollover": {"previous_epoch": previous, "epoch": next_epoch}})
        return next_epoch


__all__ = ["ContestLedger"]
