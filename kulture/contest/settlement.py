"""Ranking, payout computation and the settlement executor boundary.

The ledger's job ends at "who gets how much". ``compute_payout_plan`` turns a
snapshot of entries into a PayoutPlan; a SettlementExecutor moves the value
(on-chain or otherwise) and returns an opaque reference.

Split over the pool total P (integer floor per entry):
  rank 1       P * 40 // 100
  ranks 2-6    P * 6 // 100 each
  creator fund P * 20 // 100   reported only, routed by the executor
  reserve      P * 10 // 100   reported only, routed by the executor
Rounding dust stays in the pool and is never redistributed.
"""

from __future__ import annotations

import secrets
from typing import Iterable, Protocol, runtime_checkable

import bittensor as bt

from .constants import (
    CREATOR_FUND_PCT,
    FIRST_PLACE_PCT,
    MAX_RUNNERS_UP,
    PLATFORM_RESERVE_PCT,
    RUNNER_UP_PCT,
)
from .errors import EmptySettlementError
from .models import PayoutPlan, PrizePool, VideoEntry, WinnerEntry


def new_reference(prefix: str) -> str:
    """Mint a collision-resistant opaque reference."""
    return f"{prefix}_{secrets.token_hex(12)}"


def share_of(total: int, pct: int) -> int:
    """Floor of ``total * pct / 100`` in exact integer arithmetic."""
    return total * pct // 100


def rank_entries(entries: Iterable[VideoEntry]) -> list[VideoEntry]:
    """Order by vote count descending.

    ``entries`` must arrive in registration order; the sort is stable, so
    equal vote counts keep registration order.
    """
    return sorted(entries, key=lambda e: e.vote_count, reverse=True)


def compute_payout_plan(
    epoch: int, pool: PrizePool, entries: Iterable[VideoEntry],
) -> PayoutPlan:
    """Build the payout plan for a pool snapshot.

    Raises:
        EmptySettlementError: no entry has any votes.
    """
    ranked = [e for e in rank_entries(entries) if e.vote_count > 0]
    if not ranked:
        raise EmptySettlementError("No videos received votes - contest cannot execute")

    total = pool.total_lamports
    winners: list[WinnerEntry] = []
    for i, entry in enumerate(ranked[: 1 + MAX_RUNNERS_UP]):
        pct = FIRST_PLACE_PCT if i == 0 else RUNNER_UP_PCT
        winners.append(WinnerEntry(
            rank=i + 1,
            video_id=entry.video_id,
            title=entry.title,
            creator=entry.creator,
            votes=entry.vote_count,
            prize_lamports=share_of(total, pct),
            percentage=pct,
        ))

    return PayoutPlan(
        epoch=epoch,
        prize_pool_lamports=total,
        total_votes_cast=pool.total_votes_cast,
        winners=winners,
        creator_fund_lamports=share_of(total, CREATOR_FUND_PCT),
        platform_reserve_lamports=share_of(total, PLATFORM_RESERVE_PCT),
    )


# ---------------------------------------------------------------------------
# Settlement executor boundary
# ---------------------------------------------------------------------------


@runtime_checkable
class SettlementExecutor(Protocol):
    """Performs the value transfer implied by a payout plan.

    Implementations own every side effect (transfers, creator fund and
    reserve routing). Swapping the payment rail means swapping this object;
    the ledger does not change.
    """

    async def settle(self, plan: PayoutPlan) -> str:
        """Execute the plan. Returns an opaque settlement reference."""
        ...


class SimulatedSettlementExecutor:
    """Records plans and mints mock references. No value moves."""

    def __init__(self) -> None:
        self.settled: list[tuple[str, PayoutPlan]] = []

    async def settle(self, plan: PayoutPlan) -> str:
        reference = new_reference("contest")
        self.settled.append((reference, plan))
        bt.logging.info({
            "contest_settlement": {
                "mode": "simulated",
                "epoch": plan.epoch,
                "reference": reference,
                "winners": len(plan.winners),
                "pool_lamports": plan.prize_pool_lamports,
            }
        })
        return reference


__all__ = [
    "SettlementExecutor",
    "SimulatedSettlementExecutor",
    "compute_payout_plan",
    "new_reference",
    "rank_entries",
    "share_of",
]
