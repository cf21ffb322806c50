"""Vote-and-prize ledger for the "Best Video of the Year" contest.

The ledger takes registrations from the upload registry, accepts paid
votes (max 3 per wallet per video), accumulates the prize pool and computes
the ranked payout split. Moving value is left to a SettlementExecutor.
"""

from .constants import MAX_VOTES_PER_WALLET, VOTE_COST_ATOMIC, VOTE_COST_MAJOR
from .errors import (
    ContestError,
    EmptySettlementError,
    NotFoundError,
    RateLimitError,
    RejectionReason,
)
from .models import (
    ContestResult,
    PayoutPlan,
    PrizePool,
    StandingEntry,
    Standings,
    VideoEntry,
    VoteReceipt,
    VoteRejection,
    WinnerEntry,
)
from .ledger import ContestLedger
from .settlement import SettlementExecutor, SimulatedSettlementExecutor, compute_payout_plan

__all__ = [
    "MAX_VOTES_PER_WALLET",
    "VOTE_COST_ATOMIC",
    "VOTE_COST_MAJOR",
    "ContestError",
    "ContestLedger",
    "ContestResult",
    "EmptySettlementError",
    "NotFoundError",
    "PayoutPlan",
    "PrizePool",
    "RateLimitError",
    "RejectionReason",
    "SettlementExecutor",
    "SimulatedSettlementExecutor",
    "StandingEntry",
    "Standings",
    "VideoEntry",
    "VoteReceipt",
    "VoteRejection",
    "WinnerEntry",
    "compute_payout_plan",
]
