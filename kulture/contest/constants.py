"""Contract constants for the annual contest.

These values are part of the observable contract (receipts, payouts,
fixtures) and must not change within an epoch.
"""

LAMPORTS_PER_SOL = 1_000_000_000

# 0.0009 SOL per vote
VOTE_COST_ATOMIC = 900_000
VOTE_COST_MAJOR = VOTE_COST_ATOMIC / LAMPORTS_PER_SOL

MAX_VOTES_PER_WALLET = 3

# ---------------------------------------------------------------------------
# Prize split (percent of the pool total)
# ---------------------------------------------------------------------------

FIRST_PLACE_PCT = 40
RUNNER_UP_PCT = 6
MAX_RUNNERS_UP = 5  # ranks 2 through 6
CREATOR_FUND_PCT = 20
PLATFORM_RESERVE_PCT = 10

__all__ = [
    "CREATOR_FUND_PCT",
    "FIRST_PLACE_PCT",
    "LAMPORTS_PER_SOL",
    "MAX_RUNNERS_UP",
    "MAX_VOTES_PER_WALLET",
    "PLATFORM_RESERVE_PCT",
    "RUNNER_UP_PCT",
    "VOTE_COST_ATOMIC",
    "VOTE_COST_MAJOR",
]
