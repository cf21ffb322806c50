"""Error taxonomy for the contest ledger.

Vote-path failures (unknown video, vote limit) are expected and frequent.
The ledger returns them as ``VoteRejection`` values; these exception types
are what callers raise when they prefer exceptions (the HTTP client does).
Only an empty settlement is raised by the ledger itself.
"""

from __future__ import annotations

from enum import Enum


class ContestError(Exception):
    """Base class for contest ledger errors."""


class NotFoundError(ContestError):
    """Vote referenced a video that was never registered."""


class RateLimitError(ContestError):
    """Voter already cast the maximum number of votes for this video."""


class EmptySettlementError(ContestError):
    """Settlement was attempted before any video received a vote."""


class RejectionReason(str, Enum):
    """Why a vote was not accepted."""

    UNKNOWN_VIDEO = "unknown video"
    VOTE_LIMIT_REACHED = "vote limit reached"

    @property
    def error_type(self) -> type[ContestError]:
        if self is RejectionReason.UNKNOWN_VIDEO:
            return NotFoundError
        return RateLimitError


__all__ = [
    "ContestError",
    "EmptySettlementError",
    "NotFoundError",
    "RateLimitError",
    "RejectionReason",
]
