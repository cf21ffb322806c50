"""Tests for contest Pydantic models."""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from kulture.contest.errors import NotFoundError, RateLimitError, RejectionReason
from kulture.contest.models import (
    ContestResult,
    PrizePool,
    VideoEntry,
    VoteReceipt,
    VoteRejection,
    WinnerEntry,
)

_T0 = datetime(2026, 2, 1, 12, 0, tzinfo=timezone.utc)


def _video(**overrides) -> VideoEntry:
    fields = dict(
        video_id="func_vid_001",
        title="Afrofuturist Dream",
        creator="alice_wallet",
        archive_reference="arweave_tx_001",
        registered_at=_T0,
    )
    fields.update(overrides)
    return VideoEntry(**fields)


class TestVideoEntry:

    def test_defaults(self):
        entry = _video()
        assert entry.vote_count == 0
        assert entry.gross_contribution == 0
        assert entry.voter_ledger == {}
        assert entry.voter_count == 0

    def test_empty_video_id_invalid(self):
        with pytest.raises(ValidationError):
            _video(video_id="")

    def test_record_vote(self):
        entry = _video()
        entry.record_vote("voter_1", 900_000)
        entry.record_vote("voter_1", 900_000)
        entry.record_vote("voter_2", 900_000)
        assert entry.vote_count == 3
        assert entry.gross_contribution == 2_700_000
        assert entry.votes_by("voter_1") == 2
        assert entry.votes_by("nobody") == 0
        assert entry.voter_count == 2

    def test_accepts_camel_case(self):
        entry = VideoEntry.model_validate({
            "videoId": "v",
            "title": "t",
            "creator": "c",
            "archiveReference": "ar",
            "registeredAt": _T0.isoformat(),
        })
        assert entry.archive_reference == "ar"


class TestPrizePool:

    def test_credit(self):
        pool = PrizePool()
        pool.credit(900_000)
        pool.credit(900_000)
        assert pool.total_lamports == 1_800_000
        assert pool.total_votes_cast == 2
        assert pool.total_major_units == pytest.approx(0.0018)

    def test_from_entries(self):
        a = _video(video_id="a")
        b = _video(video_id="b")
        a.record_vote("v1", 900_000)
        b.record_vote("v1", 900_000)
        b.record_vote("v2", 900_000)
        pool = PrizePool.from_entries([a, b])
        assert pool.total_votes_cast == 3
        assert pool.total_lamports == 2_700_000


class TestVoteOutcomes:

    def test_receipt_wire_format(self):
        receipt = VoteReceipt(
            voter="voter_1", video_id="v", timestamp=_T0, transaction_signature="vote_abc",
        )
        data = receipt.model_dump(mode="json", by_alias=True)
        assert data["videoId"] == "v"
        assert data["costLamports"] == 900_000
        assert data["transactionSignature"] == "vote_abc"
        assert VoteReceipt.model_validate(data) == receipt

    def test_receipt_is_frozen(self):
        receipt = VoteReceipt(
            voter="voter_1", video_id="v", timestamp=_T0, transaction_signature="vote_abc",
        )
        with pytest.raises(ValidationError):
            receipt.cost_lamports = 0

    def test_rejection_errors(self):
        missing = VoteRejection(voter="v", video_id="x", reason=RejectionReason.UNKNOWN_VIDEO)
        capped = VoteRejection(
            voter="v", video_id="x", reason=RejectionReason.VOTE_LIMIT_REACHED, votes_cast=3,
        )
        assert isinstance(missing.to_error(), NotFoundError)
        assert isinstance(capped.to_error(), RateLimitError)
        assert "3x" in str(capped.to_error())

    def test_rejection_reason_serializes_as_text(self):
        rejection = VoteRejection(voter="v", video_id="x", reason=RejectionReason.VOTE_LIMIT_REACHED)
        assert rejection.model_dump(mode="json")["reason"] == "vote limit reached"


class TestContestResult:

    def test_unallocated(self):
        result = ContestResult(
            epoch=2026,
            prize_pool_lamports=1000,
            total_votes_cast=1,
            winners=[WinnerEntry(
                rank=1, video_id="a", title="t", creator="c",
                votes=1, prize_lamports=400, percentage=40,
            )],
            creator_fund_lamports=200,
            platform_reserve_lamports=100,
            executed_at=_T0,
            transaction_signature="contest_x",
        )
        assert result.distributed_lamports == 400
        assert result.unallocated_lamports == 300

    def test_rank_must_be_positive(self):
        with pytest.raises(ValidationError):
            WinnerEntry(
                rank=0, video_id="a", title="t", creator="c",
                votes=1, prize_lamports=1, percentage=40,
            )
