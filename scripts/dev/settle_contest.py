"""Trigger settlement of the current contest epoch and print the payouts.

Must run on the same host as the contest service (the execute route only
accepts localhost).

Usage:
    uv run python scripts/dev/settle_contest.py
    uv run python scripts/dev/settle_contest.py --url http://127.0.0.1:8300 --rollover
"""

from __future__ import annotations

import argparse
import asyncio
import sys

from kulture.contest.constants import LAMPORTS_PER_SOL
from kulture.contest.errors import EmptySettlementError
from kulture.contest.transport.http_client import ContestClient


def _sol(lamports: int) -> str:
    return f"{lamports / LAMPORTS_PER_SOL:.4f} SOL"


async def _run(url: str, rollover: bool) -> int:
    async with ContestClient(base_url=url, timeout=10.0) as client:
        try:
            result = await client.execute_contest()
        except EmptySettlementError as e:
            print(f"Cannot settle: {e}")
            return 1

        print(f"\nBest Video of the Year - epoch {result.epoch}")
        print(f"{'=' * 72}")
        print(f"Prize pool: {_sol(result.prize_pool_lamports)} from {result.total_votes_cast} votes")
        print(f"{'Rank':>4}  {'Video':<24} {'Creator':<18} {'Votes':>6} {'Prize':>14}")
        for w in result.winners:
            print(f"{w.rank:>4}  {w.video_id[:24]:<24} {w.creator[:18]:<18} {w.votes:>6} {_sol(w.prize_lamports):>14} ({w.percentage}%)")
        print(f"\nCreator fund (20%):     {_sol(result.creator_fund_lamports)}")
        print(f"Platform reserve (10%): {_sol(result.platform_reserve_lamports)}")
        print(f"Settlement reference:   {result.transaction_signature}")

        if rollover:
            epoch = await client.rollover()
            print(f"\nRolled over to epoch {epoch}")
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(description="Settle the current contest epoch")
    parser.add_argument("--url", type=str, default="http://127.0.0.1:8300", help="Contest service base URL")
    parser.add_argument("--rollover", action="store_true", help="Start the next epoch after settling")
    args = parser.parse_args()
    sys.exit(asyncio.run(_run(args.url, args.rollover)))


if __name__ == "__main__":
    main()
