"""HTTP transport integration test.

Spins up a real ContestHTTPServer on localhost and drives it with a
ContestClient: registration, voting, rejections, standings, settlement
and rollover over the wire.
"""

from __future__ import annotations

import asyncio
import json
import tempfile

import httpx
import pytest
from aiohttp.test_utils import make_mocked_request

from kulture.contest.errors import EmptySettlementError, NotFoundError, RateLimitError
from kulture.contest.ledger import ContestLedger
from kulture.contest.settlement import SimulatedSettlementExecutor
from kulture.contest.store.results import ResultArchive
from kulture.contest.transport.http_client import ContestClient
from kulture.contest.transport.http_server import ContestHTTPServer


@pytest.fixture
def tmp_dir():
    with tempfile.TemporaryDirectory() as d:
        yield d


@pytest.fixture
def ledger():
    return ContestLedger(settlement=SimulatedSettlementExecutor(), epoch=2026)


class _Running:
    """Async context: started server + connected client."""

    def __init__(self, server: ContestHTTPServer):
        self.server = server
        self.client = ContestClient(
            base_url=f"http://127.0.0.1:{server.port}", timeout=10.0, max_retries=1,
        )

    async def __aenter__(self) -> ContestClient:
        await self.server.start()
        await asyncio.sleep(0.1)
        return self.client

    async def __aexit__(self, *exc) -> None:
        await self.client.close()
        await self.server.stop()


@pytest.mark.asyncio
class TestHTTPTransport:

    async def test_vote_flow(self, ledger):
        server = ContestHTTPServer(ledger=ledger, host="127.0.0.1", port=18941)
        async with _Running(server) as client:
            assert await client.register_video("A", "The 1870 Brick Wall", "alice", "ar_a")
            assert await client.register_video("B", "Digital Griot", "bob", "ar_b")
            assert not await client.register_video("A", "Duplicate", "mallory", "ar_x")

            receipt = await client.cast_vote("voter_1", "A")
            assert receipt.video_id == "A"
            assert receipt.cost_lamports == 900_000
            await client.cast_vote("voter_1", "A")
            await client.cast_vote("voter_1", "A")
            with pytest.raises(RateLimitError):
                await client.cast_vote("voter_1", "A")
            with pytest.raises(NotFoundError):
                await client.cast_vote("voter_1", "missing")
            await client.cast_vote("voter_2", "B")

            assert await client.get_vote_count("voter_1", "A") == 3
            assert await client.get_vote_count("voter_1", "B") == 0

            standings = await client.get_standings()
            assert [e.video_id for e in standings.entries] == ["A", "B"]
            assert standings.entries[0].title == "The 1870 Brick Wall"
            assert standings.total_votes == 4
            assert standings.prize_pool_lamports == 3_600_000

    async def test_concurrent_votes_respect_cap(self, ledger):
        ledger.register_video("A", "T", "alice", "ar_a")
        server = ContestHTTPServer(ledger=ledger, host="127.0.0.1", port=18942)
        async with _Running(server) as client:
            results = await asyncio.gather(
                *(client.cast_vote("hot_wallet", "A") for _ in range(10)),
                return_exceptions=True,
            )
            accepted = [r for r in results if not isinstance(r, Exception)]
            limited = [r for r in results if isinstance(r, RateLimitError)]
            assert len(accepted) == 3
            assert len(limited) == 7
            assert ledger.prize_pool.total_votes_cast == 3

    async def test_missing_fields_rejected(self, ledger):
        server = ContestHTTPServer(ledger=ledger, host="127.0.0.1", port=18943)
        async with _Running(server) as client:
            async with httpx.AsyncClient() as raw:
                resp = await raw.post(f"{client.base_url}/contest/vote", json={"videoId": "A"})
                assert resp.status_code == 400
                resp = await raw.post(f"{client.base_url}/contest/vote", content=b"not json")
                assert resp.status_code == 400
                resp = await raw.get(f"{client.base_url}/contest/votes")
                assert resp.status_code == 400

    async def test_rejection_body(self, ledger):
        server = ContestHTTPServer(ledger=ledger, host="127.0.0.1", port=18944)
        async with _Running(server) as client:
            async with httpx.AsyncClient() as raw:
                resp = await raw.post(
                    f"{client.base_url}/contest/vote", json={"videoId": "nope", "voter": "v"},
                )
                assert resp.status_code == 404
                assert resp.json()["error"] == "unknown video"

    async def test_execute_and_rollover(self, ledger, tmp_dir):
        archive = ResultArchive(tmp_dir)
        server = ContestHTTPServer(ledger=ledger, archive=archive, host="127.0.0.1", port=18945)
        async with _Running(server) as client:
            with pytest.raises(EmptySettlementError):
                await client.execute_contest()

            await client.register_video("A", "T", "alice", "ar_a")
            await client.cast_vote("voter_1", "A")
            result = await client.execute_contest()
            assert result.epoch == 2026
            assert result.winners[0].video_id == "A"
            assert result.winners[0].prize_lamports == 360_000
            assert result.transaction_signature.startswith("contest_")

            archived = archive.get_latest_result(epoch=2026)
            assert archived == result

            assert await client.rollover() == 2027
            standings = await client.get_standings()
            assert standings.epoch == 2027
            assert standings.entries == []


@pytest.mark.asyncio
class TestOperatorRoutes:

    def _request(self, path: str, remote: str):
        return make_mocked_request("POST", path).clone(remote=remote)

    async def test_execute_forbidden_from_remote_peer(self):
        executor = SimulatedSettlementExecutor()
        ledger = ContestLedger(settlement=executor, epoch=2026)
        ledger.register_video("A", "T", "alice", "ar_a")
        ledger.cast_vote("voter_1", "A")
        server = ContestHTTPServer(ledger=ledger)

        resp = await server._handle_execute(self._request("/contest/execute", "203.0.113.7"))
        assert resp.status == 403
        assert executor.settled == []

    async def test_rollover_forbidden_from_remote_peer(self, ledger):
        ledger.register_video("A", "T", "alice", "ar_a")
        server = ContestHTTPServer(ledger=ledger)

        resp = await server._handle_rollover(self._request("/contest/rollover", "10.0.0.5"))
        assert resp.status == 403
        assert ledger.epoch == 2026
        assert len(ledger.get_standings().entries) == 1

    async def test_execute_allowed_from_loopback(self):
        executor = SimulatedSettlementExecutor()
        ledger = ContestLedger(settlement=executor, epoch=2026)
        ledger.register_video("A", "T", "alice", "ar_a")
        ledger.cast_vote("voter_1", "A")
        server = ContestHTTPServer(ledger=ledger)

        resp = await server._handle_execute(self._request("/contest/execute", "127.0.0.1"))
        assert resp.status == 200
        assert json.loads(resp.text)["winners"][0]["videoId"] == "A"
        assert len(executor.settled) == 1
