"""HTTP endpoint exposing a ContestLedger.

Runs as an async task in the service's event loop. Routes:
  POST /contest/videos     - register a video (upload registry hook)
  POST /contest/vote       - cast a vote {videoId, voter}
  GET  /contest/standings  - current leaderboard
  GET  /contest/votes?voter=X&videoId=Y - a voter's vote count for a video
  POST /contest/execute    - settle the epoch (operator, local only)
  POST /contest/rollover   - start the next epoch (operator, local only)
"""

from __future__ import annotations

import json
from typing import Any

import bittensor as bt
from aiohttp import web

from kulture.contest.errors import EmptySettlementError, RejectionReason
from kulture.contest.ledger import ContestLedger, short_wallet
from kulture.contest.store.results import ResultArchive

_LOCAL_PEERS = ("127.0.0.1", "::1", "localhost")

_REJECTION_STATUS = {
    RejectionReason.UNKNOWN_VIDEO: 404,
    RejectionReason.VOTE_LIMIT_REACHED: 429,
}


def _dump(model: Any) -> Any:
    return model.model_dump(mode="json", by_alias=True)


async def _read_body(request: web.Request) -> dict[str, Any] | None:
    """Parse a JSON object body, or None if malformed."""
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None
    return body if isinstance(body, dict) else None


class ContestHTTPServer:
    """Lightweight async HTTP server for the contest ledger."""

    def __init__(
        self,
        ledger: ContestLedger,
        archive: ResultArchive | None = None,
        host: str = "0.0.0.0",
        port: int = 8300,
    ):
        self.ledger = ledger
        self.archive = archive
        self.host = host
        self.port = port
        self._app: web.Application | None = None
        self._runner: web.AppRunner | None = None

    def build_app(self) -> web.Application:
        app = web.Application()
        app.router.add_post("/contest/videos", self._handle_register)
        app.router.add_post("/contest/vote", self._handle_vote)
        app.router.add_get("/contest/standings", self._handle_standings)
        app.router.add_get("/contest/votes", self._handle_vote_count)
        app.router.add_post("/contest/execute", self._handle_execute)
        app.router.add_post("/contest/rollover", self._handle_rollover)
        return app

    async def start(self) -> None:
        """Start the HTTP server."""
        self._app = self.build_app()
        self._runner = web.AppRunner(self._app)
        await self._runner.setup()
        site = web.TCPSite(self._runner, self.host, self.port)
        await site.start()
        bt.logging.info({"contest_http": {"status": "started", "port": self.port}})

    async def stop(self) -> None:
        """Stop the HTTP server."""
        if self._runner:
            await self._runner.cleanup()
            self._runner = None
            bt.logging.info({"contest_http": "stopped"})

    # -- Public routes --

    async def _handle_register(self, request: web.Request) -> web.Response:
        body = await _read_body(request)
        video_id = body.get("videoId") if body else None
        if not video_id or not isinstance(video_id, str):
            bt.logging.warning({"contest_request": {"endpoint": "videos", "status": 400, "error": "invalid_body"}})
            return web.json_response({"error": "Missing videoId"}, status=400)

        registered = self.ledger.register_video(
            video_id,
            str(body.get("title", "")),
            str(body.get("creator", "")),
            str(body.get("archiveReference", "")),
        )
        status = 201 if registered else 200
        return web.json_response({"videoId": video_id, "registered": registered}, status=status)

    async def _handle_vote(self, request: web.Request) -> web.Response:
        body = await _read_body(request)
        video_id = body.get("videoId") if body else None
        voter = body.get("voter") if body else None
        if not video_id or not voter or not isinstance(video_id, str) or not isinstance(voter, str):
            bt.logging.warning({"contest_request": {"endpoint": "vote", "status": 400, "error": "invalid_body"}})
            return web.json_response({"error": "Missing videoId or voter"}, status=400)

        outcome = self.ledger.cast_vote(voter, video_id)
        if not outcome.accepted:
            status = _REJECTION_STATUS[outcome.reason]
            bt.logging.debug({"contest_request": {"endpoint": "vote", "voter": short_wallet(voter), "status": status}})
            return web.json_response(
                {"error": outcome.reason.value, "rejection": _dump(outcome)}, status=status,
            )

        return web.json_response({"success": True, "receipt": _dump(outcome)})

    async def _handle_standings(self, request: web.Request) -> web.Response:
        return web.json_response(_dump(self.ledger.get_standings()))

    async def _handle_vote_count(self, request: web.Request) -> web.Response:
        voter = request.query.get("voter", "")
        video_id = request.query.get("videoId", "")
        if not voter or not video_id:
            return web.json_response({"error": "Missing videoId or voter"}, status=400)
        return web.json_response({
            "voter": voter,
            "videoId": video_id,
            "votes": self.ledger.vote_count_for(voter, video_id),
        })

    # -- Operator routes --

    def _is_local(self, request: web.Request, endpoint: str) -> bool:
        peer = request.remote
        if peer not in _LOCAL_PEERS:
            bt.logging.warning({"contest_request": {"endpoint": endpoint, "status": 403, "peer": peer}})
            return False
        return True

    async def _handle_execute(self, request: web.Request) -> web.Response:
        if not self._is_local(request, "execute"):
            return web.json_response({"error": "forbidden"}, status=403)

        try:
            result = await self.ledger.execute_contest()
        except EmptySettlementError as e:
            bt.logging.warning({"contest_request": {"endpoint": "execute", "status": 409, "error": str(e)}})
            return web.json_response({"error": "empty_pool", "detail": str(e)}, status=409)

        data = _dump(result)
        if self.archive is not None:
            data["resultId"] = self.archive.put_result(result)

        bt.logging.info({"contest_request": {"endpoint": "execute", "status": 200, "epoch": result.epoch}})
        return web.json_response(data)

    async def _handle_rollover(self, request: web.Request) -> web.Response:
        if not self._is_local(request, "rollover"):
            return web.json_response({"error": "forbidden"}, status=403)

        body = await _read_body(request) or {}
        next_epoch = body.get("epoch")
        try:
            epoch = self.ledger.rollover(int(next_epoch) if next_epoch is not None else None)
        except (TypeError, ValueError) as e:
            return web.json_response({"error": f"invalid_epoch: {e}"}, status=400)

        bt.logging.info({"contest_request": {"endpoint": "rollover", "status": 200, "epoch": epoch}})
        return web.json_response({"epoch": epoch, "status": "ok"})


__all__ = ["ContestHTTPServer"]
