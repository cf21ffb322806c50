"""HTTP client for the contest service.

Maps rejections back onto the typed errors: 404 -> NotFoundError,
429 -> RateLimitError, 409 on execute -> EmptySettlementError. GETs are
retried on any transport error with exponential backoff. POSTs are retried
only when the connection was never established, since a lost response may
belong to a vote the server already accepted.
"""

from __future__ import annotations

import asyncio
from typing import Any

import bittensor as bt
import httpx

from kulture.contest.errors import EmptySettlementError, NotFoundError, RateLimitError
from kulture.contest.models import ContestResult, Standings, VoteReceipt


class ContestClient:
    """Async client for a ContestHTTPServer."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        max_retries: int = 3,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)
        self._max_retries = max_retries

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> ContestClient:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    async def _get(self, path: str, **kwargs: Any) -> httpx.Response:
        """GET with retry."""
        return await self._request("GET", path, httpx.TransportError, **kwargs)

    async def _post(self, path: str, **kwargs: Any) -> httpx.Response:
        """POST, retried only if the request never reached the server."""
        return await self._request("POST", path, (httpx.ConnectError, httpx.ConnectTimeout), **kwargs)

    async def _request(
        self,
        method: str,
        path: str,
        retry_on: type[Exception] | tuple[type[Exception], ...],
        **kwargs: Any,
    ) -> httpx.Response:
        for attempt in range(self._max_retries):
            try:
                return await self._client.request(method, f"{self.base_url}{path}", **kwargs)
            except retry_on as e:
                if attempt == self._max_retries - 1:
                    raise
                wait = 2 ** attempt
                bt.logging.warning({"contest_http_client": {"retry": attempt, "wait": wait, "error": str(e)}})
                await asyncio.sleep(wait)
        raise ConnectionError("Max retries exceeded")

    async def register_video(
        self, video_id: str, title: str, creator: str, archive_reference: str,
    ) -> bool:
        """Register a video. Returns False if it was already registered."""
        resp = await self._post("/contest/videos", json={
            "videoId": video_id,
            "title": title,
            "creator": creator,
            "archiveReference": archive_reference,
        })
        resp.raise_for_status()
        return bool(resp.json()["registered"])

    async def cast_vote(self, voter: str, video_id: str) -> VoteReceipt:
        """Cast a vote.

        Raises:
            NotFoundError: the video is not registered.
            RateLimitError: the voter is at the cap for this video.
        """
        resp = await self._post("/contest/vote", json={"videoId": video_id, "voter": voter})
        if resp.status_code == 404:
            raise NotFoundError(f"video {video_id} not found")
        if resp.status_code == 429:
            raise RateLimitError(f"{voter} reached the vote limit for {video_id}")
        resp.raise_for_status()
        return VoteReceipt.model_validate(resp.json()["receipt"])

    async def get_standings(self) -> Standings:
        resp = await self._get("/contest/standings")
        resp.raise_for_status()
        return Standings.model_validate(resp.json())

    async def get_vote_count(self, voter: str, video_id: str) -> int:
        resp = await self._get("/contest/votes", params={"voter": voter, "videoId": video_id})
        resp.raise_for_status()
        return int(resp.json()["votes"])

    async def execute_contest(self) -> ContestResult:
        """Trigger settlement (server only accepts this from localhost).

        Raises:
            EmptySettlementError: no video has any votes.
        """
        resp = await self._post("/contest/execute")
        if resp.status_code == 409:
            raise EmptySettlementError(resp.json().get("detail", "empty prize pool"))
        resp.raise_for_status()
        return ContestResult.model_validate(resp.json())

    async def rollover(self, next_epoch: int | None = None) -> int:
        body = {"epoch": next_epoch} if next_epoch is not None else {}
        resp = await self._post("/contest/rollover", json=body)
        resp.raise_for_status()
        return int(resp.json()["epoch"])


__all__ = ["ContestClient"]
