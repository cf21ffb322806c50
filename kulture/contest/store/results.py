"""Filesystem archive of settled contest results.

Writes gzip-compressed JSON to a local directory tree:
  {data_dir}/contest/results/epoch_{N}_{timestamp}.json.gz

The ledger keeps no history of past results; whoever triggers settlement
decides whether to archive the result here.
"""

from __future__ import annotations

import gzip
import json
from pathlib import Path
from typing import Any

from kulture.contest.models import ContestResult


def _write_gzip_json(path: Path, data: Any) -> None:
    """Write data as gzipped JSON, creating parent dirs as needed."""
    path.parent.mkdir(parents=True, exist_ok=True)
    raw = json.dumps(data, default=str, sort_keys=True).encode()
    with gzip.open(path, "wb") as f:
        f.write(raw)


def _read_gzip_json(path: Path) -> Any:
    with gzip.open(path, "rb") as f:
        return json.loads(f.read())


class ResultArchive:
    """Append-only store of ContestResult snapshots."""

    def __init__(self, data_dir: str):
        self.results_dir = Path(data_dir) / "contest" / "results"
        self.results_dir.mkdir(parents=True, exist_ok=True)

    def put_result(self, result: ContestResult) -> str:
        """Write a result to disk. Returns the result ID."""
        ts = result.executed_at.strftime("%Y%m%dT%H%M%S%f")
        result_id = f"epoch_{result.epoch}_{ts}"
        _write_gzip_json(
            self.results_dir / f"{result_id}.json.gz",
            result.model_dump(mode="json", by_alias=True),
        )
        return result_id

    def list_results(self, epoch: int | None = None) -> list[str]:
        """Result IDs, oldest first, optionally for one epoch."""
        ids = sorted(
            (p.name[: -len(".json.gz")] for p in self.results_dir.glob("epoch_*.json.gz")),
            key=lambda i: (int(i.split("_")[1]), i),
        )
        if epoch is not None:
            ids = [i for i in ids if i.startswith(f"epoch_{epoch}_")]
        return ids

    def get_result(self, result_id: str) -> ContestResult | None:
        path = self.results_dir / f"{result_id}.json.gz"
        if not path.exists():
            return None
        return ContestResult.model_validate(_read_gzip_json(path))

    def get_latest_result(self, epoch: int | None = None) -> ContestResult | None:
        """Most recent result, optionally for one epoch.

        IDs sort by epoch then timestamp, so "latest" without an epoch means
        the newest result of the highest epoch.
        """
        ids = self.list_results(epoch)
        if not ids:
            return None
        return self.get_result(ids[-1])


__all__ = ["ResultArchive"]
