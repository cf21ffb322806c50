"""Contest service configuration.

Precedence (lowest to highest): model defaults, CLI flags, environment
variables ``KULTURE_CONTEST__*``.
"""

from __future__ import annotations

import argparse
import os
from typing import Any, Mapping

from pydantic import BaseModel, Field

ENV_PREFIX = "KULTURE_CONTEST__"


class ContestSettings(BaseModel):
    """Settings for the contest HTTP service."""

    host: str = "0.0.0.0"
    port: int = Field(default=8300, ge=1, le=65535)
    database_url: str | None = Field(
        default=None,
        description="SQLAlchemy URL for the durable store; in-memory when unset",
    )
    data_dir: str = Field(
        default="kulture/data/contest",
        description="Root directory for the settled-result archive",
    )
    epoch: int | None = Field(
        default=None,
        description="Force the contest epoch; defaults to the stored epoch or current year",
    )
    archive_results: bool = True

    @classmethod
    def from_sources(
        cls, args: argparse.Namespace | None = None, env: Mapping[str, str] | None = None,
    ) -> ContestSettings:
        """Layer CLI args then environment variables over the defaults."""
        values: dict[str, Any] = {}
        if args is not None:
            for name in cls.model_fields:
                value = getattr(args, f"contest.{name}", None)
                if value is not None:
                    values[name] = value

        env = os.environ if env is None else env
        for name in cls.model_fields:
            raw = env.get(f"{ENV_PREFIX}{name.upper()}")
            if raw is None or raw == "":
                continue
            if name == "archive_results":
                values[name] = raw.lower() in ("true", "1", "yes")
            else:
                values[name] = raw

        return cls(**values)


def add_args(parser: argparse.ArgumentParser) -> None:
    """Adds contest service arguments to the parser."""

    parser.add_argument(
        "--contest.host",
        type=str,
        help="Interface for the contest HTTP server.",
        default=None,
    )

    parser.add_argument(
        "--contest.port",
        type=int,
        help="Port for the contest HTTP server.",
        default=None,
    )

    parser.add_argument(
        "--contest.database_url",
        type=str,
        help="SQLAlchemy URL for durable ledger state. In-memory if omitted.",
        default=None,
    )

    parser.add_argument(
        "--contest.data_dir",
        type=str,
        help="Directory for archived contest results.",
        default=None,
    )

    parser.add_argument(
        "--contest.epoch",
        type=int,
        help="Contest epoch to run (defaults to stored epoch or current year).",
        default=None,
    )

    parser.add_argument(
        "--contest.no_archive",
        dest="contest.archive_results",
        action="store_false",
        help="Do not archive settled results to disk.",
        default=None,
    )


__all__ = ["ContestSettings", "ENV_PREFIX", "add_args"]
