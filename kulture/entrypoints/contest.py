"""Contest service entrypoint.

Serves the contest ledger over HTTP. Settlement and rollover are operator
actions reachable only from localhost (see scripts/dev/settle_contest.py).
"""

import argparse
import asyncio
import os
import signal

import bittensor as bt
from dotenv import load_dotenv

from kulture.contest.config import ContestSettings, add_args
from kulture.contest.ledger import ContestLedger
from kulture.contest.settlement import SimulatedSettlementExecutor
from kulture.contest.store.interface import EntryStore
from kulture.contest.store.memory import InMemoryStore
from kulture.contest.store.results import ResultArchive
from kulture.contest.store.sql import SQLEntryStore
from kulture.contest.transport.http_server import ContestHTTPServer


def build_server(settings: ContestSettings) -> ContestHTTPServer:
    """Wire store, ledger, archive and server from settings."""
    store: EntryStore
    if settings.database_url:
        store = SQLEntryStore(url=settings.database_url)
    else:
        store = InMemoryStore()

    ledger = ContestLedger(
        store=store,
        settlement=SimulatedSettlementExecutor(),
        epoch=settings.epoch,
    )
    archive = ResultArchive(settings.data_dir) if settings.archive_results else None
    return ContestHTTPServer(
        ledger=ledger, archive=archive, host=settings.host, port=settings.port,
    )


async def _serve(server: ContestHTTPServer, stop: asyncio.Event) -> None:
    await server.start()
    try:
        await stop.wait()
    finally:
        await server.stop()


def main() -> None:
    # Load .env if not in test mode
    if os.environ.get("KULTURE_TEST_MODE") != "true":
        load_dotenv()

    parser = argparse.ArgumentParser(description="Kulture contest ledger service")
    bt.logging.add_args(parser)
    add_args(parser)
    args = parser.parse_args()
    bt.logging.set_config(config=bt.Config(parser).logging)

    settings = ContestSettings.from_sources(args)
    bt.logging.info({
        "contest_config": {
            "host": settings.host,
            "port": settings.port,
            "durable": bool(settings.database_url),
            "archive": settings.data_dir if settings.archive_results else None,
        }
    })

    server = build_server(settings)
    bt.logging.info({"contest": {"status": "starting", "epoch": server.ledger.epoch}})

    loop = asyncio.new_event_loop()
    stop = asyncio.Event()

    def _signal_handler(sig, frame):
        bt.logging.info({"contest": "shutdown_signal_received"})
        loop.call_soon_threadsafe(stop.set)

    signal.signal(signal.SIGINT, _signal_handler)
    signal.signal(signal.SIGTERM, _signal_handler)

    try:
        loop.run_until_complete(_serve(server, stop))
    except KeyboardInterrupt:
        bt.logging.info({"contest": "keyboard_interrupt"})
    finally:
        loop.close()
        bt.logging.info({"contest": "stopped"})


if __name__ == "__main__":
    main()
