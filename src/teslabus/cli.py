"""Console entry point: ``teslabus`` / ``python -m teslabus``."""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys

from teslabus.auth import Authenticator
from teslabus.bus import AmqpBus
from teslabus.client import TeslaClient
from teslabus.config import PollerConfig, load_environment
from teslabus.exceptions import ConfigurationError
from teslabus.poller import ExitCode, Poller
from teslabus.publisher import SnapshotPublisher
from teslabus.scheduler.assembler import SnapshotAssembler
from teslabus.scheduler.cadence import CadenceController

_logger = logging.getLogger("teslabus")


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="teslabus",
        description="Poll Tesla vehicle telemetry and publish snapshots to an AMQP exchange.",
    )
    parser.add_argument(
        "--env-file",
        help="Path of a .env file (default: $ENV_FILES_DIR/.env)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log payloads at DEBUG level")
    return parser.parse_args(argv)


async def run_poller(config: PollerConfig) -> ExitCode:
    """Wire the Tesla client, bus and scheduler together and poll until stopped."""
    async with TeslaClient(config) as client:
        bus = AmqpBus(config.amqp_connection_string)
        publisher = SnapshotPublisher(
            bus,
            exchange_name=config.exchange_name,
            exchange_type=config.exchange_type,
            routing_key=config.routing_key,
        )
        assembler = SnapshotAssembler(
            client.get_vehicle_summary,
            client.category_fetchers(),
            publisher,
            CadenceController(config.full_refresh_iterations),
            max_concurrency=config.max_concurrency,
        )
        poller = Poller(
            authenticator=Authenticator(config, client.transport),
            assembler=assembler,
            publisher=publisher,
            bus=bus,
            poll_interval=config.poll_interval,
            backoff_interval=config.backoff_interval,
        )

        loop = asyncio.get_running_loop()
        for signum in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(signum, poller.stop)
        try:
            return await poller.run()
        finally:
            for signum in (signal.SIGINT, signal.SIGTERM):
                loop.remove_signal_handler(signum)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)

    try:
        config = PollerConfig.from_env(load_environment(args.env_file))
    except ConfigurationError as exc:
        logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
        _logger.error("Failed to get settings: %s", exc)
        return ExitCode.FAILURE

    logging.basicConfig(
        level=logging.DEBUG if (args.verbose or config.verbose) else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    _logger.debug("Loaded %r", config)

    try:
        return asyncio.run(run_poller(config))
    except Exception:  # pragma: no cover - last-resort guard for the process
        _logger.exception("Unhandled fault, terminating")
        return ExitCode.FAILURE


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
