"""
Command-line interface for the hostwatch monitoring engine.

Runs the refresh loop until SIGINT/SIGTERM, or with ``--once`` performs a
single refresh cycle and prints the resulting cache state as JSON.

Usage:
    hostwatch --config conf/config.toml
    hostwatch --config conf/config.toml --once --log-level DEBUG
"""

import argparse
import asyncio
import json
import logging
import signal
import sys
from pathlib import Path
from typing import List, Optional, Tuple

from ..collectors import HostMetricsCollector
from ..config import get_config, set_config_path
from ..models.config import AppConfig
from ..models.snapshot import CacheState
from ..monitoring import RefreshScheduler, SnapshotCache
from ..platforms import get_normalizer
from ..probing import Prober
from ..validation import ValidationError, handle_cli_error, validate_enum_choice

LOG_FORMAT = "%(asctime)s [%(levelname)-5.5s] %(name)s:%(filename)s:%(lineno)d\t %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

logger = logging.getLogger(__name__)


def setup_logging(level: str = "INFO") -> None:
    """Configure root logging. Logs go to stderr so ``--once`` output stays clean JSON."""
    logging.basicConfig(
        level=getattr(logging, level),
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        stream=sys.stderr,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hostwatch",
        description="Monitor host metrics and target reachability.",
    )
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        help="Path to config.toml. Defaults to conf/config.toml in the project root.",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run a single refresh cycle, print the result as JSON and exit.",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        default="INFO",
        help=f"Logging level, one of {LOG_LEVELS}. Defaults to INFO.",
    )
    return parser


def build_engine(app_config: AppConfig) -> Tuple[RefreshScheduler, SnapshotCache]:
    """
    Wire the collector, prober, cache and scheduler for the running host.

    The prober and the scheduler share one platform normalizer.
    """
    normalizer = get_normalizer()
    collector = HostMetricsCollector(command_timeout=app_config.monitor.collect_timeout_seconds)
    prober = Prober(normalizer=normalizer)
    cache = SnapshotCache()
    scheduler = RefreshScheduler(
        config=app_config,
        collector=collector,
        prober=prober,
        cache=cache,
        normalizer=normalizer,
    )
    return scheduler, cache


async def run_once(app_config: AppConfig) -> CacheState:
    """Collect static facts, run one refresh cycle and return the cache state."""
    scheduler, cache = build_engine(app_config)
    try:
        await scheduler.prepare()
        return await cache.force_refresh()
    finally:
        await scheduler.stop(grace_seconds=0)


async def run_forever(app_config: AppConfig) -> None:
    """Run the refresh loop until SIGINT or SIGTERM."""
    scheduler, _ = build_engine(app_config)
    loop = asyncio.get_running_loop()
    stop_requested = asyncio.Event()

    def request_shutdown(signum: int) -> None:
        if stop_requested.is_set():
            logger.warning("Shutdown already in progress. Please be patient.")
            return
        logger.info(f"Signal {signal.strsignal(signum)} received. Initiating graceful shutdown...")
        stop_requested.set()

    for signum in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(signum, request_shutdown, signum)
        except NotImplementedError:
            # Windows event loops have no add_signal_handler.
            signal.signal(signum, lambda s, _frame: loop.call_soon_threadsafe(request_shutdown, s))

    await scheduler.start()
    try:
        await stop_requested.wait()
    finally:
        await scheduler.stop()


def main_cli(argv: Optional[List[str]] = None) -> None:
    """
    Main command-line interface for hostwatch.

    Args:
        argv: Argument list; defaults to ``sys.argv[1:]``

    Raises:
        SystemExit: On configuration errors, or with status 1 when ``--once``
            could not produce a snapshot
    """
    args = build_parser().parse_args(argv)

    try:
        log_level = validate_enum_choice(args.log_level, LOG_LEVELS, field_name="--log-level")
    except ValidationError as e:
        setup_logging()
        handle_cli_error(error=e, context="argument validation", exit_code=2, logger=logger)
    setup_logging(log_level)

    if args.config is not None:
        set_config_path(args.config)

    try:
        app_config = get_config()
    except Exception as e:
        handle_cli_error(error=e, context="configuration loading", exit_code=1, logger=logger)

    if args.once:
        state = asyncio.run(run_once(app_config))
        print(json.dumps(state.to_dict(), indent=2))
        if not state.available:
            sys.exit(1)
        return

    logger.info("Starting hostwatch")
    asyncio.run(run_forever(app_config))
    logger.info("hostwatch stopped")


if __name__ == "__main__":
    main_cli()
