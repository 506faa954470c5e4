"""
Delta watchdog daemon.

Entry point for the watchdog process. Runs as a SEPARATE process from the
trading bot it guards, with its own config file and API credentials.

Startup:
1. Configure structured logging
2. Load and validate the config file (fatal on ConfigError)
3. Wire client, notifier, process controller and monitor
4. Run the monitor until SIGTERM / SIGINT
"""

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Optional

import structlog
from dotenv import load_dotenv

from delta_watchdog.config import WatchdogConfig, load_config
from delta_watchdog.errors import ConfigError
from delta_watchdog.exchange_client import SignedApiClient
from delta_watchdog.graceful_shutdown import GracefulShutdownHandler
from delta_watchdog.monitor import ThresholdMonitor
from delta_watchdog.notifier import TelegramNotifier
from delta_watchdog.process_controller import ProcessController
from delta_watchdog.rules import DeltaRule

DEFAULT_CONFIG_PATH = "watchdog.cfg"
CONFIG_ENV_VAR = "DELTA_WATCHDOG_CONFIG"


def setup_logging(log_level: str = "INFO", log_file: Optional[str] = None) -> None:
    """Configure structured logging for the watchdog."""
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, log_level.upper()),
        handlers=handlers,
    )


def build_monitor(
    config: WatchdogConfig,
    client: Optional[SignedApiClient] = None,
    notifier: Optional[TelegramNotifier] = None,
    process_controller: Optional[ProcessController] = None,
) -> ThresholdMonitor:
    """Wire a ThresholdMonitor from config. Collaborators may be injected."""
    return ThresholdMonitor(
        client=client or SignedApiClient.from_config(config),
        notifier=notifier or TelegramNotifier.from_config(config),
        process_controller=process_controller or ProcessController(config.kill_timeout),
        rule=DeltaRule.from_config(config),
        currency=config.currency,
        process_name=config.main_process,
        interval_seconds=config.request_interval,
    )


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Delta Watchdog - kills the trading process on sustained delta breach",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Run with ./watchdog.cfg
    delta-watchdog

    # Run with a specific config and debug logging
    delta-watchdog --config /etc/delta-watchdog/watchdog.cfg --log-level DEBUG
        """,
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help=f"Path to config file (default: ${CONFIG_ENV_VAR} or {DEFAULT_CONFIG_PATH})",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level",
    )
    parser.add_argument(
        "--log-file",
        type=str,
        default=None,
        help="Optional path to log file",
    )
    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> int:
    """Entry point for the watchdog process. Returns the exit code."""
    args = parse_args(argv)

    # Load environment variables
    load_dotenv()

    setup_logging(args.log_level, args.log_file)
    logger = structlog.get_logger(__name__)

    config_path = args.config or os.environ.get(CONFIG_ENV_VAR) or DEFAULT_CONFIG_PATH

    try:
        config = load_config(config_path)
    except ConfigError as e:
        logger.error("invalid_config", path=config_path, problems=e.problems)
        return 1

    logger.info("starting_watchdog", config_path=config_path, config=repr(config))

    monitor = build_monitor(config)

    handler = GracefulShutdownHandler(on_shutdown=monitor.stop)
    handler.register_cleanup(monitor.client.close)
    handler.register_cleanup(monitor.notifier.close)
    handler.install()

    try:
        monitor.start()
    finally:
        handler.run_cleanup()

    return 0


if __name__ == "__main__":
    sys.exit(main())
