"""
Independent Delta Watchdog Process.

CRITICAL: This is a SEPARATE process from the trading bot it guards.
It has its own:
- Python interpreter
- Configuration file
- API credentials
- No shared memory with the bot

The watchdog polls the account's delta (deltaPA) and, when it stays outside
the allowed band for longer than the configured duration:
- Kills the trading process by name
- Sends a Telegram alert

A kill switch that lives outside the process it guards still works when
that process is hung or misbehaving.
"""

from delta_watchdog.config import WatchdogConfig, load_config
from delta_watchdog.monitor import ThresholdMonitor, TickOutcome
from delta_watchdog.rules import DeltaRule

__all__ = [
    "WatchdogConfig",
    "load_config",
    "ThresholdMonitor",
    "TickOutcome",
    "DeltaRule",
]
