#!/usr/bin/env python3
"""
Entry point for the delta watchdog process.

CRITICAL: Run this in a SEPARATE terminal (or service) from the trading bot.

Usage:
    python scripts/run_watchdog.py --config watchdog.cfg

    # Or in background:
    nohup python scripts/run_watchdog.py --log-file logs/watchdog.log > /dev/null 2>&1 &

The watchdog polls the account delta and, if it stays out of band for too
long, kills the trading process and sends a Telegram alert.
"""

import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from delta_watchdog.daemon import main


if __name__ == "__main__":
    sys.exit(main())
