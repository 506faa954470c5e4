"""
Watchdog configuration.

The watchdog reads a plain `key: value` file (its own file, separate from
whatever the monitored process uses). Parsing is all-or-nothing: either every
required key is present and valid, or a single ConfigError lists every
problem found.

Example:

    # watchdog.cfg
    currency: BTC
    request_interval: 10
    max_delta: 0.5
    deviation_time: 60
    main_process: "trading_bot"
    tele_tok: 123456:ABC
    tele_chat: -100123
    secret_key: ...
    api_key: ...
    passphrase: ...
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Union

from delta_watchdog.errors import ConfigError

DEFAULT_API_BASE_URL = "https://www.okx.com"
DEFAULT_HTTP_TIMEOUT_SECONDS = 10.0
DEFAULT_KILL_TIMEOUT_SECONDS = 5.0

REQUIRED_KEYS = (
    "currency",
    "request_interval",
    "max_delta",
    "deviation_time",
    "main_process",
    "tele_tok",
    "tele_chat",
    "secret_key",
    "api_key",
    "passphrase",
)

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class WatchdogConfig:
    """
    Immutable watchdog settings.

    Credentials are kept out of repr so the config can be logged safely.
    """

    currency: str
    request_interval: int
    max_delta: float
    deviation_time: int
    main_process: str
    tele_tok: str = field(repr=False)
    tele_chat: str
    secret_key: str = field(repr=False)
    api_key: str = field(repr=False)
    passphrase: str = field(repr=False)

    api_base_url: str = DEFAULT_API_BASE_URL
    simulated_trading: bool = True
    http_timeout: float = DEFAULT_HTTP_TIMEOUT_SECONDS
    kill_timeout: float = DEFAULT_KILL_TIMEOUT_SECONDS


def parse_config_lines(text: str) -> dict[str, str]:
    """
    Split config text into a lowercase-key dict.

    Blank lines, `#` comments and lines without a colon are skipped. Only the
    first colon separates key from value. Later keys win.
    """
    values: dict[str, str] = {}
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        key, sep, value = stripped.partition(":")
        if not sep:
            continue
        values[key.strip().lower()] = value.strip().strip("\"'")
    return values


def _parse_bool(raw: str) -> bool:
    lowered = raw.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"not a boolean: {raw!r}")


def parse_config_text(text: str) -> WatchdogConfig:
    """Build a WatchdogConfig from config file text, or raise ConfigError."""
    raw = parse_config_lines(text)
    problems: list[str] = []

    missing = [key for key in REQUIRED_KEYS if not raw.get(key)]
    if missing:
        problems.append("missing required keys: " + ", ".join(missing))

    parsed: dict = {}

    def convert(key: str, converter: Callable, check: Callable, rule: str) -> None:
        if not raw.get(key):
            return
        try:
            value = converter(raw[key])
        except ValueError:
            problems.append(f"{key} is malformed: {raw[key]!r}")
            return
        if not check(value):
            problems.append(f"{key} must be {rule}, got {value}")
            return
        parsed[key] = value

    convert("request_interval", int, lambda v: v > 0, "> 0")
    convert("deviation_time", int, lambda v: v >= 0, ">= 0")
    convert("max_delta", float, lambda v: v >= 0, ">= 0")
    convert("http_timeout", float, lambda v: v > 0, "> 0")
    convert("kill_timeout", float, lambda v: v >= 0, ">= 0")
    convert("simulated_trading", _parse_bool, lambda v: True, "a boolean")

    if problems:
        raise ConfigError(problems)

    optional = {
        key: parsed[key]
        for key in ("simulated_trading", "http_timeout", "kill_timeout")
        if key in parsed
    }
    if raw.get("api_base_url"):
        optional["api_base_url"] = raw["api_base_url"].rstrip("/")

    return WatchdogConfig(
        currency=raw["currency"],
        request_interval=parsed["request_interval"],
        max_delta=parsed["max_delta"],
        deviation_time=parsed["deviation_time"],
        main_process=raw["main_process"],
        tele_tok=raw["tele_tok"],
        tele_chat=raw["tele_chat"],
        secret_key=raw["secret_key"],
        api_key=raw["api_key"],
        passphrase=raw["passphrase"],
        **optional,
    )


def load_config(path: Union[str, Path]) -> WatchdogConfig:
    """Read and validate the config file at `path`."""
    config_path = Path(path)
    try:
        text = config_path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError([f"cannot read config file {config_path}: {e}"]) from e
    return parse_config_text(text)
