"""
Tests for watchdog config loading.

Parsing must be all-or-nothing: a bad file never yields a half-filled config.
"""

import pytest

from delta_watchdog.config import (
    DEFAULT_API_BASE_URL,
    REQUIRED_KEYS,
    WatchdogConfig,
    load_config,
    parse_config_lines,
    parse_config_text,
)
from delta_watchdog.errors import ConfigError


class TestConfigLines:
    """Tests for the key: value line format."""

    def test_comments_and_blank_lines_skipped(self):
        """Blank lines and # comments are ignored."""
        values = parse_config_lines("\n# comment\n   \ncurrency: BTC\n")
        assert values == {"currency": "BTC"}

    def test_keys_are_case_insensitive(self):
        """Keys are lowercased on read."""
        values = parse_config_lines("CURRENCY: ETH\nMax_Delta: 2")
        assert values == {"currency": "ETH", "max_delta": "2"}

    def test_quotes_stripped(self):
        """Surrounding quotes are removed from values."""
        values = parse_config_lines('main_process: "trading_bot"\ntele_chat: \'-100\'')
        assert values["main_process"] == "trading_bot"
        assert values["tele_chat"] == "-100"

    def test_value_may_contain_colon(self):
        """Telegram tokens contain a colon; only the first one splits."""
        values = parse_config_lines("tele_tok: 123456:ABC")
        assert values["tele_tok"] == "123456:ABC"

    def test_line_without_colon_ignored(self):
        """Lines without a colon are skipped."""
        values = parse_config_lines("garbage line\ncurrency: BTC")
        assert values == {"currency": "BTC"}

    def test_later_key_wins(self):
        """A repeated key keeps its last value."""
        values = parse_config_lines("currency: BTC\ncurrency: ETH")
        assert values["currency"] == "ETH"


class TestParseConfig:
    """Tests for typed config construction."""

    def test_valid_config(self, config_text):
        """A complete file yields typed fields."""
        config = parse_config_text(config_text)

        assert config.currency == "BTC"
        assert config.request_interval == 10
        assert config.max_delta == 5.0
        assert config.deviation_time == 60
        assert config.main_process == "trading_bot"
        assert config.tele_tok == "123456:ABC-token"
        assert config.tele_chat == "-100123"
        assert config.api_key == "test_key"

    def test_optional_defaults(self, watchdog_config):
        """Optional keys fall back to defaults."""
        assert watchdog_config.api_base_url == DEFAULT_API_BASE_URL
        assert watchdog_config.simulated_trading is True
        assert watchdog_config.http_timeout == 10.0
        assert watchdog_config.kill_timeout == 5.0

    def test_optional_overrides(self, config_text):
        """Optional keys override the defaults."""
        config = parse_config_text(
            config_text
            + "api_base_url: https://example.test/\n"
            + "simulated_trading: no\n"
            + "http_timeout: 2.5\n"
            + "kill_timeout: 0\n"
        )

        assert config.api_base_url == "https://example.test"
        assert config.simulated_trading is False
        assert config.http_timeout == 2.5
        assert config.kill_timeout == 0.0

    def test_config_is_frozen(self, watchdog_config):
        """Config should be frozen (immutable)."""
        with pytest.raises(AttributeError):
            watchdog_config.max_delta = 10.0

    def test_secrets_not_in_repr(self, watchdog_config):
        """Credentials never show up in repr."""
        text = repr(watchdog_config)

        assert "test_secret" not in text
        assert "test_key" not in text
        assert "test_pass" not in text
        assert "ABC-token" not in text
        assert "BTC" in text

    @pytest.mark.parametrize("key", REQUIRED_KEYS)
    def test_missing_required_key(self, config_text, key):
        """Each missing required key is fatal and named."""
        text = "\n".join(
            line for line in config_text.splitlines()
            if not line.lower().startswith(key + ":")
        )

        with pytest.raises(ConfigError) as exc_info:
            parse_config_text(text)

        assert key in str(exc_info.value)

    def test_all_problems_reported_at_once(self):
        """Every problem is listed in one ConfigError."""
        with pytest.raises(ConfigError) as exc_info:
            parse_config_text("request_interval: soon\nmax_delta: big\n")

        message = str(exc_info.value)
        assert "currency" in message
        assert "request_interval is malformed" in message
        assert "max_delta is malformed" in message

    def test_float_interval_rejected(self, config_text):
        """request_interval must be a whole number of seconds."""
        with pytest.raises(ConfigError, match="request_interval"):
            parse_config_text(config_text.replace("request_interval: 10", "request_interval: 1.5"))

    def test_zero_interval_rejected(self, config_text):
        """A zero poll interval is rejected."""
        with pytest.raises(ConfigError, match="request_interval must be > 0"):
            parse_config_text(config_text.replace("request_interval: 10", "request_interval: 0"))

    def test_negative_deviation_time_rejected(self, config_text):
        """A negative deviation_time is rejected."""
        with pytest.raises(ConfigError, match="deviation_time"):
            parse_config_text(config_text.replace("deviation_time: 60", "deviation_time: -1"))

    def test_bad_boolean_rejected(self, config_text):
        """simulated_trading only accepts boolean words."""
        with pytest.raises(ConfigError, match="simulated_trading"):
            parse_config_text(config_text + "simulated_trading: maybe\n")


class TestLoadConfig:
    """Tests for reading the config file from disk."""

    def test_load_from_file(self, temp_dir, config_text):
        """load_config reads and parses a file."""
        path = temp_dir / "watchdog.cfg"
        path.write_text(config_text)

        config = load_config(path)

        assert isinstance(config, WatchdogConfig)
        assert config.currency == "BTC"

    def test_missing_file(self, temp_dir):
        """An unreadable file is a ConfigError."""
        with pytest.raises(ConfigError, match="cannot read config file"):
            load_config(temp_dir / "nope.cfg")
