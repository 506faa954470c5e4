"""
Signed REST client for the exchange account API.

This is the watchdog's only view of the account. It has its own
credentials (from the watchdog config) and keeps no state between calls:
one call is exactly one HTTP round trip. No retries; the monitor treats any
failure as a skipped tick.
"""

import base64
import hashlib
import hmac
import math
from datetime import datetime, timezone
from typing import Optional

import httpx
import structlog

from delta_watchdog.config import (
    DEFAULT_API_BASE_URL,
    DEFAULT_HTTP_TIMEOUT_SECONDS,
    WatchdogConfig,
)
from delta_watchdog.errors import ApiError

logger = structlog.get_logger(__name__)

GREEKS_PATH = "/api/v5/account/greeks"
DELTA_FIELD = "deltaPA"


def utc_timestamp(now: Optional[datetime] = None) -> str:
    """ISO-8601 UTC timestamp with millisecond precision, e.g. 2024-01-01T00:00:00.000Z."""
    now = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


def sign(timestamp: str, method: str, request_path: str, secret_key: str) -> str:
    """base64(HMAC-SHA256(secret, timestamp + method + path))."""
    message = f"{timestamp}{method.upper()}{request_path}"
    digest = hmac.new(
        secret_key.encode("utf-8"),
        message.encode("utf-8"),
        hashlib.sha256,
    ).digest()
    return base64.b64encode(digest).decode("ascii")


class SignedApiClient:
    """
    OKX-style signed GET client.

    Every request carries OK-ACCESS-KEY / SIGN / TIMESTAMP / PASSPHRASE
    headers, plus x-simulated-trading when pointed at the demo environment.
    """

    def __init__(
        self,
        api_key: str,
        secret_key: str,
        passphrase: str,
        base_url: str = DEFAULT_API_BASE_URL,
        simulated_trading: bool = True,
        timeout: float = DEFAULT_HTTP_TIMEOUT_SECONDS,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """
        Initialize the client.

        Args:
            api_key: Exchange API key
            secret_key: Secret used to sign requests
            passphrase: API passphrase
            base_url: Exchange REST host
            simulated_trading: Send the demo-trading header
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport (tests)
        """
        if not api_key or not secret_key or not passphrase:
            raise ValueError("SignedApiClient requires api_key, secret_key and passphrase")

        self.api_key = api_key
        self.secret_key = secret_key
        self.passphrase = passphrase

        headers = {"Content-Type": "application/json"}
        if simulated_trading:
            headers["x-simulated-trading"] = "1"

        self.client = httpx.Client(
            base_url=base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

        logger.info(
            "signed_api_client_initialized",
            base_url=base_url,
            simulated_trading=simulated_trading,
            timeout=timeout,
        )

    @classmethod
    def from_config(
        cls,
        config: WatchdogConfig,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> "SignedApiClient":
        return cls(
            api_key=config.api_key,
            secret_key=config.secret_key,
            passphrase=config.passphrase,
            base_url=config.api_base_url,
            simulated_trading=config.simulated_trading,
            timeout=config.http_timeout,
            transport=transport,
        )

    def _auth_headers(self, method: str, request_path: str) -> dict[str, str]:
        timestamp = utc_timestamp()
        return {
            "OK-ACCESS-KEY": self.api_key,
            "OK-ACCESS-SIGN": sign(timestamp, method, request_path, self.secret_key),
            "OK-ACCESS-TIMESTAMP": timestamp,
            "OK-ACCESS-PASSPHRASE": self.passphrase,
        }

    def get(self, request_path: str) -> dict:
        """
        Signed GET of `request_path` (path plus query string).

        Returns the parsed JSON body.

        Raises:
            ApiError: on transport failure, non-2xx status or non-JSON body
        """
        headers = self._auth_headers("GET", request_path)
        try:
            response = self.client.get(request_path, headers=headers)
        except httpx.HTTPError as e:
            raise ApiError("transport", detail=str(e)) from e

        if not response.is_success:
            raise ApiError("status", status=response.status_code, detail=response.text[:200])

        try:
            return response.json()
        except ValueError as e:
            raise ApiError("malformed", detail="response body is not JSON") from e

    def fetch_delta(self, currency: str) -> float:
        """
        Fetch the account deltaPA for `currency`.

        Raises:
            ApiError: request failed or data[0].deltaPA is missing / not numeric
        """
        payload = self.get(f"{GREEKS_PATH}?ccy={currency}")

        try:
            raw = payload["data"][0][DELTA_FIELD]
            delta = float(raw)
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise ApiError("malformed", detail=f"no numeric data[0].{DELTA_FIELD}") from e

        # NaN compares as in band and would reset a running episode
        if not math.isfinite(delta):
            raise ApiError("malformed", detail=f"non-finite {DELTA_FIELD}: {raw!r}")

        logger.debug("delta_fetched", currency=currency, delta=delta)
        return delta

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> "SignedApiClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
