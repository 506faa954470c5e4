"""
Telegram notifier for the watchdog.

Best-effort delivery: one POST per message, no retry. Failures are logged
and reported to the caller as False, never raised.
"""

from typing import Optional

import httpx
import structlog

from delta_watchdog.config import DEFAULT_HTTP_TIMEOUT_SECONDS, WatchdogConfig
from delta_watchdog.errors import NotifyError

logger = structlog.get_logger(__name__)

TELEGRAM_API_URL = "https://api.telegram.org"


class TelegramNotifier:
    """Sends text messages to one Telegram chat through a bot token."""

    def __init__(
        self,
        token: str,
        chat_id: str,
        timeout: float = DEFAULT_HTTP_TIMEOUT_SECONDS,
        api_url: str = TELEGRAM_API_URL,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.token = token
        self.chat_id = chat_id
        self.url = f"{api_url}/bot{token}/sendMessage"
        self.client = httpx.Client(timeout=timeout, transport=transport)

        logger.info("telegram_notifier_initialized", chat_id=chat_id)

    @classmethod
    def from_config(
        cls,
        config: WatchdogConfig,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> "TelegramNotifier":
        return cls(
            token=config.tele_tok,
            chat_id=config.tele_chat,
            timeout=config.http_timeout,
            transport=transport,
        )

    def send(self, text: str) -> None:
        """
        Deliver `text` to the chat.

        Raises:
            NotifyError: transport failure, non-2xx status or {"ok": false}
        """
        try:
            response = self.client.post(
                self.url,
                json={"chat_id": self.chat_id, "text": text},
            )
        except httpx.HTTPError as e:
            raise NotifyError(str(e)) from e

        if not response.is_success:
            raise NotifyError(response.text[:200], status=response.status_code)

        try:
            body = response.json()
        except ValueError:
            body = {}
        if isinstance(body, dict) and body.get("ok") is False:
            raise NotifyError(str(body.get("description", "telegram returned ok=false")))

    def notify(self, text: str) -> bool:
        """Send `text`; return True on delivery, False (logged) on any failure."""
        try:
            self.send(text)
        except NotifyError as e:
            logger.error("notification_failed", error=str(e), status=e.status)
            return False

        logger.info("notification_sent", chat_id=self.chat_id)
        return True

    def close(self) -> None:
        self.client.close()
