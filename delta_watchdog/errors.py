"""
Error taxonomy for the delta watchdog.

Only ConfigError is fatal (raised at startup, before the monitor runs).
Every other error is logged by the monitor and the tick carries on.
"""

from typing import Optional


class WatchdogError(Exception):
    """Base class for all watchdog errors."""


class ConfigError(WatchdogError):
    """Missing or malformed configuration. Fatal at startup."""

    def __init__(self, problems: list[str]):
        self.problems = list(problems)
        super().__init__("Invalid watchdog config: " + "; ".join(self.problems))


class ApiError(WatchdogError):
    """
    Exchange request failed or returned an unusable body.

    `status` is set for non-success HTTP responses. `reason` is one of
    "status", "transport" or "malformed".
    """

    def __init__(
        self,
        reason: str,
        status: Optional[int] = None,
        detail: Optional[str] = None,
    ):
        self.reason = reason
        self.status = status
        self.detail = detail
        message = f"api error ({reason})"
        if status is not None:
            message += f": HTTP {status}"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class ActionError(WatchdogError):
    """Failed to terminate one matching process."""

    def __init__(self, pid: int, detail: str):
        self.pid = pid
        self.detail = detail
        super().__init__(f"failed to terminate process {pid}: {detail}")


class NotifyError(WatchdogError):
    """Alert message could not be delivered."""

    def __init__(self, detail: str, status: Optional[int] = None):
        self.detail = detail
        self.status = status
        message = f"notification failed: {detail}"
        if status is not None:
            message += f" (HTTP {status})"
        super().__init__(message)
