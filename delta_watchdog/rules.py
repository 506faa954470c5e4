"""
Delta kill rule for the watchdog.

The rule has two parts:
- a band: |deltaPA| must stay at or below max_delta
- a duration: a breach must persist for deviation_seconds before action

The duration is measured from the FIRST out-of-band sample of a streak,
not over a sliding window. Any in-band sample ends the streak.
"""

from dataclasses import dataclass
from typing import Optional

from delta_watchdog.config import WatchdogConfig


@dataclass(frozen=True)
class DeltaRule:
    """
    Band and duration limits. Frozen: not changed at runtime.
    """

    # Maximum allowed absolute delta
    max_delta: float

    # Seconds a breach must persist before the process is killed
    deviation_seconds: float

    def __post_init__(self):
        if self.max_delta < 0:
            raise ValueError(f"max_delta must be >= 0, got {self.max_delta}")
        if self.deviation_seconds < 0:
            raise ValueError(
                f"deviation_seconds must be >= 0, got {self.deviation_seconds}"
            )

    @classmethod
    def from_config(cls, config: WatchdogConfig) -> "DeltaRule":
        return cls(
            max_delta=config.max_delta,
            deviation_seconds=float(config.deviation_time),
        )

    def check_band(self, delta: float) -> tuple[bool, Optional[str]]:
        """Check if delta is outside the allowed band."""
        if abs(delta) > self.max_delta:
            return True, f"Delta out of band: |{delta}| > {self.max_delta}"
        return False, None

    def check_duration(self, elapsed_seconds: float) -> tuple[bool, Optional[str]]:
        """Check if a breach has lasted long enough to act on."""
        if elapsed_seconds >= self.deviation_seconds:
            return True, (
                f"Delta breach sustained: {elapsed_seconds:.0f}s >= "
                f"{self.deviation_seconds:.0f}s"
            )
        return False, None
