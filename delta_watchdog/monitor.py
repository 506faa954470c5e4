"""
Delta threshold monitor.

This is the watchdog's main loop. Each tick:
1. Fetch deltaPA from the exchange
2. Compare |delta| with max_delta
3. Track how long the breach has lasted
4. After deviation_time of continuous breach: kill the main process,
   send an alert, and start over

State machine:

    IN_BAND --(|delta| > T)--> OUT_OF_BAND(since=now)
    OUT_OF_BAND --(|delta| <= T)--> IN_BAND
    OUT_OF_BAND --(now - since >= D)--> kill + alert --> IN_BAND

A failed fetch changes nothing. The clock is anchored at the first
out-of-band sample, so only a genuinely sustained breach triggers the kill.
"""

import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

import structlog

from delta_watchdog.exchange_client import SignedApiClient
from delta_watchdog.notifier import TelegramNotifier
from delta_watchdog.process_controller import ProcessController
from delta_watchdog.rules import DeltaRule

logger = structlog.get_logger(__name__)


class MonitorState(Enum):
    """Violation state."""
    IN_BAND = "in_band"
    OUT_OF_BAND = "out_of_band"


class TickOutcome(Enum):
    """What a single tick did."""
    FETCH_FAILED = "fetch_failed"
    IN_BAND = "in_band"
    VIOLATION_STARTED = "violation_started"
    VIOLATION_ONGOING = "violation_ongoing"
    ACTION_TRIGGERED = "action_triggered"


@dataclass(frozen=True)
class Sample:
    """One observed delta and when it was observed (monitor clock seconds)."""
    value: float
    observed_at: float


class ThresholdMonitor:
    """
    Polls delta on a fixed interval and kills the main process on a
    sustained breach.

    Ticks run one at a time on the thread that called start(). If a tick
    overruns the interval, the missed slots are dropped rather than queued,
    so a slow exchange never causes a burst of back-to-back ticks.
    """

    def __init__(
        self,
        client: SignedApiClient,
        notifier: TelegramNotifier,
        process_controller: ProcessController,
        rule: DeltaRule,
        currency: str,
        process_name: str,
        interval_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the monitor.

        Args:
            client: Signed exchange client used to fetch delta
            notifier: Alert channel
            process_controller: Terminates the main process
            rule: Band and duration limits
            currency: Currency whose delta is monitored
            process_name: Name of the process to kill on breach
            interval_seconds: Seconds between ticks
            clock: Monotonic time source (seconds)
        """
        if interval_seconds <= 0:
            raise ValueError(f"interval_seconds must be > 0, got {interval_seconds}")

        self.client = client
        self.notifier = notifier
        self.process_controller = process_controller
        self.rule = rule
        self.currency = currency
        self.process_name = process_name
        self.interval = interval_seconds
        self.clock = clock

        # Start of the current breach streak; None while in band
        self.episode_started_at: Optional[float] = None

        self.actions_triggered = 0
        self._stop_event = threading.Event()

        logger.info(
            "threshold_monitor_initialized",
            currency=currency,
            process_name=process_name,
            interval=interval_seconds,
            max_delta=rule.max_delta,
            deviation_seconds=rule.deviation_seconds,
        )

    @property
    def state(self) -> MonitorState:
        if self.episode_started_at is None:
            return MonitorState.IN_BAND
        return MonitorState.OUT_OF_BAND

    def start(self) -> None:
        """
        Run ticks until stop() is called.

        The first tick fires immediately, later ones on the fixed grid
        start + k * interval. A stop() issued before start() is honored:
        no tick runs.
        """
        logger.info("threshold_monitor_starting")

        next_deadline = self.clock()
        while not self._stop_event.is_set():
            self.tick()

            next_deadline += self.interval
            now = self.clock()
            if now > next_deadline:
                skipped = int((now - next_deadline) // self.interval) + 1
                next_deadline += skipped * self.interval
                logger.warning("tick_overran_interval", skipped_ticks=skipped)

            self._stop_event.wait(max(0.0, next_deadline - self.clock()))

        logger.info("threshold_monitor_stopped")

    def stop(self) -> None:
        """Stop the timer. An in-flight tick finishes first."""
        self._stop_event.set()

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

    def tick(self) -> TickOutcome:
        """Fetch one sample and evaluate it."""
        try:
            delta = self.client.fetch_delta(self.currency)
        except Exception as e:
            logger.error(
                "delta_fetch_failed",
                currency=self.currency,
                error=str(e),
                state=self.state.value,
            )
            return TickOutcome.FETCH_FAILED

        sample = Sample(value=delta, observed_at=self.clock())
        logger.info("delta_sampled", currency=self.currency, delta=delta)
        return self.evaluate(sample)

    def evaluate(self, sample: Sample) -> TickOutcome:
        """
        Advance the state machine with one sample.

        Runs the kill + alert when the breach has lasted long enough.
        """
        breached, reason = self.rule.check_band(sample.value)
        if not breached:
            if self.episode_started_at is not None:
                logger.info("delta_back_in_band", delta=sample.value)
            self.episode_started_at = None
            return TickOutcome.IN_BAND

        started = self.episode_started_at is None
        if started:
            self.episode_started_at = sample.observed_at
            logger.warning("violation_started", delta=sample.value, reason=reason)

        elapsed = sample.observed_at - self.episode_started_at
        sustained, reason = self.rule.check_duration(elapsed)
        if not sustained:
            if started:
                return TickOutcome.VIOLATION_STARTED
            logger.warning(
                "violation_ongoing",
                delta=sample.value,
                elapsed_seconds=elapsed,
            )
            return TickOutcome.VIOLATION_ONGOING

        self._trigger_action(sample.value, reason)
        self.episode_started_at = None
        return TickOutcome.ACTION_TRIGGERED

    def _trigger_action(self, delta: float, reason: Optional[str]) -> None:
        """Kill the main process, then alert. Neither step can raise."""
        logger.critical(
            "sustained_violation_action",
            delta=delta,
            reason=reason,
            process_name=self.process_name,
        )
        self.actions_triggered += 1

        try:
            outcomes = self.process_controller.terminate_by_name(self.process_name)
        except Exception as e:
            logger.error("process_termination_failed", error=str(e))
            outcomes = []

        failed = [o.pid for o in outcomes if not o.success]
        if failed:
            logger.error("some_processes_not_terminated", pids=failed)

        text = f"Watchdog: Killing process {self.process_name} due to deltaPA={delta}"
        try:
            self.notifier.notify(text)
        except Exception as e:
            logger.error("notification_failed", error=str(e))
