"""
Local process control for the watchdog.

Kill protocol:
1. Find every live process whose name matches exactly
2. Send terminate (SIGTERM) to each, independently
3. Wait up to kill_timeout for them to exit
4. kill (SIGKILL) whatever is still alive

A failure on one process never stops the others from being handled.
The watchdog's own process is never a match, even when the names agree
(e.g. both run as `python3`).
"""

import os
from dataclasses import dataclass
from typing import Optional

import psutil
import structlog

from delta_watchdog.config import DEFAULT_KILL_TIMEOUT_SECONDS
from delta_watchdog.errors import ActionError

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class TerminationOutcome:
    """Result of terminating one process."""

    pid: int
    success: bool
    error: Optional[ActionError] = None
    forced: bool = False


class ProcessController:
    """Finds and terminates OS processes by name."""

    def __init__(self, kill_timeout: float = DEFAULT_KILL_TIMEOUT_SECONDS):
        """
        Args:
            kill_timeout: Seconds to wait after SIGTERM before SIGKILL.
                0 sends SIGTERM only.
        """
        self.kill_timeout = kill_timeout

    def find_by_name(self, name: str) -> list[psutil.Process]:
        """Live processes whose name is exactly `name`, never the watchdog itself."""
        own_pid = os.getpid()
        matches = []
        for proc in psutil.process_iter(["name"]):
            if proc.info.get("name") != name:
                continue
            if proc.pid == own_pid:
                logger.warning("skipping_own_process", pid=own_pid, process_name=name)
                continue
            matches.append(proc)
        return matches

    def terminate_by_name(self, name: str) -> list[TerminationOutcome]:
        """
        Terminate every process named `name`.

        Returns one outcome per matching process. Zero matches returns an
        empty list. Never raises for per-process failures.
        """
        processes = self.find_by_name(name)
        if not processes:
            logger.warning("no_matching_process", process_name=name)
            return []

        logger.info("terminating_processes", process_name=name, count=len(processes))

        outcomes: dict[int, TerminationOutcome] = {}
        signalled: list[psutil.Process] = []

        for proc in processes:
            try:
                proc.terminate()
                signalled.append(proc)
                logger.info("sigterm_sent", pid=proc.pid)
            except psutil.NoSuchProcess:
                logger.info("process_already_dead", pid=proc.pid)
                outcomes[proc.pid] = TerminationOutcome(pid=proc.pid, success=True)
            except psutil.Error as e:
                error = ActionError(proc.pid, str(e) or type(e).__name__)
                logger.error("process_terminate_failed", pid=proc.pid, error=str(error))
                outcomes[proc.pid] = TerminationOutcome(pid=proc.pid, success=False, error=error)

        if self.kill_timeout > 0 and signalled:
            gone, alive = psutil.wait_procs(signalled, timeout=self.kill_timeout)
        else:
            gone, alive = signalled, []

        for proc in gone:
            logger.info("process_terminated", pid=proc.pid)
            outcomes[proc.pid] = TerminationOutcome(pid=proc.pid, success=True)

        for proc in alive:
            outcomes[proc.pid] = self._force_kill(proc)

        return [outcomes[proc.pid] for proc in processes]

    def _force_kill(self, proc: psutil.Process) -> TerminationOutcome:
        logger.warning("graceful_shutdown_failed_sending_sigkill", pid=proc.pid)
        try:
            proc.kill()
        except psutil.NoSuchProcess:
            return TerminationOutcome(pid=proc.pid, success=True)
        except psutil.Error as e:
            error = ActionError(proc.pid, str(e) or type(e).__name__)
            logger.error("process_kill_failed", pid=proc.pid, error=str(error))
            return TerminationOutcome(pid=proc.pid, success=False, error=error)

        logger.info("process_killed", pid=proc.pid)
        return TerminationOutcome(pid=proc.pid, success=True, forced=True)
