"""Per-worker timer loop.

A forked worker turns into a fixed-interval runner driven by SIGALRM. The
handler schedules the next alarm before it runs the target, so the target's
own runtime never delays the following firing.
"""

import logging
import signal
import time

import setproctitle

from cadence.scheduler.config import TaskDefinition
from cadence.scheduler.signals import SignalPump

logger = logging.getLogger(__name__)


def set_process_title(title: str) -> None:
    """Best effort: a failure leaves the inherited title in place."""
    try:
        setproctitle.setproctitle(title)
    except Exception as e:
        logger.debug(f"Could not set process title {title!r}: {e}")


class WorkerTimer:
    """Runs one task forever inside a forked worker process."""

    def __init__(
        self,
        task: TaskDefinition,
        process_name: str,
        can_async: bool = True,
        sleep_seconds: int = 100,
    ):
        self.task = task
        self.process_name = process_name
        self.sleep_seconds = sleep_seconds
        self.pump = SignalPump(can_async)
        self.firings = 0

    def on_alarm(self, signum=None, frame=None) -> None:
        # Next tick first, then the current one.
        signal.alarm(self.task.interval)
        self.firings += 1
        self.task.resolved()

    def arm(self) -> None:
        set_process_title(self.process_name)
        self.pump.install(signal.SIGALRM, self.on_alarm)
        signal.alarm(self.task.interval)

    def suspend(self) -> None:
        """Sleep one quantum, then deliver pending signals in synchronous mode."""
        time.sleep(self.sleep_seconds)
        self.pump.dispatch()

    def run(self) -> None:
        """Never returns; the worker ends only when it is killed or its target raises."""
        self.arm()
        logger.debug(
            f"Worker {self.process_name} armed, firing every {self.task.interval}s"
        )
        while True:
            self.suspend()
