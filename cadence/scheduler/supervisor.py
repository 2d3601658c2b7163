"""Process supervisor for Cadence.

Forks one worker per configured slot, optionally detaching the group into a
background daemon first, then stays resident answering status and stop
requests that arrive over the command channel.

States:
    STARTING -> (DAEMONIZING) -> ALLOCATING -> SUPERVISING

When daemonizing, the original process does not go on to allocate: it turns
into a short-lived monitor that prints whatever reports the daemon head sends
within its time budget and then exits.
"""

import logging
import os
import signal
import sys
import time
from datetime import datetime
from enum import Enum
from functools import partial
from typing import Callable, Iterable, List, Optional, Union

from pydantic import ValidationError

from cadence.messaging import emit_process_table
from cadence.scheduler.channel import CommandChannel, open_channel
from cadence.scheduler.config import TaskDefinition
from cadence.scheduler.daemon import redirect_std_io, remove_pid_file, write_pid_file
from cadence.scheduler.errors import SupervisorError
from cadence.scheduler.messages import (
    STARTED_FORMAT,
    ControlAction,
    ControlMessage,
    ProcessRecord,
)
from cadence.scheduler.platform import is_process_running
from cadence.scheduler.signals import SignalPump
from cadence.scheduler.timer import WorkerTimer
from cadence.settings import SchedulerSettings, get_settings

logger = logging.getLogger(__name__)


class SupervisorState(str, Enum):
    STARTING = "starting"
    DAEMONIZING = "daemonizing"
    MONITORING = "monitoring"
    ALLOCATING = "allocating"
    SUPERVISING = "supervising"


class ProcessSupervisor:
    """Owns the worker processes of one task group."""

    def __init__(
        self,
        tasks: Iterable[TaskDefinition],
        settings: Optional[SchedulerSettings] = None,
        channel: Optional[CommandChannel] = None,
    ):
        self.settings = settings or get_settings()
        self.tasks: List[TaskDefinition] = list(tasks)
        self.commander = channel or open_channel(self.settings)
        self.pump = SignalPump(self.settings.can_async)
        self.process_list: List[ProcessRecord] = []
        self.state = SupervisorState.STARTING

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def start(self) -> None:
        """Run the group. Only returns by raising; normal exit is via signals."""
        if self.settings.daemon:
            self.daemonize()
        self.allocate()
        self.daemon_wait()

    def daemonize(self) -> None:
        """Detach into the background.

        The parent branch becomes the monitor and exits from ``init_wait_exit``;
        only the daemon head returns from here.
        """
        self.state = SupervisorState.DAEMONIZING
        try:
            pid = os.fork()
        except OSError as e:
            raise SupervisorError(f"Failed to fork daemon head: {e}") from e

        if pid:
            self.init_wait_exit(pid)
            return

        try:
            os.setsid()
        except OSError as e:
            raise SupervisorError(f"Failed to start a new session: {e}") from e

        if self.settings.is_chdir:
            os.chdir("/")
        if self.settings.close_std_io:
            redirect_std_io()
        logger.info(f"Daemon head detached (PID: {os.getpid()})")

    def init_wait_exit(self, head_pid: int) -> None:
        """Monitor branch: drain reports for a bounded time, then exit.

        Only reports sent by ``head_pid`` (the daemon head this process just
        forked) are shown. Best effort only; reaching the end without a report
        is not a failure.
        """
        self.state = SupervisorState.MONITORING
        show = partial(self._show_report, head_pid)
        for _ in range(self.settings.monitor_wait_iterations):
            time.sleep(1)
            self.execute_by_wait_command(ControlAction.ALLOCATE, show)
            self.execute_by_wait_command(ControlAction.STATUS_REPLY, show)
        sys.exit(0)

    def allocate(self) -> None:
        """Fork ``workers`` processes for every task."""
        self.state = SupervisorState.ALLOCATING
        for task in self.tasks:
            name = task.process_name(self.settings.prefix)

            for _ in range(task.workers):
                started = datetime.now().strftime(STARTED_FORMAT)
                try:
                    pid = os.fork()
                except OSError as e:
                    raise SupervisorError(f"Failed to fork worker for {name}: {e}") from e

                if pid == 0:
                    self._run_worker(task, name)

                self.process_list.append(
                    ProcessRecord(
                        pid=pid,
                        ppid=os.getpid(),
                        task_name=name,
                        started=started,
                        timer=f"{task.interval}s",
                    )
                )
                self._reap()
        logger.info(f"Allocated {len(self.process_list)} worker(s)")

    def _run_worker(self, task: TaskDefinition, name: str) -> None:
        """Child branch of ``allocate``. Never returns to the caller."""
        status = 1
        try:
            WorkerTimer(
                task,
                name,
                can_async=self.settings.can_async,
                sleep_seconds=self.settings.sleep_seconds,
            ).run()
        except SystemExit as e:
            status = e.code if isinstance(e.code, int) else int(e.code is not None)
        except Exception:
            logger.exception(f"Worker {name} (PID: {os.getpid()}) terminated by its task")
        finally:
            os._exit(status)

    def _reap(self) -> None:
        """Collect an already-exited child without blocking."""
        try:
            os.waitpid(-1, os.WNOHANG)
        except ChildProcessError:
            pass

    def daemon_wait(self) -> None:
        """Report the allocation, then service control commands forever."""
        self.state = SupervisorState.SUPERVISING
        write_pid_file(self.settings)
        self.commander.send(
            ControlMessage(action=ControlAction.ALLOCATE, start_list=self.process_list)
        )
        self.pump.install(signal.SIGTERM, self._on_terminate)

        while True:
            time.sleep(1)
            self.supervise_once()

    def supervise_once(self) -> None:
        """One supervising iteration: status, then stop, then pending signals."""
        self.execute_by_wait_command(ControlAction.STATUS, self._reply_status)
        self.execute_by_wait_command(ControlAction.STOP, self._stop_group)
        self.pump.dispatch()

    # =========================================================================
    # Control commands
    # =========================================================================

    def process_status(self) -> None:
        """Mark records whose worker has exited (or cannot be queried) as stopped."""
        for record in self.process_list:
            if not record.is_active:
                continue
            try:
                rel, _ = os.waitpid(record.pid, os.WNOHANG)
            except OSError:
                rel = -1
            if rel != 0:
                record.mark_stopped()
                logger.info(f"Worker {record.task_name} (PID: {record.pid}) stopped")

    def execute_by_wait_command(
        self,
        action: Union[str, ControlAction],
        handler: Callable[[ControlMessage], None],
    ) -> bool:
        """Receive one message for ``action`` and hand it to ``handler``.

        A message for a different action is pushed back unchanged for whichever
        poller waits on it. Returns True when ``handler`` ran.
        """
        action = ControlAction(action)
        found, payload = self.commander.receive(action)
        if not found:
            return False
        if payload.get("action") != action.value:
            self.commander.push(payload)
            return False
        try:
            message = ControlMessage.from_payload(payload)
        except ValidationError as e:
            logger.warning(f"Dropping malformed {action.value} message: {e}")
            return False
        handler(message)
        return True

    def _show_report(self, head_pid: int, message: ControlMessage) -> None:
        sender = message.start_list[0].ppid if message.start_list else None
        if sender == head_pid:
            emit_process_table(message.start_list)
            return
        if sender is not None and is_process_running(sender):
            # Another live group's report; leave it for its own monitor.
            self.commander.push(message.to_payload())
        else:
            logger.debug(f"Dropping stale {message.action.value} report from PID {sender}")

    def _reply_status(self, message: ControlMessage) -> None:
        self.process_status()
        self.commander.send(
            ControlMessage(action=ControlAction.STATUS_REPLY, start_list=self.process_list)
        )

    def _stop_group(self, message: ControlMessage) -> None:
        sig = signal.SIGKILL if message.force else signal.SIGTERM
        logger.info(f"Stop requested, sending {sig.name} to the process group")
        os.kill(0, sig)

    def _on_terminate(self, signum, frame) -> None:
        """Propagate termination to the whole process group, then exit."""
        signal.signal(signal.SIGTERM, signal.SIG_IGN)
        logger.info("Terminating process group")
        os.kill(0, signal.SIGTERM)
        remove_pid_file(self.settings)
        sys.exit(0)
