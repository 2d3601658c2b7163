"""CLI subcommands for the scheduler.

Handles starting a task group and talking to a running daemon head over the
command channel.
"""

import time
from typing import Optional

from cadence.messaging import (
    emit_error,
    emit_info,
    emit_process_table,
    emit_success,
    emit_warning,
)
from cadence.scheduler.errors import SchedulerError
from cadence.settings import SchedulerSettings, get_settings


def handle_scheduler_start(
    tasks_file: str, settings: Optional[SchedulerSettings] = None
) -> bool:
    """Load the task file and run the supervisor. Returns False on startup failure."""
    from cadence.scheduler.config import load_tasks
    from cadence.scheduler.daemon import get_daemon_pid, setup_logging
    from cadence.scheduler.supervisor import ProcessSupervisor

    settings = settings or get_settings()

    pid = get_daemon_pid(settings)
    if pid:
        emit_warning(f"Scheduler daemon already running (PID {pid})")
        return True

    try:
        tasks = load_tasks(tasks_file)
    except SchedulerError as e:
        emit_error(str(e))
        return False

    setup_logging(settings)
    emit_info(f"Starting {sum(t.workers for t in tasks)} worker(s) from {tasks_file}...")
    try:
        ProcessSupervisor(tasks, settings).start()
    except SchedulerError as e:
        emit_error(str(e))
        return False
    return True


def handle_scheduler_status(settings: Optional[SchedulerSettings] = None) -> bool:
    """Ask the daemon head for a status report and show it."""
    from cadence.scheduler.channel import open_channel
    from cadence.scheduler.daemon import get_daemon_pid
    from cadence.scheduler.messages import ControlAction, ControlMessage

    settings = settings or get_settings()

    pid = get_daemon_pid(settings)
    if not pid:
        emit_warning("Scheduler daemon: STOPPED")
        return True

    emit_success(f"Scheduler daemon: RUNNING (PID {pid})")
    channel = open_channel(settings)
    channel.send(ControlMessage(action=ControlAction.STATUS))

    for _ in range(settings.monitor_wait_iterations):
        time.sleep(1)
        found, payload = channel.receive(ControlAction.STATUS_REPLY)
        if found:
            emit_process_table(ControlMessage.from_payload(payload).start_list)
            return True

    emit_error("No status reply from the scheduler daemon")
    return False


def handle_scheduler_stop(
    force: bool = False, settings: Optional[SchedulerSettings] = None
) -> bool:
    """Ask the daemon head to stop its process group."""
    from cadence.scheduler.channel import open_channel
    from cadence.scheduler.daemon import get_daemon_pid
    from cadence.scheduler.messages import ControlAction, ControlMessage

    settings = settings or get_settings()

    pid = get_daemon_pid(settings)
    if not pid:
        emit_info("Scheduler daemon is not running")
        return True

    mode = "Killing" if force else "Stopping"
    emit_info(f"{mode} scheduler daemon (PID {pid})...")
    open_channel(settings).send(ControlMessage(action=ControlAction.STOP, force=force))
    return True
