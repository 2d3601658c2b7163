"""Daemon head housekeeping.

Pid file bookkeeping so the CLI can tell whether a daemon is alive, standard
stream redirection after detaching, and logging setup for the daemon head.
"""

import logging
import os
import sys
from pathlib import Path
from typing import Optional

from cadence.scheduler.channel import channel_digest
from cadence.scheduler.platform import is_process_running, temp_dir
from cadence.settings import SchedulerSettings

LOG_FORMAT = "%(asctime)s - %(levelname)-8s - [%(name)s] - %(message)s"


def pid_file_path(settings: SchedulerSettings) -> Path:
    directory = settings.channel_dir or temp_dir()
    return Path(directory) / f"cadence_{channel_digest(settings.ipc_key)}.pid"


def write_pid_file(settings: SchedulerSettings) -> None:
    """Write the current PID to the PID file."""
    path = pid_file_path(settings)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(str(os.getpid()))


def remove_pid_file(settings: SchedulerSettings) -> None:
    """Remove the PID file."""
    try:
        pid_file_path(settings).unlink(missing_ok=True)
    except OSError:
        pass


def get_daemon_pid(settings: SchedulerSettings) -> Optional[int]:
    """Get the PID of the running daemon head, or None if not running."""
    path = pid_file_path(settings)
    if not path.exists():
        return None

    try:
        pid = int(path.read_text().strip())
    except (ValueError, OSError):
        remove_pid_file(settings)
        return None

    if not is_process_running(pid):
        # PID file exists but process is not running - stale PID file
        remove_pid_file(settings)
        return None
    return pid


def redirect_std_io() -> None:
    """Point stdin, stdout and stderr at /dev/null."""
    sys.stdout.flush()
    sys.stderr.flush()
    with open(os.devnull, "r") as null_in:
        os.dup2(null_in.fileno(), sys.stdin.fileno())
    with open(os.devnull, "a+") as null_out:
        os.dup2(null_out.fileno(), sys.stdout.fileno())
        os.dup2(null_out.fileno(), sys.stderr.fileno())


def setup_logging(settings: SchedulerSettings) -> None:
    """Configure the root logger for the daemon head and its workers.

    Clears previously installed handlers so a re-run does not duplicate output.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(settings.log_level)
    if root_logger.hasHandlers():
        root_logger.handlers.clear()

    if settings.log_file:
        Path(settings.log_file).parent.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = logging.FileHandler(settings.log_file)
    else:
        handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root_logger.addHandler(handler)
