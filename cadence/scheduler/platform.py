"""Platform helpers for the scheduler.

Forking workers, session detachment and SIGALRM are POSIX facilities, so
Windows is only recognised in order to refuse it early.
"""

import os
import sys
import tempfile
from pathlib import Path


def is_windows() -> bool:
    return sys.platform == "win32"


def temp_dir() -> Path:
    """Platform-conventional temporary directory for channel and pid files."""
    if is_windows():
        return Path("C:/Windows/Temp")
    return Path(tempfile.gettempdir())


def is_process_running(pid: int) -> bool:
    """Check if a process with the given PID is running."""
    try:
        os.kill(pid, 0)
        return True
    except (ProcessLookupError, PermissionError):
        return False
