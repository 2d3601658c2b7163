"""Cadence Scheduler - run callables periodically in forked worker processes.

Components:
    - config: Task definitions, target resolution and JSON persistence
    - channel: File-backed command channel between processes
    - timer: Alarm-driven loop run by every worker
    - supervisor: Daemonization, worker allocation and control loop
    - daemon: Pid file and logging for the daemon head
    - platform: OS conventions (temp dir, pid liveness)
"""

from cadence.scheduler.channel import CommandChannel
from cadence.scheduler.config import (
    DispatchMode,
    TaskDefinition,
    TaskTarget,
    load_tasks,
    save_tasks,
)
from cadence.scheduler.errors import (
    ChannelError,
    SchedulerError,
    SupervisorError,
    TaskDefinitionError,
)
from cadence.scheduler.messages import (
    ControlAction,
    ControlMessage,
    ProcessRecord,
    ProcessStatus,
)

__all__ = [
    "CommandChannel",
    "DispatchMode",
    "TaskDefinition",
    "TaskTarget",
    "load_tasks",
    "save_tasks",
    "ChannelError",
    "SchedulerError",
    "SupervisorError",
    "TaskDefinitionError",
    "ControlAction",
    "ControlMessage",
    "ProcessRecord",
    "ProcessStatus",
]
