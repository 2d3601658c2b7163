"""Exceptions raised by the scheduler core."""


class SchedulerError(Exception):
    """Base class for scheduler failures."""


class ChannelError(SchedulerError):
    """The command channel backing store could not be created."""


class SupervisorError(SchedulerError):
    """Forking a worker or detaching the daemon failed."""


class TaskDefinitionError(SchedulerError, ValueError):
    """A task definition is invalid or its target cannot be resolved."""
