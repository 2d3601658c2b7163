"""Structured models for the scheduler control plane.

Pydantic models for the records the supervisor keeps about its workers and
the messages exchanged over the command channel. The channel itself stores
plain dicts; convert with ``model_dump(mode="json")`` / ``model_validate``.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

STARTED_FORMAT = "%Y-%m-%d %H:%M:%S"


# =============================================================================
# Enums
# =============================================================================


class ControlAction(str, Enum):
    """Kinds of control message carried by the command channel."""

    ALLOCATE = "allocate"
    STATUS = "status"
    STATUS_REPLY = "status_reply"
    STOP = "stop"


class ProcessStatus(str, Enum):
    """Lifecycle of a forked worker as seen by the supervisor."""

    ACTIVE = "active"
    STOPPED = "stopped"


# =============================================================================
# Process Records
# =============================================================================


class ProcessRecord(BaseModel):
    """Bookkeeping entry for one forked worker."""

    pid: int = Field(description="Worker process id")
    ppid: int = Field(description="Pid of the daemon head that forked the worker")
    task_name: str = Field(description="Derived process title, {prefix}_{alias}")
    started: str = Field(
        default_factory=lambda: datetime.now().strftime(STARTED_FORMAT),
        description="Fork time",
    )
    timer: str = Field(description="Interval between firings, e.g. '5s'")
    status: ProcessStatus = ProcessStatus.ACTIVE

    model_config = {"extra": "ignore"}

    def mark_stopped(self) -> None:
        """Active -> Stopped. A stopped record is never revived."""
        self.status = ProcessStatus.STOPPED

    @property
    def is_active(self) -> bool:
        return self.status == ProcessStatus.ACTIVE


# =============================================================================
# Control Messages
# =============================================================================


class ControlMessage(BaseModel):
    """A unit of control-plane traffic."""

    action: ControlAction
    start_list: List[ProcessRecord] = Field(
        default_factory=list,
        description="Worker records (allocate and status_reply)",
    )
    force: bool = Field(default=False, description="Hard kill on stop")
    time: Optional[int] = Field(default=None, description="Unix time set at send")

    model_config = {"extra": "ignore"}

    def to_payload(self) -> dict:
        return self.model_dump(mode="json")

    @classmethod
    def from_payload(cls, data: dict) -> "ControlMessage":
        return cls.model_validate(data)
