"""Task definitions and JSON persistence.

A task names a target to invoke every ``interval`` seconds in ``workers``
identical processes. Targets are resolved once, when the definition is built,
into a ``TaskTarget`` that the worker timer simply calls.
"""

import importlib
import inspect
import json
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, List, Optional, Union

from cadence.scheduler.errors import TaskDefinitionError


class DispatchMode(str, Enum):
    """How a task's target is invoked on each firing."""

    FUNCTION = "function"
    STATIC_METHOD = "static_method"
    INSTANCE_METHOD = "instance_method"


@dataclass(frozen=True)
class TaskTarget:
    """A callable capability resolved from a task definition."""

    mode: DispatchMode
    func: Optional[Callable[[], Any]] = None
    cls: Optional[type] = None
    method: str = ""

    def __call__(self) -> Any:
        if self.mode == DispatchMode.FUNCTION:
            return self.func()
        if self.mode == DispatchMode.STATIC_METHOD:
            return getattr(self.cls, self.method)()
        # Fresh instance per firing
        return getattr(self.cls(), self.method)()


def _import_ref(ref: str) -> Any:
    """Import ``package.module:attr.path`` and return the attribute."""
    module_name, sep, attr_path = ref.partition(":")
    if not sep or not module_name or not attr_path:
        raise TaskDefinitionError(
            f"Target reference must look like 'package.module:attr', got {ref!r}"
        )
    try:
        obj: Any = importlib.import_module(module_name)
    except ImportError as e:
        raise TaskDefinitionError(f"Cannot import {module_name!r}: {e}") from e
    for part in attr_path.split("."):
        try:
            obj = getattr(obj, part)
        except AttributeError as e:
            raise TaskDefinitionError(f"{ref!r} does not resolve: {e}") from e
    return obj


def resolve_target(
    mode: DispatchMode, target: Union[str, Callable, type], method: str = ""
) -> TaskTarget:
    """Resolve a target given as an import reference, callable or class."""
    mode = DispatchMode(mode)

    if mode == DispatchMode.FUNCTION:
        func = _import_ref(target) if isinstance(target, str) else target
        if not callable(func):
            raise TaskDefinitionError(f"Function target is not callable: {target!r}")
        return TaskTarget(mode=mode, func=func)

    if isinstance(target, str):
        if not method:
            # 'package.module:Class.method'
            ref, _, method = target.rpartition(".")
            if not ref or ":" not in ref:
                raise TaskDefinitionError(
                    f"Method target must look like 'package.module:Class.method', got {target!r}"
                )
            target = ref
        cls = _import_ref(target)
    else:
        cls = target

    if not inspect.isclass(cls):
        raise TaskDefinitionError(f"Method target needs a class, got {cls!r}")
    if not method or not callable(getattr(cls, method, None)):
        raise TaskDefinitionError(f"{cls.__name__} has no callable method {method!r}")
    return TaskTarget(mode=mode, cls=cls, method=method)


def _target_ref(target: TaskTarget) -> str:
    if target.mode == DispatchMode.FUNCTION:
        return f"{target.func.__module__}:{target.func.__qualname__}"
    return f"{target.cls.__module__}:{target.cls.__qualname__}.{target.method}"


@dataclass
class TaskDefinition:
    """A periodic task: ``target`` runs every ``interval`` seconds in ``workers`` processes."""

    alias: str
    target: Union[str, Callable, type]
    interval: int = 1
    workers: int = 1
    mode: DispatchMode = DispatchMode.FUNCTION
    method: str = ""
    resolved: TaskTarget = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        if not self.alias or not isinstance(self.alias, str):
            raise TaskDefinitionError("Task alias must be a non-empty string")
        if not isinstance(self.interval, int) or self.interval <= 0:
            raise TaskDefinitionError(
                f"Task {self.alias!r}: interval must be a positive integer, got {self.interval!r}"
            )
        if not isinstance(self.workers, int) or self.workers <= 0:
            raise TaskDefinitionError(
                f"Task {self.alias!r}: workers must be a positive integer, got {self.workers!r}"
            )
        self.mode = DispatchMode(self.mode)
        self.resolved = resolve_target(self.mode, self.target, self.method)
        self.method = self.resolved.method

    def process_name(self, prefix: str) -> str:
        return f"{prefix}_{self.alias}"

    def to_dict(self) -> dict:
        return {
            "alias": self.alias,
            "target": _target_ref(self.resolved),
            "interval": self.interval,
            "workers": self.workers,
            "mode": self.mode.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "TaskDefinition":
        if not isinstance(data, dict):
            raise TaskDefinitionError(
                f"Task definition must be a JSON object, got {type(data).__name__}"
            )
        missing = [k for k in ("alias", "target") if k not in data]
        if missing:
            raise TaskDefinitionError(
                f"Task definition {data.get('alias', '?')!r} is missing: {', '.join(missing)}"
            )
        known = {"alias", "target", "interval", "workers", "mode", "method"}
        return cls(**{k: v for k, v in data.items() if k in known})


def validate_tasks(tasks: List[TaskDefinition]) -> List[TaskDefinition]:
    """Reject empty task lists and duplicate aliases."""
    if not tasks:
        raise TaskDefinitionError("No tasks configured")
    seen = set()
    for task in tasks:
        if task.alias in seen:
            raise TaskDefinitionError(f"Duplicate task alias: {task.alias!r}")
        seen.add(task.alias)
    return tasks


def load_tasks(path: str) -> List[TaskDefinition]:
    """Load task definitions from a JSON file."""
    path = os.path.expanduser(path)
    try:
        with open(path, "r") as f:
            data = json.load(f)
    except (json.JSONDecodeError, IOError) as e:
        raise TaskDefinitionError(f"Cannot read task file {path}: {e}") from e
    if not isinstance(data, list):
        raise TaskDefinitionError(f"Task file {path} must contain a JSON array")
    return validate_tasks([TaskDefinition.from_dict(t) for t in data])


def save_tasks(tasks: List[TaskDefinition], path: str) -> None:
    """Save task definitions to a JSON file."""
    path = os.path.expanduser(path)
    os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
    with open(path, "w") as f:
        json.dump([t.to_dict() for t in tasks], f, indent=2)
