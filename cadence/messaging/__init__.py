"""Cadence console output.

Example:
    >>> from cadence.messaging import emit_info, emit_process_table
    >>> emit_info("Scheduler started")
    >>> emit_process_table(records)
"""

from typing import Iterable, Optional, Union

from cadence.scheduler.messages import ProcessRecord

from .rich_renderer import (
    DEFAULT_STYLES,
    MessageLevel,
    RichConsoleRenderer,
)

_renderer: Optional[RichConsoleRenderer] = None


def get_renderer() -> RichConsoleRenderer:
    global _renderer
    if _renderer is None:
        _renderer = RichConsoleRenderer()
    return _renderer


def set_renderer(renderer: Optional[RichConsoleRenderer]) -> None:
    """Swap the process-wide renderer (None restores the default on next use)."""
    global _renderer
    _renderer = renderer


def emit_info(text: str) -> None:
    get_renderer().render_text(MessageLevel.INFO, text)


def emit_success(text: str) -> None:
    get_renderer().render_text(MessageLevel.SUCCESS, text)


def emit_warning(text: str) -> None:
    get_renderer().render_text(MessageLevel.WARNING, text)


def emit_error(text: str) -> None:
    get_renderer().render_text(MessageLevel.ERROR, text)


def emit_process_table(records: Iterable[Union[ProcessRecord, dict]]) -> None:
    get_renderer().render_process_table(records)


__all__ = [
    "DEFAULT_STYLES",
    "MessageLevel",
    "RichConsoleRenderer",
    "get_renderer",
    "set_renderer",
    "emit_info",
    "emit_success",
    "emit_warning",
    "emit_error",
    "emit_process_table",
]
