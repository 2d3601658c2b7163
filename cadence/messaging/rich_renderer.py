"""Rich console renderer for scheduler output.

The scheduler core hands over plain data (text with a level, lists of process
records); every presentation decision is made here.
"""

from enum import Enum
from typing import Dict, Iterable, Optional, Union

from rich.console import Console
from rich.markup import escape as escape_rich_markup
from rich.table import Table

from cadence.scheduler.messages import ProcessRecord, ProcessStatus


class MessageLevel(str, Enum):
    """Severity level for text messages."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    SUCCESS = "success"


DEFAULT_STYLES: Dict[MessageLevel, str] = {
    MessageLevel.ERROR: "bold red",
    MessageLevel.WARNING: "yellow",
    MessageLevel.SUCCESS: "green",
    MessageLevel.INFO: "white",
    MessageLevel.DEBUG: "dim",
}

STATUS_STYLES = {
    ProcessStatus.ACTIVE: "green",
    ProcessStatus.STOPPED: "red",
}

PROCESS_COLUMNS = ("pid", "task_name", "started", "timer", "status", "ppid")


class RichConsoleRenderer:
    """Renders text messages and process tables with Rich."""

    def __init__(
        self,
        console: Optional[Console] = None,
        styles: Optional[Dict[MessageLevel, str]] = None,
    ) -> None:
        self._console = console or Console()
        self._styles = styles or DEFAULT_STYLES.copy()

    @property
    def console(self) -> Console:
        """Get the Rich console."""
        return self._console

    def render_text(self, level: MessageLevel, text: str) -> None:
        """Render a text message with appropriate styling.

        Text is escaped so markup-like content coming from task names or
        error messages cannot break the renderer.
        """
        style = self._styles.get(level, "white")
        prefix = self._get_level_prefix(level)
        self._console.print(f"{prefix}{escape_rich_markup(text)}", style=style)

    def _get_level_prefix(self, level: MessageLevel) -> str:
        """Get a prefix icon for the message level."""
        prefixes = {
            MessageLevel.ERROR: "✗ ",
            MessageLevel.WARNING: "⚠ ",
            MessageLevel.SUCCESS: "✓ ",
            MessageLevel.INFO: "ℹ ",
            MessageLevel.DEBUG: "• ",
        }
        return prefixes.get(level, "")

    def build_process_table(
        self, records: Iterable[Union[ProcessRecord, dict]]
    ) -> Table:
        table = Table(show_header=True, header_style="bold", box=None, padding=(0, 2))
        for column in PROCESS_COLUMNS:
            table.add_column(column)

        for record in records:
            if isinstance(record, dict):
                record = ProcessRecord.model_validate(record)
            status_style = STATUS_STYLES.get(record.status, "white")
            table.add_row(
                str(record.pid),
                escape_rich_markup(record.task_name),
                record.started,
                record.timer,
                f"[{status_style}]{record.status.value}[/{status_style}]",
                str(record.ppid),
            )
        return table

    def render_process_table(
        self, records: Iterable[Union[ProcessRecord, dict]]
    ) -> None:
        self._console.print(self.build_process_table(records))
        self._console.print()
