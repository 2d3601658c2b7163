"""Pytest configuration and fixtures for cadence tests.

Every test gets its own channel directory so no test ever touches the real
temp-dir channel or pid file shared with a running daemon.
"""

import pytest
from rich.console import Console

from cadence import messaging
from cadence.messaging import RichConsoleRenderer
from cadence.settings import clear_settings_cache

_CADENCE_ENV = (
    "CADENCE_PREFIX",
    "CADENCE_DAEMON",
    "CADENCE_IS_CHDIR",
    "CADENCE_CLOSE_STD_IO",
    "CADENCE_CAN_ASYNC",
    "CADENCE_IPC_KEY",
    "CADENCE_LOG_LEVEL",
    "CADENCE_LOG_FILE",
)


@pytest.fixture(autouse=True)
def isolate_scheduler_settings(tmp_path, monkeypatch):
    """Point the channel at a per-test directory and reload settings."""
    for var in _CADENCE_ENV:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("CADENCE_CHANNEL_DIR", str(tmp_path / "channel"))
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def recording_console():
    """Route all scheduler output to a recording Rich console."""
    console = Console(record=True, width=120, color_system=None)
    messaging.set_renderer(RichConsoleRenderer(console=console))
    yield console
    messaging.set_renderer(None)
