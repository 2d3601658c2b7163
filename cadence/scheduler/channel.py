"""File-backed command channel between the monitor, the CLI and the daemon head.

All participants on a host share one JSON file holding an ordered array of
control messages. Every operation reads the whole array and, for ``push`` and
``receive``, rewrites it. The read-modify-write cycle of those two operations
runs under an exclusive ``flock`` on a sidecar lock file so that concurrent
senders and receivers do not lose each other's messages.
"""

import contextlib
import fcntl
import hashlib
import json
import logging
import os
import tempfile
import time
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

from cadence.scheduler.errors import ChannelError
from cadence.scheduler.messages import ControlAction, ControlMessage
from cadence.scheduler.platform import temp_dir

logger = logging.getLogger(__name__)

Message = Dict[str, Any]


def channel_digest(key: Optional[str] = None) -> str:
    """Stable identity of a channel; the package identity when no key is given."""
    return hashlib.md5((key or __name__).encode("utf-8")).hexdigest()


def channel_path(key: Optional[str] = None, directory: Optional[Path] = None) -> Path:
    return Path(directory or temp_dir()) / f"cadence_{channel_digest(key)}.json"


class CommandChannel:
    """Unordered-delivery message queue persisted as a JSON array."""

    def __init__(self, key: Optional[str] = None, directory: Optional[Path] = None):
        self.key = key
        self.path = channel_path(key, directory)
        self.lock_path = self.path.with_suffix(".lock")
        self._create()

    def _create(self) -> None:
        """Seed the backing store with an empty array if it does not exist yet."""
        if self.path.exists():
            return
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "x", encoding="utf-8") as f:
                f.write("[]")
        except FileExistsError:
            # Another participant created it first.
            return
        except OSError as e:
            raise ChannelError(f"Failed to create command channel {self.path}: {e}") from e
        logger.debug(f"Created command channel {self.path}")

    @contextlib.contextmanager
    def _locked(self) -> Iterator[None]:
        """Hold the exclusive channel lock. Raises OSError if the lock file cannot be opened."""
        with open(self.lock_path, "a") as lock_file:
            fcntl.flock(lock_file.fileno(), fcntl.LOCK_EX)
            try:
                yield
            finally:
                fcntl.flock(lock_file.fileno(), fcntl.LOCK_UN)

    def get(self) -> List[Message]:
        """Return the whole pending sequence; anything unreadable counts as empty."""
        try:
            content = self.path.read_text(encoding="utf-8")
        except OSError:
            return []
        if not content:
            return []
        try:
            data = json.loads(content)
        except json.JSONDecodeError:
            return []
        return data if isinstance(data, list) else []

    def set(self, data: List[Message]) -> None:
        """Replace the whole pending sequence.

        Write failures are swallowed: callers treat writes as fire-and-forget.
        The new content is written to a temporary file beside the store and
        moved over it, so readers never see a truncated array.
        """
        tmp_name = None
        try:
            content = json.dumps(data)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.path.parent, prefix=self.path.stem, suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
            os.replace(tmp_name, self.path)
            tmp_name = None
        except (OSError, TypeError, ValueError) as e:
            logger.debug(f"Dropped write to command channel {self.path}: {e}")
        finally:
            if tmp_name is not None:
                with contextlib.suppress(OSError):
                    os.unlink(tmp_name)

    def push(self, message: Union[Message, ControlMessage]) -> None:
        """Append a message at the end of the sequence."""
        if isinstance(message, ControlMessage):
            message = message.to_payload()
        try:
            with self._locked():
                data = self.get()
                data.append(message)
                self.set(data)
        except OSError as e:
            logger.debug(f"Dropped push to command channel {self.path}: {e}")

    def send(self, message: Union[Message, ControlMessage]) -> None:
        """Stamp the message with the current time and push it."""
        if isinstance(message, ControlMessage):
            message = message.to_payload()
        else:
            message = dict(message)
        message["time"] = int(time.time())
        self.push(message)

    def receive(
        self, action: Union[str, ControlAction]
    ) -> Tuple[bool, Optional[Message]]:
        """Take the first pending message for ``action``.

        Returns:
            ``(True, message)`` when one was removed, ``(False, None)`` otherwise.
            The remaining messages keep their relative order.
        """
        action = ControlAction(action).value
        found: Optional[Message] = None
        try:
            with self._locked():
                data = self.get()
                for index, item in enumerate(data):
                    if isinstance(item, dict) and item.get("action") == action:
                        found = data.pop(index)
                        break
                self.set(data)
        except OSError as e:
            logger.debug(f"Cannot poll command channel {self.path}: {e}")
            return False, None
        return found is not None, found

    def __repr__(self) -> str:
        return f"CommandChannel(path={str(self.path)!r})"


def open_channel(settings) -> CommandChannel:
    """Channel for the task group described by ``settings``."""
    return CommandChannel(settings.ipc_key, settings.channel_dir)

