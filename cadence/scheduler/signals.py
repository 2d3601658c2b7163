"""Signal delivery for the daemon head and its workers.

Two modes, chosen once per process group by ``can_async``:

- asynchronous: handlers are installed with ``signal.signal`` and run as soon
  as the interpreter notices the signal, possibly interrupting a sleep.
- synchronous: the signal is blocked and stays pending until ``dispatch()`` is
  called, which drains it with ``sigtimedwait`` and runs the handler inline.
"""

import logging
import signal
from typing import Callable, Dict

logger = logging.getLogger(__name__)

Handler = Callable[[int, object], None]


class SignalPump:
    """Installs handlers and, in synchronous mode, delivers pending signals on demand."""

    def __init__(self, can_async: bool = True):
        self.can_async = can_async
        self._handlers: Dict[int, Handler] = {}

    def install(self, signum: int, handler: Handler) -> None:
        self._handlers[signum] = handler
        if self.can_async:
            signal.signal(signum, handler)
            return
        # Keep the default disposition out of the way; the signal only ever
        # reaches us through sigtimedwait while blocked.
        signal.signal(signum, signal.SIG_DFL)
        signal.pthread_sigmask(signal.SIG_BLOCK, {signum})

    def dispatch(self) -> int:
        """Run handlers for every pending signal. Returns how many were delivered."""
        if self.can_async or not self._handlers:
            return 0
        delivered = 0
        while True:
            info = signal.sigtimedwait(set(self._handlers), 0)
            if info is None:
                return delivered
            handler = self._handlers.get(info.si_signo)
            if handler is None:
                continue
            logger.debug(f"Dispatching pending signal {info.si_signo}")
            handler(info.si_signo, None)
            delivered += 1
