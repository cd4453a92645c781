"""Process exit hook for best-effort final flushes.

Callbacks registered here run once when the interpreter exits normally and,
if requested, when the process receives a termination signal.
"""

from __future__ import annotations

import atexit
import os
import signal
import sys
import threading
from types import FrameType
from typing import Callable, Optional

from loguru import logger

# Type alias for exit callbacks
CleanupFn = Callable[[], None]


class ExitHook:
    """Run registered callbacks exactly once at process exit."""

    #: Exit signals hooked when ``install_signals`` is set
    _BASE_SIGNALS = [signal.SIGINT, signal.SIGTERM]
    if hasattr(signal, "SIGHUP"):
        _BASE_SIGNALS.append(signal.SIGHUP)

    #: Windows-specific mapping (Ctrl-Break, log-off, shutdown)
    if os.name == "nt" and hasattr(signal, "SIGBREAK"):
        _BASE_SIGNALS.append(signal.SIGBREAK)  # type: ignore[attr-defined]

    def __init__(self, install_signals: bool = False) -> None:
        self._callbacks: list[CleanupFn] = []
        self._lock = threading.Lock()
        self._fired = False
        self.received_signal: Optional[str] = None
        atexit.register(self.run)
        if install_signals:
            self._install_handlers()

    def register(self, fn: CleanupFn) -> None:
        with self._lock:
            if fn not in self._callbacks:
                self._callbacks.append(fn)

    def unregister(self, fn: CleanupFn) -> None:
        with self._lock:
            if fn in self._callbacks:
                self._callbacks.remove(fn)

    @property
    def fired(self) -> bool:
        return self._fired

    def run(self) -> None:
        """Invoke every registered callback once; later calls are no-ops."""
        with self._lock:
            if self._fired:
                return
            self._fired = True
            callbacks = list(self._callbacks)

        for fn in callbacks:
            try:
                fn()
            except Exception:  # noqa: BLE001
                logger.exception(f"Exit callback {fn} raised")

    def close(self) -> None:
        """Detach from ``atexit`` without running the callbacks."""
        atexit.unregister(self.run)

    def _install_handlers(self) -> None:
        for sig in self._BASE_SIGNALS:
            try:
                signal.signal(sig, self._handle_exit)  # type: ignore[arg-type]
            except (ValueError, OSError):  # not allowed in threads / rare OSes
                logger.warning(f"Could not hook signal {sig}")

    def _handle_exit(self, signum: int, frame: FrameType | None) -> None:  # noqa: ANN001
        if self.received_signal is not None:
            sys.exit(0)
        self.received_signal = signal.Signals(signum).name
        logger.info(f"Received {self.received_signal} - flushing before exit")
        self.run()
        sys.exit(0)


_exit_hook: Optional[ExitHook] = None
_exit_hook_lock = threading.Lock()


def get_exit_hook() -> ExitHook:
    """Get the process-wide exit hook, creating it on first use."""
    global _exit_hook
    with _exit_hook_lock:
        if _exit_hook is None:
            _exit_hook = ExitHook()
        return _exit_hook
