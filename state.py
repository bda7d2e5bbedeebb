"""Process lifecycle only: termination signals, the warm hand-off watcher, and cleanup.

The application is stateless. On SIGTERM/SIGINT the instance calls its own
public URL so the platform has a warm replacement before this one goes away,
then exits. The service is cattle, not pets: kill and restart anytime.
"""

import atexit
import logging
import os
import signal
import threading
from typing import Optional

from config import HANDOFF_ENABLED
from handoff.orchestrator import ShutdownOrchestrator
from utils.logging_config import get_logger

_log = get_logger(__name__)

_is_shutting_down = False
_orchestrator: Optional[ShutdownOrchestrator] = None
_watcher: Optional[threading.Thread] = None


def shutdown() -> None:
    """Close long-lived clients and set shutdown flag. Safe to call multiple times."""
    global _is_shutting_down
    if _is_shutting_down:
        return
    _is_shutting_down = True
    from handoff.credentials import reset_ambient_credentials
    from handoff.metadata import close_session
    close_session()
    reset_ambient_credentials()


def terminate(code: int) -> None:
    """End the whole process now, in-flight requests included."""
    _log.info("process_exit", extra={"exit_code": code})
    shutdown()
    logging.shutdown()
    os._exit(code)


def get_orchestrator() -> ShutdownOrchestrator:
    """Lazy singleton orchestrator for this process."""
    global _orchestrator
    if _orchestrator is None:
        _orchestrator = ShutdownOrchestrator(exit_process=terminate)
    return _orchestrator


def _handle_signal(signum, frame):
    get_orchestrator().notify(signum)


def start_watcher() -> threading.Thread:
    """Start the daemon thread that waits for the first signal and runs the hand-off."""
    global _watcher
    if _watcher is None or not _watcher.is_alive():
        _watcher = threading.Thread(
            target=get_orchestrator().watch, name="handoff-watcher", daemon=True
        )
        _watcher.start()
    return _watcher


def register_signal_handlers() -> None:
    """Register SIGTERM and SIGINT for the warm hand-off."""
    if not HANDOFF_ENABLED:
        _log.info("handoff_disabled")
        atexit.register(shutdown)
        return
    if threading.current_thread() is not threading.main_thread():
        _log.warning("signal_handlers_skipped", extra={"reason": "not on main thread"})
        return
    start_watcher()
    signal.signal(signal.SIGTERM, _handle_signal)
    signal.signal(signal.SIGINT, _handle_signal)
    atexit.register(shutdown)
