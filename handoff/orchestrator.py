"""Shutdown orchestrator: one warm hand-off per process, triggered by the first termination signal.

Phases move idle -> in_progress -> done and never back. The signal handler
only calls notify(); the sequence itself runs on whichever thread is blocked
in watch(), so the request listener is never held up by network calls.

Failure policy lives here and nowhere else:

- placement, service name, URL or token cannot be resolved: log, keep serving
  (the platform's own kill is the backstop);
- self-call answered: exit 0;
- self-call budget spent: exit 1 (or keep serving if configured so).
"""

import os
import signal
import threading
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from config import EXIT_ON_SELF_CALL_FAILURE, SERVICE_NAME_ENV
from utils.logging_config import get_logger, set_correlation_id

from . import locator, metadata, selfcall
from .errors import HandoffError, MissingServiceIdentity
from .metadata import InstancePlacement
from .selfcall import SelfCallResult

_log = get_logger(__name__)


class Phase(str, Enum):
    IDLE = "idle"
    IN_PROGRESS = "in_progress"
    DONE = "done"


class Outcome(str, Enum):
    HANDED_OFF = "handed_off"
    ABORTED = "aborted"
    SELF_CALL_EXHAUSTED = "self_call_exhausted"


@dataclass
class HandoffReport:
    outcome: Outcome
    signal_name: str
    placement: Optional[InstancePlacement] = None
    service_name: Optional[str] = None
    url: Optional[str] = None
    self_call: Optional[SelfCallResult] = None
    error: Optional[str] = None


def signal_name(signum: int) -> str:
    try:
        return signal.Signals(signum).name
    except ValueError:
        return str(signum)


def read_service_name() -> str:
    service = os.getenv(SERVICE_NAME_ENV, "").strip()
    if not service:
        raise MissingServiceIdentity(f"environment variable {SERVICE_NAME_ENV} is not set")
    return service


class ShutdownOrchestrator:
    def __init__(
        self,
        exit_process: Callable[[int], None],
        resolve_placement: Callable[[], InstancePlacement] = metadata.get_project_and_region,
        resolve_service_name: Callable[[], str] = read_service_name,
        locate_service: Callable[[str, str, str], str] = locator.get_cloud_run_url,
        self_call: Callable[[str], SelfCallResult] = selfcall.call_until_success,
        exit_on_self_call_failure: bool = EXIT_ON_SELF_CALL_FAILURE,
    ):
        self._exit_process = exit_process
        self._resolve_placement = resolve_placement
        self._resolve_service_name = resolve_service_name
        self._locate_service = locate_service
        self._self_call = self_call
        self._exit_on_self_call_failure = exit_on_self_call_failure
        self._lock = threading.RLock()  # notify() may re-enter from a nested signal handler
        self._signalled = threading.Event()
        self._phase = Phase.IDLE
        self._signum: Optional[int] = None
        self.report: Optional[HandoffReport] = None

    @property
    def phase(self) -> Phase:
        return self._phase

    def notify(self, signum: int) -> bool:
        """Record a termination signal. Only the first one starts a hand-off."""
        with self._lock:
            if self._phase is not Phase.IDLE:
                _log.info(
                    "signal_ignored",
                    extra={"signal": signal_name(signum), "phase": self._phase.value},
                )
                return False
            self._phase = Phase.IN_PROGRESS
            self._signum = signum
        _log.info("signal_received", extra={"signal": signal_name(signum)})
        self._signalled.set()
        return True

    def wait_for_signal(self, timeout: Optional[float] = None) -> bool:
        return self._signalled.wait(timeout)

    def watch(self) -> HandoffReport:
        """Block until notify() is called, then run the hand-off sequence once."""
        self._signalled.wait()
        set_correlation_id(f"shutdown-{uuid.uuid4().hex[:8]}")
        name = signal_name(self._signum)
        try:
            report = self._hand_off(name)
        except HandoffError as e:
            _log.error("handoff_aborted", extra={"signal": name, "error": str(e)})
            report = HandoffReport(Outcome.ABORTED, name, error=str(e))
        except Exception as e:
            _log.exception("handoff_crashed", extra={"signal": name})
            report = HandoffReport(Outcome.ABORTED, name, error=repr(e))
        with self._lock:
            self._phase = Phase.DONE
            self.report = report

        if report.outcome is Outcome.HANDED_OFF:
            _log.info("handoff_complete", extra={"url": report.url})
            self._exit_process(0)
        elif report.outcome is Outcome.SELF_CALL_EXHAUSTED and self._exit_on_self_call_failure:
            self._exit_process(1)
        return report

    def _hand_off(self, name: str) -> HandoffReport:
        placement = self._resolve_placement()
        service = self._resolve_service_name()
        url = self._locate_service(placement.region, placement.project_number, service)
        result = self._self_call(url)
        outcome = Outcome.HANDED_OFF if result.ok else Outcome.SELF_CALL_EXHAUSTED
        return HandoffReport(
            outcome,
            name,
            placement=placement,
            service_name=service,
            url=url,
            self_call=result,
            error=result.error,
        )
