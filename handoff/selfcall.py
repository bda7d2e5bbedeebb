"""Self-call: GET our own public URL until the platform answers, within a fixed budget.

A successful authenticated request makes the platform route to (and if
needed start) an instance of the service, which is the warm replacement.
"""

import time
from dataclasses import dataclass
from typing import Callable, Optional

import requests

from config import (
    HTTP_TIMEOUT_S,
    SELF_CALL_DEADLINE_S,
    SELF_CALL_MAX_ATTEMPTS,
    SELF_CALL_RETRY_DELAY_S,
)
from utils.logging_config import get_logger

from .credentials import CredentialProvider, IdentityTokenCredentials

_log = get_logger(__name__)


@dataclass
class SelfCallResult:
    ok: bool
    attempts: int
    status_code: Optional[int] = None
    error: Optional[str] = None
    elapsed_s: float = 0.0


def call_until_success(
    url: str,
    credentials: Optional[CredentialProvider] = None,
    deadline_s: float = SELF_CALL_DEADLINE_S,
    max_attempts: int = SELF_CALL_MAX_ATTEMPTS,
    retry_delay_s: float = SELF_CALL_RETRY_DELAY_S,
    request_timeout_s: float = HTTP_TIMEOUT_S,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
) -> SelfCallResult:
    """Retry GET `url` while it errors or answers >= 300.

    Stops on the first 2xx/1xx answer, after `max_attempts` attempts (0 means no
    cap) or once `deadline_s` seconds are spent; no request starts and no retry
    delay runs past the deadline. The identity token is minted
    once, before the first attempt; failing to mint it raises MetadataUnavailable.
    """
    credentials = credentials or IdentityTokenCredentials()
    session = credentials.session(url)
    t0 = clock()
    attempts = 0
    status_code: Optional[int] = None
    error: Optional[str] = None
    with session:
        while True:
            remaining = deadline_s - (clock() - t0)
            if remaining <= 0:
                break
            attempts += 1
            timeout = min(request_timeout_s, remaining)
            try:
                resp = session.get(url, timeout=timeout)
                status_code, error = resp.status_code, None
                resp.close()
            except requests.RequestException as e:
                status_code, error = None, str(e)
            elapsed = clock() - t0
            if status_code is not None and status_code < 300:
                _log.info(
                    "self_call_success",
                    extra={"url": url, "attempts": attempts, "status_code": status_code},
                )
                return SelfCallResult(True, attempts, status_code, None, elapsed)
            _log.warning(
                "self_call_retry",
                extra={"url": url, "attempt": attempts, "status_code": status_code, "error": error},
            )
            if max_attempts and attempts >= max_attempts:
                break
            pause = min(retry_delay_s, deadline_s - elapsed)
            if pause > 0:
                sleep(pause)
    elapsed = clock() - t0
    _log.error(
        "self_call_exhausted",
        extra={"url": url, "attempts": attempts, "elapsed_s": round(elapsed, 3)},
    )
    return SelfCallResult(False, attempts, status_code, error, elapsed)
