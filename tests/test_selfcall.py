"""Unit tests for the bounded self-call retry loop."""

import itertools
from unittest.mock import MagicMock

import pytest
import requests

from handoff.errors import MetadataUnavailable
from handoff.selfcall import call_until_success

from tests.fakes import FakeCredentials, FakeResponse, FakeSession

URL = "https://myapp-abcd.run.app"


def run(outcomes, **kwargs):
    session = FakeSession(outcomes)
    creds = FakeCredentials(session)
    kwargs.setdefault("clock", lambda: 0.0)
    result = call_until_success(URL, credentials=creds, **kwargs)
    return result, session, creds


def test_success_on_first_attempt():
    result, session, creds = run([FakeResponse(200)])

    assert result.ok
    assert result.attempts == 1
    assert result.status_code == 200
    assert len(session.calls) == 1
    assert creds.audiences == [URL]


def test_retries_until_success():
    result, session, _ = run([FakeResponse(503), FakeResponse(503), FakeResponse(200)])

    assert result.ok
    assert result.attempts == 3
    assert len(session.calls) == 3
    assert all(call["url"] == URL for call in session.calls)


def test_redirect_counts_as_failure():
    result, session, _ = run([FakeResponse(302), FakeResponse(204)])

    assert result.ok
    assert result.status_code == 204
    assert len(session.calls) == 2


def test_token_minted_once_for_all_attempts():
    _, _, creds = run([FakeResponse(500), FakeResponse(500), FakeResponse(200)])
    assert creds.audiences == [URL]


def test_always_erroring_target_stops_after_max_attempts():
    result, session, _ = run([requests.ConnectionError("refused")], max_attempts=5)

    assert not result.ok
    assert result.attempts == 5
    assert len(session.calls) == 5
    assert result.status_code is None
    assert "refused" in result.error
    assert session.closed


def test_always_failing_target_stops_at_deadline():
    ticks = itertools.count()
    result, session, _ = run(
        [FakeResponse(503)], deadline_s=5.0, max_attempts=0, clock=lambda: float(next(ticks))
    )

    assert not result.ok
    assert result.attempts == 2
    assert result.status_code == 503
    assert len(session.calls) == 2


def test_retry_delay_never_runs_past_deadline():
    now = [0.0]

    def sleep(seconds):
        now[0] += seconds

    sleeps = MagicMock(side_effect=sleep)
    result, session, _ = run(
        [FakeResponse(503)],
        deadline_s=1.0,
        max_attempts=0,
        retry_delay_s=0.6,
        clock=lambda: now[0],
        sleep=sleeps,
    )

    assert not result.ok
    assert result.attempts == 2
    assert [call["timeout"] for call in session.calls] == [pytest.approx(1.0), pytest.approx(0.4)]
    assert [call.args[0] for call in sleeps.call_args_list] == [pytest.approx(0.6), pytest.approx(0.4)]
    assert result.elapsed_s <= 1.0 + 1e-9


def test_request_timeout_is_clipped_to_remaining_budget():
    ticks = iter([0.0, 8.0, 8.5, 8.5])
    _, session, _ = run(
        [FakeResponse(200)], deadline_s=10.0, request_timeout_s=5.0, clock=lambda: next(ticks)
    )
    assert session.calls[0]["timeout"] == pytest.approx(2.0)


def test_retry_delay_between_attempts():
    sleep = MagicMock()
    result, _, _ = run([FakeResponse(503), FakeResponse(200)], retry_delay_s=0.25, sleep=sleep)

    assert result.ok
    sleep.assert_called_once_with(0.25)


def test_no_backoff_by_default():
    sleep = MagicMock()
    run([FakeResponse(503), FakeResponse(503), FakeResponse(200)], retry_delay_s=0.0, sleep=sleep)
    sleep.assert_not_called()


def test_token_failure_propagates():
    creds = FakeCredentials(error=MetadataUnavailable("metadata down"))
    with pytest.raises(MetadataUnavailable):
        call_until_success(URL, credentials=creds)
