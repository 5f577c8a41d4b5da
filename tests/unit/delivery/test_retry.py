"""
Module: test_retry.py
Description: Unit tests for the delivery retry policy.
"""

from unittest.mock import AsyncMock, call

import pytest
from structlog.testing import capture_logs
from tenacity import RetryError

from shiploud_export.delivery.retry import build_retrying
from shiploud_export.models.delivery import Attempt, AttemptOutcome


async def _run(retrying, outcomes):
    """Drive the controller with a fixed sequence of outcomes."""
    seen = []
    async for retry_attempt in retrying:
        with retry_attempt:
            number = retry_attempt.retry_state.attempt_number
            attempt = Attempt(number=number, outcome=outcomes[number - 1])
            seen.append(attempt)
        if not retry_attempt.retry_state.outcome.failed:
            retry_attempt.retry_state.set_result(attempt)
    return seen


class TestBuildRetrying:
    """Test cases for build_retrying()."""

    @pytest.mark.asyncio
    async def test_stops_on_success(self):
        """Test no retry after a successful attempt."""
        sleep = AsyncMock()
        retrying = build_retrying(5, 1.0, sleep)

        seen = await _run(retrying, [AttemptOutcome.SUCCESS])

        assert len(seen) == 1
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_retries_each_failure_kind(self):
        """Test network, HTTP and malformed-body outcomes are all retried."""
        sleep = AsyncMock()
        retrying = build_retrying(5, 1.0, sleep)
        outcomes = [
            AttemptOutcome.NETWORK_ERROR,
            AttemptOutcome.HTTP_ERROR,
            AttemptOutcome.MALFORMED_BODY,
            AttemptOutcome.SUCCESS,
        ]

        seen = await _run(retrying, outcomes)

        assert [attempt.outcome for attempt in seen] == outcomes
        assert sleep.await_args_list == [call(1.0), call(2.0), call(4.0)]

    @pytest.mark.asyncio
    async def test_raises_retry_error_when_exhausted(self):
        """Test the last attempt is available from RetryError."""
        retrying = build_retrying(3, 0.5, AsyncMock())

        with pytest.raises(RetryError) as exc_info:
            await _run(retrying, [AttemptOutcome.HTTP_ERROR] * 3)

        last = exc_info.value.last_attempt.result()
        assert last.number == 3
        assert last.outcome is AttemptOutcome.HTTP_ERROR

    @pytest.mark.asyncio
    async def test_base_delay_scales_schedule(self):
        """Test the schedule doubles from the configured base delay."""
        sleep = AsyncMock()
        retrying = build_retrying(4, 0.25, sleep)

        with pytest.raises(RetryError):
            await _run(retrying, [AttemptOutcome.NETWORK_ERROR] * 4)

        assert sleep.await_args_list == [call(0.25), call(0.5), call(1.0)]

    @pytest.mark.asyncio
    async def test_logs_backoff(self):
        """Test each backoff is logged in milliseconds."""
        retrying = build_retrying(3, 1.0, AsyncMock())

        with capture_logs() as logs:
            with pytest.raises(RetryError):
                await _run(retrying, [AttemptOutcome.NETWORK_ERROR] * 3)

        delays = [entry["delay_ms"] for entry in logs if entry["event"] == "Retrying ingest delivery"]
        assert delays == [1000, 2000]
