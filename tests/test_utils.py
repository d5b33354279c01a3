"""
Ticketeer - Utility Tests
=========================

Tests for guarded awaits and Discord retry handling.
"""

from types import SimpleNamespace

import discord
import pytest

from src.utils.async_utils import create_safe_task, safe_async_operation
from src.utils.discord_rate_limit import RateLimitConfig, retry_delay, with_rate_limit_retry


def _http_error(status: int) -> discord.HTTPException:
    return discord.HTTPException(SimpleNamespace(status=status, reason="test"), f"status {status}")


class TestSafeAsyncOperation:
    """Tests for safe_async_operation."""

    @pytest.mark.asyncio
    async def test_returns_result(self):
        """Test a successful coroutine's value is passed through."""
        async def work():
            return 42

        assert await safe_async_operation("Work", work()) == 42

    @pytest.mark.asyncio
    async def test_failure_returns_default(self):
        """Test an exception is logged and replaced by the default."""
        async def work():
            raise RuntimeError("Missing Access")

        assert await safe_async_operation("Work", work(), default=False, log_level="error") is False


class TestCreateSafeTask:
    """Tests for create_safe_task."""

    @pytest.mark.asyncio
    async def test_failure_does_not_escape(self):
        """Test a failing background task finishes without raising."""
        async def work():
            raise RuntimeError("boom")

        task = create_safe_task(work(), "Failing Task")
        await task

        assert task.done()
        assert task.exception() is None
        assert task.get_name() == "Failing Task"


class TestRetryDelay:
    """Tests for retry_delay."""

    def test_client_errors_not_retried(self):
        """Test 4xx responses other than 429 give up at once."""
        assert retry_delay(_http_error(403), 0, 1.0) is None
        assert retry_delay(_http_error(404), 0, 1.0) is None

    def test_server_errors_back_off(self):
        """Test 5xx delays grow with the attempt number."""
        first = retry_delay(_http_error(503), 0, 1.0)
        third = retry_delay(_http_error(503), 2, 1.0)

        assert 1.0 <= first <= 1.0 * (1 + RateLimitConfig.JITTER)
        assert 4.0 <= third <= 4.0 * (1 + RateLimitConfig.JITTER)

    def test_long_rate_limit_gives_up(self):
        """Test waits beyond the cap are not attempted."""
        assert retry_delay(discord.RateLimited(120.0), 0, 1.0) is None
        assert retry_delay(discord.RateLimited(1.0), 0, 1.0) == 1.5


class TestWithRateLimitRetry:
    """Tests for with_rate_limit_retry."""

    @pytest.mark.asyncio
    async def test_retries_server_errors(self):
        """Test a transient 503 is retried until the call succeeds."""
        calls = []

        @with_rate_limit_retry(max_retries=3, base_delay=0)
        async def send():
            calls.append(1)
            if len(calls) < 3:
                raise _http_error(503)
            return "sent"

        assert await send() == "sent"
        assert len(calls) == 3

    @pytest.mark.asyncio
    async def test_gives_up_after_max_retries(self):
        """Test the last error is raised once attempts run out."""
        calls = []

        @with_rate_limit_retry(max_retries=2, base_delay=0)
        async def send():
            calls.append(1)
            raise _http_error(502)

        with pytest.raises(discord.HTTPException):
            await send()
        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_forbidden_raised_immediately(self):
        """Test a 403 is not retried."""
        calls = []

        @with_rate_limit_retry(max_retries=3, base_delay=0)
        async def send():
            calls.append(1)
            raise _http_error(403)

        with pytest.raises(discord.HTTPException):
            await send()
        assert len(calls) == 1
