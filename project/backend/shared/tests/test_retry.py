"""
Tests for retry logic with exponential backoff.
"""

import pytest
from unittest.mock import AsyncMock, patch
from shared.retry import retry_with_backoff
from shared.errors import ConfigError, RetryableError


@pytest.mark.asyncio
async def test_retry_succeeds_on_first_attempt():
    """Test that function succeeds on first attempt."""
    call_count = 0

    @retry_with_backoff(max_attempts=3, base_delay=0.01)
    async def successful_function():
        nonlocal call_count
        call_count += 1
        return "success"

    assert await successful_function() == "success"
    assert call_count == 1


@pytest.mark.asyncio
async def test_retry_succeeds_after_retries():
    """Test that function succeeds after retries."""
    call_count = 0

    @retry_with_backoff(max_attempts=3, base_delay=0.01)
    async def retryable_function():
        nonlocal call_count
        call_count += 1
        if call_count < 2:
            raise RetryableError("Temporary failure")
        return "success"

    assert await retryable_function() == "success"
    assert call_count == 2


@pytest.mark.asyncio
async def test_retry_fails_after_max_attempts():
    """Test that the last error is re-raised after max attempts."""
    call_count = 0

    @retry_with_backoff(max_attempts=3, base_delay=0.01)
    async def always_fails():
        nonlocal call_count
        call_count += 1
        raise RetryableError(f"Failure {call_count}")

    with pytest.raises(RetryableError, match="Failure 3"):
        await always_fails()
    assert call_count == 3


@pytest.mark.asyncio
async def test_retry_does_not_retry_other_errors():
    """Test that non-retryable errors propagate immediately."""
    call_count = 0

    @retry_with_backoff(max_attempts=3, base_delay=0.01)
    async def invalid_input():
        nonlocal call_count
        call_count += 1
        raise ConfigError("Bad input")

    with pytest.raises(ConfigError):
        await invalid_input()
    assert call_count == 1


@pytest.mark.asyncio
async def test_retry_exponential_backoff():
    """Test that delays double after each attempt."""
    @retry_with_backoff(max_attempts=4, base_delay=2)
    async def always_fails():
        raise RetryableError("nope")

    with patch("shared.retry.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
        with pytest.raises(RetryableError):
            await always_fails()

    assert [call.args[0] for call in mock_sleep.await_args_list] == [2, 4, 8]


@pytest.mark.asyncio
async def test_retry_custom_exceptions():
    """Test that retryable_exceptions selects what is retried."""
    call_count = 0

    @retry_with_backoff(max_attempts=2, base_delay=0.01, retryable_exceptions=(ConnectionError,))
    async def flaky():
        nonlocal call_count
        call_count += 1
        if call_count == 1:
            raise ConnectionError("reset")
        return "ok"

    assert await flaky() == "ok"


def test_retry_rejects_sync_functions():
    """Test that decorating a plain function fails at decoration time."""
    with pytest.raises(TypeError, match="coroutine function"):
        @retry_with_backoff()
        def blocking():
            return None
