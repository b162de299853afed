"""
Tests for retry and rate limit helpers.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import Mock, patch

import pytest

from infrastructure.retry_utils import RateLimiter, RateLimitExceeded, exponential_backoff


class TestExponentialBackoff:
    """Test the exponential_backoff decorator."""

    @patch("infrastructure.retry_utils.time.sleep")
    def test_retries_then_succeeds(self, mock_sleep):
        """Test that a transient failure is retried."""
        func = Mock(side_effect=[ValueError("boom"), "ok"])
        func.__name__ = "func"

        wrapped = exponential_backoff(max_retries=2, base_delay=1.0, retry_on=(ValueError,))(func)

        assert wrapped() == "ok"
        assert func.call_count == 2
        mock_sleep.assert_called_once_with(1.0)

    @patch("infrastructure.retry_utils.time.sleep")
    def test_gives_up(self, mock_sleep):
        """Test that the last error is raised after max retries."""
        func = Mock(side_effect=ValueError("boom"))
        func.__name__ = "func"

        wrapped = exponential_backoff(max_retries=2, retry_on=(ValueError,))(func)

        with pytest.raises(ValueError):
            wrapped()
        assert func.call_count == 3

    @patch("infrastructure.retry_utils.time.sleep")
    def test_gives_up_on_repeated_rate_limits(self, mock_sleep):
        """Test that the rate limit error itself is raised once retries run out."""
        error = RateLimitExceeded(datetime.now(timezone.utc) + timedelta(seconds=5))
        func = Mock(side_effect=error)
        func.__name__ = "func"

        wrapped = exponential_backoff(max_retries=2)(func)

        with pytest.raises(RateLimitExceeded) as exc_info:
            wrapped()
        assert exc_info.value is error
        assert func.call_count == 3

    @patch("infrastructure.retry_utils.time.sleep")
    def test_does_not_retry_other_errors(self, mock_sleep):
        """Test that errors outside retry_on propagate immediately."""
        func = Mock(side_effect=KeyError("nope"))
        func.__name__ = "func"

        wrapped = exponential_backoff(max_retries=3, retry_on=(ValueError,))(func)

        with pytest.raises(KeyError):
            wrapped()
        assert func.call_count == 1
        mock_sleep.assert_not_called()

    @patch("infrastructure.retry_utils.time.sleep")
    def test_waits_for_rate_limit_reset(self, mock_sleep):
        """Test that a rate limit waits until the reset time."""
        reset_at = datetime.now(timezone.utc) + timedelta(seconds=30)
        func = Mock(side_effect=[RateLimitExceeded(reset_at), "ok"])
        func.__name__ = "func"

        wrapped = exponential_backoff(max_retries=2)(func)

        assert wrapped() == "ok"
        waited = mock_sleep.call_args[0][0]
        assert 25 < waited <= 31

    @patch("infrastructure.retry_utils.time.sleep")
    def test_rate_limit_too_far_away(self, mock_sleep):
        """Test that a reset beyond max_rate_limit_wait is raised."""
        reset_at = datetime.now(timezone.utc) + timedelta(hours=2)
        func = Mock(side_effect=RateLimitExceeded(reset_at))
        func.__name__ = "func"

        wrapped = exponential_backoff(max_rate_limit_wait=60)(func)

        with pytest.raises(RateLimitExceeded):
            wrapped()
        mock_sleep.assert_not_called()


class TestRateLimiter:
    """Test RateLimiter."""

    def test_update_from_headers(self):
        """Test parsing the rate limit headers."""
        limiter = RateLimiter()
        limiter.update_from_headers(
            {"X-RateLimit-Remaining": "42", "X-RateLimit-Reset": "1767225600"}
        )

        assert limiter.remaining == 42
        assert limiter.reset_at == datetime(2026, 1, 1, tzinfo=timezone.utc)

    @patch("infrastructure.retry_utils.time.sleep")
    def test_waits_when_low(self, mock_sleep):
        """Test waiting for the reset when almost no requests remain."""
        limiter = RateLimiter(min_remaining=10)
        limiter.remaining = 3
        limiter.reset_at = datetime.now(timezone.utc) + timedelta(seconds=20)

        limiter.wait_if_needed()

        mock_sleep.assert_called_once()

    @patch("infrastructure.retry_utils.time.sleep")
    def test_no_wait_with_budget(self, mock_sleep):
        """Test that no wait happens with enough requests left."""
        limiter = RateLimiter(min_remaining=10)
        limiter.remaining = 500
        limiter.reset_at = datetime.now(timezone.utc) + timedelta(seconds=20)

        limiter.wait_if_needed()

        mock_sleep.assert_not_called()
