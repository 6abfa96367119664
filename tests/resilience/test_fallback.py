"""Tests for fallback chain pattern."""

import asyncio

import pytest

from servers.activity_calendar.errors import EmptyResult, SourceUnavailable
from servers.activity_calendar.resilience.fallback import FallbackChain, with_default


class TestFallbackChain:
    """Tests for FallbackChain class."""

    @pytest.mark.asyncio
    async def test_returns_first_success(self):
        """Should return result from first successful function."""

        async def first():
            return "first"

        async def second():
            return "second"

        chain = FallbackChain(first, second)
        result = await chain.execute()

        assert result == "first"

    @pytest.mark.asyncio
    async def test_does_not_call_later_functions_after_success(self):
        calls = []

        async def first():
            calls.append("first")
            return "first"

        async def second():
            calls.append("second")
            return "second"

        await FallbackChain(first, second).execute()
        assert calls == ["first"]

    @pytest.mark.asyncio
    async def test_falls_back_on_failure(self):
        """Should fall back to next function on failure."""

        async def fail():
            raise SourceUnavailable("structured", "connection refused")

        async def success():
            return "fallback"

        chain = FallbackChain(fail, success)
        result = await chain.execute()

        assert result == "fallback"

    @pytest.mark.asyncio
    async def test_tries_all_functions(self):
        """Should try all functions before giving up."""
        call_order = []

        async def first():
            call_order.append("first")
            raise ValueError("first failed")

        async def second():
            call_order.append("second")
            raise EmptyResult("scraped", fetched=3)

        async def third():
            call_order.append("third")
            return "success"

        chain = FallbackChain(first, second, third)
        result = await chain.execute()

        assert result == "success"
        assert call_order == ["first", "second", "third"]

    @pytest.mark.asyncio
    async def test_raises_last_error_when_all_fail(self):
        """Should raise last error when all functions fail."""

        async def first():
            raise ValueError("first error")

        async def second():
            raise TypeError("second error")

        chain = FallbackChain(first, second)

        with pytest.raises(TypeError) as exc_info:
            await chain.execute()

        assert "second error" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_empty_chain_raises(self):
        with pytest.raises(ValueError):
            await FallbackChain().execute()

    @pytest.mark.asyncio
    async def test_passes_arguments(self):
        """Should pass arguments to all functions."""

        async def fail(x, y):
            raise ValueError("fail")

        async def add(x, y):
            return x + y

        chain = FallbackChain(fail, add)
        result = await chain.execute(2, 3)

        assert result == 5


class TestFallbackChainTimeout:
    """Tests for per-function timeouts."""

    @pytest.mark.asyncio
    async def test_slow_function_times_out_and_falls_back(self):
        async def slow():
            await asyncio.sleep(5)
            return "slow"

        async def fast():
            return "fast"

        chain = FallbackChain(slow, fast, timeout=0.05)
        assert await chain.execute() == "fast"

    @pytest.mark.asyncio
    async def test_timeout_raises_source_unavailable(self):
        async def slow():
            await asyncio.sleep(5)

        chain = FallbackChain(slow, timeout=0.05)

        with pytest.raises(SourceUnavailable) as exc_info:
            await chain.execute()

        assert exc_info.value.source == "slow"
        assert "timed out" in exc_info.value.reason

    @pytest.mark.asyncio
    async def test_no_timeout_by_default(self):
        async def brief():
            await asyncio.sleep(0.01)
            return "done"

        chain = FallbackChain(brief)
        assert chain.timeout is None
        assert await chain.execute() == "done"


class TestFallbackChainOnFailure:
    """Tests for the failure callback."""

    @pytest.mark.asyncio
    async def test_called_for_each_failure(self):
        failures = []

        async def first():
            raise SourceUnavailable("structured", "HTTP 503")

        async def second():
            raise EmptyResult("scraped")

        async def third():
            return "ok"

        chain = FallbackChain(
            first, second, third,
            on_failure=lambda func, error: failures.append((func.__name__, type(error))),
        )
        await chain.execute()

        assert failures == [("first", SourceUnavailable), ("second", EmptyResult)]

    @pytest.mark.asyncio
    async def test_not_called_on_success(self):
        failures = []

        async def ok():
            return "ok"

        chain = FallbackChain(ok, on_failure=lambda func, error: failures.append(error))
        await chain.execute()

        assert failures == []

    @pytest.mark.asyncio
    async def test_receives_timeout_error(self):
        failures = []

        async def slow():
            await asyncio.sleep(5)

        async def fast():
            return "fast"

        chain = FallbackChain(
            slow, fast, timeout=0.05,
            on_failure=lambda func, error: failures.append(error),
        )
        await chain.execute()

        assert len(failures) == 1
        assert isinstance(failures[0], SourceUnavailable)


class TestWithDefault:
    """Tests for with_default helper function."""

    @pytest.mark.asyncio
    async def test_returns_function_result_on_success(self):
        """Should return function result on success."""

        async def get_value():
            return 42

        result = await with_default(get_value, default=0)
        assert result == 42

    @pytest.mark.asyncio
    async def test_returns_default_on_failure(self):
        """Should return default value on failure."""

        async def fail():
            raise ValueError("failed")

        result = await with_default(fail, default="default_value")
        assert result == "default_value"

    @pytest.mark.asyncio
    async def test_passes_arguments(self):
        """Should pass arguments to function."""

        async def multiply(x, y):
            return x * y

        result = await with_default(multiply, 0, 3, y=4)
        assert result == 12

    @pytest.mark.asyncio
    async def test_default_can_be_none(self):
        """Should allow None as default value."""

        async def fail():
            raise ValueError("failed")

        result = await with_default(fail, default=None)
        assert result is None

    @pytest.mark.asyncio
    async def test_wraps_exhausted_chain(self):
        async def fail():
            raise SourceUnavailable("scraped", "browser crashed")

        chain = FallbackChain(fail)
        assert await with_default(chain.execute, []) == []
