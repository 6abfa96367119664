"""Fallback chain pattern for graceful degradation."""

import asyncio
from typing import Any, Callable, Coroutine, Optional, TypeVar

import structlog

from ..errors import SourceUnavailable

logger = structlog.get_logger()

T = TypeVar("T")


def _name(func: Callable[..., Any]) -> str:
    return getattr(func, "__name__", None) or repr(func)


class FallbackChain:
    """Execute async functions in order until one succeeds.

    Each function is individually bounded by ``timeout``; a timeout
    counts as a failure like any other exception and moves the chain on.
    """

    def __init__(
        self,
        *functions: Callable[..., Coroutine[Any, Any, T]],
        timeout: Optional[float] = None,
        on_failure: Optional[Callable[[Callable[..., Any], Exception], None]] = None,
    ):
        """Initialize fallback chain with ordered functions.

        Args:
            *functions: Async functions to try in order
            timeout: Per-function timeout in seconds (None for no limit)
            on_failure: Called with (function, error) after each failed attempt
        """
        self.functions = functions
        self.timeout = timeout
        self.on_failure = on_failure

    async def execute(self, *args: Any, **kwargs: Any) -> T:
        """Execute functions in order until one succeeds.

        Args:
            *args: Positional arguments passed to each function
            **kwargs: Keyword arguments passed to each function

        Returns:
            Result from first successful function

        Raises:
            Last exception if all functions fail
        """
        if not self.functions:
            raise ValueError("FallbackChain has no functions")

        last_error: Exception | None = None

        for i, func in enumerate(self.functions):
            try:
                result = await self._call(func, *args, **kwargs)
                if i > 0:
                    logger.info(
                        "fallback_used",
                        function=_name(func),
                        attempt=i + 1,
                        total_functions=len(self.functions),
                    )
                return result
            except Exception as e:
                last_error = e
                logger.warning(
                    "fallback_attempt_failed",
                    function=_name(func),
                    attempt=i + 1,
                    total_functions=len(self.functions),
                    error=str(e),
                )
                if self.on_failure is not None:
                    self.on_failure(func, e)

        logger.error(
            "fallback_chain_exhausted",
            functions=[_name(f) for f in self.functions],
            final_error=str(last_error),
        )
        raise last_error  # type: ignore

    async def _call(self, func: Callable[..., Coroutine[Any, Any, T]], *args: Any, **kwargs: Any) -> T:
        if self.timeout is None:
            return await func(*args, **kwargs)
        try:
            return await asyncio.wait_for(func(*args, **kwargs), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            raise SourceUnavailable(_name(func), f"timed out after {self.timeout}s") from e


async def with_default(
    func: Callable[..., Coroutine[Any, Any, T]],
    default: T,
    *args: Any,
    **kwargs: Any,
) -> T:
    """Execute function and return default value on failure.

    Args:
        func: Async function to execute
        default: Value to return if function fails
        *args: Positional arguments for function
        **kwargs: Keyword arguments for function

    Returns:
        Function result or default value
    """
    try:
        return await func(*args, **kwargs)
    except Exception as e:
        logger.warning(
            "using_default_value",
            function=_name(func),
            error=str(e),
        )
        return default
