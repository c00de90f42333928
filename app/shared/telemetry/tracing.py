"""Tracing helpers: a decorator, a context manager and span attribute setters."""

import asyncio
from collections.abc import Callable
from functools import wraps
from typing import Any

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

SpanAttributes = dict[str, str | int | float | bool]


def traced(operation_name: str | None = None, attributes: SpanAttributes | None = None) -> Callable:
    """Decorator that runs a coroutine function inside a span.

    Args:
        operation_name: Span name (defaults to module.funcname).
        attributes: Static attributes set on every span.
    """

    def decorator(func: Callable) -> Callable:
        if not asyncio.iscoroutinefunction(func):
            raise TypeError(f"traced() expects a coroutine function, got {func!r}")
        span_name = operation_name or f"{func.__module__}.{func.__name__}"

        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            async with TracedOperation(span_name, attributes):
                return await func(*args, **kwargs)

        return wrapper

    return decorator


def add_span_attributes(**attributes: str | int | float | bool) -> None:
    """Add attributes to the current span."""
    span = trace.get_current_span()
    if span and span.is_recording():
        for key, value in attributes.items():
            span.set_attribute(key, value)


class TracedOperation:
    """Context manager for creating a traced operation (sync or async).

    The span is current for the body, so nested operations become children.
    """

    def __init__(self, operation_name: str, attributes: SpanAttributes | None = None) -> None:
        self.operation_name = operation_name
        self.attributes = attributes or {}
        self.tracer = trace.get_tracer(__name__)
        self.span: trace.Span | None = None
        self._scope: Any = None

    def __enter__(self) -> "TracedOperation":
        self._scope = self.tracer.start_as_current_span(
            self.operation_name, attributes=self.attributes, end_on_exit=True
        )
        self.span = self._scope.__enter__()
        return self

    def __exit__(
        self, exc_type: type | None, exc_val: BaseException | None, exc_tb: object
    ) -> None:
        # Errors are recorded by the span scope itself
        if self.span is not None and exc_val is None:
            self.span.set_status(Status(StatusCode.OK))
        if self._scope is not None:
            self._scope.__exit__(exc_type, exc_val, exc_tb)
            self._scope = None

    async def __aenter__(self) -> "TracedOperation":
        return self.__enter__()

    async def __aexit__(
        self,
        exc_type: type | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        self.__exit__(exc_type, exc_val, exc_tb)
