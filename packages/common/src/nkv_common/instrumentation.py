"""OpenTelemetry instrumentation helpers.

Provides:
- Tracer access for spans
- Function decorator for automatic span creation around pipeline operations
"""

import inspect
from functools import wraps
from typing import Any, Callable

from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter


# Global tracer provider (initialized once)
_tracer_provider: TracerProvider | None = None


def init_telemetry(service_name: str = "nkv", console_export: bool = False) -> None:
    """Initialize OpenTelemetry tracing.

    Call this once at application startup. Spans are always recorded;
    they are printed only when console_export is set.

    Args:
        service_name: Name of the service for traces (default: "nkv")
        console_export: Attach a console span exporter
    """
    global _tracer_provider

    if _tracer_provider is not None:
        return

    from opentelemetry.sdk.resources import Resource

    _tracer_provider = TracerProvider(
        resource=Resource.create({"service.name": service_name})
    )

    if console_export:
        _tracer_provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))

    trace.set_tracer_provider(_tracer_provider)


def get_tracer(name: str) -> trace.Tracer:
    """Get a tracer for creating spans.

    Args:
        name: Tracer name (typically module name like "nkv_refinery.gateway")

    Returns:
        Tracer instance
    """
    if _tracer_provider is None:
        init_telemetry()

    return trace.get_tracer(name)


def current_trace_id() -> str | None:
    """Return the active trace id as a hex string, or None outside a span."""
    context = trace.get_current_span().get_span_context()
    if not context.is_valid:
        return None
    return format(context.trace_id, "032x")


def instrument_function(span_name: str | None = None) -> Callable:
    """Decorator to automatically create a span for a function.

    Args:
        span_name: Name for the span (default: function name)

    Returns:
        Decorator function

    Example:
        >>> @instrument_function("ingest")
        ... async def ingest(text: str) -> IngestResult:
        ...     ...
    """

    def decorator(func: Callable) -> Callable:
        actual_span_name = span_name or func.__name__
        tracer = get_tracer(func.__module__)

        @wraps(func)
        async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
            with tracer.start_as_current_span(actual_span_name):
                return await func(*args, **kwargs)

        @wraps(func)
        def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
            with tracer.start_as_current_span(actual_span_name):
                return func(*args, **kwargs)

        if inspect.iscoroutinefunction(func):
            return async_wrapper
        return sync_wrapper

    return decorator
