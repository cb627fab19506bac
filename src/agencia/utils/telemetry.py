"""OpenTelemetry tracing helpers for agencia.

A thin wrapper around the OpenTelemetry API so the rest of the codebase
can call ``get_tracer()`` without caring whether the SDK is installed.
When the SDK is *not* configured the API returns no-op implementations.

Usage::

    from agencia.utils.telemetry import get_tracer

    _tracer = get_tracer(__name__)

    with _tracer.start_as_current_span("agent.call") as span:
        span.set_attribute(ATTR_AGENT_NAME, "greet")

``agencia run --telemetry`` calls :func:`configure_telemetry` to print spans
to stderr (requires the ``otel`` extra).
"""

from __future__ import annotations

import sys
from typing import TextIO

from opentelemetry import trace

# ---------------------------------------------------------------------------
# Semantic attribute keys used throughout agencia instrumentation
# ---------------------------------------------------------------------------

ATTR_AGENT_NAME = "agencia.agent.name"
ATTR_AGENT_KIND = "agencia.agent.kind"
ATTR_CALL_DEPTH = "agencia.call.depth"
ATTR_TOOL_DEPTH = "agencia.tool.depth"
ATTR_TOOL_COUNT = "agencia.tool.count"
ATTR_PURPOSE = "agencia.purpose"
ATTR_MODEL = "agencia.model"
ATTR_PROVIDER = "agencia.provider"
ATTR_TOKENS_PROMPT = "agencia.tokens.prompt"
ATTR_TOKENS_COMPLETION = "agencia.tokens.completion"
ATTR_TOKENS_TOTAL = "agencia.tokens.total"
ATTR_FINISH_REASON = "agencia.finish_reason"

_INSTRUMENTATION_NAME = "agencia"


def get_tracer(name: str | None = None) -> trace.Tracer:
    """Return a :class:`~opentelemetry.trace.Tracer` for *name*.

    If the OpenTelemetry SDK has not been configured the returned tracer
    is a no-op.
    """
    return trace.get_tracer(name or _INSTRUMENTATION_NAME)


def configure_telemetry(*, service_name: str = "agencia", stream: TextIO | None = None) -> None:
    """Export agencia spans as JSON to *stream* (stderr by default).

    Used by ``agencia run --telemetry``; spans go to stderr so the run
    output on stdout stays clean.  Requires the ``otel`` extra.

    Raises:
        ImportError: If the ``opentelemetry-sdk`` package is not installed.
    """
    try:
        from opentelemetry.sdk.resources import Resource  # pyright: ignore[reportMissingImports]
        from opentelemetry.sdk.trace import TracerProvider  # pyright: ignore[reportMissingImports]
        from opentelemetry.sdk.trace.export import (  # pyright: ignore[reportMissingImports]
            ConsoleSpanExporter,
            SimpleSpanProcessor,
        )
    except ImportError as exc:
        raise ImportError(
            "agencia run --telemetry needs opentelemetry-sdk: pip install agencia[otel]"
        ) from exc

    provider = TracerProvider(resource=Resource.create({"service.name": service_name}))
    exporter = ConsoleSpanExporter(out=stream if stream is not None else sys.stderr)
    provider.add_span_processor(SimpleSpanProcessor(exporter))
    trace.set_tracer_provider(provider)
