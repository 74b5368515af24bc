"""
Distributed tracing using OpenTelemetry.

Instruments cleanup runs per value table so slow scans and failing
writes show up in the collector next to the rest of the platform.
"""

from .context import add_span_attributes, add_span_event, trace_operation
from .tracer import get_tracer, initialize_tracing, shutdown_tracing

__all__ = [
    "initialize_tracing",
    "get_tracer",
    "shutdown_tracing",
    "trace_operation",
    "add_span_attributes",
    "add_span_event",
]
