"""Tracing of handlers and methods on top of OpenTelemetry"""

from .provider import TraceProvider, setup_tracing
from .tracer import Tracer

__all__ = ["Tracer", "TraceProvider", "setup_tracing"]
