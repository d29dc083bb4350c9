"""Middleware-chain composition for handlers"""

from .chain import Middleware, chain
from .adapters import CaptureLambdaHandler, InjectLambdaContext, LogMetrics

__all__ = [
    "Middleware",
    "chain",
    "CaptureLambdaHandler",
    "InjectLambdaContext",
    "LogMetrics",
]
