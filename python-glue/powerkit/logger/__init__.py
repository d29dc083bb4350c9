"""Structured JSON logging for function handlers"""

from .formatter import LambdaJsonFormatter
from .logger import Logger

__all__ = ["Logger", "LambdaJsonFormatter"]
