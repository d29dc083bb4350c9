"""Structured logger with persistent and per-invocation context"""

import functools
import logging
import random
import sys
from typing import Any, Callable, Dict, Iterable, Optional, TextIO, Union

from ..config import LoggerSettings, RuntimeSettings, load_settings
from ..core.cold_start import ColdStart
from ..core.context import LambdaContext, parse_trace_header
from ..core.exceptions import InvalidLoggerSamplingRateError
from ..core.handler import handler_location, is_async, optional_args_decorator
from .formatter import FIELDS_ATTR, LOCATION_ATTR, LambdaJsonFormatter

# Keyword arguments understood by logging.Logger.log; everything else passed
# to a log call becomes an ad-hoc field on that record.
_LOG_CALL_KWARGS = ("exc_info", "stack_info")

_cold_start = ColdStart()


def _resolve_level(level: Union[str, int, None]) -> int:
    if isinstance(level, int):
        return level
    if not level:
        return logging.INFO
    resolved = getattr(logging, str(level).upper(), None)
    if not isinstance(resolved, int):
        return logging.INFO
    return resolved


class Logger:
    """Emit one JSON object per log call to standard output.

    Context comes from three scopes merged in this order (later wins):

    * persistent keys, kept for the lifetime of the Logger
    * ephemeral keys, dropped at the start of every wrapped invocation
    * ad-hoc fields passed to a single log call

    Example::

        logger = Logger(service="payment")

        @logger.inject_lambda_context(log_event=True)
        def handler(event, context):
            logger.append_keys(order_id=event["order_id"])
            logger.info("Collecting payment")
    """

    def __init__(
        self,
        service: Optional[str] = None,
        level: Union[str, int, None] = None,
        sample_rate: Optional[float] = None,
        child: bool = False,
        stream: Optional[TextIO] = None,
        log_event: Optional[bool] = None,
        persistent_keys: Optional[Dict[str, Any]] = None,
        json_indent: Optional[int] = None,
    ):
        settings = load_settings(LoggerSettings)

        self.service = service or settings.service_name
        self.sampling_rate = settings.sample_rate if sample_rate is None else sample_rate
        self.log_event = settings.log_event if log_event is None else log_event
        self.child = child
        self._stream = stream
        self._json_indent = json_indent if json_indent is not None else (4 if settings.dev else None)
        self._validate_sampling_rate(self.sampling_rate)

        self._persistent_keys: Dict[str, Any] = dict(persistent_keys or {})
        self._ephemeral_keys: Dict[str, Any] = {}

        # Unregistered logger: each instance owns its handler and level
        self._logger = logging.Logger(self.service)
        self._logger.propagate = False
        self._handler = logging.StreamHandler(stream or sys.stdout)
        self._handler.setFormatter(LambdaJsonFormatter(json_indent=self._json_indent))
        self._logger.addHandler(self._handler)

        self._configured_level = _resolve_level(level if level is not None else settings.log_level)
        self._logger.setLevel(self._configured_level)
        self._apply_sampling()

    # ------------------------------------------------------------------
    # Level and sampling
    # ------------------------------------------------------------------

    @property
    def level(self) -> int:
        return self._logger.level

    def set_level(self, level: Union[str, int]) -> None:
        """Change the configured log level"""
        self._configured_level = _resolve_level(level)
        self._logger.setLevel(self._configured_level)

    def set_service(self, service: str) -> None:
        self.service = service

    @staticmethod
    def _validate_sampling_rate(rate: Any) -> None:
        try:
            value = float(rate)
        except (TypeError, ValueError):
            raise InvalidLoggerSamplingRateError(
                f"Expected a number between 0 and 1 for sampling rate, got {rate!r}"
            )
        if not 0 <= value <= 1:
            raise InvalidLoggerSamplingRateError(
                f"Expected a number between 0 and 1 for sampling rate, got {rate!r}"
            )

    def _apply_sampling(self) -> None:
        """Lower the level to DEBUG for a sampled share of invocations"""
        if self.sampling_rate and random.random() <= float(self.sampling_rate):
            self._logger.setLevel(logging.DEBUG)
        else:
            self._logger.setLevel(self._configured_level)

    # ------------------------------------------------------------------
    # Context keys
    # ------------------------------------------------------------------

    def append_persistent_keys(self, **keys: Any) -> None:
        """Add keys that stay on every record until removed"""
        self._persistent_keys.update(keys)

    def append_keys(self, **keys: Any) -> None:
        """Add keys that last until the next invocation starts"""
        self._ephemeral_keys.update(keys)

    def remove_keys(self, keys: Iterable[str]) -> None:
        for key in keys:
            self._persistent_keys.pop(key, None)
            self._ephemeral_keys.pop(key, None)

    def reset_keys(self) -> None:
        """Drop every ephemeral key"""
        self._ephemeral_keys.clear()

    def get_persistent_log_attributes(self) -> Dict[str, Any]:
        return dict(self._persistent_keys)

    def get_current_keys(self) -> Dict[str, Any]:
        """Persistent and ephemeral keys as they would appear on a record"""
        return {**self._persistent_keys, **self._ephemeral_keys}

    # ------------------------------------------------------------------
    # Log calls
    # ------------------------------------------------------------------

    def _log(
        self,
        level: int,
        msg: Any,
        args: tuple,
        extra: Optional[Dict[str, Any]],
        fields: Dict[str, Any],
        location: Optional[str] = None,
    ) -> None:
        if not self._logger.isEnabledFor(level):
            return

        log_kwargs = {name: fields.pop(name) for name in _LOG_CALL_KWARGS if name in fields}

        record_fields: Dict[str, Any] = {
            "service": self.service,
            "sampling_rate": self.sampling_rate,
        }
        record_fields.update(self._persistent_keys)
        record_fields.update(self._ephemeral_keys)
        if extra:
            record_fields.update(extra)
        record_fields.update(fields)

        # Keep the trace id last so it is easy to spot
        trace_id = record_fields.pop("xray_trace_id", None)
        if trace_id is not None:
            record_fields["xray_trace_id"] = trace_id

        record_extra: Dict[str, Any] = {FIELDS_ATTR: record_fields}
        if location:
            record_extra[LOCATION_ATTR] = location

        self._logger.log(
            level,
            msg,
            *args,
            extra=record_extra,
            stacklevel=3,
            **log_kwargs,
        )

    def debug(self, msg: Any, *args: Any, extra: Optional[Dict[str, Any]] = None, **fields: Any) -> None:
        self._log(logging.DEBUG, msg, args, extra, fields)

    def info(self, msg: Any, *args: Any, extra: Optional[Dict[str, Any]] = None, **fields: Any) -> None:
        self._log(logging.INFO, msg, args, extra, fields)

    def warning(self, msg: Any, *args: Any, extra: Optional[Dict[str, Any]] = None, **fields: Any) -> None:
        self._log(logging.WARNING, msg, args, extra, fields)

    def error(self, msg: Any, *args: Any, extra: Optional[Dict[str, Any]] = None, **fields: Any) -> None:
        self._log(logging.ERROR, msg, args, extra, fields)

    def critical(self, msg: Any, *args: Any, extra: Optional[Dict[str, Any]] = None, **fields: Any) -> None:
        self._log(logging.CRITICAL, msg, args, extra, fields)

    def exception(self, msg: Any, *args: Any, extra: Optional[Dict[str, Any]] = None, **fields: Any) -> None:
        """Log at ERROR level with the active exception attached"""
        fields.setdefault("exc_info", True)
        self._log(logging.ERROR, msg, args, extra, fields)

    # ------------------------------------------------------------------
    # Children
    # ------------------------------------------------------------------

    def create_child(self, **overrides: Any) -> "Logger":
        """Create a logger sharing this one's configuration and persistent keys"""
        options = {
            "service": self.service,
            "level": self._configured_level,
            "sample_rate": self.sampling_rate,
            "stream": self._stream,
            "log_event": self.log_event,
            "persistent_keys": self.get_persistent_log_attributes(),
            "json_indent": self._json_indent,
        }
        options.update(overrides)
        return Logger(child=True, **options)

    # ------------------------------------------------------------------
    # Handler integration
    # ------------------------------------------------------------------

    def start_invocation(
        self,
        event: Any,
        context: Any,
        log_event: Optional[bool] = None,
        location: Optional[str] = None,
    ) -> None:
        """Reset per-invocation state and add runtime context fields.

        ``location`` is reported for the event record, normally the
        ``name:line`` of the wrapped handler.
        """
        self.reset_keys()
        self._apply_sampling()

        lambda_context = LambdaContext.from_object(context)
        self.append_keys(**lambda_context.to_log_fields(cold_start=_cold_start.consume()))

        runtime = load_settings(RuntimeSettings)
        trace_root = parse_trace_header(runtime.trace_header).get("Root")
        if trace_root:
            self.append_keys(xray_trace_id=trace_root)

        should_log_event = self.log_event if log_event is None else log_event
        if should_log_event:
            self._log(logging.INFO, event, (), None, {}, location=location)

    @optional_args_decorator
    def inject_lambda_context(self, handler: Callable, log_event: Optional[bool] = None) -> Callable:
        """Decorate a handler so every record carries the invocation context.

        Usable bare (``@logger.inject_lambda_context``) or with options
        (``@logger.inject_lambda_context(log_event=True)``). Works for both
        ``def`` and ``async def`` handlers.
        """
        location = handler_location(handler)

        if is_async(handler):
            @functools.wraps(handler)
            async def async_wrapper(event, context, *args, **kwargs):
                self.start_invocation(event, context, log_event=log_event, location=location)
                return await handler(event, context, *args, **kwargs)

            return async_wrapper

        @functools.wraps(handler)
        def wrapper(event, context, *args, **kwargs):
            self.start_invocation(event, context, log_event=log_event, location=location)
            return handler(event, context, *args, **kwargs)

        return wrapper
