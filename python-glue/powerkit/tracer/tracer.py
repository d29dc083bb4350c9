"""Tracer facade: subsegments, annotations, metadata and cold starts"""

import functools
import logging
from contextlib import contextmanager
from typing import Any, Callable, Iterator, Optional

from opentelemetry.trace import Span

from ..config import RuntimeSettings, TracerSettings, load_settings
from ..core.cold_start import ColdStart
from ..core.context import parse_trace_header
from ..core.handler import is_async, optional_args_decorator
from .provider import TraceProvider, setup_tracing

logger = logging.getLogger(__name__)

# True until the first handler invocation in this process is annotated
_cold_start = ColdStart()

ANNOTATION_TYPES = (str, int, float, bool)


class Tracer:
    """Trace handlers and methods.

    Example::

        tracer = Tracer(service="payment")

        @tracer.capture_method
        def collect_payment(charge_id):
            tracer.put_annotation("charge_id", charge_id)
            return charge(charge_id)

        @tracer.capture_lambda_handler
        def handler(event, context):
            return collect_payment(event["charge_id"])

    When tracing is disabled every operation is a no-op and decorated
    functions are called untouched.
    """

    def __init__(
        self,
        service: Optional[str] = None,
        enabled: Optional[bool] = None,
        provider: Optional[TraceProvider] = None,
    ):
        settings = load_settings(TracerSettings)
        runtime = load_settings(RuntimeSettings)

        self.service = service or settings.service_name
        self.capture_response = settings.capture_response
        self.capture_error = settings.capture_error
        self._enabled = self._resolve_enabled(enabled, settings, runtime)

        if self._enabled and provider is None:
            setup_tracing(self.service, endpoint=settings.exporter_endpoint, console=settings.dev)
        self.provider = provider or TraceProvider()

        if not self._enabled:
            logger.debug("Tracing is disabled for service %s", self.service)

    @staticmethod
    def _resolve_enabled(
        enabled: Optional[bool],
        settings: TracerSettings,
        runtime: RuntimeSettings,
    ) -> bool:
        if enabled is not None:
            return enabled
        if settings.enabled is not None:
            return settings.enabled
        if runtime.sam_local:
            return False
        return runtime.is_lambda_environment

    def is_tracing_enabled(self) -> bool:
        return self._enabled

    # ------------------------------------------------------------------
    # Segment access
    # ------------------------------------------------------------------

    def get_segment(self) -> Span:
        return self.provider.get_segment()

    def set_segment(self, span: Span) -> object:
        return self.provider.set_segment(span)

    def get_root_trace_id(self) -> Optional[str]:
        """Root trace id from the runtime trace header, if any"""
        header = load_settings(RuntimeSettings).trace_header
        return parse_trace_header(header).get("Root")

    def is_trace_sampled(self) -> bool:
        header = load_settings(RuntimeSettings).trace_header
        return parse_trace_header(header).get("Sampled") == "1"

    # ------------------------------------------------------------------
    # Annotations and metadata
    # ------------------------------------------------------------------

    def put_annotation(self, key: str, value: Any) -> None:
        """Add an indexed key/value pair to the current span.

        Raises:
            TypeError: value is not a str, int, float or bool
        """
        if not isinstance(value, ANNOTATION_TYPES):
            raise TypeError(
                f"Annotation '{key}' must be str, int, float or bool, got {type(value).__name__}"
            )
        if not self._enabled:
            logger.debug("Tracing is disabled, skipping annotation %s", key)
            return
        self.provider.put_annotation(key, value)

    def put_metadata(self, key: str, value: Any, namespace: Optional[str] = None) -> None:
        """Attach arbitrary, non-indexed data to the current span"""
        if not self._enabled:
            logger.debug("Tracing is disabled, skipping metadata %s", key)
            return
        self.provider.put_metadata(key, value, namespace or self.service)

    def annotate_cold_start(self) -> None:
        """Annotate ColdStart; true only for the first invocation in the process"""
        if not self._enabled:
            return
        self.put_annotation("ColdStart", _cold_start.consume())

    def add_service_name_annotation(self) -> None:
        self.put_annotation("Service", self.service)

    def add_error_as_metadata(self, method_name: str, error: BaseException, capture: bool = True) -> None:
        """Mark the current span as failed and store the error details"""
        if not self._enabled:
            return
        self.provider.record_error(error, record_exception=capture)
        if capture:
            self.put_metadata(
                f"{method_name} error",
                {"type": type(error).__name__, "message": str(error)},
            )

    def add_response_as_metadata(self, method_name: str, data: Any = None) -> None:
        if data is None:
            return
        self.put_metadata(f"{method_name} response", data)

    # ------------------------------------------------------------------
    # Decorators
    # ------------------------------------------------------------------

    @contextmanager
    def _subsegment(
        self,
        name: str,
        method_name: str,
        capture_error: bool,
        is_handler: bool = False,
    ) -> Iterator[Span]:
        with self.provider.in_subsegment(name) as span:
            if is_handler:
                self.annotate_cold_start()
                self.add_service_name_annotation()
            try:
                yield span
            except Exception as error:
                self.add_error_as_metadata(method_name, error, capture=capture_error)
                raise

    def _wrap(
        self,
        func: Callable,
        subsegment_name: str,
        capture_response: Optional[bool],
        capture_error: Optional[bool],
        is_handler: bool,
    ) -> Callable:
        method_name = func.__name__

        def options():
            response = self.capture_response if capture_response is None else capture_response
            error = self.capture_error if capture_error is None else capture_error
            return response, error

        if is_async(func):
            @functools.wraps(func)
            async def async_wrapper(*args, **kwargs):
                if not self._enabled:
                    return await func(*args, **kwargs)
                record_response, record_error = options()
                with self._subsegment(subsegment_name, method_name, record_error, is_handler):
                    response = await func(*args, **kwargs)
                    if record_response:
                        self.add_response_as_metadata(method_name, response)
                    return response

            return async_wrapper

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            if not self._enabled:
                return func(*args, **kwargs)
            record_response, record_error = options()
            with self._subsegment(subsegment_name, method_name, record_error, is_handler):
                response = func(*args, **kwargs)
                if record_response:
                    self.add_response_as_metadata(method_name, response)
                return response

        return wrapper

    @optional_args_decorator
    def capture_lambda_handler(
        self,
        handler: Callable,
        capture_response: Optional[bool] = None,
        capture_error: Optional[bool] = None,
    ) -> Callable:
        """Trace a handler in a ``## <name>`` subsegment.

        The subsegment is annotated with ColdStart and Service. Errors are
        recorded and re-raised.
        """
        return self._wrap(
            handler,
            subsegment_name=f"## {handler.__name__}",
            capture_response=capture_response,
            capture_error=capture_error,
            is_handler=True,
        )

    @optional_args_decorator
    def capture_method(
        self,
        method: Callable,
        subsegment_name: Optional[str] = None,
        capture_response: Optional[bool] = None,
        capture_error: Optional[bool] = None,
    ) -> Callable:
        """Trace any function or method in its own subsegment"""
        return self._wrap(
            method,
            subsegment_name=subsegment_name or f"### {method.__name__}",
            capture_response=capture_response,
            capture_error=capture_error,
            is_handler=False,
        )
