"""Middlewares for the logger, metrics and tracer"""

from typing import Any, Callable, Dict, Optional

from ..core.handler import handler_location
from ..logger import Logger
from ..metrics import Metrics
from ..tracer import Tracer
from .chain import Middleware


class InjectLambdaContext(Middleware):
    """Reset ephemeral log keys and add the invocation context"""

    def __init__(self, logger: Logger, log_event: Optional[bool] = None):
        self.logger = logger
        self.log_event = log_event
        self.location: Optional[str] = None

    def wrap(self, handler: Callable) -> Callable:
        self.location = handler_location(handler)
        return handler

    def before(self, event: Any, context: Any) -> None:
        self.logger.start_invocation(event, context, log_event=self.log_event, location=self.location)


class LogMetrics(Middleware):
    """Publish buffered metrics after the handler, whether it failed or not"""

    def __init__(
        self,
        metrics: Metrics,
        capture_cold_start_metric: bool = False,
        raise_on_empty_metrics: Optional[bool] = None,
        default_dimensions: Optional[Dict[str, str]] = None,
    ):
        self.metrics = metrics
        self.capture_cold_start_metric = capture_cold_start_metric
        self.raise_on_empty_metrics = raise_on_empty_metrics
        if default_dimensions:
            metrics.set_default_dimensions(**default_dimensions)

    def before(self, event: Any, context: Any) -> None:
        if self.capture_cold_start_metric:
            self.metrics.capture_cold_start_metric(context)

    def after(self, event: Any, context: Any, response: Any) -> None:
        self.metrics.publish_stored_metrics(raise_on_empty_metrics=self.raise_on_empty_metrics)

    def on_error(self, event: Any, context: Any, error: BaseException) -> None:
        self.metrics.publish_stored_metrics(raise_on_empty_metrics=self.raise_on_empty_metrics)


class CaptureLambdaHandler(Middleware):
    """Run the handler inside a traced subsegment"""

    def __init__(
        self,
        tracer: Tracer,
        capture_response: Optional[bool] = None,
        capture_error: Optional[bool] = None,
    ):
        self.tracer = tracer
        self.capture_response = capture_response
        self.capture_error = capture_error

    def wrap(self, handler: Callable) -> Callable:
        return self.tracer.capture_lambda_handler(
            handler,
            capture_response=self.capture_response,
            capture_error=self.capture_error,
        )
