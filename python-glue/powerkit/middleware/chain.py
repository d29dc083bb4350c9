"""Compose a handler with before/after/on_error middlewares"""

import functools
from typing import Any, Callable, List, Optional, Sequence

from ..core.handler import is_async


class Middleware:
    """Base class for handler middlewares.

    ``before`` runs in registration order, ``after`` and ``on_error`` in
    reverse order, so the first middleware wraps all the others.
    """

    def before(self, event: Any, context: Any) -> None:
        pass

    def after(self, event: Any, context: Any, response: Any) -> None:
        pass

    def on_error(self, event: Any, context: Any, error: BaseException) -> None:
        pass

    def wrap(self, handler: Callable) -> Callable:
        """Optional hook to wrap the handler itself (e.g. to open a span)"""
        return handler


def _run_after(middlewares: Sequence[Middleware], event, context, response) -> None:
    for middleware in reversed(middlewares):
        middleware.after(event, context, response)


def _run_on_error(middlewares: Sequence[Middleware], event, context, error) -> None:
    for middleware in reversed(middlewares):
        middleware.on_error(event, context, error)


def chain(handler: Callable, *middlewares: Middleware) -> Callable:
    """Return ``handler`` wrapped by ``middlewares``.

    Errors raised by the handler are passed to every ``on_error`` hook and
    then re-raised.

    Example::

        handler = chain(
            lambda_handler,
            InjectLambdaContext(logger),
            CaptureLambdaHandler(tracer),
            LogMetrics(metrics, capture_cold_start_metric=True),
        )
    """
    stack: List[Middleware] = list(middlewares)

    inner = handler
    for middleware in reversed(stack):
        inner = middleware.wrap(inner)

    if is_async(handler):
        @functools.wraps(handler)
        async def async_wrapper(event, context, *args, **kwargs):
            for middleware in stack:
                middleware.before(event, context)
            try:
                response = await inner(event, context, *args, **kwargs)
            except Exception as error:
                _run_on_error(stack, event, context, error)
                raise
            _run_after(stack, event, context, response)
            return response

        return async_wrapper

    @functools.wraps(handler)
    def wrapper(event, context, *args, **kwargs):
        for middleware in stack:
            middleware.before(event, context)
        try:
            response = inner(event, context, *args, **kwargs)
        except Exception as error:
            _run_on_error(stack, event, context, error)
            raise
        _run_after(stack, event, context, response)
        return response

    return wrapper
