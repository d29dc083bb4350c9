"""Helpers shared by the handler decorators"""

import asyncio
import functools
import inspect
from typing import Any, Callable, Optional


def is_async(func: Callable) -> bool:
    """True when ``func`` is an ``async def`` function"""
    return asyncio.iscoroutinefunction(func)


def optional_args_decorator(factory: Callable) -> Callable:
    """Let a decorator factory be used with or without arguments.

    ``factory(self, func, **options)`` must return the wrapped function. The
    result supports ``@obj.deco`` as well as ``@obj.deco(option=...)``.
    """

    @functools.wraps(factory)
    def decorator(self, func: Optional[Callable] = None, **options: Any):
        if func is None:
            return functools.partial(decorator, self, **options)
        return factory(self, func, **options)

    return decorator


def handler_location(handler: Callable) -> str:
    """``name:line`` of the function a decorator chain ultimately wraps"""
    func = inspect.unwrap(handler)
    code = getattr(func, "__code__", None)
    line = code.co_firstlineno if code is not None else 0
    return f"{getattr(func, '__name__', type(func).__name__)}:{line}"
