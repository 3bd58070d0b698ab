"""Sanitize exceptions so secrets in messages and tracebacks are not exposed."""

import functools
import inspect
import traceback
from typing import Any, Callable, Optional

from offrecord.engine import SecretRedactor, get_redactor
from offrecord.models import SafeErrorOptions


class SafeError(Exception):
    """An exception whose message and traceback text have been redacted."""

    def __init__(
        self,
        message: str,
        original_name: str = "Exception",
        stack: Optional[str] = None,
        context: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.original_name = original_name
        self.stack = stack
        self.context = context

    def __str__(self) -> str:
        if self.context:
            return f"{self.context}: {self.message}"
        return self.message


def _format_stack(error: BaseException) -> Optional[str]:
    if error.__traceback__ is None:
        return None
    return "".join(traceback.format_exception(type(error), error, error.__traceback__))


def create_safe_error(
    error: Any,
    redactor: Optional[SecretRedactor] = None,
    options: Optional[SafeErrorOptions] = None,
) -> SafeError:
    """
    Build a SafeError from an exception, string or arbitrary object.

    Args:
        error: The original error
        redactor: Redactor to use. Defaults to the shared redactor.
        options: Sanitization options

    Returns:
        SafeError carrying only redacted text
    """
    options = options or SafeErrorOptions()
    r = redactor or get_redactor()

    if isinstance(error, str):
        return SafeError(r.redact(error), context=options.context)

    if not isinstance(error, BaseException):
        return SafeError(r.redact(str(error)), context=options.context)

    safe_message = r.redact(str(error))

    stack = _format_stack(error)
    if stack is not None and options.redact_stack:
        stack = r.redact(stack)

    original_name = type(error).__name__ if options.preserve_type else "Exception"

    return SafeError(safe_message, original_name, stack, options.context)


def safe_errors(
    redactor: Optional[SecretRedactor] = None,
    context: Optional[str] = None,
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """
    Decorate a function so exceptions it raises are re-raised as SafeError.

    Works for plain functions and coroutine functions. The original
    exception is not chained, so its unredacted text does not travel on.
    """
    options = SafeErrorOptions(context=context)

    def decorator(fn: Callable[..., Any]) -> Callable[..., Any]:
        if inspect.iscoroutinefunction(fn):

            @functools.wraps(fn)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                try:
                    return await fn(*args, **kwargs)
                except SafeError:
                    raise
                except Exception as e:
                    raise create_safe_error(e, redactor, options) from None

            return async_wrapper

        @functools.wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                return fn(*args, **kwargs)
            except SafeError:
                raise
            except Exception as e:
                raise create_safe_error(e, redactor, options) from None

        return wrapper

    return decorator


def sanitize_message(message: str, redactor: Optional[SecretRedactor] = None) -> str:
    """Redact secrets from an error message."""
    return (redactor or get_redactor()).redact(message)


def sanitize_stack(stack: str, redactor: Optional[SecretRedactor] = None) -> str:
    """Redact secrets from a formatted traceback."""
    return (redactor or get_redactor()).redact(stack)
