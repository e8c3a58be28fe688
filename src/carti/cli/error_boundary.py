"""Error boundary handling for CLI commands.

This module provides decorators to catch well-known exceptions at CLI entry points
and display clean error messages without stack traces.
"""

import functools
import logging
from collections.abc import Callable
from typing import Any, NoReturn

import click

from carti.output import user_output
from carti.core.errors import BuildFailed, CartiError

logger = logging.getLogger(__name__)


def _fail(e: Exception) -> NoReturn:
    # Full traceback only when --debug turned on DEBUG logging
    logger.debug("Command failed", exc_info=e)
    user_output(click.style("Error: ", fg="red") + str(e))
    raise SystemExit(1) from None


def cli_error_boundary[T: Callable[..., Any]](func: T) -> T:
    """Decorator that catches well-known exceptions and displays clean error messages.

    Catches:
        - CartiError: Domain failures (unknown bundles, fetch and build failures, ...)
        - FileNotFoundError: Missing files/directories
        - ValueError: Invalid input or configuration
        - PermissionError: Permission denied errors

    BuildFailed diagnostics are printed verbatim before the error line.
    All other exceptions bubble up normally with full stack traces.

    Example:
        @click.command()
        @click.pass_obj
        @cli_error_boundary
        def my_command(ctx):
            ...
    """

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except BuildFailed as e:
            if e.diagnostics:
                user_output(e.diagnostics)
            _fail(e)
        except CartiError as e:
            _fail(e)
        except FileNotFoundError as e:
            _fail(e)
        except ValueError as e:
            _fail(e)
        except PermissionError as e:
            _fail(e)

    return wrapper  # type: ignore[return-value]
