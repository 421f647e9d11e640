"""Decorators for command functions."""

import functools
import time
import traceback
from collections.abc import Callable

import typer

from taskit_cli.models.focus.exceptions import (
    ConfigError,
    EmptyPlanError,
    FocusError,
    InvalidTransitionError,
)
from taskit_cli.utils.exit_codes import (
    ERROR_GENERAL,
    ERROR_INVALID_ARGS,
    ERROR_INVALID_STATE,
    get_exit_code_name,
)
from taskit_cli.utils.logger import get_logger
from taskit_cli.utils.ui.formatters import format_error


class AppError(Exception):
    """Custom application error with exit code."""

    def __init__(self, message: str, exit_code: int = ERROR_GENERAL):
        super().__init__(message)
        self.exit_code = exit_code


def exit_code_for(error: FocusError) -> int:
    """Semantic exit code for a focus engine error."""
    if isinstance(error, (ConfigError, EmptyPlanError)):
        return ERROR_INVALID_ARGS
    if isinstance(error, InvalidTransitionError):
        return ERROR_INVALID_STATE
    return ERROR_GENERAL


def command_wrapper(_func: Callable | None = None):
    """Decorator adding logging and uniform error output to a command."""

    def decorator(func: Callable):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            logger = get_logger("commands")
            cmd = func.__name__
            start = time.monotonic()
            logger.info("command started: %s", cmd)
            try:
                result = func(*args, **kwargs)
                elapsed = time.monotonic() - start
                logger.info("command completed: %s (%.3fs)", cmd, elapsed)
                return result

            except (AppError, FocusError) as e:
                elapsed = time.monotonic() - start
                code = e.exit_code if isinstance(e, AppError) else exit_code_for(e)
                logger.error(
                    "command failed: %s (%.3fs) - %s [%s]",
                    cmd,
                    elapsed,
                    str(e),
                    get_exit_code_name(code),
                )
                format_error(str(e))
                raise typer.Exit(code=code) from e

            except typer.Exit:
                raise

            except Exception as e:
                elapsed = time.monotonic() - start
                logger.error(
                    "command failed: %s (%.3fs) - %s\n%s",
                    cmd,
                    elapsed,
                    str(e),
                    traceback.format_exc(),
                )
                format_error(f"An unexpected error occurred: {str(e)}")
                raise typer.Exit(code=ERROR_GENERAL) from e

        return wrapper

    if _func is None:
        return decorator
    return decorator(_func)
