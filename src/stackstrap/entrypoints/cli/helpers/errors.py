"""Turn domain errors into a red stderr line and an exit code.

Every command is wrapped with `handles_errors`, the one place where
`StackstrapError` is caught. The error is also logged so it reaches the
flight recorder, but kept off the console, which already shows the message.
"""

import functools
import logging
from collections.abc import Callable
from typing import ParamSpec, TypeVar

import click

from stackstrap.domain.errors import StackstrapError

from .messages import error

logger = logging.getLogger(__name__)

P = ParamSpec("P")
R = TypeVar("R")


def handles_errors(func: Callable[P, R]) -> Callable[P, R]:
    """Exit with `exc.exit_code` when `func` raises a `StackstrapError`."""

    @functools.wraps(func)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        try:
            return func(*args, **kwargs)
        except StackstrapError as exc:
            logger.error(
                "%s failed: %s",
                func.__name__,
                exc,
                exc_info=exc,
                extra={"console": False},
            )
            error(str(exc))
            raise click.exceptions.Exit(exc.exit_code) from exc

    return wrapper
