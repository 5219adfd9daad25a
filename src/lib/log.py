"""
Loguru output for slidefit

LOG() is gated by the verbosity of the CheckState bound to the current
context. WARN() is never gated: skipped slides, missing sources and
ignored document settings are always reported.

A check run binds its state once with state_connectToLogger(); worker
threads run inside a copy of that context and inherit the binding.
"""

from loguru import logger
from typing import Any, Optional
from contextvars import ContextVar
import sys

_check_state: ContextVar[Optional[Any]] = ContextVar('check_state', default=None)

# time │ level │ function @ line ║ message
logger_format = (
    "<green>{time:HH:mm:ss}</green> │ "
    "<level>{level: <7}</level> │ "
    "<cyan>{function: <20}</cyan> @ "
    "<cyan>{line: <4}</cyan> ║ "
    "<level>{message}</level>"
)

logger.remove()
logger.add(sys.stderr, format=logger_format, level="DEBUG")


def state_connectToLogger(state: Any) -> None:
    """Bind a CheckState (anything with a ``verbosity``) to this context"""
    _check_state.set(state)


def LOG(message: str, level: int = 1, **kwargs: Any) -> None:
    """
    Emit a debug record when the bound state's verbosity reaches ``level``.

    Levels: 1 for run milestones, 2 for per-slide progress, 3 for
    navigation and payload details. Nothing is emitted when no state is
    bound. The record reports the caller's function and line.
    """
    state = _check_state.get()
    if state is not None and getattr(state, 'verbosity', 0) >= level:
        logger.opt(depth=1).debug(message, **kwargs)


def WARN(message: str, **kwargs: Any) -> None:
    logger.opt(depth=1).warning(message, **kwargs)
