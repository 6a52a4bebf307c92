"""
Verbosity-gated logging for annotext

LOG() writes through loguru when the ProgramState connected to the current
context asks for that much detail. The conversion code itself never sees
the state: the CLI connects it once with state_connectToLogger() and every
parser, converter and builder call made in that context inherits it.
Library callers that never connect a state get no output at all.

Levels used across the package:
    1: pipeline progress ("Parsing Markdown...")
    2: per-document summaries (runs, placeholders, rejected node settings)
    3: per-node traces (unlocatable tokens, degraded nodes, token dumps)

Nodes the builder or the tree converter cannot render as parsed are
reported through degradation_log(), so every such trace names the node
kind, its source span and what became of it in the same words.
"""

import sys
from contextvars import ContextVar
from typing import Any, Optional

from loguru import logger

_program_state: ContextVar[Optional[Any]] = ContextVar('program_state', default=None)

logger_format = (
    "<green>{time:HH:mm:ss}</green> │ "
    "<level>{level: <5}</level> │ "
    "<cyan>{function: <20}</cyan> @ "
    "<cyan>{line: <4}</cyan> ║ "
    "<level>{message}</level>"
)

logger.remove()
logger.add(sys.stderr, format=logger_format, level="DEBUG")


def state_connectToLogger(state: Any) -> None:
    """
    Make a ProgramState's verbosity govern LOG() in the current context.

    Args:
        state: Object with an integer verbosity attribute
    """
    _program_state.set(state)


def LOG(message: str, level: int = 1, **kwargs: Any) -> None:
    """
    Log message if the connected state's verbosity is at least level.

    Args:
        message: Log message to display
        level: Minimum verbosity required (see module docstring)
        **kwargs: Additional loguru metadata

    Example:
        LOG("Parsing Markdown...", level=1)
        LOG("Annotated 120 source characters as 98 plain characters", level=2)
    """
    state = _program_state.get()

    if state and hasattr(state, 'verbosity') and state.verbosity >= level:
        # report the caller of LOG, not LOG itself
        logger.opt(depth=1).debug(message, **kwargs)


def degradation_log(subject: str, start: int, end: Optional[int], outcome: str) -> None:
    """
    Trace a node that could not be rendered the way it was parsed.

    Args:
        subject: Node kind or markdown-it token type
        start: Source offset of the node
        end: End offset, or None when only the position is known
        outcome: What was done instead, e.g. "dropping it"

    Example:
        >>> degradation_log("MathInline", 4, 9, "no usable content region, dropping it")
    """
    where = f"{start}-{end}" if end is not None else f"near {start}"
    state = _program_state.get()
    if state and hasattr(state, 'verbosity') and state.verbosity >= 3:
        logger.opt(depth=1).debug(f"{subject} at {where}: {outcome}")
