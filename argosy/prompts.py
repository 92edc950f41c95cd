"""
Interactive prompting for arguments declared with ``interactive=True``.

The prompt is the only blocking operation of a parse. It never waits on a
stream that is not a terminal: without one, InteractiveUnavailableError is
raised at once.
"""
import logging
import sys

from rich.console import Console
from rich.prompt import Prompt

from .faults import FaultCode, InteractiveUnavailableError, getdoc
from .utils import *

logger = logging.getLogger(__name__)


def ask(argument, /, *, console=Unset, stream=Unset):
    """
    Ask the user for the value of argument and return the raw answer.

    The question is the argument's prompt, or "Enter value for <label>: ".
    Masked arguments (mask=True) do not echo what is typed.
    """
    stream = coalesce(stream, sys.stdin)
    if stream is None or not stream.isatty():
        raise InteractiveUnavailableError(
            "cannot prompt for %s: standard input is not a terminal" % argument,
            code=FaultCode.INTERACTIVE_UNAVAILABLE,
            argument=argument,
            hint="pass the value on the command line instead",
            docs=getdoc(FaultCode.INTERACTIVE_UNAVAILABLE),
        )
    question = coalesce(argument.prompt, "Enter value for %s" % argument)
    logger.debug("prompting for %r", argument)
    return Prompt.ask(question, console=coalesce(console, Console(stderr=True)), password=argument.mask, stream=stream)


__all__ = (
    "ask",
)
