"""
Convenience runner: parse, report, and dispatch to the command callback.

invoke() glues the pieces together the way a program entry point usually
does:
- faults raised while parsing are surfaced with trigger(); in shell mode
  they are printed with the synopsis of the failing command and the process
  exits with status 2, otherwise they are raised;
- a matched help option prints the help page, a version option prints the
  version lines, and nothing else runs;
- otherwise the callback of the innermost matched command is called with the
  ParseResult. Exceptions raised by callbacks (ExecutionError included) pass
  through untouched.
"""
import logging
import sys

from rich.console import Console
from rich.text import Text

from .faults import ConstraintError, ParseError, trigger
from .help import Help
from .parser import Parser
from .utils import *

logger = logging.getLogger(__name__)


def invoke(spec, argv=Unset, /, *, shell=False, settings=Unset, usage=Unset, colorful=False, fancy=False, console=Unset):
    """
    Run spec against argv.

    Parameters
    - spec: root CommandSpec, or a Parser already bound to one.
    - argv: Unset (sys.argv[1:]), a shell-like string or a sequence of strings.
    - shell: print faults and exit instead of raising them.
    - settings: ParserSettings; usage: UsageSettings for help and synopsis.
    - colorful, fancy: rendering options forwarded to the faults.
    - console: rich Console receiving help and version output.

    Returns the callback's return value, or the ParseResult when the matched
    command has no callback or help/version output was requested.
    """
    parser = spec if isinstance(spec, Parser) else Parser(spec, settings)
    argv = coalesce(argv, sys.argv[1:])
    console = coalesce(console, Console())

    try:
        result = parser.parse(argv)
    except (ParseError, ConstraintError) as fault:
        command = fault.options.get("command") or parser.command
        trigger(
            fault,
            shell=shell,
            colorful=colorful,
            fancy=fancy,
            command=command,
            usage=Help(command, usage, console=console).synopsis(),
        )
        # trigger() raises outside shell mode and exits inside it
        raise

    command = result.command
    if result.help_requested:
        Help(command, usage, console=console).print()
        return result
    if result.version_requested:
        lines = next((node.version for node in reversed(command.path) if node.version), ())
        for line in lines:
            console.print(line if isinstance(line, Text) else Text(line), highlight=False)
        return result

    if command.callback is Unset:
        logger.debug("no callback bound to %r", command.qualified_name)
        return result
    logger.debug("dispatching %r", command.qualified_name)
    return command.callback(result)


__all__ = (
    "invoke",
)
