import os
import sys

from pygments import highlight, lexers, formatters
from rich.console import Console
from tabulate import tabulate
from termcolor import colored

from . import json_utils


def useColors():
    """
    Return true if we should use ANSI colors in the output.
    :return: True if ANSI colors should be used, False otherwise.
    """
    # Check if stdout is a tty (i.e., terminal)
    if not sys.stdout.isatty():
        return False

    # Optionally, disable colors if the NO_COLOR environment variable is set
    if "NO_COLOR" in os.environ:
        return False

    term = os.environ.get("TERM", "")
    if term == "dumb":
        return False

    return True

def prettyFormatJson(data, use_colors: bool = None) -> str:
    """
    Pretty format a JSON document, optionally with ANSI colors.

    :param data: JSON text or an already parsed value. Text that is not valid JSON is returned as is.
    :param use_colors: Whether to use ANSI colors.
    :return: The formatted string.
    """
    if isinstance(data, str):
        parsed = json_utils.try_loads(data)
        if parsed is None and data.strip() != 'null':
            return data
        data = parsed
    formatted_json = json_utils.dumps(data, sort_keys=True, indent=2)

    use_colors = (use_colors if use_colors is not None else useColors())
    if use_colors:
        return highlight(formatted_json, lexers.JsonLexer(), formatters.TerminalFormatter())
    return formatted_json

def formatTable(rows: dict) -> str:
    """Two column table of field names and values."""
    return tabulate([(k, v) for k, v in rows.items()], headers=['field', 'value'], tablefmt='simple')

def getConsole() -> Console:
    return Console(highlight=False)

def printStatus(message: str) -> None:
    getConsole().print(f"[bold cyan]{message}[/bold cyan]")

def printError(message: str) -> None:
    sys.stderr.write(colored(message, 'red') + "\n")
    sys.stderr.flush()
