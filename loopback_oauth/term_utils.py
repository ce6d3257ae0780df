import os
import sys

import orjson
from pygments import highlight, lexers, formatters
from rich.console import Console

from .outcome import CallbackOutcome


def getConsole():
    # Progress messages go to stderr so stdout only carries the outcome.
    return Console( stderr = True, highlight = False )


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

    # Also, sometimes checking TERM helps to avoid "dumb" terminals
    term = os.environ.get("TERM", "")
    if term == "dumb":
        return False

    return True


def dumpOutcome(outcome: CallbackOutcome) -> str:
    """
    Serialize an outcome as compact JSON, for scripts consuming the CLI output.
    """
    return orjson.dumps(outcome.to_dict(), option=orjson.OPT_SORT_KEYS).decode('utf-8')


def prettyFormatOutcome(outcome: CallbackOutcome, use_colors: bool = None) -> str:
    """
    Pretty format an outcome as indented JSON, optionally with ANSI colors.

    :param outcome: The outcome to format.
    :param use_colors: Whether to use ANSI colors, detected from the terminal when None.
    :return: The formatted string.
    """
    formatted_json = orjson.dumps(outcome.to_dict(), option=orjson.OPT_INDENT_2 | orjson.OPT_SORT_KEYS).decode('utf-8')

    use_colors = (use_colors if use_colors is not None else useColors())
    if use_colors:
        result = highlight(formatted_json, lexers.JsonLexer(), formatters.TerminalFormatter())
    else:
        result = formatted_json

    return result
