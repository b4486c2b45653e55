"""
chameo console utilities

This module provides application-wide access to Rich Console objects for
writing status lines to stdout and stderr. Every message chameo prints goes
through one of the formatting helpers below.
"""

from rich.console import Console
from rich.theme import Theme

chameo_theme = Theme(
    {"warning": "orange_red1", "fail": "bold red", "confirm": "", "describe": ""}
)

console = Console(theme=chameo_theme)
error_console = Console(theme=chameo_theme, stderr=True)


def quiet():
    """
    Silence everything printed to stdout. Warnings and failures still reach stderr.
    """

    console.quiet = True


"""
Formatting helpers
"""


def warn(msg: str):
    """
    Format msg and print to stderr.
    """

    error_console.print(
        f":exclamation_mark-emoji: [bold]warning: [/] {msg}", style="warning"
    )


def describe(msg: str, **kwargs):
    """
    Format descriptive msg and print to stdout.
    """

    console.print(f"{msg}", style="describe", **kwargs)


def confirm_success(msg: str, **kwargs):
    """
    Format confirmation msg and print to stdout. Accept any additional kwargs that console.print from
    rich module exposes.
    """

    console.print(f"{msg}", style="confirm", **kwargs)


def fail(msg: str):
    """
    Format failure msg and print to stderr.
    """

    error_console.print(f":x-emoji: failed. {msg}", style="fail")
