"""Output utilities shared by core operations and CLI commands.

user_output is for messages meant for the person at the terminal and goes to
stderr. machine_output is for data other programs may consume and goes to
stdout.
"""

from typing import Any

import click


def user_output(message: Any = "", nl: bool = True) -> None:
    """Print a user-facing message to stderr."""
    click.echo(message, err=True, nl=nl)


def machine_output(message: Any = "", nl: bool = True) -> None:
    """Print structured output to stdout."""
    click.echo(message, nl=nl)


def success_mark() -> str:
    return click.style("✓ ", fg="green")


def failure_mark() -> str:
    return click.style("✗ ", fg="red")
