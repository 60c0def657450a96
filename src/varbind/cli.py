"""Varbind CLI Main Entry Point

Usage:
    varbind check                          # Validate expression and action props
    varbind scope <instance>               # Variables visible at an instance
    varbind usage                          # Used and deletable variables
    varbind eval '<expr>'                  # Evaluate a literal expression
    varbind set-value <instance> <name> '<expr>' [--id VAR]
    varbind delete <variable>
    varbind bind <instance> <prop> <variable>
    varbind expr <instance> <prop> ['<expr>'] [--type TYPE]
    varbind --version
"""

from __future__ import annotations

import typer

from ._version import __version__
from .commands import (
    bind_command,
    check_command,
    delete_command,
    eval_command,
    expression_command,
    scope_command,
    set_value_command,
    usage_command,
)

app = typer.Typer(
    help="Variables, scopes and expression bindings for a page tree.",
    no_args_is_help=True,
)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"varbind {__version__}")
        raise typer.Exit()


@app.callback()
def callback(
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    pass


app.command("check")(check_command)
app.command("scope")(scope_command)
app.command("usage")(usage_command)
app.command("eval")(eval_command)
app.command("set-value")(set_value_command)
app.command("delete")(delete_command)
app.command("bind")(bind_command)
app.command("expr")(expression_command)


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
