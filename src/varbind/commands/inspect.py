"""Read-only commands - check, scope, usage, eval"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.markup import escape
from rich.table import Table

from varbind.exceptions import ParseError, UnknownIdentifierError, VarbindError
from varbind.expression import evaluate_expression, format_value, validate_expression
from varbind.expression.format import format_value_preview
from varbind.models import Prop, ValueVariable
from varbind.scope import variable_aliases

from .utils import FileOption, ProjectContext, console, handle_error, load_project, setup_logging

log = logging.getLogger(__name__)

KIND_COLORS = {
    "value": "green",
    "resource": "blue",
    "parameter": "magenta",
}


def _prop_problems(ctx: ProjectContext, prop: Prop) -> list[str]:
    """Messages for one expression or action prop, empty when it is valid"""
    if prop.kind == "literal":
        return []

    try:
        selector = ctx.project.selector(prop.instance_id)
    except VarbindError as e:
        return [e.message]
    aliases = variable_aliases(ctx.service.visible(selector))

    if prop.kind == "expression":
        sources = [(prop.value, False, ())]
    else:
        sources = [(step.code, True, step.args) for step in prop.value]

    problems: list[str] = []
    for code, effectful, args in sources:

        def check(identifier: str, args=args) -> str:
            # action arguments are locals of the step
            if identifier not in aliases and identifier not in args:
                raise UnknownIdentifierError(identifier)
            return identifier

        try:
            validate_expression(
                code,
                effectful=effectful,
                transform_identifier=check,
                effects=ctx.settings.effects,
            )
        except (ParseError, UnknownIdentifierError) as e:
            problems.append(e.message)
    return problems


def check_command(
    file_path: Optional[Path] = FileOption,
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Verbose output."),
) -> None:
    """Validate every expression and action prop of the project."""
    setup_logging(verbose)
    try:
        ctx = load_project(file_path)
    except VarbindError as e:
        handle_error(e)

    failed = 0
    for prop in ctx.store.props.values():
        problems = _prop_problems(ctx, prop)
        for problem in problems:
            console.print(
                f"[red]✗[/red] {prop.instance_id}.{prop.name} ({prop.id}): {escape(problem)}"
            )
        if problems:
            failed += 1
        else:
            log.info(f"Prop {prop.id} ok")

    if failed:
        console.print(f"[red]{failed} invalid prop(s)[/red]")
        raise typer.Exit(code=1)
    console.print(f"[green]✓[/green] {len(ctx.store.props)} props ok")


def scope_command(
    instance_id: str = typer.Argument(..., help="Instance to list variables for."),
    file_path: Optional[Path] = FileOption,
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Verbose output."),
) -> None:
    """List variables visible at an instance."""
    setup_logging(verbose)
    try:
        ctx = load_project(file_path)
        selector = ctx.project.selector(instance_id)
    except VarbindError as e:
        handle_error(e)

    visible = ctx.service.visible(selector)
    if not visible:
        console.print(f"[yellow]No variables visible at {instance_id}[/yellow]")
        return

    table = Table()
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Kind")
    table.add_column("Scope")
    table.add_column("Value")

    for variable in visible:
        color = KIND_COLORS.get(variable.kind, "white")
        value = (
            format_value_preview(variable.value.value)
            if isinstance(variable, ValueVariable)
            else ""
        )
        table.add_row(
            variable.id,
            variable.name,
            f"[{color}]{variable.kind}[/{color}]",
            variable.scope_instance_id,
            value,
        )

    console.print(table)


def usage_command(
    file_path: Optional[Path] = FileOption,
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Verbose output."),
) -> None:
    """Show which variables are used by props and which can be deleted."""
    setup_logging(verbose)
    try:
        ctx = load_project(file_path)
    except VarbindError as e:
        handle_error(e)

    variables = list(ctx.store.variables.values())
    if not variables:
        console.print("[yellow]No variables found[/yellow]")
        return

    table = Table()
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Kind")
    table.add_column("Used")
    table.add_column("Deletable")

    tracker = ctx.service.tracker
    for variable in variables:
        color = KIND_COLORS.get(variable.kind, "white")
        table.add_row(
            variable.id,
            variable.name,
            f"[{color}]{variable.kind}[/{color}]",
            "yes" if tracker.is_used(variable.id) else "no",
            "yes" if tracker.is_deletable(variable) else "no",
        )

    console.print(table)


def eval_command(
    text: str = typer.Argument(..., help="Literal expression to evaluate."),
) -> None:
    """Evaluate a literal expression and print the value as JSON."""
    setup_logging()
    try:
        value = evaluate_expression(text)
    except VarbindError as e:
        handle_error(e)
    typer.echo(format_value(value))
