"""Editing commands - set-value, delete, bind, expr

Each command runs one operation on the loaded project and writes the
project file back only when it succeeded.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer

from varbind.exceptions import VarbindError, VariableNotFoundError
from varbind.expression import format_value
from varbind.models import Prop, PropMeta

from .utils import FileOption, ProjectContext, console, handle_error, load_project, setup_logging

log = logging.getLogger(__name__)


def _find_prop(ctx: ProjectContext, instance_id: str, prop_name: str) -> Prop | None:
    for prop in ctx.store.props.values():
        if prop.instance_id == instance_id and prop.name == prop_name:
            return prop
    return None


def set_value_command(
    instance_id: str = typer.Argument(..., help="Instance the variable is scoped to."),
    name: str = typer.Argument(..., help="Variable name."),
    text: str = typer.Argument(..., help="Literal expression for the value."),
    variable_id: Optional[str] = typer.Option(
        None, "--id", help="Update this variable instead of creating one."
    ),
    file_path: Optional[Path] = FileOption,
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Verbose output."),
) -> None:
    """Create or update a value variable."""
    setup_logging(verbose)
    try:
        ctx = load_project(file_path)
        variable = None
        if variable_id is not None:
            variable = ctx.store.variables.get(variable_id)
            if variable is None:
                raise VariableNotFoundError(variable_id)
        selector = ctx.project.selector(instance_id)
        saved = ctx.service.save(selector, variable, name, text)
        ctx.save()
    except VarbindError as e:
        handle_error(e)

    value = format_value(saved.value.value) if saved.kind == "value" else ""
    console.print(f"[green]✓[/green] Saved [cyan]{saved.id}[/cyan] {saved.name}")
    if value:
        typer.echo(value)


def delete_command(
    variable_id: str = typer.Argument(..., help="Variable to delete."),
    file_path: Optional[Path] = FileOption,
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Verbose output."),
) -> None:
    """Delete a variable no prop is using."""
    setup_logging(verbose)
    try:
        ctx = load_project(file_path)
        ctx.service.delete(variable_id)
        ctx.save()
    except VarbindError as e:
        handle_error(e)

    console.print(f"[green]✓[/green] Deleted [cyan]{variable_id}[/cyan]")


def bind_command(
    instance_id: str = typer.Argument(..., help="Instance owning the prop."),
    prop_name: str = typer.Argument(..., help="Prop to bind."),
    variable_id: str = typer.Argument(..., help="Variable to bind the prop to."),
    file_path: Optional[Path] = FileOption,
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Verbose output."),
) -> None:
    """Bind a prop to a variable visible at its instance."""
    setup_logging(verbose)
    try:
        ctx = load_project(file_path)
        variable = ctx.store.variables.get(variable_id)
        if variable is None:
            raise VariableNotFoundError(variable_id)
        selector = ctx.project.selector(instance_id)
        existing = _find_prop(ctx, instance_id, prop_name)
        prop = ctx.service.bind(
            selector, existing.id if existing else None, prop_name, variable
        )
        ctx.save()
    except VarbindError as e:
        handle_error(e)

    console.print(
        f"[green]✓[/green] Bound {instance_id}.{prop_name} to {variable.name} "
        f"([cyan]{prop.id}[/cyan])"
    )


def expression_command(
    instance_id: str = typer.Argument(..., help="Instance owning the prop."),
    prop_name: str = typer.Argument(..., help="Prop to bind."),
    text: str = typer.Argument("", help="Expression, empty removes the binding."),
    prop_type: Optional[str] = typer.Option(
        None,
        "--type",
        help="Declared prop type, its starting value replaces a removed expression.",
    ),
    file_path: Optional[Path] = FileOption,
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Verbose output."),
) -> None:
    """Set a prop's expression, or remove it when TEXT is empty."""
    setup_logging(verbose)
    prop_meta = PropMeta(type=prop_type) if prop_type else None
    try:
        ctx = load_project(file_path)
        selector = ctx.project.selector(instance_id)
        existing = _find_prop(ctx, instance_id, prop_name)
        prop = ctx.service.set_expression(
            selector, existing.id if existing else None, prop_name, text, prop_meta
        )
        ctx.save()
    except VarbindError as e:
        handle_error(e)

    if prop is None:
        console.print(f"[green]✓[/green] Removed {instance_id}.{prop_name}")
    elif prop.kind == "expression":
        console.print(f"[green]✓[/green] Set {instance_id}.{prop_name}")
    else:
        console.print(f"[green]✓[/green] Reset {instance_id}.{prop_name} to {prop.kind}")
