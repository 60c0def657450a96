"""Shared utilities for CLI commands"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import NoReturn

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from varbind.config import VarbindSettings, debug_enabled
from varbind.exceptions import ProjectFileError, VarbindError
from varbind.operations import VariablesService
from varbind.project import PROJECT_FILE, ProjectFile
from varbind.store import Store, TransactionLog

console = Console()
err_console = Console(stderr=True)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the varbind CLI.

    Log levels:
    - Normal: Only warnings/errors shown
    - Verbose (-v): INFO level - shows saved/deleted variables
    - Debug (VARBIND_DEBUG=1): DEBUG level - shows parsing and transactions
    """
    if debug_enabled():
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING

    handler = RichHandler(
        console=err_console,
        show_time=verbose,
        show_path=debug_enabled(),
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))

    logger = logging.getLogger("varbind")
    logger.setLevel(level)
    logger.handlers = [handler]
    logger.propagate = False


def exit_with_error(message: str, exit_code: int = 1) -> NoReturn:
    """Exit the program with an error message."""
    err_console.print(f"[red]Error:[/red] {escape(message)}")
    sys.exit(exit_code)


def handle_error(error: Exception) -> NoReturn:
    """Handle and exit on varbind errors."""
    if isinstance(error, VarbindError):
        exit_with_error(error.message, error.exit_code)
    err_console.print(f"[red]Unexpected error:[/red] {escape(str(error))}")
    sys.exit(1)


@dataclass
class ProjectContext:
    """Loaded project, its store and the service editing it"""

    path: Path
    project: ProjectFile
    settings: VarbindSettings
    store: Store
    service: VariablesService

    def save(self) -> None:
        self.project.with_store(self.store).save(self.path)


def load_project(file_path: Path | None) -> ProjectContext:
    """Load the project file, searching parents of cwd when none is given"""
    path = file_path or ProjectFile.discover()
    if path is None:
        raise ProjectFileError(PROJECT_FILE, "no project file found in any parent directories")

    project = ProjectFile.load(path)
    settings = VarbindSettings.discover(path.parent.resolve())
    store = project.to_store()
    if settings.transaction_log:
        store.subscribe(TransactionLog(path.parent / settings.transaction_log))

    return ProjectContext(
        path=path,
        project=project,
        settings=settings,
        store=store,
        service=VariablesService(store, settings),
    )


FileOption = typer.Option(None, "-f", "--file", help="Path to varbind.project.yaml.")
