"""Varbind Exceptions

Custom exceptions for expression validation, variable edits and transactions.
"""

from __future__ import annotations

from collections.abc import Iterable


class VarbindError(Exception):
    """Base exception for all varbind errors."""

    def __init__(self, message: str, exit_code: int = 1) -> None:
        self.message = message
        self.exit_code = exit_code
        super().__init__(message)


class ParseError(VarbindError):
    """Raised when expression text is malformed or uses a disallowed construct."""

    def __init__(self, message: str, line: int | None = None, column: int | None = None):
        self.line = line
        self.column = column
        if line is not None and column is not None:
            message = f"{message} (line {line}, column {column})"
        super().__init__(message)


class UnknownIdentifierError(VarbindError):
    """Raised when an identifier is not in the allowed set."""

    def __init__(self, identifier: str):
        self.identifier = identifier
        super().__init__(f'Unknown variable "{identifier}"')


class ValueDependsOnVariablesError(VarbindError):
    """Raised when a variable value references other variables."""

    def __init__(self, identifiers: Iterable[str]):
        self.identifiers = list(identifiers)
        super().__init__(
            f"Cannot use variables {', '.join(self.identifiers)} as variable value"
        )


class EvaluationError(VarbindError):
    """Raised when a literal expression cannot be reduced to a value."""

    pass


class DeletionBlockedError(VarbindError):
    """Raised when deleting a variable that must be kept."""

    def __init__(self, variable_id: str, reason: str = "in-use"):
        self.variable_id = variable_id
        self.reason = reason
        if reason == "parameter":
            message = f"Parameter variable cannot be deleted: {variable_id}"
        else:
            message = f"Variable is used by props and cannot be deleted: {variable_id}"
        super().__init__(message)


class TransactionAbortError(VarbindError):
    """Raised when a transaction is discarded without committing."""

    pass


class VariableNotFoundError(VarbindError):
    """Raised when a variable is not found."""

    def __init__(self, variable_id: str):
        self.variable_id = variable_id
        super().__init__(f"Variable not found: {variable_id}")


class VariableNameRequiredError(VarbindError):
    """Raised when saving a variable without a name."""

    def __init__(self) -> None:
        super().__init__("Variable name is required")


class NoInstanceSelectedError(VarbindError):
    """Raised when an operation needs a selected instance and has none."""

    def __init__(self) -> None:
        super().__init__("No instance selected")


class InstanceNotFoundError(VarbindError):
    """Raised when a variable would be scoped to an unknown instance."""

    def __init__(self, instance_id: str):
        self.instance_id = instance_id
        super().__init__(f"Instance not found: {instance_id}")


class SessionStateError(VarbindError):
    """Raised when an edit session action is not valid in its current state."""

    def __init__(self, action: str, state: str):
        self.action = action
        self.state = state
        super().__init__(f"Cannot {action} while {state}")


class ProjectFileError(VarbindError):
    """Raised when a project file cannot be loaded."""

    def __init__(self, path: str, reason: str):
        self.path = path
        super().__init__(f"Invalid project file {path}: {reason}", exit_code=2)
