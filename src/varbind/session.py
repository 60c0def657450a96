"""Variable edit session

State machine behind the variables popover:

    closed -> editing_list -> editing_one (value | resource tab) -> editing_list

`cancel` steps back one level without touching the store. `save_*` only
leaves `editing_one` when the transaction succeeded, otherwise the error is
kept on the session for display.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any, Literal

from varbind.exceptions import (
    ParseError,
    SessionStateError,
    VarbindError,
    VariableNameRequiredError,
)
from varbind.expression.format import format_value, format_value_preview
from varbind.expression.validator import expression_variables
from varbind.models import Prop, Resource, ValueVariable, Variable
from varbind.operations import VariablesService

log = logging.getLogger(__name__)

Tab = Literal["value", "resource"]


class SessionState(str, Enum):
    CLOSED = "closed"
    EDITING_LIST = "editing_list"
    EDITING_ONE = "editing_one"


class VariableEditSession:
    """One user's variable editing flow for the selected instance."""

    def __init__(self, service: VariablesService, selector: Sequence[str] | None):
        self.service = service
        self.selector = selector
        self.state = SessionState.CLOSED
        self.variable: Variable | None = None
        self.tab: Tab | None = None
        self.name_errors: list[str] = []
        self.value_errors: list[str] = []

    def _require(self, action: str, *states: SessionState) -> None:
        if self.state not in states:
            raise SessionStateError(action, self.state.value)

    def _reset_one(self) -> None:
        self.variable = None
        self.tab = None
        self.name_errors = []
        self.value_errors = []

    # --- Navigation ---

    def open(self) -> None:
        self._require("open", SessionState.CLOSED)
        self.state = SessionState.EDITING_LIST

    def add(self) -> None:
        self._require("add a variable", SessionState.EDITING_LIST)
        self._reset_one()
        self.state = SessionState.EDITING_ONE
        self.tab = "value"

    def edit(self, variable: Variable) -> None:
        self._require("edit a variable", SessionState.EDITING_LIST)
        self._reset_one()
        self.state = SessionState.EDITING_ONE
        self.variable = variable
        self.tab = "resource" if variable.kind == "resource" else "value"

    def select_tab(self, tab: Tab) -> None:
        self._require("switch tabs", SessionState.EDITING_ONE)
        # user can change only parameter name
        if self.variable is not None and self.variable.kind == "parameter":
            raise SessionStateError("switch tabs", "editing a parameter")
        self.tab = tab

    def cancel(self) -> None:
        if self.state == SessionState.EDITING_ONE:
            self._reset_one()
            self.state = SessionState.EDITING_LIST
        elif self.state == SessionState.EDITING_LIST:
            self.state = SessionState.CLOSED

    def close(self) -> None:
        self._reset_one()
        self.state = SessionState.CLOSED

    # --- Editing ---

    @property
    def initial_name(self) -> str:
        return self.variable.name if self.variable is not None else ""

    @property
    def initial_value_text(self) -> str:
        """Editor text for the value tab"""
        if isinstance(self.variable, ValueVariable):
            return format_value(self.variable.value.value)
        return format_value("")

    def save_value(self, name: str, text: str) -> Variable:
        self._require("save", SessionState.EDITING_ONE)
        return self._save(lambda: self.service.save(self.selector, self.variable, name, text))

    def save_resource(self, name: str, resource: Resource) -> Variable:
        self._require("save", SessionState.EDITING_ONE)
        return self._save(
            lambda: self.service.save_resource(self.selector, self.variable, name, resource)
        )

    def _save(self, action) -> Variable:
        self.name_errors = []
        self.value_errors = []
        try:
            saved = action()
        except VariableNameRequiredError as e:
            self.name_errors = [e.message]
            raise
        except VarbindError as e:
            log.debug(f"Save failed: {e.message}")
            self.value_errors = [e.message]
            raise
        self._reset_one()
        self.state = SessionState.EDITING_LIST
        return saved


# =============================================================================
# Variable list
# =============================================================================


@dataclass
class VariableListItem:
    variable: Variable
    value: Any
    label: str
    # referenced by the prop being edited
    selected: bool
    deletable: bool


def variable_values(
    variables: Sequence[Variable], runtime_values: Mapping[str, Any] | None = None
) -> dict[str, Any]:
    """Current value per variable id.

    Runtime values (resources, parameters) come from the resource execution
    side; value variables fall back to their own literal.
    """
    runtime_values = runtime_values or {}
    values: dict[str, Any] = {}
    for variable in variables:
        if variable.id in runtime_values:
            values[variable.id] = runtime_values[variable.id]
        elif isinstance(variable, ValueVariable):
            values[variable.id] = variable.value.value
    return values


def _prop_variables(prop: Prop | None) -> set[str]:
    if prop is None or prop.kind != "expression":
        return set()
    try:
        return expression_variables(prop.value)
    except ParseError as e:
        log.debug(f"Prop {prop.id} has a malformed expression: {e}")
        return set()


def variable_list_items(
    service: VariablesService,
    selector: Sequence[str] | None,
    prop: Prop | None,
    runtime_values: Mapping[str, Any] | None = None,
) -> list[VariableListItem]:
    """Rows of the variables list for the selected instance and prop."""
    visible = service.visible(selector)
    values = variable_values(visible, runtime_values)
    selected = _prop_variables(prop)

    items: list[VariableListItem] = []
    for variable in visible:
        value = values.get(variable.id)
        has_value = variable.id in values
        label = (
            f"{variable.name}: {format_value_preview(value)}" if has_value else variable.name
        )
        items.append(
            VariableListItem(
                variable=variable,
                value=value,
                label=label,
                selected=variable.id in selected,
                deletable=service.tracker.is_deletable(variable),
            )
        )
    return items
