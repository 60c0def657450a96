"""Variable and prop operations

Every operation validates its input first and then runs exactly one
transaction, so a failed save never leaves partial state behind.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from uuid_extensions import uuid7str

from varbind.config import DEFAULT_COLLECTION_COMPONENT, VarbindSettings
from varbind.dependencies import DependencyTracker, ensure_deletable, used_variables
from varbind.exceptions import (
    InstanceNotFoundError,
    NoInstanceSelectedError,
    UnknownIdentifierError,
    VariableNameRequiredError,
    VariableNotFoundError,
)
from varbind.expression.codec import encode_variable
from varbind.expression.evaluator import parse_variable_value
from varbind.expression.validator import validate_expression
from varbind.models import (
    ExpressionPropValue,
    ParameterVariable,
    Prop,
    PropMeta,
    PropValue,
    Resource,
    ResourceVariable,
    ValueVariable,
    Variable,
    make_prop,
)
from varbind.scope import variable_aliases, visible_variables
from varbind.store import CollectionView, Store

log = logging.getLogger(__name__)


def _require_instance(selector: Sequence[str] | None) -> str:
    if not selector:
        raise NoInstanceSelectedError()
    return selector[0]


def _require_name(name: str) -> None:
    if len(name) == 0:
        raise VariableNameRequiredError()


def _check_scope(store: Store, variable_id: str, instance_id: str) -> None:
    """New variables are scoped to the selected instance, which must exist"""
    if variable_id in store.variables:
        return
    if store.instances.component_of(instance_id) is None:
        raise InstanceNotFoundError(instance_id)


def _scope_for(variables: CollectionView, variable_id: str, instance_id: str) -> str:
    # preserve existing instance scope when edit
    existing = variables.get(variable_id)
    return existing.scope_instance_id if existing is not None else instance_id


# =============================================================================
# Variables
# =============================================================================


def rename_variable(store: Store, variable: Variable, name: str) -> Variable:
    """Rename any variable kind, touches variables only."""
    _require_name(name)
    if variable.id not in store.variables:
        raise VariableNotFoundError(variable.id)

    def mutate(variables: CollectionView) -> Variable:
        renamed = variables[variable.id].model_copy(update={"name": name})
        variables.set(variable.id, renamed)
        return renamed

    renamed = store.transact(["variables"], mutate)
    log.info(f"Renamed variable {variable.id} to {name!r}")
    return renamed


def save_variable(
    store: Store,
    selector: Sequence[str] | None,
    variable: Variable | None,
    name: str,
    text: str,
) -> Variable:
    """Create or update a value variable from expression text.

    Parameters can only be renamed. A resource variable is converted and its
    resource entry deleted in the same transaction.

    Raises:
        VariableNameRequiredError: Empty name.
        ParseError, ValueDependsOnVariablesError, EvaluationError: Bad value
            text, nothing is written.
        NoInstanceSelectedError: No selector for a new variable.
    """
    _require_name(name)
    if isinstance(variable, ParameterVariable):
        return rename_variable(store, variable, name)

    value = parse_variable_value(text)
    instance_id = _require_instance(selector)
    variable_id = variable.id if variable is not None else uuid7str()
    _check_scope(store, variable_id, instance_id)

    def mutate(variables: CollectionView, resources: CollectionView) -> Variable:
        existing = variables.get(variable_id)
        # cleanup resource when value variable is set
        if isinstance(existing, ResourceVariable):
            resources.delete(existing.resource_id)
        saved = ValueVariable(
            id=variable_id,
            scope_instance_id=_scope_for(variables, variable_id, instance_id),
            name=name,
            value=value,
        )
        variables.set(variable_id, saved)
        return saved

    saved = store.transact(["variables", "resources"], mutate)
    log.info(f"Saved value variable {saved.id} ({name!r})")
    return saved


def save_resource_variable(
    store: Store,
    selector: Sequence[str] | None,
    variable: Variable | None,
    name: str,
    resource: Resource,
) -> Variable:
    """Create or update a resource variable together with its resource."""
    _require_name(name)
    if isinstance(variable, ParameterVariable):
        return rename_variable(store, variable, name)

    instance_id = _require_instance(selector)
    variable_id = variable.id if variable is not None else uuid7str()
    _check_scope(store, variable_id, instance_id)

    def mutate(variables: CollectionView, resources: CollectionView) -> Variable:
        existing = variables.get(variable_id)
        if isinstance(existing, ResourceVariable) and existing.resource_id != resource.id:
            resources.delete(existing.resource_id)
        resources.set(resource.id, resource)
        saved = ResourceVariable(
            id=variable_id,
            scope_instance_id=_scope_for(variables, variable_id, instance_id),
            name=name,
            resource_id=resource.id,
        )
        variables.set(variable_id, saved)
        return saved

    saved = store.transact(["variables", "resources"], mutate)
    log.info(f"Saved resource variable {saved.id} ({name!r})")
    return saved


def delete_variable(
    store: Store,
    variable_id: str,
    tracker: DependencyTracker | None = None,
    effects: Iterable[str] | None = None,
) -> None:
    """Delete a variable no prop references.

    Without a tracker the props are scanned here, with `effects` as the
    action whitelist so steps calling custom effects still count.

    Raises:
        VariableNotFoundError: Unknown id.
        DeletionBlockedError: The variable is a parameter or still in use.
    """
    variable = store.variables.get(variable_id)
    if variable is None:
        raise VariableNotFoundError(variable_id)
    if tracker is not None:
        tracker.ensure_deletable(variable)
    else:
        ensure_deletable(variable, used_variables(store.props.values(), effects))

    store.transact(["variables"], lambda variables: variables.delete(variable_id))
    log.info(f"Deleted variable {variable_id}")


# =============================================================================
# Props
# =============================================================================


def set_prop_value(
    store: Store,
    selector: Sequence[str] | None,
    prop_id: str | None,
    prop_name: str,
    prop_value: PropValue,
) -> Prop:
    """Create the prop on the selected instance or replace its value."""
    instance_id = _require_instance(selector)

    def mutate(props: CollectionView) -> Prop:
        prop = props.get(prop_id) if prop_id is not None else None
        if prop is None:
            prop = make_prop(uuid7str(), instance_id, prop_name, prop_value)
        else:
            prop = make_prop(prop.id, prop.instance_id, prop.name, prop_value)
        props.set(prop.id, prop)
        return prop

    return store.transact(["props"], mutate)


def bind_variable(
    store: Store,
    selector: Sequence[str] | None,
    prop_id: str | None,
    prop_name: str,
    variable: Variable,
    collection_component: str = DEFAULT_COLLECTION_COMPONENT,
) -> Prop:
    """Bind a prop to exactly one variable visible at the selected instance."""
    visible = visible_variables(
        selector, store.variables.values(), store.instances, collection_component
    )
    identifier = encode_variable(variable.id)
    if all(candidate.id != variable.id for candidate in visible):
        raise UnknownIdentifierError(identifier)
    return set_prop_value(
        store, selector, prop_id, prop_name, ExpressionPropValue(value=identifier)
    )


def remove_expression(
    store: Store,
    selector: Sequence[str] | None,
    prop_id: str | None,
    prop_name: str,
    prop_meta: PropMeta | None,
) -> Prop | None:
    """Reset a prop to its starting literal, or delete it when there is none."""
    starting_value = prop_meta.starting_value() if prop_meta is not None else None
    if starting_value is not None:
        return set_prop_value(store, selector, prop_id, prop_name, starting_value)
    if prop_id is not None:
        store.transact(["props"], lambda props: props.delete(prop_id))
        log.info(f"Deleted prop {prop_id}")
    return None


def set_prop_expression(
    store: Store,
    selector: Sequence[str] | None,
    prop_id: str | None,
    prop_name: str,
    text: str,
    prop_meta: PropMeta | None = None,
    collection_component: str = DEFAULT_COLLECTION_COMPONENT,
) -> Prop | None:
    """Bind a prop to free expression text.

    Blank text removes the expression. Every identifier must be a variable
    visible at the selected instance.
    """
    if text.strip() == "":
        return remove_expression(store, selector, prop_id, prop_name, prop_meta)

    aliases = variable_aliases(
        visible_variables(
            selector, store.variables.values(), store.instances, collection_component
        )
    )

    def check(identifier: str) -> str:
        if identifier not in aliases:
            raise UnknownIdentifierError(identifier)
        return identifier

    code = validate_expression(text, transform_identifier=check)
    return set_prop_value(
        store, selector, prop_id, prop_name, ExpressionPropValue(value=code)
    )


# =============================================================================
# Service - operations bound to one store and its settings
# =============================================================================


class VariablesService:
    """Orchestrates variable and prop edits on one store."""

    def __init__(self, store: Store, settings: VarbindSettings | None = None):
        self.store = store
        self.settings = settings or VarbindSettings()
        self.tracker = DependencyTracker(store, self.settings.effects)

    def visible(self, selector: Sequence[str] | None) -> list[Variable]:
        return visible_variables(
            selector,
            self.store.variables.values(),
            self.store.instances,
            self.settings.collection_component,
        )

    def save(
        self,
        selector: Sequence[str] | None,
        variable: Variable | None,
        name: str,
        text: str,
    ) -> Variable:
        return save_variable(self.store, selector, variable, name, text)

    def save_resource(
        self,
        selector: Sequence[str] | None,
        variable: Variable | None,
        name: str,
        resource: Resource,
    ) -> Variable:
        return save_resource_variable(self.store, selector, variable, name, resource)

    def rename(self, variable: Variable, name: str) -> Variable:
        return rename_variable(self.store, variable, name)

    def delete(self, variable_id: str) -> None:
        delete_variable(self.store, variable_id, self.tracker)

    def bind(
        self,
        selector: Sequence[str] | None,
        prop_id: str | None,
        prop_name: str,
        variable: Variable,
    ) -> Prop:
        return bind_variable(
            self.store,
            selector,
            prop_id,
            prop_name,
            variable,
            self.settings.collection_component,
        )

    def set_expression(
        self,
        selector: Sequence[str] | None,
        prop_id: str | None,
        prop_name: str,
        text: str,
        prop_meta: PropMeta | None = None,
    ) -> Prop | None:
        return set_prop_expression(
            self.store,
            selector,
            prop_id,
            prop_name,
            text,
            prop_meta,
            self.settings.collection_component,
        )

    def remove_expression(
        self,
        selector: Sequence[str] | None,
        prop_id: str | None,
        prop_name: str,
        prop_meta: PropMeta | None,
    ) -> Prop | None:
        return remove_expression(self.store, selector, prop_id, prop_name, prop_meta)
