"""Scope resolution - which variables an instance can see."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from varbind.config import DEFAULT_COLLECTION_COMPONENT
from varbind.expression.codec import encode_variable
from varbind.models import InstanceTree, Variable


def visible_variables(
    selector: Sequence[str] | None,
    variables: Iterable[Variable],
    instances: InstanceTree,
    collection_component: str = DEFAULT_COLLECTION_COMPONENT,
) -> list[Variable]:
    """Variables declared by the target instance or any of its ancestors.

    Args:
        selector: Instance ids from the target up to the root, target first.
        variables: All variables, result keeps their order.
        instances: Reports the component of the target instance.
        collection_component: A collection's own parameter (its item) is
            hidden from the collection instance itself, it only exists for
            the children rendered per item.
    """
    if not selector:
        return []

    instance_id = selector[0]
    scope = set(selector)
    is_collection = instances.component_of(instance_id) == collection_component

    matched: list[Variable] = []
    for variable in variables:
        if (
            variable.kind == "parameter"
            and variable.scope_instance_id == instance_id
            and is_collection
        ):
            continue
        if variable.scope_instance_id in scope:
            matched.append(variable)
    return matched


def variable_aliases(variables: Iterable[Variable]) -> dict[str, str]:
    """Encoded identifier -> variable name, the identifiers an editor may use"""
    return {encode_variable(variable.id): variable.name for variable in variables}
