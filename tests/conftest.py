"""Shared fixtures: a small page tree with a collection and its item."""

import pytest

from varbind.models import (
    ExpressionProp,
    Instance,
    NumberValue,
    ParameterVariable,
    ValueVariable,
)
from varbind.operations import VariablesService
from varbind.store import Store

# body > list (collection) > card
INSTANCES = {
    "body": Instance(id="body", component="Body"),
    "list": Instance(id="list", component="ws:collection"),
    "card": Instance(id="card", component="Box"),
}

BODY = ["body"]
LIST = ["list", "body"]
CARD = ["card", "list", "body"]


@pytest.fixture
def instances():
    return dict(INSTANCES)


@pytest.fixture
def store(instances):
    return Store(instances=instances)


@pytest.fixture
def service(store):
    return VariablesService(store)


@pytest.fixture
def populated_store(instances):
    """Store with a body variable, a collection item and a bound prop."""
    count = ValueVariable(
        id="count", name="count", scope_instance_id="body", value=NumberValue(value=0)
    )
    item = ParameterVariable(id="item", name="item", scope_instance_id="list")
    prop = ExpressionProp(
        id="p1", instance_id="card", name="children", value="$ws$dataSource$item"
    )
    return Store(
        variables={count.id: count, item.id: item},
        props={prop.id: prop},
        instances=instances,
    )


@pytest.fixture
def populated_service(populated_store):
    return VariablesService(populated_store)
