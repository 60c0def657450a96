from conftest import BODY, CARD, INSTANCES, LIST

from varbind.expression.codec import encode_variable
from varbind.models import MappingInstanceTree, NumberValue, ParameterVariable, ValueVariable
from varbind.scope import variable_aliases, visible_variables

TREE = MappingInstanceTree(INSTANCES)

COUNT = ValueVariable(id="count", name="count", scope_instance_id="body", value=NumberValue(value=0))
ITEM = ParameterVariable(id="item", name="item", scope_instance_id="list")
LOCAL = ValueVariable(id="local", name="local", scope_instance_id="card", value=NumberValue(value=1))
VARIABLES = [COUNT, ITEM, LOCAL]


def ids(variables):
    return [variable.id for variable in variables]


def test_variables_of_ancestors_are_visible():
    assert ids(visible_variables(CARD, VARIABLES, TREE)) == ["count", "item", "local"]


def test_descendant_variables_are_hidden():
    assert ids(visible_variables(BODY, VARIABLES, TREE)) == ["count"]


def test_collection_does_not_see_its_own_item():
    assert ids(visible_variables(LIST, VARIABLES, TREE)) == ["count"]


def test_collection_component_is_configurable():
    visible = visible_variables(LIST, VARIABLES, TREE, collection_component="Other")
    assert ids(visible) == ["count", "item"]


def test_non_collection_keeps_own_parameters():
    slot = ParameterVariable(id="slot", name="slot", scope_instance_id="card")
    assert ids(visible_variables(CARD, [slot], TREE)) == ["slot"]


def test_no_selection_sees_nothing():
    assert visible_variables(None, VARIABLES, TREE) == []
    assert visible_variables([], VARIABLES, TREE) == []


def test_scope_is_monotonic_in_ancestors():
    """Appending ancestors after the target never hides a variable."""
    for selector in [["card"], ["card", "list"], CARD]:
        shorter = set(ids(visible_variables(selector, VARIABLES, TREE)))
        longer = set(ids(visible_variables(selector + ["root"], VARIABLES, TREE)))
        assert shorter <= longer


def test_aliases_map_encoded_ids_to_names():
    assert variable_aliases([COUNT, ITEM]) == {
        encode_variable("count"): "count",
        encode_variable("item"): "item",
    }
