"""Tests for variable and prop operations."""

import pytest

from conftest import BODY, CARD, LIST

from varbind.exceptions import (
    DeletionBlockedError,
    EvaluationError,
    InstanceNotFoundError,
    NoInstanceSelectedError,
    ParseError,
    UnknownIdentifierError,
    ValueDependsOnVariablesError,
    VariableNameRequiredError,
    VariableNotFoundError,
)
from varbind.expression.codec import encode_variable
from varbind.models import (
    ActionPropValue,
    ExpressionProp,
    LiteralProp,
    LiteralPropValue,
    NumberValue,
    ParameterVariable,
    PropMeta,
    Resource,
    ResourceVariable,
    StringValue,
    ValueVariable,
)
from varbind.operations import (
    delete_variable,
    remove_expression,
    rename_variable,
    save_variable,
    set_prop_value,
)


# =============================================================================
# End to end
# =============================================================================


def test_variable_lifecycle(service, store):
    """Create, fail to edit, bind, refuse delete, unbind, delete."""
    other = service.save(BODY, None, "a", "1")

    count = service.save(BODY, None, "count", "0")
    assert store.variables[count.id].value == NumberValue(value=0)

    with pytest.raises(ValueDependsOnVariablesError):
        service.save(BODY, count, "count", encode_variable(other.id))
    assert store.variables[count.id].value == NumberValue(value=0)

    prop = service.bind(CARD, None, "children", count)
    assert prop.kind == "expression"
    assert prop.value == encode_variable(count.id)

    with pytest.raises(DeletionBlockedError):
        service.delete(count.id)
    assert count.id in store.variables

    assert service.remove_expression(CARD, prop.id, "children", None) is None
    assert prop.id not in store.props

    service.delete(count.id)
    assert count.id not in store.variables


# =============================================================================
# Variables
# =============================================================================


class TestSaveVariable:
    def test_creates_scoped_to_selected_instance(self, service):
        variable = service.save(CARD, None, "title", '"Hello"')
        assert variable.scope_instance_id == "card"
        assert variable.value == StringValue(value="Hello")

    def test_edit_keeps_scope(self, service, store):
        variable = service.save(BODY, None, "count", "0")
        updated = service.save(CARD, variable, "total", "1")
        assert updated.id == variable.id
        assert updated.scope_instance_id == "body"
        assert store.variables[variable.id].name == "total"

    def test_name_is_required(self, service, store):
        with pytest.raises(VariableNameRequiredError):
            service.save(BODY, None, "", "0")
        assert len(store.variables) == 0

    def test_value_is_required(self, service):
        with pytest.raises(EvaluationError):
            service.save(BODY, None, "count", "")

    def test_malformed_value(self, service, store):
        with pytest.raises(ParseError):
            service.save(BODY, None, "count", "1 +")
        assert store.version("variables") == 0

    def test_needs_selection(self, service):
        with pytest.raises(NoInstanceSelectedError):
            service.save(None, None, "count", "0")

    def test_unknown_instance(self, service):
        with pytest.raises(InstanceNotFoundError):
            service.save(["ghost"], None, "count", "0")

    def test_parameter_is_only_renamed(self, populated_store):
        item = populated_store.variables["item"]
        renamed = save_variable(populated_store, CARD, item, "row", "42")
        assert isinstance(renamed, ParameterVariable)
        assert populated_store.variables["item"].name == "row"

    def test_resource_variable_becomes_value(self, service, store):
        resource = Resource(id="r1", name="posts", url="https://example.com/posts")
        variable = service.save_resource(BODY, None, "posts", resource)
        assert isinstance(variable, ResourceVariable)
        assert "r1" in store.resources

        converted = service.save(BODY, variable, "posts", "[]")
        assert isinstance(converted, ValueVariable)
        assert converted.id == variable.id
        assert "r1" not in store.resources

    def test_failed_conversion_keeps_resource(self, service, store):
        resource = Resource(id="r1", name="posts", url="https://example.com/posts")
        variable = service.save_resource(BODY, None, "posts", resource)

        with pytest.raises(ValueDependsOnVariablesError):
            service.save(BODY, variable, "posts", "other")
        assert "r1" in store.resources
        assert isinstance(store.variables[variable.id], ResourceVariable)

    def test_resource_replaced_on_edit(self, service, store):
        first = Resource(id="r1", name="posts", url="https://example.com/posts")
        variable = service.save_resource(BODY, None, "posts", first)
        second = Resource(id="r2", name="posts", url="https://example.com/v2/posts")
        service.save_resource(BODY, variable, "posts", second)
        assert list(store.resources) == ["r2"]


class TestRenameAndDelete:
    def test_rename(self, populated_store):
        count = populated_store.variables["count"]
        renamed = rename_variable(populated_store, count, "counter")
        assert renamed.name == "counter"
        assert renamed.value == count.value

    def test_rename_missing(self, store):
        ghost = ValueVariable(id="ghost", name="ghost", scope_instance_id="body", value=NumberValue(value=0))
        with pytest.raises(VariableNotFoundError):
            rename_variable(store, ghost, "x")

    def test_delete_missing(self, store):
        with pytest.raises(VariableNotFoundError):
            delete_variable(store, "ghost")

    def test_parameter_is_never_deleted(self, populated_store):
        populated_store.transact(["props"], lambda props: props.delete("p1"))
        with pytest.raises(DeletionBlockedError) as exc_info:
            delete_variable(populated_store, "item")
        assert exc_info.value.reason == "parameter"

    def test_delete_unused(self, populated_store):
        delete_variable(populated_store, "count")
        assert "count" not in populated_store.variables


# =============================================================================
# Props
# =============================================================================


class TestProps:
    def test_set_prop_value_creates_then_replaces(self, store):
        value = LiteralPropValue(type="string", value="hi")
        prop = set_prop_value(store, CARD, None, "title", value)
        assert isinstance(prop, LiteralProp)
        assert prop.instance_id == "card"

        replaced = set_prop_value(store, CARD, prop.id, "title", LiteralPropValue(type="number", value=2))
        assert replaced.id == prop.id
        assert len(store.props) == 1

    def test_bind_requires_visible_variable(self, populated_service, populated_store):
        item = populated_store.variables["item"]
        with pytest.raises(UnknownIdentifierError) as exc_info:
            populated_service.bind(LIST, None, "data", item)
        assert exc_info.value.identifier == encode_variable("item")

    def test_set_expression_accepts_visible_variables(self, populated_service):
        text = f"{encode_variable('item')}.title ?? {encode_variable('count')}"
        prop = populated_service.set_expression(CARD, "p1", "children", text)
        assert isinstance(prop, ExpressionProp)
        assert prop.value == text

    def test_set_expression_rejects_unknown_identifier(self, populated_service):
        with pytest.raises(UnknownIdentifierError, match="Unknown variable"):
            populated_service.set_expression(CARD, "p1", "children", "missing + 1")

    def test_blank_expression_resets_to_starting_value(self, populated_store):
        prop = remove_expression(populated_store, CARD, "p1", "children", PropMeta(type="string"))
        assert isinstance(prop, LiteralProp)
        assert prop.value == ""
        assert populated_store.props["p1"].kind == "literal"

    def test_action_prop_resets_to_empty_action(self, store):
        prop = remove_expression(store, CARD, None, "onClick", PropMeta(type="action"))
        assert prop.kind == "action"
        assert prop.value == []

    def test_url_control_has_no_starting_value(self, populated_store):
        assert remove_expression(
            populated_store, CARD, "p1", "href", PropMeta(type="string", control="url")
        ) is None
        assert "p1" not in populated_store.props


class TestPropMeta:
    @pytest.mark.parametrize(
        "meta, expected",
        [
            (PropMeta(type="number"), LiteralPropValue(type="number", value=0)),
            (PropMeta(type="boolean"), LiteralPropValue(type="boolean", value=False)),
            (PropMeta(type="string[]"), LiteralPropValue(type="string[]", value=[])),
            (PropMeta(type="string", default_value="x"), LiteralPropValue(type="string", value="x")),
            (PropMeta(type="string", control="file"), None),
            (PropMeta(type="json"), None),
            (PropMeta(type="action"), ActionPropValue()),
        ],
    )
    def test_starting_value(self, meta, expected):
        assert meta.starting_value() == expected
