import pytest

from varbind.dependencies import DependencyTracker, ensure_deletable, used_variables
from varbind.exceptions import DeletionBlockedError
from varbind.expression.codec import encode_variable
from varbind.models import (
    ActionProp,
    ActionStep,
    ExpressionProp,
    LiteralProp,
    NumberValue,
    ParameterVariable,
    ValueVariable,
)
from varbind.operations import delete_variable


def expression(id, text):
    return ExpressionProp(id=id, instance_id="card", name=id, value=text)


def test_expression_and_action_references_are_used():
    props = [
        expression("p1", f"{encode_variable('a')} + 1"),
        ActionProp(
            id="p2",
            instance_id="card",
            name="onClick",
            value=[ActionStep(args=["event"], code=f"{encode_variable('b')} = event")],
        ),
        LiteralProp(id="p3", instance_id="card", name="title", type="string", value=encode_variable("c")),
    ]
    assert used_variables(props) == {"a", "b"}


def test_malformed_props_are_skipped():
    props = [
        expression("p1", "a +"),
        expression("p2", encode_variable("b")),
        ActionProp(id="p3", instance_id="card", name="onClick", value=[ActionStep(code="fetch(1)")]),
    ]
    assert used_variables(props) == {"b"}


def test_oversized_and_deeply_nested_props_do_not_abort_scan():
    props = [
        expression("p1", encode_variable("a")),
        expression("p2", "9" * 5000),
        expression("p3", "!" * 3000 + encode_variable("b")),
        ActionProp(
            id="p4",
            instance_id="card",
            name="onClick",
            value=[ActionStep(code=f"{encode_variable('c')} = " + "-" * 3000 + "1")],
        ),
    ]
    assert used_variables(props) == {"a"}


def test_delete_without_tracker_honours_custom_effects(populated_store):
    step = ActionStep(code=f"track({encode_variable('count')})")
    populated_store.transact(
        ["props"],
        lambda props: props.set(
            "p2", ActionProp(id="p2", instance_id="card", name="onClick", value=[step])
        ),
    )
    with pytest.raises(DeletionBlockedError):
        delete_variable(populated_store, "count", effects=["track"])
    assert "count" in populated_store.variables


def test_action_effects_follow_whitelist():
    props = [
        ActionProp(
            id="p1",
            instance_id="card",
            name="onClick",
            value=[ActionStep(code=f"track({encode_variable('a')})")],
        )
    ]
    assert used_variables(props) == set()
    assert used_variables(props, effects=["track"]) == {"a"}


def test_ensure_deletable():
    count = ValueVariable(id="count", name="count", scope_instance_id="body", value=NumberValue(value=0))
    ensure_deletable(count, frozenset())

    with pytest.raises(DeletionBlockedError) as exc_info:
        ensure_deletable(count, frozenset({"count"}))
    assert exc_info.value.reason == "in-use"

    item = ParameterVariable(id="item", name="item", scope_instance_id="list")
    with pytest.raises(DeletionBlockedError) as exc_info:
        ensure_deletable(item, frozenset())
    assert exc_info.value.reason == "parameter"


class TestDependencyTracker:
    def test_recomputes_when_props_change(self, populated_store):
        tracker = DependencyTracker(populated_store)
        assert tracker.used() == {"item"}

        populated_store.transact(
            ["props"],
            lambda props: props.set("p2", expression("p2", encode_variable("count"))),
        )
        assert tracker.is_used("count")

    def test_memoized_on_props_version(self, populated_store):
        tracker = DependencyTracker(populated_store)
        first = tracker.used()
        populated_store.transact(["variables"], lambda variables: variables.delete("count"))
        assert tracker.used() is first

    def test_is_deletable(self, populated_store):
        tracker = DependencyTracker(populated_store)
        assert tracker.is_deletable(populated_store.variables["count"])
        assert not tracker.is_deletable(populated_store.variables["item"])
