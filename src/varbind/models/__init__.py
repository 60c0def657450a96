"""Models: variables, props, instances, resources"""

from .instance import (
    Instance,
    InstanceSelector,
    InstanceTree,
    MappingInstanceTree,
    Resource,
    ResourceHeader,
)
from .prop import (
    ActionProp,
    ActionPropValue,
    ActionStep,
    ExpressionProp,
    ExpressionPropValue,
    LiteralProp,
    LiteralPropValue,
    Prop,
    PropMeta,
    PropValue,
    make_prop,
    prop_adapter,
    prop_value_of,
)
from .variable import (
    BooleanValue,
    JsonValue,
    NumberValue,
    ParameterVariable,
    ResourceVariable,
    StringValue,
    ValueVariable,
    Variable,
    VariableValue,
    to_variable_value,
    variable_adapter,
)

__all__ = [
    # instance tree / resources
    "Instance",
    "InstanceSelector",
    "InstanceTree",
    "MappingInstanceTree",
    "Resource",
    "ResourceHeader",
    # props
    "ActionProp",
    "ActionPropValue",
    "ActionStep",
    "ExpressionProp",
    "ExpressionPropValue",
    "LiteralProp",
    "LiteralPropValue",
    "Prop",
    "PropMeta",
    "PropValue",
    "make_prop",
    "prop_adapter",
    "prop_value_of",
    # variables
    "BooleanValue",
    "JsonValue",
    "NumberValue",
    "ParameterVariable",
    "ResourceVariable",
    "StringValue",
    "ValueVariable",
    "Variable",
    "VariableValue",
    "to_variable_value",
    "variable_adapter",
]
