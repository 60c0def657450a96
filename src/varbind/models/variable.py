"""Variable models"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictFloat, StrictInt, TypeAdapter
from uuid_extensions import uuid7str


# =============================================================================
# Variable values - typed literals
# =============================================================================


class StringValue(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["string"] = "string"
    value: str


class NumberValue(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["number"] = "number"
    value: StrictInt | StrictFloat


class BooleanValue(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["boolean"] = "boolean"
    value: StrictBool


class JsonValue(BaseModel):
    """Structured data: lists, objects and null"""

    model_config = ConfigDict(frozen=True)

    type: Literal["json"] = "json"
    value: Any = None


VariableValue = Annotated[
    Union[StringValue, NumberValue, BooleanValue, JsonValue],
    Field(discriminator="type"),
]


def to_variable_value(value: Any) -> VariableValue:
    """Tag a plain python value with its literal type.

    bool is checked before numbers since bool is an int subclass.
    """
    if isinstance(value, str):
        return StringValue(value=value)
    if isinstance(value, bool):
        return BooleanValue(value=value)
    if isinstance(value, (int, float)):
        return NumberValue(value=value)
    return JsonValue(value=value)


# =============================================================================
# Variables - base + discriminated union on kind
# =============================================================================


class VariableBase(BaseModel):
    """Fields shared by every variable kind.

    `id` and `scope_instance_id` never change once the variable exists,
    edits go through `model_copy(update=...)` on `name` and the payload.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=uuid7str)
    name: str
    scope_instance_id: str


class ValueVariable(VariableBase):
    """Variable holding a self-contained literal"""

    kind: Literal["value"] = "value"
    value: VariableValue


class ResourceVariable(VariableBase):
    """Variable whose value is fetched by an external resource"""

    kind: Literal["resource"] = "resource"
    resource_id: str


class ParameterVariable(VariableBase):
    """Variable supplied at render time, e.g. a collection item"""

    kind: Literal["parameter"] = "parameter"


Variable = Annotated[
    Union[ValueVariable, ResourceVariable, ParameterVariable],
    Field(discriminator="kind"),
]

variable_adapter: TypeAdapter[Variable] = TypeAdapter(Variable)
