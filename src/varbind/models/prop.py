"""Prop models

A prop is a named binding on an instance. The value part of a prop
(kind + payload) is modelled separately so a binding can be replaced
without touching the prop identity.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from uuid_extensions import uuid7str

LiteralType = Literal["string", "number", "boolean", "string[]", "json"]


class ActionStep(BaseModel):
    """One effect in an action prop.

    `args` are names bound by the caller (e.g. an event value) and are
    visible to `code` alongside scope variables.
    """

    model_config = ConfigDict(frozen=True)

    type: Literal["execute"] = "execute"
    args: list[str] = Field(default_factory=list)
    code: str


# =============================================================================
# Prop values
# =============================================================================


class LiteralPropValue(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["literal"] = "literal"
    type: LiteralType
    value: Any


class ExpressionPropValue(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["expression"] = "expression"
    value: str


class ActionPropValue(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["action"] = "action"
    value: list[ActionStep] = Field(default_factory=list)


PropValue = Annotated[
    Union[LiteralPropValue, ExpressionPropValue, ActionPropValue],
    Field(discriminator="kind"),
]

prop_value_adapter: TypeAdapter[PropValue] = TypeAdapter(PropValue)


# =============================================================================
# Props
# =============================================================================


class PropBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=uuid7str)
    instance_id: str
    name: str


class LiteralProp(PropBase, LiteralPropValue):
    pass


class ExpressionProp(PropBase, ExpressionPropValue):
    pass


class ActionProp(PropBase, ActionPropValue):
    pass


Prop = Annotated[
    Union[LiteralProp, ExpressionProp, ActionProp],
    Field(discriminator="kind"),
]

prop_adapter: TypeAdapter[Prop] = TypeAdapter(Prop)


def make_prop(id: str, instance_id: str, name: str, value: PropValue) -> Prop:
    """Combine a prop identity with a value part."""
    return prop_adapter.validate_python(
        {"id": id, "instance_id": instance_id, "name": name, **value.model_dump()}
    )


def prop_value_of(prop: Prop) -> PropValue:
    """Strip identity fields from a prop."""
    return prop_value_adapter.validate_python(
        prop.model_dump(exclude={"id", "instance_id", "name"})
    )


# =============================================================================
# Prop meta - declared prop types, owned by the component registry
# =============================================================================


class PropMeta(BaseModel):
    """Declared type of a prop.

    `type` is the value type (string, number, boolean, string[], json, action)
    and `control` the editing control hint (text, url, file, select, ...).
    """

    type: str
    control: str | None = None
    required: bool = False
    default_value: Any = None

    def starting_value(self) -> PropValue | None:
        """Literal written back when an expression binding is removed.

        Returns None when nothing can be inferred, callers then drop the prop.
        """
        if self.type == "string" and self.control not in ("file", "url"):
            default = self.default_value if self.default_value is not None else ""
            return LiteralPropValue(type="string", value=default)
        if self.type == "number":
            default = self.default_value if self.default_value is not None else 0
            return LiteralPropValue(type="number", value=default)
        if self.type == "boolean":
            default = self.default_value if self.default_value is not None else False
            return LiteralPropValue(type="boolean", value=default)
        if self.type == "string[]":
            default = self.default_value if self.default_value is not None else []
            return LiteralPropValue(type="string[]", value=list(default))
        if self.type == "action" or self.control == "action":
            return ActionPropValue(value=[])
        return None
