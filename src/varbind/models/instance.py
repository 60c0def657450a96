"""Instance tree and resource models

Both are owned by external collaborators, the core reads them and stores
resources opaquely.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Literal, Protocol

from pydantic import BaseModel, ConfigDict, Field
from uuid_extensions import uuid7str

# Path from the target instance up to the root, target first
InstanceSelector = list[str]


class Instance(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    component: str
    label: str | None = None


class InstanceTree(Protocol):
    """Anything that can report the component ("kind") of an instance."""

    def component_of(self, instance_id: str) -> str | None: ...


class MappingInstanceTree:
    """Instance tree adapter over a plain id -> Instance mapping"""

    def __init__(self, instances: Mapping[str, Instance]):
        self.instances = instances

    def component_of(self, instance_id: str) -> str | None:
        instance = self.instances.get(instance_id)
        return instance.component if instance is not None else None

    def __contains__(self, instance_id: object) -> bool:
        return instance_id in self.instances


class ResourceHeader(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    value: str


class Resource(BaseModel):
    """External fetch descriptor behind a resource variable"""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=uuid7str)
    name: str
    method: Literal["get", "post", "put", "delete"] = "get"
    url: str
    headers: list[ResourceHeader] = Field(default_factory=list)
    body: str | None = None
