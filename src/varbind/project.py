"""Project file - instances, variables, resources and props on disk.

Layout of varbind.project.yaml:

    instances:
      - {id: body, component: Body}
      - {id: list, component: "ws:collection", parent: body}
    variables:
      - {kind: value, id: v1, name: count, scope_instance_id: body,
         value: {type: number, value: 0}}
    resources: []
    props:
      - {kind: expression, id: p1, instance_id: list, name: data,
         value: "$ws$dataSource$v1"}
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, ValidationError, model_validator

from varbind.exceptions import InstanceNotFoundError, ProjectFileError
from varbind.models import Instance, Prop, Resource, Variable
from varbind.store import Store

log = logging.getLogger(__name__)

PROJECT_FILE = "varbind.project.yaml"


class ProjectInstance(Instance):
    """Instance with its parent link, the root has none"""

    parent: str | None = None


class ProjectFile(BaseModel):
    instances: list[ProjectInstance] = []
    variables: list[Variable] = []
    resources: list[Resource] = []
    props: list[Prop] = []

    @model_validator(mode="after")
    def check_references(self) -> "ProjectFile":
        """Reject duplicate ids and variables scoped outside the file."""
        for name in ("instances", "variables", "resources", "props"):
            seen: set[str] = set()
            for entity in getattr(self, name):
                if entity.id in seen:
                    raise ValueError(f"duplicate id {entity.id!r} in {name}")
                seen.add(entity.id)

        instance_ids = {instance.id for instance in self.instances}
        for variable in self.variables:
            if variable.scope_instance_id not in instance_ids:
                raise ValueError(
                    f"variable {variable.id!r} is scoped to unknown instance "
                    f"{variable.scope_instance_id!r}"
                )
        return self

    @classmethod
    def load(cls, path: Path) -> "ProjectFile":
        """Load project from yaml file"""
        if not path.exists():
            raise ProjectFileError(str(path), "file not found")

        with open(path) as f:
            try:
                data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ProjectFileError(str(path), str(e)) from e

        try:
            project = cls.model_validate(data)
        except ValidationError as e:
            raise ProjectFileError(str(path), str(e)) from e
        log.debug(
            f"Loaded {path}: {len(project.instances)} instances, "
            f"{len(project.variables)} variables, {len(project.props)} props"
        )
        return project

    @classmethod
    def discover(cls, start: Path | None = None) -> Path | None:
        """Find varbind.project.yaml in `start` (cwd by default) or its parents"""
        cwd = start or Path.cwd()
        for parent in [cwd, *cwd.parents]:
            candidate = parent / PROJECT_FILE
            if candidate.exists():
                return candidate
        return None

    def save(self, path: Path) -> Path:
        """Write project to yaml file"""
        data = self.model_dump(mode="json")
        path.write_text(yaml.safe_dump(data, sort_keys=False, allow_unicode=True))
        return path

    def selector(self, instance_id: str) -> list[str]:
        """Instance ids from `instance_id` up to the root."""
        parents = {instance.id: instance.parent for instance in self.instances}
        if instance_id not in parents:
            raise InstanceNotFoundError(instance_id)

        selector: list[str] = []
        current: str | None = instance_id
        while current is not None:
            if current in selector:
                raise ProjectFileError("instances", f"cycle at instance {current}")
            selector.append(current)
            current = parents.get(current)
        return selector

    def to_store(self) -> Store:
        return Store(
            variables={variable.id: variable for variable in self.variables},
            resources={resource.id: resource for resource in self.resources},
            props={prop.id: prop for prop in self.props},
            instances={instance.id: instance for instance in self.instances},
        )

    def with_store(self, store: Store) -> "ProjectFile":
        """Copy of this project carrying the store's current collections"""
        return self.model_copy(
            update={
                "variables": list(store.variables.values()),
                "resources": list(store.resources.values()),
                "props": list(store.props.values()),
            }
        )
