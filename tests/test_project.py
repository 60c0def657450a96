"""Tests for the project file and varbind.yaml settings."""

import pytest
import yaml

from varbind.config import CONFIG_FILE, VarbindSettings
from varbind.exceptions import InstanceNotFoundError, ProjectFileError
from varbind.models import ExpressionProp, NumberValue, ValueVariable
from varbind.project import PROJECT_FILE, ProjectFile

PROJECT_YAML = """
instances:
  - {id: body, component: Body}
  - {id: list, component: "ws:collection", parent: body}
  - {id: card, component: Box, parent: list}
variables:
  - kind: value
    id: count
    name: count
    scope_instance_id: body
    value: {type: number, value: 0}
  - {kind: parameter, id: item, name: item, scope_instance_id: list}
props:
  - kind: expression
    id: p1
    instance_id: card
    name: children
    value: "$ws$dataSource$item"
  - kind: action
    id: p2
    instance_id: card
    name: onClick
    value:
      - {args: [], code: "$ws$dataSource$count = $ws$dataSource$count + 1"}
"""


@pytest.fixture
def project_path(tmp_path):
    path = tmp_path / PROJECT_FILE
    path.write_text(PROJECT_YAML)
    return path


# =============================================================================
# Project file
# =============================================================================


class TestProjectFile:
    def test_load(self, project_path):
        project = ProjectFile.load(project_path)
        assert [instance.id for instance in project.instances] == ["body", "list", "card"]
        assert isinstance(project.variables[0], ValueVariable)
        assert project.variables[1].kind == "parameter"
        assert project.props[1].value[0].type == "execute"

    def test_missing_file(self, tmp_path):
        with pytest.raises(ProjectFileError, match="file not found"):
            ProjectFile.load(tmp_path / PROJECT_FILE)

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / PROJECT_FILE
        path.write_text("instances: [")
        with pytest.raises(ProjectFileError):
            ProjectFile.load(path)

    def test_invalid_model(self, tmp_path):
        path = tmp_path / PROJECT_FILE
        path.write_text("variables:\n  - {kind: unknown, name: x}\n")
        with pytest.raises(ProjectFileError) as exc_info:
            ProjectFile.load(path)
        assert exc_info.value.exit_code == 2

    def test_duplicate_variable_ids(self, tmp_path):
        path = tmp_path / PROJECT_FILE
        path.write_text(
            "instances:\n"
            "  - {id: body, component: Body}\n"
            "variables:\n"
            "  - {kind: parameter, id: v1, name: a, scope_instance_id: body}\n"
            "  - {kind: parameter, id: v1, name: b, scope_instance_id: body}\n"
        )
        with pytest.raises(ProjectFileError, match="duplicate id 'v1' in variables"):
            ProjectFile.load(path)

    @pytest.mark.parametrize("collection", ["instances", "resources", "props"])
    def test_duplicate_ids_in_any_collection(self, tmp_path, collection):
        entity = {
            "instances": {"id": "body", "component": "Box"},
            "resources": {"id": "r1", "name": "posts", "url": "https://example.com"},
            "props": {
                "kind": "literal",
                "id": "p1",
                "instance_id": "body",
                "name": "x",
                "type": "string",
                "value": "",
            },
        }[collection]
        data = {"instances": [{"id": "body", "component": "Body"}], collection: [entity, entity]}
        path = tmp_path / PROJECT_FILE
        path.write_text(yaml.safe_dump(data))
        with pytest.raises(ProjectFileError, match=f"duplicate id .* in {collection}"):
            ProjectFile.load(path)

    def test_variable_scoped_to_unknown_instance(self, tmp_path):
        path = tmp_path / PROJECT_FILE
        path.write_text(
            "instances:\n"
            "  - {id: body, component: Body}\n"
            "variables:\n"
            "  - {kind: parameter, id: item, name: item, scope_instance_id: nowhere}\n"
        )
        with pytest.raises(ProjectFileError, match="unknown instance 'nowhere'") as exc_info:
            ProjectFile.load(path)
        assert exc_info.value.exit_code == 2

    def test_empty_file(self, tmp_path):
        path = tmp_path / PROJECT_FILE
        path.write_text("")
        assert ProjectFile.load(path).variables == []

    def test_selector_walks_to_root(self, project_path):
        project = ProjectFile.load(project_path)
        assert project.selector("card") == ["card", "list", "body"]
        assert project.selector("body") == ["body"]
        with pytest.raises(InstanceNotFoundError):
            project.selector("ghost")

    def test_selector_detects_cycles(self, tmp_path):
        path = tmp_path / PROJECT_FILE
        path.write_text(
            "instances:\n"
            "  - {id: a, component: Box, parent: b}\n"
            "  - {id: b, component: Box, parent: a}\n"
        )
        with pytest.raises(ProjectFileError, match="cycle"):
            ProjectFile.load(path).selector("a")

    def test_save_round_trip(self, project_path, tmp_path):
        project = ProjectFile.load(project_path)
        out = project.save(tmp_path / "copy.yaml")
        assert ProjectFile.load(out) == project

    def test_store_round_trip(self, project_path):
        project = ProjectFile.load(project_path)
        store = project.to_store()
        assert store.instances.component_of("list") == "ws:collection"

        variable = ValueVariable(
            id="total", name="total", scope_instance_id="body", value=NumberValue(value=1)
        )
        store.transact(["variables"], lambda variables: variables.set("total", variable))
        updated = project.with_store(store)

        assert [v.id for v in updated.variables] == ["count", "item", "total"]
        assert updated.instances == project.instances
        assert isinstance(updated.props[0], ExpressionProp)

    def test_discover_searches_parents(self, project_path):
        nested = project_path.parent / "a" / "b"
        nested.mkdir(parents=True)
        assert ProjectFile.discover(nested) == project_path


# =============================================================================
# Settings
# =============================================================================


class TestVarbindSettings:
    def test_defaults(self):
        settings = VarbindSettings()
        assert settings.collection_component == "ws:collection"
        assert settings.effects == ["emit", "navigate"]
        assert settings.transaction_log is None

    def test_load(self, tmp_path):
        path = tmp_path / CONFIG_FILE
        path.write_text(
            yaml.safe_dump({"collection_component": "List", "effects": ["track"]})
        )
        settings = VarbindSettings.load(path)
        assert settings.collection_component == "List"
        assert settings.effects == ["track"]

    def test_missing_file_gives_defaults(self, tmp_path):
        assert VarbindSettings.load(tmp_path / CONFIG_FILE) == VarbindSettings()

    def test_discover(self, tmp_path):
        (tmp_path / CONFIG_FILE).write_text("transaction_log: log.jsonl\n")
        nested = tmp_path / "nested"
        nested.mkdir()
        assert VarbindSettings.discover(nested).transaction_log == "log.jsonl"
