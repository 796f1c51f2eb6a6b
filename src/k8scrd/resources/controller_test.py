from pathlib import Path
from unittest.mock import MagicMock

import pytest

from k8scrd.diagnostics import Diagnostics
from k8scrd.provider.config import ProviderConfiguration
from k8scrd.resources import PLACEHOLDER_ID, ResourceModel
from k8scrd.resources.instance import CustomResourceInstance
from k8scrd.tools.kubectl import ExecError, Kubectl

CONFIGURATION = ProviderConfiguration(host="https://api:6443", token="secret123")
TEMPLATE = "kind: Widget\nname: {{.name}}\n"


@pytest.fixture
def kubectl() -> MagicMock:
    kubectl = MagicMock(spec=Kubectl)
    kubectl.apply.return_value = b'{"status":"ok"}'
    return kubectl


@pytest.fixture
def controller(kubectl: MagicMock) -> CustomResourceInstance:
    return CustomResourceInstance(CONFIGURATION, kubectl)


def test__create__renders_and_applies(controller: CustomResourceInstance, kubectl: MagicMock) -> None:
    plan = ResourceModel(template=TEMPLATE, attributes={"name": "alpha"})
    result = controller.create(plan)

    assert result.ok
    assert result.diagnostics == Diagnostics()
    assert result.state is not None
    assert result.state.applied == "kind: Widget\nname: alpha\n"
    assert result.state.id == PLACEHOLDER_ID
    assert result.state.template == TEMPLATE
    kubectl.apply.assert_called_once_with(CONFIGURATION, "kind: Widget\nname: alpha\n")


def test__create__parse_error(controller: CustomResourceInstance, kubectl: MagicMock) -> None:
    plan = ResourceModel(template="{{.name", attributes={"name": "alpha"})
    result = controller.create(plan)

    assert result.state is None
    assert len(result.diagnostics) == 1
    assert result.diagnostics[0].summary == "Invalid custom resource template."
    assert "could not be parsed" in result.diagnostics[0].detail
    assert plan.applied is None and plan.id is None
    kubectl.apply.assert_not_called()


def test__create__exec_error_in_template(controller: CustomResourceInstance, kubectl: MagicMock) -> None:
    result = controller.create(ResourceModel(template=TEMPLATE, attributes={}))
    assert result.state is None
    assert len(result.diagnostics) == 1
    assert "attribute 'name' is not set" in result.diagnostics[0].detail
    kubectl.apply.assert_not_called()


def test__create__kubectl_failure(controller: CustomResourceInstance, kubectl: MagicMock) -> None:
    kubectl.apply.side_effect = ExecError("the command exited with an error", 1, b"error: forbidden")
    plan = ResourceModel(template=TEMPLATE, attributes={"name": "alpha"})
    result = controller.create(plan)

    assert result.state is None
    assert [d.summary for d in result.diagnostics] == ["Error executing external kubectl command."]
    assert "error: forbidden" in result.diagnostics[0].detail
    assert plan.applied is None and plan.id is None


def test__create__without_template(controller: CustomResourceInstance) -> None:
    result = controller.create(ResourceModel(attributes={"name": "alpha"}))
    assert result.state is None
    assert result.diagnostics[0].summary == "Invalid argument."
    assert result.diagnostics[0].attribute == "template"


def test__create__unconfigured_provider(kubectl: MagicMock) -> None:
    result = CustomResourceInstance(None, kubectl).create(ResourceModel(template="kind: Widget\n"))
    assert result.state is None
    assert result.diagnostics[0].summary == "Unconfigured provider."
    kubectl.apply.assert_not_called()


def test__update__keeps_id_and_reapplies(controller: CustomResourceInstance, kubectl: MagicMock) -> None:
    created = controller.create(ResourceModel(template=TEMPLATE, attributes={"name": "alpha"})).state
    assert created is not None

    plan = ResourceModel(template=TEMPLATE, attributes={"name": "alpha"}, id="kept-id")
    updated = controller.update(plan).state
    assert updated is not None
    assert updated.id == "kept-id"
    assert updated.applied == created.applied
    assert kubectl.apply.call_count == 2


def test__create_then_update__unchanged_inputs(controller: CustomResourceInstance) -> None:
    created = controller.create(ResourceModel(template=TEMPLATE, attributes={"name": "alpha"})).state
    assert created is not None
    updated = controller.update(created).state
    assert updated is not None
    assert updated.id == created.id
    assert updated.applied == "kind: Widget\nname: alpha\n"


def test__read__returns_state_unchanged(controller: CustomResourceInstance, kubectl: MagicMock) -> None:
    state = ResourceModel(template=TEMPLATE, attributes={"name": "alpha"}, applied="whatever", id="x")
    result = controller.read(state)
    assert result.state == ResourceModel(template=TEMPLATE, attributes={"name": "alpha"}, applied="whatever", id="x")
    assert not result.diagnostics
    kubectl.apply.assert_not_called()


def test__delete__is_a_no_op(controller: CustomResourceInstance, kubectl: MagicMock) -> None:
    state = ResourceModel(template=TEMPLATE, applied="kind: Widget\nname: alpha\n", id="x")
    result = controller.delete(state)
    assert result.state is None
    assert not result.diagnostics
    assert state.applied == "kind: Widget\nname: alpha\n"
    assert state.id == "x"
    kubectl.apply.assert_not_called()


def test__create__end_to_end_with_fake_kubectl(tmp_path: Path) -> None:
    script = tmp_path / "kubectl"
    script.write_text(
        "\n".join(
            [
                "#!/bin/sh",
                "printf '%s\\n' \"$@\" > \"$(dirname \"$0\")/args.txt\"",
                "cat > \"$(dirname \"$0\")/stdin.txt\"",
                "echo '{\"status\":\"ok\"}'",
                "",
            ]
        )
    )
    script.chmod(0o755)

    controller = CustomResourceInstance(CONFIGURATION, Kubectl(script))
    result = controller.create(ResourceModel(template=TEMPLATE, attributes={"name": "alpha"}))

    assert result.ok
    assert result.state is not None
    assert result.state.applied == "kind: Widget\nname: alpha\n"
    assert result.state.id
    assert (tmp_path / "stdin.txt").read_text() == "kind: Widget\nname: alpha\n"
    assert "--token\nsecret123\n" in (tmp_path / "args.txt").read_text()
