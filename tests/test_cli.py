from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from kube_harness.cli import app
from kube_harness.errors import HarnessError, UnknownFlavorError
from kube_harness.poll import MatchKind

runner = CliRunner()


@patch("kube_harness.commands.wait_cmd.wait_for", return_value="Ready")
def test_wait_builds_scoped_command(mock_wait_for):
    result = runner.invoke(app, ["wait", "--exact", "Ready", "--timeout", "30", "-n", "test", "--",
                                 "get", "cassdc/dc1", "-o", "jsonpath={.status.cassandraOperatorProgress}"])
    assert result.exit_code == 0, result.output

    cmd, expectation, timeout = mock_wait_for.call_args.args
    assert cmd.to_cli_args() == [
        "--namespace=test", "get", "cassdc/dc1", "-o", "jsonpath={.status.cassandraOperatorProgress}",
    ]
    assert expectation.kind is MatchKind.EXACT
    assert expectation.value == "Ready"
    assert timeout == 30.0
    assert mock_wait_for.call_args.kwargs["require_success"] is False


@pytest.mark.parametrize("options", [[], ["--exact", "a", "--contains", "b"]])
def test_wait_requires_one_expectation(options):
    result = runner.invoke(app, ["wait", *options, "--", "get", "pods"])
    assert result.exit_code == 2


def test_dump_requires_a_scope(tmp_path):
    result = runner.invoke(app, ["dump", str(tmp_path)])
    assert result.exit_code == 2


@patch("kube_harness.commands.dump_cmd.ClusterInfoDumper")
def test_dump_namespace(mock_dumper, tmp_path):
    result = runner.invoke(app, ["dump", str(tmp_path), "-n", "test"])
    assert result.exit_code == 0, result.output
    mock_dumper.return_value.dump.assert_called_once_with(tmp_path, "test")


def test_flavors():
    result = runner.invoke(app, ["flavors"])
    assert result.exit_code == 0
    assert result.output.split() == ["k3d", "kind"]


def test_cluster_env():
    result = runner.invoke(app, ["cluster", "env", "--flavor", "k3d", "--cluster-name", "it"])
    assert result.exit_code == 0, result.output
    assert "M_K8S_FLAVOR=k3d" in result.output
    assert "M_CLUSTER_NAME=it" in result.output


def test_cluster_unknown_flavor():
    result = runner.invoke(app, ["cluster", "env", "--flavor", "gke"])
    assert result.exit_code == 1
    assert isinstance(result.exception, UnknownFlavorError)


@patch("kube_harness.commands.cluster_cmd.require_command",
       side_effect=HarnessError("Required command 'k3d' not found. Please install it first."))
def test_cluster_create_requires_tool(mock_require):
    result = runner.invoke(app, ["cluster", "create", "--flavor", "k3d"])
    assert result.exit_code == 1
    mock_require.assert_called_once_with("k3d")
