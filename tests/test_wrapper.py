from datetime import datetime
from pathlib import Path
from unittest.mock import patch

import pytest

from conftest import FakeRunner, RecordingDumper
from kube_harness import kubectl
from kube_harness.errors import CleanupError, CommandFailedError, StepFailedError
from kube_harness.wrapper import ClusterInfoDumper, NamespaceWrapper, sanitize_for_log_dirs, suite_log_dir


def _wrapper(config, runner=None, dumper=None, suite="Scale Up", namespace="test-scale-up"):
    return NamespaceWrapper(suite, namespace, config=config, runner=runner or FakeRunner(),
                            dumper=dumper or RecordingDumper())


def test_sanitize_for_log_dirs():
    assert sanitize_for_log_dirs("Scale up a dc") == "Scale_up_a_dc"
    assert sanitize_for_log_dirs("a/b\\c-d.e,f") == "a_b_c_d_e_f"
    assert sanitize_for_log_dirs("") == ""


def test_suite_log_dir_uses_timestamp(tmp_path):
    path = suite_log_dir(tmp_path, "Scale up", now=datetime(2024, 3, 9, 7, 5, 1))
    assert path == tmp_path / "Scale_up" / "2024.03.09_07:05:01"


def test_commands_are_scoped_to_namespace(config):
    runner = FakeRunner(outputs=["x"])
    ns = _wrapper(config, runner)
    ns.run(kubectl.get("pods"))
    ns.output(kubectl.get("pods").in_namespace("other"))
    assert [dict(cmd.flags)["namespace"] for cmd in runner.commands] == ["test-scale-up", "test-scale-up"]


def test_logged_step_dirs_are_numbered(config):
    runner = FakeRunner(failing_verbs={"delete"})
    dumper = RecordingDumper()
    ns = _wrapper(config, runner, dumper)

    ns.exec_and_log("creating a datacenter resource", kubectl.apply_files("dc.yaml"))
    with pytest.raises(StepFailedError) as exc_info:
        ns.exec_and_log("deleting the dc", kubectl.delete_from_files("dc.yaml"))
    ns.exec_and_log("checking, again", kubectl.get("pods"))

    names = [path.name for path, _ in dumper.calls]
    assert names == ["01_creating_a_datacenter_resource", "02_deleting_the_dc", "03_checking__again"]
    assert all(path.parent == ns.log_dir for path, _ in dumper.calls)
    assert all(namespace == "test-scale-up" for _, namespace in dumper.calls)
    assert ns.step_counter == 4

    err = exc_info.value
    assert err.log_dir == ns.log_dir / "02_deleting_the_dc"
    assert "error: boom" in str(err)
    assert "--namespace=test-scale-up" in str(err)


def test_log_dir_layout(config):
    ns = _wrapper(config)
    assert ns.log_dir.parent == config.log_root / "Scale_Up"


def test_wait_for_output_and_log_polls_until_ready(config):
    runner = FakeRunner(outputs=["", "Updating", "Updating", "Updating", "Ready"])
    dumper = RecordingDumper()
    ns = _wrapper(config, runner, dumper)

    cmd = kubectl.get("cassdc/dc1").format_output("jsonpath={.status.cassandraOperatorProgress}")
    assert ns.wait_for_output_and_log("waiting for dc to become ready", cmd, "Ready", 5) == "Ready"

    assert len(runner.commands) == 5
    assert len(dumper.calls) == 1


def test_wait_timeout_fails_step_and_dumps(config):
    dumper = RecordingDumper()
    ns = _wrapper(config, FakeRunner(outputs=["Updating"]), dumper)
    with pytest.raises(StepFailedError) as exc_info:
        ns.wait_for_output_contains_and_log("waiting", kubectl.get("pods"), "Ready", 0.05)
    assert "did not match" in str(exc_info.value)
    assert len(dumper.calls) == 1


def test_dump_failure_after_success_fails_step(config):
    ns = _wrapper(config, dumper=RecordingDumper(fail=True))
    with pytest.raises(StepFailedError) as exc_info:
        ns.exec_and_log("creating", kubectl.get("pods"))
    assert "log dump failed" in str(exc_info.value)


def test_dump_failure_does_not_mask_step_failure(config):
    runner = FakeRunner(failing_verbs={"apply"}, stderr="admission webhook denied")
    ns = _wrapper(config, runner, RecordingDumper(fail=True))
    with pytest.raises(StepFailedError) as exc_info:
        ns.exec_and_log("applying", kubectl.apply_files("bad.yaml"))
    assert "admission webhook denied" in str(exc_info.value)


def test_step_dumps_on_arbitrary_exception(config):
    dumper = RecordingDumper()
    ns = _wrapper(config, dumper=dumper)
    with pytest.raises(KeyError):
        with ns.step("custom block"):
            raise KeyError("boom")
    assert [path.name for path, _ in dumper.calls] == ["01_custom_block"]


def test_exec_and_log_expect_error(config):
    runner = FakeRunner(failing_verbs={"apply"}, stderr='spec.size: Invalid value: -1')
    ns = _wrapper(config, runner)
    stderr = ns.exec_and_log_expect_error("applying invalid dc", kubectl.apply_files("dc.yaml"), "Invalid value")
    assert "Invalid value" in stderr

    with pytest.raises(StepFailedError, match="expected error containing 'forbidden'"):
        ns.exec_and_log_expect_error("applying invalid dc", kubectl.apply_files("dc.yaml"), "forbidden")

    with pytest.raises(StepFailedError, match="succeeded but was expected to fail"):
        ns.exec_and_log_expect_error("getting pods", kubectl.get("pods"), "Invalid value")


def test_or_fail_variants_raise_assertions(config):
    runner = FakeRunner(outputs=[CommandFailedError(kubectl.get("pods"), 1, "", "nope")], failing_verbs={"apply"})
    ns = _wrapper(config, runner)
    with pytest.raises(AssertionError):
        ns.run_or_fail(kubectl.apply_files("x.yaml"))
    with pytest.raises(AssertionError):
        ns.output_or_fail(kubectl.get("pods"))


def test_get_pod_names_are_sorted(config):
    runner = FakeRunner(outputs=["dc1-rack1-sts-2 dc1-rack1-sts-0 dc1-rack1-sts-1"])
    ns = _wrapper(config, runner)
    assert ns.get_pod_names("app=dc1") == ["dc1-rack1-sts-0", "dc1-rack1-sts-1", "dc1-rack1-sts-2"]
    assert dict(runner.commands[0].flags)["selector"] == "app=dc1"


def test_get_pod_names_empty(config):
    ns = _wrapper(config, FakeRunner(outputs=[""]))
    assert ns.get_pod_names("app=none") == []


def test_wait_for_ready_pod_count(config):
    runner = FakeRunner(outputs=["true false", "true true"])
    ns = _wrapper(config, runner)
    ns.wait_for_ready_pod_count("app=dc1", 2, timeout_per_pod=5)
    assert runner.commands[-1].args[-2:] == ("-l", "app=dc1")


def test_ready_pod_count_deadline_scales_with_count(config):
    ns = _wrapper(config)
    with patch.object(ns, "wait_for_output_and_log") as mock_wait:
        ns.wait_for_ready_pod_count("app=dc1", 6, timeout_per_pod=400)
    description, cmd, expected, timeout = mock_wait.call_args.args
    assert expected == "true true true true true true"
    assert timeout == 2400


def test_expect_done_reconciling(config, monkeypatch):
    monkeypatch.setattr("kube_harness.wrapper.time.sleep", lambda seconds: None)
    ns = _wrapper(config, FakeRunner(outputs=["100", "100"]))
    ns.expect_done_reconciling("cassdc/dc1")

    ns = _wrapper(config, FakeRunner(outputs=["100", "105"]))
    with pytest.raises(StepFailedError, match="changed from 100 to 105"):
        ns.expect_done_reconciling("cassdc/dc1")


def test_helm_install_uses_configured_image(config):
    runner = FakeRunner()
    ns = _wrapper(config, runner)
    ns.helm_install("charts/cass-operator", {"replicas": "1"})
    cmd = runner.commands[0]
    assert cmd.tool == "helm"
    assert "--set" in cmd.args
    assert f"image={config.operator_image},replicas=1" in cmd.args
    assert dict(cmd.flags)["namespace"] == "test-scale-up"


def test_dump_all_logs(config):
    dumper = RecordingDumper()
    ns = _wrapper(config, dumper=dumper)
    path = ns.dump_all_logs()
    assert path == ns.log_dir / "aftersuite"
    assert dumper.calls == [(path, None)]


def test_terminate_deletes_in_order(config):
    runner = FakeRunner()
    ns = _wrapper(config, runner)
    ns.terminate()
    rendered = [cmd.to_cli_args() for cmd in runner.commands]
    assert rendered == [
        ["--namespace=test-scale-up", "delete", "cassandradatacenter", "--all"],
        ["--namespace=test-scale-up", "uninstall", "cass-operator"],
        ["delete", "namespace/test-scale-up"],
    ]


def test_terminate_aggregates_failures(config):
    runner = FakeRunner(failing_verbs={"uninstall", "delete"})
    ns = _wrapper(config, runner)
    with pytest.raises(CleanupError) as exc_info:
        ns.terminate()
    assert len(runner.commands) == 3
    assert len(exc_info.value.failures) == 3
    assert "helm uninstall" in str(exc_info.value)


def test_terminate_skipped_with_no_cleanup(config):
    runner = FakeRunner()
    ns = _wrapper(config.model_copy(update={"no_cleanup": True}), runner)
    ns.terminate()
    assert runner.commands == []


def test_cluster_info_dumper_creates_dir(tmp_path):
    runner = FakeRunner()
    target = tmp_path / "a" / "01_step"
    ClusterInfoDumper(runner).dump(target, "ns1")
    assert target.is_dir()
    assert runner.commands == [kubectl.dump_logs(target, "ns1")]


def test_cluster_info_dumper_failure_propagates(tmp_path):
    runner = FakeRunner(failing_verbs={"cluster-info"})
    with pytest.raises(CommandFailedError):
        ClusterInfoDumper(runner).dump(Path(tmp_path), None)
