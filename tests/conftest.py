from __future__ import annotations

from pathlib import Path

import pytest

from kube_harness.command import Command
from kube_harness.config import HarnessConfig
from kube_harness.errors import CommandFailedError


class FakeRunner:
    """Stand-in for shell.Runner that records commands instead of spawning them.

    ``outputs`` are returned by successive ``output`` calls; the last one
    repeats. An exception instance in ``outputs`` is raised instead.
    Commands whose verb is in ``failing_verbs`` fail with ``stderr``.
    """

    def __init__(self, outputs=None, failing_verbs=(), stderr="error: boom"):
        self.commands: list[Command] = []
        self.outputs = list(outputs or [""])
        self.failing_verbs = set(failing_verbs)
        self.stderr = stderr

    def _record(self, command: Command) -> None:
        self.commands.append(command)
        if command.verb in self.failing_verbs:
            raise CommandFailedError(command, 1, "", self.stderr)

    def run(self, command, verbose=None):
        self._record(command)

    def run_capture(self, command):
        self._record(command)
        return "", ""

    def output(self, command):
        self._record(command)
        result = self.outputs.pop(0) if len(self.outputs) > 1 else self.outputs[0]
        if isinstance(result, BaseException):
            raise result
        return result

    def output_with_input(self, command, stdin):
        return self.output(command.with_input(stdin))


class RecordingDumper:
    def __init__(self, fail=False):
        self.calls: list[tuple[Path, str | None]] = []
        self.fail = fail

    def dump(self, path, namespace):
        self.calls.append((path, namespace))
        if self.fail:
            raise CommandFailedError(Command("cluster-info", ("dump",)), 1, "", "dump failed")


@pytest.fixture
def fake_runner():
    return FakeRunner()


@pytest.fixture
def dumper():
    return RecordingDumper()


@pytest.fixture
def config(tmp_path):
    return HarnessConfig(log_root=tmp_path / "dump", poll_interval=0.01)
