# /*
# Copyright 2026 The Grove Authors.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# */


"""Namespace-scoped test wrapper with numbered, diagnosable steps.

Every command passed through a NamespaceWrapper is scoped to its namespace.
The ``*_and_log`` operations additionally run inside a numbered step whose
exit always dumps cluster logs for the namespace into
``<log_root>/<suite>/<timestamp>/<NN>_<description>``, on success as well
as on failure.
"""

from __future__ import annotations

import re
import time
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Protocol

from rich.panel import Panel

from kube_harness import console, helm, kubectl, logger
from kube_harness.command import Command
from kube_harness.config import HarnessConfig
from kube_harness.constants import (
    AFTER_SUITE_LABEL,
    DEFAULT_READY_POD_TIMEOUT_SECONDS,
    DEFAULT_RECONCILE_SETTLE_SECONDS,
    LOG_DIR_TIMESTAMP_FORMAT,
    SANITIZE_PATTERN,
    STEP_DIR_FORMAT,
)
from kube_harness.errors import (
    CleanupError,
    CommandFailedError,
    HarnessError,
    PollTimeoutError,
    StepFailedError,
)
from kube_harness.poll import Expectation, containing, exactly, matching, wait_for
from kube_harness.shell import Runner

_SANITIZE_RE = re.compile(SANITIZE_PATTERN)


def sanitize_for_log_dirs(text: str) -> str:
    """Replace whitespace, slashes, dashes, dots and commas with underscores."""
    return _SANITIZE_RE.sub("_", text)


def suite_log_dir(log_root: Path, suite_name: str, now: datetime | None = None) -> Path:
    """Build ``<log_root>/<sanitized suite name>/<timestamp>``."""
    stamp = (now or datetime.now()).strftime(LOG_DIR_TIMESTAMP_FORMAT)
    return Path(log_root) / sanitize_for_log_dirs(suite_name) / stamp


class DiagnosticDumper(Protocol):
    def dump(self, path: Path, namespace: str | None) -> None:
        """Write cluster logs for ``namespace`` (all namespaces if None) under ``path``."""


class ClusterInfoDumper:
    """Dump cluster state with ``kubectl cluster-info dump``."""

    def __init__(self, runner: Runner | None = None) -> None:
        self.runner = runner or Runner()

    def dump(self, path: Path, namespace: str | None) -> None:
        path.mkdir(parents=True, exist_ok=True)
        if namespace is None:
            cmd = kubectl.dump_all_logs(path)
        else:
            cmd = kubectl.dump_logs(path, namespace)
        self.runner.run(cmd)


class NamespaceWrapper:
    """Bind a test suite to one namespace.

    Not thread safe: one wrapper belongs to one suite's thread of control.
    Suites running in parallel must use distinct namespaces and wrappers.

    Attributes:
        namespace: Namespace injected into every command.
        suite_name: Human-readable suite name.
        log_dir: Root directory of this suite run's diagnostic dumps.
        step_counter: Number assigned to the next logged step.
    """

    def __init__(
        self,
        suite_name: str,
        namespace: str,
        config: HarnessConfig | None = None,
        runner: Runner | None = None,
        dumper: DiagnosticDumper | None = None,
    ) -> None:
        self.config = config or HarnessConfig()
        self.runner = runner or Runner(verbose=self.config.verbose)
        self.dumper = dumper or ClusterInfoDumper(self.runner)
        self.namespace = namespace
        self.suite_name = suite_name
        self.log_dir = suite_log_dir(self.config.log_root, suite_name)
        self.step_counter = 1

    def scoped(self, command: Command) -> Command:
        return command.in_namespace(self.namespace)

    # ------------------------------------------------------------------
    # Plain operations, failures raised as harness errors
    # ------------------------------------------------------------------

    def run(self, command: Command) -> None:
        self.runner.run(self.scoped(command))

    def run_capture(self, command: Command) -> tuple[str, str]:
        return self.runner.run_capture(self.scoped(command))

    def output(self, command: Command) -> str:
        return self.runner.output(self.scoped(command))

    def wait_for(self, command: Command, expectation: Expectation, timeout: float,
                 require_success: bool = False) -> str:
        return wait_for(
            self.scoped(command),
            expectation,
            timeout,
            interval=self.config.poll_interval,
            require_success=require_success,
            runner=self.runner,
        )

    def wait_for_output(self, command: Command, expected: str, timeout: float) -> str:
        return self.wait_for(command, exactly(expected), timeout)

    def wait_for_output_contains(self, command: Command, expected: str, timeout: float) -> str:
        return self.wait_for(command, containing(expected), timeout)

    def wait_for_output_pattern(self, command: Command, pattern: str, timeout: float) -> str:
        return self.wait_for(command, matching(pattern), timeout)

    # ------------------------------------------------------------------
    # Failing variants, harness errors turned into assertion failures
    # ------------------------------------------------------------------

    def run_or_fail(self, command: Command) -> None:
        try:
            self.run(command)
        except CommandFailedError as err:
            raise StepFailedError(f"run {command.verb}", self.scoped(command), None, err) from err

    def output_or_fail(self, command: Command) -> str:
        try:
            return self.output(command)
        except CommandFailedError as err:
            raise StepFailedError(f"read output of {command.verb}", self.scoped(command), None, err) from err

    def wait_for_output_or_fail(self, command: Command, expected: str, timeout: float) -> str:
        try:
            return self.wait_for_output(command, expected, timeout)
        except PollTimeoutError as err:
            raise StepFailedError(f"wait for '{expected}'", self.scoped(command), None, err) from err

    def wait_for_output_contains_or_fail(self, command: Command, expected: str, timeout: float) -> str:
        try:
            return self.wait_for_output_contains(command, expected, timeout)
        except PollTimeoutError as err:
            raise StepFailedError(f"wait for output containing '{expected}'",
                                  self.scoped(command), None, err) from err

    # ------------------------------------------------------------------
    # Logged steps
    # ------------------------------------------------------------------

    def _next_step_dir(self, description: str) -> tuple[int, Path]:
        number = self.step_counter
        self.step_counter += 1
        return number, self.log_dir / (STEP_DIR_FORMAT % (number, sanitize_for_log_dirs(description)))

    @contextmanager
    def step(self, description: str) -> Iterator[Path]:
        """Run a block as one numbered step and always dump logs afterwards.

        Yields:
            The step's diagnostic directory.

        Raises:
            StepFailedError: If the dump fails after the block succeeded. A
                dump failure after the block failed is logged instead, so the
                block's own error propagates.
        """
        number, step_dir = self._next_step_dir(description)
        console.print(f"[bold blue]STEP {number:02d}:[/bold blue] {description}")
        failed = False
        try:
            yield step_dir
        except BaseException:
            failed = True
            raise
        finally:
            self._dump(description, step_dir, failed)

    def _dump(self, description: str, step_dir: Path, failed: bool) -> None:
        try:
            self.dumper.dump(step_dir, self.namespace)
        except (HarnessError, OSError) as err:
            if failed:
                logger.error("Could not dump logs for step '%s' into %s: %s", description, step_dir, err)
                return
            raise StepFailedError(description, None, step_dir, f"log dump failed: {err}") from err
        if failed:
            console.print(f"[red]❌ Step failed, cluster logs dumped at: {step_dir}[/red]")

    def exec_and_log(self, description: str, command: Command) -> None:
        with self.step(description) as step_dir:
            try:
                self.run(command)
            except CommandFailedError as err:
                raise StepFailedError(description, self.scoped(command), step_dir, err) from err

    def exec_and_log_expect_error(self, description: str, command: Command, expected_error: str) -> str:
        """Run a command that must fail with ``expected_error`` in its stderr.

        Returns:
            The captured stderr.
        """
        with self.step(description) as step_dir:
            try:
                self.run_capture(command)
            except CommandFailedError as err:
                if expected_error not in err.stderr:
                    raise StepFailedError(
                        description, self.scoped(command), step_dir,
                        f"expected error containing '{expected_error}', got: {err.stderr.strip()}",
                    ) from err
                return err.stderr
            raise StepFailedError(description, self.scoped(command), step_dir,
                                  "command succeeded but was expected to fail")

    def output_and_log(self, description: str, command: Command) -> str:
        with self.step(description) as step_dir:
            try:
                return self.output(command)
            except CommandFailedError as err:
                raise StepFailedError(description, self.scoped(command), step_dir, err) from err

    def _wait_and_log(self, description: str, command: Command, expectation: Expectation,
                      timeout: float) -> str:
        with self.step(description) as step_dir:
            try:
                return self.wait_for(command, expectation, timeout)
            except PollTimeoutError as err:
                raise StepFailedError(description, self.scoped(command), step_dir, err) from err

    def wait_for_output_and_log(self, description: str, command: Command, expected: str,
                                timeout: float) -> str:
        return self._wait_and_log(description, command, exactly(expected), timeout)

    def wait_for_output_contains_and_log(self, description: str, command: Command, expected: str,
                                         timeout: float) -> str:
        return self._wait_and_log(description, command, containing(expected), timeout)

    def wait_for_output_pattern_and_log(self, description: str, command: Command, pattern: str,
                                        timeout: float) -> str:
        return self._wait_and_log(description, command, matching(pattern), timeout)

    # ------------------------------------------------------------------
    # Suite helpers
    # ------------------------------------------------------------------

    def helm_install(self, chart_path: str, overrides: Mapping[str, str] | None = None) -> None:
        """Install the operator chart into the namespace with the configured image."""
        values = {"image": self.config.operator_image, **(overrides or {})}
        cmd = helm.install(chart_path, self.config.helm_release, self.namespace, values)
        self.exec_and_log(f"installing {self.config.helm_release} via helm chart", cmd)

    def get_pod_names(self, selector: str) -> list[str]:
        """Sorted names of pods matching a label selector."""
        cmd = kubectl.get("pods").with_flag("selector", selector).format_output(
            "jsonpath={.items[*].metadata.name}")
        return sorted(name for name in self.output_or_fail(cmd).split(" ") if name)

    def wait_for_ready_pod_count(self, selector: str, count: int,
                                 timeout_per_pod: float = DEFAULT_READY_POD_TIMEOUT_SECONDS) -> None:
        """Wait until ``count`` running pods matching ``selector`` report ready.

        The deadline is ``count * timeout_per_pod`` seconds.
        """
        cmd = (
            kubectl.get("pods")
            .with_label(selector)
            .with_flag("field-selector", "status.phase=Running")
            .format_output("jsonpath={.items[*].status.containerStatuses[0].ready}")
        )
        expected = " ".join(["true"] * count)
        self.wait_for_output_and_log(f"waiting for {count} ready pods matching {selector}", cmd, expected,
                                     count * timeout_per_pod)

    def expect_done_reconciling(self, resource: str,
                                settle_seconds: float = DEFAULT_RECONCILE_SETTLE_SECONDS) -> None:
        """Fail if the resource version of ``resource`` still changes after settling."""
        console.print(f"[yellow]ℹ️  Ensuring {resource} is done reconciling...[/yellow]")
        cmd = kubectl.get(resource).format_output("jsonpath={.metadata.resourceVersion}")
        time.sleep(settle_seconds)
        before = self.output_or_fail(cmd)
        time.sleep(settle_seconds)
        after = self.output_or_fail(cmd)
        if before != after:
            raise StepFailedError(
                f"ensure {resource} is done reconciling", self.scoped(cmd), None,
                f"resource version changed from {before} to {after}",
            )

    def dump_all_logs(self, label: str = AFTER_SUITE_LABEL) -> Path:
        """Dump logs of every namespace into ``<log_dir>/<label>`` and return the path."""
        path = self.log_dir / sanitize_for_log_dirs(label)
        self.dumper.dump(path, None)
        console.print(f"\n\tPost-run logs dumped at: {path}\n")
        return path

    def terminate(self) -> None:
        """Delete the suite's resources and its namespace.

        Custom resources are deleted first, since a namespace holding them can
        hang on deletion, and the helm release is uninstalled while the
        namespace still exists.

        Raises:
            CleanupError: If any deletion failed; every failure is reported.
        """
        if self.config.no_cleanup:
            console.print("[yellow]Skipping namespace cleanup and deletion.[/yellow]")
            return

        console.print(Panel.fit(f"Cleaning up and deleting namespace {self.namespace}", style="bold blue"))
        failures: list[str] = []
        for kind in self.config.cleanup_kinds:
            try:
                self.run_capture(kubectl.delete(kind, "--all"))
            except CommandFailedError as err:
                failures.append(f"Error deleting {kind} resources: {err}")
        try:
            self.runner.run_capture(helm.uninstall(self.config.helm_release, self.namespace))
        except CommandFailedError as err:
            failures.append(f"Error performing helm uninstall: {err}")
        try:
            self.runner.run_capture(kubectl.delete_by_type_and_name("namespace", self.namespace))
        except CommandFailedError as err:
            failures.append(f"Error deleting namespace: {err}")

        if failures:
            raise CleanupError(self.namespace, failures)
        console.print(f"[green]✅ Namespace '{self.namespace}' deleted[/green]")
