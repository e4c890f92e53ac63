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


"""Exception taxonomy for command execution, polling and test steps."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from kube_harness.command import Command
    from kube_harness.poll import Expectation


class HarnessError(RuntimeError):
    """Base class for all kube_harness errors."""


class CommandFailedError(HarnessError):
    """The external tool could not be started or exited non-zero.

    Attributes:
        command: The command that was executed.
        exit_code: Process exit status, or None if the process never started.
        stdout: Captured standard output, if any.
        stderr: Captured standard error, or the spawn failure reason.
    """

    def __init__(
        self,
        command: Command,
        exit_code: int | None,
        stdout: str = "",
        stderr: str = "",
    ) -> None:
        self.command = command
        self.exit_code = exit_code
        self.stdout = stdout
        self.stderr = stderr
        if exit_code is None:
            reason = f"could not be started: {stderr.strip()}"
        else:
            reason = f"exited with status {exit_code}"
            detail = stderr.strip() or stdout.strip()
            if detail:
                reason = f"{reason}: {detail}"
        super().__init__(f"Command '{command}' {reason}")


class PollTimeoutError(HarnessError):
    """Command output never satisfied the expectation before the deadline.

    Attributes:
        command: The polled command.
        expectation: What the output was expected to satisfy.
        timeout: Deadline in seconds.
        last_output: Output observed on the final attempt.
        last_error: Command failure observed on the final attempt, if any.
    """

    def __init__(
        self,
        command: Command,
        expectation: Expectation,
        timeout: float,
        last_output: str,
        last_error: CommandFailedError | None = None,
    ) -> None:
        self.command = command
        self.expectation = expectation
        self.timeout = timeout
        self.last_output = last_output
        self.last_error = last_error
        msg = (
            f"Timed out after {timeout}s waiting for value. "
            f"Expected output to {expectation.describe()}, "
            f"but '{last_output}' did not match"
        )
        if last_error is not None:
            msg = f"{msg}\nThe following error occurred while querying k8s: {last_error}"
        super().__init__(msg)


class StepFailedError(HarnessError, AssertionError):
    """A logged test step did not complete successfully.

    Subclasses AssertionError so test runners report it as a failed
    assertion rather than an error.
    """

    def __init__(
        self,
        description: str,
        command: Command | None,
        log_dir: Path | None,
        cause: BaseException | str,
    ) -> None:
        self.description = description
        self.command = command
        self.log_dir = log_dir
        self.cause = cause
        lines = [f"Step '{description}' failed: {cause}"]
        if command is not None:
            lines.append(f"  command: {command}")
        if log_dir is not None:
            lines.append(f"  cluster logs: {log_dir}")
        super().__init__("\n".join(lines))


class CleanupError(HarnessError, AssertionError):
    """One or more resources could not be removed while tearing down a suite."""

    def __init__(self, namespace: str, failures: list[str]) -> None:
        self.namespace = namespace
        self.failures = failures
        super().__init__(
            f"One or more errors occurred while cleaning up namespace '{namespace}'.\n"
            + "\n".join(failures)
        )


class UnknownFlavorError(HarnessError, KeyError):
    """Requested cluster flavor is not in the registry."""

    def __init__(self, name: str, supported: list[str]) -> None:
        self.name = name
        self.supported = supported
        super().__init__(f"Unknown cluster flavor '{name}'. Supported flavors: {', '.join(supported)}")

    def __str__(self) -> str:
        return self.args[0]
