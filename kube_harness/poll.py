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


"""Poll a command at a fixed interval until its output satisfies an expectation."""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass

from tenacity import RetryCallState, RetryError, Retrying, retry_if_result, stop_after_delay, wait_fixed

from kube_harness import logger
from kube_harness.command import Command
from kube_harness.constants import DEFAULT_POLL_INTERVAL_SECONDS
from kube_harness.errors import CommandFailedError, PollTimeoutError
from kube_harness.shell import Runner


class MatchKind(enum.Enum):
    EXACT = "exact"
    CONTAINS = "contains"
    PATTERN = "pattern"


@dataclass(frozen=True)
class Expectation:
    """What a command's output has to satisfy.

    An empty ``value`` is valid: ``exactly("")`` waits for empty output.
    """

    kind: MatchKind
    value: str

    def matches(self, text: str) -> bool:
        if self.kind is MatchKind.EXACT:
            return text == self.value
        if self.kind is MatchKind.CONTAINS:
            return self.value in text
        return re.search(self.value, text) is not None

    def describe(self) -> str:
        verb = {
            MatchKind.EXACT: "equal",
            MatchKind.CONTAINS: "contain",
            MatchKind.PATTERN: "match regex",
        }[self.kind]
        return f"{verb} '{self.value}'"


def exactly(value: str) -> Expectation:
    return Expectation(MatchKind.EXACT, value)


def containing(value: str) -> Expectation:
    return Expectation(MatchKind.CONTAINS, value)


def matching(pattern: str) -> Expectation:
    re.compile(pattern)
    return Expectation(MatchKind.PATTERN, pattern)


@dataclass
class _Observation:
    output: str = ""
    error: CommandFailedError | None = None


def _log_rerun(retry_state: RetryCallState) -> None:
    if retry_state.attempt_number > 1:
        logger.debug("Rerunning previous command (%d)", retry_state.attempt_number - 1)


def wait_for(
    command: Command,
    expectation: Expectation,
    timeout: float,
    interval: float = DEFAULT_POLL_INTERVAL_SECONDS,
    require_success: bool = False,
    runner: Runner | None = None,
) -> str:
    """Re-run ``command`` every ``interval`` seconds until its output matches.

    The loop returns as soon as one attempt matches. Once ``timeout``
    seconds have elapsed without a match it gives up, so the total wait is
    bounded by ``timeout + interval`` plus the duration of one command.

    Args:
        command: Command whose captured output is checked.
        expectation: Predicate the output must satisfy.
        timeout: Seconds after which polling stops.
        interval: Fixed delay between attempts.
        require_success: Fail immediately when the command itself fails,
            instead of treating the failure as "not matching yet".
        runner: Execution engine, defaults to a quiet Runner.

    Returns:
        The output that satisfied the expectation.

    Raises:
        PollTimeoutError: If no attempt matched before the timeout.
        CommandFailedError: If ``require_success`` is set and the command failed.
    """
    runner = runner or Runner()
    seen = _Observation()

    def _attempt() -> bool:
        try:
            seen.output = runner.output(command)
            seen.error = None
        except CommandFailedError as err:
            if require_success:
                raise
            seen.output = err.stdout.removesuffix("\n")
            seen.error = err
            return False
        return expectation.matches(seen.output)

    retrying = Retrying(
        stop=stop_after_delay(timeout),
        wait=wait_fixed(interval),
        retry=retry_if_result(lambda matched: not matched),
        before=_log_rerun,
    )
    try:
        retrying(_attempt)
    except RetryError:
        raise PollTimeoutError(command, expectation, timeout, seen.output, seen.error) from None
    return seen.output


def wait_for_output(command: Command, expected: str, timeout: float, **kwargs) -> str:
    return wait_for(command, exactly(expected), timeout, **kwargs)


def wait_for_output_contains(command: Command, expected: str, timeout: float, **kwargs) -> str:
    return wait_for(command, containing(expected), timeout, **kwargs)


def wait_for_output_pattern(command: Command, pattern: str, timeout: float, **kwargs) -> str:
    return wait_for(command, matching(pattern), timeout, **kwargs)
