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


"""``wait`` subcommand: poll a kubectl command until its output matches."""

from __future__ import annotations

import typer

from kube_harness import console
from kube_harness.command import Command
from kube_harness.config import HarnessConfig
from kube_harness.poll import Expectation, containing, exactly, matching, wait_for
from kube_harness.shell import Runner


def _expectation(exact: str | None, contains: str | None, pattern: str | None) -> Expectation:
    chosen = [(value, build) for value, build in ((exact, exactly), (contains, containing), (pattern, matching))
              if value is not None]
    if len(chosen) != 1:
        raise typer.BadParameter("Exactly one of --exact, --contains or --pattern is required")
    value, build = chosen[0]
    return build(value)


def wait(
    args: list[str] = typer.Argument(..., help="kubectl verb and arguments, e.g. get pod web -o name"),
    exact: str | None = typer.Option(None, "--exact", help="Wait for output equal to this value"),
    contains: str | None = typer.Option(None, "--contains", help="Wait for output containing this value"),
    pattern: str | None = typer.Option(None, "--pattern", help="Wait for output matching this regex"),
    timeout: float = typer.Option(60.0, "--timeout", min=0, help="Seconds to keep polling"),
    namespace: str | None = typer.Option(None, "--namespace", "-n", help="Namespace to scope the command to"),
    require_success: bool = typer.Option(
        False, "--require-success", help="Fail immediately if the command itself fails"),
) -> None:
    """Poll a kubectl command every interval until its output matches."""
    expectation = _expectation(exact, contains, pattern)
    cfg = HarnessConfig()
    cmd = Command(args[0], tuple(args[1:]))
    if namespace:
        cmd = cmd.in_namespace(namespace)

    console.print(f"[yellow]ℹ️  Waiting up to {timeout}s for '{cmd}' to {expectation.describe()}...[/yellow]")
    result = wait_for(cmd, expectation, timeout, interval=cfg.poll_interval,
                      require_success=require_success, runner=Runner(verbose=cfg.verbose))
    console.print(f"[green]✅ Matched: {result}[/green]")
