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


"""``dump`` subcommand: capture cluster diagnostics into a directory."""

from __future__ import annotations

from pathlib import Path

import typer

from kube_harness import console
from kube_harness.config import HarnessConfig
from kube_harness.shell import Runner
from kube_harness.wrapper import ClusterInfoDumper


def dump(
    path: Path = typer.Argument(..., help="Directory to write the dump into"),
    namespace: str | None = typer.Option(None, "--namespace", "-n", help="Namespace to dump"),
    all_namespaces: bool = typer.Option(False, "--all-namespaces", "-A", help="Dump every namespace"),
) -> None:
    """Dump cluster state and pod logs with kubectl cluster-info dump."""
    if (namespace is None) == (not all_namespaces):
        raise typer.BadParameter("Pass either --namespace or --all-namespaces")
    cfg = HarnessConfig()
    ClusterInfoDumper(Runner(verbose=cfg.verbose)).dump(path, namespace)
    console.print(f"[green]✅ Logs dumped at: {path}[/green]")
