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


"""
cli.py - command line entry point for kube_harness.

Subcommands:
    wait       Poll a kubectl command until its output matches
    dump       Dump cluster diagnostics into a directory
    cluster    Create, delete or inspect the local test cluster
    flavors    List supported cluster flavors

Examples:
    # Wait up to 5 minutes for a pod to become ready
    kube-harness wait --exact true --timeout 300 -n test -- \
        get pod web-0 -o 'jsonpath={.status.containerStatuses[0].ready}'

    # Dump logs of one namespace
    kube-harness dump build/dump --namespace test

    # Create a k3d cluster
    kube-harness cluster create --flavor k3d
"""

from __future__ import annotations

import logging
import sys

import typer

from kube_harness import console
from kube_harness.commands import cluster_cmd, dump_cmd, wait_cmd

app = typer.Typer(
    help="Command building, polling and diagnostics for operator integration tests.",
    no_args_is_help=True,
)


@app.callback()
def _main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Initialize logging for all subcommands."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )


app.command("wait")(wait_cmd.wait)
app.command("dump")(dump_cmd.dump)
app.command("flavors")(cluster_cmd.flavors)
app.add_typer(cluster_cmd.app, name="cluster")


def main() -> None:
    try:
        app()
    except Exception as e:
        console.print(f"[red]❌ {e}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
