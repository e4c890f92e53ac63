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


"""``cluster`` subcommands (create, delete, exists, env) and flavor listing."""

from __future__ import annotations

import typer

from kube_harness import console
from kube_harness.config import HarnessConfig
from kube_harness.flavors import ClusterActions, default_registry
from kube_harness.shell import Runner, require_command

app = typer.Typer(help="Manage the local test cluster.")


def _config(flavor: str | None, cluster_name: str | None) -> HarnessConfig:
    cfg = HarnessConfig()
    overrides: dict = {}
    if flavor is not None:
        overrides["k8s_flavor"] = flavor
    if cluster_name is not None:
        overrides["cluster_name"] = cluster_name
    if overrides:
        cfg = cfg.model_copy(update=overrides)
    return cfg


def _actions(cfg: HarnessConfig) -> ClusterActions:
    registry = default_registry(Runner(verbose=cfg.verbose), cfg)
    return registry.get(cfg.k8s_flavor)


FlavorOption = typer.Option(None, "--flavor", help="Cluster flavor (overrides M_K8S_FLAVOR)")
NameOption = typer.Option(None, "--cluster-name", help="Cluster name (overrides M_CLUSTER_NAME)")


@app.command()
def create(flavor: str | None = FlavorOption, cluster_name: str | None = NameOption) -> None:
    """Delete any existing cluster, create a new one and configure kubectl."""
    cfg = _config(flavor, cluster_name)
    actions = _actions(cfg)
    require_command(cfg.k8s_flavor)
    if actions.cluster_exists():
        console.print("[yellow]   Removing existing cluster[/yellow]")
        actions.delete_cluster()
    actions.create_cluster()
    actions.setup_kubeconfig()


@app.command()
def delete(flavor: str | None = FlavorOption, cluster_name: str | None = NameOption) -> None:
    """Delete the cluster."""
    _actions(_config(flavor, cluster_name)).delete_cluster()
    console.print("[green]✅ Cluster deleted[/green]")


@app.command()
def exists(flavor: str | None = FlavorOption, cluster_name: str | None = NameOption) -> None:
    """Exit 0 if the cluster exists, 1 otherwise."""
    if not _actions(_config(flavor, cluster_name)).cluster_exists():
        console.print("[yellow]⚠️  Cluster not found[/yellow]")
        raise typer.Exit(code=1)
    console.print("[green]✅ Cluster exists[/green]")


@app.command()
def env(flavor: str | None = FlavorOption, cluster_name: str | None = NameOption) -> None:
    """Print environment variables describing the cluster."""
    for key, value in _actions(_config(flavor, cluster_name)).describe_env().items():
        typer.echo(f"{key}={value}")


def flavors() -> None:
    """List supported cluster flavors."""
    for name in default_registry():
        typer.echo(name)
