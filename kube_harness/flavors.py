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


"""Cluster flavors (kind, k3d) and the registry that maps names to actions.

The registry is a plain value built once at startup and handed to whatever
needs it; there is no module-level instance.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass
from pathlib import Path

import docker
from rich.panel import Panel
from tenacity import retry, stop_after_attempt, wait_fixed

from kube_harness import console, logger
from kube_harness.command import Command
from kube_harness.config import HarnessConfig
from kube_harness.constants import (
    CLUSTER_CREATE_MAX_RETRIES,
    CLUSTER_CREATE_RETRY_WAIT_SECONDS,
    DEFAULT_K3D_SERVERS,
    DEFAULT_K3S_IMAGE,
    DEFAULT_KIND_NODE_IMAGE,
    K3D,
    KIND,
)
from kube_harness.errors import CommandFailedError, UnknownFlavorError
from kube_harness.shell import Runner


@dataclass(frozen=True)
class ClusterActions:
    """Operations a test run needs from a local cluster flavor."""

    delete_cluster: Callable[[], None]
    cluster_exists: Callable[[], bool]
    create_cluster: Callable[[], None]
    load_image: Callable[[str], None]
    reload_local_image: Callable[[str], None]
    setup_kubeconfig: Callable[[], None]
    describe_env: Callable[[], dict[str, str]]


class FlavorRegistry:
    """Mapping of flavor name to ClusterActions."""

    def __init__(self) -> None:
        self._flavors: dict[str, ClusterActions] = {}

    def register(self, name: str, actions: ClusterActions) -> None:
        self._flavors[name] = actions

    def get(self, name: str) -> ClusterActions:
        try:
            return self._flavors[name]
        except KeyError:
            raise UnknownFlavorError(name, self.names()) from None

    def names(self) -> list[str]:
        return sorted(self._flavors)

    def __contains__(self, name: object) -> bool:
        return name in self._flavors

    def __iter__(self) -> Iterator[str]:
        return iter(self.names())


def _create_with_retry(runner: Runner, cmd: Command, flavor: str) -> None:
    console.print(Panel.fit(f"Creating {flavor} cluster", style="bold blue"))

    @retry(
        stop=stop_after_attempt(CLUSTER_CREATE_MAX_RETRIES),
        wait=wait_fixed(CLUSTER_CREATE_RETRY_WAIT_SECONDS),
        reraise=True,
    )
    def _attempt() -> None:
        try:
            runner.run(cmd, verbose=True)
        except CommandFailedError:
            console.print(f"[yellow]⚠️  {flavor} failed to create the cluster, retrying...[/yellow]")
            raise

    _attempt()
    console.print("[green]✅ Cluster created successfully[/green]")


def _remove_node_image(image: str, node_image_prefix: str) -> None:
    """Remove a stale copy of ``image`` from every node container of a flavor."""
    full_image = f"docker.io/{image}"
    client = docker.from_env()
    try:
        for container in client.containers.list():
            if not container.attrs.get("Config", {}).get("Image", "").startswith(node_image_prefix):
                continue
            console.print(f"[yellow]   Deleting old image from node container {container.short_id}[/yellow]")
            exit_code, out = container.exec_run(["crictl", "rmi", full_image])
            if exit_code != 0:
                logger.debug("crictl rmi %s on %s: %s", full_image, container.short_id, out)
    finally:
        client.close()


def kind_actions(runner: Runner, config: HarnessConfig, node_image: str = DEFAULT_KIND_NODE_IMAGE) -> ClusterActions:
    name = config.cluster_name

    def _kind(verb: str, *args: str) -> Command:
        return Command(verb, args, tool=KIND)

    def delete_cluster() -> None:
        runner.run(_kind("delete", "cluster", "--name", name))

    def cluster_exists() -> bool:
        return name in runner.output(_kind("get", "clusters")).split()

    def create_cluster() -> None:
        _create_with_retry(runner, _kind("create", "cluster", "--name", name, "--image", node_image), KIND)

    def load_image(image: str) -> None:
        console.print(f"[yellow]ℹ️  Loading image in kind: {image}[/yellow]")
        runner.run(_kind("load", "docker-image", image, "--name", name))

    def reload_local_image(image: str) -> None:
        _remove_node_image(image, "kindest")
        load_image(image)

    def setup_kubeconfig() -> None:
        runner.run(_kind("export", "kubeconfig", "--name", name))

    def describe_env() -> dict[str, str]:
        return {"M_K8S_FLAVOR": KIND, "M_CLUSTER_NAME": name}

    return ClusterActions(
        delete_cluster=delete_cluster,
        cluster_exists=cluster_exists,
        create_cluster=create_cluster,
        load_image=load_image,
        reload_local_image=reload_local_image,
        setup_kubeconfig=setup_kubeconfig,
        describe_env=describe_env,
    )


def k3d_actions(runner: Runner, config: HarnessConfig, k3s_image: str = DEFAULT_K3S_IMAGE,
                servers: int = DEFAULT_K3D_SERVERS) -> ClusterActions:
    name = config.cluster_name

    def _k3d(verb: str, *args: str) -> Command:
        return Command(verb, args, tool=K3D)

    def delete_cluster() -> None:
        runner.run(_k3d("cluster", "delete", name))

    def cluster_exists() -> bool:
        try:
            runner.run(_k3d("cluster", "list", name))
        except CommandFailedError:
            return False
        return True

    def create_cluster() -> None:
        cmd = _k3d("cluster", "create", name, "--servers", str(servers), "--image", k3s_image, "--wait")
        _create_with_retry(runner, cmd, K3D)

    def load_image(image: str) -> None:
        console.print(f"[yellow]ℹ️  Loading image in k3d: {image}[/yellow]")
        runner.run(_k3d("image", "import", image, "--cluster", name))

    def reload_local_image(image: str) -> None:
        _remove_node_image(image, "rancher/k3s")
        load_image(image)

    def setup_kubeconfig() -> None:
        kubeconfig_dir = Path.home() / ".kube"
        kubeconfig_dir.mkdir(parents=True, exist_ok=True)
        kubeconfig_path = kubeconfig_dir / "config"
        runner.run(_k3d("kubeconfig", "merge", name, "-o", str(kubeconfig_path)))
        kubeconfig_path.chmod(0o600)
        console.print(f"[green]  ✓ Merged to {kubeconfig_path}[/green]")

    def describe_env() -> dict[str, str]:
        return {"M_K8S_FLAVOR": K3D, "M_CLUSTER_NAME": name}

    return ClusterActions(
        delete_cluster=delete_cluster,
        cluster_exists=cluster_exists,
        create_cluster=create_cluster,
        load_image=load_image,
        reload_local_image=reload_local_image,
        setup_kubeconfig=setup_kubeconfig,
        describe_env=describe_env,
    )


def default_registry(runner: Runner | None = None, config: HarnessConfig | None = None) -> FlavorRegistry:
    """Build a registry holding the kind and k3d flavors."""
    config = config or HarnessConfig()
    runner = runner or Runner(verbose=config.verbose)
    registry = FlavorRegistry()
    registry.register(KIND, kind_actions(runner, config))
    registry.register(K3D, k3d_actions(runner, config))
    return registry
