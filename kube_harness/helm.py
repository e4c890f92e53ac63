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


"""helm command constructors."""

from __future__ import annotations

from collections.abc import Mapping

from kube_harness.command import Command
from kube_harness.constants import FLAG_NAMESPACE, HELM


def install(chart_path: str, release_name: str, namespace: str,
            overrides: Mapping[str, str] | None = None) -> Command:
    """Install a chart; overrides are joined into a single ``--set`` value.

    Args:
        chart_path: Local path or reference of the chart.
        release_name: Helm release name.
        namespace: Namespace to install the release into.
        overrides: Chart values to override, or None.

    Returns:
        The helm install command.
    """
    args: list[str] = []
    if overrides:
        args += ["--set", ",".join(f"{key}={value}" for key, value in overrides.items())]
    args += [release_name, chart_path]
    return Command("install", tuple(args), {FLAG_NAMESPACE: namespace}, tool=HELM)


def uninstall(release_name: str, namespace: str) -> Command:
    return Command("uninstall", (release_name,), {FLAG_NAMESPACE: namespace}, tool=HELM)
