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


"""kubectl command constructors for common verbs."""

from __future__ import annotations

from pathlib import Path

import yaml

from kube_harness.command import Command
from kube_harness.constants import FLAG_OUTPUT_DIRECTORY


def _file_args(paths: tuple[str, ...]) -> tuple[str, ...]:
    return tuple(arg for path in paths for arg in ("-f", str(path)))


def _typed_names(resource_type: str, names: tuple[str, ...]) -> tuple[str, ...]:
    return tuple(f"{resource_type}/{name}" for name in names)


def get(*args: str) -> Command:
    return Command("get", args)


def get_by_type_and_name(resource_type: str, *names: str) -> Command:
    return Command("get", _typed_names(resource_type, names))


def get_by_files(*paths: str) -> Command:
    return Command("get", _file_args(paths))


def delete(*args: str) -> Command:
    return Command("delete", args)


def delete_by_type_and_name(resource_type: str, *names: str) -> Command:
    return Command("delete", _typed_names(resource_type, names))


def delete_from_files(*paths: str) -> Command:
    return Command("delete", _file_args(paths))


def apply_files(*paths: str) -> Command:
    return Command("apply", _file_args(paths))


def apply_stdin(manifest: str) -> Command:
    """Apply a manifest passed on standard input."""
    return Command("apply", ("-f", "-"), input=manifest)


def apply_manifests(*documents: dict) -> Command:
    """Apply resource dictionaries, serialized as a multi-document YAML stream."""
    stream = "---\n".join(yaml.dump(doc, default_flow_style=False) for doc in documents)
    return apply_stdin(stream)


def create_from_files(*paths: str) -> Command:
    return Command("create", _file_args(paths))


def create_namespace(namespace: str) -> Command:
    return Command("create", ("namespace", namespace))


def delete_namespace(namespace: str) -> Command:
    return Command("delete", ("namespace", namespace))


def create_secret_literal(name: str, user: str, password: str) -> Command:
    """Create a generic secret holding ``username`` and ``password`` keys."""
    flags = {
        "from-literal=username": user,
        "from-literal=password": password,
    }
    return Command("create", ("secret", "generic", name), flags)


def taint(node: str, key: str, value: str, effect: str) -> Command:
    return Command("taint", ("nodes", node, f"{key}={value}:{effect}"))


def annotate(resource: str, name: str, key: str, value: str) -> Command:
    return Command("annotate", (resource, name, f"{key}={value}"))


def label(resource: str, name: str, key: str, value: str) -> Command:
    return Command("label", (resource, name, f"{key}={value}", "--overwrite"))


def patch_merge(resource: str, data: str) -> Command:
    return Command("patch", (resource, "--patch", data, "--type", "merge"))


def patch_json(resource: str, data: str) -> Command:
    return Command("patch", (resource, "--patch", data, "--type", "json"))


def exec_on_pod(pod_name: str, *args: str) -> Command:
    return Command("exec", (pod_name, *args))


def get_node_name_for_pod(pod_name: str) -> Command:
    return get(f"pod/{pod_name}").format_output("jsonpath={.spec.nodeName}")


def cluster_info_for_context(context: str) -> Command:
    return Command("cluster-info", ("--context", context))


def wait_for_condition(condition: str, resource: str, timeout_seconds: int) -> Command:
    """Server-side wait, e.g. ``wait_for_condition("Ready", "pods", 300)``."""
    return Command("wait", (f"--for=condition={condition}", resource, f"--timeout={timeout_seconds}s"))


def dump_logs(path: str | Path, namespace: str) -> Command:
    """Dump cluster state and pod logs for one namespace into ``path``."""
    return Command("cluster-info", ("dump", "-n", namespace), {FLAG_OUTPUT_DIRECTORY: str(path)})


def dump_all_logs(path: str | Path) -> Command:
    """Dump cluster state and pod logs for all namespaces into ``path``."""
    return Command("cluster-info", ("dump", "-A"), {FLAG_OUTPUT_DIRECTORY: str(path)})
