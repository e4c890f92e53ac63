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


"""Harness configuration, auto-loaded from M_* environment variables."""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from kube_harness.constants import (
    DEFAULT_CLEANUP_KINDS,
    DEFAULT_CLUSTER_NAME,
    DEFAULT_HELM_RELEASE,
    DEFAULT_K8S_FLAVOR,
    DEFAULT_LOG_ROOT,
    DEFAULT_OPERATOR_IMAGE,
    DEFAULT_POLL_INTERVAL_SECONDS,
)


class HarnessConfig(BaseSettings):
    """Runtime settings for the execution engine and namespace wrapper.

    Attributes:
        verbose: Stream tool output live instead of suppressing it.
        no_cleanup: Leave the test namespace in place on terminate.
        log_root: Base directory for per-suite diagnostic dumps.
        poll_interval: Seconds between attempts when polling command output.
        operator_image: Operator image passed to helm installs.
        helm_release: Helm release name of the operator under test.
        cleanup_kinds: Resource kinds deleted with ``--all`` before the namespace.
        k8s_flavor: Name of the cluster flavor to operate on.
        cluster_name: Name of the local cluster managed by the flavor.
    """

    model_config = SettingsConfigDict(env_prefix="M_", extra="ignore")

    verbose: bool = False
    no_cleanup: bool = False
    log_root: Path = Path(DEFAULT_LOG_ROOT)
    poll_interval: float = Field(default=DEFAULT_POLL_INTERVAL_SECONDS, gt=0)
    operator_image: str = Field(default=DEFAULT_OPERATOR_IMAGE, min_length=1)
    helm_release: str = DEFAULT_HELM_RELEASE
    cleanup_kinds: list[str] = Field(default_factory=lambda: list(DEFAULT_CLEANUP_KINDS))
    k8s_flavor: str = DEFAULT_K8S_FLAVOR
    cluster_name: str = Field(default=DEFAULT_CLUSTER_NAME, pattern=r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?$")
