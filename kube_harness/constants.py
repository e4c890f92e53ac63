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


"""Constants shared by the command model, the poller and the test wrapper."""

from __future__ import annotations

# -- Tools --
KUBECTL = "kubectl"
HELM = "helm"
DOCKER = "docker"
KIND = "kind"
K3D = "k3d"

# -- Well-known flags --
FLAG_NAMESPACE = "namespace"
FLAG_OUTPUT = "output"
FLAG_OUTPUT_DIRECTORY = "output-directory"

# -- Polling --
DEFAULT_POLL_INTERVAL_SECONDS = 1.0

# -- Step log layout --
DEFAULT_LOG_ROOT = "build/kubectl_dump"
LOG_DIR_TIMESTAMP_FORMAT = "%Y.%m.%d_%H:%M:%S"
STEP_DIR_FORMAT = "%02d_%s"
AFTER_SUITE_LABEL = "aftersuite"
SANITIZE_PATTERN = r"[\s\\/\-.,]"

# -- Operator under test --
DEFAULT_OPERATOR_IMAGE = "datastax/cass-operator:latest"
DEFAULT_HELM_RELEASE = "cass-operator"
DEFAULT_CLEANUP_KINDS = ("cassandradatacenter",)

# -- Cluster flavors --
DEFAULT_K8S_FLAVOR = "kind"
DEFAULT_CLUSTER_NAME = "kind"
DEFAULT_KIND_NODE_IMAGE = "kindest/node:v1.17.11"
DEFAULT_K3S_IMAGE = "rancher/k3s:v1.17.6-k3s1"
DEFAULT_K3D_SERVERS = 6
CLUSTER_CREATE_MAX_RETRIES = 5
CLUSTER_CREATE_RETRY_WAIT_SECONDS = 10

# -- Waits --
DEFAULT_READY_POD_TIMEOUT_SECONDS = 400  # per pod
DEFAULT_RECONCILE_SETTLE_SECONDS = 60
