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


"""docker CLI command constructors for registry login and image transfer."""

from __future__ import annotations

from kube_harness.command import Command
from kube_harness.constants import DOCKER


def login(user: str, password: str, repo: str, config_dir: str | None = None) -> Command:
    """Log in to a registry, piping the password through standard input."""
    cmd = Command("login", ("-u", user, "--password-stdin", repo), tool=DOCKER, input=password)
    if config_dir:
        cmd = cmd.with_config(config_dir)
    return cmd


def pull(image: str) -> Command:
    return Command("pull", (image,), tool=DOCKER)


def tag(source: str, target: str) -> Command:
    return Command("tag", (source, target), tool=DOCKER)


def push(image: str) -> Command:
    return Command("push", (image,), tool=DOCKER)
