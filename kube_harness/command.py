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


"""Immutable, chainable description of one external tool invocation."""

from __future__ import annotations

import shlex
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType

from kube_harness.constants import FLAG_NAMESPACE, FLAG_OUTPUT, KUBECTL


@dataclass(frozen=True)
class Command:
    """A tool, a verb, positional args and ``--name=value`` flags.

    Every builder method returns a new Command; the receiver is never
    modified, so a base command can be reused as a template.

    Attributes:
        verb: Sub-command passed to the tool (e.g. ``get``).
        args: Positional arguments appended after the verb.
        flags: Flag names mapped to values, rendered as ``--name=value``.
        tool: Executable to run.
        config_dir: Tool configuration directory, rendered as ``--config <dir>``.
        input: Text written to the process' standard input.
        env: Extra environment variables for the process.
    """

    verb: str
    args: tuple[str, ...] = ()
    flags: Mapping[str, str] = field(default_factory=dict)
    tool: str = KUBECTL
    config_dir: str | None = None
    input: str | None = None
    env: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "args", tuple(str(a) for a in self.args))
        object.__setattr__(self, "flags", MappingProxyType(dict(self.flags)))
        object.__setattr__(self, "env", MappingProxyType(dict(self.env)))

    # -- builders --

    def with_flag(self, name: str, value: str) -> Command:
        """Set a flag, replacing any previous value for the same name."""
        return replace(self, flags={**self.flags, name: str(value)})

    def in_namespace(self, namespace: str) -> Command:
        return self.with_flag(FLAG_NAMESPACE, namespace)

    def format_output(self, output_type: str) -> Command:
        return self.with_flag(FLAG_OUTPUT, output_type)

    def with_label(self, selector: str) -> Command:
        """Append a ``-l <selector>`` label selector to the positional args."""
        return self.with_args("-l", selector)

    def with_args(self, *args: str) -> Command:
        return replace(self, args=(*self.args, *args))

    def with_config(self, config_dir: str) -> Command:
        return replace(self, config_dir=config_dir)

    def with_input(self, text: str) -> Command:
        return replace(self, input=text)

    def with_env(self, **env: str) -> Command:
        return replace(self, env={**self.env, **env})

    # -- rendering --

    def to_cli_args(self) -> list[str]:
        """Render arguments for the tool, excluding the tool name itself.

        Flags come before the verb because the positional args may contain
        a ``--`` separator that would stop flag parsing.
        """
        cli_args: list[str] = []
        if self.config_dir:
            cli_args += ["--config", self.config_dir]
        cli_args += [f"--{name}={value}" for name, value in self.flags.items()]
        if self.verb:
            cli_args.append(self.verb)
        cli_args += self.args
        return cli_args

    def __hash__(self) -> int:
        return hash((self.tool, self.verb, self.args, frozenset(self.flags.items()),
                     self.config_dir, self.input, frozenset(self.env.items())))

    def __str__(self) -> str:
        return shlex.join([self.tool, *self.to_cli_args()])
