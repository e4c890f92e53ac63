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


"""Execution engine: run a Command as one blocking external process.

Three modes are offered: ``run`` (quiet or verbose fire-and-forget),
``output`` (capture stdout) and ``output_with_input`` (capture stdout after
writing to stdin). ``run_capture`` streams both outputs live while keeping a
copy, for steps that assert on the tool's error text.

A tool that cannot be started and a tool that exits non-zero are both
reported as CommandFailedError; ``exit_code`` is None for the former.
"""

from __future__ import annotations

import os
import sys
from collections.abc import Callable
from typing import IO, Any

import sh

from kube_harness import logger
from kube_harness.command import Command
from kube_harness.errors import CommandFailedError, HarnessError


def _decode(data: bytes | str | None) -> str:
    if isinstance(data, bytes):
        return data.decode("utf-8", errors="replace")
    return data or ""


def trim_newline(text: str) -> str:
    """Remove exactly one trailing newline, keeping any other whitespace."""
    return text[:-1] if text.endswith("\n") else text


def _tee(stream: IO[str], sink: list[str] | None = None) -> Callable[[str], None]:
    """Build an sh output callback that echoes chunks and optionally keeps them."""
    def _write(chunk: str) -> None:
        stream.write(chunk)
        stream.flush()
        if sink is not None:
            sink.append(chunk)
    return _write


def _call(
    command: Command,
    stdin: str | None = None,
    out_sink: list[str] | None = None,
    err_sink: list[str] | None = None,
    **sh_kwargs: Any,
) -> str:
    """Spawn the process and wait for it to exit.

    Args:
        command: Command to execute.
        stdin: Text for standard input; defaults to ``command.input``.
        out_sink: Chunks of stdout already captured by a callback, if any.
        err_sink: Chunks of stderr already captured by a callback, if any.
        **sh_kwargs: Extra special keyword arguments for sh.

    Returns:
        Captured standard output (empty when stdout is redirected).

    Raises:
        CommandFailedError: If the tool cannot start or exits non-zero.
    """
    try:
        program = sh.Command(command.tool)
    except sh.CommandNotFound as err:
        raise CommandFailedError(command, None, stderr=f"{command.tool}: command not found") from err

    call_kwargs: dict[str, Any] = {"_tty_out": False, "_decode_errors": "replace", **sh_kwargs}
    text = command.input if stdin is None else stdin
    if text is not None:
        call_kwargs["_in"] = text
    if command.env:
        call_kwargs["_env"] = {**os.environ, **command.env}

    logger.debug("Running: %s", command)
    try:
        result = program(*command.to_cli_args(), **call_kwargs)
    except sh.ErrorReturnCode as err:
        stdout = "".join(out_sink) if out_sink is not None else _decode(err.stdout)
        stderr = "".join(err_sink) if err_sink is not None else _decode(err.stderr)
        if stderr.strip():
            logger.warning("%s exited with status %s: %s", command, err.exit_code, stderr.strip())
        raise CommandFailedError(command, err.exit_code, stdout, stderr) from err
    except OSError as err:
        raise CommandFailedError(command, None, stderr=str(err)) from err
    return str(result)


def run(command: Command, verbose: bool = False) -> None:
    """Execute a command, discarding stdout unless ``verbose`` is set.

    Args:
        command: Command to execute.
        verbose: Stream stdout and stderr live to the terminal.

    Raises:
        CommandFailedError: If the tool cannot start or exits non-zero.
    """
    if verbose:
        _call(command, _out=_tee(sys.stdout), _err=_tee(sys.stderr))
    else:
        _call(command)


def output(command: Command) -> str:
    """Execute a command and return stdout minus one trailing newline."""
    return trim_newline(_call(command))


def output_with_input(command: Command, stdin: str) -> str:
    """Like ``output``, writing ``stdin`` to the process first."""
    return trim_newline(_call(command, stdin=stdin))


def run_capture(command: Command) -> tuple[str, str]:
    """Execute a command streaming its output live and return (stdout, stderr)."""
    out: list[str] = []
    err: list[str] = []
    _call(command, out_sink=out, err_sink=err, _out=_tee(sys.stdout, out), _err=_tee(sys.stderr, err))
    return "".join(out), "".join(err)


def require_command(tool: str) -> None:
    """Check if a command exists on the system PATH.

    Args:
        tool: Name of the CLI command to check.

    Raises:
        HarnessError: If the command is not found.
    """
    if sh.which(tool) is None:
        raise HarnessError(f"Required command '{tool}' not found. Please install it first.")


class Runner:
    """Execution engine bound to a default verbosity.

    Collaborators take a Runner instead of calling the module functions so
    tests can substitute a fake.
    """

    def __init__(self, verbose: bool = False) -> None:
        self.verbose = verbose

    def run(self, command: Command, verbose: bool | None = None) -> None:
        run(command, self.verbose if verbose is None else verbose)

    def output(self, command: Command) -> str:
        return output(command)

    def output_with_input(self, command: Command, stdin: str) -> str:
        return output_with_input(command, stdin)

    def run_capture(self, command: Command) -> tuple[str, str]:
        return run_capture(command)
