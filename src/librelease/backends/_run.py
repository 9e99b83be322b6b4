# Copyright 2026 Google LLC
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
#
# SPDX-License-Identifier: Apache-2.0

"""Subprocess runner shared by the git backend and ecosystem hooks.

Every external tool call (``git``, ``cargo``) goes through
:func:`run_command`. A non-zero exit is part of the result, not an
exception, so each caller words its own failure (a missing revision, an
existing tag). A tool that hangs is different: it is killed after
``timeout`` seconds and reported as ``LR-COMMAND-TIMEOUT``.

Tools never get to prompt: stdin is closed and ``GIT_TERMINAL_PROMPT=0``
is set, so a missing credential fails fast instead of waiting on a
terminal nobody is watching.
"""

from __future__ import annotations

import os
import subprocess  # noqa: S404 - running tools is the point of this module
import time
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path

from librelease.errors import E, LibReleaseError
from librelease.logging import get_logger

log = get_logger('librelease.backends.run')

DEFAULT_TIMEOUT_SECONDS = 300

# Kept short in logs; full output stays on the result.
_LOGGED_STDERR_CHARS = 500


@dataclass(frozen=True)
class CommandResult:
    """What a finished tool invocation produced.

    ``duration`` is in milliseconds.
    """

    command: list[str]
    return_code: int
    stdout: str = ''
    stderr: str = ''
    duration: float = 0.0

    @property
    def ok(self) -> bool:
        """Whether the tool exited with status 0."""
        return self.return_code == 0

    @property
    def command_str(self) -> str:
        """``command`` joined with spaces, for messages."""
        return ' '.join(self.command)


def _tool_env(extra: Mapping[str, str] | None) -> dict[str, str]:
    env = dict(os.environ)
    env['GIT_TERMINAL_PROMPT'] = '0'
    if extra:
        env.update(extra)
    return env


def run_command(
    cmd: Sequence[str],
    *,
    cwd: Path | str | None = None,
    timeout: int = DEFAULT_TIMEOUT_SECONDS,
    env: Mapping[str, str] | None = None,
) -> CommandResult:
    """Run a tool to completion and capture its output.

    Args:
        cmd: Executable followed by its arguments.
        cwd: Directory to run in; the current directory by default.
        timeout: Seconds before the tool is killed.
        env: Variables added on top of the inherited environment.

    Raises:
        LibReleaseError: ``LR-COMMAND-TIMEOUT`` if the tool outlives
            ``timeout``.
    """
    argv = list(cmd)
    where = str(cwd or '.')
    log.debug('command_start', cmd=argv, cwd=where)

    started = time.monotonic()
    try:
        proc = subprocess.run(  # noqa: S603 - arguments are built by this package
            argv,
            cwd=cwd,
            env=_tool_env(env),
            stdin=subprocess.DEVNULL,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as exc:
        log.error('command_timeout', cmd=argv, cwd=where, timeout=timeout)
        raise LibReleaseError(
            code=E.COMMAND_TIMEOUT,
            message=f"'{' '.join(argv)}' in {where} did not finish within {timeout}s.",
        ) from exc
    elapsed_ms = (time.monotonic() - started) * 1000

    result = CommandResult(
        command=argv,
        return_code=proc.returncode,
        stdout=proc.stdout,
        stderr=proc.stderr,
        duration=elapsed_ms,
    )
    if result.ok:
        log.debug('command_done', cmd=argv, ms=round(elapsed_ms))
    else:
        log.debug(
            'command_exit_nonzero',
            cmd=argv,
            code=result.return_code,
            stderr=result.stderr[:_LOGGED_STDERR_CHARS],
            ms=round(elapsed_ms),
        )
    return result


__all__ = [
    'CommandResult',
    'DEFAULT_TIMEOUT_SECONDS',
    'run_command',
]
