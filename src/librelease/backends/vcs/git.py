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

"""Git VCS backend for librelease.

:class:`GitCLIBackend` implements the :class:`~librelease.backends.vcs.VCS`
protocol by shelling out to ``git`` through :func:`run_command`. Each
blocking call is dispatched with ``asyncio.to_thread()``; callers await
them one at a time.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

from librelease.backends._run import CommandResult, run_command
from librelease.errors import E, ErrorCode, LibReleaseError
from librelease.logging import get_logger

log = get_logger('librelease.backends.git')


def _lines(result: CommandResult) -> list[str]:
    return [line for line in result.stdout.splitlines() if line.strip()]


class GitCLIBackend:
    """Default :class:`~librelease.backends.vcs.VCS` implementation using ``git``.

    Args:
        repo_root: Path to the git repository root.
        executable: The ``git`` binary (``release.preinstalled.git``).
    """

    def __init__(self, repo_root: Path, *, executable: str = 'git') -> None:
        """Initialize with the repository root and git binary."""
        self._root = repo_root
        self._executable = executable

    def _git(self, *args: str) -> CommandResult:
        """Run a git command synchronously (called via to_thread)."""
        return run_command([self._executable, *args], cwd=self._root)

    async def _checked(self, *args: str, code: ErrorCode = E.GIT_COMMAND_FAILED, what: str = '') -> CommandResult:
        result = await asyncio.to_thread(self._git, *args)
        if not result.ok:
            detail = result.stderr.strip() or f'exit status {result.return_code}'
            raise LibReleaseError(
                code=code,
                message=f'{what or result.command_str} failed: {detail}',
            )
        return result

    async def is_clean(self) -> bool:
        """Return ``True`` if the working tree has no changes."""
        result = await self._checked('status', '--porcelain', what='git status')
        return result.stdout.strip() == ''

    async def last_tag(self, remote: str, branch: str) -> str:
        """Return the most recent tag reachable from ``remote/branch``."""
        result = await self._checked(
            'describe',
            '--abbrev=0',
            '--tags',
            f'{remote}/{branch}',
            what=f'finding the last tag on {remote}/{branch}',
        )
        return result.stdout.strip()

    async def resolve_commit(self, revision: str) -> str:
        """Return the commit hash that ``revision`` (a tag, branch...) points to."""
        result = await self._checked(
            'rev-list',
            '-n',
            '1',
            revision,
            '--',
            code=E.REVISION_NOT_FOUND,
            what=f'resolving {revision}',
        )
        return result.stdout.strip()

    async def files_changed_since(self, revision: str) -> list[str]:
        """Return paths that differ between ``revision`` and the working tree."""
        result = await self._checked(
            'diff',
            '--name-only',
            revision,
            what=f'listing files changed since {revision}',
        )
        return _lines(result)

    async def commits_for_path(self, path: str) -> list[str]:
        """Return hashes of commits that touched ``path``, newest first."""
        result = await self._checked(
            'log',
            '--pretty=format:%H',
            '--',
            path,
            what=f'listing commits for {path}',
        )
        return _lines(result)

    async def show_file(self, revision: str, path: str) -> str:
        """Return the contents of ``path`` at ``revision``."""
        result = await self._checked(
            'show',
            f'{revision}:{path}',
            code=E.REVISION_NOT_FOUND,
            what=f'reading {path} at {revision}',
        )
        return result.stdout

    async def show_file_at_remote_branch(self, remote: str, branch: str, path: str) -> str:
        """Return the contents of ``path`` on ``remote/branch``."""
        return await self.show_file(f'{remote}/{branch}', path)

    async def log(self, *, since: str = '', paths: list[str] | None = None) -> list[str]:
        """Return commit hashes after ``since`` (exclusive), newest first."""
        cmd_parts = ['log', '--pretty=format:%H']
        if since:
            cmd_parts.append(f'{since}..HEAD')
        if paths:
            cmd_parts.append('--')
            cmd_parts.extend(paths)
        result = await self._checked(*cmd_parts, what=f'git log since {since or "the first commit"}')
        return _lines(result)

    async def changed_files_in_commit(self, sha: str) -> list[str]:
        """Return the paths a single commit touched."""
        result = await self._checked(
            'diff-tree',
            '--no-commit-id',
            '--name-only',
            '--root',
            '-r',
            sha,
            what=f'listing files in commit {sha}',
        )
        return _lines(result)

    async def commit_message(self, sha: str) -> str:
        """Return the full message of commit ``sha``."""
        result = await self._checked(
            'log',
            '-1',
            '--pretty=format:%B',
            sha,
            what=f'reading the message of commit {sha}',
        )
        return result.stdout

    async def tag(self, tag_name: str, commit: str) -> CommandResult:
        """Create a lightweight tag ``tag_name`` at ``commit``."""
        log.info('tag', tag=tag_name, commit=commit)
        return await asyncio.to_thread(self._git, 'tag', tag_name, commit)


__all__ = [
    'GitCLIBackend',
]
