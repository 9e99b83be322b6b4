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

"""VCS protocol for librelease.

The :class:`VCS` protocol lists every version-control query and mutation
the release core needs. The only production implementation is
:class:`~librelease.backends.vcs.git.GitCLIBackend`; tests use an
in-memory fake.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from librelease.backends._run import CommandResult
from librelease.backends.vcs.git import GitCLIBackend as GitCLIBackend

__all__ = [
    'GitCLIBackend',
    'VCS',
]


@runtime_checkable
class VCS(Protocol):
    """Protocol for version control operations.

    Query methods raise :class:`~librelease.errors.LibReleaseError` when
    git fails, naming the revision or path involved. :meth:`tag` returns
    the raw :class:`CommandResult` so the caller can phrase the failure.
    """

    async def is_clean(self) -> bool:
        """Return ``True`` if the working tree has no uncommitted changes."""
        ...

    async def last_tag(self, remote: str, branch: str) -> str:
        """Return the most recent tag reachable from ``remote/branch``."""
        ...

    async def resolve_commit(self, revision: str) -> str:
        """Return the commit hash for ``revision``.

        Raises:
            LibReleaseError: ``LR-REVISION-NOT-FOUND`` if it does not exist.
        """
        ...

    async def files_changed_since(self, revision: str) -> list[str]:
        """Return repo-relative paths changed since ``revision``."""
        ...

    async def commits_for_path(self, path: str) -> list[str]:
        """Return hashes of commits touching ``path``, newest first."""
        ...

    async def show_file(self, revision: str, path: str) -> str:
        """Return the contents of ``path`` at ``revision``.

        Raises:
            LibReleaseError: ``LR-REVISION-NOT-FOUND`` if the revision or
                the file at that revision does not exist.
        """
        ...

    async def show_file_at_remote_branch(self, remote: str, branch: str, path: str) -> str:
        """Return the contents of ``path`` on ``remote/branch``."""
        ...

    async def log(self, *, since: str = '', paths: list[str] | None = None) -> list[str]:
        """Return hashes of commits after ``since`` touching ``paths``, newest first."""
        ...

    async def changed_files_in_commit(self, sha: str) -> list[str]:
        """Return the paths commit ``sha`` touched."""
        ...

    async def commit_message(self, sha: str) -> str:
        """Return the full message of commit ``sha``."""
        ...

    async def tag(self, tag_name: str, commit: str) -> CommandResult:
        """Create a lightweight tag at ``commit``."""
        ...
