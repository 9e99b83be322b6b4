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

"""Release tags: rendering tag names and tagging release commits.

Tag templates use two placeholders::

    {name}/v{version}     lib1/v1.2.0
    {name}-v{version}     lib1-v1.2.0

Substitution is a single pass, so a ``{version}`` that appears inside a
library name is left alone rather than expanded.

``librelease tag`` finds the latest release commit in the manifest
history (see :mod:`librelease.history`), works out which libraries that
commit released, and creates one lightweight tag per library at that
commit. A failing ``git tag`` (usually because the tag already exists)
aborts the command; nothing is retried and tags created before the
failure are kept.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path

from librelease.backends.vcs import VCS, GitCLIBackend
from librelease.config import MANIFEST_FILE
from librelease.errors import E, LibReleaseError
from librelease.history import find_latest_release_commit, find_released_libraries, load_snapshot
from librelease.logging import get_logger
from librelease.manifest import Manifest, load_manifest
from librelease.policies import get_policy

log = get_logger(__name__)

_PLACEHOLDER = re.compile(r'\{(name|version)\}')


def format_tag(tag_format: str, *, name: str, version: str) -> str:
    """Render ``tag_format`` for one library.

    >>> format_tag('{name}/v{version}', name='lib1', version='1.2.0')
    'lib1/v1.2.0'
    """
    values = {'name': name, 'version': version}
    return _PLACEHOLDER.sub(lambda m: values[m.group(1)], tag_format)


@dataclass(frozen=True)
class TagResult:
    """Outcome of tagging one release commit.

    Attributes:
        commit: The release commit that was tagged.
        tags: Tag names created, in manifest order.
    """

    commit: str
    tags: list[str] = field(default_factory=list)


async def tag_release(
    vcs: VCS,
    *,
    commit: str,
    manifest: Manifest,
    libraries: list[str],
) -> TagResult:
    """Create one lightweight tag per released library at ``commit``.

    Args:
        vcs: Version control backend.
        commit: The release commit.
        manifest: Manifest snapshot as of ``commit``.
        libraries: Names of the libraries released by ``commit``.

    Raises:
        LibReleaseError: ``LR-TAG-CREATION-FAILED`` naming the tag, on the
            first tag git refuses to create.
    """
    created: list[str] = []
    for name in libraries:
        record = manifest.library(name)
        tag_name = format_tag(manifest.tag_format_for(record), name=record.name, version=record.version)
        result = await vcs.tag(tag_name, commit)
        if not result.ok:
            raise LibReleaseError(
                code=E.TAG_CREATION_FAILED,
                message=f'Error creating tag {tag_name} at {commit}: {result.stderr.strip()}',
            )
        created.append(tag_name)
    log.info('tags_created', commit=commit, tags=created)
    return TagResult(commit=commit, tags=created)


async def run_tag(root: Path, *, vcs: VCS | None = None, library: str = '') -> TagResult:
    """Tag the latest release commit.

    Args:
        root: Repository root holding the manifest.
        vcs: Version control backend; defaults to git at ``root``.
        library: Only consider release commits that released this library.
            Every library released by that commit is still tagged.

    Raises:
        LibReleaseError: ``LR-PRECONDITION-DIRTY-WORKTREE`` for a dirty
            tree, ``LR-RELEASE-COMMIT-NOT-FOUND`` when there is nothing to
            tag, ``LR-TAG-CREATION-FAILED`` when a tag cannot be created.
    """
    manifest, _ = await load_manifest(root)
    if vcs is None:
        git = manifest.release.git_executable if manifest.release else 'git'
        vcs = GitCLIBackend(root, executable=git)
    options = get_policy(manifest.language).options

    if not await vcs.is_clean():
        raise LibReleaseError(
            code=E.PRECONDITION_DIRTY_WORKTREE,
            message=f'Working tree at {root} has uncommitted changes.',
        )

    commit = await find_latest_release_commit(vcs, library=library, options=options)
    after = await load_snapshot(vcs, commit, MANIFEST_FILE)
    before = await load_snapshot(vcs, f'{commit}~', MANIFEST_FILE)
    released = find_released_libraries(before, after, options=options)
    log.info('released_libraries', commit=commit, libraries=released)
    return await tag_release(vcs, commit=commit, manifest=after, libraries=released)


__all__ = [
    'TagResult',
    'format_tag',
    'run_tag',
    'tag_release',
]
