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

"""Reconstruct releases from the manifest's git history.

No tag is trusted here: a release is the commit whose manifest raised
some library's version compared to the manifest one commit earlier in
the manifest's own history. That is how ``librelease tag`` finds the
commit it should tag after a bump was merged.

Key Concepts (ELI5)::

    ┌─────────────────────────┬────────────────────────────────────────────┐
    │ Concept                 │ ELI5 Explanation                           │
    ├─────────────────────────┼────────────────────────────────────────────┤
    │ find_released_libraries │ Compare two photos of the manifest and    │
    │                         │ list the libraries whose version went up. │
    ├─────────────────────────┼────────────────────────────────────────────┤
    │ ReleaseScan             │ Walks history newest to oldest, holding   │
    │                         │ the newer photo. When older -> newer is a │
    │                         │ release, the NEWER commit is the answer.  │
    └─────────────────────────┴────────────────────────────────────────────┘

Walking backwards::

    HEAD  c3  libs: a=1.1.0   <- newer_snapshot when visiting c2
          c2  libs: a=1.0.0   c2 -> c3 raised a: return c3
          c1  libs: a=1.0.0
"""

from __future__ import annotations

from dataclasses import dataclass

from librelease.backends.vcs import VCS
from librelease.config import MANIFEST_FILE
from librelease.errors import E, LibReleaseError
from librelease.logging import get_logger
from librelease.manifest import Manifest, parse_manifest
from librelease.versioning import DeriveOptions, validate_next

log = get_logger(__name__)


def find_released_libraries(
    before: Manifest,
    after: Manifest,
    *,
    options: DeriveOptions | None = None,
) -> list[str]:
    """Return the libraries released by the change from ``before`` to ``after``.

    Only libraries in ``after`` are considered, in its order:

    - new in ``after`` with a version: released, if that version is valid;
    - version removed: error;
    - version unchanged: not released;
    - version changed: released, if it is a legitimate successor.

    Libraries that only exist in ``before`` are ignored.

    Raises:
        LibReleaseError: ``LR-VERSION-REMOVED`` or any error from
            :func:`~librelease.versioning.validate_next`. One bad library
            fails the whole comparison.
    """
    released: list[str] = []
    for candidate in after.libraries:
        previous = before.find(candidate.name)
        if previous is None:
            if candidate.version:
                validate_next('', candidate.version, options=options, library=candidate.name)
                released.append(candidate.name)
            continue
        if not candidate.version:
            if previous.version:
                raise LibReleaseError(
                    code=E.VERSION_REMOVED,
                    message=f"Library '{candidate.name}' has no version; was at version {previous.version}.",
                )
            continue
        if candidate.version == previous.version:
            continue
        validate_next(previous.version, candidate.version, options=options, library=candidate.name)
        released.append(candidate.name)
    return released


@dataclass(frozen=True)
class ReleaseScan:
    """State of a backwards walk over manifest history.

    Attributes:
        newer_snapshot: Manifest of the most recently visited commit, which
            is chronologically later than the next one to visit.
        newer_commit: Hash of that commit.
    """

    newer_snapshot: Manifest | None = None
    newer_commit: str = ''

    def step(
        self,
        commit: str,
        snapshot: Manifest,
        *,
        library: str = '',
        options: DeriveOptions | None = None,
    ) -> tuple[ReleaseScan, str | None]:
        """Visit the next older commit.

        Returns:
            The new scan state and, when the transition from ``snapshot``
            to the newer snapshot released ``library`` (or anything, with
            no filter), the newer commit hash.
        """
        if self.newer_snapshot is not None:
            released = find_released_libraries(snapshot, self.newer_snapshot, options=options)
            if released and (not library or library in released):
                return self, self.newer_commit
        return ReleaseScan(newer_snapshot=snapshot, newer_commit=commit), None


async def load_snapshot(vcs: VCS, revision: str, path: str = MANIFEST_FILE) -> Manifest:
    """Load the manifest as of ``revision``."""
    text = await vcs.show_file(revision, path)
    return parse_manifest(text, source=f'{revision}:{path}')


async def find_latest_release_commit(
    vcs: VCS,
    *,
    library: str = '',
    options: DeriveOptions | None = None,
    path: str = MANIFEST_FILE,
) -> str:
    """Return the newest commit that released ``library`` (or any library).

    Raises:
        LibReleaseError: ``LR-RELEASE-COMMIT-NOT-FOUND`` when no commit in
            the manifest's history qualifies; parse and validation errors
            of any visited snapshot propagate.
    """
    scan = ReleaseScan()
    for commit in await vcs.commits_for_path(path):
        snapshot = await load_snapshot(vcs, commit, path)
        scan, found = scan.step(commit, snapshot, library=library, options=options)
        if found is not None:
            log.info('release_commit_found', commit=found, library=library or None)
            return found

    target = f'library {library}' if library else 'any library'
    raise LibReleaseError(
        code=E.RELEASE_COMMIT_NOT_FOUND,
        message=f'No commit in the history of {path} released {target}.',
    )


__all__ = [
    'ReleaseScan',
    'find_latest_release_commit',
    'find_released_libraries',
    'load_snapshot',
]
