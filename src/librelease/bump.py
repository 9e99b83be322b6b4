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

"""Version bumps for one library or every changed library.

Pipeline::

    usage check ──► load manifest ──► release section? ──► clean tree?
         │
         ▼
    select libraries (scanner) ──► derive next versions ──► validate
         │                                                     │
         ▼                                                     ▼
    ecosystem files (policy) ──► librelease.yaml ──► policy post-bump

The next version of each library comes from the first tier that applies:

1. ``--version``: validated against the current version, used verbatim.
2. No current version: ``0.1.0``, or ``0.1.0-preview.1`` on the preview
   channel.
3. Preview channel: coupled to the stable branch
   (:mod:`librelease.channels`).
4. Otherwise classify and derive. ``mechanical`` mode always bumps the
   minor version; ``conventional`` mode classifies the commits since the
   library's last release and skips libraries with nothing releasable.

Every failure aborts the whole run before anything is written.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from librelease.backends.vcs import VCS, GitCLIBackend
from librelease.channels import Channel, next_preview_version, resolve_channel
from librelease.classifier import highest_change
from librelease.commit_parsing import ChangeLevel
from librelease.config import ReleaseSettings
from librelease.errors import E, LibReleaseError
from librelease.history import find_released_libraries
from librelease.logging import get_logger
from librelease.manifest import LibraryRecord, Manifest, load_manifest, write_manifest_versions
from librelease.policies import VersionPolicy, get_policy
from librelease.scanner import conventional_commits_since, find_libraries_to_bump, resolve_release_tag
from librelease.versioning import derive_next, max_version, validate_next

log = get_logger(__name__)

DEFAULT_VERSION = '0.1.0'
DEFAULT_PREVIEW_VERSION = '0.1.0-preview.1'


class BumpMode(str, Enum):
    """How the change level of an already released library is decided."""

    MECHANICAL = 'mechanical'
    CONVENTIONAL = 'conventional'


@dataclass(frozen=True)
class LibraryBump:
    """One library's planned or applied version change."""

    name: str
    old_version: str
    new_version: str
    change_level: ChangeLevel = ChangeLevel.MINOR


@dataclass(frozen=True)
class BumpResult:
    """Outcome of a bump run.

    Attributes:
        bumps: Version changes, in manifest order. Empty for a no-op.
        manifest: The manifest snapshot after the bumps.
        dry_run: Nothing was written.
    """

    bumps: list[LibraryBump] = field(default_factory=list)
    manifest: Manifest | None = None
    dry_run: bool = False


def validate_bump_args(*, library: str, all_libraries: bool, version_override: str) -> None:
    """Reject invalid argument combinations before touching git.

    Raises:
        LibReleaseError: One of the ``LR-USAGE-*`` codes.
    """
    if library and all_libraries:
        raise LibReleaseError(
            code=E.USAGE_LIBRARY_AND_ALL,
            message=f"Library '{library}' and --all cannot both be given.",
        )
    if version_override and all_libraries:
        raise LibReleaseError(
            code=E.USAGE_VERSION_AND_ALL,
            message=f'--version {version_override} cannot be combined with --all.',
        )
    if not library and not all_libraries:
        raise LibReleaseError(
            code=E.USAGE_MISSING_LIBRARY,
            message='Name a library to bump or pass --all.',
        )


async def derive_next_version(
    record: LibraryRecord,
    *,
    settings: ReleaseSettings,
    policy: VersionPolicy,
    vcs: VCS,
    version_override: str = '',
    change_level: ChangeLevel = ChangeLevel.MINOR,
) -> str:
    """Return ``record``'s next version using the tiered rules above."""
    if version_override:
        validate_next(record.version, version_override, options=policy.options, library=record.name)
        return version_override

    preview = resolve_channel(settings) is Channel.PREVIEW
    if not record.version:
        return DEFAULT_PREVIEW_VERSION if preview else DEFAULT_VERSION

    if preview:
        return await next_preview_version(vcs, settings, record.name, record.version, policy.options)

    return derive_next(change_level, record.version, policy.options)


async def _release_base(vcs: VCS, manifest: Manifest, record: LibraryRecord, policy: VersionPolicy) -> str:
    """Return the revision the library was last released at, or ``''``."""
    if not record.version:
        return ''
    if policy.shared_tag:
        settings = manifest.require_release()
        return await vcs.last_tag(settings.remote, settings.branch)
    return await resolve_release_tag(vcs, manifest, record)


async def classify_library(vcs: VCS, manifest: Manifest, record: LibraryRecord, policy: VersionPolicy) -> ChangeLevel:
    """Classify the commits that count towards ``record``'s next release."""
    since = await _release_base(vcs, manifest, record, policy)
    commits = await conventional_commits_since(vcs, manifest, record, since)
    level = highest_change(commits)
    log.debug('library_classified', library=record.name, since=since or None, commits=len(commits), level=str(level))
    return level


async def plan_bumps(
    manifest: Manifest,
    *,
    vcs: VCS,
    policy: VersionPolicy,
    library: str = '',
    all_libraries: bool = False,
    version_override: str = '',
) -> list[LibraryBump]:
    """Select libraries and derive their next versions without writing anything."""
    settings = manifest.require_release()
    mode = BumpMode(settings.bump_mode)
    records = await find_libraries_to_bump(
        manifest,
        vcs,
        policy=policy,
        library=library,
        all_libraries=all_libraries,
    )

    bumps: list[LibraryBump] = []
    for record in records:
        level = ChangeLevel.MINOR
        if mode is BumpMode.CONVENTIONAL and not version_override and record.version:
            level = await classify_library(vcs, manifest, record, policy)
            if level is ChangeLevel.NONE:
                log.info('no_releasable_changes', library=record.name)
                continue

        next_version = await derive_next_version(
            record,
            settings=settings,
            policy=policy,
            vcs=vcs,
            version_override=version_override,
            change_level=level,
        )
        if mode is BumpMode.CONVENTIONAL and record.next_version and not version_override:
            next_version = max_version(record.next_version, next_version)
        bumps.append(LibraryBump(record.name, record.version, next_version, level))
    return bumps


def _apply_to_snapshot(manifest: Manifest, bumps: list[LibraryBump], policy: VersionPolicy) -> Manifest:
    updated = manifest
    for bump in bumps:
        updated = updated.with_version(bump.name, bump.new_version)
    # The bumped manifest must read as a release of exactly these libraries.
    find_released_libraries(manifest, updated, options=policy.options)
    return updated


async def run_bump(
    root: Path,
    *,
    vcs: VCS | None = None,
    library: str = '',
    all_libraries: bool = False,
    version_override: str = '',
    dry_run: bool = False,
) -> BumpResult:
    """Bump one library, or every library changed since its last release.

    Args:
        root: Repository root holding the manifest.
        vcs: Version control backend; defaults to git at ``root``.
        library: The library to bump.
        all_libraries: Bump every changed, released, publishable library.
        version_override: Explicit next version (single library only).
        dry_run: Compute the bumps but write nothing. The clean tree check
            is skipped as well.

    Returns:
        The bumps performed. No selected library is a successful no-op.

    Raises:
        LibReleaseError: Usage, precondition, lookup, versioning or hook
            failures, each with its own code.
    """
    validate_bump_args(library=library, all_libraries=all_libraries, version_override=version_override)

    manifest, text = await load_manifest(root)
    settings = manifest.require_release()
    policy = get_policy(manifest.language)
    if vcs is None:
        vcs = GitCLIBackend(root, executable=settings.git_executable)

    if not dry_run and not await vcs.is_clean():
        raise LibReleaseError(
            code=E.PRECONDITION_DIRTY_WORKTREE,
            message=f'Working tree at {root} has uncommitted changes.',
        )

    bumps = await plan_bumps(
        manifest,
        vcs=vcs,
        policy=policy,
        library=library,
        all_libraries=all_libraries,
        version_override=version_override,
    )
    if not bumps:
        log.info('nothing_to_bump')
        return BumpResult(bumps=[], manifest=manifest, dry_run=dry_run)

    updated = _apply_to_snapshot(manifest, bumps, policy)
    for bump in bumps:
        log.info(
            'library_bumped',
            library=bump.name,
            old=bump.old_version or None,
            new=bump.new_version,
            dry_run=dry_run,
        )
    if dry_run:
        return BumpResult(bumps=bumps, manifest=updated, dry_run=True)

    for bump in bumps:
        record = updated.library(bump.name)
        await policy.apply_version(root, record.name, updated.output_dir(record), bump.new_version)
    await write_manifest_versions(root, text, {b.name: b.new_version for b in bumps})
    await policy.post_bump(root, settings)
    return BumpResult(bumps=bumps, manifest=updated)


__all__ = [
    'BumpMode',
    'BumpResult',
    'DEFAULT_PREVIEW_VERSION',
    'DEFAULT_VERSION',
    'LibraryBump',
    'classify_library',
    'derive_next_version',
    'plan_bumps',
    'run_bump',
    'validate_bump_args',
]
