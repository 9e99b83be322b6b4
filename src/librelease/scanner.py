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

"""Decide which libraries changed since their last release.

Two modes, chosen by the ecosystem policy:

- **Per-library tags** (default): each released library has a tag
  rendered from its tag template. The tag must exist; a missing tag means
  the previous release was never tagged, which is an error.
- **Shared tag** (``rust``): one diff against the newest tag reachable
  from ``<remote>/<branch>`` serves every library.

Either way, changed paths matching ``release.ignored_changes`` are
dropped and a library is selected when a remaining path lies inside its
output directory. The match is by directory, so ``ai`` does not match
``aiplatform/x.py``.

The conventional bump mode also needs the commits behind those changes;
:func:`conventional_commits_since` collects and parses them per library.
"""

from __future__ import annotations

import fnmatch
from collections.abc import Iterable, Sequence

from librelease.backends.vcs import VCS
from librelease.commit_parsing import ConventionalCommit, parse_commit_message
from librelease.errors import E, LibReleaseError
from librelease.logging import get_logger
from librelease.manifest import LibraryRecord, Manifest
from librelease.policies import VersionPolicy
from librelease.tags import format_tag

log = get_logger(__name__)


def _as_dir(path: str) -> str:
    return path if path.endswith('/') else f'{path}/'


def is_under(path: str, directory: str) -> bool:
    """Return whether ``path`` is inside ``directory`` (or is it)."""
    directory = directory.rstrip('/')
    return path == directory or path.startswith(_as_dir(directory))


def has_changes_in(directory: str, files: Iterable[str]) -> bool:
    """Return whether any of ``files`` lies inside ``directory``."""
    prefix = _as_dir(directory)
    return any(f.startswith(prefix) for f in files)


def _pattern_matches(path: str, pattern: str) -> bool:
    dir_only = pattern.endswith('/')
    anchored = pattern.startswith('/') or '/' in pattern.rstrip('/')
    pattern = pattern.strip('/')
    parts = path.split('/')
    # A directory pattern never matches the last component, which is a file.
    last = len(parts) - 1 if dir_only else len(parts)

    if anchored:
        return any(fnmatch.fnmatchcase('/'.join(parts[: i + 1]), pattern) for i in range(last))
    return any(fnmatch.fnmatchcase(part, pattern) for part in parts[:last])


def is_ignored(path: str, patterns: Sequence[str]) -> bool:
    """Apply gitignore-style ``patterns`` to ``path``; later patterns win.

    Supported syntax: ``*``/``?``/``[...]`` globs, a leading ``/`` or an
    inner ``/`` to anchor at the repository root, a trailing ``/`` to match
    directories only, ``!`` to re-include, and ``#`` comments.
    """
    ignored = False
    for raw in patterns:
        pattern = raw.strip()
        if not pattern or pattern.startswith('#'):
            continue
        if pattern.startswith('!'):
            if ignored and _pattern_matches(path, pattern[1:]):
                ignored = False
        elif not ignored and _pattern_matches(path, pattern):
            ignored = True
    return ignored


def filter_ignored(files: Iterable[str], patterns: Sequence[str]) -> list[str]:
    """Return ``files`` without the ones ``patterns`` ignore."""
    if not patterns:
        return list(files)
    return [f for f in files if not is_ignored(f, patterns)]


async def _changed_since(vcs: VCS, revision: str, patterns: Sequence[str]) -> list[str]:
    files = await vcs.files_changed_since(revision)
    kept = filter_ignored(files, patterns)
    log.debug('files_changed', since=revision, total=len(files), kept=len(kept))
    return kept


async def resolve_release_tag(vcs: VCS, manifest: Manifest, record: LibraryRecord) -> str:
    """Return the commit of ``record``'s last release tag.

    Raises:
        LibReleaseError: ``LR-TAG-NOT-FOUND`` if the tag does not exist.
    """
    tag = format_tag(manifest.tag_format_for(record), name=record.name, version=record.version)
    try:
        return await vcs.resolve_commit(tag)
    except LibReleaseError as exc:
        if exc.code != E.REVISION_NOT_FOUND:
            raise
        raise LibReleaseError(
            code=E.TAG_NOT_FOUND,
            message=f'Error retrieving commit for tag {tag} (from library {record.name} version {record.version}).',
            hint=f"Tag the release that set {record.name} to {record.version} with 'librelease tag', then fetch tags.",
        ) from exc


def _batch_candidates(manifest: Manifest) -> list[LibraryRecord]:
    candidates = []
    for record in manifest.libraries:
        if record.skip_publish:
            log.debug('library_skipped', library=record.name, reason='skip_publish')
        elif not record.version:
            log.debug('library_skipped', library=record.name, reason='unreleased')
        else:
            candidates.append(record)
    return candidates


async def find_libraries_to_bump(
    manifest: Manifest,
    vcs: VCS,
    *,
    policy: VersionPolicy,
    library: str = '',
    all_libraries: bool = False,
) -> list[LibraryRecord]:
    """Select the libraries a bump applies to.

    Args:
        manifest: Working tree manifest snapshot.
        vcs: Version control backend.
        policy: Ecosystem policy; ``policy.shared_tag`` picks the mode.
        library: A single library to bump, regardless of changes.
        all_libraries: Select every released, publishable library with
            changes since its last release.

    Returns:
        The selected records in manifest order.

    Raises:
        LibReleaseError: ``LR-LIBRARY-NOT-FOUND`` for an unknown library,
            ``LR-TAG-NOT-FOUND`` when a released library was never tagged
            (per-library mode), or git failures.
    """
    if not all_libraries:
        return [manifest.library(library)]

    settings = manifest.require_release()
    candidates = _batch_candidates(manifest)
    selected: list[LibraryRecord] = []

    if policy.shared_tag:
        last_tag = await vcs.last_tag(settings.remote, settings.branch)
        log.info('shared_release_tag', tag=last_tag)
        files = await _changed_since(vcs, last_tag, settings.ignored_changes)
        selected = [r for r in candidates if has_changes_in(manifest.output_dir(r), files)]
    else:
        for record in candidates:
            commit = await resolve_release_tag(vcs, manifest, record)
            files = await _changed_since(vcs, commit, settings.ignored_changes)
            if has_changes_in(manifest.output_dir(record), files):
                selected.append(record)

    log.info('libraries_with_changes', libraries=[r.name for r in selected])
    return selected


def should_include_for_release(
    files: Iterable[str],
    source_roots: Sequence[str],
    exclude_paths: Sequence[str],
) -> bool:
    """Return whether a commit touching ``files`` counts towards a release.

    At least one file must be under a source root without being under one
    of the exclude paths.
    """
    for path in files:
        if not any(is_under(path, root) for root in source_roots):
            continue
        if any(is_under(path, excluded) for excluded in exclude_paths):
            continue
        return True
    return False


async def conventional_commits_since(
    vcs: VCS,
    manifest: Manifest,
    record: LibraryRecord,
    since: str,
) -> list[ConventionalCommit]:
    """Return parsed commit records that count towards ``record``'s next release.

    Args:
        vcs: Version control backend.
        manifest: Snapshot the record belongs to (for source root defaults).
        record: The library.
        since: Revision of the last release (exclusive), ``''`` for all
            history.
    """
    roots = list(manifest.source_roots_for(record))
    records: list[ConventionalCommit] = []
    for sha in await vcs.log(since=since, paths=roots):
        files = await vcs.changed_files_in_commit(sha)
        if not should_include_for_release(files, roots, record.release_exclude_paths):
            log.debug('commit_excluded', library=record.name, sha=sha)
            continue
        message = await vcs.commit_message(sha)
        records.extend(parse_commit_message(message, library_id=record.name, sha=sha))
    return records


__all__ = [
    'conventional_commits_since',
    'filter_ignored',
    'find_libraries_to_bump',
    'has_changes_in',
    'is_ignored',
    'is_under',
    'resolve_release_tag',
    'should_include_for_release',
]
