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

"""Release channels and the preview/stable coupling.

A repository can release the same library from two branches: the stable
branch (``main``) and a preview branch whose versions always carry a
pre-release segment. A preview version must never fall behind the stable
version of the same library, so each preview bump looks at the stable
branch's manifest first.

Key Concepts (ELI5)::

    ┌─────────────────────┬────────────────────────────────────────────────┐
    │ Concept             │ ELI5 Explanation                               │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ Channel             │ Which train you are on: STABLE or PREVIEW.    │
    │                     │ Decided by the branch in the release section. │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ stable baseline     │ The stable train's version of this library.   │
    │                     │ "0.0.0" if the stable train has not got it.   │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ PreviewStrategy     │ Decides which of the two versions to bump     │
    │                     │ from. Swappable, so other schemes can plug in.│
    └─────────────────────┴────────────────────────────────────────────────┘

The default :class:`CatchUpPreviewStrategy`::

    preview core > stable core   1.3.0-preview.2, stable 1.2.0 -> 1.3.0-preview.3
    preview core == stable core  1.2.0-preview.2, stable 1.2.0 -> 1.3.0-preview.1
    preview core < stable core   1.1.0-preview.4, stable 1.2.0 -> 1.3.0-preview.1
"""

from __future__ import annotations

from dataclasses import replace
from enum import Enum
from typing import Protocol, runtime_checkable

from librelease.backends.vcs import VCS
from librelease.commit_parsing import ChangeLevel
from librelease.config import MANIFEST_FILE, ReleaseSettings
from librelease.errors import E, LibReleaseError
from librelease.logging import get_logger
from librelease.manifest import parse_manifest
from librelease.versioning import DeriveOptions, bump_parsed, parse_version

log = get_logger(__name__)

ZERO_VERSION = '0.0.0'


class Channel(str, Enum):
    """Release channel of the current checkout."""

    STABLE = 'stable'
    PREVIEW = 'preview'


def resolve_channel(settings: ReleaseSettings) -> Channel:
    """Return the channel the release branch belongs to."""
    if settings.branch == settings.preview_branch:
        return Channel.PREVIEW
    return Channel.STABLE


@runtime_checkable
class PreviewStrategy(Protocol):
    """Computes the next preview version from the preview and stable versions."""

    def next_preview(self, preview: str, stable: str, options: DeriveOptions) -> str:
        """Return the next preview version."""
        ...


class CatchUpPreviewStrategy:
    """Keep the preview track strictly ahead of the stable track.

    When the preview core is ahead of stable, only the pre-release counter
    moves. Otherwise the preview adopts the stable core (if it was behind)
    and bumps it by a minor, restarting the counter at 1.
    """

    def next_preview(self, preview: str, stable: str, options: DeriveOptions) -> str:
        """Return the next preview version.

        Raises:
            LibReleaseError: ``LR-VERSION-NOT-PREVIEW`` if ``preview`` has
                no pre-release segment, ``LR-VERSION-INVALID`` if either
                version does not parse.
        """
        preview_version = parse_version(preview)
        if not preview_version.is_prerelease:
            raise LibReleaseError(
                code=E.VERSION_NOT_PREVIEW,
                message=f'Preview version {preview} has no pre-release segment.',
                hint='Versions on the preview branch look like 1.2.0-preview.1.',
            )
        stable_version = parse_version(stable)

        if preview_version.core > stable_version.core:
            next_options = replace(options, bump_version_core=False)
        elif preview_version.core == stable_version.core:
            next_options = replace(options, bump_version_core=True)
        else:
            preview_version = replace(
                preview_version,
                major=stable_version.major,
                minor=stable_version.minor,
                patch=stable_version.patch,
            )
            next_options = replace(options, bump_version_core=True)

        return str(bump_parsed(ChangeLevel.MINOR, preview_version, next_options))


def derive_next_preview(
    preview: str,
    stable: str,
    options: DeriveOptions | None = None,
    *,
    strategy: PreviewStrategy | None = None,
) -> str:
    """Return the next preview version given the stable baseline."""
    return (strategy or CatchUpPreviewStrategy()).next_preview(preview, stable, options or DeriveOptions())


async def stable_baseline(vcs: VCS, settings: ReleaseSettings, library: str) -> str:
    """Return ``library``'s version on the stable branch.

    The manifest is read from ``<remote>/<stable_branch>``. A library the
    stable manifest does not list yet counts as ``0.0.0``; any other
    failure propagates.
    """
    text = await vcs.show_file_at_remote_branch(settings.remote, settings.stable_branch, MANIFEST_FILE)
    stable = parse_manifest(text, source=f'{settings.remote}/{settings.stable_branch}:{MANIFEST_FILE}')
    try:
        version = stable.library(library).version
    except LibReleaseError as exc:
        if exc.code != E.LIBRARY_NOT_FOUND:
            raise
        log.info('stable_library_missing', library=library, baseline=ZERO_VERSION)
        return ZERO_VERSION
    return version or ZERO_VERSION


async def next_preview_version(
    vcs: VCS,
    settings: ReleaseSettings,
    library: str,
    current: str,
    options: DeriveOptions,
    *,
    strategy: PreviewStrategy | None = None,
) -> str:
    """Resolve the stable baseline and derive ``library``'s next preview version."""
    stable = await stable_baseline(vcs, settings, library)
    next_version = derive_next_preview(current, stable, options, strategy=strategy)
    log.debug('preview_version_derived', library=library, current=current, stable=stable, next=next_version)
    return next_version


__all__ = [
    'CatchUpPreviewStrategy',
    'Channel',
    'PreviewStrategy',
    'ZERO_VERSION',
    'derive_next_preview',
    'next_preview_version',
    'resolve_channel',
    'stable_baseline',
]
