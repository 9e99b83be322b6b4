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

"""Version arithmetic: parse, derive, validate and compare versions.

Validity and precedence come from the ``semver`` library. On top of that,
the pre-release segment is split into a label and a counter so the counter
can be bumped on its own::

    1.2.0-preview.3    label='preview'  separator='.'  number=3
    1.2.0-alpha01      label='alpha'    separator=''   number=1  (SemVer 1)
    1.2.0-rc           label='rc'       separator=''   number=None

Key Concepts (ELI5)::

    ┌─────────────────────┬────────────────────────────────────────────────┐
    │ Concept             │ ELI5 Explanation                               │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ derive_next         │ "Here is how big the change was, give me the  │
    │                     │ next version." Major/minor/patch arithmetic.  │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ validate_next       │ The bouncer for hand-picked versions: no      │
    │                     │ repeats, no going backwards.                  │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ max_version         │ Picks the biggest of several versions, keeps  │
    │                     │ the first one on a tie.                       │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ DeriveOptions       │ Per-ecosystem knobs. Rust bumps the core of a │
    │                     │ pre-release and lets 0.x versions roll back.  │
    └─────────────────────┴────────────────────────────────────────────────┘

Versions never carry a ``v`` prefix; ``v1.2.3`` is invalid everywhere in
this module.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace

import semver

from librelease.commit_parsing import ChangeLevel
from librelease.errors import E, LibReleaseError
from librelease.logging import get_logger

log = get_logger(__name__)

_LEGACY_NUMBER = re.compile(r'^(.*?\D)(\d+)$')

FIRST_STABLE_VERSION = '1.0.0'


@dataclass(frozen=True)
class DeriveOptions:
    """Ecosystem-specific relaxations of the default bump rules.

    Attributes:
        bump_version_core: Bump major/minor/patch of a pre-release version
            instead of only its counter. Also turns a major change on a 0.x
            version into a minor bump.
        downgrade_pre_ga_changes: Accept an explicit version lower than the
            current one while the current version is below 1.0.0.
    """

    bump_version_core: bool = False
    downgrade_pre_ga_changes: bool = False


@dataclass(frozen=True)
class ParsedVersion:
    """A version split into its core and pre-release parts.

    Attributes:
        major: Major component.
        minor: Minor component.
        patch: Patch component.
        label: Pre-release label without its counter, or ``''``.
        separator: Text between label and counter (``'.'`` or ``''``).
        number: Pre-release counter, or ``None`` when there is none.
        legacy_numbering: SemVer 1 style counter glued to the label
            (``alpha01``).
        digits: Zero-padded width of a SemVer 1 counter, taken from the
            parsed text.
    """

    major: int
    minor: int
    patch: int
    label: str = ''
    separator: str = ''
    number: int | None = None
    legacy_numbering: bool = False
    digits: int = 2

    @property
    def core(self) -> tuple[int, int, int]:
        """The ``(major, minor, patch)`` triple."""
        return (self.major, self.minor, self.patch)

    @property
    def is_prerelease(self) -> bool:
        """Whether the version has a pre-release segment."""
        return bool(self.label)

    def __str__(self) -> str:
        text = f'{self.major}.{self.minor}.{self.patch}'
        if not self.label:
            return text
        text = f'{text}-{self.label}'
        if self.number is not None:
            number = f'{self.number:0{self.digits}d}' if self.legacy_numbering else str(self.number)
            text = f'{text}{self.separator}{number}'
        return text


def _semver(text: str) -> semver.Version | None:
    if not text or text.startswith('v'):
        return None
    try:
        return semver.Version.parse(text, optional_minor_and_patch=True)
    except (ValueError, TypeError):
        return None


def is_valid_version(text: str) -> bool:
    """Return whether ``text`` is a valid version (no ``v`` prefix)."""
    return _semver(text) is not None


def parse_version(text: str) -> ParsedVersion:
    """Parse ``text`` into a :class:`ParsedVersion`.

    A missing minor or patch is read as zero and build metadata is
    dropped, so ``1.2+build.5`` parses as ``1.2.0``.

    Raises:
        LibReleaseError: ``LR-VERSION-INVALID`` when ``text`` is empty,
            carries a ``v`` prefix, is not semver, or has a pre-release
            counter that is not a number (``1.0.0-alpha.beta``).
    """
    parsed = _semver(text)
    if parsed is None:
        raise LibReleaseError(
            code=E.VERSION_INVALID,
            message=f"Invalid version '{text}'.",
            hint='Versions look like 1.2.3 or 1.2.3-preview.1, without a leading v.',
        )

    prerelease = parsed.prerelease or ''
    if not prerelease:
        return ParsedVersion(parsed.major, parsed.minor, parsed.patch)

    label, separator, number_text, legacy = prerelease, '', '', False
    head, dot, tail = prerelease.rpartition('.')
    if dot:
        label, separator, number_text = head, '.', tail
    else:
        match = _LEGACY_NUMBER.match(prerelease)
        if match:
            label, number_text, legacy = match.group(1), match.group(2), True

    number: int | None = None
    if number_text:
        if not number_text.isdigit():
            raise LibReleaseError(
                code=E.VERSION_INVALID,
                message=f"Invalid pre-release number '{number_text}' in version '{text}'.",
                hint='The last dot-separated pre-release identifier must be a number.',
            )
        number = int(number_text)

    return ParsedVersion(
        parsed.major,
        parsed.minor,
        parsed.patch,
        label=label,
        separator=separator,
        number=number,
        legacy_numbering=legacy,
        digits=len(number_text) if legacy else 2,
    )


def compare_versions(a: str, b: str) -> int:
    """Compare two versions by semver precedence.

    Returns:
        ``-1`` if ``a < b``, ``0`` if equal, ``1`` if ``a > b``.

    Raises:
        LibReleaseError: If either version is invalid.
    """
    parsed_a = _semver(a)
    parsed_b = _semver(b)
    if parsed_a is None or parsed_b is None:
        bad = a if parsed_a is None else b
        raise LibReleaseError(code=E.VERSION_INVALID, message=f"Invalid version '{bad}'.")
    return parsed_a.compare(parsed_b)


def is_pre_ga(version: str) -> bool:
    """Return whether ``version`` sorts below 1.0.0."""
    return compare_versions(version, FIRST_STABLE_VERSION) < 0


def bump_parsed(level: ChangeLevel, version: ParsedVersion, options: DeriveOptions) -> ParsedVersion:
    """Apply ``level`` to an already parsed version.

    Shared by :func:`derive_next` and the preview channel resolver, which
    adjusts the version core before bumping.
    """
    if level is ChangeLevel.NONE:
        return version

    if version.is_prerelease and not options.bump_version_core:
        if version.number is None:
            return replace(version, separator='.', number=1, legacy_numbering=False)
        if version.legacy_numbering and len(str(version.number + 1)) > version.digits:
            # SemVer 1 counters compare as text: beta10 sorts below beta9.
            glued = f'{version.label}{version.number:0{version.digits}d}'
            return replace(version, label=glued, separator='.', number=1, legacy_numbering=False)
        return replace(version, number=version.number + 1)

    if options.bump_version_core and version.major == 0 and level is ChangeLevel.MAJOR:
        level = ChangeLevel.MINOR

    if level is ChangeLevel.MAJOR:
        return ParsedVersion(version.major + 1, 0, 0)

    number = 1 if version.number is not None else None
    if level is ChangeLevel.MINOR:
        return replace(version, minor=version.minor + 1, patch=0, number=number)
    return replace(version, patch=version.patch + 1, number=number)


def derive_next(
    level: ChangeLevel,
    current: str,
    options: DeriveOptions | None = None,
) -> str:
    """Compute the version that follows ``current`` for a change of ``level``.

    Rules:

    - ``NONE`` returns ``current`` unchanged (no parsing, no validation).
    - A pre-release without ``bump_version_core`` only bumps its counter:
      ``1.2.0-preview.3 -> 1.2.0-preview.4``, ``1.2.0-rc -> 1.2.0-rc.1``.
    - ``MAJOR``: ``1.2.3 -> 2.0.0``, any pre-release is dropped. With
      ``bump_version_core`` on a 0.x version it counts as ``MINOR``.
    - ``MINOR``: ``1.2.3 -> 1.3.0``. ``PATCH``: ``1.2.3 -> 1.2.4``. When a
      pre-release counter is present it restarts at 1.

    Args:
        level: Aggregated change level for the library.
        current: The library's current version.
        options: Ecosystem options; defaults to :class:`DeriveOptions()`.

    Returns:
        The next version string.

    Raises:
        LibReleaseError: If ``current`` is not a valid version.
    """
    if level is ChangeLevel.NONE:
        return current
    return str(bump_parsed(level, parse_version(current), options or DeriveOptions()))


def validate_next(
    current: str,
    candidate: str,
    *,
    options: DeriveOptions | None = None,
    library: str = '',
) -> None:
    """Check that ``candidate`` is a legitimate successor of ``current``.

    An empty ``current`` means the library was never released, so any
    valid ``candidate`` passes.

    Args:
        current: The version before the change (may be empty).
        candidate: The proposed new version.
        options: Ecosystem options. With ``downgrade_pre_ga_changes`` a
            lower candidate is accepted while ``current`` is below 1.0.0.
        library: Library name, used to prefix error messages.

    Raises:
        LibReleaseError: ``LR-VERSION-INVALID`` for unparseable versions,
            ``LR-VERSION-NO-OP`` when they are equal, and
            ``LR-VERSION-REGRESSION`` when ``candidate`` is lower.
    """
    prefix = f'{library}: ' if library else ''
    if not is_valid_version(candidate):
        raise LibReleaseError(
            code=E.VERSION_INVALID,
            message=f"{prefix}invalid next version '{candidate}'.",
            hint='Versions look like 1.2.3 or 1.2.3-preview.1, without a leading v.',
        )
    if not current:
        return
    if not is_valid_version(current):
        raise LibReleaseError(
            code=E.VERSION_INVALID,
            message=f"{prefix}invalid current version '{current}'.",
        )

    cmp = compare_versions(candidate, current)
    if cmp == 0:
        raise LibReleaseError(
            code=E.VERSION_NO_OP,
            message=f'{prefix}next version {candidate} is the same as the current version {current}.',
        )
    if cmp < 0:
        opts = options or DeriveOptions()
        if opts.downgrade_pre_ga_changes and is_pre_ga(current):
            log.warning('pre_ga_version_downgrade', library=library, current=current, candidate=candidate)
            return
        raise LibReleaseError(
            code=E.VERSION_REGRESSION,
            message=f'{prefix}next version {candidate} is lower than the current version {current}.',
        )


def max_version(*versions: str) -> str:
    """Return the greatest valid version, or ``''`` when none is valid.

    Invalid and ``v``-prefixed strings are skipped. Of several versions
    with equal precedence the first one wins.

    >>> max_version('1.2.4-alpha', '1.2.4', 'v9.0.0')
    '1.2.4'
    """
    best = ''
    best_parsed: semver.Version | None = None
    for version in versions:
        parsed = _semver(version)
        if parsed is None:
            continue
        if best_parsed is None or parsed.compare(best_parsed) > 0:
            best, best_parsed = version, parsed
    return best


__all__ = [
    'DeriveOptions',
    'FIRST_STABLE_VERSION',
    'ParsedVersion',
    'bump_parsed',
    'compare_versions',
    'derive_next',
    'is_pre_ga',
    'is_valid_version',
    'max_version',
    'parse_version',
    'validate_next',
]
