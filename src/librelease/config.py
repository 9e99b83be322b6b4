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

"""Validation of the configuration sections of ``librelease.yaml``.

The manifest doubles as configuration. Its ``default`` and ``release``
sections are checked here: unknown keys are rejected with a "did you
mean" suggestion, values must have the expected type, and enum-like
values must be one of the allowed choices.

Example::

    language: rust
    default:
      output: src/generated
      tag_format: '{name}-v{version}'
    release:
      remote: origin
      branch: main
      bump_mode: conventional
      ignored_changes: ['*.md', 'docs/']
      preinstalled:
        git: /usr/bin/git
"""

from __future__ import annotations

import difflib
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from librelease.errors import E, LibReleaseError

MANIFEST_FILE = 'librelease.yaml'

DEFAULT_TAG_FORMAT = '{name}/v{version}'
DEFAULT_REMOTE = 'origin'
DEFAULT_BRANCH = 'main'
DEFAULT_PREVIEW_BRANCH = 'preview'

BUMP_MODES: frozenset[str] = frozenset({'mechanical', 'conventional'})
LANGUAGES: frozenset[str] = frozenset({'fake', 'python', 'rust'})

TOP_LEVEL_KEYS: frozenset[str] = frozenset({'language', 'default', 'release', 'libraries'})
DEFAULT_KEYS: frozenset[str] = frozenset({'output', 'tag_format'})
RELEASE_KEYS: frozenset[str] = frozenset({
    'remote',
    'branch',
    'stable_branch',
    'preview_branch',
    'bump_mode',
    'ignored_changes',
    'preinstalled',
})
LIBRARY_KEYS: frozenset[str] = frozenset({
    'name',
    'version',
    'skip_publish',
    'tag_format',
    'output',
    'source_roots',
    'release_exclude_paths',
    'next_version',
})

_DEFAULT_TYPE_MAP: dict[str, type | tuple[type, ...]] = {
    'output': str,
    'tag_format': str,
}

_RELEASE_TYPE_MAP: dict[str, type | tuple[type, ...]] = {
    'remote': str,
    'branch': str,
    'stable_branch': str,
    'preview_branch': str,
    'bump_mode': str,
    'ignored_changes': list,
    'preinstalled': dict,
}

LIBRARY_TYPE_MAP: dict[str, type | tuple[type, ...]] = {
    'name': str,
    'version': str,
    'skip_publish': bool,
    'tag_format': str,
    'output': str,
    'source_roots': list,
    'release_exclude_paths': list,
    'next_version': str,
}


@dataclass(frozen=True)
class DefaultSettings:
    """Defaults applied to every library.

    Attributes:
        output: Base directory for library outputs. A library without its
            own ``output`` lives at ``<output>/<name>``.
        tag_format: Tag template with ``{name}`` and ``{version}``.
    """

    output: str = ''
    tag_format: str = DEFAULT_TAG_FORMAT


@dataclass(frozen=True)
class ReleaseSettings:
    """The ``release`` section.

    Attributes:
        remote: Git remote that holds release branches.
        branch: Branch this checkout releases from. When it equals
            ``preview_branch`` the preview channel rules apply.
        stable_branch: Branch holding the paired stable versions.
        preview_branch: Branch name that marks the preview channel.
        bump_mode: ``mechanical`` (always minor) or ``conventional``
            (classify commits since the last release).
        ignored_changes: Gitignore-style patterns for files that never
            trigger a release.
        git_executable: Path of the ``git`` binary.
        cargo_executable: Path of the ``cargo`` binary (rust only).
    """

    remote: str = DEFAULT_REMOTE
    branch: str = DEFAULT_BRANCH
    stable_branch: str = DEFAULT_BRANCH
    preview_branch: str = DEFAULT_PREVIEW_BRANCH
    bump_mode: str = 'mechanical'
    ignored_changes: tuple[str, ...] = ()
    git_executable: str = 'git'
    cargo_executable: str = 'cargo'


def _suggest_key(unknown: str, valid: frozenset[str]) -> str | None:
    """Return the closest valid key for a typo, or None."""
    matches = difflib.get_close_matches(unknown, sorted(valid), n=1, cutoff=0.6)
    return matches[0] if matches else None


def check_keys(section: Mapping[str, Any], valid: frozenset[str], *, context: str) -> None:
    """Raise ``LR-CONFIG-INVALID-KEY`` for the first key not in ``valid``."""
    for key in section:
        if key in valid:
            continue
        suggestion = _suggest_key(str(key), valid)
        hint = f"Did you mean '{suggestion}'?" if suggestion else f'Valid keys: {", ".join(sorted(valid))}'
        raise LibReleaseError(
            code=E.CONFIG_INVALID_KEY,
            message=f"Unknown key '{key}' in {context}.",
            hint=hint,
        )


def validate_value_type(
    key: str,
    value: Any,  # noqa: ANN401 - YAML values are dynamic
    type_map: dict[str, type | tuple[type, ...]],
    *,
    context: str,
) -> None:
    """Raise if a config value has the wrong type."""
    expected = type_map.get(key)
    if expected is None:
        return
    if not isinstance(value, expected):
        type_name = expected.__name__ if isinstance(expected, type) else str(expected)
        hint = f'Check the value of {key} in {context}.'
        if expected is str and isinstance(value, (int, float)):
            hint = f"Quote the value of {key} in {context}, e.g. '{value}'."
        raise LibReleaseError(
            code=E.CONFIG_INVALID_VALUE,
            message=f"'{key}' must be {type_name}, got {type(value).__name__} in {context}.",
            hint=hint,
        )


def validate_string_list(key: str, items: list[Any], *, context: str) -> tuple[str, ...]:
    """Return ``items`` as a tuple, raising if any entry is not a string."""
    for item in items:
        if not isinstance(item, str):
            raise LibReleaseError(
                code=E.CONFIG_INVALID_VALUE,
                message=f"'{key}' entries must be strings, got {type(item).__name__} in {context}.",
            )
    return tuple(items)


def _require_mapping(value: Any, *, context: str) -> Mapping[str, Any]:  # noqa: ANN401 - YAML values are dynamic
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise LibReleaseError(
            code=E.CONFIG_INVALID_VALUE,
            message=f'{context} must be a mapping, got {type(value).__name__}.',
        )
    return value


def validate_language(value: Any, *, context: str = MANIFEST_FILE) -> str:  # noqa: ANN401 - YAML values are dynamic
    """Return ``value`` if it names a supported ecosystem."""
    if not isinstance(value, str) or value not in LANGUAGES:
        raise LibReleaseError(
            code=E.CONFIG_INVALID_VALUE,
            message=f"Unsupported language {value!r} in {context}.",
            hint=f'Supported languages: {", ".join(sorted(LANGUAGES))}.',
        )
    return value


def parse_default_section(data: Any, *, context: str = MANIFEST_FILE) -> DefaultSettings:  # noqa: ANN401
    """Validate the ``default`` section and build :class:`DefaultSettings`."""
    section = _require_mapping(data, context=f'default section of {context}')
    check_keys(section, DEFAULT_KEYS, context=f'default section of {context}')
    for key, value in section.items():
        validate_value_type(key, value, _DEFAULT_TYPE_MAP, context=context)
    return DefaultSettings(
        output=section.get('output', '').strip('/'),
        tag_format=section.get('tag_format', DEFAULT_TAG_FORMAT),
    )


def parse_release_section(data: Any, *, context: str = MANIFEST_FILE) -> ReleaseSettings | None:  # noqa: ANN401
    """Validate the ``release`` section.

    Returns:
        The settings, or ``None`` when the manifest has no release section.
        Commands that need one raise ``LR-CONFIG-RELEASE-MISSING``.
    """
    if data is None:
        return None
    section = _require_mapping(data, context=f'release section of {context}')
    check_keys(section, RELEASE_KEYS, context=f'release section of {context}')
    for key, value in section.items():
        validate_value_type(key, value, _RELEASE_TYPE_MAP, context=context)

    bump_mode = section.get('bump_mode', 'mechanical')
    if bump_mode not in BUMP_MODES:
        raise LibReleaseError(
            code=E.CONFIG_INVALID_VALUE,
            message=f"Invalid bump_mode '{bump_mode}' in {context}.",
            hint=f'Valid values: {", ".join(sorted(BUMP_MODES))}.',
        )

    preinstalled = section.get('preinstalled', {})
    for tool, path in preinstalled.items():
        if not isinstance(path, str) or not path:
            raise LibReleaseError(
                code=E.CONFIG_INVALID_VALUE,
                message=f"'preinstalled.{tool}' must be a non-empty string in {context}.",
            )

    return ReleaseSettings(
        remote=section.get('remote', DEFAULT_REMOTE),
        branch=section.get('branch', DEFAULT_BRANCH),
        stable_branch=section.get('stable_branch', DEFAULT_BRANCH),
        preview_branch=section.get('preview_branch', DEFAULT_PREVIEW_BRANCH),
        bump_mode=bump_mode,
        ignored_changes=validate_string_list(
            'ignored_changes',
            section.get('ignored_changes', []),
            context=context,
        ),
        git_executable=preinstalled.get('git', 'git'),
        cargo_executable=preinstalled.get('cargo', 'cargo'),
    )


__all__ = [
    'BUMP_MODES',
    'DEFAULT_TAG_FORMAT',
    'DefaultSettings',
    'LANGUAGES',
    'LIBRARY_KEYS',
    'LIBRARY_TYPE_MAP',
    'MANIFEST_FILE',
    'ReleaseSettings',
    'TOP_LEVEL_KEYS',
    'check_keys',
    'parse_default_section',
    'parse_release_section',
    'validate_language',
    'validate_string_list',
    'validate_value_type',
]
