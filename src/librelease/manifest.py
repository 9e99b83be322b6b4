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

"""Immutable snapshots of the ``librelease.yaml`` manifest.

A :class:`Manifest` is a point-in-time view: the working tree copy, or
the copy at some git revision. Snapshots are never mutated; a bump
produces a new snapshot through :meth:`Manifest.with_version`, and the
file on disk is edited in place by :func:`update_manifest_versions`,
which touches nothing but the version values.

Key Concepts (ELI5)::

    ┌─────────────────────┬────────────────────────────────────────────────┐
    │ Concept             │ ELI5 Explanation                               │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ LibraryRecord       │ One row of the manifest: a library's name,    │
    │                     │ version, tag template and directories.        │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ Manifest            │ A photo of the whole file at one moment.      │
    │                     │ Two photos from different commits tell you    │
    │                     │ which libraries were released in between.     │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ output directory    │ Where a library's files live. Changes under   │
    │                     │ it make the library a bump candidate.         │
    └─────────────────────┴────────────────────────────────────────────────┘
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

import yaml

from librelease._io import read_file, write_file
from librelease.config import (
    LIBRARY_KEYS,
    LIBRARY_TYPE_MAP,
    MANIFEST_FILE,
    TOP_LEVEL_KEYS,
    DefaultSettings,
    ReleaseSettings,
    check_keys,
    parse_default_section,
    parse_release_section,
    validate_language,
    validate_string_list,
    validate_value_type,
)
from librelease.errors import E, LibReleaseError
from librelease.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True)
class LibraryRecord:
    """One library entry of the manifest.

    Attributes:
        name: Unique library name.
        version: Current version, ``''`` when never released.
        skip_publish: Exclude the library from batch bumps.
        tag_format: Per-library tag template, ``''`` to use the default.
        output: Output directory, ``''`` to derive it from the default.
        source_roots: Directories whose commits count towards the library
            in conventional bump mode.
        release_exclude_paths: Paths under the source roots that never
            count towards a release.
        next_version: Declared version the next release should reach at
            least (conventional bump mode).
    """

    name: str
    version: str = ''
    skip_publish: bool = False
    tag_format: str = ''
    output: str = ''
    source_roots: tuple[str, ...] = ()
    release_exclude_paths: tuple[str, ...] = ()
    next_version: str = ''


@dataclass(frozen=True)
class Manifest:
    """A parsed, immutable manifest snapshot."""

    language: str
    default: DefaultSettings
    release: ReleaseSettings | None
    libraries: tuple[LibraryRecord, ...]

    def find(self, name: str) -> LibraryRecord | None:
        """Return the library called ``name``, or ``None``."""
        for record in self.libraries:
            if record.name == name:
                return record
        return None

    def library(self, name: str) -> LibraryRecord:
        """Return the library called ``name``.

        Raises:
            LibReleaseError: ``LR-LIBRARY-NOT-FOUND`` if there is none.
        """
        record = self.find(name)
        if record is None:
            raise LibReleaseError(
                code=E.LIBRARY_NOT_FOUND,
                message=f"Library '{name}' not found in {MANIFEST_FILE}.",
            )
        return record

    def tag_format_for(self, record: LibraryRecord) -> str:
        """Return the tag template that applies to ``record``."""
        return record.tag_format or self.default.tag_format

    def output_dir(self, record: LibraryRecord) -> str:
        """Return ``record``'s output directory relative to the repo root."""
        if record.output:
            return record.output.strip('/')
        if self.default.output:
            return f'{self.default.output}/{record.name}'
        return record.name

    def source_roots_for(self, record: LibraryRecord) -> tuple[str, ...]:
        """Return the source roots, falling back to the output directory."""
        return record.source_roots or (self.output_dir(record),)

    def require_release(self) -> ReleaseSettings:
        """Return the release settings or raise ``LR-CONFIG-RELEASE-MISSING``."""
        if self.release is None:
            raise LibReleaseError(
                code=E.CONFIG_RELEASE_MISSING,
                message=f'{MANIFEST_FILE} has no release section.',
            )
        return self.release

    def with_version(self, name: str, version: str) -> Manifest:
        """Return a copy of this snapshot with ``name`` at ``version``."""
        self.library(name)
        libraries = tuple(replace(r, version=version) if r.name == name else r for r in self.libraries)
        return replace(self, libraries=libraries)


def _parse_library(entry: Any, index: int, *, source: str) -> LibraryRecord:  # noqa: ANN401 - YAML values are dynamic
    context = f'libraries[{index}] of {source}'
    if not isinstance(entry, Mapping):
        raise LibReleaseError(
            code=E.CONFIG_INVALID_VALUE,
            message=f'{context} must be a mapping, got {type(entry).__name__}.',
        )
    check_keys(entry, LIBRARY_KEYS, context=context)
    for key, value in entry.items():
        if value is not None:
            validate_value_type(key, value, LIBRARY_TYPE_MAP, context=context)
    name = entry.get('name')
    if not name:
        raise LibReleaseError(
            code=E.CONFIG_INVALID_VALUE,
            message=f"{context} has no 'name'.",
        )
    return LibraryRecord(
        name=name,
        version=entry.get('version') or '',
        skip_publish=bool(entry.get('skip_publish', False)),
        tag_format=entry.get('tag_format') or '',
        output=entry.get('output') or '',
        source_roots=validate_string_list('source_roots', entry.get('source_roots') or [], context=context),
        release_exclude_paths=validate_string_list(
            'release_exclude_paths',
            entry.get('release_exclude_paths') or [],
            context=context,
        ),
        next_version=entry.get('next_version') or '',
    )


def parse_manifest(text: str, *, source: str = MANIFEST_FILE) -> Manifest:
    """Parse manifest YAML into a :class:`Manifest`.

    Args:
        text: The YAML document.
        source: Where the text came from (a path, or ``rev:path``), used
            in error messages.

    Raises:
        LibReleaseError: ``LR-MANIFEST-PARSE-ERROR`` for malformed YAML,
            ``LR-MANIFEST-DUPLICATE-LIBRARY`` for repeated names, and
            ``LR-CONFIG-*`` codes for invalid sections.
    """
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise LibReleaseError(
            code=E.MANIFEST_PARSE_ERROR,
            message=f'Failed to parse {source}: {exc}',
        ) from exc
    if not isinstance(data, Mapping):
        raise LibReleaseError(
            code=E.MANIFEST_PARSE_ERROR,
            message=f'{source} must contain a mapping at the top level.',
        )

    check_keys(data, TOP_LEVEL_KEYS, context=source)
    language = validate_language(data.get('language'), context=source)

    entries = data.get('libraries') or []
    if not isinstance(entries, list):
        raise LibReleaseError(
            code=E.CONFIG_INVALID_VALUE,
            message=f"'libraries' must be a list in {source}.",
        )

    libraries: list[LibraryRecord] = []
    seen: set[str] = set()
    for index, entry in enumerate(entries):
        record = _parse_library(entry, index, source=source)
        if record.name in seen:
            raise LibReleaseError(
                code=E.MANIFEST_DUPLICATE_LIBRARY,
                message=f"Library '{record.name}' is listed more than once in {source}.",
            )
        seen.add(record.name)
        libraries.append(record)

    return Manifest(
        language=language,
        default=parse_default_section(data.get('default'), context=source),
        release=parse_release_section(data.get('release'), context=source),
        libraries=tuple(libraries),
    )


def _mapping_value(node: yaml.MappingNode, key: str) -> tuple[yaml.Node, yaml.Node] | None:
    for key_node, value_node in node.value:
        if isinstance(key_node, yaml.ScalarNode) and key_node.value == key:
            return key_node, value_node
    return None


def _version_edit(
    text: str,
    entry: yaml.MappingNode,
    name: tuple[yaml.Node, yaml.Node],
    version: str,
) -> tuple[int, int, str]:
    """Return the ``(start, end, replacement)`` that sets ``entry``'s version."""
    found = _mapping_value(entry, 'version')
    if found is not None:
        key_node, value_node = found
        start, end = value_node.start_mark.index, value_node.end_mark.index
        if start == end:
            # Bare 'version:' with no value.
            colon = text.index(':', key_node.end_mark.index)
            return colon + 1, colon + 1, f' {version}'
        quote = value_node.style if isinstance(value_node, yaml.ScalarNode) and value_node.style in ('"', "'") else ''
        return start, end, f'{quote}{version}{quote}'

    name_key, name_value = name
    at = name_value.end_mark.index
    if entry.flow_style:
        return at, at, f', version: {version}'
    line_end = text.find('\n', at)
    at = len(text) if line_end == -1 else line_end
    return at, at, f'\n{" " * name_key.start_mark.column}version: {version}'


def update_manifest_versions(text: str, versions: Mapping[str, str]) -> str:
    """Return ``text`` with the given libraries' ``version`` fields replaced.

    Only the version values are edited in place, so comments, quoting and
    layout elsewhere in the file survive. A library without a ``version``
    key gets one on the line after its ``name``.
    """
    root = yaml.compose(text, Loader=yaml.SafeLoader)
    if not isinstance(root, yaml.MappingNode):
        return text
    found = _mapping_value(root, 'libraries')
    if found is None or not isinstance(found[1], yaml.SequenceNode):
        return text

    edits: list[tuple[int, int, str]] = []
    for entry in found[1].value:
        if not isinstance(entry, yaml.MappingNode):
            continue
        name = _mapping_value(entry, 'name')
        if name is not None and isinstance(name[1], yaml.ScalarNode) and name[1].value in versions:
            edits.append(_version_edit(text, entry, name, versions[name[1].value]))

    # Apply back to front so earlier offsets stay valid.
    for start, end, replacement in sorted(edits, reverse=True):
        text = f'{text[:start]}{replacement}{text[end:]}'
    return text


def manifest_path(root: Path) -> Path:
    """Return the manifest location for repository ``root``."""
    return root / MANIFEST_FILE


async def load_manifest(root: Path) -> tuple[Manifest, str]:
    """Load the working tree manifest.

    Returns:
        The parsed snapshot and the raw text it was parsed from.

    Raises:
        LibReleaseError: ``LR-CONFIG-NOT-FOUND`` if the file is missing.
    """
    path = manifest_path(root)
    if not path.is_file():
        raise LibReleaseError(
            code=E.CONFIG_NOT_FOUND,
            message=f'No {MANIFEST_FILE} found in {root}.',
        )
    text = await read_file(path, what='manifest', code=E.MANIFEST_PARSE_ERROR)
    manifest = parse_manifest(text, source=str(path))
    log.debug('manifest_loaded', path=str(path), libraries=len(manifest.libraries))
    return manifest, text


async def write_manifest_versions(root: Path, text: str, versions: Mapping[str, str]) -> None:
    """Rewrite the working tree manifest with updated versions."""
    path = manifest_path(root)
    await write_file(path, update_manifest_versions(text, versions), what='manifest')
    log.info('manifest_written', path=str(path), libraries=sorted(versions))


__all__ = [
    'LibraryRecord',
    'Manifest',
    'load_manifest',
    'manifest_path',
    'parse_manifest',
    'update_manifest_versions',
    'write_manifest_versions',
]
