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

"""Per-ecosystem version policies.

A policy bundles everything that differs between ecosystems: the
:class:`~librelease.versioning.DeriveOptions` used for arithmetic, whether
the repository uses one shared release tag instead of per-library tags,
and the hooks that write a new version into ecosystem files. The policy
is resolved once per command from the manifest's ``language``.

============  =================  ==========  ================================
Ecosystem     DeriveOptions      Shared tag  Files rewritten
============  =================  ==========  ================================
``fake``      defaults           no          none (manifest only)
``python``    defaults           no          ``pyproject.toml``,
                                             ``gapic_version.py``
``rust``      core bump,         yes         ``<output>/Cargo.toml``,
              pre-GA downgrade               workspace ``Cargo.toml``
============  =================  ==========  ================================
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Protocol, runtime_checkable

import tomlkit
from tomlkit.exceptions import TOMLKitError

from librelease._io import read_file, write_file
from librelease.backends._run import run_command
from librelease.config import ReleaseSettings
from librelease.errors import E, LibReleaseError
from librelease.logging import get_logger
from librelease.versioning import DeriveOptions

log = get_logger(__name__)

GAPIC_VERSION_FILE = 'gapic_version.py'
GAPIC_VERSION_PREFIX = '__version__ = '


@runtime_checkable
class VersionPolicy(Protocol):
    """Ecosystem-specific bump behavior."""

    @property
    def ecosystem(self) -> str:
        """The ``language`` value this policy serves."""
        ...

    @property
    def options(self) -> DeriveOptions:
        """Options passed to every version derivation."""
        ...

    @property
    def shared_tag(self) -> bool:
        """Whether ``bump --all`` diffs against one repository-wide tag."""
        ...

    async def apply_version(self, root: Path, name: str, output: str, version: str) -> None:
        """Write ``version`` into the library's ecosystem files."""
        ...

    async def post_bump(self, root: Path, settings: ReleaseSettings) -> None:
        """Run once after all libraries were bumped."""
        ...


def _parse_toml(text: str, path: Path) -> tomlkit.TOMLDocument:
    try:
        return tomlkit.parse(text)
    except TOMLKitError as exc:
        raise LibReleaseError(
            code=E.BUMP_FAILED,
            message=f'Failed to parse {path}: {exc}',
        ) from exc


class FakePolicy:
    """Manifest-only policy, used for tests and dry runs of the workflow."""

    ecosystem = 'fake'
    options = DeriveOptions()
    shared_tag = False

    async def apply_version(self, root: Path, name: str, output: str, version: str) -> None:
        """Nothing outside the manifest holds the version."""

    async def post_bump(self, root: Path, settings: ReleaseSettings) -> None:
        """Nothing to do."""


class PythonPolicy:
    """Rewrites ``[project].version`` and ``gapic_version.py`` files."""

    ecosystem = 'python'
    options = DeriveOptions()
    shared_tag = False

    async def apply_version(self, root: Path, name: str, output: str, version: str) -> None:
        """Rewrite every version holder found under the output directory.

        A missing ``pyproject.toml`` or ``[project].version`` is fine (the
        version may be dynamic). Every ``gapic_version.py`` must hold
        exactly one ``__version__ = `` line.
        """
        library_dir = root / output
        pyproject = library_dir / 'pyproject.toml'
        if pyproject.is_file():
            await self._rewrite_pyproject(pyproject, version)
        if library_dir.is_dir():
            for path in sorted(library_dir.rglob(GAPIC_VERSION_FILE)):
                await self._rewrite_gapic_version(path, version)

    async def post_bump(self, root: Path, settings: ReleaseSettings) -> None:
        """Nothing to do."""

    async def _rewrite_pyproject(self, path: Path, version: str) -> None:
        doc = _parse_toml(await read_file(path, what=path.name), path)
        project = doc.get('project')
        if not isinstance(project, dict) or 'version' not in project:
            log.debug('pyproject_without_static_version', path=str(path))
            return
        old_version = str(project['version'])
        project['version'] = version
        await write_file(path, tomlkit.dumps(doc), what=path.name)
        log.info('pyproject_version_rewritten', path=str(path), old=old_version, new=version)

    async def _rewrite_gapic_version(self, path: Path, version: str) -> None:
        if path.is_symlink():
            raise LibReleaseError(
                code=E.BUMP_FAILED,
                message=f'Failed to bump {path}: version file is a symlink.',
            )
        lines = (await read_file(path, what='version file')).split('\n')
        found = False
        for i, line in enumerate(lines):
            if not line.startswith(GAPIC_VERSION_PREFIX):
                continue
            if found:
                raise LibReleaseError(
                    code=E.BUMP_FAILED,
                    message=f'Failed to bump {path}: multiple {GAPIC_VERSION_PREFIX.strip()} lines.',
                )
            lines[i] = f'{GAPIC_VERSION_PREFIX}"{version}"'
            found = True
        if not found:
            raise LibReleaseError(
                code=E.BUMP_FAILED,
                message=f'Failed to bump {path}: no {GAPIC_VERSION_PREFIX.strip()} line.',
            )
        await write_file(path, '\n'.join(lines), what='version file')
        log.info('gapic_version_rewritten', path=str(path), new=version)


class RustPolicy:
    """Cargo crates: core bumps for pre-releases, one shared release tag."""

    ecosystem = 'rust'
    options = DeriveOptions(bump_version_core=True, downgrade_pre_ga_changes=True)
    shared_tag = True

    async def apply_version(self, root: Path, name: str, output: str, version: str) -> None:
        """Rewrite the crate's ``Cargo.toml`` and the workspace dependency entry.

        A crate without a ``Cargo.toml`` gets a minimal one.
        """
        cargo_file = root / output / 'Cargo.toml'
        if cargo_file.is_file():
            doc = _parse_toml(await read_file(cargo_file, what='Cargo.toml'), cargo_file)
            package = doc.get('package')
            if not isinstance(package, dict):
                raise LibReleaseError(
                    code=E.BUMP_FAILED,
                    message=f'No [package] table in {cargo_file}.',
                )
            package['version'] = version
        else:
            doc = tomlkit.document()
            package = tomlkit.table()
            package['name'] = name
            package['version'] = version
            package['edition'] = '2021'
            doc['package'] = package
        await write_file(cargo_file, tomlkit.dumps(doc), what='Cargo.toml')
        log.info('cargo_version_rewritten', path=str(cargo_file), new=version)

        await self._rewrite_workspace_dependency(root / 'Cargo.toml', name, version)

    async def _rewrite_workspace_dependency(self, path: Path, name: str, version: str) -> None:
        if not path.is_file():
            return
        doc = _parse_toml(await read_file(path, what=path.name), path)
        deps = doc.get('workspace', {}).get('dependencies', {})
        entry = deps.get(name)
        if entry is None:
            return
        if isinstance(entry, str):
            deps[name] = version
        elif isinstance(entry, dict) and 'version' in entry:
            entry['version'] = version
        else:
            return
        await write_file(path, tomlkit.dumps(doc), what=path.name)
        log.info('workspace_dependency_rewritten', path=str(path), crate=name, new=version)

    async def post_bump(self, root: Path, settings: ReleaseSettings) -> None:
        """Refresh ``Cargo.lock`` with ``cargo update --workspace``."""
        result = await asyncio.to_thread(
            run_command,
            [settings.cargo_executable, 'update', '--workspace'],
            cwd=root,
        )
        if not result.ok:
            raise LibReleaseError(
                code=E.BUMP_FAILED,
                message=f'{result.command_str} failed: {result.stderr.strip()}',
            )


POLICIES: dict[str, VersionPolicy] = {
    'fake': FakePolicy(),
    'python': PythonPolicy(),
    'rust': RustPolicy(),
}


def get_policy(ecosystem: str) -> VersionPolicy:
    """Return the policy for ``ecosystem``.

    Raises:
        LibReleaseError: ``LR-BUMP-UNSUPPORTED`` for unknown ecosystems.
    """
    policy = POLICIES.get(ecosystem)
    if policy is None:
        raise LibReleaseError(
            code=E.BUMP_UNSUPPORTED,
            message=f"Version bumping is not supported for language '{ecosystem}'.",
            hint=f'Supported languages: {", ".join(sorted(POLICIES))}.',
        )
    return policy


__all__ = [
    'FakePolicy',
    'POLICIES',
    'PythonPolicy',
    'RustPolicy',
    'VersionPolicy',
    'get_policy',
]
