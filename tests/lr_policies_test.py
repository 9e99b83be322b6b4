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

"""Tests for librelease.policies."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest
import tomlkit
from librelease.backends._run import CommandResult
from librelease.config import ReleaseSettings
from librelease.errors import E, LibReleaseError
from librelease.logging import configure_logging
from librelease.policies import (
    FakePolicy,
    PythonPolicy,
    RustPolicy,
    VersionPolicy,
    get_policy,
)


@pytest.fixture(autouse=True)
def _quiet_logs() -> None:
    configure_logging(quiet=True)


class TestGetPolicy:
    """Tests for get_policy()."""

    @pytest.mark.parametrize(
        ('ecosystem', 'cls'),
        [('fake', FakePolicy), ('python', PythonPolicy), ('rust', RustPolicy)],
    )
    def test_known(self, ecosystem: str, cls: type) -> None:
        """Each supported language maps to its policy."""
        policy = get_policy(ecosystem)
        assert isinstance(policy, cls)
        assert isinstance(policy, VersionPolicy)
        assert policy.ecosystem == ecosystem

    def test_unknown(self) -> None:
        """Unknown languages raise BUMP_UNSUPPORTED."""
        with pytest.raises(LibReleaseError) as exc_info:
            get_policy('cobol')
        assert exc_info.value.code == E.BUMP_UNSUPPORTED

    def test_rust_options(self) -> None:
        """Rust bumps version cores, allows pre-GA downgrades and shares a tag."""
        policy = get_policy('rust')
        assert policy.options.bump_version_core
        assert policy.options.downgrade_pre_ga_changes
        assert policy.shared_tag

    def test_python_options(self) -> None:
        """Python uses the default rules and per-library tags."""
        policy = get_policy('python')
        assert not policy.options.bump_version_core
        assert not policy.shared_tag


class TestPythonPolicy:
    """Tests for PythonPolicy.apply_version()."""

    @pytest.mark.asyncio()
    async def test_rewrites_pyproject(self, tmp_path: Path) -> None:
        """A static [project].version is replaced, other fields kept."""
        lib = tmp_path / 'packages' / 'lib1'
        lib.mkdir(parents=True)
        (lib / 'pyproject.toml').write_text('[project]\nname = "lib1"\nversion = "1.0.0"  # pinned\n')
        await PythonPolicy().apply_version(tmp_path, 'lib1', 'packages/lib1', '1.1.0')
        doc = tomlkit.parse((lib / 'pyproject.toml').read_text())
        assert doc['project']['version'] == '1.1.0'
        assert doc['project']['name'] == 'lib1'

    @pytest.mark.asyncio()
    async def test_dynamic_version_untouched(self, tmp_path: Path) -> None:
        """A pyproject without a static version is left alone."""
        lib = tmp_path / 'lib1'
        lib.mkdir()
        text = '[project]\nname = "lib1"\ndynamic = ["version"]\n'
        (lib / 'pyproject.toml').write_text(text)
        await PythonPolicy().apply_version(tmp_path, 'lib1', 'lib1', '1.1.0')
        assert (lib / 'pyproject.toml').read_text() == text

    @pytest.mark.asyncio()
    async def test_rewrites_gapic_version(self, tmp_path: Path) -> None:
        """Every gapic_version.py gets the new version line."""
        first = tmp_path / 'lib1' / 'google' / 'a'
        second = tmp_path / 'lib1' / 'google' / 'b'
        first.mkdir(parents=True)
        second.mkdir(parents=True)
        for d in (first, second):
            (d / 'gapic_version.py').write_text('# header\n__version__ = "1.0.0"  # {x-release-please-version}\n')
        await PythonPolicy().apply_version(tmp_path, 'lib1', 'lib1', '1.1.0')
        for d in (first, second):
            assert (d / 'gapic_version.py').read_text() == '# header\n__version__ = "1.1.0"\n'

    @pytest.mark.asyncio()
    async def test_gapic_version_without_line(self, tmp_path: Path) -> None:
        """A version file without a version line fails the bump."""
        lib = tmp_path / 'lib1'
        lib.mkdir()
        (lib / 'gapic_version.py').write_text('# nothing here\n')
        with pytest.raises(LibReleaseError) as exc_info:
            await PythonPolicy().apply_version(tmp_path, 'lib1', 'lib1', '1.1.0')
        assert exc_info.value.code == E.BUMP_FAILED

    @pytest.mark.asyncio()
    async def test_gapic_version_with_two_lines(self, tmp_path: Path) -> None:
        """Two version lines are ambiguous."""
        lib = tmp_path / 'lib1'
        lib.mkdir()
        (lib / 'gapic_version.py').write_text('__version__ = "1"\n__version__ = "2"\n')
        with pytest.raises(LibReleaseError) as exc_info:
            await PythonPolicy().apply_version(tmp_path, 'lib1', 'lib1', '1.1.0')
        assert 'multiple' in exc_info.value.message

    @pytest.mark.asyncio()
    async def test_gapic_version_symlink(self, tmp_path: Path) -> None:
        """Symlinked version files are refused."""
        lib = tmp_path / 'lib1'
        lib.mkdir()
        target = tmp_path / 'real.py'
        target.write_text('__version__ = "1.0.0"\n')
        (lib / 'gapic_version.py').symlink_to(target)
        with pytest.raises(LibReleaseError) as exc_info:
            await PythonPolicy().apply_version(tmp_path, 'lib1', 'lib1', '1.1.0')
        assert 'symlink' in exc_info.value.message

    @pytest.mark.asyncio()
    async def test_missing_directory(self, tmp_path: Path) -> None:
        """A library without files on disk is a no-op."""
        await PythonPolicy().apply_version(tmp_path, 'lib1', 'lib1', '1.1.0')


class TestRustPolicy:
    """Tests for RustPolicy."""

    @pytest.mark.asyncio()
    async def test_rewrites_crate_and_workspace(self, tmp_path: Path) -> None:
        """The crate version and workspace dependency entries are updated."""
        crate = tmp_path / 'src' / 'storage'
        crate.mkdir(parents=True)
        (crate / 'Cargo.toml').write_text('[package]\nname = "storage"\nversion = "0.3.0"\nedition = "2021"\n')
        (tmp_path / 'Cargo.toml').write_text(
            '[workspace]\nmembers = ["src/storage"]\n\n'
            '[workspace.dependencies]\n'
            'storage = { version = "0.3.0", path = "src/storage" }\n'
            'other = "1.0.0"\n',
        )
        await RustPolicy().apply_version(tmp_path, 'storage', 'src/storage', '0.4.0')

        crate_doc = tomlkit.parse((crate / 'Cargo.toml').read_text())
        assert crate_doc['package']['version'] == '0.4.0'
        root_doc = tomlkit.parse((tmp_path / 'Cargo.toml').read_text())
        deps = root_doc['workspace']['dependencies']
        assert deps['storage']['version'] == '0.4.0'
        assert deps['storage']['path'] == 'src/storage'
        assert deps['other'] == '1.0.0'

    @pytest.mark.asyncio()
    async def test_plain_string_dependency(self, tmp_path: Path) -> None:
        """A plain string dependency is replaced."""
        crate = tmp_path / 'storage'
        crate.mkdir()
        (crate / 'Cargo.toml').write_text('[package]\nname = "storage"\nversion = "0.3.0"\n')
        (tmp_path / 'Cargo.toml').write_text('[workspace.dependencies]\nstorage = "0.3.0"\n')
        await RustPolicy().apply_version(tmp_path, 'storage', 'storage', '0.4.0')
        assert tomlkit.parse((tmp_path / 'Cargo.toml').read_text())['workspace']['dependencies']['storage'] == '0.4.0'

    @pytest.mark.asyncio()
    async def test_creates_missing_manifest(self, tmp_path: Path) -> None:
        """A crate without Cargo.toml gets a minimal one."""
        (tmp_path / 'storage').mkdir()
        await RustPolicy().apply_version(tmp_path, 'storage', 'storage', '0.1.0')
        doc = tomlkit.parse((tmp_path / 'storage' / 'Cargo.toml').read_text())
        assert doc['package']['name'] == 'storage'
        assert doc['package']['version'] == '0.1.0'
        assert doc['package']['edition'] == '2021'

    @pytest.mark.asyncio()
    async def test_missing_package_table(self, tmp_path: Path) -> None:
        """A Cargo.toml without [package] fails the bump."""
        crate = tmp_path / 'storage'
        crate.mkdir()
        (crate / 'Cargo.toml').write_text('[lib]\npath = "lib.rs"\n')
        with pytest.raises(LibReleaseError) as exc_info:
            await RustPolicy().apply_version(tmp_path, 'storage', 'storage', '0.4.0')
        assert exc_info.value.code == E.BUMP_FAILED

    @pytest.mark.asyncio()
    async def test_post_bump_runs_cargo_update(self, tmp_path: Path) -> None:
        """post_bump runs the configured cargo binary."""
        ok = CommandResult(command=['cargo'], return_code=0)
        settings = ReleaseSettings(cargo_executable='/opt/cargo')
        with patch('librelease.policies.run_command', return_value=ok) as m:
            await RustPolicy().post_bump(tmp_path, settings)
        m.assert_called_once_with(['/opt/cargo', 'update', '--workspace'], cwd=tmp_path)

    @pytest.mark.asyncio()
    async def test_post_bump_failure(self, tmp_path: Path) -> None:
        """A failing cargo update raises BUMP_FAILED."""
        failed = CommandResult(command=['cargo', 'update'], return_code=101, stderr='error: no workspace')
        with patch('librelease.policies.run_command', return_value=failed):
            with pytest.raises(LibReleaseError) as exc_info:
                await RustPolicy().post_bump(tmp_path, ReleaseSettings())
        assert exc_info.value.code == E.BUMP_FAILED
        assert 'no workspace' in exc_info.value.message
