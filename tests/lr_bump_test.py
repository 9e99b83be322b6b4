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

"""Tests for librelease.bump."""

from __future__ import annotations

from pathlib import Path

import pytest
import tomlkit
from librelease.bump import (
    DEFAULT_PREVIEW_VERSION,
    DEFAULT_VERSION,
    derive_next_version,
    plan_bumps,
    run_bump,
    validate_bump_args,
)
from librelease.commit_parsing import ChangeLevel
from librelease.config import MANIFEST_FILE, ReleaseSettings
from librelease.errors import E, LibReleaseError
from librelease.logging import configure_logging
from librelease.manifest import LibraryRecord, parse_manifest
from librelease.policies import FakePolicy
from tests._fakes import FakeCommit, FakeVCS, make_manifest, manifest_yaml, write_manifest

CONVENTIONAL = {'remote': 'origin', 'branch': 'main', 'bump_mode': 'conventional'}
PREVIEW = {'remote': 'origin', 'branch': 'preview', 'stable_branch': 'main', 'preview_branch': 'preview'}


@pytest.fixture(autouse=True)
def _quiet_logs() -> None:
    configure_logging(quiet=True)


def _versions(root: Path) -> dict[str, str]:
    manifest = parse_manifest((root / MANIFEST_FILE).read_text(encoding='utf-8'))
    return {r.name: r.version for r in manifest.libraries}


class TestValidateBumpArgs:
    """Tests for validate_bump_args()."""

    @pytest.mark.parametrize(
        ('library', 'all_libraries', 'version', 'code'),
        [
            ('lib1', True, '', E.USAGE_LIBRARY_AND_ALL),
            ('', True, '1.0.0', E.USAGE_VERSION_AND_ALL),
            ('', False, '', E.USAGE_MISSING_LIBRARY),
            ('', False, '1.0.0', E.USAGE_MISSING_LIBRARY),
        ],
    )
    def test_invalid(self, library: str, all_libraries: bool, version: str, code: E) -> None:
        """Invalid combinations raise their usage code."""
        with pytest.raises(LibReleaseError) as exc_info:
            validate_bump_args(library=library, all_libraries=all_libraries, version_override=version)
        assert exc_info.value.code == code

    @pytest.mark.parametrize(
        ('library', 'all_libraries', 'version'),
        [('lib1', False, ''), ('lib1', False, '2.0.0'), ('', True, '')],
    )
    def test_valid(self, library: str, all_libraries: bool, version: str) -> None:
        """Valid combinations pass."""
        validate_bump_args(library=library, all_libraries=all_libraries, version_override=version)


class TestDeriveNextVersion:
    """Tests for the tiers of derive_next_version()."""

    @pytest.mark.asyncio()
    async def test_override_wins(self) -> None:
        """An explicit version is used verbatim."""
        record = LibraryRecord(name='lib1', version='1.0.0')
        result = await derive_next_version(
            record, settings=ReleaseSettings(), policy=FakePolicy(), vcs=FakeVCS(), version_override='3.0.0'
        )
        assert result == '3.0.0'

    @pytest.mark.asyncio()
    async def test_unreleased_defaults(self) -> None:
        """Unreleased libraries start at the channel's default version."""
        record = LibraryRecord(name='lib1')
        stable = await derive_next_version(record, settings=ReleaseSettings(), policy=FakePolicy(), vcs=FakeVCS())
        preview = await derive_next_version(
            record, settings=ReleaseSettings(**PREVIEW), policy=FakePolicy(), vcs=FakeVCS()
        )
        assert stable == DEFAULT_VERSION
        assert preview == DEFAULT_PREVIEW_VERSION

    @pytest.mark.asyncio()
    async def test_change_level_applied(self) -> None:
        """Released libraries on the stable channel use the change level."""
        record = LibraryRecord(name='lib1', version='1.2.3')
        result = await derive_next_version(
            record, settings=ReleaseSettings(), policy=FakePolicy(), vcs=FakeVCS(), change_level=ChangeLevel.PATCH
        )
        assert result == '1.2.4'


class TestRunBumpPreconditions:
    """Tests for checks that run before any version is derived."""

    @pytest.mark.asyncio()
    async def test_usage_error_before_git(self, tmp_path: Path) -> None:
        """Usage errors do not read the manifest or call git."""
        vcs = FakeVCS()
        with pytest.raises(LibReleaseError) as exc_info:
            await run_bump(tmp_path, vcs=vcs, library='lib1', all_libraries=True)
        assert exc_info.value.code == E.USAGE_LIBRARY_AND_ALL
        assert vcs.calls == []

    @pytest.mark.asyncio()
    async def test_dirty_tree(self, tmp_path: Path) -> None:
        """A dirty working tree is refused."""
        write_manifest(tmp_path, {'lib1': '1.0.0'})
        with pytest.raises(LibReleaseError) as exc_info:
            await run_bump(tmp_path, vcs=FakeVCS(clean=False), library='lib1')
        assert exc_info.value.code == E.PRECONDITION_DIRTY_WORKTREE
        assert _versions(tmp_path) == {'lib1': '1.0.0'}

    @pytest.mark.asyncio()
    async def test_release_section_required(self, tmp_path: Path) -> None:
        """A manifest without a release section cannot be bumped."""
        write_manifest(tmp_path, {'lib1': '1.0.0'}, with_release=False)
        with pytest.raises(LibReleaseError) as exc_info:
            await run_bump(tmp_path, vcs=FakeVCS(), library='lib1')
        assert exc_info.value.code == E.CONFIG_RELEASE_MISSING

    @pytest.mark.asyncio()
    async def test_unknown_library(self, tmp_path: Path) -> None:
        """Bumping a library the manifest does not list fails."""
        write_manifest(tmp_path, {'lib1': '1.0.0'})
        with pytest.raises(LibReleaseError) as exc_info:
            await run_bump(tmp_path, vcs=FakeVCS(), library='nope')
        assert exc_info.value.code == E.LIBRARY_NOT_FOUND


class TestRunBumpSingle:
    """Tests for bumping one named library."""

    @pytest.mark.asyncio()
    async def test_mechanical_minor(self, tmp_path: Path) -> None:
        """A released library gets a minor bump written to the manifest."""
        write_manifest(tmp_path, {'lib1': '1.0.0', 'lib2': '2.0.0'})
        result = await run_bump(tmp_path, vcs=FakeVCS(), library='lib1')
        assert [(b.name, b.old_version, b.new_version) for b in result.bumps] == [('lib1', '1.0.0', '1.1.0')]
        assert _versions(tmp_path) == {'lib1': '1.1.0', 'lib2': '2.0.0'}

    @pytest.mark.asyncio()
    async def test_unreleased(self, tmp_path: Path) -> None:
        """An unreleased library gets the default first version."""
        write_manifest(tmp_path, {'lib1': ''})
        await run_bump(tmp_path, vcs=FakeVCS(), library='lib1')
        assert _versions(tmp_path) == {'lib1': DEFAULT_VERSION}

    @pytest.mark.asyncio()
    async def test_override(self, tmp_path: Path) -> None:
        """An explicit version is written verbatim."""
        write_manifest(tmp_path, {'lib1': '1.2.2'})
        await run_bump(tmp_path, vcs=FakeVCS(), library='lib1', version_override='2.0.0')
        assert _versions(tmp_path) == {'lib1': '2.0.0'}

    @pytest.mark.asyncio()
    @pytest.mark.parametrize(('override', 'code'), [('1.2.2', E.VERSION_NO_OP), ('1.2.1', E.VERSION_REGRESSION)])
    async def test_bad_override(self, tmp_path: Path, override: str, code: E) -> None:
        """A no-op or lower override fails and writes nothing."""
        write_manifest(tmp_path, {'lib1': '1.2.2'})
        with pytest.raises(LibReleaseError) as exc_info:
            await run_bump(tmp_path, vcs=FakeVCS(), library='lib1', version_override=override)
        assert exc_info.value.code == code
        assert _versions(tmp_path) == {'lib1': '1.2.2'}

    @pytest.mark.asyncio()
    async def test_dry_run(self, tmp_path: Path) -> None:
        """A dry run reports the bump, writes nothing and skips the clean check."""
        write_manifest(tmp_path, {'lib1': '1.0.0'})
        vcs = FakeVCS(clean=False)
        result = await run_bump(tmp_path, vcs=vcs, library='lib1', dry_run=True)
        assert result.dry_run
        assert result.manifest is not None
        assert result.manifest.library('lib1').version == '1.1.0'
        assert _versions(tmp_path) == {'lib1': '1.0.0'}
        assert 'is_clean' not in vcs.calls

    @pytest.mark.asyncio()
    async def test_python_files_rewritten(self, tmp_path: Path) -> None:
        """The python policy rewrites pyproject.toml in the output directory."""
        write_manifest(tmp_path, {'lib1': '1.0.0'}, language='python', default={'output': 'packages'})
        lib = tmp_path / 'packages' / 'lib1'
        lib.mkdir(parents=True)
        (lib / 'pyproject.toml').write_text('[project]\nname = "lib1"\nversion = "1.0.0"\n')
        await run_bump(tmp_path, vcs=FakeVCS(), library='lib1')
        assert tomlkit.parse((lib / 'pyproject.toml').read_text())['project']['version'] == '1.1.0'


class TestRunBumpAll:
    """Tests for bump --all."""

    @pytest.mark.asyncio()
    async def test_changed_library_bumped(self, tmp_path: Path) -> None:
        """Only libraries with changes since their tag are bumped."""
        write_manifest(tmp_path, {'lib1': '1.0.0', 'lib2': '2.0.0'})
        vcs = FakeVCS(
            tags={'lib1/v1.0.0': 'c1', 'lib2/v2.0.0': 'c2'},
            changed={'c1': ['lib1/a.py'], 'c2': []},
        )
        result = await run_bump(tmp_path, vcs=vcs, all_libraries=True)
        assert [b.name for b in result.bumps] == ['lib1']
        assert _versions(tmp_path) == {'lib1': '1.1.0', 'lib2': '2.0.0'}

    @pytest.mark.asyncio()
    async def test_nothing_to_bump(self, tmp_path: Path) -> None:
        """No changes is a successful no-op that leaves the manifest alone."""
        write_manifest(tmp_path, {'lib1': '1.0.0'})
        before = (tmp_path / MANIFEST_FILE).read_text(encoding='utf-8')
        vcs = FakeVCS(tags={'lib1/v1.0.0': 'c1'})
        result = await run_bump(tmp_path, vcs=vcs, all_libraries=True)
        assert result.bumps == []
        assert (tmp_path / MANIFEST_FILE).read_text(encoding='utf-8') == before

    @pytest.mark.asyncio()
    async def test_missing_tag_aborts(self, tmp_path: Path) -> None:
        """One untagged library aborts the batch before anything is written."""
        write_manifest(tmp_path, {'lib1': '1.0.0', 'lib2': '2.0.0'})
        vcs = FakeVCS(tags={'lib1/v1.0.0': 'c1'}, changed={'c1': ['lib1/a.py']})
        with pytest.raises(LibReleaseError) as exc_info:
            await run_bump(tmp_path, vcs=vcs, all_libraries=True)
        assert exc_info.value.code == E.TAG_NOT_FOUND
        assert _versions(tmp_path) == {'lib1': '1.0.0', 'lib2': '2.0.0'}


class TestPreviewChannel:
    """Tests for bumps on the preview branch."""

    @pytest.mark.asyncio()
    async def test_coupled_to_stable(self, tmp_path: Path) -> None:
        """A preview behind stable catches up past it."""
        write_manifest(tmp_path, {'lib1': '1.1.0-preview.4'}, release=PREVIEW)
        vcs = FakeVCS(files={('origin/main', MANIFEST_FILE): manifest_yaml({'lib1': '1.2.0'})})
        await run_bump(tmp_path, vcs=vcs, library='lib1')
        assert _versions(tmp_path) == {'lib1': '1.3.0-preview.1'}

    @pytest.mark.asyncio()
    async def test_no_stable_release(self, tmp_path: Path) -> None:
        """Without a stable release the preview counter moves."""
        write_manifest(tmp_path, {'lib1': '0.1.0-preview.3'}, release=PREVIEW)
        vcs = FakeVCS(files={('origin/main', MANIFEST_FILE): manifest_yaml({'other': '1.0.0'})})
        await run_bump(tmp_path, vcs=vcs, library='lib1')
        assert _versions(tmp_path) == {'lib1': '0.1.0-preview.4'}

    @pytest.mark.asyncio()
    async def test_first_preview(self, tmp_path: Path) -> None:
        """An unreleased library starts at the preview default."""
        write_manifest(tmp_path, {'lib1': ''}, release=PREVIEW)
        await run_bump(tmp_path, vcs=FakeVCS(), library='lib1')
        assert _versions(tmp_path) == {'lib1': DEFAULT_PREVIEW_VERSION}


class TestConventionalMode:
    """Tests for bump_mode: conventional."""

    @pytest.mark.asyncio()
    async def test_fix_is_patch(self) -> None:
        """Only fixes since the release give a patch bump."""
        manifest = make_manifest({'lib1': '1.0.0'}, release=CONVENTIONAL)
        vcs = FakeVCS(
            tags={'lib1/v1.0.0': 'c1'},
            commits=[
                FakeCommit('c2', 'fix: crash on empty input', ['lib1/a.py']),
                FakeCommit('c1', 'feat: x', ['lib1/a.py']),
            ],
        )
        [bump] = await plan_bumps(manifest, vcs=vcs, policy=FakePolicy(), library='lib1')
        assert bump.new_version == '1.0.1'
        assert bump.change_level is ChangeLevel.PATCH

    @pytest.mark.asyncio()
    async def test_no_releasable_changes_skipped(self) -> None:
        """A library with only chores is not bumped."""
        manifest = make_manifest({'lib1': '1.0.0'}, release=CONVENTIONAL)
        vcs = FakeVCS(tags={'lib1/v1.0.0': 'c1'}, commits=[FakeCommit('c2', 'chore: tidy', ['lib1/a.py'])])
        assert await plan_bumps(manifest, vcs=vcs, policy=FakePolicy(), library='lib1') == []

    @pytest.mark.asyncio()
    async def test_nested_breaking_is_minor(self) -> None:
        """Breaking changes inside generated nested commits stay minor."""
        message = 'chore: regenerate\n\nBEGIN_NESTED_COMMIT\nfeat!: drop rpc\nEND_NESTED_COMMIT\n'
        manifest = make_manifest({'lib1': '1.0.0'}, release=CONVENTIONAL)
        vcs = FakeVCS(tags={'lib1/v1.0.0': 'c1'}, commits=[FakeCommit('c2', message, ['lib1/a.py'])])
        [bump] = await plan_bumps(manifest, vcs=vcs, policy=FakePolicy(), library='lib1')
        assert bump.new_version == '1.1.0'

    @pytest.mark.asyncio()
    async def test_declared_next_version_wins_when_greater(self) -> None:
        """A declared next_version above the derived one is used."""
        manifest = make_manifest([{'name': 'lib1', 'version': '1.0.0', 'next_version': '2.0.0'}], release=CONVENTIONAL)
        vcs = FakeVCS(tags={'lib1/v1.0.0': 'c1'}, commits=[FakeCommit('c2', 'feat: y', ['lib1/a.py'])])
        [bump] = await plan_bumps(manifest, vcs=vcs, policy=FakePolicy(), library='lib1')
        assert bump.new_version == '2.0.0'

    @pytest.mark.asyncio()
    async def test_mechanical_ignores_commits(self) -> None:
        """Mechanical mode bumps the minor version without reading commits."""
        manifest = make_manifest({'lib1': '1.0.0'})
        vcs = FakeVCS()
        [bump] = await plan_bumps(manifest, vcs=vcs, policy=FakePolicy(), library='lib1')
        assert bump.new_version == '1.1.0'
        assert 'log' not in vcs.calls
