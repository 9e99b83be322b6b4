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

"""Tests for librelease._io."""

from __future__ import annotations

from pathlib import Path

import pytest
from librelease._io import read_file, write_file
from librelease.errors import E, LibReleaseError


class TestReadFile:
    """Tests for read_file()."""

    @pytest.mark.asyncio()
    async def test_reads_utf8(self, tmp_path: Path) -> None:
        """Text comes back decoded."""
        path = tmp_path / 'librelease.yaml'
        path.write_text('name: café\n', encoding='utf-8')
        assert await read_file(path, what='manifest') == 'name: café\n'

    @pytest.mark.asyncio()
    async def test_missing_file_names_role_and_path(self, tmp_path: Path) -> None:
        """The error says which kind of file could not be read."""
        path = tmp_path / 'gapic_version.py'
        with pytest.raises(LibReleaseError) as exc_info:
            await read_file(path, what='version file')
        assert exc_info.value.code == E.BUMP_FAILED
        assert f'version file {path}' in exc_info.value.message

    @pytest.mark.asyncio()
    async def test_not_utf8(self, tmp_path: Path) -> None:
        """Undecodable bytes raise the caller's code."""
        path = tmp_path / 'librelease.yaml'
        path.write_bytes(b'\xff\xfe\x00bad')
        with pytest.raises(LibReleaseError) as exc_info:
            await read_file(path, what='manifest', code=E.MANIFEST_PARSE_ERROR)
        assert exc_info.value.code == E.MANIFEST_PARSE_ERROR


class TestWriteFile:
    """Tests for write_file()."""

    @pytest.mark.asyncio()
    async def test_replaces_contents(self, tmp_path: Path) -> None:
        """The target holds the new text and no staging file remains."""
        path = tmp_path / 'Cargo.toml'
        path.write_text('old', encoding='utf-8')
        await write_file(path, 'new', what='Cargo.toml')
        assert path.read_text(encoding='utf-8') == 'new'
        assert sorted(p.name for p in tmp_path.iterdir()) == ['Cargo.toml']

    @pytest.mark.asyncio()
    async def test_failure_leaves_target_alone(self, tmp_path: Path) -> None:
        """A failed replace keeps the target and cleans up."""
        target = tmp_path / 'pyproject.toml'
        target.mkdir()
        (target / 'keep').write_text('x', encoding='utf-8')
        with pytest.raises(LibReleaseError) as exc_info:
            await write_file(target, 'new', what='pyproject.toml')
        assert exc_info.value.code == E.BUMP_FAILED
        assert 'pyproject.toml' in exc_info.value.message
        assert (target / 'keep').read_text(encoding='utf-8') == 'x'
        assert sorted(p.name for p in tmp_path.iterdir()) == ['pyproject.toml']
