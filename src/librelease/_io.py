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

"""Async UTF-8 reads and writes for the manifest and ecosystem version files.

Callers say what the file is (``what='manifest'``, ``what='Cargo.toml'``)
so a failure names both the role and the path. Writes go to a sibling
temp file that then replaces the target; a failed bump never leaves a
half-written ``librelease.yaml`` or ``pyproject.toml`` behind.
"""

from __future__ import annotations

import contextlib
from pathlib import Path

import aiofiles
import aiofiles.os

from librelease.errors import E, ErrorCode, LibReleaseError


async def read_file(path: Path, *, what: str, code: ErrorCode = E.BUMP_FAILED) -> str:
    """Return the text of ``path``.

    Raises:
        LibReleaseError: ``code`` when the file is missing, unreadable or
            not UTF-8.
    """
    try:
        async with aiofiles.open(path, encoding='utf-8') as f:
            return await f.read()
    except (OSError, UnicodeDecodeError) as exc:
        raise LibReleaseError(
            code=code,
            message=f'Cannot read {what} {path}: {exc}',
            hint=f'{path} must be a readable UTF-8 file.',
        ) from exc


async def write_file(path: Path, content: str, *, what: str) -> None:
    """Replace ``path`` with ``content``, leaving it untouched on failure.

    Raises:
        LibReleaseError: ``LR-BUMP-FAILED`` naming ``what`` and ``path``.
    """
    staging = path.with_name(f'.{path.name}.librelease-tmp')
    try:
        async with aiofiles.open(staging, mode='w', encoding='utf-8') as f:
            await f.write(content)
        await aiofiles.os.replace(staging, path)
    except OSError as exc:
        with contextlib.suppress(FileNotFoundError):
            await aiofiles.os.remove(staging)
        raise LibReleaseError(
            code=E.BUMP_FAILED,
            message=f'Cannot write {what} {path}: {exc}',
            hint=f'Check permissions on {path.parent}. {path} was left as it was.',
        ) from exc


__all__ = [
    'read_file',
    'write_file',
]
