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

"""Conventional Commits parser with nested commit support.

Pure implementation: depends only on ``re`` and :mod:`._types`.

Generated pull requests carry one commit block per upstream change::

    chore: regenerate libraries

    BEGIN_NESTED_COMMIT
    fix: a bug fix
    This is the body.

    PiperOrigin-RevId: 573342
    Library-IDs: one-library,another-library
    END_NESTED_COMMIT

The whole message may also be replaced with a
``BEGIN_COMMIT_OVERRIDE`` / ``END_COMMIT_OVERRIDE`` block, in which case
only the override text is parsed.
"""

from __future__ import annotations

import re

from librelease.commit_parsing._types import ConventionalCommit

HEADER_PATTERN: re.Pattern[str] = re.compile(
    r'^(?P<type>[a-zA-Z]+)'
    r'(?:\((?P<scope>[^)]*)\))?'
    r'(?P<breaking>!)?'
    r':\s*'
    r'(?P<subject>.+)$',
)

FOOTER_PATTERN: re.Pattern[str] = re.compile(
    r'^(?P<key>BREAKING[ -]CHANGE|[A-Za-z][A-Za-z0-9-]*)(?::\s|\s#)(?P<value>.*)$',
)

OVERRIDE_PATTERN: re.Pattern[str] = re.compile(
    r'BEGIN_COMMIT_OVERRIDE\s*\n(?P<body>.*?)\n\s*END_COMMIT_OVERRIDE',
    re.DOTALL,
)

NESTED_PATTERN: re.Pattern[str] = re.compile(
    r'BEGIN_NESTED_COMMIT\s*\n(?P<body>.*?)\n\s*END_NESTED_COMMIT',
    re.DOTALL,
)

LIBRARY_IDS_FOOTER = 'Library-IDs'


def _parse_footers(lines: list[str]) -> tuple[dict[str, str], bool]:
    footers: dict[str, str] = {}
    breaking = False
    for line in lines:
        match = FOOTER_PATTERN.match(line.strip())
        if not match:
            continue
        key = match.group('key')
        if key in ('BREAKING CHANGE', 'BREAKING-CHANGE'):
            breaking = True
        footers[key] = match.group('value').strip()
    return footers, breaking


def _parse_single(
    text: str,
    *,
    nested: bool,
    library_id: str,
    sha: str,
) -> ConventionalCommit | None:
    lines = text.strip().splitlines()
    if not lines:
        return None
    match = HEADER_PATTERN.match(lines[0].strip())
    if not match:
        return None

    footers, footer_breaking = _parse_footers(lines[1:])
    return ConventionalCommit(
        type=match.group('type').lower(),
        scope=match.group('scope') or '',
        subject=match.group('subject').strip(),
        breaking=bool(match.group('breaking')) or footer_breaking,
        nested=nested,
        footers=footers,
        library_id=library_id,
        sha=sha,
    )


def _applies_to(commit: ConventionalCommit, library_id: str) -> bool:
    ids = commit.footers.get(LIBRARY_IDS_FOOTER, '')
    if not ids or not library_id:
        return True
    return library_id in {part.strip() for part in ids.split(',')}


class ConventionalCommitParser:
    """Parser for `Conventional Commits <https://www.conventionalcommits.org/>`_.

    :meth:`parse` returns every record a git commit message yields. A
    message that does not follow the convention yields nothing.
    """

    def parse(self, message: str, *, library_id: str = '', sha: str = '') -> list[ConventionalCommit]:
        """Parse a full commit message.

        Args:
            message: The complete commit message (subject and body).
            library_id: The library being analysed. Nested commits whose
                ``Library-IDs`` footer excludes it are dropped.
            sha: The commit SHA, recorded on every returned record.

        Returns:
            The header record (if the subject is conventional) followed by
            one record per nested commit block.
        """
        override = OVERRIDE_PATTERN.search(message)
        if override:
            message = override.group('body')

        nested_bodies = [m.group('body') for m in NESTED_PATTERN.finditer(message)]
        outer = NESTED_PATTERN.sub('', message)

        records: list[ConventionalCommit] = []
        header = _parse_single(outer, nested=False, library_id=library_id, sha=sha)
        if header is not None:
            records.append(header)

        for body in nested_bodies:
            record = _parse_single(body, nested=True, library_id=library_id, sha=sha)
            if record is not None and _applies_to(record, library_id):
                records.append(record)
        return records


__all__ = [
    'ConventionalCommitParser',
]
