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

"""Commit message parsing.

Turns raw git commit messages into :class:`ConventionalCommit` records.
The classifier only ever sees these records, never message text.

Usage::

    from librelease.commit_parsing import parse_commit_message

    records = parse_commit_message('feat(auth): add OAuth2', sha='abc123')
    assert records[0].type == 'feat'
"""

from librelease.commit_parsing._conventional import ConventionalCommitParser
from librelease.commit_parsing._types import ChangeLevel, ConventionalCommit

_DEFAULT_PARSER = ConventionalCommitParser()


def parse_commit_message(message: str, *, library_id: str = '', sha: str = '') -> list[ConventionalCommit]:
    """Parse ``message`` with the default :class:`ConventionalCommitParser`."""
    return _DEFAULT_PARSER.parse(message, library_id=library_id, sha=sha)


__all__ = [
    'ChangeLevel',
    'ConventionalCommit',
    'ConventionalCommitParser',
    'parse_commit_message',
]
