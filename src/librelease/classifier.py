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

"""Map conventional commit records to a :class:`ChangeLevel`.

Per record::

    nested            -> MINOR   (bulk regeneration, never MAJOR)
    breaking          -> MAJOR
    feat              -> MINOR
    fix               -> PATCH
    anything else     -> NONE

A library's level is the maximum over its records; no records means
``NONE``.
"""

from __future__ import annotations

from collections.abc import Iterable

from librelease.commit_parsing import ChangeLevel, ConventionalCommit


def change_level(commit: ConventionalCommit) -> ChangeLevel:
    """Classify a single commit record."""
    if commit.nested:
        return ChangeLevel.MINOR
    if commit.breaking:
        return ChangeLevel.MAJOR
    if commit.type == 'feat':
        return ChangeLevel.MINOR
    if commit.type == 'fix':
        return ChangeLevel.PATCH
    return ChangeLevel.NONE


def highest_change(commits: Iterable[ConventionalCommit]) -> ChangeLevel:
    """Return the most severe level among ``commits`` (``NONE`` if empty)."""
    return max((change_level(c) for c in commits), default=ChangeLevel.NONE)


__all__ = [
    'change_level',
    'highest_change',
]
