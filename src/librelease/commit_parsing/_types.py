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

"""Pure types for commit message parsing.

Standard library only. Everything here is a frozen dataclass or an enum;
no I/O, no logging.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum


class ChangeLevel(IntEnum):
    """How much a set of changes moves a version, ordered by severity.

    Being an ``IntEnum``, levels compare and aggregate with ``max()``::

        >>> max(ChangeLevel.PATCH, ChangeLevel.MINOR)
        <ChangeLevel.MINOR: 2>
    """

    NONE = 0
    PATCH = 1
    MINOR = 2
    MAJOR = 3

    def __str__(self) -> str:
        return self.name.lower()


@dataclass(frozen=True)
class ConventionalCommit:
    """One structured commit record.

    A single git commit can produce several records: its own header plus
    one per nested commit block embedded in its body.

    Attributes:
        type: The commit type (``feat``, ``fix``, ``chore``...).
        subject: Text after the ``type(scope):`` prefix.
        scope: Optional scope inside the parentheses.
        breaking: ``!`` after the type, or a ``BREAKING CHANGE`` footer.
        nested: The record came from a nested commit block, i.e. from a
            bulk regeneration commit rather than a hand-written change.
        footers: Trailer key/value pairs (``PiperOrigin-RevId``,
            ``Library-IDs``...).
        library_id: The library the record was collected for.
        sha: The git commit the record was parsed from.
    """

    type: str
    subject: str
    scope: str = ''
    breaking: bool = False
    nested: bool = False
    footers: dict[str, str] = field(default_factory=dict)
    library_id: str = ''
    sha: str = ''


__all__ = [
    'ChangeLevel',
    'ConventionalCommit',
]
