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

"""Structured errors for librelease.

Every failure the tool reports carries a ``LR-NAMED-KEY`` code, a message
naming the library, commit, tag or revision involved, and an optional hint.
There is exactly one exception type, :class:`LibReleaseError`; callers
distinguish failures by ``exc.code``.

Key Concepts (ELI5)::

    ┌─────────────────────┬────────────────────────────────────────────────┐
    │ Concept             │ ELI5 Explanation                               │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ ErrorCode           │ A readable ID like "LR-VERSION-NO-OP". One    │
    │                     │ per thing that can go wrong.                  │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ LibReleaseError     │ The exception you raise. Holds the code, the  │
    │                     │ message, and a hint for fixing it.            │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ ERRORS catalog      │ Canned explanations for common codes, shown   │
    │                     │ by ``librelease explain CODE``.               │
    └─────────────────────┴────────────────────────────────────────────────┘

Code categories::

    LR-USAGE-*           Invalid command-line combinations
    LR-PRECONDITION-*    Repository state that blocks a command
    LR-CONFIG-*          Manifest configuration errors
    LR-MANIFEST-*        Manifest document errors
    LR-LIBRARY-*         Unknown library names
    LR-REVISION-*, LR-GIT-*, LR-COMMAND-*
                         git and subprocess failures
    LR-VERSION-*         Version parsing and transition errors
    LR-RELEASE-*         Release history reconstruction
    LR-TAG-*             Tag lookup and creation
    LR-BUMP-*            Ecosystem bump hooks

Usage::

    from librelease.errors import E, LibReleaseError

    raise LibReleaseError(
        code=E.VERSION_NO_OP,
        message='lib1: next version 1.2.0 is the same as the current version',
    )
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from enum import Enum
from typing import TextIO

from rich.console import Console
from rich.markup import escape as rich_escape


class ErrorCode(str, Enum):
    """All librelease diagnostic codes."""

    # Usage
    USAGE_LIBRARY_AND_ALL = 'LR-USAGE-LIBRARY-AND-ALL'
    USAGE_VERSION_AND_ALL = 'LR-USAGE-VERSION-AND-ALL'
    USAGE_MISSING_LIBRARY = 'LR-USAGE-MISSING-LIBRARY'

    # Preconditions and configuration
    PRECONDITION_DIRTY_WORKTREE = 'LR-PRECONDITION-DIRTY-WORKTREE'
    CONFIG_NOT_FOUND = 'LR-CONFIG-NOT-FOUND'
    CONFIG_RELEASE_MISSING = 'LR-CONFIG-RELEASE-MISSING'
    CONFIG_INVALID_KEY = 'LR-CONFIG-INVALID-KEY'
    CONFIG_INVALID_VALUE = 'LR-CONFIG-INVALID-VALUE'
    MANIFEST_PARSE_ERROR = 'LR-MANIFEST-PARSE-ERROR'
    MANIFEST_DUPLICATE_LIBRARY = 'LR-MANIFEST-DUPLICATE-LIBRARY'

    # Lookup
    LIBRARY_NOT_FOUND = 'LR-LIBRARY-NOT-FOUND'
    TAG_NOT_FOUND = 'LR-TAG-NOT-FOUND'
    REVISION_NOT_FOUND = 'LR-REVISION-NOT-FOUND'
    GIT_COMMAND_FAILED = 'LR-GIT-COMMAND-FAILED'
    COMMAND_TIMEOUT = 'LR-COMMAND-TIMEOUT'

    # Versioning
    VERSION_INVALID = 'LR-VERSION-INVALID'
    VERSION_NO_OP = 'LR-VERSION-NO-OP'
    VERSION_REGRESSION = 'LR-VERSION-REGRESSION'
    VERSION_REMOVED = 'LR-VERSION-REMOVED'
    VERSION_NOT_PREVIEW = 'LR-VERSION-NOT-PREVIEW'

    # Reconstruction
    RELEASE_COMMIT_NOT_FOUND = 'LR-RELEASE-COMMIT-NOT-FOUND'

    # Tagging and bump hooks
    TAG_CREATION_FAILED = 'LR-TAG-CREATION-FAILED'
    BUMP_UNSUPPORTED = 'LR-BUMP-UNSUPPORTED'
    BUMP_FAILED = 'LR-BUMP-FAILED'


E = ErrorCode


_CATEGORIES: dict[str, str] = {
    'USAGE': 'Invalid command-line combination.',
    'PRECONDITION': 'The repository is not in a state the command can run in.',
    'CONFIG': 'librelease.yaml is missing or misconfigured.',
    'MANIFEST': 'librelease.yaml could not be read as a manifest.',
    'LIBRARY': 'A named library is not in the manifest.',
    'TAG': 'A release tag could not be found or created.',
    'REVISION': 'A git revision could not be resolved.',
    'GIT': 'A git command failed.',
    'COMMAND': 'An external command failed.',
    'VERSION': 'A version string or version change was rejected.',
    'RELEASE': 'The release history could not be reconstructed.',
    'BUMP': 'An ecosystem bump step failed.',
}


@dataclass(frozen=True)
class ErrorInfo:
    """A code with its message and fix-it hint.

    Raised errors carry one with a message naming the library, tag or
    revision involved; :data:`ERRORS` holds the generic version of each.
    """

    code: ErrorCode
    message: str
    hint: str = ''


class LibReleaseError(Exception):
    """Raised for every failure librelease reports.

    ``str(exc)`` is ``'[LR-CODE] message'``; the parts are available as
    :attr:`code`, :attr:`message` and :attr:`hint`.
    """

    def __init__(self, code: ErrorCode, message: str, hint: str = '') -> None:
        """Build the error; ``hint`` overrides the catalog hint when set."""
        self.info = ErrorInfo(code=code, message=message, hint=hint)
        super().__init__(f'[{code.value}] {message}')

    @property
    def code(self) -> ErrorCode:
        """Which failure this is."""
        return self.info.code

    @property
    def message(self) -> str:
        """What failed, without the code prefix."""
        return self.info.message

    @property
    def hint(self) -> str:
        """How to fix it, or ``''`` to fall back on the catalog."""
        return self.info.hint


ERRORS: dict[ErrorCode, ErrorInfo] = {
    E.USAGE_LIBRARY_AND_ALL: ErrorInfo(
        code=E.USAGE_LIBRARY_AND_ALL,
        message='A library name and --all were both given.',
        hint='Name one library, or pass --all to consider every library.',
    ),
    E.USAGE_VERSION_AND_ALL: ErrorInfo(
        code=E.USAGE_VERSION_AND_ALL,
        message='--version cannot be combined with --all.',
        hint='An explicit version only makes sense for a single library.',
    ),
    E.USAGE_MISSING_LIBRARY: ErrorInfo(
        code=E.USAGE_MISSING_LIBRARY,
        message='Neither a library name nor --all was given.',
        hint="Run 'librelease bump <library>' or 'librelease bump --all'.",
    ),
    E.PRECONDITION_DIRTY_WORKTREE: ErrorInfo(
        code=E.PRECONDITION_DIRTY_WORKTREE,
        message='Working tree has uncommitted changes.',
        hint='Commit or stash your changes first.',
    ),
    E.CONFIG_NOT_FOUND: ErrorInfo(
        code=E.CONFIG_NOT_FOUND,
        message='No librelease.yaml found at the repository root.',
        hint='Run the command from the repository root or pass --root.',
    ),
    E.CONFIG_RELEASE_MISSING: ErrorInfo(
        code=E.CONFIG_RELEASE_MISSING,
        message='The manifest has no release section.',
        hint="Add a 'release:' mapping (at least 'remote' and 'branch') to librelease.yaml.",
    ),
    E.VERSION_NO_OP: ErrorInfo(
        code=E.VERSION_NO_OP,
        message='The next version equals the current version.',
        hint='Pick a version greater than the current one.',
    ),
    E.VERSION_REGRESSION: ErrorInfo(
        code=E.VERSION_REGRESSION,
        message='The next version is lower than the current version.',
        hint='Versions only move forward. Pick a greater version.',
    ),
    E.VERSION_REMOVED: ErrorInfo(
        code=E.VERSION_REMOVED,
        message="A library's version was removed from the manifest.",
        hint='Restore the version field; libraries cannot be un-versioned.',
    ),
    E.TAG_NOT_FOUND: ErrorInfo(
        code=E.TAG_NOT_FOUND,
        message='The release tag for a published library does not exist.',
        hint="The previous release was probably not tagged. Run 'librelease tag' on it and fetch tags.",
    ),
    E.COMMAND_TIMEOUT: ErrorInfo(
        code=E.COMMAND_TIMEOUT,
        message='An external command did not finish in time.',
        hint='Check for a hung git remote or credential prompt, then retry.',
    ),
    E.RELEASE_COMMIT_NOT_FOUND: ErrorInfo(
        code=E.RELEASE_COMMIT_NOT_FOUND,
        message='No commit in the manifest history changes a library version.',
        hint='There is nothing to tag yet. Run librelease bump and merge the result.',
    ),
    E.TAG_CREATION_FAILED: ErrorInfo(
        code=E.TAG_CREATION_FAILED,
        message='git refused to create a release tag.',
        hint='The tag may already exist. Tags created before the failure were kept.',
    ),
}


def explain(code: str) -> str | None:
    """Describe ``code`` for ``librelease explain``.

    Matching ignores case. Codes without a catalog entry are described by
    their category.

    Returns:
        The description, or ``None`` for a code that does not exist.
    """
    try:
        error_code = ErrorCode(code.strip().upper())
    except ValueError:
        return None

    name = error_code.value
    info = ERRORS.get(error_code)
    if info is None:
        category = name.split('-')[1]
        return f'{name}: {_CATEGORIES.get(category, "No detailed explanation available.")}'

    text = f'{name}: {info.message}'
    if info.hint:
        text += f'\n  Hint: {info.hint}'
    return text


def render_error(exc: LibReleaseError, *, file: TextIO | None = None) -> None:
    """Render an error in compiler style.

    Output format::

        error[LR-VERSION-NO-OP]: lib1: next version 1.2.0 equals current version
          |
          = hint: Pick a version greater than the current one.

    Args:
        exc: The error to render.
        file: Output stream (defaults to ``sys.stderr``).
    """
    out = file or sys.stderr
    hint = exc.hint or (ERRORS[exc.code].hint if exc.code in ERRORS else '')

    if out.isatty():
        console = Console(file=out, highlight=False)
        msg = rich_escape(exc.message)
        console.print(f'[bold red]error\\[{exc.code.value}][/bold red][bold]: {msg}[/bold]')
        if hint:
            console.print('  [dim]|[/dim]')
            console.print(f'  [dim]=[/dim] [cyan]hint[/cyan]: {rich_escape(hint)}')
        console.print()
    else:
        print(f'error[{exc.code.value}]: {exc.message}', file=out)  # noqa: T201 - CLI output
        if hint:
            print('  |', file=out)  # noqa: T201 - CLI output
            print(f'  = hint: {hint}', file=out)  # noqa: T201 - CLI output
        print(file=out)  # noqa: T201 - CLI output


__all__ = [
    'E',
    'ERRORS',
    'ErrorCode',
    'ErrorInfo',
    'LibReleaseError',
    'explain',
    'render_error',
]
